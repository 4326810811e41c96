"""
Route guard.

Ties route lookup, access verification and redirect handling together for a
navigation layer:

    guard = RouteGuard.from_file("routes.json", functions={"isAdmin": is_admin})

    target = guard.redirect_for("/admin?tab=users", user)
    if target is not None:
        navigate(target)   # "/login?redirect=%2Fadmin%3Ftab%3Dusers"
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping, Optional, Union
from urllib.parse import parse_qs, quote

from routegate.access.decision import AccessDecision
from routegate.access.functions import PermissionFunction, PermissionFunctionRegistry
from routegate.access.verifier import AccessVerifier
from routegate.config import RouteGuardSettings
from routegate.routes.definition import RouteDefinition
from routegate.routes.loader import (
    RouteTableFormat,
    load_route_table,
    parse_route_document,
)
from routegate.routes.resolver import RouteMatch, RouteResolver

logger = logging.getLogger("routegate.guard")

Functions = Optional[
    Union[PermissionFunctionRegistry, Mapping[str, PermissionFunction]]
]
Settings = Optional[Union[RouteGuardSettings, Mapping[str, Any]]]

# Characters encodeURIComponent leaves alone, besides letters, digits and _.-~
_URI_COMPONENT_SAFE = "!*'()"


def build_redirect_url(
    redirect_to: str, requested: str, param: str = "redirect"
) -> str:
    """
    Appends the requested location to a deny redirect so the user can be
    sent back after signing in.
    """
    separator = "&" if "?" in redirect_to else "?"
    encoded = quote(requested, safe=_URI_COMPONENT_SAFE)
    return f"{redirect_to}{separator}{param}={encoded}"


def split_location(location: Optional[str]) -> tuple[str, str]:
    """
    Splits a location into (path, query); the fragment is dropped.

    The location is never read as a URL, so a leading ``//`` stays part
    of the path instead of becoming a network location.
    """
    location = (location or "").partition("#")[0]
    path, _, query = location.partition("?")
    return path, query


class RouteGuard:
    """
    Answers "may this user view this location, and if not, where to".

    A guard is immutable after construction and safe to share between
    requests.
    """

    def __init__(
        self,
        routes: Mapping[str, Any],
        functions: Functions = None,
        settings: Settings = None,
    ):
        self._settings = RouteGuardSettings.from_dict(settings)
        self._resolver = RouteResolver(
            routes, warn_on_unknown_fields=self._settings.warn_on_unknown_fields
        )
        self._verifier = AccessVerifier(functions=functions, settings=self._settings)

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        functions: Functions = None,
        settings: Settings = None,
        format: Optional[RouteTableFormat] = None,
    ) -> RouteGuard:
        """Loads a JSON or YAML route table from disk."""
        return cls(load_route_table(path, format), functions, settings)

    @classmethod
    def from_string(
        cls,
        content: str,
        functions: Functions = None,
        settings: Settings = None,
        format: Optional[RouteTableFormat] = None,
    ) -> RouteGuard:
        return cls(parse_route_document(content, format), functions, settings)

    @property
    def settings(self) -> RouteGuardSettings:
        return self._settings

    @property
    def resolver(self) -> RouteResolver:
        return self._resolver

    @property
    def functions(self) -> PermissionFunctionRegistry:
        return self._verifier.functions

    def match(self, location: Optional[str]) -> Optional[RouteMatch]:
        path, _ = split_location(location)
        return self._resolver.match(path)

    def resolve(self, location: Optional[str]) -> Optional[RouteDefinition]:
        path, _ = split_location(location)
        return self._resolver.resolve(path)

    def check(self, location: Optional[str], user: Any) -> AccessDecision:
        """Access decision for `user` at `location` (path plus optional query)."""
        return self._verifier.verify(self.match(location), user)

    def redirect_for(self, location: str, user: Any) -> Optional[str]:
        """
        The URL to navigate to instead of `location`, or None when access is
        allowed. Unless the route sets excludeRedirectQuery, the requested
        location is carried along in the redirect query parameter.
        """
        return self.redirect_url(self.check(location, user), location)

    def redirect_url(self, decision: AccessDecision, location: str) -> Optional[str]:
        """The redirect for an already computed decision on `location`."""
        if decision.allowed or decision.redirect_to is None:
            return None
        if decision.exclude_redirect_query:
            return decision.redirect_to

        path, query = split_location(location)
        requested = f"{path}?{query}" if query else path
        target = build_redirect_url(
            decision.redirect_to, requested, self._settings.redirect_query_param
        )
        logger.debug("route_redirect", extra={"requested": requested, "target": target})
        return target

    def post_login_target(self, location: str) -> Optional[str]:
        """
        Where to go once the user has signed in: the location carried in the
        redirect query parameter, else the home path while on an
        authentication page, else None (stay put).
        """
        path, query = split_location(location)
        values = parse_qs(query).get(self._settings.redirect_query_param)
        if values and values[0]:
            return values[0]

        if any(page in path for page in self._settings.auth_pages):
            return self._settings.home_path
        return None
