"""
Route configuration lookup.

Finds the one route definition that governs a path: an exact key wins
outright, otherwise the matching pattern with the highest specificity.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Optional

from routegate.routes.definition import (
    KNOWN_ALLOW_FIELDS,
    KNOWN_ROUTE_FIELDS,
    RouteDefinition,
    parse_route_table,
)
from routegate.routes.patterns import RoutePattern, compile_route_pattern

logger = logging.getLogger("routegate.routes.resolver")

INDEX_PATH = "index"
ROOT_PATH = "/"


def normalize_path(path: Optional[str]) -> str:
    """
    Maps a requested path onto the form used by route table keys: missing,
    empty or ``index`` becomes ``/``, and a leading slash is added.
    """
    if not path or path == INDEX_PATH:
        return ROOT_PATH
    if not path.startswith("/"):
        return "/" + path
    return path


@dataclass(frozen=True)
class RouteMatch:
    """The entry that governs a path."""

    pattern: str
    definition: RouteDefinition
    specificity: int


class RouteResolver:
    """
    Resolves paths against a route table.

    The table is validated and its patterns compiled once, at construction.
    Lookups do not mutate the resolver, so one instance can serve concurrent
    callers.
    """

    def __init__(
        self, routes: Mapping[str, Any], warn_on_unknown_fields: bool = True
    ):
        self._definitions = parse_route_table(routes)
        if warn_on_unknown_fields:
            for pattern, definition in self._definitions.items():
                _warn_unknown_fields(pattern, definition)
        self._patterns: list[RoutePattern] = [
            compile_route_pattern(pattern) for pattern in self._definitions
        ]
        logger.debug(
            "route_table_compiled",
            extra={
                "route_count": len(self._definitions),
                "pattern_kinds": sorted({p.kind for p in self._patterns}),
            },
        )

    def __len__(self) -> int:
        return len(self._definitions)

    def __iter__(self) -> Iterator[str]:
        return iter(self._definitions)

    def __contains__(self, pattern: object) -> bool:
        return pattern in self._definitions

    @property
    def definitions(self) -> Mapping[str, RouteDefinition]:
        return dict(self._definitions)

    def match(self, path: Optional[str]) -> Optional[RouteMatch]:
        """Returns the governing entry for `path`, or None."""
        normalized = normalize_path(path)

        exact = self._definitions.get(normalized)
        if exact is not None:
            return RouteMatch(
                pattern=normalized,
                definition=exact,
                specificity=compile_route_pattern(normalized).specificity,
            )

        candidates = [p for p in self._patterns if p.match(normalized)]
        if not candidates:
            logger.debug("route_not_configured", extra={"path": normalized})
            return None

        # sorted() is stable, so equal scores keep table order
        best = sorted(candidates, key=lambda p: p.specificity, reverse=True)[0]
        return RouteMatch(
            pattern=best.source,
            definition=self._definitions[best.source],
            specificity=best.specificity,
        )

    def resolve(self, path: Optional[str]) -> Optional[RouteDefinition]:
        """Returns the governing route definition for `path`, or None."""
        match = self.match(path)
        return match.definition if match is not None else None


def get_route_config(
    path: Optional[str], routes: Mapping[str, Any] | RouteResolver
) -> Optional[RouteDefinition]:
    """
    Functional form of RouteResolver.resolve. Passing a raw mapping
    validates it on every call; keep a RouteResolver around for repeated
    lookups.
    """
    resolver = routes if isinstance(routes, RouteResolver) else RouteResolver(routes)
    return resolver.resolve(path)


def _warn_unknown_fields(pattern: str, definition: RouteDefinition) -> None:
    for key in definition.model_extra or {}:
        if key not in KNOWN_ROUTE_FIELDS:
            logger.warning(
                "unknown_route_field", extra={"pattern": pattern, "field": key}
            )
    allow = definition.allow
    if allow is not None:
        for key in allow.model_extra or {}:
            if key not in KNOWN_ALLOW_FIELDS:
                logger.warning(
                    "unknown_allow_field", extra={"pattern": pattern, "field": key}
                )
