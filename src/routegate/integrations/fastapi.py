"""
FastAPI integration.

    guard = RouteGuard.from_file("routes.json")

    def current_user(request: Request) -> dict | None:
        return request.session.get("user")

    check_access = require_route_access(guard, current_user)

    @app.get("/admin", dependencies=[Depends(check_access)])
    async def admin(): ...

Denied requests get a 307 redirect to the route's deny target.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from fastapi import Depends, HTTPException, Request

from routegate.access.decision import AccessDecision
from routegate.guard import RouteGuard

logger = logging.getLogger("routegate.integrations.fastapi")

REDIRECT_STATUS_CODE = 307


def _anonymous() -> None:
    return None


def require_route_access(
    guard: RouteGuard, get_user: Optional[Callable[..., Any]] = None
) -> Callable[..., Any]:
    """
    Builds a dependency that enforces `guard` on the request path.

    Args:
        guard: The route guard to consult
        get_user: A FastAPI dependency returning the current user, or None
            for an anonymous user; when omitted every request is anonymous

    Returns:
        A dependency returning the AccessDecision of an allowed request
    """
    user_dependency = get_user or _anonymous

    async def route_access(
        request: Request, user: Any = Depends(user_dependency)
    ) -> AccessDecision:
        location = request.url.path
        if request.url.query:
            location = f"{location}?{request.url.query}"

        decision = guard.check(location, user)
        if decision.allowed:
            return decision

        target = guard.redirect_url(decision, location)
        logger.debug(
            "request_redirected",
            extra={"path": request.url.path, "location": target},
        )
        raise HTTPException(
            status_code=REDIRECT_STATUS_CODE,
            detail={"error": "access_denied", "failed": decision.failed},
            headers={"Location": target or ""},
        )

    return route_access
