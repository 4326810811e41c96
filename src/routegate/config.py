"""
Route guard settings.

Settings can be built in code or from a mapping read out of application
configuration; keys are accepted in snake_case or camelCase:

    RouteGuardSettings.from_dict({
        "loginPath": "/signin",
        "authPages": ["/signin", "/signup"],
        "expressionLimits": {"maxExpressionLength": 512},
    })
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from routegate.expr import DEFAULT_EXPRESSION_LIMITS, ExpressionLimits


class RouteGuardSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    login_path: str = Field(default="/login", alias="loginPath")
    """Deny redirect used when a route has no redirectOnDeny."""

    home_path: str = Field(default="/", alias="homePath")
    """Where to go after signing in when no redirect was requested."""

    redirect_query_param: str = Field(default="redirect", alias="redirectQueryParam")
    """Query parameter carrying the originally requested location."""

    auth_pages: tuple[str, ...] = Field(
        default=("/login", "/signup", "/callback"), alias="authPages"
    )
    """Paths that count as authentication pages for post-login navigation."""

    warn_on_unknown_fields: bool = Field(default=True, alias="warnOnUnknownFields")

    expression_limits: ExpressionLimits = Field(
        default=DEFAULT_EXPRESSION_LIMITS, alias="expressionLimits"
    )

    @field_validator("login_path", "home_path", "redirect_query_param")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must be a non-empty string")
        return value.strip()

    @field_validator("expression_limits", mode="before")
    @classmethod
    def _coerce_limits(cls, value: Any) -> Any:
        if value is None:
            return DEFAULT_EXPRESSION_LIMITS
        if isinstance(value, Mapping):
            return ExpressionLimits.from_dict(value)
        return value

    @classmethod
    def from_dict(
        cls, data: Optional[RouteGuardSettings | Mapping[str, Any]]
    ) -> RouteGuardSettings:
        """Builds settings from a mapping; None gives the defaults."""
        if data is None:
            return cls()
        if isinstance(data, RouteGuardSettings):
            return data
        if not isinstance(data, Mapping):
            raise ValueError(
                f"route guard settings must be a mapping, got {type(data).__name__}"
            )
        return cls.model_validate(dict(data))
