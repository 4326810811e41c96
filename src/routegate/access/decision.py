"""Access decisions and their evaluation trace."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ConditionResult(BaseModel):
    """Outcome of one condition of a `when` clause, or of a permission function."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    label: str
    rule: str
    passed: bool
    error: Optional[str] = None


class AccessDecision(BaseModel):
    """
    Whether a user may view a route, and where to send them if not.

    `redirect_to` is set exactly when `allowed` is False. `failed` lists the
    labels of failing conditions; with an OR operator it can be non-empty on
    an allowed decision.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    allowed: bool
    redirect_to: Optional[str] = Field(default=None, alias="redirectTo")
    exclude_redirect_query: bool = Field(default=False, alias="excludeRedirectQuery")
    failed: list[str] = Field(default_factory=list)
    trace: list[ConditionResult] = Field(default_factory=list)
    matched_pattern: Optional[str] = Field(default=None, alias="matchedPattern")

    @classmethod
    def allow(
        cls, matched_pattern: Optional[str] = None, **kwargs: Any
    ) -> AccessDecision:
        return cls(allowed=True, matched_pattern=matched_pattern, **kwargs)

    def to_dict(self) -> dict[str, Any]:
        """The camelCase form consumed by navigation code."""
        return self.model_dump(
            by_alias=True,
            include={"allowed", "redirect_to", "exclude_redirect_query", "failed"},
        )
