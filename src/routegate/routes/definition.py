"""
Route table models.

A route table maps path patterns to route definitions:

    {
      "/admin": {
        "allow": {
          "when": {
            "conditions": [{"label": "isAdmin", "rule": "role === 'admin'"}],
            "operator": "OR"
          },
          "redirectOnDeny": "/login"
        }
      }
    }

Keys are accepted in camelCase (as written in JSON route files) or
snake_case.
"""

from __future__ import annotations

from typing import Any, Literal, Mapping, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from routegate.errors import RouteConfigError

ConditionOperator = Literal["AND", "OR"]

PUBLIC_RULE = "public"
AUTHENTICATED_RULE = "authenticated"

KNOWN_ROUTE_FIELDS = frozenset({"allow"})
KNOWN_ALLOW_FIELDS = frozenset(
    {
        "function",
        "when",
        "conditions",
        "operator",
        "redirectOnDeny",
        "redirect_on_deny",
        "excludeRedirectQuery",
        "exclude_redirect_query",
    }
)


class RouteCondition(BaseModel):
    """A single labelled rule of a `when` clause."""

    model_config = ConfigDict(extra="allow", frozen=True)

    label: Optional[str] = None
    # Left unvalidated: a missing or non-string rule denies this condition
    # only, when it is evaluated.
    rule: Any = None

    @property
    def rule_text(self) -> str:
        return self.rule if isinstance(self.rule, str) else repr(self.rule)

    @property
    def display_label(self) -> str:
        """Label reported in AccessDecision.failed; falls back to the rule text."""
        return self.label if self.label is not None else self.rule_text


class WhenClause(BaseModel):
    """Conditions combined with AND or OR."""

    model_config = ConfigDict(extra="allow", frozen=True)

    conditions: list[RouteCondition] = Field(default_factory=list)
    operator: ConditionOperator = "OR"

    @field_validator("operator", mode="before")
    @classmethod
    def _upper_operator(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value


class AllowClause(BaseModel):
    """
    Who may view a route.

    Either `function` names a registered permission function, or the
    conditions come from `when`. Without `when`, `conditions` and
    `operator` placed directly on the allow clause form an implicit one.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    function: Optional[str] = None
    when: Optional[WhenClause] = None
    conditions: Optional[list[RouteCondition]] = None
    operator: Optional[ConditionOperator] = None
    redirect_on_deny: Optional[str] = Field(default=None, alias="redirectOnDeny")
    exclude_redirect_query: bool = Field(default=False, alias="excludeRedirectQuery")

    @field_validator("operator", mode="before")
    @classmethod
    def _upper_operator(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("exclude_redirect_query", mode="before")
    @classmethod
    def _only_literal_true(cls, value: Any) -> bool:
        return value is True

    def effective_when(self) -> WhenClause:
        if self.when is not None:
            return self.when
        return WhenClause(
            conditions=list(self.conditions or []),
            operator=self.operator or "OR",
        )


class RouteDefinition(BaseModel):
    """Configuration record of one path pattern."""

    model_config = ConfigDict(extra="allow", frozen=True)

    allow: Optional[AllowClause] = None

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Any], pattern: Optional[str] = None
    ) -> RouteDefinition:
        if not isinstance(data, Mapping):
            raise RouteConfigError("route definition must be an object", pattern)
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            raise RouteConfigError(_describe(e), pattern) from e


def parse_route_table(data: Any) -> dict[str, RouteDefinition]:
    """
    Validates a raw route table, keeping the order of its keys.

    Raises:
        RouteConfigError: If the table is not an object or an entry is invalid
    """
    if not isinstance(data, Mapping):
        raise RouteConfigError("route table must be an object")

    table: dict[str, RouteDefinition] = {}
    for pattern, entry in data.items():
        if not isinstance(pattern, str):
            raise RouteConfigError(f"route pattern must be a string, got {pattern!r}")
        if isinstance(entry, RouteDefinition):
            table[pattern] = entry
        elif entry is None:
            table[pattern] = RouteDefinition()
        else:
            table[pattern] = RouteDefinition.from_dict(entry, pattern)
    return table


def _describe(error: ValidationError) -> str:
    details = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        details.append(f"{location}: {item['msg']}" if location else item["msg"])
    return "; ".join(details)
