"""
Rule compilation and evaluation.

A rule is ``"public"``, ``"authenticated"``, or an expression over the
fields of the user object such as ``role === 'admin' && verified``. Each
field of the user is bound as a top-level identifier.

Evaluation semantics:
- A null user fails every expression rule without evaluating it.
- A rule that is not a string, and parse and evaluation errors, make the
  rule false; they are logged and reported on the result, never raised.
- Results are coerced to boolean with is_truthy.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Literal, Mapping, Optional

from pydantic import BaseModel

from routegate.expr import (
    DEFAULT_EXPRESSION_LIMITS,
    AstNode,
    EvaluationContext,
    ExpressionError,
    ExpressionLimits,
    FunctionRegistry,
    evaluate_as_boolean,
    get_type_name,
    parse,
)
from routegate.routes.definition import AUTHENTICATED_RULE, PUBLIC_RULE

logger = logging.getLogger("routegate.access.rules")

RuleKind = Literal["public", "authenticated", "expression"]


@dataclass(frozen=True)
class CompiledRule:
    """A rule with its expression parsed ahead of evaluation."""

    source: str
    kind: RuleKind
    ast: Optional[AstNode] = None
    parse_error: Optional[str] = None


@dataclass(frozen=True)
class RuleResult:
    passed: bool
    error: Optional[str] = None


@lru_cache(maxsize=1024)
def compile_rule(
    source: str, limits: ExpressionLimits = DEFAULT_EXPRESSION_LIMITS
) -> CompiledRule:
    """
    Parses a rule once. Repeated calls with the same source and limits
    return the same CompiledRule.
    """
    if source == PUBLIC_RULE:
        return CompiledRule(source, "public")
    if source == AUTHENTICATED_RULE:
        return CompiledRule(source, "authenticated")

    try:
        ast = parse(source, limits)
    except ExpressionError as e:
        logger.warning("rule_parse_error", extra={"rule": source, "error": str(e)})
        return CompiledRule(source, "expression", parse_error=str(e))
    return CompiledRule(source, "expression", ast=ast)


def user_bindings(user: Any) -> dict[str, Any]:
    """
    Turns a user object into identifier bindings.

    Mappings are used as they are; pydantic models, dataclasses and plain
    objects are converted to their fields.
    """
    if user is None:
        return {}
    if isinstance(user, Mapping):
        return dict(user)
    if isinstance(user, BaseModel):
        return user.model_dump()
    if dataclasses.is_dataclass(user) and not isinstance(user, type):
        return dataclasses.asdict(user)
    if hasattr(user, "__dict__"):
        return {k: v for k, v in vars(user).items() if not k.startswith("_")}
    return {}


class RuleEvaluator:
    """Evaluates rules against users with a fixed set of limits and built-ins."""

    def __init__(
        self,
        limits: Optional[ExpressionLimits] = None,
        functions: Optional[FunctionRegistry] = None,
    ):
        self._limits = limits or DEFAULT_EXPRESSION_LIMITS
        self._functions = functions

    @property
    def limits(self) -> ExpressionLimits:
        return self._limits

    def compile(self, rule: str) -> CompiledRule:
        return compile_rule(rule, self._limits)

    def evaluate(self, rule: str | CompiledRule, user: Any) -> RuleResult:
        if not isinstance(rule, str | CompiledRule):
            error = f"Rule must be a string, got {get_type_name(rule)}"
            logger.debug("rule_evaluation_error", extra={"rule": rule, "error": error})
            return RuleResult(False, error)

        compiled = rule if isinstance(rule, CompiledRule) else self.compile(rule)

        if compiled.kind == "public":
            return RuleResult(True)
        if compiled.kind == "authenticated":
            return RuleResult(user is not None)

        if user is None:
            return RuleResult(False)
        if compiled.ast is None:
            return RuleResult(False, compiled.parse_error or "Rule did not compile")

        context = EvaluationContext(
            bindings=user_bindings(user),
            limits=self._limits,
            source=compiled.source,
            functions=self._functions,
        )
        try:
            value, error = evaluate_as_boolean(compiled.ast, context)
        except Exception as e:
            logger.warning(
                "rule_evaluation_failed",
                extra={"rule": compiled.source, "error": str(e)},
                exc_info=True,
            )
            return RuleResult(False, str(e))

        if error is not None:
            logger.debug(
                "rule_evaluation_error", extra={"rule": compiled.source, "error": error}
            )
            return RuleResult(False, error)
        return RuleResult(value)


_DEFAULT_EVALUATOR = RuleEvaluator()


def evaluate_rule(rule: str, user: Any) -> bool:
    """Evaluates one rule with the default limits and built-ins."""
    return _DEFAULT_EVALUATOR.evaluate(rule, user).passed
