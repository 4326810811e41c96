"""Access verification: permission functions, rule evaluation and decisions."""

from .decision import AccessDecision, ConditionResult
from .functions import PermissionFunction, PermissionFunctionRegistry
from .rules import (
    CompiledRule,
    RuleEvaluator,
    RuleResult,
    compile_rule,
    evaluate_rule,
    user_bindings,
)
from .verifier import AccessVerifier, custom_function_failure, verify_route_access

__all__ = [
    "AccessDecision",
    "ConditionResult",
    "PermissionFunction",
    "PermissionFunctionRegistry",
    "CompiledRule",
    "RuleEvaluator",
    "RuleResult",
    "compile_rule",
    "evaluate_rule",
    "user_bindings",
    "AccessVerifier",
    "custom_function_failure",
    "verify_route_access",
]
