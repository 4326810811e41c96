"""
Declarative route access control.

A route table maps path patterns to access rules; a RouteGuard resolves the
rule governing a path and decides whether a user may view it.
"""

from .access import (
    AccessDecision,
    AccessVerifier,
    ConditionResult,
    PermissionFunctionRegistry,
    evaluate_rule,
    verify_route_access,
)
from .config import RouteGuardSettings
from .errors import RouteConfigError
from .expr import ExpressionError, ExpressionLimits
from .guard import RouteGuard, build_redirect_url
from .routes import (
    RouteDefinition,
    RouteMatch,
    RouteResolver,
    get_route_config,
    load_route_table,
    matches_pattern,
    pattern_specificity,
)

__all__ = [
    # Access
    "AccessDecision",
    "AccessVerifier",
    "ConditionResult",
    "PermissionFunctionRegistry",
    "evaluate_rule",
    "verify_route_access",
    # Configuration
    "RouteGuardSettings",
    "ExpressionLimits",
    # Errors
    "RouteConfigError",
    "ExpressionError",
    # Guard
    "RouteGuard",
    "build_redirect_url",
    # Routes
    "RouteDefinition",
    "RouteMatch",
    "RouteResolver",
    "get_route_config",
    "load_route_table",
    "matches_pattern",
    "pattern_specificity",
]
