"""Route tables: models, loading, pattern matching and lookup."""

from .definition import (
    AUTHENTICATED_RULE,
    PUBLIC_RULE,
    AllowClause,
    ConditionOperator,
    RouteCondition,
    RouteDefinition,
    WhenClause,
    parse_route_table,
)
from .loader import detect_format, load_route_table, parse_route_document
from .patterns import (
    RoutePattern,
    compile_route_pattern,
    matches_pattern,
    pattern_specificity,
)
from .resolver import RouteMatch, RouteResolver, get_route_config, normalize_path

__all__ = [
    "AUTHENTICATED_RULE",
    "PUBLIC_RULE",
    "AllowClause",
    "ConditionOperator",
    "RouteCondition",
    "RouteDefinition",
    "WhenClause",
    "parse_route_table",
    "detect_format",
    "load_route_table",
    "parse_route_document",
    "RoutePattern",
    "compile_route_pattern",
    "matches_pattern",
    "pattern_specificity",
    "RouteMatch",
    "RouteResolver",
    "get_route_config",
    "normalize_path",
]
