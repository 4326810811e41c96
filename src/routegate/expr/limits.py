"""
Resource limits for rule parsing and evaluation.

Route tables are configuration, but they are still text that ends up being
interpreted on every navigation, so each rule is bounded in size and shape.
"""

from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional

from .errors import LimitExceededError


@dataclass(frozen=True)
class ExpressionLimits:
    """Expression limits configuration."""

    # Maximum rule length in characters
    max_expression_length: int = 2048

    # Maximum AST nesting level
    max_ast_depth: int = 32

    # Maximum number of AST nodes
    max_ast_nodes: int = 256

    # Maximum regex pattern length for regex_match
    max_regex_pattern_length: int = 256

    # Maximum glob pattern length for glob_match
    max_glob_pattern_length: int = 256

    # Maximum array literal length
    max_array_length: int = 64

    # Maximum function call arguments
    max_function_args: int = 8

    # Maximum member access chain depth
    max_member_access_depth: int = 16

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ExpressionLimits":
        """
        Builds limits from a mapping with snake_case or camelCase keys.
        Missing keys keep their defaults; unknown keys are ignored.
        """
        values: dict[str, Any] = {}
        for field in fields(cls):
            camel = _to_camel(field.name)
            if field.name in data:
                values[field.name] = int(data[field.name])
            elif camel in data:
                values[field.name] = int(data[camel])
        return cls(**values)


DEFAULT_EXPRESSION_LIMITS = ExpressionLimits()


def _to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _check(name: str, limit: int, actual: int) -> None:
    if actual > limit:
        raise LimitExceededError(name, limit, actual)


def check_expression_length(
    expression: str, limits: Optional[ExpressionLimits] = None
) -> None:
    limits = limits or DEFAULT_EXPRESSION_LIMITS
    _check("max_expression_length", limits.max_expression_length, len(expression))


def check_ast_depth(depth: int, limits: Optional[ExpressionLimits] = None) -> None:
    limits = limits or DEFAULT_EXPRESSION_LIMITS
    _check("max_ast_depth", limits.max_ast_depth, depth)


def check_ast_node_count(
    count: int, limits: Optional[ExpressionLimits] = None
) -> None:
    limits = limits or DEFAULT_EXPRESSION_LIMITS
    _check("max_ast_nodes", limits.max_ast_nodes, count)


def check_array_length(length: int, limits: Optional[ExpressionLimits] = None) -> None:
    limits = limits or DEFAULT_EXPRESSION_LIMITS
    _check("max_array_length", limits.max_array_length, length)


def check_function_arg_count(
    count: int, limits: Optional[ExpressionLimits] = None
) -> None:
    limits = limits or DEFAULT_EXPRESSION_LIMITS
    _check("max_function_args", limits.max_function_args, count)


def check_regex_pattern_length(
    pattern: str, limits: Optional[ExpressionLimits] = None
) -> None:
    limits = limits or DEFAULT_EXPRESSION_LIMITS
    _check("max_regex_pattern_length", limits.max_regex_pattern_length, len(pattern))


def check_glob_pattern_length(
    pattern: str, limits: Optional[ExpressionLimits] = None
) -> None:
    limits = limits or DEFAULT_EXPRESSION_LIMITS
    _check("max_glob_pattern_length", limits.max_glob_pattern_length, len(pattern))
