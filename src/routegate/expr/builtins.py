"""
Built-in functions for the rule-expression language.

All built-ins are pure and deterministic. Rules may call them directly
(``starts_with(email, 'admin@')``) or with method syntax
(``email.startsWith('admin@')``), in which case the receiver is passed as
the first argument.

Null handling semantics:
- Predicates (starts_with, ends_with, contains, includes, glob_match,
  regex_match) return False when a required argument is null, so a rule
  over a missing user field is simply false.
- Wrong non-null types raise BuiltinError.
"""

import re
from collections.abc import Mapping
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from .errors import BuiltinError, EvaluationError
from .limits import (
    ExpressionLimits,
    check_glob_pattern_length,
    check_regex_pattern_length,
)

# Runtime values. None is the canonical null.
ExprValue = Union[
    str,
    float,
    int,
    bool,
    None,
    Sequence["ExprValue"],
    Mapping[str, "ExprValue"],
]


class BuiltinContext:
    """Context passed to built-in functions."""

    def __init__(self, limits: ExpressionLimits, position: int, source: str):
        self.limits = limits
        self.position = position
        self.source = source


BuiltinFunction = Callable[[Sequence[ExprValue], BuiltinContext], ExprValue]

FunctionRegistry = Dict[str, BuiltinFunction]


def normalize_value(value: Any) -> ExprValue:
    """
    Maps a Python value coming from a user object onto an ExprValue.

    Scalars and mappings pass through, lists, tuples, sets and frozensets
    become lists, anything else (callables, arbitrary objects) becomes null
    so rules can never reach into live objects.
    """
    if value is None or isinstance(value, bool | int | float | str):
        return value
    if isinstance(value, list | tuple | set | frozenset):
        return [normalize_value(element) for element in value]
    if isinstance(value, Mapping):
        return value
    return None


def get_type_name(value: ExprValue) -> str:
    """Type name of a value, for error messages."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int | float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list | tuple):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


def is_truthy(value: ExprValue) -> bool:
    """
    Boolean coercion used for rule results and logical operators.

    null, false, 0 and the empty string are false; everything else,
    including empty arrays and objects, is true.
    """
    if value is None or value is False:
        return False
    if isinstance(value, int | float) and not isinstance(value, bool):
        return value != 0
    if isinstance(value, str):
        return value != ""
    return True


# ============================================================
# Argument helpers
# ============================================================


def _expect_args(
    args: Sequence[ExprValue],
    name: str,
    min_count: int,
    max_count: Optional[int] = None,
) -> None:
    max_count = min_count if max_count is None else max_count
    if not min_count <= len(args) <= max_count:
        expected = (
            str(min_count) if min_count == max_count else f"{min_count}-{max_count}"
        )
        raise BuiltinError(name, f"expected {expected} argument(s), got {len(args)}")


def _string(value: ExprValue, arg_name: str, name: str) -> str:
    if not isinstance(value, str):
        raise BuiltinError(
            name, f"{arg_name} must be a string, got {get_type_name(value)}"
        )
    return value


def _string_or_none(value: ExprValue, arg_name: str, name: str) -> Optional[str]:
    if value is None:
        return None
    return _string(value, arg_name, name)


def _string_predicate(
    name: str, test: Callable[[str, str], bool], second: str
) -> BuiltinFunction:
    """Builds a null-tolerant two-string predicate."""

    def predicate(args: Sequence[ExprValue], ctx: BuiltinContext) -> ExprValue:
        _expect_args(args, name, 2)
        subject = _string_or_none(args[0], "s", name)
        operand = _string_or_none(args[1], second, name)
        if subject is None or operand is None:
            return False
        return test(subject, operand)

    return predicate


# ============================================================
# String helpers
# ============================================================


def _lower(args: Sequence[ExprValue], ctx: BuiltinContext) -> ExprValue:
    _expect_args(args, "lower", 1)
    return _string(args[0], "s", "lower").lower()


def _upper(args: Sequence[ExprValue], ctx: BuiltinContext) -> ExprValue:
    _expect_args(args, "upper", 1)
    return _string(args[0], "s", "upper").upper()


def _trim(args: Sequence[ExprValue], ctx: BuiltinContext) -> ExprValue:
    """trim(s) -> string; null trims to the empty string."""
    _expect_args(args, "trim", 1)
    if args[0] is None:
        return ""
    return _string(args[0], "s", "trim").strip()


def _split(args: Sequence[ExprValue], ctx: BuiltinContext) -> ExprValue:
    """split(s, separator=" ") -> string[]"""
    _expect_args(args, "split", 1, 2)
    s = _string(args[0], "s", "split")
    separator = _string(args[1], "separator", "split") if len(args) == 2 else " "
    if not separator:
        raise BuiltinError("split", "separator must not be empty")
    return s.split(separator)


_starts_with = _string_predicate("starts_with", str.startswith, "prefix")
_ends_with = _string_predicate("ends_with", str.endswith, "suffix")
_contains = _string_predicate("contains", lambda s, sub: sub in s, "substring")


# ============================================================
# Collection helpers
# ============================================================


def _len(args: Sequence[ExprValue], ctx: BuiltinContext) -> ExprValue:
    """len(x: string | array | object) -> number"""
    _expect_args(args, "len", 1)
    x = args[0]
    if isinstance(x, str | list | tuple | Mapping):
        return len(x)
    raise BuiltinError("len", f"expected string or array, got {get_type_name(x)}")


def _includes(args: Sequence[ExprValue], ctx: BuiltinContext) -> ExprValue:
    """
    includes(collection: array | string, item) -> bool

    Array membership (deep equality) or substring test; False for null.
    """
    _expect_args(args, "includes", 2)
    collection, item = args
    if collection is None:
        return False
    if isinstance(collection, str):
        if item is None:
            return False
        return _string(item, "item", "includes") in collection
    if isinstance(collection, list | tuple):
        return any(values_equal(element, item) for element in collection)
    raise BuiltinError(
        "includes",
        f"collection must be an array or string, got {get_type_name(collection)}",
    )


# ============================================================
# Generic helpers
# ============================================================


def _exists(args: Sequence[ExprValue], ctx: BuiltinContext) -> ExprValue:
    """exists(x) -> bool; missing user fields are null, so this tests presence."""
    _expect_args(args, "exists", 1)
    return args[0] is not None


def _coalesce(args: Sequence[ExprValue], ctx: BuiltinContext) -> ExprValue:
    """coalesce(a, b, ...) -> first non-null argument"""
    _expect_args(args, "coalesce", 1, ctx.limits.max_function_args)
    return next((a for a in args if a is not None), None)


# ============================================================
# Pattern helpers
# ============================================================


@lru_cache(maxsize=256)
def _compile_glob(pattern: str) -> "re.Pattern[str]":
    # `**` spans separators, `*` stays within one segment, `?` is one character
    parts: List[str] = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**", i):
            parts.append(".*")
            i += 2
        elif pattern[i] == "*":
            parts.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            parts.append("[^/]")
            i += 1
        else:
            parts.append(re.escape(pattern[i]))
            i += 1
    return re.compile("^" + "".join(parts) + "$")


def _glob_match(args: Sequence[ExprValue], ctx: BuiltinContext) -> ExprValue:
    """glob_match(value, pattern) -> bool"""
    _expect_args(args, "glob_match", 2)
    value = _string_or_none(args[0], "value", "glob_match")
    pattern = _string_or_none(args[1], "pattern", "glob_match")
    if value is None or pattern is None:
        return False
    check_glob_pattern_length(pattern, ctx.limits)
    return _compile_glob(pattern).match(value) is not None


_NESTED_QUANTIFIERS = re.compile(r"([+*?]|\{\d+,?\d*\})\s*\)\s*([+*?]|\{\d+,?\d*\})")
_REPEATED_WILDCARDS = re.compile(r"(\.\*){3,}|(\.\+){3,}")


def _is_safe_regex(pattern: str) -> bool:
    """Best-effort rejection of patterns prone to catastrophic backtracking."""
    return not (
        _NESTED_QUANTIFIERS.search(pattern) or _REPEATED_WILDCARDS.search(pattern)
    )


def _regex_match(args: Sequence[ExprValue], ctx: BuiltinContext) -> ExprValue:
    """regex_match(value, pattern) -> bool; the pattern must match the whole value."""
    _expect_args(args, "regex_match", 2)
    value = _string_or_none(args[0], "value", "regex_match")
    pattern = _string_or_none(args[1], "pattern", "regex_match")
    if value is None or pattern is None:
        return False

    check_regex_pattern_length(pattern, ctx.limits)
    if not _is_safe_regex(pattern):
        raise BuiltinError(
            "regex_match", f"pattern may cause excessive backtracking: {pattern}"
        )

    try:
        return re.fullmatch(pattern, value) is not None
    except re.error as e:
        raise BuiltinError("regex_match", f"invalid regex pattern: {pattern} - {e}")


# ============================================================
# Equality
# ============================================================


def values_equal(a: ExprValue, b: ExprValue) -> bool:
    """Deep equality; int and float compare by value, bool never equals a number."""
    if a is None or b is None:
        return a is None and b is None
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, int | float) and isinstance(b, int | float):
        return a == b
    if isinstance(a, str) and isinstance(b, str):
        return a == b
    if isinstance(a, list | tuple) and isinstance(b, list | tuple):
        return len(a) == len(b) and all(values_equal(x, y) for x, y in zip(a, b))
    if isinstance(a, Mapping) and isinstance(b, Mapping):
        return a.keys() == b.keys() and all(
            values_equal(normalize_value(a[k]), normalize_value(b[k])) for k in a
        )
    return False


# ============================================================
# Registry
# ============================================================

BUILTIN_FUNCTIONS: FunctionRegistry = {
    # String helpers
    "lower": _lower,
    "upper": _upper,
    "trim": _trim,
    "split": _split,
    "starts_with": _starts_with,
    "ends_with": _ends_with,
    "contains": _contains,
    # Collection helpers
    "len": _len,
    "includes": _includes,
    # Generic helpers
    "exists": _exists,
    "coalesce": _coalesce,
    # Pattern helpers
    "glob_match": _glob_match,
    "regex_match": _regex_match,
    # Spellings carried over from JavaScript rule strings
    "toLowerCase": _lower,
    "toUpperCase": _upper,
    "startsWith": _starts_with,
    "endsWith": _ends_with,
}


def call_builtin(
    name: str,
    args: Sequence[ExprValue],
    context: BuiltinContext,
    functions: Optional[FunctionRegistry] = None,
) -> ExprValue:
    """
    Calls a built-in function by name.

    Raises:
        EvaluationError: If no function of that name is registered
        BuiltinError: If the function rejects its arguments
    """
    functions = functions if functions is not None else BUILTIN_FUNCTIONS
    fn = functions.get(name)
    if fn is None:
        raise EvaluationError(
            f"Unknown function: {name}", context.position, context.source
        )
    return fn(args, context)


def is_builtin_function(
    name: str, functions: Optional[FunctionRegistry] = None
) -> bool:
    return name in (functions if functions is not None else BUILTIN_FUNCTIONS)
