"""
Rule-expression evaluator.

Evaluates an AST against the fields of a user object. Nothing outside the
bindings and the function registry is reachable from a rule.

Null handling semantics:
- Unknown identifiers evaluate to None.
- Member and index access on None, or on a value of the wrong shape,
  evaluate to None.
- ``x in null`` is False and ``x not in null`` is True.
- Ordering comparisons against None, or between operands of different
  types, are False rather than errors.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from .ast import (
    ArrayLiteralNode,
    AstNode,
    BinaryOpNode,
    BooleanLiteralNode,
    FunctionCallNode,
    IdentifierNode,
    IndexAccessNode,
    MemberAccessNode,
    NumberLiteralNode,
    StringLiteralNode,
    UnaryOpNode,
)
from .builtins import (
    BUILTIN_FUNCTIONS,
    BuiltinContext,
    ExprValue,
    FunctionRegistry,
    call_builtin,
    get_type_name,
    is_truthy,
    normalize_value,
    values_equal,
)
from .errors import EvaluationError, ExprTypeError, ExpressionError
from .limits import DEFAULT_EXPRESSION_LIMITS, ExpressionLimits


@dataclass
class EvaluationContext:
    """Evaluation context with variable bindings."""

    bindings: Mapping[str, ExprValue]
    """Top-level identifiers, normally the fields of the user object."""

    limits: Optional[ExpressionLimits] = None

    source: Optional[str] = None
    """Rule source for error reporting."""

    functions: Optional[FunctionRegistry] = None
    """Function registry; defaults to BUILTIN_FUNCTIONS."""


@dataclass
class EvaluationResult:
    value: ExprValue
    success: bool
    error: Optional[str] = None


class Evaluator:
    """Evaluates AST nodes against an EvaluationContext."""

    def __init__(self, context: EvaluationContext):
        self._context = context
        self._limits = context.limits or DEFAULT_EXPRESSION_LIMITS
        self._source = context.source or ""
        self._functions = (
            context.functions if context.functions is not None else BUILTIN_FUNCTIONS
        )
        self._member_access_depth = 0
        self._dispatch: Dict[str, Callable[..., ExprValue]] = {
            "StringLiteral": self._literal,
            "NumberLiteral": self._literal,
            "BooleanLiteral": self._literal,
            "NullLiteral": lambda node: None,
            "ArrayLiteral": self._array,
            "Identifier": self._identifier,
            "MemberAccess": self._member_access,
            "IndexAccess": self._index_access,
            "FunctionCall": self._function_call,
            "UnaryOp": self._unary_op,
            "BinaryOp": self._binary_op,
        }

    def evaluate(self, node: AstNode) -> ExprValue:
        handler = self._dispatch.get(node.type)
        if handler is None:
            raise EvaluationError(
                f"Unsupported node: {node.type}", node.position, self._source
            )
        return handler(node)

    def evaluate_as_boolean(self, node: AstNode) -> bool:
        """Evaluates a node and coerces the value with is_truthy."""
        return is_truthy(self.evaluate(node))

    # ------------------------------------------------------------
    # Leaves
    # ------------------------------------------------------------

    def _literal(
        self, node: StringLiteralNode | NumberLiteralNode | BooleanLiteralNode
    ) -> ExprValue:
        return node.value

    def _array(self, node: ArrayLiteralNode) -> ExprValue:
        return [self.evaluate(element) for element in node.elements]

    def _identifier(self, node: IdentifierNode) -> ExprValue:
        bindings = self._context.bindings
        if node.name in bindings:
            return normalize_value(bindings[node.name])
        return None

    # ------------------------------------------------------------
    # Access
    # ------------------------------------------------------------

    def _member_access(self, node: MemberAccessNode) -> ExprValue:
        self._member_access_depth += 1
        try:
            if self._member_access_depth > self._limits.max_member_access_depth:
                raise EvaluationError(
                    f"Member access depth {self._member_access_depth} exceeds "
                    f"limit of {self._limits.max_member_access_depth}",
                    node.position,
                    self._source,
                )

            obj = self.evaluate(node.object)

            if isinstance(obj, Mapping):
                if node.property in obj:
                    return normalize_value(obj[node.property])
                return None

            if node.property == "length" and isinstance(obj, str | list | tuple):
                return len(obj)

            return None
        finally:
            self._member_access_depth -= 1

    def _index_access(self, node: IndexAccessNode) -> ExprValue:
        obj = self.evaluate(node.object)
        index = self.evaluate(node.index)

        if obj is None:
            return None

        if isinstance(obj, list | tuple | str):
            if isinstance(index, bool) or not isinstance(index, int | float):
                raise ExprTypeError(
                    "number", get_type_name(index), node.position, self._source
                )
            if index != int(index) or not 0 <= index < len(obj):
                return None
            return normalize_value(obj[int(index)])

        if isinstance(obj, Mapping):
            if not isinstance(index, str):
                raise ExprTypeError(
                    "string", get_type_name(index), node.position, self._source
                )
            return normalize_value(obj[index]) if index in obj else None

        return None

    def _function_call(self, node: FunctionCallNode) -> ExprValue:
        args = [self.evaluate(arg) for arg in node.args]
        context = BuiltinContext(
            limits=self._limits, position=node.position, source=self._source
        )
        return call_builtin(node.name, args, context, self._functions)

    # ------------------------------------------------------------
    # Operators
    # ------------------------------------------------------------

    def _unary_op(self, node: UnaryOpNode) -> ExprValue:
        value = self.evaluate(node.operand)

        if node.operator == "!":
            return not is_truthy(value)

        if isinstance(value, bool) or not isinstance(value, int | float):
            raise ExprTypeError(
                "number", get_type_name(value), node.position, self._source
            )
        return -value

    def _binary_op(self, node: BinaryOpNode) -> ExprValue:
        operator = node.operator

        # && and || short-circuit and always produce a boolean
        if operator == "&&":
            return is_truthy(self.evaluate(node.left)) and is_truthy(
                self.evaluate(node.right)
            )
        if operator == "||":
            return is_truthy(self.evaluate(node.left)) or is_truthy(
                self.evaluate(node.right)
            )

        left = self.evaluate(node.left)
        right = self.evaluate(node.right)

        if operator == "==":
            return values_equal(left, right)
        if operator == "!=":
            return not values_equal(left, right)
        if operator == "in":
            return self._contains(left, right, node.position)
        if operator == "not in":
            return not self._contains(left, right, node.position)
        return self._compare(operator, left, right)

    def _compare(self, operator: str, left: ExprValue, right: ExprValue) -> bool:
        numbers = (
            isinstance(left, int | float)
            and isinstance(right, int | float)
            and not isinstance(left, bool)
            and not isinstance(right, bool)
        )
        if not numbers and not (isinstance(left, str) and isinstance(right, str)):
            return False

        if operator == "<":
            return left < right  # type: ignore[operator]
        if operator == "<=":
            return left <= right  # type: ignore[operator]
        if operator == ">":
            return left > right  # type: ignore[operator]
        return left >= right  # type: ignore[operator]

    def _contains(self, left: ExprValue, right: ExprValue, position: int) -> bool:
        if right is None:
            return False

        if isinstance(right, str):
            if not isinstance(left, str):
                raise EvaluationError(
                    f"Cannot check if {get_type_name(left)} is in a string",
                    position,
                    self._source,
                )
            return left in right

        if isinstance(right, list | tuple):
            return any(values_equal(left, item) for item in right)

        if isinstance(right, Mapping):
            if not isinstance(left, str):
                raise EvaluationError(
                    f"Cannot check if {get_type_name(left)} is a key in object "
                    "(expected string)",
                    position,
                    self._source,
                )
            return left in right

        raise EvaluationError(
            f"Cannot check membership: {get_type_name(left)} in "
            f"{get_type_name(right)}",
            position,
            self._source,
        )


def evaluate(ast: AstNode, context: EvaluationContext) -> EvaluationResult:
    """
    Evaluates an AST and wraps the outcome; expression errors are reported in
    the result instead of being raised.
    """
    try:
        value = Evaluator(context).evaluate(ast)
    except (ExpressionError, RecursionError) as error:
        return EvaluationResult(value=None, success=False, error=str(error))
    return EvaluationResult(value=value, success=True)


def evaluate_as_boolean(
    ast: AstNode, context: EvaluationContext
) -> Tuple[bool, Optional[str]]:
    """
    Evaluates an AST as a condition.

    Returns:
        Tuple of (value, error_message). Value is False if evaluation fails.
    """
    result = evaluate(ast, context)
    if not result.success:
        return (False, result.error)
    return (is_truthy(result.value), None)
