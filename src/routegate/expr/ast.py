"""
AST node types for the rule-expression language.

The language is deliberately small: literals, references to user fields,
comparisons, membership tests, logical connectives and calls to a fixed set
of side-effect-free built-ins.
"""

from abc import ABC
from dataclasses import dataclass
from typing import Iterator, Literal, Sequence, Union

UnaryOperator = Literal["!", "-"]

BinaryOperator = Literal[
    "<",
    "<=",
    ">",
    ">=",
    "==",
    "!=",
    "in",
    "not in",
    "&&",
    "||",
]

LOGICAL_OPERATORS = ("&&", "||")
EQUALITY_OPERATORS = ("==", "!=")
COMPARISON_OPERATORS = ("<", "<=", ">", ">=")
MEMBERSHIP_OPERATORS = ("in", "not in")


@dataclass(frozen=True)
class AstNodeBase(ABC):
    """Base class for all AST nodes."""

    position: int
    """Offset in the rule source, for error reporting."""


@dataclass(frozen=True)
class StringLiteralNode(AstNodeBase):
    value: str

    @property
    def type(self) -> Literal["StringLiteral"]:
        return "StringLiteral"


@dataclass(frozen=True)
class NumberLiteralNode(AstNodeBase):
    value: Union[int, float]

    @property
    def type(self) -> Literal["NumberLiteral"]:
        return "NumberLiteral"


@dataclass(frozen=True)
class BooleanLiteralNode(AstNodeBase):
    value: bool

    @property
    def type(self) -> Literal["BooleanLiteral"]:
        return "BooleanLiteral"


@dataclass(frozen=True)
class NullLiteralNode(AstNodeBase):
    @property
    def type(self) -> Literal["NullLiteral"]:
        return "NullLiteral"


@dataclass(frozen=True)
class ArrayLiteralNode(AstNodeBase):
    elements: Sequence["AstNode"]

    @property
    def type(self) -> Literal["ArrayLiteral"]:
        return "ArrayLiteral"


@dataclass(frozen=True)
class IdentifierNode(AstNodeBase):
    """Reference to a top-level binding, i.e. a user field."""

    name: str

    @property
    def type(self) -> Literal["Identifier"]:
        return "Identifier"


@dataclass(frozen=True)
class MemberAccessNode(AstNodeBase):
    """``object.property``"""

    object: "AstNode"
    property: str

    @property
    def type(self) -> Literal["MemberAccess"]:
        return "MemberAccess"


@dataclass(frozen=True)
class IndexAccessNode(AstNodeBase):
    """``object[index]``"""

    object: "AstNode"
    index: "AstNode"

    @property
    def type(self) -> Literal["IndexAccess"]:
        return "IndexAccess"


@dataclass(frozen=True)
class FunctionCallNode(AstNodeBase):
    """
    Call of a built-in. Method syntax ``x.f(a)`` is parsed into
    ``f(x, a)``, so the receiver is always the first argument.
    """

    name: str
    args: Sequence["AstNode"]

    @property
    def type(self) -> Literal["FunctionCall"]:
        return "FunctionCall"


@dataclass(frozen=True)
class UnaryOpNode(AstNodeBase):
    operator: UnaryOperator
    operand: "AstNode"

    @property
    def type(self) -> Literal["UnaryOp"]:
        return "UnaryOp"


@dataclass(frozen=True)
class BinaryOpNode(AstNodeBase):
    operator: BinaryOperator
    left: "AstNode"
    right: "AstNode"

    @property
    def type(self) -> Literal["BinaryOp"]:
        return "BinaryOp"


AstNode = Union[
    StringLiteralNode,
    NumberLiteralNode,
    BooleanLiteralNode,
    NullLiteralNode,
    ArrayLiteralNode,
    IdentifierNode,
    MemberAccessNode,
    IndexAccessNode,
    FunctionCallNode,
    UnaryOpNode,
    BinaryOpNode,
]


def iter_child_nodes(node: AstNode) -> Iterator[AstNode]:
    """Yields the direct children of a node, left to right."""
    if isinstance(node, ArrayLiteralNode):
        yield from node.elements
    elif isinstance(node, MemberAccessNode):
        yield node.object
    elif isinstance(node, IndexAccessNode):
        yield node.object
        yield node.index
    elif isinstance(node, FunctionCallNode):
        yield from node.args
    elif isinstance(node, UnaryOpNode):
        yield node.operand
    elif isinstance(node, BinaryOpNode):
        yield node.left
        yield node.right


def count_ast_nodes(node: AstNode) -> int:
    """Counts the nodes of a tree, the root included."""
    return 1 + sum(count_ast_nodes(child) for child in iter_child_nodes(node))


def calculate_ast_depth(node: AstNode) -> int:
    """Returns the length of the longest root-to-leaf path."""
    return 1 + max(
        (calculate_ast_depth(child) for child in iter_child_nodes(node)), default=0
    )


def ast_to_string(node: AstNode, indent: int = 0) -> str:
    """Human-readable dump of a tree, one node per line."""
    prefix = "  " * indent

    if isinstance(node, StringLiteralNode):
        head = f'String: "{node.value}"'
    elif isinstance(node, NumberLiteralNode):
        head = f"Number: {node.value}"
    elif isinstance(node, BooleanLiteralNode):
        head = f"Boolean: {node.value}"
    elif isinstance(node, NullLiteralNode):
        head = "Null"
    elif isinstance(node, ArrayLiteralNode):
        head = "Array:"
    elif isinstance(node, IdentifierNode):
        head = f"Identifier: {node.name}"
    elif isinstance(node, MemberAccessNode):
        head = f"MemberAccess: .{node.property}"
    elif isinstance(node, IndexAccessNode):
        head = "IndexAccess:"
    elif isinstance(node, FunctionCallNode):
        head = f"FunctionCall: {node.name}"
    elif isinstance(node, UnaryOpNode):
        head = f"UnaryOp: {node.operator}"
    elif isinstance(node, BinaryOpNode):
        head = f"BinaryOp: {node.operator}"
    else:
        return f"{prefix}Unknown: {node}"

    lines = [prefix + head]
    lines.extend(ast_to_string(child, indent + 1) for child in iter_child_nodes(node))
    return "\n".join(lines)
