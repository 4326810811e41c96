"""
Rule-expression language.

A deterministic, side-effect-free language for the boolean conditions of
route access rules. Identifiers resolve to fields of the user object, and
the only callable names are the registered built-ins.
"""

from .ast import (
    ArrayLiteralNode,
    AstNode,
    AstNodeBase,
    BinaryOperator,
    BinaryOpNode,
    BooleanLiteralNode,
    FunctionCallNode,
    IdentifierNode,
    IndexAccessNode,
    MemberAccessNode,
    NullLiteralNode,
    NumberLiteralNode,
    StringLiteralNode,
    UnaryOperator,
    UnaryOpNode,
    ast_to_string,
    calculate_ast_depth,
    count_ast_nodes,
    iter_child_nodes,
)
from .builtins import (
    BUILTIN_FUNCTIONS,
    BuiltinContext,
    BuiltinFunction,
    ExprValue,
    FunctionRegistry,
    call_builtin,
    get_type_name,
    is_builtin_function,
    is_truthy,
    normalize_value,
    values_equal,
)
from .errors import (
    BuiltinError,
    EvaluationError,
    ExprTypeError,
    ExpressionError,
    LimitExceededError,
    ParseError,
    TokenizerError,
)
from .evaluator import (
    EvaluationContext,
    EvaluationResult,
    Evaluator,
    evaluate,
    evaluate_as_boolean,
)
from .limits import DEFAULT_EXPRESSION_LIMITS, ExpressionLimits
from .parser import Parser, parse
from .tokenizer import Token, Tokenizer, TokenType, tokenize

__all__ = [
    # AST types
    "AstNode",
    "AstNodeBase",
    "StringLiteralNode",
    "NumberLiteralNode",
    "BooleanLiteralNode",
    "NullLiteralNode",
    "ArrayLiteralNode",
    "IdentifierNode",
    "MemberAccessNode",
    "IndexAccessNode",
    "FunctionCallNode",
    "UnaryOpNode",
    "BinaryOpNode",
    "UnaryOperator",
    "BinaryOperator",
    "iter_child_nodes",
    "count_ast_nodes",
    "calculate_ast_depth",
    "ast_to_string",
    # Errors
    "ExpressionError",
    "TokenizerError",
    "ParseError",
    "EvaluationError",
    "ExprTypeError",
    "LimitExceededError",
    "BuiltinError",
    # Limits
    "ExpressionLimits",
    "DEFAULT_EXPRESSION_LIMITS",
    # Tokenizer
    "Token",
    "TokenType",
    "Tokenizer",
    "tokenize",
    # Parser
    "Parser",
    "parse",
    # Evaluator
    "EvaluationContext",
    "EvaluationResult",
    "Evaluator",
    "evaluate",
    "evaluate_as_boolean",
    # Builtins
    "ExprValue",
    "BuiltinFunction",
    "BuiltinContext",
    "FunctionRegistry",
    "BUILTIN_FUNCTIONS",
    "call_builtin",
    "is_builtin_function",
    "get_type_name",
    "is_truthy",
    "normalize_value",
    "values_equal",
]
