"""
Parser for the rule-expression language.

Recursive descent with one method per precedence level.

Precedence (lowest to highest):
1. Logical OR: ||, or
2. Logical AND: &&, and
3. Equality: ==, ===, !=, !==
4. Membership: in, not in
5. Comparison: <, <=, >, >=
6. Unary: !, not, -
7. Postfix: .name, [index], (args)
8. Primary: literals, identifiers, parentheses, arrays
"""

from typing import Dict, List, Optional, Tuple

from .ast import (
    ArrayLiteralNode,
    AstNode,
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
    UnaryOpNode,
    calculate_ast_depth,
    count_ast_nodes,
)
from .errors import ParseError
from .limits import (
    DEFAULT_EXPRESSION_LIMITS,
    ExpressionLimits,
    check_array_length,
    check_ast_depth,
    check_ast_node_count,
    check_function_arg_count,
)
from .tokenizer import Token, TokenType, tokenize

LOGICAL_OR_TOKENS: Dict[TokenType, BinaryOperator] = {TokenType.OR: "||"}

LOGICAL_AND_TOKENS: Dict[TokenType, BinaryOperator] = {TokenType.AND: "&&"}

EQUALITY_TOKENS: Dict[TokenType, BinaryOperator] = {
    TokenType.EQ: "==",
    TokenType.NE: "!=",
}

MEMBERSHIP_TOKENS: Dict[TokenType, BinaryOperator] = {
    TokenType.IN: "in",
    TokenType.NOT_IN: "not in",
}

COMPARISON_TOKENS: Dict[TokenType, BinaryOperator] = {
    TokenType.LT: "<",
    TokenType.LE: "<=",
    TokenType.GT: ">",
    TokenType.GE: ">=",
}

KEYWORD_LITERALS: Dict[TokenType, Optional[bool]] = {
    TokenType.TRUE: True,
    TokenType.FALSE: False,
    TokenType.NULL: None,
}

# Binary operator tables, lowest precedence first
BINARY_LEVELS: Tuple[Dict[TokenType, BinaryOperator], ...] = (
    LOGICAL_OR_TOKENS,
    LOGICAL_AND_TOKENS,
    EQUALITY_TOKENS,
    MEMBERSHIP_TOKENS,
    COMPARISON_TOKENS,
)


class Parser:
    """Builds an AST from the tokens of one rule."""

    def __init__(
        self,
        tokens: List[Token],
        source: str,
        limits: ExpressionLimits = DEFAULT_EXPRESSION_LIMITS,
    ):
        self._tokens = tokens
        self._source = source
        self._limits = limits
        self._current = 0

    def parse(self) -> AstNode:
        if self._check(TokenType.EOF):
            raise ParseError("Empty expression", 0, self._source)

        ast = self._parse_expression()

        if not self._check(TokenType.EOF):
            raise self._unexpected(self._peek())

        check_ast_node_count(count_ast_nodes(ast), self._limits)
        check_ast_depth(calculate_ast_depth(ast), self._limits)
        return ast

    # ------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------

    def _peek(self) -> Token:
        return self._tokens[self._current]

    def _previous(self) -> Token:
        return self._tokens[self._current - 1]

    def _check(self, token_type: TokenType) -> bool:
        return self._peek().type == token_type

    def _match(self, *types: TokenType) -> bool:
        if self._peek().type in types:
            self._current += 1
            return True
        return False

    def _consume(self, token_type: TokenType, message: str) -> Token:
        if self._match(token_type):
            return self._previous()
        raise ParseError(message, self._peek().position, self._source)

    def _unexpected(self, token: Token) -> ParseError:
        return ParseError(
            f"Unexpected token: {token.value or token.type.value}",
            token.position,
            self._source,
        )

    # ------------------------------------------------------------
    # Binary levels
    # ------------------------------------------------------------

    def _parse_expression(self) -> AstNode:
        return self._parse_binary(0)

    def _parse_binary(self, level: int) -> AstNode:
        """Parses one precedence level; all binary operators are left-associative."""
        if level == len(BINARY_LEVELS):
            return self._parse_unary()

        operators = BINARY_LEVELS[level]
        node = self._parse_binary(level + 1)
        while self._match(*operators):
            token = self._previous()
            right = self._parse_binary(level + 1)
            node = BinaryOpNode(token.position, operators[token.type], node, right)
        return node

    # ------------------------------------------------------------
    # Unary, postfix and primary
    # ------------------------------------------------------------

    def _parse_unary(self) -> AstNode:
        if self._match(TokenType.NOT):
            position = self._previous().position
            return UnaryOpNode(position, "!", self._parse_unary())

        if self._match(TokenType.MINUS):
            position = self._previous().position
            operand = self._parse_unary()
            if isinstance(operand, NumberLiteralNode):
                return NumberLiteralNode(position, -operand.value)
            return UnaryOpNode(position, "-", operand)

        return self._parse_postfix()

    def _parse_postfix(self) -> AstNode:
        node = self._parse_primary()

        while True:
            if self._match(TokenType.DOT):
                node = self._parse_member(node)
            elif self._match(TokenType.LBRACKET):
                position = self._previous().position
                index = self._parse_expression()
                self._consume(TokenType.RBRACKET, "Expected ']' after index")
                node = IndexAccessNode(position, node, index)
            elif self._match(TokenType.LPAREN):
                if not isinstance(node, IdentifierNode):
                    raise ParseError(
                        "Only named functions can be called",
                        node.position,
                        self._source,
                    )
                node = self._call(node.position, node.name, [])
            else:
                return node

    def _parse_member(self, receiver: AstNode) -> AstNode:
        """Parses `.name` or `.name(args)` after an already consumed '.'."""
        position = self._previous().position
        name = self._consume(
            TokenType.IDENTIFIER, "Expected property name after '.'"
        ).value
        if self._match(TokenType.LPAREN):
            # x.f(a) is f(x, a)
            return self._call(position, name, [receiver])
        return MemberAccessNode(position, receiver, name)

    def _call(self, position: int, name: str, leading: List[AstNode]) -> AstNode:
        args = leading + self._parse_list(
            TokenType.RPAREN, "Expected ')' after function arguments"
        )
        check_function_arg_count(len(args), self._limits)
        return FunctionCallNode(position, name, tuple(args))

    def _parse_list(self, closing: TokenType, message: str) -> List[AstNode]:
        """Parses comma-separated expressions up to and including `closing`."""
        items: List[AstNode] = []
        if not self._check(closing):
            items.append(self._parse_expression())
            while self._match(TokenType.COMMA):
                items.append(self._parse_expression())
        self._consume(closing, message)
        return items

    def _parse_primary(self) -> AstNode:
        token = self._peek()
        position = token.position

        if token.type in KEYWORD_LITERALS:
            self._current += 1
            value = KEYWORD_LITERALS[token.type]
            if value is None:
                return NullLiteralNode(position)
            return BooleanLiteralNode(position, value)

        if self._match(TokenType.STRING):
            return StringLiteralNode(position, token.value)
        if self._match(TokenType.NUMBER):
            return NumberLiteralNode(position, _parse_number(token, self._source))
        if self._match(TokenType.IDENTIFIER):
            return IdentifierNode(position, token.value)

        if self._match(TokenType.LPAREN):
            inner = self._parse_expression()
            self._consume(TokenType.RPAREN, "Expected ')' after expression")
            return inner

        if self._match(TokenType.LBRACKET):
            elements = self._parse_list(
                TokenType.RBRACKET, "Expected ']' after array elements"
            )
            check_array_length(len(elements), self._limits)
            return ArrayLiteralNode(position, tuple(elements))

        raise self._unexpected(token)


def _parse_number(token: Token, source: str):
    text = token.value
    if text.isdigit():
        return int(text)
    value = float(text)
    if value in (float("inf"), float("-inf")):
        raise ParseError("Invalid number", token.position, source)
    return value


def parse(
    source: str, limits: ExpressionLimits = DEFAULT_EXPRESSION_LIMITS
) -> AstNode:
    """
    Parses a rule string into an AST.

    Raises:
        TokenizerError: If tokenization fails
        ParseError: If the tokens do not form an expression
        LimitExceededError: If the rule exceeds the configured limits
    """
    tokens = tokenize(source, limits)
    return Parser(tokens, source, limits).parse()
