"""Tests for the rule parser."""

import pytest

from routegate.expr import (
    ArrayLiteralNode,
    BinaryOpNode,
    ExpressionLimits,
    FunctionCallNode,
    IdentifierNode,
    IndexAccessNode,
    LimitExceededError,
    MemberAccessNode,
    NumberLiteralNode,
    ParseError,
    StringLiteralNode,
    UnaryOpNode,
    ast_to_string,
    count_ast_nodes,
    parse,
)


class TestPrimary:
    """Tests for literals and identifiers."""

    def test_parses_string(self):
        ast = parse("'admin'")
        assert isinstance(ast, StringLiteralNode)
        assert ast.value == "admin"

    def test_integers_parse_to_int(self):
        ast = parse("42")
        assert isinstance(ast, NumberLiteralNode)
        assert ast.value == 42
        assert isinstance(ast.value, int)

    def test_decimals_parse_to_float(self):
        assert parse("2.5").value == 2.5

    def test_negative_number_folds_into_literal(self):
        ast = parse("-3")
        assert isinstance(ast, NumberLiteralNode)
        assert ast.value == -3

    def test_negated_identifier_stays_unary(self):
        ast = parse("-score")
        assert isinstance(ast, UnaryOpNode)
        assert ast.operator == "-"

    def test_parses_array(self):
        ast = parse("['admin', 'editor']")
        assert isinstance(ast, ArrayLiteralNode)
        assert [e.value for e in ast.elements] == ["admin", "editor"]

    def test_parentheses_group(self):
        ast = parse("(a || b) && c")
        assert isinstance(ast, BinaryOpNode)
        assert ast.operator == "&&"
        assert ast.left.operator == "||"


class TestPrecedence:
    """Tests for operator precedence and associativity."""

    def test_and_binds_tighter_than_or(self):
        ast = parse("a || b && c")
        assert ast.operator == "||"
        assert ast.right.operator == "&&"

    def test_comparison_binds_tighter_than_equality(self):
        ast = parse("a < b == true")
        assert ast.operator == "=="
        assert ast.left.operator == "<"

    def test_membership_binds_tighter_than_equality(self):
        ast = parse("'a' in roles == true")
        assert ast.operator == "=="
        assert ast.left.operator == "in"

    def test_equality_binds_tighter_than_and(self):
        ast = parse("role === 'admin' && plan !== 'free'")
        assert ast.operator == "&&"
        assert ast.left.operator == "=="
        assert ast.right.operator == "!="

    def test_or_is_left_associative(self):
        ast = parse("a || b || c")
        assert ast.left.operator == "||"
        assert isinstance(ast.right, IdentifierNode)

    def test_not_in(self):
        ast = parse("role not in ['guest']")
        assert ast.operator == "not in"

    def test_keyword_and_symbol_spellings_build_the_same_tree(self):
        assert ast_to_string(parse("a and not b")) == ast_to_string(parse("a && !b"))


class TestPostfix:
    """Tests for member access, indexing and calls."""

    def test_member_access_chain(self):
        ast = parse("profile.address.city")
        assert isinstance(ast, MemberAccessNode)
        assert ast.property == "city"
        assert ast.object.property == "address"

    def test_index_access(self):
        ast = parse("roles[0]")
        assert isinstance(ast, IndexAccessNode)
        assert ast.index.value == 0

    def test_function_call(self):
        ast = parse("starts_with(email, 'admin@')")
        assert isinstance(ast, FunctionCallNode)
        assert ast.name == "starts_with"
        assert len(ast.args) == 2

    def test_method_call_passes_receiver_first(self):
        ast = parse("email.endsWith('@example.com')")
        assert isinstance(ast, FunctionCallNode)
        assert ast.name == "endsWith"
        assert isinstance(ast.args[0], IdentifierNode)
        assert ast.args[0].name == "email"
        assert ast.args[1].value == "@example.com"

    def test_only_named_functions_can_be_called(self):
        with pytest.raises(ParseError, match="Only named functions"):
            parse("roles[0]()")


class TestErrors:
    """Tests for malformed rules."""

    def test_empty_expression(self):
        with pytest.raises(ParseError, match="Empty expression"):
            parse("   ")

    def test_trailing_tokens(self):
        with pytest.raises(ParseError, match="Unexpected token"):
            parse("a b")

    def test_unclosed_parenthesis(self):
        with pytest.raises(ParseError, match=r"Expected '\)'"):
            parse("(a || b")

    def test_return_statement_is_not_supported(self):
        with pytest.raises(ParseError):
            parse("return role === 'admin'")

    def test_error_reports_position(self):
        with pytest.raises(ParseError) as exc_info:
            parse("a &&")
        assert exc_info.value.position == 4
        assert "^" in exc_info.value.format_with_context()


class TestLimits:
    """Tests for structural limits."""

    def test_ast_depth_limit(self):
        with pytest.raises(LimitExceededError) as exc_info:
            parse("!!!!!a", ExpressionLimits(max_ast_depth=4))
        assert exc_info.value.limit_name == "max_ast_depth"

    def test_ast_node_limit(self):
        with pytest.raises(LimitExceededError):
            parse("a && b && c", ExpressionLimits(max_ast_nodes=4))

    def test_array_length_limit(self):
        with pytest.raises(LimitExceededError):
            parse("[1, 2, 3]", ExpressionLimits(max_array_length=2))

    def test_function_argument_limit(self):
        with pytest.raises(LimitExceededError):
            parse("coalesce(a, b, c)", ExpressionLimits(max_function_args=2))

    def test_method_receiver_counts_as_argument(self):
        with pytest.raises(LimitExceededError):
            parse("a.coalesce(b, c)", ExpressionLimits(max_function_args=2))


class TestAstHelpers:
    """Tests for AST utilities."""

    def test_count_nodes(self):
        assert count_ast_nodes(parse("[1, 2, 3]")) == 4

    def test_ast_to_string(self):
        dump = ast_to_string(parse("role == 'admin'"))
        assert dump.splitlines() == [
            "BinaryOp: ==",
            "  Identifier: role",
            '  String: "admin"',
        ]
