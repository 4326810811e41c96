"""Tests for the rule evaluator."""

import pytest

from routegate.expr import (
    EvaluationContext,
    ExpressionLimits,
    ExprValue,
    FunctionRegistry,
    evaluate,
    evaluate_as_boolean,
    parse,
)


def eval_expr(
    expression: str,
    bindings: dict[str, ExprValue] | None = None,
    functions: FunctionRegistry | None = None,
) -> ExprValue:
    """Helper to evaluate an expression and return the value."""
    context = EvaluationContext(
        bindings=bindings or {}, source=expression, functions=functions
    )
    result = evaluate(parse(expression), context)
    if not result.success:
        raise RuntimeError(result.error)
    return result.value


def eval_bool(expression: str, bindings: dict[str, ExprValue] | None = None) -> bool:
    context = EvaluationContext(bindings=bindings or {}, source=expression)
    value, error = evaluate_as_boolean(parse(expression), context)
    if error:
        raise RuntimeError(error)
    return value


def eval_error(expression: str, bindings: dict[str, ExprValue] | None = None) -> str:
    context = EvaluationContext(bindings=bindings or {}, source=expression)
    result = evaluate(parse(expression), context)
    assert not result.success
    assert result.error is not None
    return result.error


USER = {
    "name": "Ada",
    "role": "admin",
    "roles": ["admin", "editor"],
    "age": 36,
    "verified": True,
    "profile": {"plan": "pro", "seats": 5},
}


class TestIdentifiers:
    """Tests for user field lookup."""

    def test_resolves_field(self):
        assert eval_expr("role", USER) == "admin"

    def test_unknown_identifier_is_null(self):
        assert eval_expr("plan", USER) is None

    def test_member_access(self):
        assert eval_expr("profile.plan", USER) == "pro"

    def test_missing_member_is_null(self):
        assert eval_expr("profile.missing", USER) is None

    def test_member_access_on_null_is_null(self):
        assert eval_expr("user.plan", USER) is None

    def test_length_of_string_and_array(self):
        assert eval_expr("name.length", USER) == 3
        assert eval_expr("roles.length", USER) == 2

    def test_index_access(self):
        assert eval_expr("roles[1]", USER) == "editor"
        assert eval_expr("profile['seats']", USER) == 5

    def test_out_of_range_index_is_null(self):
        assert eval_expr("roles[5]", USER) is None

    def test_non_numeric_array_index_is_an_error(self):
        assert "expected number" in eval_error("roles['x']", USER)

    def test_tuples_and_sets_are_normalized_to_arrays(self):
        assert eval_expr("tags", {"tags": ("a", "b")}) == ["a", "b"]

    def test_arbitrary_objects_are_not_reachable(self):
        assert eval_expr("hook", {"hook": object()}) is None


class TestEquality:
    """Tests for equality operators."""

    def test_strict_equality(self):
        assert eval_bool("role === 'admin'", USER) is True
        assert eval_bool("role !== 'admin'", USER) is False

    def test_int_and_float_compare_equal(self):
        assert eval_bool("age == 36.0", USER) is True

    def test_bool_never_equals_number(self):
        assert eval_bool("verified == 1", USER) is False

    def test_null_equality(self):
        assert eval_bool("missing == null", USER) is True
        assert eval_bool("role == null", USER) is False

    def test_deep_array_equality(self):
        assert eval_bool("roles == ['admin', 'editor']", USER) is True


class TestComparison:
    """Tests for ordering operators."""

    def test_number_comparison(self):
        assert eval_bool("age >= 18", USER) is True
        assert eval_bool("age < 18", USER) is False

    def test_string_comparison(self):
        assert eval_bool("name < 'Bob'", USER) is True

    def test_mixed_types_are_false(self):
        assert eval_bool("age > '18'", USER) is False
        assert eval_bool("age <= '18'", USER) is False

    def test_comparing_null_is_false(self):
        assert eval_bool("missing > 1", USER) is False
        assert eval_bool("missing <= 1", USER) is False
        assert eval_bool("1 < missing", USER) is False

    def test_negated_null_comparison_is_true(self):
        assert eval_bool("!(missing > 3)", USER) is True

    def test_null_comparison_does_not_poison_or(self):
        assert eval_bool("missing < 5 || verified", USER) is True


class TestMembership:
    """Tests for in and not in."""

    def test_in_array(self):
        assert eval_bool("'editor' in roles", USER) is True
        assert eval_bool("'owner' in roles", USER) is False

    def test_not_in_array(self):
        assert eval_bool("'owner' not in roles", USER) is True

    def test_substring(self):
        assert eval_bool("'Ad' in name", USER) is True

    def test_object_key(self):
        assert eval_bool("'plan' in profile", USER) is True

    def test_in_null_is_false(self):
        assert eval_bool("'admin' in missing", USER) is False
        assert eval_bool("'admin' not in missing", USER) is True

    def test_in_number_is_an_error(self):
        assert "Cannot check membership" in eval_error("'a' in age", USER)


class TestLogical:
    """Tests for logical operators and truthiness."""

    def test_and_or(self):
        assert eval_bool("verified && role === 'admin'", USER) is True
        assert eval_bool("!verified || age > 40", USER) is False

    def test_results_are_booleans(self):
        assert eval_expr("name && role", USER) is True
        assert eval_expr("missing || ''", USER) is False

    def test_short_circuit_skips_errors(self):
        assert eval_bool("false && len(age)", USER) is False
        assert eval_bool("true || len(age)", USER) is True

    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, False),
            (False, False),
            (0, False),
            ("", False),
            ([], True),
            ({}, True),
            ("0", True),
            (-1, True),
        ],
    )
    def test_truthiness(self, value, expected):
        assert eval_bool("x", {"x": value}) is expected

    def test_not_negates_truthiness(self):
        assert eval_expr("!missing", USER) is True
        assert eval_expr("!roles", USER) is False

    def test_unary_minus_requires_number(self):
        assert eval_expr("-age", USER) == -36
        assert "expected number" in eval_error("-role", USER)


class TestFunctions:
    """Tests for function dispatch."""

    def test_builtin_call(self):
        assert eval_bool("starts_with(role, 'ad')", USER) is True

    def test_method_syntax(self):
        assert eval_bool("name.toLowerCase() === 'ada'", USER) is True

    def test_unknown_function_is_an_error(self):
        assert "Unknown function: eval" in eval_error("eval('1')", USER)

    def test_custom_registry(self):
        functions: FunctionRegistry = {"double": lambda args, ctx: args[0] * 2}
        assert eval_expr("double(age)", USER, functions) == 72

    def test_custom_registry_replaces_builtins(self):
        functions: FunctionRegistry = {}
        with pytest.raises(RuntimeError, match="Unknown function"):
            eval_expr("lower(role)", USER, functions)


class TestLimits:
    """Tests for evaluation-time limits."""

    def test_member_access_depth(self):
        bindings = {"a": {"b": {"c": {"d": 1}}}}
        context = EvaluationContext(
            bindings=bindings,
            limits=ExpressionLimits(max_member_access_depth=2),
        )
        result = evaluate(parse("a.b.c.d"), context)
        assert result.success is False
        assert "Member access depth" in result.error

    def test_failed_evaluation_is_false(self):
        context = EvaluationContext(bindings=USER)
        value, error = evaluate_as_boolean(parse("len(age) > 1"), context)
        assert value is False
        assert error is not None
        assert "len:" in error
