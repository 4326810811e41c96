"""Tests for built-in functions."""

import pytest

from routegate.expr import (
    BUILTIN_FUNCTIONS,
    EvaluationContext,
    ExpressionLimits,
    ExprValue,
    evaluate,
    is_builtin_function,
    is_truthy,
    parse,
    values_equal,
)


def run(
    expression: str,
    bindings: dict[str, ExprValue] | None = None,
    limits: ExpressionLimits | None = None,
):
    context = EvaluationContext(
        bindings=bindings or {}, limits=limits, source=expression
    )
    return evaluate(parse(expression), context)


def value_of(expression: str, bindings: dict[str, ExprValue] | None = None):
    result = run(expression, bindings)
    assert result.success, result.error
    return result.value


class TestStringFunctions:
    """Tests for string helpers."""

    def test_lower_upper_trim(self):
        assert value_of("lower('AdA')") == "ada"
        assert value_of("upper('ada')") == "ADA"
        assert value_of("trim('  ada ')") == "ada"

    def test_trim_null_is_empty(self):
        assert value_of("trim(missing)") == ""

    def test_split(self):
        assert value_of("split('a,b', ',')") == ["a", "b"]
        assert value_of("split('a b')") == ["a", "b"]

    def test_split_rejects_empty_separator(self):
        result = run("split('ab', '')")
        assert not result.success
        assert "separator must not be empty" in result.error

    def test_predicates(self):
        email = {"email": "admin@example.com"}
        assert value_of("starts_with(email, 'admin@')", email) is True
        assert value_of("ends_with(email, '.org')", email) is False
        assert value_of("contains(email, 'example')", email) is True

    def test_predicates_are_false_for_null(self):
        assert value_of("starts_with(email, 'admin@')") is False
        assert value_of("email.endsWith('.com')") is False

    def test_predicates_reject_wrong_types(self):
        result = run("starts_with(42, '4')")
        assert not result.success
        assert "starts_with: s must be a string" in result.error

    def test_lower_rejects_null(self):
        assert not run("lower(missing)").success

    def test_javascript_spellings(self):
        assert value_of("'Ada'.toUpperCase()") == "ADA"
        assert value_of("'Ada'.startsWith('A')") is True


class TestCollectionFunctions:
    """Tests for collection helpers."""

    def test_len(self):
        assert value_of("len(roles)", {"roles": ["a", "b"]}) == 2
        assert value_of("len('abc')") == 3

    def test_len_rejects_numbers(self):
        assert not run("len(3)").success

    def test_includes_array(self):
        user = {"roles": ["admin", "editor"]}
        assert value_of("roles.includes('admin')", user) is True
        assert value_of("includes(roles, 'owner')", user) is False

    def test_includes_null_is_false(self):
        assert value_of("roles.includes('admin')") is False

    def test_includes_substring(self):
        assert value_of("includes('administrator', 'admin')") is True

    def test_wrong_argument_count(self):
        result = run("includes(roles)")
        assert not result.success
        assert "expected 2 argument(s), got 1" in result.error


class TestGenericFunctions:
    """Tests for exists and coalesce."""

    def test_exists(self):
        assert value_of("exists(plan)", {"plan": "pro"}) is True
        assert value_of("exists(plan)") is False
        assert value_of("exists(flag)", {"flag": False}) is True

    def test_coalesce(self):
        assert value_of("coalesce(nickname, name, 'anon')", {"name": "Ada"}) == "Ada"
        assert value_of("coalesce(a, b)") is None


class TestPatternFunctions:
    """Tests for glob_match and regex_match."""

    @pytest.mark.parametrize(
        "value,pattern,expected",
        [
            ("admin@example.com", "*@example.com", True),
            ("team/admin", "team/*", True),
            ("team/a/b", "team/*", False),
            ("team/a/b", "team/**", True),
            ("v1", "v?", True),
            ("v10", "v?", False),
        ],
    )
    def test_glob_match(self, value, pattern, expected):
        assert value_of("glob_match(v, p)", {"v": value, "p": pattern}) is expected

    def test_regex_match_is_anchored(self):
        assert value_of("regex_match('admin', 'adm')") is False
        assert value_of("regex_match('admin', 'adm.*')") is True

    def test_regex_rejects_nested_quantifiers(self):
        result = run("regex_match('aaaa', '(a+)+')")
        assert not result.success
        assert "excessive backtracking" in result.error

    def test_regex_rejects_invalid_pattern(self):
        result = run("regex_match('a', '[')")
        assert not result.success
        assert "invalid regex pattern" in result.error

    def test_regex_pattern_length_limit(self):
        result = run(
            "regex_match('a', 'aaaaaa')",
            limits=ExpressionLimits(max_regex_pattern_length=3),
        )
        assert not result.success
        assert "max_regex_pattern_length" in result.error

    def test_glob_pattern_length_limit(self):
        result = run(
            "glob_match('a', 'aaaaaa')",
            limits=ExpressionLimits(max_glob_pattern_length=3),
        )
        assert not result.success


class TestHelpers:
    """Tests for value helpers."""

    def test_registry_contents(self):
        assert is_builtin_function("regex_match")
        assert not is_builtin_function("eval")
        assert "toLowerCase" in BUILTIN_FUNCTIONS

    def test_is_truthy(self):
        assert is_truthy("x") is True
        assert is_truthy(0.0) is False

    def test_values_equal_nested_objects(self):
        assert values_equal({"a": [1, 2]}, {"a": [1.0, 2.0]}) is True
        assert values_equal({"a": 1}, {"b": 1}) is False
