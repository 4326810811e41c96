"""
Error types for the rule-expression language.

Every error raised while tokenizing, parsing or evaluating a rule extends
ExpressionError, so callers can catch the whole family in one place.
"""

from typing import Optional


class ExpressionError(Exception):
    """Base class for rule-expression errors."""

    def __init__(
        self,
        message: str,
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.position = position
        self.expression = expression

    def format_with_context(self) -> str:
        """
        The message, followed by the rule with a caret under the offending
        character when the rule and position are known:

            Unexpected token: EOF
              role ===
                      ^
        """
        lines = [self.message]
        if self.expression is not None and self.position is not None:
            lines.append("  " + self.expression)
            lines.append("  " + " " * self.position + "^")
        return "\n".join(lines)


class TokenizerError(ExpressionError):
    """Raised for characters or literals the tokenizer cannot read."""


class ParseError(ExpressionError):
    """Raised when the token stream does not form a valid rule."""


class EvaluationError(ExpressionError):
    """Raised while evaluating a parsed rule against user bindings."""


class ExprTypeError(EvaluationError):
    """Raised when an operator receives operands of the wrong type."""

    def __init__(
        self,
        expected: str,
        actual: str,
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        super().__init__(
            f"Type error: expected {expected}, got {actual}", position, expression
        )
        self.expected = expected
        self.actual = actual


class LimitExceededError(ExpressionError):
    """Raised when a rule exceeds one of the configured ExpressionLimits."""

    def __init__(self, limit_name: str, limit: int, actual: int):
        super().__init__(
            f"Limit exceeded: {limit_name} (limit: {limit}, actual: {actual})"
        )
        self.limit_name = limit_name
        self.limit = limit
        self.actual = actual


class BuiltinError(EvaluationError):
    """Raised by a built-in function for bad arguments."""

    def __init__(
        self,
        function_name: str,
        message: str,
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        super().__init__(f"{function_name}: {message}", position, expression)
        self.function_name = function_name
