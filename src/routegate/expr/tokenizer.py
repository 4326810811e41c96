"""
Tokenizer for the rule-expression language.

Rules are usually written the way a front-end developer writes a JavaScript
condition (``role === 'admin' && !suspended``), so both ``==``/``===`` and
``!=``/``!==`` are accepted, as are the keyword spellings ``and``, ``or``
and ``not``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .errors import TokenizerError
from .limits import ExpressionLimits, check_expression_length


class TokenType(Enum):
    STRING = "STRING"
    NUMBER = "NUMBER"
    TRUE = "TRUE"
    FALSE = "FALSE"
    NULL = "NULL"

    IDENTIFIER = "IDENTIFIER"

    MINUS = "MINUS"
    LT = "LT"
    LE = "LE"
    GT = "GT"
    GE = "GE"
    EQ = "EQ"
    NE = "NE"
    AND = "AND"
    OR = "OR"
    NOT = "NOT"
    IN = "IN"
    NOT_IN = "NOT_IN"

    LPAREN = "LPAREN"
    RPAREN = "RPAREN"
    LBRACKET = "LBRACKET"
    RBRACKET = "RBRACKET"
    DOT = "DOT"
    COMMA = "COMMA"

    EOF = "EOF"


@dataclass
class Token:
    type: TokenType
    value: str
    position: int


KEYWORDS: Dict[str, TokenType] = {
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
    "null": TokenType.NULL,
    "in": TokenType.IN,
    "not": TokenType.NOT,
    "and": TokenType.AND,
    "or": TokenType.OR,
}

# Longest spelling first so "===" wins over "==".
OPERATORS: Tuple[Tuple[str, TokenType], ...] = (
    ("===", TokenType.EQ),
    ("!==", TokenType.NE),
    ("==", TokenType.EQ),
    ("!=", TokenType.NE),
    ("<=", TokenType.LE),
    (">=", TokenType.GE),
    ("&&", TokenType.AND),
    ("||", TokenType.OR),
    ("<", TokenType.LT),
    (">", TokenType.GT),
    ("!", TokenType.NOT),
    ("-", TokenType.MINUS),
    ("(", TokenType.LPAREN),
    (")", TokenType.RPAREN),
    ("[", TokenType.LBRACKET),
    ("]", TokenType.RBRACKET),
    (".", TokenType.DOT),
    (",", TokenType.COMMA),
)

ESCAPES: Dict[str, str] = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "\\": "\\",
    '"': '"',
    "'": "'",
}

# Hints for the usual single-character slips.
_MISTYPED = {
    "=": "Unexpected '='. Did you mean '==='?",
    "&": "Unexpected '&'. Did you mean '&&'?",
    "|": "Unexpected '|'. Did you mean '||'?",
}


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def _is_identifier_start(ch: str) -> bool:
    return ch.isascii() and (ch.isalpha() or ch in "_$")


def _is_identifier_part(ch: str) -> bool:
    return _is_identifier_start(ch) or _is_digit(ch)


class Tokenizer:
    """Converts a rule string into a list of tokens ending with EOF."""

    def __init__(self, source: str, limits: Optional[ExpressionLimits] = None):
        self._source = source
        self._limits = limits
        self._position = 0
        self._tokens: List[Token] = []

    def tokenize(self) -> List[Token]:
        check_expression_length(self._source, self._limits)

        while self._position < len(self._source):
            ch = self._source[self._position]
            if ch.isspace():
                self._position += 1
            elif ch in ("'", '"'):
                self._scan_string(ch)
            elif _is_digit(ch):
                self._scan_number()
            elif _is_identifier_start(ch):
                self._scan_word()
            else:
                self._scan_operator()

        self._tokens.append(Token(TokenType.EOF, "", self._position))
        return self._tokens

    def _error(self, message: str, position: int) -> TokenizerError:
        return TokenizerError(message, position, self._source)

    def _scan_operator(self) -> None:
        start = self._position
        for spelling, token_type in OPERATORS:
            if self._source.startswith(spelling, start):
                self._tokens.append(Token(token_type, spelling, start))
                self._position += len(spelling)
                return

        ch = self._source[start]
        raise self._error(
            _MISTYPED.get(ch, f"Unexpected character: '{ch}'"), start
        )

    def _scan_string(self, quote: str) -> None:
        start = self._position
        self._position += 1
        chars: List[str] = []

        while self._position < len(self._source):
            ch = self._source[self._position]
            self._position += 1

            if ch == quote:
                self._tokens.append(Token(TokenType.STRING, "".join(chars), start))
                return
            if ch in ("\n", "\r"):
                raise self._error(
                    "Unterminated string (newline in string literal)", start
                )
            if ch == "\\":
                if self._position >= len(self._source):
                    break
                escaped = self._source[self._position]
                if escaped not in ESCAPES:
                    raise self._error(
                        f"Invalid escape sequence: \\{escaped}", self._position - 1
                    )
                chars.append(ESCAPES[escaped])
                self._position += 1
            else:
                chars.append(ch)

        raise self._error("Unterminated string", start)

    def _scan_number(self) -> None:
        start = self._position
        source = self._source
        end = start

        while end < len(source) and _is_digit(source[end]):
            end += 1
        if end + 1 < len(source) and source[end] == "." and _is_digit(source[end + 1]):
            end += 1
            while end < len(source) and _is_digit(source[end]):
                end += 1
        if end < len(source) and source[end] in "eE":
            end += 1
            if end < len(source) and source[end] in "+-":
                end += 1
            if end >= len(source) or not _is_digit(source[end]):
                raise self._error("Invalid number: expected exponent digits", start)
            while end < len(source) and _is_digit(source[end]):
                end += 1

        self._tokens.append(Token(TokenType.NUMBER, source[start:end], start))
        self._position = end

    def _scan_word(self) -> None:
        start = self._position
        end = start
        while end < len(self._source) and _is_identifier_part(self._source[end]):
            end += 1
        word = self._source[start:end]
        self._position = end

        if word == "not" and self._next_word() == "in":
            self._position = self._source.index("in", end) + 2
            self._tokens.append(Token(TokenType.NOT_IN, "not in", start))
            return

        self._tokens.append(
            Token(KEYWORDS.get(word, TokenType.IDENTIFIER), word, start)
        )

    def _next_word(self) -> str:
        """Peeks at the word following the current position, skipping spaces."""
        index = self._position
        while index < len(self._source) and self._source[index].isspace():
            index += 1
        end = index
        while end < len(self._source) and _is_identifier_part(self._source[end]):
            end += 1
        return self._source[index:end]


def tokenize(source: str, limits: Optional[ExpressionLimits] = None) -> List[Token]:
    """
    Tokenizes a rule string.

    Raises:
        TokenizerError: If the rule contains characters outside the language
        LimitExceededError: If the rule is longer than the configured limit
    """
    return Tokenizer(source, limits).tokenize()
