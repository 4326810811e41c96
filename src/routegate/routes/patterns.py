"""
Route pattern matching and specificity scoring.

Pattern kinds, tried in this order:

- exact:      ``/contacts``        the path must equal the pattern
- parameter:  ``/contacts/:id``    each ``:name`` segment matches one segment
- single:     ``/files/*``         exactly one more segment below ``/files``
- recursive:  ``/files/**/*``      any number of segments below ``/files``

A pattern that fits none of these (``/files/*/raw``) never matches. Matching
never raises.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Literal, Optional

PatternKind = Literal["exact", "parameter", "single", "recursive", "unmatchable"]

PARAMETER_MARKER = ":"
WILDCARD_MARKER = "*"
SINGLE_WILDCARD = "/*"
RECURSIVE_WILDCARD = "/**/*"

LITERAL_SCORE = 1000
PARAMETER_SCORE = 500
SINGLE_WILDCARD_SCORE = 300
RECURSIVE_WILDCARD_SCORE = 100

_PARAMETER_SEGMENT = re.compile(r":[^/]+")


def pattern_specificity(pattern: str) -> int:
    """
    Ranks a pattern; the highest-scoring match governs a path.

    Literal patterns score 1000, parameterized 500, single-level wildcards
    300 and recursive wildcards 100. The pattern length is added to every
    score so longer prefixes win within a band.
    """
    score = 0
    if WILDCARD_MARKER not in pattern and PARAMETER_MARKER not in pattern:
        score += LITERAL_SCORE
    if PARAMETER_MARKER in pattern:
        score += PARAMETER_SCORE
    if SINGLE_WILDCARD in pattern and RECURSIVE_WILDCARD not in pattern:
        score += SINGLE_WILDCARD_SCORE
    if RECURSIVE_WILDCARD in pattern:
        score += RECURSIVE_WILDCARD_SCORE
    return score + len(pattern)


@dataclass(frozen=True)
class RoutePattern:
    """A classified route pattern, ready for repeated matching."""

    source: str
    kind: PatternKind
    specificity: int
    base: str = ""
    regex: Optional[re.Pattern[str]] = field(default=None, compare=False)

    def match(self, path: str) -> bool:
        if path == self.source:
            return True

        if self.kind == "parameter":
            return self.regex is not None and self.regex.fullmatch(path) is not None

        if self.kind == "recursive":
            return path.startswith(self.base + "/")

        if self.kind == "single":
            prefix = self.base + "/"
            return path.startswith(prefix) and "/" not in path[len(prefix):]

        return False


@lru_cache(maxsize=1024)
def compile_route_pattern(pattern: str) -> RoutePattern:
    """Classifies a pattern string. Compiled patterns are immutable and shared."""
    specificity = pattern_specificity(pattern)

    if PARAMETER_MARKER in pattern:
        regex = re.compile(_parameter_regex(pattern))
        return RoutePattern(pattern, "parameter", specificity, regex=regex)

    if WILDCARD_MARKER in pattern:
        if pattern.endswith(RECURSIVE_WILDCARD):
            base = pattern[: -len(RECURSIVE_WILDCARD)]
            return RoutePattern(pattern, "recursive", specificity, base=base)
        if pattern.endswith(SINGLE_WILDCARD):
            base = pattern[: -len(SINGLE_WILDCARD)]
            return RoutePattern(pattern, "single", specificity, base=base)
        return RoutePattern(pattern, "unmatchable", specificity)

    return RoutePattern(pattern, "exact", specificity)


def matches_pattern(path: str, pattern: str) -> bool:
    """True when `path` is governed by `pattern`."""
    return compile_route_pattern(pattern).match(path)


def _parameter_regex(pattern: str) -> str:
    parts = []
    last = 0
    for m in _PARAMETER_SEGMENT.finditer(pattern):
        parts.append(re.escape(pattern[last : m.start()]))
        parts.append("[^/]+")
        last = m.end()
    parts.append(re.escape(pattern[last:]))
    return "".join(parts)
