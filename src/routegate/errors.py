"""
Errors raised while loading or validating a route table.

Evaluation never raises; these surface at load time only.
"""

from typing import Optional


class RouteConfigError(ValueError):
    """A route table or one of its entries is invalid."""

    def __init__(self, message: str, pattern: Optional[str] = None):
        if pattern is not None:
            message = f'Invalid route "{pattern}": {message}'
        super().__init__(message)
        self.pattern = pattern
