"""
Named permission functions.

A route may delegate its decision to a function by name
(``{"allow": {"function": "isAdmin"}}``). Functions are registered on a
registry instance that is handed to the verifier; there is no global table.
"""

from __future__ import annotations

from typing import Any, Callable, Iterator, Mapping, Optional, overload

PermissionFunction = Callable[[Optional[Mapping[str, Any]]], Any]


class PermissionFunctionRegistry:
    """
    Maps names to permission functions.

    A function receives the user mapping (None when nobody is signed in) and
    returns a truthy value to allow access.

    Example:
        functions = PermissionFunctionRegistry()

        @functions.register("isAdmin")
        def is_admin(user):
            return user is not None and "admin" in user.get("roles", [])
    """

    def __init__(self, functions: Optional[Mapping[str, PermissionFunction]] = None):
        self._functions: dict[str, PermissionFunction] = {}
        for name, fn in (functions or {}).items():
            self.register(name, fn)

    @overload
    def register(
        self, name: str
    ) -> Callable[[PermissionFunction], PermissionFunction]: ...

    @overload
    def register(self, name: str, fn: PermissionFunction) -> PermissionFunction: ...

    def register(self, name: str, fn: Optional[PermissionFunction] = None):
        """Registers `fn` under `name`; without `fn`, returns a decorator."""
        if not isinstance(name, str) or not name:
            raise ValueError("permission function name must be a non-empty string")

        def _register(func: PermissionFunction) -> PermissionFunction:
            if not callable(func):
                raise TypeError(f"permission function {name!r} is not callable")
            self._functions[name] = func
            return func

        if fn is None:
            return _register
        return _register(fn)

    def unregister(self, name: str) -> None:
        self._functions.pop(name, None)

    def get(self, name: str) -> Optional[PermissionFunction]:
        return self._functions.get(name)

    def names(self) -> list[str]:
        return list(self._functions)

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def __len__(self) -> int:
        return len(self._functions)

    def __iter__(self) -> Iterator[str]:
        return iter(self._functions)

    @classmethod
    def coerce(
        cls,
        functions: Optional[
            PermissionFunctionRegistry | Mapping[str, PermissionFunction]
        ],
    ) -> PermissionFunctionRegistry:
        """Accepts a registry, a plain mapping, or None."""
        if isinstance(functions, PermissionFunctionRegistry):
            return functions
        return cls(functions)
