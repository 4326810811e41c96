"""Tests for the permission function registry."""

import pytest

from routegate.access import PermissionFunctionRegistry


def is_admin(user):
    return user is not None and user.get("role") == "admin"


class TestPermissionFunctionRegistry:
    """Tests for registration and lookup."""

    def test_register_directly(self):
        registry = PermissionFunctionRegistry()
        registry.register("isAdmin", is_admin)
        assert registry.get("isAdmin") is is_admin
        assert "isAdmin" in registry

    def test_register_as_decorator(self):
        registry = PermissionFunctionRegistry()

        @registry.register("isOwner")
        def is_owner(user):
            return True

        assert registry.get("isOwner") is is_owner
        assert is_owner(None) is True

    def test_from_mapping(self):
        registry = PermissionFunctionRegistry({"isAdmin": is_admin})
        assert registry.names() == ["isAdmin"]
        assert len(registry) == 1
        assert list(registry) == ["isAdmin"]

    def test_unknown_name(self):
        assert PermissionFunctionRegistry().get("missing") is None

    def test_unregister(self):
        registry = PermissionFunctionRegistry({"isAdmin": is_admin})
        registry.unregister("isAdmin")
        registry.unregister("isAdmin")
        assert "isAdmin" not in registry

    def test_rejects_non_callable(self):
        with pytest.raises(TypeError):
            PermissionFunctionRegistry({"bad": "not a function"})

    def test_rejects_empty_name(self):
        with pytest.raises(ValueError):
            PermissionFunctionRegistry().register("", is_admin)

    def test_coerce(self):
        registry = PermissionFunctionRegistry()
        assert PermissionFunctionRegistry.coerce(registry) is registry
        assert "isAdmin" in PermissionFunctionRegistry.coerce({"isAdmin": is_admin})
        assert len(PermissionFunctionRegistry.coerce(None)) == 0

    def test_registries_are_independent(self):
        first = PermissionFunctionRegistry({"isAdmin": is_admin})
        second = PermissionFunctionRegistry()
        assert "isAdmin" in first
        assert "isAdmin" not in second
