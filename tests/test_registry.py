"""
Tests for the policy registry.
"""

import pytest

from bulletin.auth.registry import (
    SELF,
    PolicyRegistry,
    PolicyRegistryError,
    PolicyRule,
    normalize_allow,
    normalize_deny,
)
from bulletin.auth.roles import Role


@pytest.fixture
def registry():
    """Fresh, unsealed registry."""
    return PolicyRegistry()


# =============================================================================
# Normalization
# =============================================================================


class TestNormalization:
    def test_single_value_and_list_are_equivalent(self):
        assert normalize_allow("Editor") == normalize_allow(["Editor"])
        assert normalize_deny(Role.SUBSCRIBER) == normalize_deny([Role.SUBSCRIBER])

    def test_none_is_empty(self):
        assert normalize_allow(None) == frozenset()
        assert normalize_deny(None) == frozenset()

    def test_names_become_roles(self):
        assert normalize_allow(["Administrator", Role.EDITOR]) == {Role.ADMINISTRATOR, Role.EDITOR}

    def test_markers_are_kept(self):
        assert normalize_allow(["self", "*"]) == {SELF, "*"}

    def test_duplicates_collapse(self):
        assert normalize_allow(["Editor", "Editor", Role.EDITOR]) == {Role.EDITOR}

    def test_unknown_role_rejected(self):
        with pytest.raises(PolicyRegistryError):
            normalize_allow(["Owner"])

    def test_markers_not_allowed_in_deny(self):
        with pytest.raises(PolicyRegistryError):
            normalize_deny(["self"])


# =============================================================================
# PolicyRule
# =============================================================================


class TestPolicyRule:
    def test_open_rule(self):
        rule = PolicyRule("posts", "list")
        assert rule.is_open
        assert not rule.has_wildcard

    @pytest.mark.parametrize("marker", ["*", "all", "any"])
    def test_wildcards(self, marker):
        rule = PolicyRule("posts", "list", allow=frozenset({marker}))
        assert rule.has_wildcard
        assert not rule.is_open

    def test_allowed_roles_excludes_markers(self):
        rule = PolicyRule("posts", "update", allow=frozenset({Role.EDITOR, SELF}))
        assert rule.allows_self
        assert rule.allowed_roles == {Role.EDITOR}


# =============================================================================
# Registration
# =============================================================================


class TestRegistry:
    def test_register_and_lookup(self, registry):
        rule = registry.register("posts", "create", allow=["Author", "Editor"])

        assert registry.lookup("posts", "create") == rule
        assert rule.allow == {Role.AUTHOR, Role.EDITOR}
        assert rule.deny == frozenset()

    def test_lookup_missing(self, registry):
        assert registry.lookup("posts", "delete") is None

    def test_reregister_replaces(self, registry):
        registry.register("posts", "create", allow="Author")
        registry.register("posts", "create", allow="Editor")

        assert len(registry) == 1
        assert registry.lookup("posts", "create").allow == {Role.EDITOR}

    def test_reregister_identical_is_idempotent(self, registry):
        first = registry.register("users", "view", allow=["Administrator", "self"])
        second = registry.register("users", "view", allow=["self", Role.ADMINISTRATOR])

        assert first == second
        assert len(registry) == 1

    def test_sealed_rejects_registration(self, registry):
        registry.register("posts", "create", allow="Author")
        registry.seal()

        assert registry.sealed
        with pytest.raises(PolicyRegistryError):
            registry.register("posts", "update", allow="Editor")
        assert registry.lookup("posts", "create") is not None

    def test_iteration_and_resources(self, registry):
        registry.register("users", "view", allow="Administrator")
        registry.register("posts", "create", allow="Author")
        registry.register("posts", "update", allow="Editor")

        assert registry.resources() == ["posts", "users"]
        assert {rule.key for rule in registry} == {
            ("users", "view"),
            ("posts", "create"),
            ("posts", "update"),
        }
        assert ("posts", "update") in registry
