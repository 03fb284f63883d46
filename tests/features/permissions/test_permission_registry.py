"""Tests for the permission registry."""

import pytest

from edu_media.config.constants import UserRole
from edu_media.core.exceptions import PermissionDeniedError
from edu_media.features.permissions import (
    ALL_PERMISSIONS,
    DEFAULT_PERMISSIONS,
    Permission,
    can_assign_permissions,
    effective_permissions,
    has_all_permissions,
    has_any_permission,
    has_permission,
    require_any_permission,
    require_permission,
)
from edu_media.features.users.entities.user_profile import UserProfile


class TestRoleDefaults:
    """Test the static role default table."""

    def test_owner_holds_everything(self):
        """Test the owner default is the whole catalog."""
        assert DEFAULT_PERMISSIONS[UserRole.OWNER] == ALL_PERMISSIONS

    def test_admin_lacks_only_promote_to_admin(self):
        """Test admin defaults are the catalog minus promote_to_admin."""
        assert ALL_PERMISSIONS - DEFAULT_PERMISSIONS[UserRole.ADMIN] == {Permission.PROMOTE_TO_ADMIN}

    def test_every_role_has_defaults(self):
        """Test no role is missing from the defaults table."""
        assert set(DEFAULT_PERMISSIONS) == set(UserRole)

    def test_defaults_are_immutable(self):
        """Test the defaults table rejects runtime mutation."""
        with pytest.raises(TypeError):
            DEFAULT_PERMISSIONS[UserRole.CLIENT] = ALL_PERMISSIONS

    def test_contributor_cannot_review(self):
        """Test contributors submit but do not review or publish."""
        defaults = DEFAULT_PERMISSIONS[UserRole.CONTRIBUTOR]
        assert Permission.SUBMIT_FOR_REVIEW in defaults
        assert Permission.REVIEW_CONTENT not in defaults
        assert Permission.PUBLISH_CONTENT not in defaults

    def test_parse_rejects_unknown_permission(self):
        """Test the catalog is closed."""
        with pytest.raises(ValueError):
            Permission.parse("launch_rockets")


class TestEffectivePermissions:
    """Test effective permission computation."""

    def test_role_defaults_without_override(self):
        """Test a profile without overrides gets its role defaults."""
        profile = UserProfile(user_id="u1", role=UserRole.EDITOR)
        assert effective_permissions(profile) == DEFAULT_PERMISSIONS[UserRole.EDITOR]

    def test_override_replaces_defaults(self):
        """Test a custom list replaces role defaults instead of merging."""
        profile = UserProfile(user_id="u1", role=UserRole.EDITOR, permissions=["view_all_content", "review_content"])
        assert effective_permissions(profile) == {Permission.VIEW_ALL_CONTENT, Permission.REVIEW_CONTENT}
        assert not has_permission(profile, Permission.EDIT_CONTENT)

    def test_empty_override_falls_back_to_defaults(self):
        """Test an empty custom list means no override."""
        profile = UserProfile(user_id="u1", role=UserRole.CLIENT, permissions=[])
        assert effective_permissions(profile) == DEFAULT_PERMISSIONS[UserRole.CLIENT]

    def test_owner_ignores_override(self):
        """Test the owner keeps the full set whatever the override says."""
        profile = UserProfile(user_id="u1", role=UserRole.OWNER, permissions=["share_content"])
        assert effective_permissions(profile) == ALL_PERMISSIONS

    def test_inactive_profile_holds_nothing(self):
        """Test a deactivated profile holds no permissions."""
        profile = UserProfile(user_id="u1", role=UserRole.ADMIN, is_active=False)
        assert effective_permissions(profile) == frozenset()

    def test_missing_profile_holds_nothing(self):
        """Test anonymous callers hold no permissions."""
        assert effective_permissions(None) == frozenset()

    def test_unknown_override_entries_are_ignored(self):
        """Test stale permission names in an override are dropped."""
        profile = UserProfile(user_id="u1", role=UserRole.CLIENT, permissions=["share_content", "retired_permission"])
        assert effective_permissions(profile) == {Permission.SHARE_CONTENT}

    def test_set_checks(self):
        """Test all/any membership helpers."""
        profile = UserProfile(user_id="u1", role=UserRole.CONTRIBUTOR)
        assert has_all_permissions(profile, [Permission.CREATE_CONTENT, Permission.EDIT_CONTENT])
        assert not has_all_permissions(profile, [Permission.CREATE_CONTENT, Permission.PUBLISH_CONTENT])
        assert has_any_permission(profile, [Permission.PUBLISH_CONTENT, Permission.SHARE_CONTENT])
        assert not has_any_permission(profile, [Permission.PUBLISH_CONTENT, Permission.MANAGE_USERS])


class TestRequirePermission:
    """Test the raising permission guards."""

    def test_require_returns_held_set(self):
        """Test require_permission returns the effective set on success."""
        profile = UserProfile(user_id="u1", role=UserRole.EDITOR)
        held = require_permission(profile, Permission.REVIEW_CONTENT)
        assert Permission.PUBLISH_CONTENT in held

    def test_require_lists_missing_permissions(self):
        """Test the error carries the missing permissions."""
        profile = UserProfile(user_id="u1", role=UserRole.CLIENT)
        with pytest.raises(PermissionDeniedError) as exc_info:
            require_permission(profile, Permission.SHARE_CONTENT, Permission.MANAGE_USERS)
        assert exc_info.value.details["required"] == ["manage_users"]

    def test_require_any(self):
        """Test require_any_permission passes with one match."""
        profile = UserProfile(user_id="u1", role=UserRole.PROFESSIONAL)
        require_any_permission(profile, Permission.MANAGE_USERS, Permission.RECOMMEND_CONTENT)
        with pytest.raises(PermissionDeniedError):
            require_any_permission(profile, Permission.MANAGE_USERS, Permission.VIEW_ORDERS)


class TestCanAssignPermissions:
    """Test the promote_to_admin assignment guard."""

    def test_admin_cannot_grant_promote_to_admin(self):
        """Test granting promote_to_admin requires holding it."""
        admin = UserProfile(user_id="a", role=UserRole.ADMIN)
        assert not can_assign_permissions(admin, ["promote_to_admin", "view_users"])
        assert can_assign_permissions(admin, ["view_users"])

    def test_owner_can_grant_promote_to_admin(self):
        """Test the owner may hand out promote_to_admin."""
        owner = UserProfile(user_id="o", role=UserRole.OWNER)
        assert can_assign_permissions(owner, ["promote_to_admin"])
