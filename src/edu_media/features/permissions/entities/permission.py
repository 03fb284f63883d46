"""Permission catalog and role defaults.

The catalog is closed: permissions are enum members, and the defaults table
is built once at import and cannot be mutated at runtime.
"""

from enum import Enum
from types import MappingProxyType
from typing import FrozenSet, Mapping

from ....config.constants import UserRole


class Permission(str, Enum):
    """Every permission the platform knows about."""

    # Content
    VIEW_ALL_CONTENT = "view_all_content"
    CREATE_CONTENT = "create_content"
    EDIT_CONTENT = "edit_content"
    DELETE_CONTENT = "delete_content"
    ARCHIVE_CONTENT = "archive_content"
    PUBLISH_CONTENT = "publish_content"
    REVIEW_CONTENT = "review_content"
    SUBMIT_FOR_REVIEW = "submit_for_review"

    # Sharing and access
    SHARE_CONTENT = "share_content"
    SHARE_WITH_THIRD_PARTY = "share_with_third_party"
    MANAGE_CONTENT_ACCESS = "manage_content_access"
    SET_CONTENT_PRICING = "set_content_pricing"
    MANAGE_CONTENT_GROUPS = "manage_content_groups"

    # Users
    VIEW_USERS = "view_users"
    MANAGE_USERS = "manage_users"
    UPDATE_USER_ROLES = "update_user_roles"
    PROMOTE_TO_ADMIN = "promote_to_admin"
    MANAGE_USER_GROUPS = "manage_user_groups"

    # Commerce and analytics
    VIEW_ANALYTICS = "view_analytics"
    VIEW_ORDERS = "view_orders"
    MANAGE_ORDERS = "manage_orders"
    VIEW_PURCHASE_REQUESTS = "view_purchase_requests"
    MANAGE_PURCHASE_REQUESTS = "manage_purchase_requests"

    # Archive
    VIEW_ARCHIVED_CONTENT = "view_archived_content"
    RESTORE_ARCHIVED_CONTENT = "restore_archived_content"

    # Site
    MANAGE_SITE_SETTINGS = "manage_site_settings"
    GENERATE_INVITE_CODES = "generate_invite_codes"
    RECOMMEND_CONTENT = "recommend_content"

    @classmethod
    def parse(cls, value: str) -> "Permission":
        """Look up a permission by its string value.

        Raises:
            ValueError: the value is not in the catalog
        """
        return cls(value)


ALL_PERMISSIONS: FrozenSet[Permission] = frozenset(Permission)

# Holding either of these makes a user a privileged viewer of any content
PRIVILEGED_VIEW_PERMISSIONS: FrozenSet[Permission] = frozenset({
    Permission.REVIEW_CONTENT,
    Permission.PUBLISH_CONTENT,
})

DEFAULT_PERMISSIONS: Mapping[UserRole, FrozenSet[Permission]] = MappingProxyType({
    UserRole.OWNER: ALL_PERMISSIONS,
    UserRole.ADMIN: ALL_PERMISSIONS - {Permission.PROMOTE_TO_ADMIN},
    UserRole.EDITOR: frozenset({
        Permission.VIEW_ALL_CONTENT,
        Permission.CREATE_CONTENT,
        Permission.EDIT_CONTENT,
        Permission.DELETE_CONTENT,
        Permission.REVIEW_CONTENT,
        Permission.PUBLISH_CONTENT,
        Permission.SHARE_CONTENT,
        Permission.SHARE_WITH_THIRD_PARTY,
    }),
    UserRole.CONTRIBUTOR: frozenset({
        Permission.VIEW_ALL_CONTENT,
        Permission.CREATE_CONTENT,
        Permission.EDIT_CONTENT,
        Permission.DELETE_CONTENT,
        Permission.SUBMIT_FOR_REVIEW,
        Permission.SHARE_CONTENT,
        Permission.SHARE_WITH_THIRD_PARTY,
    }),
    UserRole.PROFESSIONAL: frozenset({
        Permission.VIEW_ALL_CONTENT,
        Permission.SHARE_CONTENT,
        Permission.RECOMMEND_CONTENT,
    }),
    UserRole.PARENT: frozenset({Permission.SHARE_CONTENT}),
    UserRole.CLIENT: frozenset({Permission.SHARE_CONTENT}),
})
