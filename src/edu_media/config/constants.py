"""Shared constants and enums for edu-media-commons.

Enum values are the strings persisted in documents, so they must stay stable.
"""

from enum import Enum


class UserRole(str, Enum):
    """Roles a user profile can hold."""

    OWNER = "owner"
    ADMIN = "admin"
    EDITOR = "editor"
    CONTRIBUTOR = "contributor"
    CLIENT = "client"
    PARENT = "parent"
    PROFESSIONAL = "professional"


# Roles created through staff invite codes
STAFF_INVITE_ROLES = frozenset({UserRole.ADMIN, UserRole.EDITOR, UserRole.CONTRIBUTOR})

# Roles for external audiences (client invites, role grants, self sign-up)
AUDIENCE_ROLES = frozenset({UserRole.CLIENT, UserRole.PARENT, UserRole.PROFESSIONAL})


class ContentType(str, Enum):
    """Kinds of content item."""

    VIDEO = "video"
    ARTICLE = "article"
    DOCUMENT = "document"
    AUDIO = "audio"


class ContentStatus(str, Enum):
    """Workflow status of a content item."""

    DRAFT = "draft"
    REVIEW = "review"
    PUBLISHED = "published"
    REJECTED = "rejected"
    CHANGES_REQUESTED = "changes_requested"


class WorkflowAction(str, Enum):
    """Named workflow transitions."""

    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    REQUEST_CHANGES = "request_changes"
    UNPUBLISH = "unpublish"


class OrderStatus(str, Enum):
    """Lifecycle of a purchase order."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class PurchaseRequestStatus(str, Enum):
    """Review state of a request to buy a priced target."""

    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


class PricingTarget(str, Enum):
    """What a pricing record or order points at."""

    CONTENT = "content"
    BUNDLE = "bundle"


class AccessPath(str, Enum):
    """Which rule allowed access to a content item."""

    PRIVILEGED = "privileged"
    CREATOR = "creator"
    PUBLIC = "public"
    USER_GRANT = "user_grant"
    ROLE_GRANT = "role_grant"
    GROUP_GRANT = "group_grant"
    BUNDLE_USER_GRANT = "bundle_user_grant"
    BUNDLE_ROLE_GRANT = "bundle_role_grant"
    BUNDLE_GROUP_GRANT = "bundle_group_grant"
    PASSWORD = "password"
    SHARE_TOKEN = "share_token"


class Collections:
    """Document collection names."""

    USER_PROFILES = "user_profiles"
    CONTENT = "content"
    CONTENT_VERSIONS = "content_versions"
    CONTENT_ACCESS = "content_access"
    USER_GROUPS = "user_groups"
    USER_GROUP_MEMBERS = "user_group_members"
    CONTENT_BUNDLES = "content_bundles"
    BUNDLE_ITEMS = "bundle_items"
    BUNDLE_ACCESS = "bundle_access"
    PRICING = "pricing"
    ORDERS = "orders"
    INVITE_CODES = "invite_codes"
    CLIENT_INVITES = "client_invites"
    CONTENT_SHARES = "content_shares"
    PURCHASE_REQUESTS = "purchase_requests"
    CONTENT_RECOMMENDATIONS = "content_recommendations"
    CONTENT_VIEWS = "content_views"


# Fields enforced unique per collection by document store adapters
UNIQUE_FIELDS = {
    Collections.USER_PROFILES: (("user_id",),),
    Collections.CONTENT_VERSIONS: (("content_id", "version_number"),),
    Collections.INVITE_CODES: (("code",),),
    Collections.CLIENT_INVITES: (("code",),),
    Collections.CONTENT_SHARES: (("access_token",),),
    Collections.USER_GROUP_MEMBERS: (("group_id", "user_id"),),
    Collections.BUNDLE_ITEMS: (("bundle_id", "content_id"),),
}

# Code alphabets
UPPER_ALPHANUMERIC = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
MIXED_ALPHANUMERIC = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"

MOCK_PAYMENT_METHOD = "mock_payment"
