"""Content entities and workflow rules."""

from .content_item import ContentItem, VERSIONED_FIELDS
from .workflow import (
    WorkflowTransition,
    WORKFLOW_TRANSITIONS,
    CREATOR_EDITABLE_STATUSES,
    DELETABLE_STATUSES,
    authorize_transition,
    apply_transition,
    can_edit,
    can_delete,
)

__all__ = [
    "ContentItem",
    "VERSIONED_FIELDS",
    "WorkflowTransition",
    "WORKFLOW_TRANSITIONS",
    "CREATOR_EDITABLE_STATUSES",
    "DELETABLE_STATUSES",
    "authorize_transition",
    "apply_transition",
    "can_edit",
    "can_delete",
]
