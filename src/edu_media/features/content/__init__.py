"""Content feature: content items and the editorial workflow.

- entities/: ContentItem and the workflow transition table
- models/: request models for create and update
- repositories/: ContentRepository
- services/: ContentService
"""

from .entities import ContentItem, VERSIONED_FIELDS, WORKFLOW_TRANSITIONS, apply_transition, can_edit, can_delete
from .models import CreateContentRequest, UpdateContentRequest

__all__ = [
    "ContentItem",
    "VERSIONED_FIELDS",
    "WORKFLOW_TRANSITIONS",
    "apply_transition",
    "can_edit",
    "can_delete",
    "CreateContentRequest",
    "UpdateContentRequest",
]
