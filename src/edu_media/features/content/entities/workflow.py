"""Editorial workflow state machine.

The transition table is the single source of truth for which action moves
content between which statuses and what the actor must hold to do it. The
functions here are pure so the rules can be tested without storage.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import AbstractSet, FrozenSet, Mapping, Optional

from ....config.constants import ContentStatus, WorkflowAction
from ....core.exceptions import InvalidTransitionError, PermissionDeniedError, ValidationError
from ...permissions.entities.permission import Permission


@dataclass(frozen=True)
class WorkflowTransition:
    """One row of the transition table.

    ``required`` must all be held. When ``creator_or`` is set, the actor must
    additionally be the content's creator or hold that permission.
    """

    action: WorkflowAction
    sources: FrozenSet[ContentStatus]
    target: ContentStatus
    required: FrozenSet[Permission]
    creator_or: Optional[Permission] = None
    requires_note: bool = False


WORKFLOW_TRANSITIONS: Mapping[WorkflowAction, WorkflowTransition] = MappingProxyType({
    WorkflowAction.SUBMIT: WorkflowTransition(
        action=WorkflowAction.SUBMIT,
        sources=frozenset({ContentStatus.DRAFT, ContentStatus.REJECTED, ContentStatus.CHANGES_REQUESTED}),
        target=ContentStatus.REVIEW,
        required=frozenset({Permission.SUBMIT_FOR_REVIEW}),
        creator_or=Permission.REVIEW_CONTENT,
    ),
    WorkflowAction.APPROVE: WorkflowTransition(
        action=WorkflowAction.APPROVE,
        sources=frozenset({ContentStatus.REVIEW}),
        target=ContentStatus.PUBLISHED,
        required=frozenset({Permission.REVIEW_CONTENT, Permission.PUBLISH_CONTENT}),
    ),
    WorkflowAction.REJECT: WorkflowTransition(
        action=WorkflowAction.REJECT,
        sources=frozenset({ContentStatus.REVIEW}),
        target=ContentStatus.REJECTED,
        required=frozenset({Permission.REVIEW_CONTENT}),
        requires_note=True,
    ),
    WorkflowAction.REQUEST_CHANGES: WorkflowTransition(
        action=WorkflowAction.REQUEST_CHANGES,
        sources=frozenset({ContentStatus.REVIEW}),
        target=ContentStatus.CHANGES_REQUESTED,
        required=frozenset({Permission.REVIEW_CONTENT}),
        requires_note=True,
    ),
    WorkflowAction.UNPUBLISH: WorkflowTransition(
        action=WorkflowAction.UNPUBLISH,
        sources=frozenset({ContentStatus.PUBLISHED}),
        target=ContentStatus.DRAFT,
        required=frozenset({Permission.PUBLISH_CONTENT, Permission.ARCHIVE_CONTENT}),
    ),
})

# Statuses in which a creator without review rights may still edit
CREATOR_EDITABLE_STATUSES = frozenset({
    ContentStatus.DRAFT,
    ContentStatus.REJECTED,
    ContentStatus.CHANGES_REQUESTED,
})

# Statuses in which content may be deleted without archive rights
DELETABLE_STATUSES = frozenset({ContentStatus.DRAFT, ContentStatus.REJECTED})


def authorize_transition(
    action: WorkflowAction,
    permissions: AbstractSet[Permission],
    is_creator: bool,
) -> WorkflowTransition:
    """Check the actor may perform ``action`` at all, regardless of status."""
    transition = WORKFLOW_TRANSITIONS[WorkflowAction(action)]

    missing = transition.required - permissions
    if missing:
        raise PermissionDeniedError(
            f"Not permitted to {transition.action.value} content",
            required=missing,
        )
    if transition.creator_or and not is_creator and transition.creator_or not in permissions:
        raise PermissionDeniedError(
            f"Only the creator or a reviewer can {transition.action.value} this content",
            required=[transition.creator_or],
        )
    return transition


def apply_transition(
    current: ContentStatus,
    action: WorkflowAction,
    permissions: AbstractSet[Permission],
    is_creator: bool,
    note: Optional[str] = None,
) -> ContentStatus:
    """Compute the status after ``action``.

    Authorization is checked first, then the note, then the source status.

    Raises:
        PermissionDeniedError: the actor may not perform the action
        ValidationError: the action needs a note and none was given
        InvalidTransitionError: ``current`` is not an allowed source status
    """
    transition = authorize_transition(action, permissions, is_creator)

    if transition.requires_note and (note is None or not note.strip()):
        raise ValidationError(f"A note is required to {transition.action.value} content", field="notes")

    current = ContentStatus(current)
    if current not in transition.sources:
        raise InvalidTransitionError(transition.action, current, transition.sources)
    return transition.target


def can_edit(status: ContentStatus, permissions: AbstractSet[Permission], is_creator: bool) -> bool:
    """Reviewers edit in any status; creators only while the draft is theirs to fix."""
    if Permission.EDIT_CONTENT not in permissions:
        return False
    if Permission.REVIEW_CONTENT in permissions:
        return True
    return is_creator and ContentStatus(status) in CREATOR_EDITABLE_STATUSES


def can_delete(status: ContentStatus, permissions: AbstractSet[Permission], is_creator: bool) -> bool:
    """Archivers delete in any status; others only unpublished drafts they may manage."""
    if Permission.DELETE_CONTENT not in permissions:
        return False
    if Permission.ARCHIVE_CONTENT in permissions:
        return True
    if ContentStatus(status) not in DELETABLE_STATUSES:
        return False
    return is_creator or Permission.REVIEW_CONTENT in permissions
