"""Tests for the editorial workflow state machine."""

import pytest

from edu_media.config.constants import ContentStatus, UserRole, WorkflowAction
from edu_media.core.exceptions import InvalidTransitionError, PermissionDeniedError, ValidationError
from edu_media.features.content.entities.workflow import (
    WORKFLOW_TRANSITIONS,
    apply_transition,
    can_delete,
    can_edit,
)
from edu_media.features.permissions import DEFAULT_PERMISSIONS

ADMIN = DEFAULT_PERMISSIONS[UserRole.ADMIN]
EDITOR = DEFAULT_PERMISSIONS[UserRole.EDITOR]
CONTRIBUTOR = DEFAULT_PERMISSIONS[UserRole.CONTRIBUTOR]
CLIENT = DEFAULT_PERMISSIONS[UserRole.CLIENT]


class TestTransitionTable:
    """Test the transition table itself."""

    def test_every_action_has_a_row(self):
        """Test every workflow action is defined."""
        assert set(WORKFLOW_TRANSITIONS) == set(WorkflowAction)

    @pytest.mark.parametrize("action,target", [
        (WorkflowAction.SUBMIT, ContentStatus.REVIEW),
        (WorkflowAction.APPROVE, ContentStatus.PUBLISHED),
        (WorkflowAction.REJECT, ContentStatus.REJECTED),
        (WorkflowAction.REQUEST_CHANGES, ContentStatus.CHANGES_REQUESTED),
        (WorkflowAction.UNPUBLISH, ContentStatus.DRAFT),
    ])
    def test_targets(self, action, target):
        """Test each action lands in its target status."""
        assert WORKFLOW_TRANSITIONS[action].target is target


class TestApplyTransition:
    """Test transition legality and authorization."""

    @pytest.mark.parametrize("source", [
        ContentStatus.DRAFT, ContentStatus.REJECTED, ContentStatus.CHANGES_REQUESTED,
    ])
    def test_creator_submits(self, source):
        """Test a contributor submits their own content from any editable status."""
        assert apply_transition(source, WorkflowAction.SUBMIT, CONTRIBUTOR, is_creator=True) is ContentStatus.REVIEW

    def test_contributor_cannot_submit_others_content(self):
        """Test submit needs the creator or a reviewer."""
        with pytest.raises(PermissionDeniedError):
            apply_transition(ContentStatus.DRAFT, WorkflowAction.SUBMIT, CONTRIBUTOR, is_creator=False)

    def test_admin_submits_any_content(self):
        """Test admins submit content they did not create."""
        assert apply_transition(ContentStatus.DRAFT, WorkflowAction.SUBMIT, ADMIN, is_creator=False) is ContentStatus.REVIEW

    def test_submit_twice_fails(self):
        """Test submitting content already in review is illegal."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            apply_transition(ContentStatus.REVIEW, WorkflowAction.SUBMIT, CONTRIBUTOR, is_creator=True)
        assert exc_info.value.details["current"] == "review"

    def test_approve_only_from_review(self):
        """Test approve is illegal outside review."""
        assert apply_transition(ContentStatus.REVIEW, WorkflowAction.APPROVE, EDITOR, False) is ContentStatus.PUBLISHED
        with pytest.raises(InvalidTransitionError):
            apply_transition(ContentStatus.DRAFT, WorkflowAction.APPROVE, EDITOR, False)

    def test_contributor_cannot_approve(self):
        """Test contributors cannot approve even their own content."""
        with pytest.raises(PermissionDeniedError):
            apply_transition(ContentStatus.REVIEW, WorkflowAction.APPROVE, CONTRIBUTOR, is_creator=True)

    @pytest.mark.parametrize("action", [WorkflowAction.REJECT, WorkflowAction.REQUEST_CHANGES])
    @pytest.mark.parametrize("note", [None, "", "   "])
    def test_reject_requires_note(self, action, note):
        """Test reject and request changes need a non-blank note."""
        with pytest.raises(ValidationError):
            apply_transition(ContentStatus.REVIEW, action, EDITOR, False, note=note)

    def test_authorization_checked_before_status(self):
        """Test a client gets a permission error, not a transition error."""
        with pytest.raises(PermissionDeniedError):
            apply_transition(ContentStatus.DRAFT, WorkflowAction.APPROVE, CLIENT, False)

    def test_unpublish_returns_to_draft(self):
        """Test unpublishing needs publish and archive rights."""
        assert apply_transition(ContentStatus.PUBLISHED, WorkflowAction.UNPUBLISH, ADMIN, False) is ContentStatus.DRAFT
        with pytest.raises(PermissionDeniedError):
            apply_transition(ContentStatus.PUBLISHED, WorkflowAction.UNPUBLISH, EDITOR, False)


class TestEditAndDeleteRules:
    """Test per-status edit and delete rights."""

    def test_contributor_edits_own_draft_only(self):
        """Test contributors edit their own content outside review and publication."""
        assert can_edit(ContentStatus.DRAFT, CONTRIBUTOR, is_creator=True)
        assert can_edit(ContentStatus.CHANGES_REQUESTED, CONTRIBUTOR, is_creator=True)
        assert not can_edit(ContentStatus.REVIEW, CONTRIBUTOR, is_creator=True)
        assert not can_edit(ContentStatus.PUBLISHED, CONTRIBUTOR, is_creator=True)
        assert not can_edit(ContentStatus.DRAFT, CONTRIBUTOR, is_creator=False)

    def test_editor_edits_in_any_status(self):
        """Test reviewers edit regardless of status."""
        for status in ContentStatus:
            assert can_edit(status, EDITOR, is_creator=False)

    def test_admin_deletes_in_any_status(self):
        """Test admins delete published content."""
        assert can_delete(ContentStatus.PUBLISHED, ADMIN, is_creator=False)

    def test_contributor_deletes_own_draft_or_rejected(self):
        """Test contributors delete only unpublished content they created."""
        assert can_delete(ContentStatus.DRAFT, CONTRIBUTOR, is_creator=True)
        assert can_delete(ContentStatus.REJECTED, CONTRIBUTOR, is_creator=True)
        assert not can_delete(ContentStatus.REVIEW, CONTRIBUTOR, is_creator=True)
        assert not can_delete(ContentStatus.DRAFT, CONTRIBUTOR, is_creator=False)

    def test_editor_deletes_drafts_only(self):
        """Test editors delete any draft but not published content."""
        assert can_delete(ContentStatus.DRAFT, EDITOR, is_creator=False)
        assert not can_delete(ContentStatus.PUBLISHED, EDITOR, is_creator=False)

    def test_client_never_deletes(self):
        """Test audience roles cannot delete."""
        assert not can_delete(ContentStatus.DRAFT, CLIENT, is_creator=True)
