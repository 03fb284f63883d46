"""Tests for the exception hierarchy and its HTTP mapping."""

import pytest

from edu_media.config.constants import ContentStatus
from edu_media.core.exceptions import (
    CodeSpaceExhaustedError,
    ConcurrentModificationError,
    DuplicateResourceError,
    EduMediaError,
    EntityNotFoundError,
    InvalidStateError,
    InvalidTokenError,
    InvalidTransitionError,
    NotificationDeliveryError,
    NotAuthenticatedError,
    PermissionDeniedError,
    ValidationError,
    create_error_response,
    get_http_status_code,
)
from edu_media.features.permissions import Permission


class TestHttpMapping:
    """Test exception to status code mapping."""

    @pytest.mark.parametrize("exception,status", [
        (ValidationError("bad", field="title"), 422),
        (DuplicateResourceError("again"), 409),
        (ConcurrentModificationError("doc-1", {"status": "draft"}), 409),
        (EntityNotFoundError("Content", "c1"), 404),
        (PermissionDeniedError(), 403),
        (NotAuthenticatedError(), 401),
        (InvalidTokenError("expired"), 401),
        (InvalidStateError("nope"), 400),
        (CodeSpaceExhaustedError("full"), 503),
        (NotificationDeliveryError("smtp down"), 500),
        (EduMediaError("boom"), 500),
        (RuntimeError("boom"), 500),
    ])
    def test_status_codes(self, exception, status):
        """Test the most specific mapped class decides the status."""
        assert get_http_status_code(exception) == status

    def test_transition_error_is_a_bad_request(self):
        """Test illegal transitions map like other invalid states."""
        error = InvalidTransitionError("approve", ContentStatus.DRAFT, [ContentStatus.REVIEW])
        assert get_http_status_code(error) == 400


class TestErrorResponse:
    """Test structured error payloads."""

    def test_permission_denied_lists_requirements(self):
        """Test required permissions appear sorted in the details."""
        error = PermissionDeniedError(
            "Not allowed",
            required=[Permission.PUBLISH_CONTENT, Permission.ARCHIVE_CONTENT],
        )
        response = create_error_response(error)
        assert response == {
            "error": {
                "code": "PermissionDeniedError",
                "message": "Not allowed",
                "details": {"required": ["archive_content", "publish_content"]},
                "type": "PermissionDeniedError",
            }
        }

    def test_not_found_details(self):
        """Test missing-entity errors identify what was missing."""
        error = EntityNotFoundError("Bundle", "b1")
        assert error.message == "Bundle not found: b1"
        assert create_error_response(error)["error"]["details"] == {"entity_type": "Bundle", "identifier": "b1"}
