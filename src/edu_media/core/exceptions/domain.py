"""Domain exceptions for edu-media-commons."""

from typing import Any, Dict, Iterable, Optional

from .base import EduMediaError


# Authentication

class AuthenticationError(EduMediaError):
    """Raised when the caller's identity cannot be established."""


class NotAuthenticatedError(AuthenticationError):
    """Raised when an operation needs an authenticated user and there is none."""

    def __init__(self, message: str = "Not authenticated", **kwargs):
        super().__init__(message, **kwargs)


class InvalidTokenError(AuthenticationError):
    """Raised when an identity token cannot be decoded or verified."""


# Authorization

class AuthorizationError(EduMediaError):
    """Raised when an authenticated user may not perform an operation."""


class PermissionDeniedError(AuthorizationError):
    """Raised when the actor lacks a required permission or relationship."""

    def __init__(
        self,
        message: str = "Permission denied",
        required: Optional[Iterable[Any]] = None,
        details: Optional[Dict[str, Any]] = None,
        **kwargs,
    ):
        details = dict(details or {})
        if required:
            details["required"] = sorted(str(getattr(p, "value", p)) for p in required)
        super().__init__(message, details=details, **kwargs)


# Lookup

class EntityNotFoundError(EduMediaError):
    """Raised when a referenced record does not exist."""

    def __init__(self, entity_type: str, identifier: Any, **kwargs):
        super().__init__(
            f"{entity_type} not found: {identifier}",
            details={"entity_type": entity_type, "identifier": str(identifier)},
            **kwargs,
        )
        self.entity_type = entity_type
        self.identifier = identifier


# Business rules

class BusinessLogicError(EduMediaError):
    """Raised when an operation violates a business rule."""


class ValidationError(BusinessLogicError):
    """Raised when input is malformed."""

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", None) or {}
        if field:
            details["field"] = field
        super().__init__(message, details=details, **kwargs)
        self.field = field


class InvalidStateError(BusinessLogicError):
    """Raised when a record is not in a state that allows the operation."""


class InvalidTransitionError(InvalidStateError):
    """Raised when a workflow action is not legal from the current status."""

    def __init__(self, action: Any, current: Any, allowed_from: Iterable[Any], **kwargs):
        action_value = getattr(action, "value", action)
        current_value = getattr(current, "value", current)
        allowed = sorted(str(getattr(s, "value", s)) for s in allowed_from)
        super().__init__(
            f"Cannot {action_value} content in status '{current_value}'; "
            f"allowed from: {', '.join(allowed)}",
            details={"action": action_value, "current": current_value, "allowed_from": allowed},
            **kwargs,
        )
        self.action = action
        self.current = current
        self.allowed_from = allowed


class DuplicateResourceError(BusinessLogicError):
    """Raised when an operation would create a duplicate of an existing record."""


class ConflictError(BusinessLogicError):
    """Raised when an operation conflicts with the current data."""


class ConcurrentModificationError(ConflictError):
    """Raised when a conditional write loses to a concurrent writer."""

    def __init__(self, document_id: Any, expected: Dict[str, Any], **kwargs):
        super().__init__(
            f"Document {document_id} was modified concurrently",
            details={"document_id": str(document_id), "expected": {k: str(v) for k, v in expected.items()}},
            **kwargs,
        )
        self.document_id = document_id
        self.expected = expected


# Infrastructure

class InfrastructureError(EduMediaError):
    """Raised when a collaborator outside the core fails."""


class DocumentStoreError(InfrastructureError):
    """Raised when the document store fails."""


class DuplicateKeyError(DocumentStoreError):
    """Raised when an insert violates a unique key."""

    def __init__(self, collection: str, fields: Dict[str, Any], **kwargs):
        super().__init__(
            f"Duplicate key in {collection}: {fields}",
            details={"collection": collection, "fields": {k: str(v) for k, v in fields.items()}},
            **kwargs,
        )
        self.collection = collection
        self.fields = fields


class CodeSpaceExhaustedError(InfrastructureError):
    """Raised when no unused code could be generated within the attempt limit."""


class NotificationDeliveryError(InfrastructureError):
    """Raised by notification adapters when a message cannot be sent."""
