"""Protocols for the collaborators edu-media-commons depends on.

Services receive these through their constructors. Adapters live under
``edu_media.infrastructure``; host applications may supply their own.
"""

from abc import abstractmethod
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Protocol, runtime_checkable


Document = Dict[str, Any]


@runtime_checkable
class DocumentStore(Protocol):
    """Collection-oriented document storage with per-document atomicity.

    Every stored document carries its id under the ``"id"`` key.
    """

    @abstractmethod
    async def get(self, collection: str, document_id: str) -> Optional[Document]:
        """Fetch one document, or None if it does not exist."""
        ...

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> List[Document]:
        """Return documents whose fields equal every value in ``filters``."""
        ...

    @abstractmethod
    async def insert(self, collection: str, document: Mapping[str, Any]) -> str:
        """Insert a document and return its new id.

        Raises:
            DuplicateKeyError: the document collides on a unique key
        """
        ...

    @abstractmethod
    async def patch(
        self,
        collection: str,
        document_id: str,
        fields: Mapping[str, Any],
        expected: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Update fields of one document.

        When ``expected`` is given, the write only happens if every listed
        field currently holds the listed value.

        Raises:
            EntityNotFoundError: the document does not exist
            ConcurrentModificationError: ``expected`` did not match
        """
        ...

    @abstractmethod
    async def delete(self, collection: str, document_id: str) -> None:
        """Delete a document; deleting a missing document is a no-op."""
        ...


@runtime_checkable
class BlobStore(Protocol):
    """Binary object storage for media files and thumbnails."""

    @abstractmethod
    async def get_url(self, blob_ref: str) -> Optional[str]:
        """Return a fetchable URL for a stored blob."""
        ...

    @abstractmethod
    async def generate_upload_url(self) -> str:
        """Return a one-shot URL the client can upload a blob to."""
        ...


@runtime_checkable
class IdentityProvider(Protocol):
    """Resolves the identity of the current caller."""

    @abstractmethod
    async def current_user_id(self) -> Optional[str]:
        """Return the caller's user id, or None when anonymous."""
        ...


@runtime_checkable
class NotificationService(Protocol):
    """Outbound email and SMS delivery."""

    @abstractmethod
    async def send_email(self, to: str, subject: str, html: str) -> None:
        ...

    @abstractmethod
    async def send_sms(self, to: str, body: str) -> None:
        ...


Job = Callable[..., Awaitable[Any]]


@runtime_checkable
class JobScheduler(Protocol):
    """Runs work after the current operation completes."""

    @abstractmethod
    async def run_after(self, delay: timedelta, job: Job, payload: Dict[str, Any]) -> None:
        """Schedule ``job(**payload)`` to run after ``delay``."""
        ...


Clock = Callable[[], datetime]
