"""Content repository over the document store."""

import logging
from typing import Any, List, Mapping, Optional

from ....config.constants import Collections, ContentStatus, ContentType
from ....core.exceptions import EntityNotFoundError
from ....core.value_objects import ContentId
from ....protocols import DocumentStore
from ..entities.content_item import ContentItem

logger = logging.getLogger(__name__)


class ContentRepository:
    """Loads and stores content items."""

    def __init__(self, store: DocumentStore):
        if store is None:
            raise ValueError("Document store is required")
        self.store = store

    async def find(self, content_id: str) -> Optional[ContentItem]:
        """Get a content item, or None when it does not exist.

        Raises:
            ValidationError: the id is malformed
        """
        document = await self.store.get(Collections.CONTENT, ContentId.parse(content_id))
        return ContentItem.from_document(document) if document else None

    async def get(self, content_id: str) -> ContentItem:
        """Get a content item or raise EntityNotFoundError."""
        content = await self.find(content_id)
        if content is None:
            raise EntityNotFoundError("Content", content_id)
        return content

    async def insert(self, content: ContentItem) -> ContentItem:
        content.id = await self.store.insert(Collections.CONTENT, content.to_document())
        return content

    async def patch(
        self,
        content_id: str,
        fields: Mapping[str, Any],
        expected: Optional[Mapping[str, Any]] = None,
    ) -> ContentItem:
        """Apply a patch and return the refreshed item."""
        await self.store.patch(Collections.CONTENT, content_id, fields, expected=expected)
        return await self.get(content_id)

    async def delete(self, content_id: str) -> None:
        await self.store.delete(Collections.CONTENT, content_id)

    async def list(
        self,
        status: Optional[ContentStatus] = None,
        content_type: Optional[ContentType] = None,
        created_by: Optional[str] = None,
    ) -> List[ContentItem]:
        filters = {}
        if status:
            filters["status"] = ContentStatus(status).value
        if content_type:
            filters["type"] = ContentType(content_type).value
        if created_by:
            filters["created_by"] = created_by
        documents = await self.store.query(Collections.CONTENT, filters)
        return [ContentItem.from_document(doc) for doc in documents]
