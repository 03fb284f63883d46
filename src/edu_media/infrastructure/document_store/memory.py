"""In-memory document store adapter.

Used by tests and single-process deployments. Every operation runs under one
asyncio lock, which gives the per-document atomicity the services rely on.
"""

import asyncio
import copy
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ...config.constants import UNIQUE_FIELDS
from ...core.exceptions import (
    ConcurrentModificationError,
    DuplicateKeyError,
    EntityNotFoundError,
)
from ...utils.uuid import generate_uuid_v7

logger = logging.getLogger(__name__)


class InMemoryDocumentStore:
    """Dict-backed DocumentStore with unique keys and conditional patches."""

    def __init__(self, unique_fields: Optional[Mapping[str, Iterable[Tuple[str, ...]]]] = None):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._unique_fields = {
            name: [tuple(key) for key in keys]
            for name, keys in (unique_fields if unique_fields is not None else UNIQUE_FIELDS).items()
        }
        self._lock = asyncio.Lock()

    def _collection(self, collection: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(collection, {})

    def _check_unique(
        self,
        collection: str,
        candidate: Mapping[str, Any],
        exclude_id: Optional[str] = None,
    ) -> None:
        for key in self._unique_fields.get(collection, []):
            values = {field: candidate.get(field) for field in key}
            if any(v is None for v in values.values()):
                continue
            for doc_id, existing in self._collection(collection).items():
                if doc_id == exclude_id:
                    continue
                if all(existing.get(field) == value for field, value in values.items()):
                    raise DuplicateKeyError(collection, values)

    async def get(self, collection: str, document_id: str) -> Optional[Dict[str, Any]]:
        async with self._lock:
            document = self._collection(collection).get(document_id)
            return copy.deepcopy(document) if document is not None else None

    async def query(
        self,
        collection: str,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        filters = filters or {}
        async with self._lock:
            return [
                copy.deepcopy(doc)
                for doc in self._collection(collection).values()
                if all(doc.get(field) == value for field, value in filters.items())
            ]

    async def insert(self, collection: str, document: Mapping[str, Any]) -> str:
        async with self._lock:
            self._check_unique(collection, document)
            document_id = generate_uuid_v7()
            stored = copy.deepcopy(dict(document))
            stored["id"] = document_id
            self._collection(collection)[document_id] = stored
            logger.debug(f"Inserted {collection}/{document_id}")
            return document_id

    async def patch(
        self,
        collection: str,
        document_id: str,
        fields: Mapping[str, Any],
        expected: Optional[Mapping[str, Any]] = None,
    ) -> None:
        async with self._lock:
            current = self._collection(collection).get(document_id)
            if current is None:
                raise EntityNotFoundError(collection, document_id)
            if expected and any(current.get(k) != v for k, v in expected.items()):
                raise ConcurrentModificationError(document_id, dict(expected))

            updated = {**current, **copy.deepcopy(dict(fields)), "id": document_id}
            self._check_unique(collection, updated, exclude_id=document_id)
            self._collection(collection)[document_id] = updated

    async def delete(self, collection: str, document_id: str) -> None:
        async with self._lock:
            self._collection(collection).pop(document_id, None)

    def count(self, collection: str) -> int:
        """Number of documents in a collection."""
        return len(self._collection(collection))
