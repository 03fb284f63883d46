"""PostgreSQL document store adapter.

Documents live in a single JSONB table keyed by ``(collection, id)``. Unique
keys are enforced with partial expression indexes created by ``initialize``.
"""

import json
import logging
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import asyncpg

from ...config.constants import UNIQUE_FIELDS
from ...config.settings import EduMediaSettings
from ...core.exceptions import (
    ConcurrentModificationError,
    DocumentStoreError,
    DuplicateKeyError,
    EntityNotFoundError,
)
from ...utils.uuid import generate_uuid_v7

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")


def _validate_identifier(name: str) -> str:
    """Validate a table or field name before it is interpolated into SQL."""
    if not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid SQL identifier: {name}")
    return name


class AsyncpgDocumentStore:
    """DocumentStore backed by an asyncpg connection pool."""

    def __init__(
        self,
        pool: asyncpg.Pool,
        table: str = "documents",
        unique_fields: Optional[Mapping[str, Iterable[Tuple[str, ...]]]] = None,
    ):
        if pool is None:
            raise ValueError("Connection pool is required")
        self.pool = pool
        self.table = _validate_identifier(table)
        self.unique_fields = unique_fields if unique_fields is not None else UNIQUE_FIELDS

    @classmethod
    async def from_settings(cls, settings: EduMediaSettings) -> "AsyncpgDocumentStore":
        """Create a pool from settings and return an initialized store."""
        if not settings.database_url:
            raise DocumentStoreError("database_url is not configured")
        pool = await asyncpg.create_pool(
            settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
        )
        store = cls(pool, table=settings.documents_table)
        await store.initialize()
        return store

    async def initialize(self) -> None:
        """Create the documents table and unique indexes if missing."""
        async with self.pool.acquire() as conn:
            await conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self.table} (
                    collection TEXT NOT NULL,
                    id TEXT NOT NULL,
                    data JSONB NOT NULL,
                    PRIMARY KEY (collection, id)
                )
                """
            )
            for collection, keys in self.unique_fields.items():
                for key in keys:
                    fields = [_validate_identifier(f) for f in key]
                    index_name = f"{self.table}_{collection}_{'_'.join(fields)}_uq"
                    expressions = ", ".join(f"(data->>'{f}')" for f in fields)
                    not_null = " AND ".join(f"data ? '{f}' AND data->>'{f}' IS NOT NULL" for f in fields)
                    await conn.execute(
                        f"""
                        CREATE UNIQUE INDEX IF NOT EXISTS {index_name}
                        ON {self.table} ({expressions})
                        WHERE collection = '{_validate_identifier(collection)}' AND {not_null}
                        """
                    )
        logger.info(f"Document table {self.table} initialized")

    @staticmethod
    def _decode(record: Optional[asyncpg.Record]) -> Optional[Dict[str, Any]]:
        if record is None:
            return None
        data = record["data"]
        document = json.loads(data) if isinstance(data, str) else dict(data)
        document["id"] = record["id"]
        return document

    async def get(self, collection: str, document_id: str) -> Optional[Dict[str, Any]]:
        async with self.pool.acquire() as conn:
            record = await conn.fetchrow(
                f"SELECT id, data FROM {self.table} WHERE collection = $1 AND id = $2",
                collection,
                document_id,
            )
        return self._decode(record)

    async def query(
        self,
        collection: str,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        filters = dict(filters or {})
        # Absent keys must match None filters, which jsonb containment cannot express
        containment = {k: v for k, v in filters.items() if v is not None}
        async with self.pool.acquire() as conn:
            records = await conn.fetch(
                f"SELECT id, data FROM {self.table} "
                f"WHERE collection = $1 AND data @> $2::jsonb ORDER BY id",
                collection,
                json.dumps(containment),
            )

        documents = [self._decode(record) for record in records]
        return [
            document for document in documents
            if all(document.get(k) == v for k, v in filters.items())
        ]

    async def insert(self, collection: str, document: Mapping[str, Any]) -> str:
        document_id = generate_uuid_v7()
        payload = {k: v for k, v in document.items() if k != "id"}
        try:
            async with self.pool.acquire() as conn:
                await conn.execute(
                    f"INSERT INTO {self.table} (collection, id, data) VALUES ($1, $2, $3::jsonb)",
                    collection,
                    document_id,
                    json.dumps(payload),
                )
        except asyncpg.UniqueViolationError as e:
            keys = self.unique_fields.get(collection, [])
            fields = {f: payload.get(f) for key in keys for f in key}
            raise DuplicateKeyError(collection, fields) from e
        return document_id

    async def patch(
        self,
        collection: str,
        document_id: str,
        fields: Mapping[str, Any],
        expected: Optional[Mapping[str, Any]] = None,
    ) -> None:
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                record = await conn.fetchrow(
                    f"SELECT id, data FROM {self.table} "
                    f"WHERE collection = $1 AND id = $2 FOR UPDATE",
                    collection,
                    document_id,
                )
                current = self._decode(record)
                if current is None:
                    raise EntityNotFoundError(collection, document_id)
                if expected and any(current.get(k) != v for k, v in expected.items()):
                    raise ConcurrentModificationError(document_id, dict(expected))

                current.pop("id", None)
                current.update({k: v for k, v in fields.items() if k != "id"})
                try:
                    await conn.execute(
                        f"UPDATE {self.table} SET data = $3::jsonb WHERE collection = $1 AND id = $2",
                        collection,
                        document_id,
                        json.dumps(current),
                    )
                except asyncpg.UniqueViolationError as e:
                    raise DuplicateKeyError(collection, dict(fields)) from e

    async def delete(self, collection: str, document_id: str) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute(
                f"DELETE FROM {self.table} WHERE collection = $1 AND id = $2",
                collection,
                document_id,
            )

    async def close(self) -> None:
        await self.pool.close()
