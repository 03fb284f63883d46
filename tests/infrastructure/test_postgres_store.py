"""Tests for the asyncpg document store against a mocked pool."""

import json
import pytest
from unittest.mock import AsyncMock, MagicMock

import asyncpg

from edu_media.core.exceptions import ConcurrentModificationError, DuplicateKeyError, EntityNotFoundError
from edu_media.infrastructure.document_store.postgres import AsyncpgDocumentStore


@pytest.fixture
def connection():
    conn = AsyncMock()
    conn.transaction = MagicMock()
    return conn


@pytest.fixture
def pg_store(connection):
    pool = MagicMock()
    pool.acquire.return_value.__aenter__.return_value = connection
    return AsyncpgDocumentStore(pool, unique_fields={"invite_codes": [("code",)]})


def record(document_id, **data):
    return {"id": document_id, "data": json.dumps(data)}


class TestAsyncpgDocumentStore:
    """Test SQL-side behaviour without a database."""

    def test_rejects_unsafe_table_name(self):
        """Test table names are validated before use in SQL."""
        with pytest.raises(ValueError):
            AsyncpgDocumentStore(MagicMock(), table="documents; drop table x")

    @pytest.mark.asyncio
    async def test_get_decodes_document(self, pg_store, connection):
        """Test rows come back as documents carrying their id."""
        connection.fetchrow.return_value = record("d1", title="Fractions")
        assert await pg_store.get("content", "d1") == {"title": "Fractions", "id": "d1"}

        connection.fetchrow.return_value = None
        assert await pg_store.get("content", "missing") is None

    @pytest.mark.asyncio
    async def test_query_matches_missing_fields_as_none(self, pg_store, connection):
        """Test None filters are applied after the containment query."""
        connection.fetch.return_value = [
            record("a", code="X"),
            record("b", code="X", used_by="user-1"),
        ]

        documents = await pg_store.query("client_invites", {"code": "X", "used_by": None})

        assert [d["id"] for d in documents] == ["a"]
        assert connection.fetch.await_args.args[2] == json.dumps({"code": "X"})

    @pytest.mark.asyncio
    async def test_unique_violation_becomes_duplicate_key(self, pg_store, connection):
        """Test unique index violations surface as DuplicateKeyError."""
        connection.execute.side_effect = asyncpg.UniqueViolationError("duplicate key")
        with pytest.raises(DuplicateKeyError):
            await pg_store.insert("invite_codes", {"code": "ABCD1234"})

    @pytest.mark.asyncio
    async def test_conditional_patch_mismatch(self, pg_store, connection):
        """Test a stale expectation aborts the update."""
        connection.fetchrow.return_value = record("d1", status="review")

        with pytest.raises(ConcurrentModificationError):
            await pg_store.patch("content", "d1", {"status": "published"}, expected={"status": "draft"})
        connection.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_patch_merges_fields(self, pg_store, connection):
        """Test patches merge into the stored document."""
        connection.fetchrow.return_value = record("d1", status="draft", title="A")

        await pg_store.patch("content", "d1", {"status": "review"}, expected={"status": "draft"})

        written = json.loads(connection.execute.await_args.args[3])
        assert written == {"status": "review", "title": "A"}

    @pytest.mark.asyncio
    async def test_patch_missing_document(self, pg_store, connection):
        """Test patching an absent row raises EntityNotFoundError."""
        connection.fetchrow.return_value = None
        with pytest.raises(EntityNotFoundError):
            await pg_store.patch("content", "nope", {"a": 1})
