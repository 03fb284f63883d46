"""Tests for the in-memory document store."""

import pytest

from edu_media.core.exceptions import ConcurrentModificationError, DuplicateKeyError, EntityNotFoundError
from edu_media.infrastructure.document_store.memory import InMemoryDocumentStore


@pytest.fixture
def memory_store():
    return InMemoryDocumentStore(unique_fields={"items": [("content_id", "version_number")]})


class TestInMemoryDocumentStore:
    """Test storage semantics services depend on."""

    @pytest.mark.asyncio
    async def test_insert_assigns_id_and_copies(self, memory_store):
        """Test inserted documents get an id and are isolated from callers."""
        source = {"content_id": "c1", "version_number": 1, "values": {"title": "A"}}
        document_id = await memory_store.insert("items", source)
        source["values"]["title"] = "changed"

        stored = await memory_store.get("items", document_id)
        assert stored["id"] == document_id
        assert stored["values"]["title"] == "A"

        stored["values"]["title"] = "also changed"
        assert (await memory_store.get("items", document_id))["values"]["title"] == "A"

    @pytest.mark.asyncio
    async def test_unique_key(self, memory_store):
        """Test compound unique keys reject duplicates but ignore missing values."""
        await memory_store.insert("items", {"content_id": "c1", "version_number": 1})
        await memory_store.insert("items", {"content_id": "c1", "version_number": 2})
        await memory_store.insert("items", {"content_id": "c1"})
        await memory_store.insert("items", {"content_id": "c1"})

        with pytest.raises(DuplicateKeyError):
            await memory_store.insert("items", {"content_id": "c1", "version_number": 2})

    @pytest.mark.asyncio
    async def test_patch_checks_unique_key(self, memory_store):
        """Test a patch cannot move a document onto a taken key."""
        await memory_store.insert("items", {"content_id": "c1", "version_number": 1})
        second = await memory_store.insert("items", {"content_id": "c1", "version_number": 2})
        with pytest.raises(DuplicateKeyError):
            await memory_store.patch("items", second, {"version_number": 1})

    @pytest.mark.asyncio
    async def test_conditional_patch(self, memory_store):
        """Test expected values guard a patch."""
        document_id = await memory_store.insert("items", {"status": "draft"})

        await memory_store.patch("items", document_id, {"status": "review"}, expected={"status": "draft"})
        with pytest.raises(ConcurrentModificationError):
            await memory_store.patch("items", document_id, {"status": "published"}, expected={"status": "draft"})

        assert (await memory_store.get("items", document_id))["status"] == "review"

    @pytest.mark.asyncio
    async def test_expected_none_matches_missing_field(self, memory_store):
        """Test an expected None matches an absent field."""
        document_id = await memory_store.insert("items", {"code": "X"})
        await memory_store.patch("items", document_id, {"used_by": "u1"}, expected={"used_by": None})
        with pytest.raises(ConcurrentModificationError):
            await memory_store.patch("items", document_id, {"used_by": "u2"}, expected={"used_by": None})

    @pytest.mark.asyncio
    async def test_patch_missing_document(self, memory_store):
        """Test patching an unknown id raises EntityNotFoundError."""
        with pytest.raises(EntityNotFoundError):
            await memory_store.patch("items", "missing", {"a": 1})

    @pytest.mark.asyncio
    async def test_query_and_delete(self, memory_store):
        """Test equality filters and idempotent deletes."""
        keep = await memory_store.insert("items", {"kind": "a"})
        drop = await memory_store.insert("items", {"kind": "b"})

        assert [d["id"] for d in await memory_store.query("items", {"kind": "a"})] == [keep]
        await memory_store.delete("items", drop)
        await memory_store.delete("items", drop)

        assert memory_store.count("items") == 1
        assert len(await memory_store.query("items")) == 1
