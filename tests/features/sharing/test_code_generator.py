"""Tests for unique code issuance."""

import pytest

from edu_media.core.exceptions import CodeSpaceExhaustedError, DuplicateKeyError
from edu_media.features.sharing.services.code_generator import CodeGenerator
from edu_media.infrastructure.document_store.memory import InMemoryDocumentStore


def scripted_source(*codes):
    """Source returning ``codes`` in order, ignoring charset and length."""
    remaining = list(codes)

    def source(charset, length):
        return remaining.pop(0)
    return source


class TestCodeGenerator:
    """Test collision handling and the attempt cap."""

    @pytest.mark.asyncio
    async def test_collision_triggers_redraw(self):
        """Test a taken code is skipped in favour of the next draw."""
        store = InMemoryDocumentStore(unique_fields={"codes": [("code",)]})
        await store.insert("codes", {"code": "AAAA"})
        generator = CodeGenerator(store, max_attempts=3, source=scripted_source("AAAA", "BBBB"))

        document_id, code = await generator.insert_with_unique_code(
            "codes", "code", "AB", 4, lambda c: {"code": c}
        )

        assert code == "BBBB"
        assert (await store.get("codes", document_id))["code"] == "BBBB"

    @pytest.mark.asyncio
    async def test_exhaustion_raises(self):
        """Test every draw colliding raises CodeSpaceExhaustedError."""
        store = InMemoryDocumentStore(unique_fields={"codes": [("code",)]})
        await store.insert("codes", {"code": "AAAA"})
        generator = CodeGenerator(store, max_attempts=2, source=scripted_source("AAAA", "AAAA"))

        with pytest.raises(CodeSpaceExhaustedError) as exc_info:
            await generator.insert_with_unique_code("codes", "code", "A", 4, lambda c: {"code": c})

        assert exc_info.value.details["attempts"] == 2
        assert store.count("codes") == 1

    @pytest.mark.asyncio
    async def test_insert_race_redraws(self, mocker):
        """Test a unique-key violation on insert is treated as a collision."""
        store = InMemoryDocumentStore(unique_fields={"codes": [("code",)]})
        mocker.patch.object(store, "insert", side_effect=[DuplicateKeyError("codes", {"code": "AAAA"}), "doc-2"])
        generator = CodeGenerator(store, max_attempts=3, source=scripted_source("AAAA", "CCCC"))

        document_id, code = await generator.insert_with_unique_code("codes", "code", "ABC", 4, lambda c: {"code": c})

        assert (document_id, code) == ("doc-2", "CCCC")
        assert store.insert.await_count == 2

    @pytest.mark.asyncio
    async def test_generate_unique(self):
        """Test generating a code without inserting it."""
        store = InMemoryDocumentStore(unique_fields={})
        await store.insert("shares", {"token": "x1"})
        generator = CodeGenerator(store, source=scripted_source("x1", "x2"))
        assert await generator.generate_unique("shares", "token", "x12", 2) == "x2"

    def test_rejects_zero_attempts(self):
        """Test the attempt cap must be positive."""
        with pytest.raises(ValueError):
            CodeGenerator(InMemoryDocumentStore(), max_attempts=0)
