"""Tests for the content version store."""

import pytest

from edu_media.config.constants import Collections, ContentStatus
from edu_media.core.exceptions import (
    ConflictError,
    EntityNotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from edu_media.utils.timezone import to_timestamp_ms


class TestVersionHistory:
    """Test snapshot numbering and history reads."""

    @pytest.mark.asyncio
    async def test_versions_are_contiguous(self, platform, contributor):
        """Test every edit appends the next version number."""
        content = await platform.content.create_content(contributor.user_id, {"title": "v1", "type": "video"})
        for title in ("v2", "v3", "v4"):
            await platform.content.update_content(contributor.user_id, content.id, {"title": title})

        history = await platform.versions.get_history(contributor.user_id, content.id)
        assert [v.version_number for v in history] == [4, 3, 2, 1]
        assert (await platform.contents.get(content.id)).current_version == 4

    @pytest.mark.asyncio
    async def test_client_cannot_read_history(self, platform, client_user, make_content):
        """Test history needs edit or review rights."""
        content = await make_content()
        with pytest.raises(PermissionDeniedError):
            await platform.versions.get_history(client_user.user_id, content.id)

    @pytest.mark.asyncio
    async def test_get_version_validation(self, platform, contributor):
        """Test bad and unknown version numbers."""
        content = await platform.content.create_content(contributor.user_id, {"title": "Only", "type": "video"})
        with pytest.raises(ValidationError):
            await platform.versions.get_version(contributor.user_id, content.id, 0)
        with pytest.raises(EntityNotFoundError):
            await platform.versions.get_version(contributor.user_id, content.id, 7)

    @pytest.mark.asyncio
    async def test_snapshot_race_is_a_conflict(self, platform, store, clock, contributor):
        """Test losing the version-number race raises ConflictError."""
        content = await platform.content.create_content(contributor.user_id, {"title": "Racy", "type": "video"})
        await store.insert(Collections.CONTENT_VERSIONS, {
            "content_id": content.id,
            "version_number": 3,
            "created_by": contributor.user_id,
            "created_at": to_timestamp_ms(clock()),
        })

        with pytest.raises(ConflictError):
            await platform.versions.snapshot(content, contributor.user_id)


class TestRevert:
    """Test reverting to an earlier version."""

    @pytest.mark.asyncio
    async def test_revert_round_trip(self, platform, contributor):
        """Test reverting restores fields and appends two versions."""
        content = await platform.content.create_content(
            contributor.user_id, {"title": "Original", "type": "video", "tags": ["a"]}
        )
        await platform.content.update_content(contributor.user_id, content.id, {"title": "Changed", "tags": ["b"]})

        result = await platform.versions.revert(contributor.user_id, content.id, 1)

        assert result.pre_revert_version == 3
        assert result.version_number == 4
        reverted = await platform.contents.get(content.id)
        assert reverted.title == "Original"
        assert reverted.tags == ["a"]
        assert reverted.current_version == 4

        pre_revert = await platform.versions.get_version(contributor.user_id, content.id, 3)
        assert pre_revert.values["title"] == "Changed"
        latest = await platform.versions.get_version(contributor.user_id, content.id, 4)
        assert latest.values["title"] == "Original"
        assert latest.change_description == "Reverted to version 1"

    @pytest.mark.asyncio
    async def test_revert_keeps_live_status(self, platform, editor, make_content):
        """Test reverting published content leaves it published."""
        content = await make_content(title="Published title")
        await platform.content.update_content(editor.user_id, content.id, {"title": "Edited live"})

        await platform.versions.revert(editor.user_id, content.id, 1)

        reverted = await platform.contents.get(content.id)
        assert reverted.title == "Published title"
        assert reverted.status is ContentStatus.PUBLISHED

    @pytest.mark.asyncio
    async def test_revert_needs_edit_rights(self, platform, contributor, make_content):
        """Test a contributor cannot revert their published content."""
        content = await make_content()
        with pytest.raises(PermissionDeniedError):
            await platform.versions.revert(contributor.user_id, content.id, 1)

    @pytest.mark.asyncio
    async def test_revert_to_missing_version(self, platform, contributor):
        """Test reverting to a version that does not exist writes nothing."""
        content = await platform.content.create_content(contributor.user_id, {"title": "Solo", "type": "video"})
        with pytest.raises(EntityNotFoundError):
            await platform.versions.revert(contributor.user_id, content.id, 5)
        assert len(await platform.versions.get_history(contributor.user_id, content.id)) == 1

    @pytest.mark.asyncio
    async def test_reverting_a_revert_restores_values(self, platform, contributor):
        """Test undoing a revert brings back the pre-revert field values."""
        content = await platform.content.create_content(contributor.user_id, {"title": "First", "type": "video"})
        await platform.content.update_content(
            contributor.user_id, content.id, {"title": "Second", "description": "More detail"}
        )
        before = (await platform.contents.get(content.id)).versioned_values()

        result = await platform.versions.revert(contributor.user_id, content.id, 1)
        await platform.versions.revert(contributor.user_id, content.id, result.pre_revert_version)

        after = await platform.contents.get(content.id)
        assert after.versioned_values() == before
        assert after.current_version == 6
