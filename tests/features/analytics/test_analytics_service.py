"""Tests for content view tracking and analytics."""

import pytest

from edu_media.config.constants import Collections, ContentType
from edu_media.core.exceptions import EntityNotFoundError, PermissionDeniedError, ValidationError


class TestTracking:
    """Test recording views."""

    @pytest.mark.asyncio
    async def test_track_anonymous_and_signed_in_views(self, platform, store, client_user, make_content):
        """Test views are stored with or without a viewer."""
        content = await make_content()
        anonymous = await platform.analytics.track_view(content.id, None, "session-a")
        signed_in = await platform.analytics.track_view(content.id, client_user.user_id, "session-b", time_spent=40)

        assert anonymous.user_id is None
        assert signed_in.time_spent == 40
        assert len(await store.query(Collections.CONTENT_VIEWS, {"content_id": content.id})) == 2

    @pytest.mark.asyncio
    async def test_tracking_validation(self, platform, make_content):
        """Test blank sessions and negative durations are rejected."""
        content = await make_content()
        with pytest.raises(ValidationError):
            await platform.analytics.track_view(content.id, None, "  ")
        with pytest.raises(ValidationError):
            await platform.analytics.track_view(content.id, None, "session-a", time_spent=-1)

    @pytest.mark.asyncio
    async def test_update_time_spent_targets_latest_view(self, platform, store, clock, make_content):
        """Test the session's most recent view gets the new duration."""
        content = await make_content()
        older = await platform.analytics.track_view(content.id, None, "session-a", time_spent=5)
        clock.advance(minutes=10)
        newer = await platform.analytics.track_view(content.id, None, "session-a")

        updated = await platform.analytics.update_time_spent(content.id, "session-a", 90)

        assert updated.id == newer.id
        assert updated.time_spent == 90
        assert (await store.get(Collections.CONTENT_VIEWS, older.id))["time_spent"] == 5
        assert (await store.get(Collections.CONTENT_VIEWS, newer.id))["time_spent"] == 90
        assert await platform.analytics.update_time_spent(content.id, "session-z", 10) is None


class TestReports:
    """Test analytics reports."""

    @pytest.mark.asyncio
    async def test_content_analytics(self, platform, clock, admin, client_user, parent_user, make_content):
        """Test totals, uniqueness, averages, viewers and the recent window."""
        content = await make_content(title="Phonics")
        await platform.analytics.track_view(content.id, client_user.user_id, "s1", time_spent=30)
        clock.advance(days=40)
        await platform.analytics.track_view(content.id, client_user.user_id, "s2", time_spent=62)
        await platform.analytics.track_view(content.id, parent_user.user_id, "s3")
        await platform.analytics.track_view(content.id, None, "s3")

        report = await platform.analytics.get_content_analytics(admin.user_id, content.id)

        assert report.content_title == "Phonics"
        assert report.content_type is ContentType.VIDEO
        assert report.total_views == 4
        assert report.unique_sessions == 3
        assert report.unique_users == 2
        assert report.average_time_spent == 46
        assert report.recent_views == 3
        top = report.viewers[0]
        assert (top.user_id, top.user_name, top.view_count, top.total_time_spent) == (
            client_user.user_id, "Cliff", 2, 92,
        )
        assert top.last_viewed == clock()

    @pytest.mark.asyncio
    async def test_overview_sorted_by_views(self, platform, admin, make_content):
        """Test the overview lists every item, most viewed first."""
        quiet = await make_content(title="Quiet")
        busy = await make_content(title="Busy")
        for session in ("a", "b", "c"):
            await platform.analytics.track_view(busy.id, None, session)
        await platform.analytics.track_view(quiet.id, None, "a")
        unseen = await make_content(title="Unseen")

        overview = await platform.analytics.list_content_analytics(admin.user_id)

        assert [s.content_title for s in overview] == ["Busy", "Quiet", "Unseen"]
        assert overview[-1].content_id == unseen.id
        assert overview[-1].average_time_spent == 0

    @pytest.mark.asyncio
    async def test_reports_require_view_analytics(self, platform, editor, admin, make_content):
        """Test editors cannot read analytics and unknown content is reported."""
        content = await make_content()
        with pytest.raises(PermissionDeniedError):
            await platform.analytics.get_content_analytics(editor.user_id, content.id)
        with pytest.raises(PermissionDeniedError):
            await platform.analytics.list_content_analytics(editor.user_id)
        with pytest.raises(EntityNotFoundError):
            await platform.analytics.get_content_analytics(admin.user_id, "missing-content")
