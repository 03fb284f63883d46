"""Content view tracking and view analytics."""

import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional

from ....config.constants import Collections
from ....core.exceptions import ValidationError
from ....core.value_objects import ContentId
from ....protocols import DocumentStore
from ....utils.timezone import utc_now
from ....utils.validation import require_text
from ...content.repositories.content_repository import ContentRepository
from ...permissions import Permission, require_permission
from ...users.repositories.profile_repository import ProfileRepository
from ..entities.content_view import ContentAnalytics, ContentView, ContentViewSummary, ViewerStats

logger = logging.getLogger(__name__)


def _validate_time_spent(time_spent: Optional[int]) -> Optional[int]:
    if time_spent is None:
        return None
    if isinstance(time_spent, bool) or not isinstance(time_spent, int) or time_spent < 0:
        raise ValidationError("time_spent must be a non-negative number of seconds", field="time_spent")
    return time_spent


def summarize(content_id: str, views: Iterable[ContentView], summary: Optional[ContentViewSummary] = None):
    """Fill the headline numbers of ``summary`` from ``views``."""
    views = list(views)
    summary = summary or ContentViewSummary(content_id=content_id)
    summary.total_views = len(views)
    summary.unique_sessions = len({v.session_id for v in views})
    summary.unique_users = len({v.user_id for v in views if v.user_id})
    timed = [v.time_spent for v in views if v.time_spent is not None]
    summary.average_time_spent = round(sum(timed) / len(timed)) if timed else 0
    return summary


class AnalyticsService:
    """Records views and reports on them.

    Tracking is open to anonymous viewers; reports need ``view_analytics``.
    """

    def __init__(
        self,
        store: DocumentStore,
        contents: ContentRepository,
        profiles: ProfileRepository,
        recent_days: int = 30,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.contents = contents
        self.profiles = profiles
        self.recent_days = recent_days
        self.clock = clock

    async def _views(self, content_id: Optional[str] = None) -> List[ContentView]:
        filters = {"content_id": content_id} if content_id else None
        documents = await self.store.query(Collections.CONTENT_VIEWS, filters)
        return [ContentView.from_document(doc) for doc in documents]

    async def track_view(
        self,
        content_id: str,
        viewer_id: Optional[str],
        session_id: str,
        time_spent: Optional[int] = None,
    ) -> ContentView:
        """Record one view; ``viewer_id`` is None for anonymous viewers."""
        view = ContentView(
            content_id=ContentId.parse(content_id),
            session_id=require_text(session_id, "session_id"),
            viewed_at=self.clock(),
            user_id=viewer_id or None,
            time_spent=_validate_time_spent(time_spent),
        )
        view.id = await self.store.insert(Collections.CONTENT_VIEWS, view.to_document())
        logger.debug(f"View of {view.content_id} in session {view.session_id}")
        return view

    async def update_time_spent(self, content_id: str, session_id: str, time_spent: int) -> Optional[ContentView]:
        """Set the time spent on the session's latest view of the content, if any."""
        time_spent = _validate_time_spent(time_spent)
        documents = await self.store.query(
            Collections.CONTENT_VIEWS,
            {"content_id": ContentId.parse(content_id), "session_id": session_id},
        )
        if not documents:
            return None
        latest = max(documents, key=lambda doc: doc["viewed_at"])
        await self.store.patch(Collections.CONTENT_VIEWS, latest["id"], {"time_spent": time_spent})
        return ContentView.from_document({**latest, "time_spent": time_spent})

    async def get_content_analytics(self, actor_id: Optional[str], content_id: str) -> ContentAnalytics:
        """Totals, per-viewer breakdown and recent activity for one item."""
        actor = await self.profiles.get_actor(actor_id)
        require_permission(actor, Permission.VIEW_ANALYTICS)
        content = await self.contents.get(content_id)
        views = await self._views(content.id)

        report = summarize(content.id, views, ContentAnalytics(
            content_id=content.id,
            content_title=content.title,
            content_type=content.type,
        ))
        since = self.clock() - timedelta(days=self.recent_days)
        report.recent_views = sum(1 for v in views if v.viewed_at >= since)

        viewers: Dict[str, ViewerStats] = {}
        for view in views:
            if not view.user_id:
                continue
            stats = viewers.get(view.user_id)
            if stats is None:
                profile = await self.profiles.get_by_user_id(view.user_id)
                stats = viewers[view.user_id] = ViewerStats(
                    user_id=view.user_id,
                    user_name=profile.display_name if profile else "Unknown User",
                )
            stats.view_count += 1
            stats.total_time_spent += view.time_spent or 0
            if stats.last_viewed is None or view.viewed_at > stats.last_viewed:
                stats.last_viewed = view.viewed_at
        report.viewers = sorted(viewers.values(), key=lambda s: s.view_count, reverse=True)
        return report

    async def list_content_analytics(self, actor_id: Optional[str]) -> List[ContentViewSummary]:
        """Headline numbers for every content item, most viewed first."""
        actor = await self.profiles.get_actor(actor_id)
        require_permission(actor, Permission.VIEW_ANALYTICS)

        by_content: Dict[str, List[ContentView]] = {}
        for view in await self._views():
            by_content.setdefault(view.content_id, []).append(view)

        summaries = []
        for content in await self.contents.list():
            summaries.append(summarize(content.id, by_content.get(content.id, ()), ContentViewSummary(
                content_id=content.id,
                content_title=content.title,
                content_type=content.type,
            )))
        return sorted(summaries, key=lambda s: s.total_views, reverse=True)
