"""Pytest configuration and fixtures for edu-media-commons tests."""

import pytest
import pytest_asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

from edu_media.config.constants import UserRole
from edu_media.config.settings import EduMediaSettings
from edu_media.features.users.entities.user_profile import UserProfile
from edu_media.infrastructure.document_store.memory import InMemoryDocumentStore
from edu_media.infrastructure.scheduling.inline_scheduler import InlineJobScheduler
from edu_media.platform import EduMediaPlatform


class FrozenClock:
    """Clock returning a fixed instant until advanced."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    """Clock frozen at a whole second so epoch-ms round trips are exact."""
    return FrozenClock(datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def settings():
    """Settings isolated from any local .env file."""
    return EduMediaSettings(
        _env_file=None,
        environment="testing",
        site_url="https://media.example.org",
        organization_name="Test Academy",
    )


@pytest.fixture
def store():
    """Fresh in-memory document store."""
    return InMemoryDocumentStore()


@pytest.fixture
def mock_notifier():
    """Mock email/SMS notification service."""
    notifier = AsyncMock()
    notifier.send_email = AsyncMock(return_value=None)
    notifier.send_sms = AsyncMock(return_value=None)
    return notifier


@pytest.fixture
def mock_blob_store():
    """Mock blob store handing out CDN URLs."""
    blobs = AsyncMock()
    blobs.get_url = AsyncMock(side_effect=lambda ref: f"https://cdn.example.org/{ref}")
    blobs.generate_upload_url = AsyncMock(return_value="https://upload.example.org/slot-1")
    return blobs


@pytest.fixture
def scheduler():
    """Scheduler running jobs on the test's event loop."""
    return InlineJobScheduler()


@pytest.fixture
def platform(store, mock_notifier, scheduler, mock_blob_store, settings, clock):
    """Fully wired platform over the in-memory store."""
    return EduMediaPlatform(
        store,
        mock_notifier,
        scheduler=scheduler,
        blobs=mock_blob_store,
        settings=settings,
        clock=clock,
    )


@pytest.fixture
def make_profile(platform, clock):
    """Factory inserting a profile straight into the repository."""
    async def _make(user_id: str, role: UserRole, **fields) -> UserProfile:
        profile = UserProfile(user_id=user_id, role=role, created_at=clock(), **fields)
        return await platform.profiles.create(profile)
    return _make


@pytest_asyncio.fixture
async def owner(make_profile):
    """The single owner profile."""
    return await make_profile("user-owner", UserRole.OWNER, first_name="Olive", email="olive@example.org")


@pytest_asyncio.fixture
async def admin(make_profile):
    """Admin profile."""
    return await make_profile("user-admin", UserRole.ADMIN, first_name="Ada", email="ada@example.org")


@pytest_asyncio.fixture
async def editor(make_profile):
    """Editor profile."""
    return await make_profile("user-editor", UserRole.EDITOR, first_name="Ed", email="ed@example.org")


@pytest_asyncio.fixture
async def contributor(make_profile):
    """Contributor profile."""
    return await make_profile(
        "user-contributor", UserRole.CONTRIBUTOR, first_name="Cora", last_name="Tor", email="cora@example.org"
    )


@pytest_asyncio.fixture
async def client_user(make_profile):
    """Client profile."""
    return await make_profile("user-client", UserRole.CLIENT, first_name="Cliff", email="cliff@example.org")


@pytest_asyncio.fixture
async def parent_user(make_profile):
    """Parent profile."""
    return await make_profile("user-parent", UserRole.PARENT, first_name="Pat", email="pat@example.org")


@pytest.fixture
def make_content(platform, contributor, editor):
    """Factory creating content as the contributor, published by the editor unless told otherwise."""
    async def _make(published: bool = True, **fields):
        request = {"title": "Fractions for beginners", "type": "video", "file_ref": "videos/fractions.mp4"}
        request.update(fields)
        content = await platform.content.create_content(contributor.user_id, request)
        if published:
            await platform.content.submit_for_review(contributor.user_id, content.id)
            content = await platform.content.approve(editor.user_id, content.id)
        return content
    return _make
