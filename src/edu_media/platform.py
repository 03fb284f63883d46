"""Composition root wiring every edu-media service from its collaborators."""

import logging
from datetime import datetime
from typing import Callable, Optional

from .config.settings import EduMediaSettings, get_settings
from .features.access.repositories.grant_repository import GrantRepository
from .features.access.services.access_resolver import AccessResolver
from .features.access.services.grant_service import GrantService
from .features.access.services.public_content_service import PublicContentService
from .features.analytics.services.analytics_service import AnalyticsService
from .features.bundles.services.bundle_service import BundleService
from .features.commerce.services.order_service import OrderService
from .features.commerce.services.pricing_service import PricingService
from .features.content.repositories.content_repository import ContentRepository
from .features.content.services.content_service import ContentService
from .features.notifications.services.dispatcher import NotificationDispatcher
from .features.purchase_requests.repositories.purchase_request_repository import PurchaseRequestRepository
from .features.purchase_requests.services.purchase_request_service import PurchaseRequestService
from .features.recommendations.services.recommendation_service import RecommendationService
from .features.sharing.services.client_invite_service import ClientInviteService
from .features.sharing.services.code_generator import CodeGenerator
from .features.sharing.services.invite_code_service import InviteCodeService
from .features.sharing.services.share_service import ShareService
from .features.users.entities.protocols import ProfileCache
from .features.users.repositories.profile_repository import ProfileRepository
from .features.users.services.user_group_service import UserGroupService
from .features.users.services.user_service import UserService
from .features.versions.services.version_store import VersionStore
from .infrastructure.cache.redis_profile_cache import RedisProfileCache
from .infrastructure.document_store.postgres import AsyncpgDocumentStore
from .infrastructure.scheduling.inline_scheduler import InlineJobScheduler
from .protocols import BlobStore, DocumentStore, JobScheduler, NotificationService
from .utils.timezone import utc_now

logger = logging.getLogger(__name__)


class EduMediaPlatform:
    """All services of the platform, sharing one store, clock and dispatcher."""

    def __init__(
        self,
        store: DocumentStore,
        notifier: NotificationService,
        scheduler: Optional[JobScheduler] = None,
        blobs: Optional[BlobStore] = None,
        profile_cache: Optional[ProfileCache] = None,
        settings: Optional[EduMediaSettings] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.settings = settings or get_settings()
        self.store = store
        self.scheduler = scheduler or InlineJobScheduler()
        self.blobs = blobs
        self.profile_cache = profile_cache
        self.clock = clock

        # Repositories
        self.profiles = ProfileRepository(store, cache=profile_cache)
        self.contents = ContentRepository(store)
        self.grants = GrantRepository(store)
        self.purchase_request_records = PurchaseRequestRepository(store)

        # Shared collaborators
        self.notifications = NotificationDispatcher(notifier, self.scheduler, self.settings)
        self.codes = CodeGenerator(store, max_attempts=self.settings.code_generation_max_attempts)

        # Users
        self.users = UserService(self.profiles, clock=clock)
        self.user_groups = UserGroupService(store, self.profiles, clock=clock)

        # Content
        self.versions = VersionStore(store, self.contents, self.profiles, clock=clock)
        self.content = ContentService(
            store,
            self.contents,
            self.profiles,
            self.versions,
            notifications=self.notifications,
            blobs=blobs,
            clock=clock,
        )
        self.bundles = BundleService(store, self.contents, self.profiles, clock=clock)

        # Access
        self.resolver = AccessResolver(self.contents, self.profiles, self.grants, clock=clock)
        self.access = GrantService(store, self.grants, self.profiles, self.notifications, clock=clock)
        self.viewer = PublicContentService(self.resolver, self.grants, blobs=blobs, clock=clock)

        # Commerce
        self.pricing = PricingService(store, self.profiles, clock=clock)
        self.orders = OrderService(
            store, self.pricing, self.grants, self.profiles,
            purchase_requests=self.purchase_request_records,
            require_purchase_approval=self.settings.require_purchase_approval,
            clock=clock,
        )
        self.purchase_requests = PurchaseRequestService(
            store, self.purchase_request_records, self.pricing, self.orders, self.profiles,
            notifications=self.notifications, clock=clock,
        )

        # Engagement
        self.recommendations = RecommendationService(
            store, self.contents, self.profiles,
            orders=self.orders, notifications=self.notifications, clock=clock,
        )
        self.analytics = AnalyticsService(
            store, self.contents, self.profiles,
            recent_days=self.settings.analytics_recent_days, clock=clock,
        )

        # Sharing
        self.invite_codes = InviteCodeService(
            store, self.codes, self.profiles, self.users, settings=self.settings, clock=clock
        )
        self.client_invites = ClientInviteService(
            store, self.codes, self.profiles, self.users, self.notifications,
            settings=self.settings, clock=clock,
        )
        self.shares = ShareService(
            store, self.codes, self.resolver, self.viewer, self.profiles,
            notifications=self.notifications, settings=self.settings, clock=clock,
        )

    @classmethod
    async def from_settings(
        cls,
        notifier: NotificationService,
        blobs: Optional[BlobStore] = None,
        settings: Optional[EduMediaSettings] = None,
    ) -> "EduMediaPlatform":
        """Build a platform on PostgreSQL, with a Redis profile cache when configured."""
        settings = settings or get_settings()
        store = await AsyncpgDocumentStore.from_settings(settings)
        cache = RedisProfileCache.from_settings(settings) if settings.redis_url else None
        logger.info(f"Platform '{settings.app_name}' started in {settings.environment}")
        return cls(store, notifier, blobs=blobs, profile_cache=cache, settings=settings)

    async def close(self) -> None:
        """Let pending notifications finish, then release connections."""
        if isinstance(self.scheduler, InlineJobScheduler):
            await self.scheduler.drain()
        if isinstance(self.profile_cache, RedisProfileCache):
            await self.profile_cache.close()
        if isinstance(self.store, AsyncpgDocumentStore):
            await self.store.close()
