"""Content recommendations from professionals to clients and parents."""

import logging
from datetime import datetime
from typing import Any, Callable, List, Mapping, Optional, Union

from ....config.constants import Collections, PricingTarget
from ....core.exceptions import EntityNotFoundError, PermissionDeniedError
from ....core.value_objects import RecommendationId
from ....protocols import DocumentStore
from ....utils.error_handling import service_operation
from ....utils.timezone import to_timestamp_ms, utc_now
from ....utils.validation import parse_model
from ...commerce.services.order_service import OrderService
from ...content.repositories.content_repository import ContentRepository
from ...notifications.services.dispatcher import NotificationDispatcher
from ...permissions import Permission, require_permission
from ...users.repositories.profile_repository import ProfileRepository
from ..entities.recommendation import ContentRecommendation, RecommendedContent
from ..models.requests import CreateRecommendationRequest

logger = logging.getLogger(__name__)


class RecommendationService:
    """Creates recommendations and serves them to recipients.

    Recipients are matched by user id once known, otherwise by email, so a
    recommendation can reach someone who signs up later.
    """

    def __init__(
        self,
        store: DocumentStore,
        contents: ContentRepository,
        profiles: ProfileRepository,
        orders: Optional[OrderService] = None,
        notifications: Optional[NotificationDispatcher] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.contents = contents
        self.profiles = profiles
        self.orders = orders
        self.notifications = notifications
        self.clock = clock

    async def _get(self, recommendation_id: str) -> ContentRecommendation:
        document = await self.store.get(
            Collections.CONTENT_RECOMMENDATIONS, RecommendationId.parse(recommendation_id)
        )
        if document is None:
            raise EntityNotFoundError("Recommendation", recommendation_id)
        return ContentRecommendation.from_document(document)

    async def _query(self, **filters) -> List[ContentRecommendation]:
        documents = await self.store.query(Collections.CONTENT_RECOMMENDATIONS, filters)
        recommendations = [ContentRecommendation.from_document(doc) for doc in documents]
        return sorted(recommendations, key=lambda r: to_timestamp_ms(r.created_at) or 0, reverse=True)

    @service_operation("recommend content", log_level=logging.INFO)
    async def create_recommendation(
        self,
        actor_id: Optional[str],
        data: Union[CreateRecommendationRequest, Mapping[str, Any]],
    ) -> ContentRecommendation:
        """Recommend a content item to an email address and notify it.

        Raises:
            PermissionDeniedError: the actor lacks ``recommend_content``
            EntityNotFoundError: the content does not exist
            ValidationError: malformed recipient email or message
        """
        actor = await self.profiles.get_actor(actor_id)
        require_permission(actor, Permission.RECOMMEND_CONTENT)
        request = parse_model(CreateRecommendationRequest, data)
        content = await self.contents.get(request.content_id)

        recipient = await self.profiles.get_by_email(request.recipient_email)
        recommendation = ContentRecommendation(
            content_id=content.id,
            recommended_by=actor_id,
            recipient_email=request.recipient_email,
            recipient_user_id=recipient.user_id if recipient else None,
            message=request.message,
            created_at=self.clock(),
        )
        recommendation.id = await self.store.insert(
            Collections.CONTENT_RECOMMENDATIONS, recommendation.to_document()
        )
        logger.info(f"{actor_id} recommended content {content.id} to {request.recipient_email}")

        if self.notifications is not None:
            await self.notifications.notify_content_recommended(
                recipient_email=request.recipient_email,
                recipient_name=recipient.first_name if recipient else None,
                recommender_name=actor.display_name if actor else "Someone",
                content_title=content.title,
                message=request.message,
            )
        return recommendation

    async def list_my_recommendations(self, actor_id: Optional[str]) -> List[RecommendedContent]:
        """Active recommendations addressed to the actor, newest first.

        Recommendations whose content has since been deleted are skipped.
        """
        actor = await self.profiles.get_actor(actor_id)
        email = actor.email if actor else None
        found = {r.id: r for r in await self._query(recipient_user_id=actor_id, is_active=True)}
        if email:
            for recommendation in await self._query(recipient_email=email, is_active=True):
                found.setdefault(recommendation.id, recommendation)

        result = []
        for recommendation in sorted(
            found.values(), key=lambda r: to_timestamp_ms(r.created_at) or 0, reverse=True
        ):
            content = await self.contents.find(recommendation.content_id)
            if content is None:
                continue
            recommender = await self.profiles.get_by_user_id(recommendation.recommended_by)
            has_purchased = False
            if self.orders is not None:
                has_purchased = await self.orders.has_purchased_access(
                    actor_id, PricingTarget.CONTENT, content.id
                )
            result.append(RecommendedContent(
                recommendation=recommendation,
                content=content,
                recommender_name=recommender.display_name if recommender else "Unknown",
                has_purchased=has_purchased,
            ))
        return result

    async def list_recommendations_made(self, actor_id: Optional[str]) -> List[ContentRecommendation]:
        actor = await self.profiles.get_actor(actor_id)
        require_permission(actor, Permission.RECOMMEND_CONTENT)
        return await self._query(recommended_by=actor_id)

    async def mark_viewed(self, actor_id: Optional[str], recommendation_id: str) -> ContentRecommendation:
        """Record that the recipient opened a recommendation.

        Also links the recommendation to the recipient's user id.
        """
        actor = await self.profiles.get_actor(actor_id)
        recommendation = await self._get(recommendation_id)
        if not recommendation.is_addressed_to(actor_id, actor.email if actor else None):
            raise PermissionDeniedError("Not authorized")
        await self.store.patch(
            Collections.CONTENT_RECOMMENDATIONS,
            recommendation.id,
            {"viewed_at": to_timestamp_ms(self.clock()), "recipient_user_id": actor_id},
        )
        return await self._get(recommendation.id)

    @service_operation("delete recommendation")
    async def delete_recommendation(self, actor_id: Optional[str], recommendation_id: str) -> None:
        """Deactivate a recommendation; only its author may do this."""
        await self.profiles.get_actor(actor_id)
        recommendation = await self._get(recommendation_id)
        if recommendation.recommended_by != actor_id:
            raise PermissionDeniedError("Not authorized")
        await self.store.patch(Collections.CONTENT_RECOMMENDATIONS, recommendation.id, {"is_active": False})
