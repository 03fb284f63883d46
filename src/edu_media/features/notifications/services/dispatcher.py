"""Notification dispatch.

Messages are handed to the job scheduler so business operations never wait
on delivery. Delivery failures are logged and never propagate: the operation
that triggered a notification has already succeeded.
"""

import logging
from datetime import timedelta
from typing import Any, Optional, Tuple

from ....config.settings import EduMediaSettings, get_settings
from ....protocols import JobScheduler, NotificationService
from .. import templates

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Schedules email and SMS delivery for domain events."""

    def __init__(
        self,
        notifier: NotificationService,
        scheduler: JobScheduler,
        settings: Optional[EduMediaSettings] = None,
    ):
        self.notifier = notifier
        self.scheduler = scheduler
        self.settings = settings or get_settings()

    # Delivery jobs

    async def _deliver_email(self, to: str, subject: str, html: str) -> None:
        try:
            await self.notifier.send_email(to=to, subject=subject, html=html)
            logger.info(f"Sent email '{subject}' to {to}")
        except Exception as e:
            logger.warning(f"Email delivery to {to} failed: {e}")

    async def _deliver_sms(self, to: str, body: str) -> None:
        try:
            await self.notifier.send_sms(to=to, body=body)
            logger.info(f"Sent SMS to {to}")
        except Exception as e:
            logger.warning(f"SMS delivery to {to} failed: {e}")

    async def _schedule(self, job: Any, **payload: Any) -> bool:
        try:
            await self.scheduler.run_after(timedelta(0), job, payload)
            return True
        except Exception as e:
            logger.warning(f"Could not schedule notification job {job.__name__}: {e}")
            return False

    async def send_email(self, to: Optional[str], message: templates.EmailMessage) -> bool:
        """Schedule an email; returns whether it was queued."""
        if not to:
            return False
        return await self._schedule(self._deliver_email, to=to, subject=message.subject, html=message.html)

    async def send_sms(self, to: Optional[str], body: str) -> bool:
        """Schedule an SMS; returns whether it was queued."""
        if not to:
            return False
        return await self._schedule(self._deliver_sms, to=to, body=body)

    # Domain notifications

    async def notify_content_status(
        self,
        author_email: Optional[str],
        author_name: str,
        content_title: str,
        new_status: str,
        reviewer_name: str,
        review_notes: Optional[str] = None,
    ) -> bool:
        message = templates.content_status_email(
            organization=self.settings.organization_name,
            author_name=author_name,
            content_title=content_title,
            new_status=new_status,
            reviewer_name=reviewer_name,
            review_notes=review_notes,
            site_url=self.settings.site_url,
        )
        return await self.send_email(author_email, message)

    async def notify_access_granted(
        self,
        recipient_email: Optional[str],
        recipient_name: str,
        granter_name: str,
        content_title: str,
    ) -> bool:
        message = templates.access_granted_email(
            organization=self.settings.organization_name,
            recipient_name=recipient_name,
            granter_name=granter_name,
            content_title=content_title,
            site_url=self.settings.site_url,
        )
        return await self.send_email(recipient_email, message)

    async def send_client_invite(
        self,
        email: Optional[str],
        phone_number: Optional[str],
        inviter_name: str,
        role: str,
        invite_code: str,
        first_name: Optional[str] = None,
        message: Optional[str] = None,
    ) -> Tuple[bool, bool]:
        """Send a client invite by email and/or SMS.

        Returns:
            (email_sent, sms_sent) flags for the invite record
        """
        email_sent = False
        sms_sent = False
        if email:
            email_sent = await self.send_email(email, templates.client_invite_email(
                organization=self.settings.organization_name,
                inviter_name=inviter_name,
                first_name=first_name,
                role=role,
                invite_code=invite_code,
                message=message,
                site_url=self.settings.site_url,
            ))
        if phone_number:
            sms_sent = await self.send_sms(phone_number, templates.client_invite_sms(
                organization=self.settings.organization_name,
                inviter_name=inviter_name,
                role=role,
                invite_code=invite_code,
                site_url=self.settings.site_url,
            ))
        return email_sent, sms_sent

    async def notify_content_shared(
        self,
        recipient_email: str,
        recipient_name: Optional[str],
        sharer_name: str,
        content_title: str,
        access_token: str,
        message: Optional[str] = None,
    ) -> bool:
        share_url = f"{self.settings.site_url}/share/{access_token}"
        return await self.send_email(recipient_email, templates.content_shared_email(
            organization=self.settings.organization_name,
            sharer_name=sharer_name,
            recipient_name=recipient_name,
            content_title=content_title,
            share_url=share_url,
            message=message,
        ))

    async def notify_purchase_request_decision(
        self,
        requester_email: Optional[str],
        requester_phone: Optional[str],
        requester_name: str,
        reviewer_name: str,
        target_title: str,
        approved: bool,
        review_notes: Optional[str] = None,
    ) -> Tuple[bool, bool]:
        """Tell a buyer how their purchase request was decided.

        Approvals also go out by SMS when a phone number is known.
        """
        email_sent = await self.send_email(requester_email, templates.purchase_request_decision_email(
            organization=self.settings.organization_name,
            requester_name=requester_name,
            reviewer_name=reviewer_name,
            target_title=target_title,
            approved=approved,
            review_notes=review_notes,
            site_url=self.settings.site_url,
        ))
        sms_sent = False
        if approved:
            sms_sent = await self.send_sms(requester_phone, templates.purchase_approved_sms(
                organization=self.settings.organization_name,
                target_title=target_title,
                site_url=self.settings.site_url,
            ))
        return email_sent, sms_sent

    async def notify_content_recommended(
        self,
        recipient_email: str,
        recipient_name: Optional[str],
        recommender_name: str,
        content_title: str,
        message: Optional[str] = None,
    ) -> bool:
        return await self.send_email(recipient_email, templates.content_recommended_email(
            organization=self.settings.organization_name,
            recipient_name=recipient_name or "there",
            recommender_name=recommender_name,
            content_title=content_title,
            message=message,
            site_url=self.settings.site_url,
        ))
