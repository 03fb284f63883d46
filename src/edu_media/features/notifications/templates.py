"""Message templates for outbound notifications.

Bodies are Jinja2 templates under ``email_templates/``; HTML templates are
autoescaped, so callers pass raw values. Each builder returns plain data;
delivery is the dispatcher's concern.
"""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

TEMPLATE_DIR = Path(__file__).parent / "email_templates"


@dataclass(frozen=True)
class EmailMessage:
    subject: str
    html: str


STATUS_MESSAGES = {
    "published": ("Content Published", "Your content has been approved and is now live."),
    "rejected": (
        "Content Needs Revision",
        "Your content has been reviewed and requires changes before it can be published.",
    ),
    "changes_requested": ("Changes Requested", "The reviewer has requested some changes to your content."),
    "review": ("Content Under Review", "Your content has been submitted and is now being reviewed."),
}


@lru_cache()
def get_environment() -> Environment:
    """Shared Jinja2 environment for notification templates."""
    return Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(["html", "xml"]),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render(template_name: str, **context: Any) -> str:
    return get_environment().get_template(template_name).render(**context)


def content_status_email(
    organization: str,
    author_name: str,
    content_title: str,
    new_status: str,
    reviewer_name: str,
    review_notes: Optional[str],
    site_url: str,
) -> EmailMessage:
    title, message = STATUS_MESSAGES.get(
        new_status,
        ("Content Status Updated", f"Your content status has been changed to {new_status}."),
    )
    return EmailMessage(
        subject=f'{title} - "{content_title}"',
        html=render(
            "content_status.html",
            organization=organization,
            title=title,
            message=message,
            author_name=author_name,
            content_title=content_title,
            reviewer_name=reviewer_name,
            review_notes=review_notes,
            link=site_url,
            link_label="View your content",
        ),
    )


def access_granted_email(
    organization: str,
    recipient_name: str,
    granter_name: str,
    content_title: str,
    site_url: str,
) -> EmailMessage:
    return EmailMessage(
        subject=f'You\'ve been given access to "{content_title}"',
        html=render(
            "access_granted.html",
            organization=organization,
            recipient_name=recipient_name,
            granter_name=granter_name,
            content_title=content_title,
            link=site_url,
            link_label="View content",
        ),
    )


def client_invite_email(
    organization: str,
    inviter_name: str,
    first_name: Optional[str],
    role: str,
    invite_code: str,
    message: Optional[str],
    site_url: str,
) -> EmailMessage:
    return EmailMessage(
        subject=f"{inviter_name} invited you to {organization}",
        html=render(
            "client_invite.html",
            organization=organization,
            inviter_name=inviter_name,
            first_name=first_name,
            role=role,
            invite_code=invite_code,
            message=message,
            link=f"{site_url}?clientInvite={invite_code}",
            link_label="Accept invitation",
        ),
    )


def client_invite_sms(organization: str, inviter_name: str, role: str, invite_code: str, site_url: str) -> str:
    return render(
        "client_invite_sms.txt",
        organization=organization,
        inviter_name=inviter_name,
        role=role,
        invite_code=invite_code,
        invite_url=f"{site_url}?clientInvite={invite_code}",
    ).strip()


def content_shared_email(
    organization: str,
    sharer_name: str,
    recipient_name: Optional[str],
    content_title: str,
    share_url: str,
    message: Optional[str],
) -> EmailMessage:
    return EmailMessage(
        subject=f'{sharer_name} shared "{content_title}" with you',
        html=render(
            "content_shared.html",
            organization=organization,
            sharer_name=sharer_name,
            recipient_name=recipient_name,
            content_title=content_title,
            message=message,
            link=share_url,
            link_label="View content",
        ),
    )


def purchase_request_decision_email(
    organization: str,
    requester_name: str,
    reviewer_name: str,
    target_title: str,
    approved: bool,
    review_notes: Optional[str],
    site_url: str,
) -> EmailMessage:
    decision = "approved" if approved else "denied"
    return EmailMessage(
        subject=f'Purchase request {decision} - "{target_title}"',
        html=render(
            "purchase_request_decision.html",
            organization=organization,
            decision=decision,
            requester_name=requester_name,
            reviewer_name=reviewer_name,
            target_title=target_title,
            review_notes=review_notes,
            link=site_url,
            link_label="Complete your purchase" if approved else "Browse content",
        ),
    )


def content_recommended_email(
    organization: str,
    recipient_name: str,
    recommender_name: str,
    content_title: str,
    message: Optional[str],
    site_url: str,
) -> EmailMessage:
    return EmailMessage(
        subject=f'{recommender_name} recommended "{content_title}"',
        html=render(
            "content_recommended.html",
            organization=organization,
            recipient_name=recipient_name,
            recommender_name=recommender_name,
            content_title=content_title,
            message=message,
            link=site_url,
            link_label="View content",
        ),
    )


def purchase_approved_sms(organization: str, target_title: str, site_url: str) -> str:
    return render(
        "purchase_approved_sms.txt",
        organization=organization,
        target_title=target_title,
        site_url=site_url,
    ).strip()
