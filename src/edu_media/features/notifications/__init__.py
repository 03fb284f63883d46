"""Notifications feature: templated email/SMS dispatched through the job scheduler."""

from .templates import EmailMessage
from .services import NotificationDispatcher

__all__ = ["EmailMessage", "NotificationDispatcher"]
