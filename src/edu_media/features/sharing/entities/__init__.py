"""Sharing entities."""

from .tokens import InviteCode, ClientInvite, ContentShare, CodeValidation, SharedContentView

__all__ = ["InviteCode", "ClientInvite", "ContentShare", "CodeValidation", "SharedContentView"]
