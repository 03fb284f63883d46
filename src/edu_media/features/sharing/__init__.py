"""Sharing feature: invite codes, client invites and third-party share links."""

from .entities import InviteCode, ClientInvite, ContentShare, CodeValidation, SharedContentView

__all__ = ["InviteCode", "ClientInvite", "ContentShare", "CodeValidation", "SharedContentView"]
