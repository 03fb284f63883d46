"""Sharing services."""

from .code_generator import CodeGenerator
from .invite_code_service import InviteCodeService
from .client_invite_service import ClientInviteService
from .share_service import ShareService

__all__ = ["CodeGenerator", "InviteCodeService", "ClientInviteService", "ShareService"]
