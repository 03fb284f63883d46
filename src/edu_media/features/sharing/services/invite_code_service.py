"""Staff invite codes."""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Union

from ....config.constants import Collections, STAFF_INVITE_ROLES, UserRole
from ....config.settings import EduMediaSettings, get_settings
from ....core.exceptions import EntityNotFoundError, InvalidStateError, NotAuthenticatedError, ValidationError
from ....core.value_objects import UserId
from ....protocols import DocumentStore
from ....utils.error_handling import service_operation
from ....utils.timezone import ensure_utc, to_timestamp_ms, utc_now
from ....utils.validation import parse_enum
from ...permissions import Permission, require_permission
from ...users.entities.user_profile import UserProfile
from ...users.repositories.profile_repository import ProfileRepository
from ...users.services.user_service import UserService
from ..entities.tokens import CodeValidation, InviteCode
from .code_generator import CodeGenerator

logger = logging.getLogger(__name__)


def _normalize_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


class InviteCodeService:
    """Issues reusable role-scoped invite codes for staff sign-up."""

    def __init__(
        self,
        store: DocumentStore,
        codes: CodeGenerator,
        profiles: ProfileRepository,
        users: UserService,
        settings: Optional[EduMediaSettings] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.codes = codes
        self.profiles = profiles
        self.users = users
        self.settings = settings or get_settings()
        self.clock = clock

    async def _authorize(self, actor_id: Optional[str]) -> Optional[UserProfile]:
        actor = await self.profiles.get_actor(actor_id)
        require_permission(actor, Permission.GENERATE_INVITE_CODES)
        return actor

    async def _find(self, code: str) -> Optional[InviteCode]:
        documents = await self.store.query(Collections.INVITE_CODES, {"code": _normalize_code(code)})
        return InviteCode.from_document(documents[0]) if documents else None

    async def _get(self, invite_code_id: str) -> InviteCode:
        document = await self.store.get(Collections.INVITE_CODES, invite_code_id)
        if document is None:
            raise EntityNotFoundError("InviteCode", invite_code_id)
        return InviteCode.from_document(document)

    @service_operation("create invite code", log_level=logging.INFO)
    async def create(
        self,
        actor_id: Optional[str],
        role: Union[UserRole, str],
        expires_at: Optional[datetime] = None,
    ) -> InviteCode:
        """Issue a new code for a staff role; admin codes need ``promote_to_admin``."""
        actor = await self._authorize(actor_id)
        role = parse_enum(UserRole, role, "role")
        if role not in STAFF_INVITE_ROLES:
            raise ValidationError(f"Invite codes cannot grant the '{role.value}' role", field="role")
        if role is UserRole.ADMIN:
            require_permission(actor, Permission.PROMOTE_TO_ADMIN)

        now = self.clock()
        invite = InviteCode(
            code="",
            role=role,
            created_by=actor_id,
            expires_at=ensure_utc(expires_at) if expires_at else None,
            created_at=now,
        )

        def build(code: str):
            invite.code = code
            return invite.to_document()

        invite.id, invite.code = await self.codes.insert_with_unique_code(
            Collections.INVITE_CODES,
            "code",
            self.settings.invite_code_charset,
            self.settings.invite_code_length,
            build,
        )
        logger.info(f"Invite code {invite.id} for role {role.value} created by {actor_id}")
        return invite

    async def validate(self, code: Optional[str]) -> CodeValidation:
        """Check a code without consuming it. Lookup is case-insensitive."""
        invite = await self._find(code)
        if invite is None:
            return CodeValidation(False, "Invalid invite code")
        if not invite.is_active:
            return CodeValidation(False, "This invite code has been deactivated")
        if invite.is_expired_at(self.clock()):
            return CodeValidation(False, "This invite code has expired")
        return CodeValidation(True, role=invite.role)

    async def list(self, actor_id: Optional[str]) -> List[InviteCode]:
        """All invite codes, newest first."""
        await self._authorize(actor_id)
        invites = [InviteCode.from_document(doc) for doc in await self.store.query(Collections.INVITE_CODES)]
        return sorted(invites, key=lambda i: to_timestamp_ms(i.created_at) or 0, reverse=True)

    async def _set_active(self, actor_id: Optional[str], invite_code_id: str, is_active: bool) -> InviteCode:
        actor = await self._authorize(actor_id)
        invite = await self._get(invite_code_id)
        if invite.role is UserRole.ADMIN:
            require_permission(actor, Permission.PROMOTE_TO_ADMIN)
        await self.store.patch(Collections.INVITE_CODES, invite.id, {"is_active": is_active})
        invite.is_active = is_active
        logger.info(f"Invite code {invite.id} {'reactivated' if is_active else 'deactivated'} by {actor_id}")
        return invite

    @service_operation("deactivate invite code")
    async def deactivate(self, actor_id: Optional[str], invite_code_id: str) -> InviteCode:
        return await self._set_active(actor_id, invite_code_id, False)

    @service_operation("reactivate invite code")
    async def reactivate(self, actor_id: Optional[str], invite_code_id: str) -> InviteCode:
        return await self._set_active(actor_id, invite_code_id, True)

    @service_operation("redeem invite code", log_level=logging.INFO)
    async def redeem(
        self,
        user_id: Optional[str],
        code: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> UserProfile:
        """Give the signing-up user the code's role. The code stays usable."""
        if not user_id:
            raise NotAuthenticatedError()
        user_id = UserId.parse(user_id)
        invite = await self._find(code)
        if invite is None:
            raise EntityNotFoundError("InviteCode", _normalize_code(code))
        validation = await self.validate(invite.code)
        if not validation.valid:
            raise InvalidStateError(validation.message)
        return await self.users.assign_role_from_invite(
            user_id,
            invite.role,
            invited_by=invite.created_by,
            email=email,
            first_name=first_name,
            last_name=last_name,
        )
