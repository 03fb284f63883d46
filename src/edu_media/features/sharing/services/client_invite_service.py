"""Single-use client invites delivered by email and/or SMS."""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Union

from ....config.constants import AUDIENCE_ROLES, Collections, UserRole
from ....config.settings import EduMediaSettings, get_settings
from ....core.exceptions import (
    ConcurrentModificationError,
    DuplicateResourceError,
    EntityNotFoundError,
    InvalidStateError,
    NotAuthenticatedError,
    PermissionDeniedError,
    ValidationError,
)
from ....core.value_objects import UserId
from ....protocols import DocumentStore
from ....utils.error_handling import service_operation
from ....utils.timezone import ensure_utc, to_timestamp_ms, utc_now
from ....utils.validation import normalize_email, normalize_phone, parse_enum
from ...notifications.services.dispatcher import NotificationDispatcher
from ...permissions import Permission, effective_permissions, require_any_permission
from ...users.entities.user_profile import UserProfile
from ...users.repositories.profile_repository import ProfileRepository
from ...users.services.user_service import UserService
from ..entities.tokens import ClientInvite, CodeValidation
from .code_generator import CodeGenerator

logger = logging.getLogger(__name__)

RESEND_METHODS = ("email", "sms", "both")


class ClientInviteService:
    """Creates, delivers and consumes client invites.

    A client invite can be consumed exactly once. Consumption is a
    conditional write on ``used_by``, so of two concurrent attempts only one
    assigns a role.
    """

    def __init__(
        self,
        store: DocumentStore,
        codes: CodeGenerator,
        profiles: ProfileRepository,
        users: UserService,
        notifications: NotificationDispatcher,
        settings: Optional[EduMediaSettings] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.codes = codes
        self.profiles = profiles
        self.users = users
        self.notifications = notifications
        self.settings = settings or get_settings()
        self.clock = clock

    async def _find(self, code: Optional[str]) -> Optional[ClientInvite]:
        documents = await self.store.query(Collections.CLIENT_INVITES, {"code": (code or "").strip().upper()})
        return ClientInvite.from_document(documents[0]) if documents else None

    async def _get(self, invite_id: str) -> ClientInvite:
        document = await self.store.get(Collections.CLIENT_INVITES, invite_id)
        if document is None:
            raise EntityNotFoundError("ClientInvite", invite_id)
        return ClientInvite.from_document(document)

    async def _authorize_owner_or_manager(
        self,
        actor_id: Optional[str],
        invite: ClientInvite,
        action: str,
    ) -> Optional[UserProfile]:
        actor = await self.profiles.get_actor(actor_id)
        if invite.created_by != actor_id and Permission.MANAGE_USERS not in effective_permissions(actor):
            raise PermissionDeniedError(
                f"You don't have permission to {action} this invite",
                required=[Permission.MANAGE_USERS],
            )
        return actor

    async def _ensure_no_active_invite(self, field: str, value: Optional[str], label: str) -> None:
        if value is None:
            return
        for document in await self.store.query(Collections.CLIENT_INVITES, {field: value, "is_active": True}):
            if document.get("used_by") is None:
                raise DuplicateResourceError(f"An active invite already exists for this {label}")

    @service_operation("create client invite", log_level=logging.INFO)
    async def create(
        self,
        actor_id: Optional[str],
        role: Union[UserRole, str],
        email: Optional[str] = None,
        phone_number: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        message: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> ClientInvite:
        """Create an invite and deliver it to every contact given.

        The invite is stored even when delivery fails; ``email_sent`` and
        ``sms_sent`` record what was handed to the notifier.
        """
        actor = await self.profiles.get_actor(actor_id)
        require_any_permission(actor, Permission.MANAGE_USERS, Permission.GENERATE_INVITE_CODES)

        role = parse_enum(UserRole, role, "role")
        if role not in AUDIENCE_ROLES:
            raise ValidationError(f"Client invites cannot grant the '{role.value}' role", field="role")
        email = normalize_email(email)
        phone_number = normalize_phone(phone_number)
        if email is None and phone_number is None:
            raise ValidationError("An email address or phone number is required")
        await self._ensure_no_active_invite("email", email, "email")
        await self._ensure_no_active_invite("phone_number", phone_number, "phone number")

        invite = ClientInvite(
            code="",
            role=role,
            created_by=actor_id,
            email=email,
            phone_number=phone_number,
            first_name=first_name,
            last_name=last_name,
            message=message,
            expires_at=ensure_utc(expires_at) if expires_at else None,
            created_at=self.clock(),
        )

        def build(code: str):
            invite.code = code
            return invite.to_document()

        invite.id, invite.code = await self.codes.insert_with_unique_code(
            Collections.CLIENT_INVITES,
            "code",
            self.settings.invite_code_charset,
            self.settings.invite_code_length,
            build,
        )
        logger.info(f"Client invite {invite.id} for role {role.value} created by {actor_id}")

        await self._deliver(invite, actor, send_email=True, send_sms=True)
        return invite

    async def _deliver(
        self,
        invite: ClientInvite,
        inviter: Optional[UserProfile],
        send_email: bool,
        send_sms: bool,
    ) -> None:
        email_sent, sms_sent = await self.notifications.send_client_invite(
            email=invite.email if send_email else None,
            phone_number=invite.phone_number if send_sms else None,
            inviter_name=inviter.display_name if inviter else self.settings.organization_name,
            role=invite.role.value,
            invite_code=invite.code,
            first_name=invite.first_name,
            message=invite.message,
        )
        fields = {}
        if email_sent:
            fields["email_sent"] = invite.email_sent = True
        if sms_sent:
            fields["sms_sent"] = invite.sms_sent = True
        if fields:
            await self.store.patch(Collections.CLIENT_INVITES, invite.id, fields)

    async def validate(self, code: Optional[str]) -> CodeValidation:
        """Check a code without consuming it."""
        invite = await self._find(code)
        if invite is None:
            return CodeValidation(False, "Invalid invite code")
        if invite.is_used:
            return CodeValidation(False, "This invite code has already been used")
        if not invite.is_active:
            return CodeValidation(False, "This invite code has been deactivated")
        if invite.is_expired_at(self.clock()):
            return CodeValidation(False, "This invite code has expired")
        return CodeValidation(True, role=invite.role)

    @service_operation("use client invite", log_level=logging.INFO)
    async def use_client_invite(self, user_id: Optional[str], code: str) -> UserProfile:
        """Consume an invite and give the user its role.

        ``used_by`` is checked before ``is_active`` so that a consumed invite
        keeps failing as used even if it is reactivated.

        Raises:
            EntityNotFoundError: no invite has this code
            InvalidStateError: the invite is used, deactivated or expired
        """
        if not user_id:
            raise NotAuthenticatedError()
        user_id = UserId.parse(user_id)
        invite = await self._find(code)
        if invite is None:
            raise EntityNotFoundError("ClientInvite", (code or "").strip().upper())
        validation = await self.validate(invite.code)
        if not validation.valid:
            raise InvalidStateError(validation.message)

        existing = await self.profiles.get_by_user_id(user_id)
        if existing is not None and existing.is_owner:
            raise PermissionDeniedError("The owner's role cannot be changed")

        now = self.clock()
        try:
            await self.store.patch(
                Collections.CLIENT_INVITES,
                invite.id,
                {"used_by": user_id, "used_at": to_timestamp_ms(now), "is_active": False},
                expected={"used_by": None},
            )
        except ConcurrentModificationError as e:
            raise InvalidStateError("This invite code has already been used") from e

        logger.info(f"Client invite {invite.id} used by {user_id}")
        return await self.users.assign_role_from_invite(
            user_id,
            invite.role,
            invited_by=invite.created_by,
            email=invite.email,
            phone_number=invite.phone_number,
            first_name=invite.first_name,
            last_name=invite.last_name,
        )

    async def list(self, actor_id: Optional[str]) -> List[ClientInvite]:
        """Invites visible to the actor, newest first.

        User managers see every invite; other inviters see their own.
        """
        actor = await self.profiles.get_actor(actor_id)
        permissions = require_any_permission(actor, Permission.MANAGE_USERS, Permission.GENERATE_INVITE_CODES)
        filters = None if Permission.MANAGE_USERS in permissions else {"created_by": actor_id}
        invites = [ClientInvite.from_document(doc) for doc in await self.store.query(Collections.CLIENT_INVITES, filters)]
        return sorted(invites, key=lambda i: to_timestamp_ms(i.created_at) or 0, reverse=True)

    @service_operation("deactivate client invite")
    async def deactivate(self, actor_id: Optional[str], invite_id: str) -> ClientInvite:
        invite = await self._get(invite_id)
        await self._authorize_owner_or_manager(actor_id, invite, "deactivate")
        await self.store.patch(Collections.CLIENT_INVITES, invite.id, {"is_active": False})
        invite.is_active = False
        return invite

    @service_operation("resend client invite")
    async def resend(self, actor_id: Optional[str], invite_id: str, method: str = "both") -> ClientInvite:
        if method not in RESEND_METHODS:
            raise ValidationError(f"Invalid method: {method!r} (expected one of: email, sms, both)", field="method")
        invite = await self._get(invite_id)
        if invite.is_used:
            raise InvalidStateError("Cannot resend an already used invite")
        if not invite.is_active:
            raise InvalidStateError("Cannot resend a deactivated invite")
        actor = await self._authorize_owner_or_manager(actor_id, invite, "resend")
        await self._deliver(
            invite,
            actor,
            send_email=method in ("email", "both"),
            send_sms=method in ("sms", "both"),
        )
        return invite
