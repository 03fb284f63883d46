"""JWT-based identity provider.

The host binds the bearer token of the current request with ``bind_token``;
``current_user_id`` then reads the verified ``sub`` claim.
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import timedelta
from typing import Any, Dict, Iterator, Optional

from jose import ExpiredSignatureError, JWTError, jwt

from ...config.settings import EduMediaSettings, get_settings
from ...core.exceptions import InvalidTokenError
from ...utils.timezone import utc_now

logger = logging.getLogger(__name__)

_current_token: ContextVar[Optional[str]] = ContextVar("edu_media_current_token", default=None)


class JwtIdentityProvider:
    """IdentityProvider verifying HMAC or RSA signed JWTs with python-jose."""

    def __init__(self, settings: Optional[EduMediaSettings] = None):
        self.settings = settings or get_settings()

    @contextmanager
    def bind_token(self, token: Optional[str]) -> Iterator[None]:
        """Make ``token`` the current caller's token inside the block."""
        reset = _current_token.set(token)
        try:
            yield
        finally:
            _current_token.reset(reset)

    def decode(self, token: str) -> Dict[str, Any]:
        """Verify a token and return its claims.

        Raises:
            InvalidTokenError: signature, expiry, audience or issuer check failed
        """
        options = {"verify_aud": self.settings.jwt_audience is not None}
        try:
            return jwt.decode(
                token,
                self.settings.jwt_secret.get_secret_value(),
                algorithms=[self.settings.jwt_algorithm],
                audience=self.settings.jwt_audience,
                issuer=self.settings.jwt_issuer,
                options=options,
            )
        except ExpiredSignatureError as e:
            raise InvalidTokenError("Token has expired", error_code="TOKEN_EXPIRED") from e
        except JWTError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e

    async def current_user_id(self) -> Optional[str]:
        """Return the ``sub`` claim of the bound token, or None when anonymous."""
        token = _current_token.get()
        if not token:
            return None
        claims = self.decode(token)
        subject = claims.get("sub")
        if not subject:
            raise InvalidTokenError("Token missing 'sub' claim")
        return str(subject)

    def issue_token(self, user_id: str, expires_in: timedelta = timedelta(hours=1), **claims: Any) -> str:
        """Sign a token for ``user_id``; used by local tooling and tests."""
        now = utc_now()
        payload = {"sub": user_id, "iat": int(now.timestamp()), "exp": int((now + expires_in).timestamp())}
        if self.settings.jwt_audience:
            payload["aud"] = self.settings.jwt_audience
        if self.settings.jwt_issuer:
            payload["iss"] = self.settings.jwt_issuer
        payload.update(claims)
        return jwt.encode(payload, self.settings.jwt_secret.get_secret_value(), algorithm=self.settings.jwt_algorithm)
