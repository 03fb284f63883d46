"""Identity provider adapters."""

from .jwt_identity import JwtIdentityProvider

__all__ = ["JwtIdentityProvider"]
