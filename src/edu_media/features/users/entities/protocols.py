"""Protocols for the users feature."""

from abc import abstractmethod
from typing import Any, Dict, Optional, Protocol, runtime_checkable


@runtime_checkable
class ProfileCache(Protocol):
    """Read-through cache of profile documents keyed by user id."""

    @abstractmethod
    async def get(self, user_id: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def set(self, user_id: str, document: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def invalidate(self, user_id: str) -> None:
        ...
