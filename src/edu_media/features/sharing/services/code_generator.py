"""Unique code issuance.

Codes are drawn at random and checked against the store's uniqueness index.
A collision, found either by the pre-check or by a unique-key violation on
insert, triggers a fresh draw. The number of draws is capped.
"""

import logging
from typing import Any, Callable, Dict, Tuple

from ....core.exceptions import CodeSpaceExhaustedError, DuplicateKeyError
from ....protocols import DocumentStore
from ....utils.tokens import generate_code

logger = logging.getLogger(__name__)


class CodeGenerator:
    """Issues codes that are unique within one field of one collection."""

    def __init__(
        self,
        store: DocumentStore,
        max_attempts: int = 10,
        source: Callable[[str, int], str] = generate_code,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.store = store
        self.max_attempts = max_attempts
        self.source = source

    async def _is_free(self, collection: str, field: str, code: str) -> bool:
        return not await self.store.query(collection, {field: code})

    def _exhausted(self, collection: str, field: str) -> CodeSpaceExhaustedError:
        logger.error(f"No free {collection}.{field} value after {self.max_attempts} attempts")
        return CodeSpaceExhaustedError(
            f"Could not generate a unique {field} after {self.max_attempts} attempts",
            details={"collection": collection, "field": field, "attempts": self.max_attempts},
        )

    async def generate_unique(self, collection: str, field: str, charset: str, length: int) -> str:
        """Return a code not currently used in ``collection.field``."""
        for attempt in range(1, self.max_attempts + 1):
            code = self.source(charset, length)
            if await self._is_free(collection, field, code):
                return code
            logger.warning(f"Code collision in {collection}.{field} (attempt {attempt})")
        raise self._exhausted(collection, field)

    async def insert_with_unique_code(
        self,
        collection: str,
        field: str,
        charset: str,
        length: int,
        build: Callable[[str], Dict[str, Any]],
    ) -> Tuple[str, str]:
        """Insert ``build(code)`` under a fresh unique code.

        Returns:
            (document id, code)

        Raises:
            CodeSpaceExhaustedError: every attempt collided
        """
        for attempt in range(1, self.max_attempts + 1):
            code = self.source(charset, length)
            if not await self._is_free(collection, field, code):
                logger.warning(f"Code collision in {collection}.{field} (attempt {attempt})")
                continue
            try:
                document_id = await self.store.insert(collection, build(code))
            except DuplicateKeyError:
                logger.warning(f"Code claimed concurrently in {collection}.{field} (attempt {attempt})")
                continue
            return document_id, code
        raise self._exhausted(collection, field)
