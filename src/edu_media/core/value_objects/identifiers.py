"""Value objects for identifiers in edu-media-commons.

Document ids are opaque strings issued by the document store. Validation
only rejects values that can never be an id.
"""

import re
from dataclasses import dataclass
from typing import Any

from ..exceptions import ValidationError


_ID_PATTERN = re.compile(r"^[A-Za-z0-9_\-:.|]{1,128}$")


@dataclass(frozen=True)
class DocumentId:
    """Immutable identifier of a stored document."""

    value: str

    entity_name = "Document"

    def __post_init__(self):
        if not isinstance(self.value, str) or not _ID_PATTERN.match(self.value):
            raise ValidationError(
                f"Malformed {self.entity_name} id: {self.value!r}",
                field=f"{self.entity_name.lower()}_id",
            )

    @classmethod
    def parse(cls, value: Any) -> str:
        """Validate ``value`` and return it as a plain string."""
        return cls(value).value

    def __str__(self) -> str:
        return self.value


class UserId(DocumentId):
    """Identity of a user, as issued by the identity provider."""

    entity_name = "User"


class ContentId(DocumentId):
    """Identifier of a content item."""

    entity_name = "Content"


class BundleId(DocumentId):
    """Identifier of a content bundle."""

    entity_name = "Bundle"


class GroupId(DocumentId):
    """Identifier of a user group."""

    entity_name = "Group"


class OrderId(DocumentId):
    """Identifier of an order."""

    entity_name = "Order"


class PurchaseRequestId(DocumentId):
    """Identifier of a purchase request."""

    entity_name = "PurchaseRequest"


class RecommendationId(DocumentId):
    """Identifier of a content recommendation."""

    entity_name = "Recommendation"
