"""Input validation helpers shared by services."""

import re
from enum import Enum
from typing import Any, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, EmailStr, ValidationError as PydanticValidationError

from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)
M = TypeVar("M", bound=BaseModel)

E164_PATTERN = re.compile(r"^\+[1-9]\d{1,14}$")


def parse_enum(enum_cls: Type[E], value: Any, field: str) -> E:
    """Coerce ``value`` into ``enum_cls`` or raise ValidationError."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(str(m.value) for m in enum_cls)
        raise ValidationError(f"Invalid {field}: {value!r} (expected one of: {allowed})", field=field)


class EmailAddress(BaseModel):
    """Single recipient address."""

    email: EmailStr


def normalize_email(email: Optional[str]) -> Optional[str]:
    """Validate and lowercase an email address; empty values become None."""
    if email is None or not email.strip():
        return None
    try:
        address = EmailAddress(email=email.strip())
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid email address: {email.strip()}", field="email") from e
    return str(address.email).lower()


def normalize_phone(phone_number: Optional[str]) -> Optional[str]:
    """Validate an E.164 phone number; empty values become None."""
    if phone_number is None or not phone_number.strip():
        return None
    phone_number = phone_number.strip()
    if not E164_PATTERN.match(phone_number):
        raise ValidationError(
            "Phone number must be in E.164 format (e.g. +15551234567)",
            field="phone_number",
        )
    return phone_number


def require_text(value: Optional[str], field: str) -> str:
    """Return ``value`` stripped, raising ValidationError when blank."""
    if value is None or not str(value).strip():
        raise ValidationError(f"{field.replace('_', ' ').capitalize()} is required", field=field)
    return str(value).strip()


def parse_model(model: Type[M], data: Union[BaseModel, Mapping[str, Any]]) -> M:
    """Coerce ``data`` into a pydantic ``model``, mapping its errors to ValidationError."""
    if isinstance(data, model):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ())) or None
        raise ValidationError(f"Invalid request: {first.get('msg')}", field=field) from e
