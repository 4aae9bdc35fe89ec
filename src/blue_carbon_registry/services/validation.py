"""Input validation shared by the services.

Pydantic failures and malformed identifiers are re-raised as the domain's
ValidationError so callers only ever see the registry error taxonomy.
"""

from __future__ import annotations

import enum
import uuid
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from blue_carbon_registry.domain.exceptions import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)
EnumT = TypeVar("EnumT", bound=enum.Enum)

MAX_PAGE_SIZE = 100


def validate_input(model_cls: type[ModelT], data: Any) -> ModelT:
    """Validate ``data`` against ``model_cls``.

    Raises:
        ValidationError: With pydantic's error list in ``details``.
    """
    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(data)
    except PydanticValidationError as exc:
        details = exc.errors(include_url=False, include_context=False, include_input=False)
        fields = ", ".join(".".join(str(p) for p in err["loc"]) or "body" for err in details)
        raise ValidationError(f"Invalid input: {fields}", details=details) from exc


def parse_id(value: Any, label: str = "id") -> uuid.UUID:
    """Coerce a UUID or its string form, raising ValidationError when malformed."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid {label}: {value!r}") from exc


def page_window(page: int, limit: int) -> tuple[int, int]:
    """Translate 1-based page/limit into (offset, limit)."""
    if page < 1:
        raise ValidationError("page must be >= 1")
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
    return (page - 1) * limit, limit


def parse_enum(enum_cls: type[EnumT], value: Any, label: str) -> EnumT | None:
    """Coerce an optional filter value into ``enum_cls``."""
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError as exc:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"Unknown {label}: {value}. Expected one of: {allowed}") from exc
