"""Input validation for query strings, path segments and JSON bodies.

Contracts are pydantic models built from the annotated types below.
``validate_input`` is the single boundary: it returns a model instance or
raises ``ValidationError`` listing every violated field.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date, datetime, time
from typing import Annotated, Any, TypeVar
from uuid import UUID

import pydantic
from pydantic import AfterValidator, BaseModel, BeforeValidator
from pydantic_core import PydanticCustomError

from backoffice_service.errors import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

_CALENDAR_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DIGITS = re.compile(r"^\d+$")

# Range of the store's 4-byte integer columns.
INT4_MIN = -(2**31)
INT4_MAX = 2**31 - 1


# ---------------------------------------------------------------------------
# Annotated field types
# ---------------------------------------------------------------------------


def _coerce_id(value: Any) -> int:
    if isinstance(value, bool):
        raise PydanticCustomError("resource_id", "Must be a positive integer")
    if isinstance(value, int):
        number = value
    elif isinstance(value, float) and value.is_integer():
        number = int(value)
    elif isinstance(value, str) and _DIGITS.match(value.strip()):
        number = int(value.strip())
    else:
        raise PydanticCustomError("resource_id", "Must be a positive integer")
    if number <= 0:
        raise PydanticCustomError("resource_id", "Must be a positive integer")
    if number > INT4_MAX:
        raise PydanticCustomError("resource_id", f"Must be at most {INT4_MAX}")
    return number


def _check_int4(value: int) -> int:
    if not INT4_MIN <= value <= INT4_MAX:
        raise PydanticCustomError("int4", f"Must be between {INT4_MIN} and {INT4_MAX}")
    return value


def _to_instant(value: Any) -> datetime:
    # Calendar dates become local midnight so "2024-03-01" never drifts a day.
    if isinstance(value, datetime):
        return value if value.tzinfo else value.astimezone()
    if isinstance(value, date):
        return datetime.combine(value, time()).astimezone()
    if isinstance(value, str):
        text = value.strip()
        try:
            if _CALENDAR_DATE.match(text):
                return datetime.combine(date.fromisoformat(text), time()).astimezone()
            if "T" in text:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
                return parsed if parsed.tzinfo else parsed.astimezone()
        except ValueError:
            pass
    raise PydanticCustomError(
        "date_like", "Invalid date (expected YYYY-MM-DD or an ISO-8601 timestamp)"
    )


ResourceId = Annotated[int, BeforeValidator(_coerce_id)]
DateLike = Annotated[datetime, BeforeValidator(_to_instant)]
Int4 = Annotated[int, AfterValidator(_check_int4)]


def trimmed_text(
    *,
    min_length: int | None = None,
    max_length: int | None = None,
    too_short: str | None = None,
    too_long: str | None = None,
) -> Any:
    """String type that strips surrounding whitespace before length checks."""

    def _check(value: str) -> str:
        value = value.strip()
        if min_length is not None and len(value) < min_length:
            raise PydanticCustomError(
                "too_short", too_short or f"Must be at least {min_length} characters"
            )
        if max_length is not None and len(value) > max_length:
            raise PydanticCustomError(
                "too_long", too_long or f"Must be at most {max_length} characters"
            )
        return value

    return Annotated[str, AfterValidator(_check)]


def reject_null(value: Any) -> Any:
    """``mode="before"`` validator body for optional-but-not-nullable fields."""
    if value is None:
        raise PydanticCustomError("not_nullable", "Cannot be null")
    return value


# ---------------------------------------------------------------------------
# Boundary
# ---------------------------------------------------------------------------


def format_errors(errors: list[Any]) -> str:
    """Join pydantic error entries into one ``"field: message; ..."`` string."""
    messages = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc)
        messages.append(f"{field}: {error['msg']}" if field else error["msg"])
    return "; ".join(messages)


def validate_input(schema: type[ModelT], data: Any) -> ModelT:
    """Validate untyped input against ``schema``.

    ``None`` counts as an empty object so every missing required field is
    reported. Anything that is not a mapping is rejected outright.
    """
    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise ValidationError("Request body must be a JSON object")
    try:
        return schema.model_validate(dict(data))
    except pydantic.ValidationError as exc:
        raise ValidationError(format_errors(exc.errors())) from exc


def parse_resource_id(raw: Any, label: str = "resource") -> int:
    """Coerce a path segment to a positive integer id."""
    try:
        return _coerce_id(raw)
    except PydanticCustomError as exc:
        raise ValidationError(f"Invalid {label} ID") from exc


def parse_account_id(raw: str) -> UUID:
    try:
        return UUID(raw)
    except (TypeError, ValueError) as exc:
        raise ValidationError("Invalid account ID") from exc


def changes(model: BaseModel) -> dict[str, Any]:
    """Fields the caller actually sent; explicit ``null`` is kept, absent is not."""
    return model.model_dump(exclude_unset=True)


def require_changes(model: BaseModel) -> dict[str, Any]:
    patch = changes(model)
    if not patch:
        raise ValidationError("No fields to update")
    return patch


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.astimezone()


def ensure_date_order(
    start: datetime | None,
    end: datetime | None,
    message: str = "Start date cannot be after end date",
) -> None:
    """Reject ``start > end``; naive values (as SQLite returns them) count as local time."""
    if start is not None and end is not None and _aware(start) > _aware(end):
        raise ValidationError(message)
