"""
Input validation functions for API parameters.

All validators raise ValidationError on invalid input.
"""

import re
from datetime import date, datetime, time, timezone
from typing import Any, Optional

from core.exceptions import ValidationError
from core.models import AccountStatus


# Maximum allowed values
MAX_LIMIT = 200
MAX_PERIOD_DAYS = 365
MAX_NAME_LENGTH = 255

_PLATFORM_RE = re.compile(r"^[\w\-\.]{1,50}$", re.UNICODE)
_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_required(value: Any, field: str) -> Any:
    """
    Validate that a field is present and non-empty.

    Raises:
        ValidationError: If value is None or an empty/blank string
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(field, "Field is required")
    return value.strip() if isinstance(value, str) else value


def validate_platform(
    value: Optional[str],
    field: str = "platform",
    allow_none: bool = True
) -> Optional[str]:
    """
    Validate a platform identifier (e.g. "google", "meta", "tiktok").

    Returns:
        Validated, lower-cased platform or None
    """
    if value is None or value == "":
        if allow_none:
            return None
        raise ValidationError(field, "Platform is required")

    if not isinstance(value, str):
        raise ValidationError(field, "Must be a string", value)

    value = value.strip().lower()
    if not _PLATFORM_RE.match(value):
        raise ValidationError(field, "Contains invalid characters", value)

    return value


def validate_status(
    value: Optional[str],
    field: str = "status",
    allow_none: bool = True
) -> Optional[str]:
    """Validate an account/campaign status."""
    if value is None or value == "":
        if allow_none:
            return None
        raise ValidationError(field, "Status is required")

    if not isinstance(value, str):
        raise ValidationError(field, "Must be a string", value)

    value = value.lower().strip()
    if value not in AccountStatus.values():
        raise ValidationError(
            field,
            f"Must be one of: {', '.join(AccountStatus.values())}",
            value
        )

    return value


def validate_currency(value: Optional[str], field: str = "currency") -> Optional[str]:
    """Validate a three-letter ISO currency code."""
    if value is None or value == "":
        return None

    if not isinstance(value, str) or not _CURRENCY_RE.match(value.strip().upper()):
        raise ValidationError(field, "Must be a three-letter currency code", value)

    return value.strip().upper()


def validate_name(value: Optional[str], field: str, allow_none: bool = True) -> Optional[str]:
    """Validate a display name."""
    if value is None or value == "":
        if allow_none:
            return None
        raise ValidationError(field, "Field is required")

    if not isinstance(value, str):
        raise ValidationError(field, "Must be a string", value)

    value = value.strip()
    if len(value) > MAX_NAME_LENGTH:
        raise ValidationError(
            field,
            f"Cannot exceed {MAX_NAME_LENGTH} characters",
            f"{len(value)} characters"
        )

    return value


def validate_email(value: Optional[str], field: str = "email") -> str:
    """Validate and normalize an email address."""
    value = validate_required(value, field)
    if not isinstance(value, str) or not _EMAIL_RE.match(value):
        raise ValidationError(field, "Invalid email address", value)
    return value.lower()


def validate_limit(
    value: int,
    field: str = "limit",
    min_value: int = 1,
    max_value: int = MAX_LIMIT
) -> int:
    """
    Validate a limit/count parameter.

    Raises:
        ValidationError: If limit is out of range
    """
    if not isinstance(value, int):
        raise ValidationError(field, "Must be an integer", value)

    if value < min_value:
        raise ValidationError(field, f"Must be at least {min_value}", value)

    if value > max_value:
        raise ValidationError(field, f"Cannot exceed {max_value}", value)

    return value


def validate_page(value: int, field: str = "page") -> int:
    """Validate a 1-based page number."""
    return validate_limit(value, field, min_value=1, max_value=10**6)


def validate_period_days(value: Optional[int], field: str = "period", default: int = 30) -> int:
    """Validate a reporting period length in days."""
    if value is None:
        return default
    return validate_limit(value, field, min_value=1, max_value=MAX_PERIOD_DAYS)


def validate_datetime(
    value: Optional[str],
    field: str = "date",
    end_of_day: bool = False
) -> Optional[datetime]:
    """
    Parse a YYYY-MM-DD date or an ISO-8601 timestamp.

    Plain dates become the start (or, with end_of_day, the end) of that day in
    UTC. Naive timestamps are taken as UTC.

    Raises:
        ValidationError: If the value cannot be parsed
    """
    if value is None or value == "":
        return None

    if not isinstance(value, str):
        raise ValidationError(field, "Must be a string", value)

    value = value.strip()
    try:
        if len(value) == 10:
            day = date.fromisoformat(value)
            return datetime.combine(day, time.max if end_of_day else time.min, tzinfo=timezone.utc)
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(field, "Invalid date format. Expected YYYY-MM-DD or ISO-8601", value)

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def validate_date_range(
    start: Optional[datetime],
    end: Optional[datetime],
) -> None:
    """Ensure start is not after end when both are given."""
    if start is not None and end is not None and start > end:
        raise ValidationError(
            "date_range",
            "Start date must be before or equal to end date",
            f"{start.isoformat()} to {end.isoformat()}"
        )
