"""
Validation functions for configuration values.

Every validator either returns the converted value or raises
ValidationError with a message naming the offending key.
"""

import re
from typing import Any, Dict, Iterable, List, Optional, Pattern

from .exceptions import ValidationError

# Seconds per duration unit.
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "": 1.0,
    "s": 1.0,
    "sec": 1.0,
    "secs": 1.0,
    "second": 1.0,
    "seconds": 1.0,
    "m": 60.0,
    "min": 60.0,
    "mins": 60.0,
    "minute": 60.0,
    "minutes": 60.0,
    "h": 3600.0,
    "hr": 3600.0,
    "hrs": 3600.0,
    "hour": 3600.0,
    "hours": 3600.0,
    "d": 86400.0,
    "day": 86400.0,
    "days": 86400.0,
    "w": 604800.0,
    "week": 604800.0,
    "weeks": 604800.0,
}

_DURATION_TERM = re.compile(r"\s*(\d+(?:\.\d+)?)\s*([a-zµ]*)\s*\+?\s*", re.IGNORECASE)

# Deliberately loose: the relay has the final say on addresses.
_EMAIL_ADDRESS = re.compile(r"^(?:[^<>@\s]+@[^<>@\s]+|[^<>]*<[^<>@\s]+@[^<>@\s]+>)$")


def validate_positive_integer(
    value: Any,
    min_value: int = 1,
    max_value: Optional[int] = None,
    field_name: str = "value"
) -> int:
    """
    Validate that a value is an integer within the given bounds.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated integer value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(
            f"Key `{field_name}` must be an integer.",
            field_name=field_name,
            value=value
        )
    if value < min_value:
        raise ValidationError(
            f"Key `{field_name}` must be >= {min_value}, got {value}.",
            field_name=field_name,
            value=value
        )
    if max_value is not None and value > max_value:
        raise ValidationError(
            f"Key `{field_name}` must be <= {max_value}, got {value}.",
            field_name=field_name,
            value=value
        )
    return value


def validate_string(value: Any, field_name: str = "value", allow_empty: bool = True) -> str:
    """Validate that a value is a string (optionally non-empty)."""
    if not isinstance(value, str):
        raise ValidationError(
            f"Key `{field_name}` must be a string.",
            field_name=field_name,
            value=value
        )
    if not allow_empty and not value.strip():
        raise ValidationError(
            f"Key `{field_name}` must not be empty.",
            field_name=field_name,
            value=value
        )
    return value


def validate_table(value: Any, field_name: str = "value") -> Dict[str, Any]:
    """Validate that a value is a TOML table."""
    if not isinstance(value, dict):
        raise ValidationError(
            f"Key `{field_name}` must be a table.",
            field_name=field_name,
            value=value
        )
    return value


def validate_no_unknown_keys(table: Dict[str, Any], allowed: Iterable[str], prefix: str = "") -> None:
    """
    Reject any key of ``table`` that is not in ``allowed``.

    Raises:
        ValidationError: Naming the first unrecognized key
    """
    allowed_keys = set(allowed)
    for key in table:
        if key not in allowed_keys:
            raise ValidationError(
                f"Invalid key `{prefix}{key}`",
                field_name=f"{prefix}{key}",
                value=table[key]
            )


def validate_duration(value: Any, field_name: str = "duration", allow_zero: bool = False) -> float:
    """
    Parse a human-readable duration string into seconds.

    Accepts one or more ``<number><unit>`` terms, optionally separated by
    whitespace or ``+``. A bare number (string or TOML number) is read as
    seconds.

    Examples:
        >>> validate_duration("1m30s")
        90.0
        >>> validate_duration("250ms")
        0.25

    Raises:
        ValidationError: If the value cannot be parsed
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        seconds = float(value)
        if seconds < 0 or (seconds == 0 and not allow_zero):
            raise ValidationError(
                f"Key `{field_name}` must be a positive duration, got {value!r}.",
                field_name=field_name,
                value=value
            )
        return seconds

    if not isinstance(value, str):
        raise ValidationError(
            f"Key `{field_name}` must be a duration string.",
            field_name=field_name,
            value=value
        )
    text = value
    if not text.strip():
        raise ValidationError(
            f"Key `{field_name}`:\nempty duration",
            field_name=field_name,
            value=value
        )

    total = 0.0
    position = 0
    while position < len(text):
        match = _DURATION_TERM.match(text, position)
        if match is None or match.end() == position:
            raise ValidationError(
                f"Key `{field_name}`:\ninvalid duration {text!r} at offset {position}",
                field_name=field_name,
                value=value
            )
        number, unit = match.groups()
        factor = _DURATION_UNITS.get(unit.lower())
        if factor is None:
            raise ValidationError(
                f"Key `{field_name}`:\nunknown duration unit {unit!r} in {text!r}",
                field_name=field_name,
                value=value
            )
        total += float(number) * factor
        position = match.end()

    if total < 0 or (total == 0 and not allow_zero):
        raise ValidationError(
            f"Key `{field_name}` must be a positive duration, got {text!r}.",
            field_name=field_name,
            value=value
        )
    return total


def validate_regex_pattern(pattern: Any, field_name: str = "regex_pattern") -> Pattern[str]:
    """
    Compile a regular expression in multi-line mode.

    Multi-line mode lets ``^`` and ``$`` anchor on every line of a chunk,
    since one chunk can hold several log lines.

    Raises:
        ValidationError: If the pattern is not a string or does not compile
    """
    pattern = validate_string(pattern, field_name)
    try:
        return re.compile(pattern, re.MULTILINE)
    except re.error as e:
        raise ValidationError(
            f"Failed to parse {field_name}: {e}",
            field_name=field_name,
            value=pattern
        )


def validate_email_address(value: Any, field_name: str = "address") -> str:
    """Validate a single mailbox, either ``a@b`` or ``Name <a@b>``."""
    address = validate_string(value, field_name, allow_empty=False).strip()
    if not _EMAIL_ADDRESS.match(address):
        raise ValidationError(
            f"Key `{field_name}` is not a valid email address: {address!r}",
            field_name=field_name,
            value=value
        )
    return address


def validate_email_addresses(value: Any, field_name: str = "addresses") -> List[str]:
    """Validate one address or a non-empty array of addresses."""
    if isinstance(value, str):
        return [validate_email_address(value, field_name)]
    if not isinstance(value, list) or not value:
        raise ValidationError(
            f"Key `{field_name}` must be a string or a non-empty array of strings.",
            field_name=field_name,
            value=value
        )
    return [
        validate_email_address(item, f"{field_name}[{index}]")
        for index, item in enumerate(value)
    ]
