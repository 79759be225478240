"""Validation utilities for cluster blueprints."""

import re

_UNIT_ID_PATTERN = re.compile(r"^[a-z0-9]([a-z0-9._/-]*[a-z0-9])?$")


def validate_unit_id(unit_id: str) -> bool:
    """Validate a deployment unit identifier.

    Unit ids must:
    - Be non-empty and at most 253 characters
    - Be lowercase
    - Contain only alphanumerics, '-', '.', '_' and '/'
    - Start and end with an alphanumeric character

    Args:
        unit_id: Identifier to validate

    Returns:
        True if valid

    Raises:
        ValueError: If the identifier is invalid
    """
    if not unit_id:
        raise ValueError("Unit id cannot be empty")

    if len(unit_id) > 253:
        raise ValueError("Unit id must be 253 characters or less")

    if not _UNIT_ID_PATTERN.match(unit_id):
        raise ValueError(
            f"Invalid unit id: '{unit_id}'. Must be lowercase alphanumeric with "
            "'-', '.', '_' or '/', starting and ending with an alphanumeric character"
        )

    return True


def validate_duration(name: str, value: float) -> float:
    """Validate that a duration in seconds is positive.

    Args:
        name: Field name used in the error message
        value: Duration in seconds

    Returns:
        The duration as a float

    Raises:
        ValueError: If the value is not a positive number
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{name} must be a number of seconds, got {value!r}")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return float(value)
