"""Input validation helpers shared by the entry points and the session."""

from __future__ import annotations

from enum import Enum
from typing import TypeVar

E = TypeVar("E", bound=Enum)


class ValidationError(ValueError):
    """Raised when user input cannot be converted into a valid value."""


def parse_float(
    value: object,
    field_name: str,
    *,
    minimum: float | None = None,
    maximum: float | None = None,
) -> float:
    """Parse ``value`` into ``float`` ensuring it lies within the given bounds."""

    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{field_name} must be a number") from exc
    if number != number:
        raise ValidationError(f"{field_name} must be a number")
    if minimum is not None and number < minimum:
        raise ValidationError(f"{field_name} must be at least {minimum}")
    if maximum is not None and number > maximum:
        raise ValidationError(f"{field_name} must be at most {maximum}")
    return number


def parse_percentage(value: object, field_name: str = "Liquid level") -> float:
    """Parse a slider value in the inclusive ``0..100`` range."""

    return parse_float(value, field_name, minimum=0.0, maximum=100.0)


def parse_choice(value: object, enum_type: type[E], field_name: str) -> E:
    """Coerce ``value`` into a member of ``enum_type`` by value."""

    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(str(value).strip().lower())
    except ValueError as exc:
        allowed = ", ".join(str(member.value) for member in enum_type)
        raise ValidationError(f"{field_name} must be one of: {allowed}") from exc
