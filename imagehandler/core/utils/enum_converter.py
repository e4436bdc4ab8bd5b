"""
Enum conversion utilities.

Provides standardized methods for converting request values (enum members,
integer tags, or member names) into enums, with case-insensitive parsing.
Unlike a lookup with a fallback default, unknown values are an error here:
silently drawing at the wrong corner is worse than failing.
"""

from enum import Enum
from typing import Any, Dict, Optional, Type, TypeVar

from imagehandler.core.exceptions import InvalidEnumValue

T = TypeVar("T", bound=Enum)


def parse_enum(
    value: Any,
    enum_class: Type[T],
    aliases: Optional[Dict[str, T]] = None,
    error_class: Type[Exception] = InvalidEnumValue,
) -> T:
    """
    Parse value to enum.

    Args:
        value: Value to parse (enum member, integer tag, value or member name)
        enum_class: Enum class to parse to
        aliases: Optional extra lowercase names mapping to members
        error_class: Exception raised for unrecognized values

    Returns:
        Parsed enum member

    Raises:
        InvalidEnumValue: (or error_class) if value matches no member

    Example:
        >>> parse_enum("right_bottom", Corner)
        <Corner.RIGHT_BOTTOM: 4>
        >>> parse_enum(4, Corner)
        <Corner.RIGHT_BOTTOM: 4>
    """
    # Already an enum instance
    if isinstance(value, enum_class):
        return value

    # bool is an int subclass; True must not become tag 1
    if value is None or isinstance(value, bool):
        raise error_class(f"Invalid {enum_class.__name__} value: {value!r}")

    try:
        return enum_class(value)
    except ValueError:
        pass

    if isinstance(value, str):
        key = value.strip().lower()
        if aliases and key in aliases:
            return aliases[key]
        for member in enum_class:
            if member.name.lower() == key or str(member.value).lower() == key:
                return member
        if key.isdigit():
            try:
                return enum_class(int(key))
            except ValueError:
                pass

    raise error_class(f"Invalid {enum_class.__name__} value: {value!r}")


def enum_to_string(value: Any) -> str:
    """
    Convert enum to a lowercase member name, or pass through if already string.

    Example:
        >>> enum_to_string(Corner.RIGHT_BOTTOM)
        'right_bottom'
    """
    if isinstance(value, Enum):
        return value.name.lower()
    return value
