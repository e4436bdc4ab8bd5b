"""
Utility modules for core functionality.

Modules:
- enum_converter: Enum parsing and conversion
"""

from .enum_converter import enum_to_string, parse_enum

__all__ = [
    "enum_to_string",
    "parse_enum",
]
