"""
Shared helpers for module services.

Used by budget_modules/*/service.py to coerce caller-supplied status and
category values and to check date ranges the same way everywhere.

Architecture: Modules layer. Imports only from budget_kernel.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import TypeVar

from budget_kernel.exceptions import InvalidCategoryError, InvalidDateRangeError

E = TypeVar("E", bound=Enum)


def coerce_enum(enum_cls: type[E], value: E | str, field: str) -> E:
    """
    Accept an enum member, its value, or its name (any case).

    Raises:
        InvalidCategoryError: ``value`` names no member of ``enum_cls``.
    """
    if isinstance(value, enum_cls):
        return value
    text = str(value).strip()
    for member in enum_cls:
        if text.lower() == str(member.value).lower() or text.upper() == member.name:
            return member
    raise InvalidCategoryError(field, value, tuple(str(m.value) for m in enum_cls))


def check_date_range(start: date | None, end: date | None, field: str) -> None:
    if start is not None and end is not None and end < start:
        raise InvalidDateRangeError(start, end, field=field)
