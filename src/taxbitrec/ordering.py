# ordering.py
"""
Lexicographic comparison over a declarative list of (field, comparator) pairs.

The record's sort order is a single list (see schemas.ORDER_FIELDS); this module
only knows how to walk such a list and stop at the first field that differs.
Comparators return -1, 0 or 1.
"""

from __future__ import annotations
from decimal import Decimal
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple, TypeVar

from .errors import LogicError

Comparator = Callable[[Any, Any], int]
T = TypeVar("T")


def cmp_values(a: Any, b: Any) -> int:
    """Plain three-way compare for two values of the same type (int, str)."""
    if type(a) is not type(b):
        raise LogicError(f"cannot order {type(a).__name__} against {type(b).__name__}")
    return (a > b) - (a < b)


def cmp_optional_decimal(a: Optional[Decimal], b: Optional[Decimal]) -> int:
    """Absent sorts before present; present values compare numerically."""
    for v in (a, b):
        if v is not None and not isinstance(v, Decimal):
            raise LogicError(
                f"quantity fields must hold Decimal or None, got {type(v).__name__}"
            )
    if a is None and b is None:
        return 0
    if a is None:
        return -1
    if b is None:
        return 1
    return (a > b) - (a < b)


def lexicographic_cmp(left: Any, right: Any, fields: Sequence[Tuple[str, Comparator]]) -> int:
    for name, comparator in fields:
        result = comparator(getattr(left, name), getattr(right, name))
        if result:
            return result
    return 0


def sort_records(records: Iterable[T]) -> List[T]:
    """Return a new list sorted by the records' own total order (stable)."""
    return sorted(records)
