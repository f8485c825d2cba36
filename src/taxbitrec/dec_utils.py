# dec_utils.py
from __future__ import annotations
from decimal import Decimal, InvalidOperation
from typing import Any, Optional


def parse_decimal_or_none(v: Any) -> Optional[Decimal]:
    """
    Exact Decimal from text; empty/None -> None (absent, not zero).

    Binary floats are refused: 0.1 as a float is already not 0.1.
    """
    if v is None:
        return None
    if isinstance(v, Decimal):
        d = v
    elif isinstance(v, bool) or isinstance(v, float):
        raise ValueError(f"bad decimal: {v!r} is not exact, pass a string or Decimal")
    elif isinstance(v, int):
        d = Decimal(v)
    elif isinstance(v, str):
        s = v.strip()
        if s == "":
            return None
        try:
            d = Decimal(s)
        except InvalidOperation:
            raise ValueError(f"bad decimal: {v!r}") from None
    else:
        raise ValueError(f"bad decimal: unsupported type {type(v).__name__}")
    if not d.is_finite():
        raise ValueError(f"bad decimal: {v!r} is not a finite number")
    return d


def dec_to_string_or_empty(v: Optional[Decimal]) -> str:
    """Shortest exact text: 1.50 -> '1.5', 1E+2 -> '100', None -> ''."""
    if v is None:
        return ""
    return format(v.normalize(), "f")


def dec_to_exact_string(v: Optional[Decimal]) -> Optional[str]:
    """
    Keep the text as parsed: '1.50' stays '1.50', '1E+2' stays '1E+2'; None stays None.

    Negative exponents are written positionally ('1E-8' -> '0.00000001'): a
    Decimal holds the same digits and exponent for both spellings.
    """
    if v is None:
        return None
    if v.as_tuple().exponent > 0:
        return str(v)
    return format(v, "f")
