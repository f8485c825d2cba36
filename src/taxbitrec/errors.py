# errors.py
"""
Error types raised by the TaxBit record core.

- DecodeError: the input (a CSV line or a structured entry) can't be mapped to a
  record. Always a data problem; the message names the line, column and value so
  the source export can be fixed.
- LogicError: the caller broke a precondition (asset resolution on an
  unclassified record, comparing a record holding a non-Decimal quantity).
  Never caught inside this package.
"""

from __future__ import annotations
from typing import Any, Mapping, Optional

from pydantic import ValidationError


class TaxBitRecError(Exception):
    """Base class for everything this package raises on purpose."""


class DecodeError(TaxBitRecError, ValueError):
    def __init__(
        self,
        reason: str,
        *,
        column: Optional[str] = None,
        value: Any = None,
        line_number: Optional[int] = None,
    ) -> None:
        self.reason = reason
        self.column = column
        self.value = value
        self.line_number = line_number
        super().__init__(self._describe())

    def _describe(self) -> str:
        where = []
        if self.line_number is not None:
            where.append(f"line {self.line_number}")
        if self.column is not None:
            where.append(f"column {self.column!r}")
        prefix = ", ".join(where)
        msg = self.reason
        if self.value is not None:
            msg = f"{msg} (value: {self.value!r})"
        return f"{prefix}: {msg}" if prefix else msg

    @classmethod
    def from_validation(
        cls,
        exc: ValidationError,
        raw: Mapping[str, Any],
        line_number: Optional[int] = None,
    ) -> "DecodeError":
        """Turn the first pydantic error into a DecodeError for the offending column."""
        first = exc.errors()[0]
        loc = first.get("loc") or ()
        column = str(loc[0]) if loc else None
        reason = str(first.get("msg", "invalid value"))
        # pydantic prefixes messages coming from our validators
        if reason.startswith("Value error, "):
            reason = reason[len("Value error, "):]
        value = raw.get(column) if column is not None else None
        return cls(reason, column=column, value=value, line_number=line_number)


class LogicError(TaxBitRecError, RuntimeError):
    """A defect in the calling code, not in the data."""
