from __future__ import annotations

"""
Pydantic models for one line of a TaxBit transaction export.

- TaxBitRecType: the transaction kind, with its export label as the enum value.
- TaxBitRec: the record itself. Field aliases are the export column names, so
  `model_dump(by_alias=True)` / `model_validate(...)` speak the export format.

Core ideas:
- Quantities are Decimal, never float. Money + floating-point is dangerous.
- Time is an int of milliseconds since the epoch (UTC); 0 means "unset".
- A default record (kind=Unknown, empty strings, no quantities) is a legal value
  meaning "not classified yet".
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_serializer, field_validator

from .dec_utils import dec_to_exact_string, dec_to_string_or_empty, parse_decimal_or_none
from .errors import DecodeError, LogicError
from .ordering import Comparator, cmp_optional_decimal, cmp_values, lexicographic_cmp
from .time_utils import (
    check_time_ms,
    dt_str_to_utc_time_ms,
    dt_to_utc_time_ms,
    time_ms_to_utc_string,
    time_ms_to_utc_z_string,
)


class TaxBitRecType(str, Enum):
    """
    Transaction kind. The value is the exact label used in the export file;
    the member name is what the human-readable render shows.

    Members order by KIND_ORDER (below), not by label text.
    """

    Income = "Income"
    TransferIn = "Transfer In"
    GiftReceived = "Gift Received"
    Buy = "Buy"
    Trade = "Trade"
    Sale = "Sale"
    Expense = "Expense"
    TransferOut = "Transfer Out"
    GiftSent = "Gift Send"
    Unknown = "Unknown"

    @property
    def label(self) -> str:
        return self.value

    @property
    def rank(self) -> int:
        return _KIND_RANK[self]

    @classmethod
    def from_label(cls, label: str) -> "TaxBitRecType":
        """Exact, case-sensitive lookup of an export label."""
        try:
            return _KIND_BY_LABEL[label]
        except KeyError:
            raise ValueError(f"unknown transaction type label {label!r}") from None

    def __lt__(self, other):
        if not isinstance(other, TaxBitRecType):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, TaxBitRecType):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, TaxBitRecType):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, TaxBitRecType):
            return NotImplemented
        return self.rank >= other.rank


# Sort order of kinds inside the record order. Part of the compatibility
# contract: existing sorted exports depend on it, do not reorder.
KIND_ORDER: Tuple[TaxBitRecType, ...] = (
    TaxBitRecType.Income,
    TaxBitRecType.TransferIn,
    TaxBitRecType.GiftReceived,
    TaxBitRecType.Buy,
    TaxBitRecType.Trade,
    TaxBitRecType.Sale,
    TaxBitRecType.Expense,
    TaxBitRecType.TransferOut,
    TaxBitRecType.GiftSent,
    TaxBitRecType.Unknown,
)
_KIND_RANK: Dict[TaxBitRecType, int] = {k: i for i, k in enumerate(KIND_ORDER)}
_KIND_BY_LABEL: Dict[str, TaxBitRecType] = {k.value: k for k in TaxBitRecType}

# Asset resolution: which side of the transaction it is "about"
SENT_SIDE_KINDS = frozenset(
    {TaxBitRecType.Expense, TaxBitRecType.TransferOut, TaxBitRecType.GiftSent, TaxBitRecType.Sale}
)
RECEIVED_SIDE_KINDS = frozenset(
    {
        TaxBitRecType.Buy,
        TaxBitRecType.TransferIn,
        TaxBitRecType.Income,
        TaxBitRecType.GiftReceived,
        TaxBitRecType.Trade,
    }
)


def _cmp_kind(a: TaxBitRecType, b: TaxBitRecType) -> int:
    if not isinstance(a, TaxBitRecType) or not isinstance(b, TaxBitRecType):
        raise LogicError(f"kind must be a TaxBitRecType, got {type(a).__name__}/{type(b).__name__}")
    return cmp_values(a.rank, b.rank)


class TaxBitRec(BaseModel):
    """
    One TaxBit export line.

    CSV header (fixed order):
      Date and Time, Transaction Type, Sent Quantity, Sent Currency, Sending Source,
      Received Quantity, Received Currency, Receiving Destination, Fee, Fee Currency,
      Exchange Transaction ID, Blockchain Transaction Hash
    """

    model_config = ConfigDict(populate_by_name=True)

    time: int = Field(0, alias="Date and Time", description="ms since epoch, UTC")
    kind: TaxBitRecType = Field(TaxBitRecType.Unknown, alias="Transaction Type")
    sent_quantity: Optional[Decimal] = Field(None, alias="Sent Quantity")
    sent_currency: str = Field("", alias="Sent Currency")
    sending_source: str = Field("", alias="Sending Source")
    received_quantity: Optional[Decimal] = Field(None, alias="Received Quantity")
    received_currency: str = Field("", alias="Received Currency")
    receiving_destination: str = Field("", alias="Receiving Destination")
    fee_quantity: Optional[Decimal] = Field(None, alias="Fee")
    fee_currency: str = Field("", alias="Fee Currency")
    exchange_transaction_id: str = Field("", alias="Exchange Transaction ID")
    blockchain_transaction_hash: str = Field("", alias="Blockchain Transaction Hash")

    # ---------- validation (inbound) ----------

    @field_validator("time", mode="before")
    @classmethod
    def _parse_time(cls, v: Any) -> int:
        if isinstance(v, bool):
            raise ValueError(f"bad timestamp: {v!r}")
        if isinstance(v, int):
            return check_time_ms(v)
        if isinstance(v, datetime):
            return dt_to_utc_time_ms(v)
        if isinstance(v, str):
            return dt_str_to_utc_time_ms(v)
        raise ValueError(f"bad timestamp: unsupported type {type(v).__name__}")

    @field_validator("kind", mode="before")
    @classmethod
    def _parse_kind(cls, v: Any) -> TaxBitRecType:
        if isinstance(v, TaxBitRecType):
            return v
        if isinstance(v, str):
            return TaxBitRecType.from_label(v)
        raise ValueError(f"unknown transaction type label {v!r}")

    @field_validator("sent_quantity", "received_quantity", "fee_quantity", mode="before")
    @classmethod
    def _parse_quantity(cls, v: Any) -> Optional[Decimal]:
        return parse_decimal_or_none(v)

    @field_validator(
        "sent_currency",
        "sending_source",
        "received_currency",
        "receiving_destination",
        "fee_currency",
        "exchange_transaction_id",
        "blockchain_transaction_hash",
        mode="before",
    )
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    # ---------- serialization (structured interchange form) ----------

    @field_serializer("time", when_used="json")
    def _time_to_z_string(self, v: int) -> str:
        return time_ms_to_utc_z_string(v)

    @field_serializer("sent_quantity", "received_quantity", "fee_quantity", when_used="json")
    def _quantity_to_text(self, v: Optional[Decimal]) -> Optional[str]:
        return dec_to_exact_string(v)

    def to_structured(self) -> Dict[str, Any]:
        """Field-name-tagged form keyed by export column names (JSON safe)."""
        return self.model_dump(by_alias=True, mode="json")

    @classmethod
    def from_structured(cls, entry: Mapping[str, Any], line_number: Optional[int] = None) -> "TaxBitRec":
        """Inverse of to_structured(). Every column must be present."""
        missing = [c for c in HEADER if c not in entry]
        if missing:
            raise DecodeError(f"missing columns: {missing}", line_number=line_number)
        try:
            return cls.model_validate(dict(entry))
        except ValidationError as exc:
            raise DecodeError.from_validation(exc, entry, line_number) from exc

    # ---------- construction ----------

    @classmethod
    def new(cls) -> "TaxBitRec":
        return cls()

    @classmethod
    def default(cls) -> "TaxBitRec":
        return cls.new()

    def is_classified(self) -> bool:
        return self.kind is not TaxBitRecType.Unknown

    # ---------- asset resolution ----------

    def get_asset(self) -> str:
        """
        Currency the transaction is economically about.

        Callers must classify the record first: kind=Unknown raises LogicError.
        """
        if self.kind in SENT_SIDE_KINDS:
            return self.sent_currency
        if self.kind in RECEIVED_SIDE_KINDS:
            return self.received_currency
        raise LogicError(f"get_asset() called on a record with kind={self.kind.name}")

    # ---------- equality & total order ----------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TaxBitRec):
            return NotImplemented
        return all(getattr(self, name) == getattr(other, name) for name in FIELD_NAMES)

    __hash__ = None  # mutable

    def cmp(self, other: "TaxBitRec") -> int:
        """-1, 0 or 1 following ORDER_FIELDS."""
        return lexicographic_cmp(self, other, ORDER_FIELDS)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, TaxBitRec):
            return NotImplemented
        return self.cmp(other) < 0

    def __le__(self, other: object) -> bool:
        if not isinstance(other, TaxBitRec):
            return NotImplemented
        return self.cmp(other) <= 0

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, TaxBitRec):
            return NotImplemented
        return self.cmp(other) > 0

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, TaxBitRec):
            return NotImplemented
        return self.cmp(other) >= 0

    # ---------- human-readable render ----------

    def __str__(self) -> str:
        return ",".join(
            [
                time_ms_to_utc_string(self.time),
                self.kind.name,
                dec_to_string_or_empty(self.sent_quantity),
                self.sent_currency,
                self.sending_source,
                dec_to_string_or_empty(self.received_quantity),
                self.received_currency,
                self.receiving_destination,
                dec_to_string_or_empty(self.fee_quantity),
                self.fee_currency,
                self.exchange_transaction_id,
                self.blockchain_transaction_hash,
            ]
        )


FIELD_NAMES: Tuple[str, ...] = tuple(TaxBitRec.model_fields)
HEADER: Tuple[str, ...] = tuple(f.alias for f in TaxBitRec.model_fields.values())

# Tie-break order used to sort records deterministically (same timestamp ->
# exchange id -> chain hash -> kind -> ...). First difference wins.
ORDER_FIELDS: Tuple[Tuple[str, Comparator], ...] = (
    ("time", cmp_values),
    ("exchange_transaction_id", cmp_values),
    ("blockchain_transaction_hash", cmp_values),
    ("kind", _cmp_kind),
    ("received_currency", cmp_values),
    ("sent_currency", cmp_values),
    ("fee_currency", cmp_values),
    ("receiving_destination", cmp_values),
    ("sending_source", cmp_values),
    ("received_quantity", cmp_optional_decimal),
    ("sent_quantity", cmp_optional_decimal),
    ("fee_quantity", cmp_optional_decimal),
)


class TaxBitPreviewResponse(BaseModel):
    """
    API response model for /upload/csv (preview only, nothing is stored).
    """

    filename: str
    total_valid: int
    total_errors: int
    duplicates: int
    preview: List[Dict[str, Any]]
    errors: List[Any]
