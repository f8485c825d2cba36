import logging

from .__about__ import __title__, __version__
from .csv_normalizer import (
    decode_csv,
    decode_line,
    decode_row,
    encode_display,
    encode_line,
    parse_csv,
    record_digest,
    write_csv,
)
from .errors import DecodeError, LogicError, TaxBitRecError
from .ordering import sort_records
from .schemas import HEADER, KIND_ORDER, TaxBitRec, TaxBitRecType

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "__title__",
    "__version__",
    "DecodeError",
    "HEADER",
    "KIND_ORDER",
    "LogicError",
    "TaxBitRec",
    "TaxBitRecError",
    "TaxBitRecType",
    "decode_csv",
    "decode_line",
    "decode_row",
    "encode_display",
    "encode_line",
    "parse_csv",
    "record_digest",
    "sort_records",
    "write_csv",
]
