# csv_normalizer.py
"""
CSV parsing and rendering for TaxBit export lines.

Responsibilities:
- Decode one comma-separated line (or a list of cells) into a TaxBitRec.
- Read a whole export (bytes) with a header check, returning
  (valid_rows, errors) so a caller can preview and fix the source file.
- Render records back: a human-readable line for logs and a structured CSV
  line that keeps the export labels and the exact decimal text.

Design choices:
- This module is "pure" (no file or network access). It converts raw bytes/text
  <-> typed records.
- Bad input raises DecodeError; nothing is silently defaulted.
"""

from __future__ import annotations

import csv
import hashlib
import logging
from io import BytesIO, StringIO, TextIOWrapper
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from .errors import DecodeError
from .schemas import HEADER, TaxBitRec

log = logging.getLogger(__name__)


def decode_row(cells: Sequence[str], line_number: Optional[int] = None) -> TaxBitRec:
    """Map twelve cells, in HEADER order, to a record."""
    if len(cells) != len(HEADER):
        raise DecodeError(
            f"expected {len(HEADER)} fields, got {len(cells)}",
            line_number=line_number,
        )
    entry = dict(zip(HEADER, cells))
    return TaxBitRec.from_structured(entry, line_number=line_number)


def decode_line(line: str, line_number: Optional[int] = None) -> TaxBitRec:
    """
    Decode one export line, e.g.
      "2021-07-01T00:00:00Z","Buy",,,,"1.5","BTC","wallet-1",,,"tx123",""
    """
    try:
        rows = list(csv.reader([line]))
    except csv.Error as ce:
        raise DecodeError(f"malformed CSV: {ce}", line_number=line_number) from ce
    cells = rows[0] if rows else []
    return decode_row(cells, line_number=line_number)


def encode_display(rec: TaxBitRec) -> str:
    """Human-readable line (logging/inspection only, not meant to be re-read)."""
    return str(rec)


def _structured_cells(rec: TaxBitRec) -> List[str]:
    entry = rec.to_structured()
    return ["" if entry[col] is None else entry[col] for col in HEADER]


def encode_line(rec: TaxBitRec) -> str:
    """One CSV line (no line terminator) that decode_line() reads back unchanged."""
    buf = StringIO()
    csv.writer(buf, lineterminator="").writerow(_structured_cells(rec))
    return buf.getvalue()


def record_digest(rec: TaxBitRec) -> str:
    """
    Deterministic SHA-256 of the structured line. Two rows that decode to the
    same values (and the same decimal text) share a digest, which lets a reader
    spot duplicates across overlapping exports.
    """
    return hashlib.sha256(encode_line(rec).encode("utf-8")).hexdigest()


def write_csv(records: Iterable[TaxBitRec], encoding: str = "utf-8") -> bytes:
    """Header plus one structured line per record, in the order given."""
    buf = StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(HEADER)
    for rec in records:
        writer.writerow(_structured_cells(rec))
    return buf.getvalue().encode(encoding)


def _normalize_headers(headers: List[str]) -> List[str]:
    """Strip whitespace (and a UTF-8 BOM on the first cell)."""
    cleaned = [h.strip() for h in headers]
    if cleaned:
        cleaned[0] = cleaned[0].lstrip("\ufeff").strip()
    return cleaned


def _check_header(headers: Optional[List[str]]) -> Optional[str]:
    """Return an error message, or None when the header is the expected one."""
    if headers is None:
        return "CSV has no header"
    normalized = _normalize_headers(headers)
    if normalized == list(HEADER):
        return None
    missing = [h for h in HEADER if h not in normalized]
    if missing:
        return f"Missing required columns: {missing}"
    return f"Columns out of order, expected: {list(HEADER)}"


def _open_rows(file_bytes: bytes, encoding: str):
    # Wrap bytes with a text stream so csv can read it as lines of text.
    text_stream = TextIOWrapper(BytesIO(file_bytes), encoding=encoding, newline="")
    return csv.reader(text_stream)


def _iter_rows(reader) -> Iterator[Tuple[int, Union[List[str], csv.Error]]]:
    """
    Yield (row_number, cells) from row 2 on. A row the csv module can't split
    (field over the size limit, NUL byte, ...) is yielded as its csv.Error so
    the caller decides whether it is fatal. Each failed read still consumes
    input, so iteration always ends.
    """
    row_number = 1
    while True:
        row_number += 1
        try:
            row = next(reader)
        except StopIteration:
            return
        except csv.Error as ce:
            yield row_number, ce
            continue
        yield row_number, row


def _read_header(reader) -> Optional[str]:
    try:
        return _check_header(next(reader, None))
    except csv.Error as ce:
        return f"malformed CSV: {ce}"


def parse_csv(file_bytes: bytes, encoding: str = "utf-8") -> Tuple[List[TaxBitRec], List[Dict[str, Any]]]:
    """
    Parse a TaxBit export into records.
    Returns:
      valid_rows: list[TaxBitRec], in file order
      errors: list of {row_number, column, error, raw_row}

    Blank lines are skipped. Row 1 is the header.
    """
    valid: List[TaxBitRec] = []
    errors: List[Dict[str, Any]] = []

    reader = _open_rows(file_bytes, encoding)
    header_error = _read_header(reader)
    if header_error:
        errors.append({"row_number": 1, "column": None, "error": header_error, "raw_row": None})
        return valid, errors

    for i, row in _iter_rows(reader):
        if isinstance(row, csv.Error):
            log.debug("row %d unreadable: %s", i, row)
            errors.append({"row_number": i, "column": None, "error": f"malformed CSV: {row}", "raw_row": None})
            continue
        if not row:
            continue
        try:
            valid.append(decode_row(row, line_number=i))
        except DecodeError as de:
            log.debug("row %d rejected: %s", i, de)
            errors.append({"row_number": i, "column": de.column, "error": de.reason, "raw_row": row})

    log.info("parsed TaxBit CSV: %d valid rows, %d errors", len(valid), len(errors))
    return valid, errors


def decode_csv(file_bytes: bytes, encoding: str = "utf-8") -> List[TaxBitRec]:
    """Strict variant of parse_csv(): the first bad row raises DecodeError."""
    reader = _open_rows(file_bytes, encoding)
    header_error = _read_header(reader)
    if header_error:
        raise DecodeError(header_error, line_number=1)

    records: List[TaxBitRec] = []
    for i, row in _iter_rows(reader):
        if isinstance(row, csv.Error):
            raise DecodeError(f"malformed CSV: {row}", line_number=i) from row
        if row:
            records.append(decode_row(row, line_number=i))
    return records
