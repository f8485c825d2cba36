# app.py
"""
Small FastAPI front end for TaxBit exports.

It drives the record core the way any reader would: decode an uploaded export,
sort it by the record total order, and show or return the result. Nothing is
stored.

Endpoints:
  GET  /health        → liveness check
  GET  /version       → app version metadata
  POST /upload/csv    → parse and PREVIEW (sorted, structured form + errors)
  POST /sort/csv      → strict parse, return the export sorted as text/csv

  Command to start the server: uvicorn taxbitrec.app:app --reload
"""

import logging
from typing import Any, Dict

from fastapi import FastAPI, File, HTTPException, Response, UploadFile

from .__about__ import __title__, __version__
from .config import load_config
from .csv_normalizer import decode_csv, parse_csv, record_digest, write_csv
from .errors import DecodeError
from .logging_setup import configure_logging
from .ordering import sort_records
from .schemas import TaxBitPreviewResponse

config = load_config()
configure_logging(config.log_level)
log = logging.getLogger(__name__)

app = FastAPI(title=__title__, version=__version__)


async def _read_csv_upload(file: UploadFile) -> bytes:
    filename = file.filename or ""
    if not filename.lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Please upload a .csv file")

    data = await file.read()
    if len(data) == 0:
        raise HTTPException(status_code=400, detail="Empty file")
    return data


@app.get("/health")
def health():
    """
    Health check endpoint: tells us the server is running.
    """
    return {"status": "ok"}


@app.get("/version")
def version():
    return {"name": __title__, "version": __version__}


@app.post("/upload/csv", response_model=TaxBitPreviewResponse)
async def upload_csv(file: UploadFile = File(...)) -> Dict[str, Any]:
    """
    Accept a TaxBit CSV, decode every row and return a PREVIEW:
    the first rows in sorted order plus the first few errors, so the user can
    fix the export before handing it to lot processing.
    """
    data = await _read_csv_upload(file)

    try:
        valid_rows, errors = parse_csv(data, encoding=config.encoding)
    except UnicodeDecodeError as e:
        raise HTTPException(status_code=400, detail=f"File is not {config.encoding} text: {e!s}")

    digests = {record_digest(r) for r in valid_rows}
    duplicates = len(valid_rows) - len(digests)
    if duplicates:
        log.info("%s: %d duplicate rows", file.filename, duplicates)

    preview = [r.to_structured() for r in sort_records(valid_rows)[: config.preview_rows]]
    return {
        "filename": file.filename or "",
        "total_valid": len(valid_rows),
        "total_errors": len(errors),
        "duplicates": duplicates,
        "preview": preview,
        "errors": errors[: config.max_errors],
    }


@app.post("/sort/csv")
async def sort_csv(file: UploadFile = File(...)) -> Response:
    """
    Return the upload sorted by (time, exchange id, chain hash, kind, ...).
    Any bad row rejects the whole file: a partially sorted export is useless.
    """
    data = await _read_csv_upload(file)

    try:
        records = decode_csv(data, encoding=config.encoding)
    except DecodeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except UnicodeDecodeError as e:
        raise HTTPException(status_code=400, detail=f"File is not {config.encoding} text: {e!s}")

    body = write_csv(sort_records(records), encoding=config.encoding)
    return Response(content=body, media_type="text/csv")
