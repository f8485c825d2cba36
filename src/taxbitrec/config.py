# config.py
from __future__ import annotations
import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

# src/taxbitrec/config.py -> parents[2] == project root
PROJECT_ROOT = Path(__file__).resolve().parents[2]


class CodecConfig(BaseModel):
    encoding: str = "utf-8"
    preview_rows: int = Field(5, ge=1)
    max_errors: int = Field(5, ge=1)
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        name = v.strip().upper()
        if not isinstance(logging.getLevelName(name), int):
            raise ValueError(f"unknown log level {v!r}")
        return name


def load_config() -> CodecConfig:
    """
    Build the config from the environment. A project-root .env is loaded first;
    real environment variables win over it.
    """
    load_dotenv(PROJECT_ROOT / ".env")
    return CodecConfig(
        encoding=os.getenv("TAXBITREC_ENCODING", "utf-8"),
        preview_rows=os.getenv("TAXBITREC_PREVIEW_ROWS", "5"),
        max_errors=os.getenv("TAXBITREC_MAX_ERRORS", "5"),
        log_level=os.getenv("TAXBITREC_LOG_LEVEL", "INFO"),
    )
