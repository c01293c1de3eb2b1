"""CSV file intake: upload checks and header/row extraction.

Parsing uses the stdlib :mod:`csv` module (RFC 4180 quoting, embedded commas
and newlines). Headers and cells are trimmed; rows whose cells are all blank
are dropped before anything downstream sees them.
"""

from __future__ import annotations

import csv
import os
from dataclasses import dataclass, field
from io import StringIO
from pathlib import Path

from .logging_setup import get_logger

_logger = get_logger("bitbasis.ingest")

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024


@dataclass(frozen=True, slots=True)
class CsvData:
    headers: list[str]
    rows: list[dict[str, str]] = field(default_factory=list)


def max_upload_bytes() -> int:
    raw = os.getenv("BITBASIS_MAX_UPLOAD_BYTES")
    if raw and raw.strip().isdigit():
        return int(raw.strip())
    return DEFAULT_MAX_UPLOAD_BYTES


def check_upload(path: Path | str) -> Path:
    """Reject anything that is not a reasonably sized ``.csv`` file."""

    p = Path(path)
    if p.suffix.lower() != ".csv":
        raise ValueError("Only CSV files are supported")
    if not p.is_file():
        raise ValueError(f"CSV file not found: {p}")
    limit = max_upload_bytes()
    if p.stat().st_size > limit:
        mib = 1024 * 1024
        shown = f"{limit // mib}MB" if limit % mib == 0 else f"{limit} bytes"
        raise ValueError(f"File size must be less than {shown}")
    return p


def read_csv_text(text: str) -> CsvData:
    if not text.strip():
        raise csv.Error("CSV file appears to be empty")

    with StringIO(text) as f:
        reader = csv.DictReader(f)
        raw_headers = reader.fieldnames or []
        headers = [h.strip() for h in raw_headers if h is not None and h.strip()]
        if not headers:
            raise csv.Error("No column headers found in CSV file")

        rows: list[dict[str, str]] = []
        for record in reader:
            # DictReader files overflow cells under a None key; drop them.
            row = {
                k.strip(): (v or "").strip()
                for k, v in record.items()
                if k is not None and k.strip()
            }
            if any(row.values()):
                rows.append(row)

    if not rows:
        raise csv.Error("No valid data rows found in CSV file")
    return CsvData(headers=headers, rows=rows)


def load_csv(path: Path | str) -> CsvData:
    """Validate, read (UTF-8, BOM tolerated) and parse a CSV file."""

    p = check_upload(path)
    data = read_csv_text(p.read_text(encoding="utf-8-sig"))
    _logger.info(
        "csv_loaded path=%s columns=%d rows=%d", p, len(data.headers), len(data.rows)
    )
    return data


__all__ = [
    "DEFAULT_MAX_UPLOAD_BYTES",
    "CsvData",
    "check_upload",
    "load_csv",
    "max_upload_bytes",
    "read_csv_text",
]
