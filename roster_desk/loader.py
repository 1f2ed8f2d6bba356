"""
loader.py: CSV reader for roster imports

Public API:
    table = load_csv("path/to/employees.csv")     # or raw bytes from an upload
    table.headers   -> ["Driver Name", "Civil ID", "Origin"]
    table.rows      -> [{"Driver Name": "Bob", "Civil ID": "123", "Origin": "L"}, ...]

Every cell comes back as a string; blank cells are "". Anything that cannot
be turned into a header row plus records raises CsvParseError.
"""

from __future__ import annotations

import csv
import io
import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

import chardet
import pandas as pd

from roster_desk.errors import CsvParseError

logger = logging.getLogger(__name__)

CANDIDATE_DELIMITERS = [",", ";", "\t", "|"]

CsvSource = Union[str, Path, bytes]


@dataclass
class RawTabularInput:
    headers: list[str]
    rows: list[dict[str, str]]
    encoding: str = "utf-8"
    delimiter: str = ","
    warnings: list[str] = field(default_factory=list)


# ══════════════════════════════════════════════════════════════════════════════
# ENCODING
# ══════════════════════════════════════════════════════════════════════════════

def _detect_encoding(raw: bytes) -> str:
    result = chardet.detect(raw)
    detected = result.get("encoding") or ""
    if not detected:
        return "utf-8"
    return detected


def _read_text_safely(raw: bytes, preferred_encoding: str) -> str:
    """
    Decode raw bytes line-by-line.

    Strategy per line:
      1. UTF-8
      2. preferred_encoding (chardet result)
      3. latin-1
      4. CP1252 with replace

    Null bytes and a leading BOM are dropped.
    """
    decoded_lines: list[str] = []
    for raw_line in raw.split(b"\n"):
        decoded: str | None = None
        for enc in ("utf-8", preferred_encoding, "latin-1"):
            if not enc:
                continue
            try:
                decoded = raw_line.decode(enc)
                break
            except (LookupError, UnicodeDecodeError):
                continue
        if decoded is None:
            decoded = raw_line.decode("cp1252", errors="replace")
        decoded_lines.append(decoded.replace("\x00", ""))
    text = "\n".join(decoded_lines)
    return text.lstrip("\ufeff")


# ══════════════════════════════════════════════════════════════════════════════
# DELIMITER
# ══════════════════════════════════════════════════════════════════════════════

def _detect_delimiter(text: str) -> str:
    """
    Infer the delimiter from the first non-empty lines.

    csv.Sniffer first; when it gives up, score each candidate by how
    consistent the column count is across rows.
    """
    sample_lines = [line for line in text.splitlines() if line.strip()][:50]
    if not sample_lines:
        return ","

    try:
        return csv.Sniffer().sniff("\n".join(sample_lines[:25]), delimiters="".join(CANDIDATE_DELIMITERS)).delimiter
    except csv.Error:
        pass

    best_delim = ","
    best_score = float("-inf")
    for delim in CANDIDATE_DELIMITERS:
        rows = [
            row
            for row in csv.reader(io.StringIO("\n".join(sample_lines)), delimiter=delim)
            if any(cell.strip() for cell in row)
        ]
        if not rows:
            continue
        widths = Counter(len(row) for row in rows)
        mode_width, mode_count = widths.most_common(1)[0]
        score = mode_width * 2.0 + (mode_count / len(rows)) * mode_width
        if len(rows[0]) == mode_width:
            score += 1.0
        if mode_width == 1:
            score -= 10.0
        if score > best_score:
            best_score = score
            best_delim = delim
    return best_delim


# ══════════════════════════════════════════════════════════════════════════════
# PUBLIC API
# ══════════════════════════════════════════════════════════════════════════════

def _read_source(source: CsvSource) -> bytes:
    if isinstance(source, bytes):
        return source
    path = Path(source)
    try:
        return path.read_bytes()
    except OSError as exc:
        raise CsvParseError(f"Could not read {path.name}: {exc}") from exc


def _unique_headers(headers) -> list[str]:
    """Suffix repeated headers pandas-style: Name, Name.1, Name.2."""
    seen: set[str] = set()
    unique: list[str] = []
    for header in headers:
        candidate = header
        n = 0
        while candidate in seen:
            n += 1
            candidate = f"{header}.{n}"
        seen.add(candidate)
        unique.append(candidate)
    return unique


def parse_text(text: str, delimiter: str | None = None) -> RawTabularInput:
    if delimiter is None:
        delimiter = _detect_delimiter(text)

    sep = r"\|" if delimiter == "|" else delimiter
    try:
        df = pd.read_csv(
            io.StringIO(text),
            header=None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            on_bad_lines="skip",
            sep=sep,
            engine="python",
        )
    except pd.errors.EmptyDataError as exc:
        raise CsvParseError("CSV file is empty; a header row is required.") from exc
    except Exception as exc:
        raise CsvParseError(f"Could not parse CSV file: {exc}") from exc

    if df.empty:
        raise CsvParseError("CSV file is empty; a header row is required.")

    # Header row is read as data so repeats are named after trimming.
    df = df.fillna("")
    headers = _unique_headers(str(value).strip() for value in df.iloc[0])
    rows = [dict(zip(headers, (str(value) for value in values))) for values in df.iloc[1:].itertuples(index=False)]
    return RawTabularInput(headers=headers, rows=rows, delimiter=delimiter)


def load_csv(source: CsvSource, delimiter: str | None = None) -> RawTabularInput:
    raw = _read_source(source)
    if not raw.strip():
        raise CsvParseError("CSV file is empty; a header row is required.")

    encoding = _detect_encoding(raw)
    text = _read_text_safely(raw, encoding)
    table = parse_text(text, delimiter=delimiter)
    table.encoding = encoding
    if encoding.lower().replace("-", "") not in ("utf8", "ascii", "utf8sig"):
        table.warnings.append(f"File decoded as {encoding}; check names for garbled characters.")

    logger.debug(
        "Parsed CSV: %d header(s), %d row(s), encoding=%s, delimiter=%r",
        len(table.headers),
        len(table.rows),
        encoding,
        table.delimiter,
    )
    return table
