"""Guess which CSV headers hold the name, civil id and origin columns."""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from roster_desk.normalize import normalize_key

CIVIL_ID_ALIASES = ("civil_id", "civil id", "civilid", "cid")
ORIGIN_ALIASES = ("origin", "type", "employee_type", "driver_type", "local/overseas")

NAME_EXACT = {"driver", "drivers", "name", "names"}


def _lower(header) -> str:
    return str(header if header is not None else "").strip().lower()


def guess_name_column(headers: Optional[Sequence[str]]) -> str:
    headers = list(headers or [])
    lowered = [_lower(h) for h in headers]

    for idx, header in enumerate(lowered):
        if "driver" in header and "name" in header:
            return headers[idx]
    for idx, header in enumerate(lowered):
        if header in NAME_EXACT:
            return headers[idx]
    return headers[0] if headers else ""


def guess_by_aliases(headers: Optional[Sequence[str]], aliases: Optional[Iterable[str]]) -> str:
    targets = {normalize_key(alias) for alias in (aliases or [])}
    for header in headers or []:
        if normalize_key(header) in targets:
            return header
    return ""


def guess_civil_id_column(headers: Optional[Sequence[str]]) -> str:
    return guess_by_aliases(headers, CIVIL_ID_ALIASES)


def guess_origin_column(headers: Optional[Sequence[str]]) -> str:
    return guess_by_aliases(headers, ORIGIN_ALIASES)
