from __future__ import annotations

import re
from typing import Any

SEPARATOR_RE = re.compile(r"[\s_-]+")

LOCAL = "local"
OVERSEAS = "overseas"
EMPLOYEE_TYPES = (LOCAL, OVERSEAS)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def normalize_key(value: Any) -> str:
    """Lower-case a header and strip whitespace, hyphens and underscores.

    ``"Civil_ID"``, ``"civil id"`` and ``"CIVILID"`` all become ``"civilid"``.
    """
    return SEPARATOR_RE.sub("", _text(value).strip().lower())


def normalize_type(value: Any) -> str:
    """Map free-text origin values onto ``local`` / ``overseas``.

    Returns ``""`` when nothing is recognised; callers treat that as
    "no opinion" rather than defaulting.
    """
    text = _text(value).strip().lower()
    if not text:
        return ""
    if "over" in text:
        return OVERSEAS
    if "local" in text:
        return LOCAL
    if text == "o":
        return OVERSEAS
    if text == "l":
        return LOCAL
    return ""
