"""Lenient numeric coercion shared by the records and the engine."""
from __future__ import annotations

import math
import re
from typing import Any

# 1,000 / -12,345,678 : commas grouping thousands, no decimals
_THOUSANDS_COMMA = re.compile(r"[-+]?\d{1,3}(,\d{3})+")


def _normalize_separators(text: str) -> str:
    """Rewrite grouped/decimal-comma notation into a plain float literal.

    Spaces group thousands. With both ``,`` and ``.`` present the later one is
    the decimal mark. A lone comma groups thousands when every comma is
    followed by exactly three digits, otherwise it is a decimal comma.
    """
    text = text.strip().replace("\u00a0", "").replace(" ", "")
    if "," not in text:
        return text
    if "." in text:
        if text.rfind(",") > text.rfind("."):
            return text.replace(".", "").replace(",", ".")
        return text.replace(",", "")
    if _THOUSANDS_COMMA.fullmatch(text):
        return text.replace(",", "")
    return text.replace(",", ".")


def to_number(value: Any) -> float:
    """Coerce a raw figure to float, degrading to 0.0 instead of raising."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = _normalize_separators(value)
        if not value:
            return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number
