from __future__ import annotations

import math
import re
import unicodedata
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")
_SLUG_SEPARATORS = re.compile(r"[^a-z0-9]+")


def strip_diacritics(value: str) -> str:
    decomposed = unicodedata.normalize("NFD", value)
    stripped = "".join(char for char in decomposed if not unicodedata.combining(char))
    return stripped.replace("đ", "d").replace("Đ", "D")


def normalize_text(value: str) -> str:
    """Uppercase ``value`` with diacritics and non-alphanumerics removed.

    ``"Thứ 5"`` becomes ``"THU5"`` and ``"Vắng"`` becomes ``"VANG"``.
    """
    return _NON_ALNUM.sub("", strip_diacritics(value)).upper()


def slugify(value: str, fallback: str = "lop") -> str:
    slug = _SLUG_SEPARATORS.sub("-", strip_diacritics(value).lower()).strip("-")
    return slug or fallback


def to_number_or_null(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str) and value.strip():
        try:
            parsed = float(value.strip())
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def round_half_up(value: float | Decimal, places: int = 2) -> float:
    """Round half away from zero, matching the two-decimal display of scores."""
    quantum = Decimal(1).scaleb(-places)
    exact = value if isinstance(value, Decimal) else Decimal(repr(value))
    try:
        return float(exact.quantize(quantum, rounding=ROUND_HALF_UP))
    except InvalidOperation:
        return float(value)
