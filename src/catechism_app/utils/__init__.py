from .text import normalize_text, round_half_up, slugify, strip_diacritics, to_number_or_null
from .time import (
    UNKNOWN_RANGE_LABEL,
    build_range_label,
    coerce_date,
    format_date,
    format_generated_at,
    format_short_date,
    iso_week_key,
)

__all__ = [
    "UNKNOWN_RANGE_LABEL",
    "build_range_label",
    "coerce_date",
    "format_date",
    "format_generated_at",
    "format_short_date",
    "iso_week_key",
    "normalize_text",
    "round_half_up",
    "slugify",
    "strip_diacritics",
    "to_number_or_null",
]
