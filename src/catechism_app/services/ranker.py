from __future__ import annotations

import math
import unicodedata
from functools import cmp_to_key
from typing import Iterable

from catechism_app.models import ScoreRow

SCORE_EPSILON = 1e-9

VIETNAMESE_ALPHABET = "aăâbcdđeêfghijklmnoôơpqrstuưvwxyz"
_ALPHABET_INDEX = {letter: index for index, letter in enumerate(VIETNAMESE_ALPHABET)}

# Breve, circumflex and horn form distinct letters; tone marks do not.
_LETTER_MODIFIERS = frozenset({"\u0306", "\u0302", "\u031b"})


def vietnamese_sort_key(value: str | None) -> tuple[tuple[int, int], ...]:
    """Collation key ordering names by the Vietnamese alphabet, ignoring case and tone marks."""
    if not value:
        return ()

    decomposed = unicodedata.normalize("NFD", value.casefold())
    kept = "".join(
        char for char in decomposed if not unicodedata.combining(char) or char in _LETTER_MODIFIERS
    )
    letters = unicodedata.normalize("NFC", kept)

    key: list[tuple[int, int]] = []
    for char in letters:
        index = _ALPHABET_INDEX.get(char)
        if index is not None:
            key.append((1, index))
        elif char.isalpha():
            key.append((2, ord(char)))
        else:
            key.append((0, ord(char)))
    return tuple(key)


def _is_scored(row: ScoreRow) -> bool:
    value = row.total_score
    if value is None or isinstance(value, bool):
        return False
    return isinstance(value, (int, float)) and math.isfinite(value)


def _compare_names(left: ScoreRow, right: ScoreRow) -> int:
    left_key = vietnamese_sort_key(left.full_name)
    right_key = vietnamese_sort_key(right.full_name)
    if left_key != right_key:
        return -1 if left_key < right_key else 1
    if left.student_id != right.student_id:
        return -1 if left.student_id < right.student_id else 1
    return 0


def _compare_scored(left: ScoreRow, right: ScoreRow) -> int:
    delta = right.total_score - left.total_score
    if abs(delta) > SCORE_EPSILON:
        return 1 if delta > 0 else -1
    return _compare_names(left, right)


def rank_students(rows: Iterable[ScoreRow]) -> list[ScoreRow]:
    """Assign dense competition ranks and return the rows in display order.

    Scored rows come first, highest total first, tied scores sharing a rank
    so that ``[9.0, 9.0, 8.0]`` ranks as ``[1, 1, 3]``. Rows without a
    finite total get ``rank=None`` and follow in name order.
    """
    scored: list[ScoreRow] = []
    unscored: list[ScoreRow] = []
    for row in rows:
        (scored if _is_scored(row) else unscored).append(row)

    scored.sort(key=cmp_to_key(_compare_scored))
    unscored.sort(key=cmp_to_key(_compare_names))

    previous_score: float | None = None
    current_rank = 0
    for position, row in enumerate(scored, start=1):
        if previous_score is None or abs(row.total_score - previous_score) > SCORE_EPSILON:
            current_rank = position
        row.rank = current_rank
        previous_score = row.total_score

    for row in unscored:
        row.rank = None

    return scored + unscored
