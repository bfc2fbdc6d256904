#!/usr/bin/env python3
"""
Popularity score and ranking

score = rating^4 * log10(votes + 1) / 100, rounded half away from zero.
The fourth power rewards quality, the log damps vote volume.
"""

import math
from typing import Iterable, List, Optional

from ranker.models import EnrichedRecord


def _to_number(value) -> float:
    """Coerce a table cell or API value to a finite float (blank/garbage → 0)"""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return 0.0
        return number if math.isfinite(number) else 0.0

    text = str(value).strip().replace(',', '')
    if not text:
        return 0.0
    try:
        number = float(text)
    except ValueError:
        return 0.0
    return number if math.isfinite(number) else 0.0


def round_half_away(value: float) -> int:
    """Round to nearest integer, .5 going away from zero"""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def score(rating: Optional[object], votes: Optional[object]) -> int:
    """
    Derive the ranking score from rating and vote count

    Args:
        rating: numeric rating or its string form, blank treated as 0
        votes: vote count or its string form, blank treated as 0

    Returns:
        Integer score (0 whenever rating or votes is 0, or the result overflows)
    """
    r = _to_number(rating)
    v = max(_to_number(votes), 0.0)
    try:
        value = r ** 4 * math.log10(v + 1) / 100
    except OverflowError:
        return 0
    if not math.isfinite(value):
        return 0
    return round_half_away(value)


def rank(records: Iterable[EnrichedRecord]) -> List[EnrichedRecord]:
    """Sort by score, highest first; ties keep their input order"""
    return sorted(records, key=lambda record: record.score, reverse=True)
