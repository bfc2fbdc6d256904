#!/usr/bin/env python3
"""
Record types shared by the ranking pipeline

InputRecord   - one row of the input table, values kept as read
RemoteMatch   - best candidate returned by the title-lookup service
Found         - resolver succeeded, carries a RemoteMatch
Unavailable   - resolver gave up (reason is informational only)
EnrichedRecord - merged, classified and scored row ready for output
"""

from dataclasses import dataclass
from typing import Dict, Optional, Union

from ranker.constants import INPUT_COLUMNS, OUTPUT_COLUMNS


def _cell(row: Dict, column: str) -> str:
    value = row.get(column)
    if value is None:
        return ''
    return str(value).strip()


@dataclass(frozen=True)
class InputRecord:
    """One input row. Every field is a string, empty when the cell is blank."""
    title: str
    year: str = ''
    type: str = ''
    rating: str = ''
    votes: str = ''
    id: str = ''

    @classmethod
    def from_row(cls, row: Dict) -> 'InputRecord':
        """Build from a csv.DictReader row (column names are case-sensitive)"""
        title_col, year_col, type_col, rating_col, votes_col, id_col = INPUT_COLUMNS
        return cls(
            title=_cell(row, title_col),
            year=_cell(row, year_col),
            type=_cell(row, type_col),
            rating=_cell(row, rating_col),
            votes=_cell(row, votes_col),
            id=_cell(row, id_col),
        )


@dataclass(frozen=True)
class RemoteMatch:
    """Single title record from the lookup service"""
    id: str
    primary_title: str = ''
    start_year: Optional[int] = None
    type: str = ''
    aggregate_rating: Optional[float] = None
    votes_count: Optional[int] = None

    @classmethod
    def from_api(cls, data: Dict) -> 'RemoteMatch':
        """
        Build from one element of the service's `titles` array.

        The rating block is nested: {"rating": {"aggregate_rating", "votes_count"}}
        and is missing entirely for unrated titles.

        Raises TypeError when the element or its rating block is not an object.
        """
        if not isinstance(data, dict):
            raise TypeError(f"Title entry must be an object, got {type(data).__name__}")
        rating = data.get('rating') or {}
        if not isinstance(rating, dict):
            raise TypeError(f"'rating' must be an object, got {type(rating).__name__}")
        return cls(
            id=data.get('id') or '',
            primary_title=data.get('primary_title') or '',
            start_year=data.get('start_year'),
            type=data.get('type') or '',
            aggregate_rating=rating.get('aggregate_rating'),
            votes_count=rating.get('votes_count'),
        )


@dataclass(frozen=True)
class Found:
    match: RemoteMatch


@dataclass(frozen=True)
class Unavailable:
    reason: str


Resolution = Union[Found, Unavailable]


@dataclass
class EnrichedRecord:
    """Output row: merged fields plus derived score and link"""
    title: str
    year: object
    type: str
    rating: object
    votes: object
    score: int
    id: str
    link: str

    def as_row(self) -> Dict[str, object]:
        """Map onto the output header, in column order"""
        values = (
            self.title, self.year, self.type, self.rating,
            self.votes, self.score, self.id, self.link,
        )
        return dict(zip(OUTPUT_COLUMNS, values))
