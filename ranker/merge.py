#!/usr/bin/env python3
"""
Merge remote title metadata into an input row

Precedence per field: remote value (when present and non-empty) > input value > ''.
"""

from dataclasses import dataclass
from typing import Optional

from ranker.constants import IMDB_TITLE_URL, TYPE_CATEGORIES
from ranker.models import EnrichedRecord, InputRecord, RemoteMatch
from ranker.scoring import score


@dataclass(frozen=True)
class MergedFields:
    title: object
    year: object
    raw_type: object
    rating: object
    votes: object
    id: object


def _pick(remote_value, local_value):
    if remote_value is not None and remote_value != '':
        return remote_value
    if local_value is not None:
        return local_value
    return ''


def merge_fields(record: InputRecord, remote: Optional[RemoteMatch] = None) -> MergedFields:
    """Combine a RemoteMatch (or None) with the input row, field by field"""
    if remote is None:
        return MergedFields(
            title=record.title,
            year=record.year,
            raw_type=record.type,
            rating=record.rating,
            votes=record.votes,
            id=record.id,
        )

    return MergedFields(
        title=_pick(remote.primary_title, record.title),
        year=_pick(remote.start_year, record.year),
        raw_type=_pick(remote.type, record.type),
        rating=_pick(remote.aggregate_rating, record.rating),
        votes=_pick(remote.votes_count, record.votes),
        id=_pick(remote.id, record.id),
    )


def classify_type(raw_type: Optional[str]) -> str:
    """
    Map a raw service type onto a display category

    Best-effort lookup: unknown values pass through unchanged, blanks become ''.
    """
    if not raw_type:
        return ''
    return TYPE_CATEGORIES.get(raw_type, raw_type)


def imdb_link(title_id: Optional[str]) -> str:
    """IMDb title page for an identifier, '' without one"""
    if not title_id:
        return ''
    return IMDB_TITLE_URL.format(id=title_id)


def enrich(record: InputRecord, remote: Optional[RemoteMatch] = None) -> EnrichedRecord:
    """Merge, classify and score one row"""
    merged = merge_fields(record, remote)
    title_id = str(merged.id)

    return EnrichedRecord(
        title=merged.title,
        year=merged.year,
        type=classify_type(merged.raw_type),
        rating=merged.rating,
        votes=merged.votes,
        score=score(merged.rating, merged.votes),
        id=title_id,
        link=imdb_link(title_id),
    )
