#!/usr/bin/env python3
"""
CSV input/output for the title table

Input columns:  Title, Year, Type, Rating, Votes, ID
Output columns: Title, Year, Type, Rating, Votes, Score, ID, Link
"""

import csv
import logging
from pathlib import Path
from typing import Iterable, Iterator

from ranker.constants import INPUT_COLUMNS, OUTPUT_COLUMNS
from ranker.models import EnrichedRecord, InputRecord

logger = logging.getLogger(__name__)


def read_titles(path: Path) -> Iterator[InputRecord]:
    """Yield one InputRecord per data row, lazily"""
    with open(path, newline='', encoding='utf-8-sig') as f:
        reader = csv.DictReader(f)
        missing = [c for c in INPUT_COLUMNS if c not in (reader.fieldnames or [])]
        if missing:
            logger.warning(f"{path} is missing columns {missing}; treating them as empty")

        for row in reader:
            yield InputRecord.from_row(row)


def write_ranked(records: Iterable[EnrichedRecord], output_path: Path) -> int:
    """Write ranked rows with the fixed header, return the row count"""
    output_path.parent.mkdir(parents=True, exist_ok=True)

    count = 0
    with open(output_path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.DictWriter(f, fieldnames=OUTPUT_COLUMNS)
        writer.writeheader()
        for record in records:
            writer.writerow(record.as_row())
            count += 1

    logger.info(f"Wrote {count} rows to {output_path}")
    return count
