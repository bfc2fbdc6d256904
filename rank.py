#!/usr/bin/env python3
"""
rank.py - Title Ranking Pipeline

Reads a title table, optionally enriches each row from imdbapi.dev,
scores every title and writes the table back out ranked by score.

Pipeline per row:
1. Read row → InputRecord
2. [OPTIONAL] Resolve against imdbapi.dev (retry on 429, degrade on failure)
3. Merge remote fields over local ones, classify type
4. Score = rating^4 * log10(votes + 1) / 100
Then: stable sort by score (descending) → write CSV

Remote enrichment is OFF unless enabled in the config or with --enrich.
"""

import sys
import logging
import argparse
from pathlib import Path
from typing import Dict, Iterable, List, Optional
from collections import defaultdict

import yaml

from ranker.constants import DEFAULT_API_URL, MAX_ATTEMPTS, REQUEST_TIMEOUT
from ranker.imdb import IMDbClient
from ranker.merge import enrich
from ranker.models import Found, EnrichedRecord, InputRecord
from ranker.scoring import rank
from ranker.table import read_titles, write_ranked

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    'api_url': DEFAULT_API_URL,
    'enrich': False,
    'max_attempts': MAX_ATTEMPTS,
    'timeout': REQUEST_TIMEOUT,
}


def load_config(config_path: Path) -> dict:
    """Load configuration from YAML file, falling back to defaults"""
    config = dict(DEFAULT_CONFIG)

    if not config_path.exists():
        logger.info(f"No config file at {config_path}, using defaults")
        return config

    with open(config_path, 'r') as f:
        loaded = yaml.safe_load(f)

    if loaded is None:
        return config
    if not isinstance(loaded, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")

    config.update(loaded)
    return config


class TitleRanker:
    """Enrich, score and rank a table of titles"""

    def __init__(self, config_path: Path, enrich_titles: Optional[bool] = None):
        self.config = load_config(config_path)
        if enrich_titles is not None:
            self.config['enrich'] = enrich_titles
        self.stats = defaultdict(int)
        self._setup_components()

    def _setup_components(self):
        """Create the lookup client when remote enrichment is enabled"""
        if self.config.get('enrich'):
            self.imdb = IMDbClient(
                base_url=self.config['api_url'],
                max_attempts=int(self.config['max_attempts']),
                timeout=float(self.config['timeout']),
            )
            logger.info(f"IMDb enrichment enabled ({self.config['api_url']})")
        else:
            self.imdb = None
            logger.info("IMDb enrichment disabled: ranking from local fields only")

    def enrich_record(self, record: InputRecord) -> EnrichedRecord:
        """Resolve (if enabled) and merge one row"""
        remote = None

        if self.imdb:
            resolution = self.imdb.resolve(record.title, record.year, record.id)
            if isinstance(resolution, Found):
                remote = resolution.match
                self.stats['remote_match'] += 1
            else:
                self.stats['local_only'] += 1
        else:
            self.stats['local_only'] += 1

        return enrich(record, remote)

    def process_records(self, records: Iterable[InputRecord]) -> List[EnrichedRecord]:
        """Enrich every row, then rank the whole table"""
        results = []
        for i, record in enumerate(records, 1):
            if i % 100 == 0:
                logger.info(f"Processing {i}...")

            try:
                results.append(self.enrich_record(record))
            except Exception as e:
                logger.error(f"Error processing '{record.title}' ({record.year}): {e}")
                self.stats['errors'] += 1

        return rank(results)

    def process_file(self, input_path: Path) -> List[EnrichedRecord]:
        """Read input_path and return its ranked rows"""
        logger.info(f"Reading: {input_path}")
        return self.process_records(read_titles(input_path))

    def print_stats(self, results: List[EnrichedRecord]):
        """Print ranking statistics"""
        by_type: Dict[str, int] = defaultdict(int)
        for r in results:
            by_type[r.type or '(none)'] += 1

        print("\n" + "=" * 60)
        print("RANKING STATISTICS")
        print("=" * 60)
        print(f"Titles ranked: {len(results)}")

        print("\nBY TYPE:")
        for category, count in sorted(by_type.items(), key=lambda x: -x[1]):
            print(f"  {category:15s}: {count:4d}")

        print("\nBY SOURCE:")
        for source in ('remote_match', 'local_only'):
            print(f"  {source:15s}: {self.stats.get(source, 0):4d}")

        if results:
            top = results[0]
            print(f"\nTop title: {top.title} ({top.year}) score {top.score}")

        if self.stats.get('errors'):
            print(f"Errors: {self.stats['errors']}")

        if self.imdb:
            api_stats = self.imdb.get_stats()
            print(f"\nIMDb: {api_stats['queries']} lookups, "
                  f"{api_stats['found']} matched ({api_stats['match_rate']:.1f}%), "
                  f"{api_stats['rate_limited']} rate-limited responses")

        print("=" * 60)


def main():
    parser = argparse.ArgumentParser(
        description='Enrich, score and rank a table of movies and series',
        epilog="""
Examples:
  python rank.py input.csv
  python rank.py input.csv --enrich
  python rank.py input.csv --output output/ranked.csv --config config.yaml
        """
    )
    parser.add_argument('input', type=Path, nargs='?', default=Path('input.csv'),
                        help='Input CSV with Title, Year, Type, Rating, Votes, ID (default: input.csv)')
    parser.add_argument('--output', '-o', type=Path, default=Path('output.csv'),
                        help='Output CSV path (default: output.csv)')
    parser.add_argument('--config', type=Path, default=Path('config.yaml'),
                        help='Configuration file (default: config.yaml)')
    toggle = parser.add_mutually_exclusive_group()
    toggle.add_argument('--enrich', action='store_true', dest='enrich', default=None,
                        help='Look up every title on imdbapi.dev')
    toggle.add_argument('--no-api', action='store_false', dest='enrich', default=None,
                        help='Rank from local fields only (overrides config)')

    args = parser.parse_args()

    if not args.input.exists():
        logger.error(f"Input file does not exist: {args.input}")
        return 1

    try:
        ranker = TitleRanker(args.config, enrich_titles=args.enrich)
    except (ValueError, yaml.YAMLError) as e:
        logger.error(f"Invalid config {args.config}: {e}")
        return 1

    results = ranker.process_file(args.input)
    write_ranked(results, args.output)
    ranker.print_stats(results)

    return 0


if __name__ == '__main__':
    sys.exit(main())
