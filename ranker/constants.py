#!/usr/bin/env python3
"""
Shared constants for the title ranking pipeline

Single source of truth for table columns, API locations and the type table.
DO NOT duplicate these in other modules - import from here instead.
"""

# Input table columns, in the order InputRecord consumes them
INPUT_COLUMNS = ['Title', 'Year', 'Type', 'Rating', 'Votes', 'ID']

# Output header (fixed order)
OUTPUT_COLUMNS = ['Title', 'Year', 'Type', 'Rating', 'Votes', 'Score', 'ID', 'Link']

# imdbapi.dev REST API (https://imdbapi.dev/)
DEFAULT_API_URL = 'https://rest.imdbapi.dev/v2'
SEARCH_PATH = '/search/titles'
TITLE_PATH = '/titles/{id}'

IMDB_TITLE_URL = 'https://www.imdb.com/title/{id}'

# Rate limit handling
MAX_ATTEMPTS = 3
REQUEST_TIMEOUT = 10

# Year placeholder some exports use for unknown release years
YEAR_UNKNOWN = 'N/A'

# Raw service type → display category.
# Anything not listed passes through unchanged.
TYPE_CATEGORIES = {
    'movie': 'Movie',
    'tvMovie': 'Movie',
    'tvMiniSeries': 'TV Series',
    'tvShort': 'TV Series',
    'tvSpecial': 'TV Series',
    'tvSeries': 'TV Series',
}
