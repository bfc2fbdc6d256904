#!/usr/bin/env python3
"""
imdbapi.dev client with rate-limit aware retries

Lookups never raise: every failure is logged and reported as Unavailable,
so one bad title cannot abort a batch.
"""

import json
import logging
import time
from typing import Callable, Dict, Optional, Tuple
from urllib.parse import quote

import requests

from ranker.constants import (
    DEFAULT_API_URL, MAX_ATTEMPTS, REQUEST_TIMEOUT,
    SEARCH_PATH, TITLE_PATH, YEAR_UNKNOWN,
)
from ranker.models import Found, RemoteMatch, Resolution, Unavailable

logger = logging.getLogger(__name__)


class ResolverError(Exception):
    """Base class for lookup failures"""


class NetworkError(ResolverError):
    """Transport failure (DNS, connection reset, timeout)"""


class RateLimited(ResolverError):
    """HTTP 429 - retryable"""

    def __init__(self, retry_after: Optional[int] = None):
        self.retry_after = retry_after
        super().__init__(f"429 Too Many Requests (Retry-After: {retry_after})")


class HttpError(ResolverError):
    """Non-2xx response other than 429"""

    def __init__(self, status: int, status_text: str = ''):
        self.status = status
        self.status_text = status_text or ''
        super().__init__(f"{status} {self.status_text}".strip())


class ParseError(ResolverError):
    """Response body is not the JSON document we expect"""


class ExhaustedRetries(ResolverError):
    """Still rate limited after the last attempt"""


def build_query(title: str, year: str = '') -> str:
    """Search text: title plus year, year dropped when empty or 'N/A'"""
    year = (year or '').strip()
    if year == YEAR_UNKNOWN:
        year = ''
    return f"{title} {year}".strip()


def parse_retry_after(value: Optional[str]) -> Optional[int]:
    """Retry-After in whole seconds (fractions truncated), None when absent or not numeric"""
    if value is None:
        return None
    try:
        return max(int(float(str(value).strip())), 0)
    except (ValueError, OverflowError):
        return None


def describe_response(response) -> str:
    """Multi-line dump of a response for debug logs"""
    headers = json.dumps(dict(response.headers or {}), indent=2)
    return (
        f"Status: {response.status_code}\n"
        f"Status Text: {response.reason}\n"
        f"URL: {response.url}\n"
        f"Headers: {headers}\n"
        f"Redirected: {bool(response.history)}"
    )


class IMDbClient:
    """Interface to the imdbapi.dev title lookup service"""

    def __init__(self, base_url: str = DEFAULT_API_URL, max_attempts: int = MAX_ATTEMPTS,
                 timeout: float = REQUEST_TIMEOUT, sleep: Callable[[float], None] = time.sleep):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self.base_url = base_url.rstrip('/')
        self.max_attempts = max_attempts
        self.timeout = timeout
        self.sleep = sleep
        self.queries = 0
        self.found = 0
        self.unavailable = 0
        self.rate_limited = 0

    def _build_request(self, title: str, year: str, title_id: str) -> Tuple[str, Optional[Dict]]:
        """Direct lookup when an identifier is known, otherwise a search"""
        if title_id:
            path = TITLE_PATH.format(id=quote(title_id, safe=''))
            return f"{self.base_url}{path}", None
        return f"{self.base_url}{SEARCH_PATH}", {'query': build_query(title, year)}

    def resolve(self, title: str, year: str = '', title_id: str = '') -> Resolution:
        """
        Look up one title and return its best match

        Returns Found(RemoteMatch) for the first candidate, or Unavailable when
        the service has no candidates or the lookup failed for any reason.
        """
        self.queries += 1
        url, params = self._build_request(title, year, title_id)

        try:
            data = self._fetch(url, params)
            match = self._first_match(data)
        except ResolverError as e:
            logger.warning(f"Lookup failed for '{title}' ({year}): {e}")
            self.unavailable += 1
            return Unavailable(str(e))

        if match is None:
            logger.debug(f"No matches for '{title}' ({year})")
            self.unavailable += 1
            return Unavailable('no match')

        logger.info(f"IMDb: '{title}' ({year}) → '{match.primary_title}' [{match.id}]")
        self.found += 1
        return Found(match)

    def _fetch(self, url: str, params: Optional[Dict]) -> Dict:
        """GET with up to max_attempts tries while the service answers 429"""
        for attempt in range(self.max_attempts):
            try:
                return self._request(url, params)
            except RateLimited as e:
                self.rate_limited += 1
                if attempt == self.max_attempts - 1:
                    break
                wait = e.retry_after if e.retry_after is not None else 2 ** attempt
                logger.warning(f"Rate limit exceeded. Retrying after {wait} seconds...")
                self.sleep(wait)

        raise ExhaustedRetries(
            f"Max attempts ({self.max_attempts}) reached without a successful response"
        )

    def _request(self, url: str, params: Optional[Dict]) -> Dict:
        """Single GET, translated into the ResolverError taxonomy"""
        try:
            response = requests.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise NetworkError(str(e)) from e

        if response.status_code == 429:
            raise RateLimited(parse_retry_after(response.headers.get('Retry-After')))

        if not 200 <= response.status_code < 300:
            logger.debug(describe_response(response))
            raise HttpError(response.status_code, response.reason)

        try:
            data = response.json()
        except ValueError as e:
            raise ParseError(f"Invalid JSON body: {e}") from e

        if not isinstance(data, dict):
            raise ParseError(f"Expected a JSON object, got {type(data).__name__}")

        return data

    def _first_match(self, data: Dict) -> Optional[RemoteMatch]:
        """First entry of `titles`; a bare title object counts as one match"""
        titles = data.get('titles')
        if titles is None and data.get('id'):
            titles = [data]

        if not titles:
            return None

        if not isinstance(titles, list):
            raise ParseError("Malformed 'titles' list in response")

        try:
            return RemoteMatch.from_api(titles[0])
        except (AttributeError, TypeError) as e:
            raise ParseError(f"Malformed title entry: {e}") from e

    def get_stats(self) -> Dict:
        """Get lookup statistics"""
        match_rate = (self.found / self.queries * 100) if self.queries > 0 else 0

        return {
            'queries': self.queries,
            'found': self.found,
            'unavailable': self.unavailable,
            'rate_limited': self.rate_limited,
            'match_rate': match_rate,
        }
