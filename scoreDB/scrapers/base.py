"""
Base scraping utilities for fussball.de.

Provides common functionality for all scrapers:
- HTTP fetching with retry logic
- Team id extraction from team page URLs
"""
import re
import aiohttp
import asyncio
import logging
from typing import Optional

from ..config import PAGE_FETCH_ATTEMPTS, PAGE_FETCH_BACKOFF, PAGE_FETCH_TIMEOUT
from ..errors import PageFetchError

logger = logging.getLogger(__name__)

TEAM_URL_PATTERN = re.compile(
    r'^https?://www\.fussball\.de/mannschaft/(?P<team_name>[^/]+)/-/saison/[0-9]{4}/team-id/(?P<team_id>[0-9a-z]{32,})/?$',
    re.IGNORECASE,
)


def team_id_from_url(url: str) -> Optional[str]:
    """
    Extract the team id from a fussball.de team page URL.

    Args:
        url: Team URL (e.g., "https://www.fussball.de/mannschaft/fc-x/-/saison/2324/team-id/011MIF...")

    Returns:
        Team id if the URL is a team page URL, None otherwise
    """
    m = TEAM_URL_PATTERN.match(url or '')
    return m.group('team_id') if m else None


# Statuses worth another attempt; any other non-success status fails at once
RETRY_STATUSES = frozenset({429, 500, 502, 503, 504})

PAGE_HEADERS = {
    'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0 Safari/537.36',
    'Referer': 'https://www.fussball.de/',
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
    'Accept-Language': 'de-DE,de;q=0.9,en;q=0.5',
}


async def fetch_html(
    session: aiohttp.ClientSession,
    url: str,
    attempts: int = PAGE_FETCH_ATTEMPTS,
    timeout: float = PAGE_FETCH_TIMEOUT,
    backoff: float = PAGE_FETCH_BACKOFF,
) -> str:
    """
    Fetch a fussball.de page with browser-like headers.

    Transport errors, timeouts and the statuses in RETRY_STATUSES are retried
    with exponential backoff (backoff, 2 * backoff, ...).

    Args:
        session: aiohttp client session
        url: URL to fetch
        attempts: Total number of attempts (at least 1)
        timeout: Seconds allowed per attempt
        backoff: Delay before the first retry

    Returns:
        HTML content as string

    Raises:
        PageFetchError: Non-retryable status, or every attempt failed
    """
    last_problem = 'no attempt made'
    for attempt in range(1, max(attempts, 1) + 1):
        try:
            async with session.get(url, timeout=aiohttp.ClientTimeout(total=timeout), headers=PAGE_HEADERS) as resp:
                if 200 <= resp.status < 300:
                    return await resp.text()
                if resp.status not in RETRY_STATUSES:
                    raise PageFetchError(url, f'server answered with status {resp.status}')
                last_problem = f'status {resp.status}'
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            last_problem = repr(e)

        if attempt < attempts:
            delay = backoff * 2 ** (attempt - 1)
            logger.debug('Fetching %s failed (%s), attempt %d of %d, retrying in %ss',
                         url, last_problem, attempt, attempts, delay)
            await asyncio.sleep(delay)

    raise PageFetchError(url, f'giving up after {attempts} attempt(s): {last_problem}')
