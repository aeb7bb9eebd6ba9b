"""
Team match list pipeline.

Orchestrates the complete process for a list of teams:
1. Fetches each team's previous games page
2. Extracts the matches, deobfuscating scores with one shared font cache
3. Collects per-team matches and per-team errors
"""
import aiohttp
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from ..config import CONCURRENCY, TEAM_MATCHES_URL_TEMPLATE
from ..fonts import FontFetcher, ScoreDeobfuscator
from ..scrapers.base import fetch_html
from ..scrapers.match_list import Match, MatchListParser

logger = logging.getLogger(__name__)


@dataclass
class IngestionResult:
    """Result of a pipeline run, keyed by team id in input order."""
    matches: Dict[str, List[Match]] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def success_count(self) -> int:
        return len(self.matches)

    @property
    def error_count(self) -> int:
        return len(self.errors)


def team_matches_url(team_id: str, template: str = TEAM_MATCHES_URL_TEMPLATE) -> str:
    return template.format(team_id=team_id)


async def scrape_team(
    session: aiohttp.ClientSession,
    team_id: str,
    parser: MatchListParser,
    url_template: str = TEAM_MATCHES_URL_TEMPLATE,
) -> List[Match]:
    """
    Fetch and parse one team's previous games page.

    Args:
        session: aiohttp client session
        team_id: fussball.de team id
        parser: Parser holding the shared deobfuscator

    Returns:
        Matches listed on the page
    """
    url = team_matches_url(team_id, url_template)
    logger.info('Fetching match list for team %s', team_id)
    html = await fetch_html(session, url)
    return await parser.parse(html)


async def scrape_teams(
    team_ids: Iterable[str],
    deobfuscator: Optional[ScoreDeobfuscator] = None,
    concurrency: int = CONCURRENCY,
    url_template: str = TEAM_MATCHES_URL_TEMPLATE,
) -> IngestionResult:
    """
    Scrape many teams with bounded concurrency.

    A failing team is recorded in IngestionResult.errors and does not stop the
    others. When no deobfuscator is given, one is created for the run (sharing
    the HTTP session) and closed afterwards.
    """
    team_ids = list(dict.fromkeys(team_ids))
    sem = asyncio.Semaphore(concurrency)
    result = IngestionResult()

    async with aiohttp.ClientSession() as session:
        own_deobfuscator = deobfuscator is None
        if own_deobfuscator:
            deobfuscator = ScoreDeobfuscator(fetcher=FontFetcher(session=session))
        parser = MatchListParser(deobfuscator)

        async def bounded_scrape(team_id: str):
            async with sem:
                try:
                    return await scrape_team(session, team_id, parser, url_template)
                except Exception as e:
                    logger.error('Error scraping team %s: %s', team_id, e)
                    return e

        try:
            outcomes = await asyncio.gather(*(bounded_scrape(t) for t in team_ids))
        finally:
            if own_deobfuscator:
                await deobfuscator.close()

    for team_id, outcome in zip(team_ids, outcomes):
        if isinstance(outcome, Exception):
            result.errors[team_id] = str(outcome) or type(outcome).__name__
        else:
            result.matches[team_id] = outcome

    if result.error_count:
        logger.warning('%d of %d teams failed', result.error_count, len(team_ids))
    return result
