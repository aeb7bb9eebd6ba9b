"""
Match list extraction from fussball.de team pages.

A team's "previous games" page is a table with one row per match:
- td.column-date: kick-off as "Sa, 16.09.23 | 15:00"
- td.column-club (two per match): link to the club's team page and its name
- td.column-score: span.score-left / span.score-right, each holding one
  obfuscated digit and the id of the font that draws it (data-obfuscation)

Extraction runs in stages (dates, clubs, scores). Each stage either returns its
values or raises ExtractionError / a deobfuscation error, so a page is either
parsed completely or not at all.
"""
import asyncio
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import List, Tuple

from bs4 import BeautifulSoup

from ..errors import ExtractionError, MalformedCodepointError
from .base import TEAM_URL_PATTERN

logger = logging.getLogger(__name__)

DATE_TIME_PATTERN = re.compile(
    r'^[a-z]{2},\s(?P<date>[0-9]{2}\.[0-9]{2}\.[0-9]{2})\s\|\s(?P<time>[0-9]{2}:[0-9]{2})$',
    re.IGNORECASE,
)
UNICODE_PREFIX = '%u'
FONT_ID_ATTRIBUTE = 'data-obfuscation'

# Characters escape() leaves alone
_ESCAPE_SAFE = frozenset('ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789@*_+-./')
_HEX_RUN = re.compile(r'[0-9a-fA-F]+')


@dataclass
class TeamScore:
    id: str
    name: str
    score: int


@dataclass
class Match:
    started: datetime
    home: TeamScore
    guest: TeamScore


def escape_payload(text: str) -> str:
    """Percent-escape text the way a browser's escape() does (%XX, %uXXXX)."""
    out = []
    for ch in text:
        code = ord(ch)
        if ch in _ESCAPE_SAFE:
            out.append(ch)
        elif code < 0x100:
            out.append(f'%{code:02X}')
        elif code < 0x10000:
            out.append(f'%u{code:04X}')
        else:
            # UTF-16 surrogate pair
            code -= 0x10000
            out.append(f'%u{0xD800 + (code >> 10):04X}%u{0xDC00 + (code & 0x3FF):04X}')
    return ''.join(out)


def codepoint_from_payload(text: str) -> int:
    """
    Turn the content of a score element into the obfuscated codepoint.

    The content is escaped, the leading "%u" stripped and the hexadecimal run
    that follows parsed as base 16.

    Raises:
        MalformedCodepointError: If no hexadecimal digits are left
    """
    escaped = escape_payload((text or '').strip())
    if escaped.startswith(UNICODE_PREFIX):
        escaped = escaped[len(UNICODE_PREFIX):]
    m = _HEX_RUN.match(escaped)
    if not m:
        raise MalformedCodepointError(f'No glyph unicode could be extracted from "{text}"!')
    return int(m.group(0), 16)


def _cell_text(cell) -> str:
    return ' '.join(cell.get_text(' ').split())


def extract_start_times(soup: BeautifulSoup) -> List[datetime]:
    started = []
    for cell in soup.select('table tr > td.column-date'):
        text = _cell_text(cell)
        if not text:
            raise ExtractionError('Match start timestamp not found!')
        m = DATE_TIME_PATTERN.match(text)
        if not m:
            raise ExtractionError(f'Match start timestamp string "{text}" did not match regular expression!')
        started.append(datetime.strptime(f"{m.group('date')} {m.group('time')}", '%d.%m.%y %H:%M'))
    return started


def extract_clubs(soup: BeautifulSoup) -> Tuple[List[str], List[str]]:
    """
    Extract club ids and names in document order (home, guest, home, guest, ...).

    Returns:
        Tuple of (club_ids, club_names)
    """
    club_ids, club_names = [], []
    for cell in soup.select('table tr > td.column-club'):
        link = cell.find('a')
        if link is None:
            raise ExtractionError('Club details link not found!')
        href = link.get('href')
        if not href:
            raise ExtractionError('Club details link has no href!')
        m = TEAM_URL_PATTERN.match(href)
        if not m:
            raise ExtractionError(f'Club details link url "{href}" does not match the regular expression!')
        name_el = link.select_one('div.club-name')
        name = name_el.get_text(strip=True) if name_el else ''
        if not name:
            raise ExtractionError('Club name info not found!')
        club_ids.append(m.group('team_id'))
        club_names.append(name)
    return club_ids, club_names


def assemble_matches(
    started: List[datetime],
    club_ids: List[str],
    club_names: List[str],
    home_scores: List[int],
    guest_scores: List[int],
) -> List[Match]:
    if len(home_scores) != len(guest_scores):
        raise ExtractionError(f'Fetched {len(home_scores)} home scores but {len(guest_scores)} guest scores!')
    if len(started) != len(home_scores):
        raise ExtractionError(f'Fetched {len(home_scores)} scores but {len(started)} matches!')
    if len(club_names) != 2 * len(started):
        raise ExtractionError(f'Fetched {len(club_names)} clubs but {len(started)} matches!')

    return [
        Match(
            started=started[i],
            home=TeamScore(id=club_ids[2 * i], name=club_names[2 * i], score=home_scores[i]),
            guest=TeamScore(id=club_ids[2 * i + 1], name=club_names[2 * i + 1], score=guest_scores[i]),
        )
        for i in range(len(started))
    ]


class MatchListParser:
    """
    Parses match list pages, decoding scores through a ScoreDeobfuscator.

    One parser (and its deobfuscator) can be shared by many pages; fonts are
    downloaded once no matter how many pages use them.
    """

    def __init__(self, deobfuscator):
        self.deobfuscator = deobfuscator

    async def parse_score_cell(self, element) -> int:
        font_id = element.get(FONT_ID_ATTRIBUTE)
        if not font_id:
            raise MalformedCodepointError('Score element has no font id!')
        codepoint = codepoint_from_payload(element.get_text())
        return await self.deobfuscator.digit(font_id, codepoint)

    async def extract_scores(self, soup: BeautifulSoup) -> Tuple[List[int], List[int]]:
        home, guest = [], []
        for cell in soup.select('table tr > td.column-score'):
            left = cell.select_one('span.score-left')
            if left is not None:
                home.append(self.parse_score_cell(left))
            right = cell.select_one('span.score-right')
            if right is not None:
                guest.append(self.parse_score_cell(right))

        tasks = [asyncio.ensure_future(c) for c in home + guest]
        try:
            digits = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise
        return list(digits[:len(home)]), list(digits[len(home):])

    async def parse(self, html) -> List[Match]:
        """
        Parse a match list page.

        Args:
            html: Page HTML or an already parsed BeautifulSoup

        Returns:
            List of matches in page order

        Raises:
            ExtractionError: Missing/malformed cells or mismatching counts
            ScoreDBError: Any score that could not be deobfuscated
        """
        soup = html if isinstance(html, BeautifulSoup) else BeautifulSoup(html, 'html.parser')
        started = extract_start_times(soup)
        club_ids, club_names = extract_clubs(soup)
        home_scores, guest_scores = await self.extract_scores(soup)
        matches = assemble_matches(started, club_ids, club_names, home_scores, guest_scores)
        logger.debug('Parsed %d matches', len(matches))
        return matches
