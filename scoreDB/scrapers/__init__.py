"""
Scraper modules for extracting data from fussball.de.

- base: Common utilities (HTTP fetching, URL parsing)
- match_list: Team match list extraction with score deobfuscation
"""
from .base import fetch_html, team_id_from_url
from .match_list import Match, MatchListParser, TeamScore, codepoint_from_payload

__all__ = [
    "fetch_html",
    "team_id_from_url",
    "Match",
    "MatchListParser",
    "TeamScore",
    "codepoint_from_payload",
]
