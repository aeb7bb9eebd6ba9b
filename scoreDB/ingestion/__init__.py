"""
Pipeline for processing team match lists.

Provides a pipeline that:
1. Fetches team match list pages
2. Extracts matches and deobfuscates their scores
3. Reports per-team results and errors
"""
from .pipeline import IngestionResult, scrape_team, scrape_teams, team_matches_url

__all__ = [
    "IngestionResult",
    "scrape_team",
    "scrape_teams",
    "team_matches_url",
]
