# Make scoreDB a package and expose key entrypoints
from .config import CACHE_PATH, DEFAULT_TEAM_IDS
from .db_utils import GlyphCache
from .fonts import FontFetcher, FontLoader, GlyphDigitResolver, ScoreDeobfuscator
from .ingestion import scrape_teams
from .scrapers import MatchListParser
