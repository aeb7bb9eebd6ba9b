import os

# Cache database (":memory:" keeps the glyph cache for the process lifetime only)
CACHE_PATH = os.environ.get('SCOREDB_CACHE_PATH', ':memory:')

# Remote endpoints
FONT_URL_TEMPLATE = os.environ.get(
    'SCOREDB_FONT_URL_TEMPLATE',
    'http://www.fussball.de/export.fontface/-/format/woff/id/{font_id}/type/font',
)
TEAM_MATCHES_URL_TEMPLATE = os.environ.get(
    'SCOREDB_TEAM_MATCHES_URL_TEMPLATE',
    'http://www.fussball.de/ajax.team.prev.games/-/mode/PAGE/team-id/{team_id}',
)

# Seconds before a font download is abandoned
FONT_FETCH_TIMEOUT = float(os.environ.get('SCOREDB_FONT_FETCH_TIMEOUT', '30'))

# Team page fetching: per-attempt timeout, attempts, and first backoff delay (doubled per retry)
PAGE_FETCH_TIMEOUT = float(os.environ.get('SCOREDB_PAGE_FETCH_TIMEOUT', '30'))
PAGE_FETCH_ATTEMPTS = int(os.environ.get('SCOREDB_PAGE_FETCH_ATTEMPTS', '3'))
PAGE_FETCH_BACKOFF = float(os.environ.get('SCOREDB_PAGE_FETCH_BACKOFF', '1'))


def _optional_number(name: str, cast):
    raw = os.environ.get(name)
    if raw is None or raw.strip() == '':
        return None
    return cast(raw)


# --- Font load registry ---
# Seconds after which a failed font load may be attempted again.
# None keeps failures for the lifetime of the process.
FAILED_LOAD_RETRY_AFTER = _optional_number('SCOREDB_FAILED_LOAD_RETRY_AFTER', float)

# Maximum number of finished font loads kept in the registry (None = unbounded)
MAX_LOADED_FONTS = _optional_number('SCOREDB_MAX_LOADED_FONTS', int)

# Font name stored in the cache; the page never tells us the real one
FONT_NAME_PLACEHOLDER = 'n/a'

# Team pages processed concurrently by the ingestion pipeline
CONCURRENCY = int(os.environ.get('SCOREDB_CONCURRENCY', '5'))

# Teams processed when none are given on the command line
DEFAULT_TEAM_IDS = [
    '011MIFCKI8000000VTVG0001VTR8C1K7',
    '011MID3JL8000000VTVG0001VTR8C1K7',
    '011MIFFGFS000000VTVG0001VTR8C1K7',
    '0211K3QMT0000000VS548984VV2KG4QR',
    '01HFAUN8T0000000VV0AG80NVV0A1VPF',
    '011MIBAIFS000000VTVG0001VTR8C1K7',
    '011MIF5IA8000000VTVG0001VTR8C1K7',
    '026FPAR720000000VS5489B1VVJ2HPHR',
    '01ALGR39F4000000VV0AG80NVSQ9F5A9',
    '011MICFN6K000000VTVG0001VTR8C1K7',
    '011MIAFQTG000000VTVG0001VTR8C1K7',
]
