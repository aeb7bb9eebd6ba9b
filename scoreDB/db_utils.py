"""
Glyph cache backed by SQLite.

Stores, per downloaded font, every glyph (index and name) and the codepoints
assigned to it, so a codepoint found on a page can be turned back into a glyph
name without downloading the font again.

The module-level helpers take a plain connection. GlyphCache wraps them in
coroutines that run on a single dedicated worker thread; that thread is the
only one touching the connection, so concurrent writers are queued behind each
other instead of racing.
"""
import asyncio
import functools
import logging
import sqlite3
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Optional

from .config import CACHE_PATH
from .errors import CacheInitError, CacheWriteError

logger = logging.getLogger(__name__)

SCHEMA = (
    '''
    CREATE TABLE IF NOT EXISTS font (
        id VARCHAR(16) NOT NULL COLLATE NOCASE,
        name VARCHAR(40) NOT NULL,
        CONSTRAINT pk_font PRIMARY KEY (id)
    )
    ''',
    '''
    CREATE TABLE IF NOT EXISTS glyph (
        font_id VARCHAR(16) NOT NULL COLLATE NOCASE,
        glyph_index INTEGER NOT NULL,
        glyph_name VARCHAR(40) NOT NULL,
        CONSTRAINT pk_glyph PRIMARY KEY (font_id, glyph_name),
        CONSTRAINT fk_glyph_font FOREIGN KEY (font_id) REFERENCES font (id) ON DELETE CASCADE,
        CONSTRAINT un_glyph_index UNIQUE (font_id, glyph_index)
    )
    ''',
    '''
    CREATE TABLE IF NOT EXISTS glyph_unicode (
        font_id VARCHAR(16) NOT NULL COLLATE NOCASE,
        glyph_name VARCHAR(40) NOT NULL,
        unicode INTEGER NOT NULL,
        CONSTRAINT pk_glyph_unicode PRIMARY KEY (font_id, glyph_name, unicode),
        CONSTRAINT fk_glyph_unicode_glyph FOREIGN KEY (font_id, glyph_name)
            REFERENCES glyph (font_id, glyph_name) ON DELETE CASCADE
    )
    ''',
    '''
    CREATE VIEW IF NOT EXISTS unicode_to_glyph_name AS
    SELECT f.id font_id, g.glyph_name glyph_name, gu.unicode glyph_unicode
    FROM font f
    INNER JOIN glyph g ON (f.id = g.font_id)
    INNER JOIN glyph_unicode gu ON (g.font_id = gu.font_id AND g.glyph_name = gu.glyph_name)
    ''',
)

TABLES = ('font', 'glyph', 'glyph_unicode')


def get_conn(db_path: str | None = None) -> sqlite3.Connection:
    """
    Open a cache database connection with foreign keys enforced.

    Args:
        db_path: Optional path to database file. If None, uses default from config.

    Returns:
        SQLite connection object
    """
    conn = sqlite3.connect(db_path or CACHE_PATH)
    conn.execute('PRAGMA foreign_keys = ON')
    return conn


def create_schema(conn: sqlite3.Connection) -> None:
    """Create the cache tables and lookup view if they don't exist yet."""
    cur = conn.cursor()
    for statement in SCHEMA:
        cur.execute(statement)
    conn.commit()


def upsert_font(conn: sqlite3.Connection, font_id: str, font_name: str) -> None:
    conn.execute(
        'INSERT INTO font (id, name) VALUES (?, ?) ON CONFLICT DO NOTHING',
        (font_id, font_name),
    )


def upsert_glyphs(conn: sqlite3.Connection, font_id: str, glyphs: Iterable) -> None:
    """
    Insert glyph rows and their codepoints, leaving existing rows untouched.

    Args:
        conn: Database connection
        font_id: Font the glyphs belong to (must already be in the font table)
        glyphs: Objects with index, name and unicodes attributes
    """
    cur = conn.cursor()
    for glyph in glyphs:
        cur.execute(
            'INSERT INTO glyph (font_id, glyph_index, glyph_name) VALUES (?, ?, ?) ON CONFLICT DO NOTHING',
            (font_id, glyph.index, glyph.name),
        )
        cur.executemany(
            'INSERT INTO glyph_unicode (font_id, glyph_name, unicode) VALUES (?, ?, ?) ON CONFLICT DO NOTHING',
            [(font_id, glyph.name, unicode) for unicode in glyph.unicodes],
        )


def font_exists(conn: sqlite3.Connection, font_id: str) -> bool:
    row = conn.execute('SELECT 1 FROM font WHERE id = ? COLLATE NOCASE', (font_id,)).fetchone()
    return row is not None


def lookup_glyph_name(conn: sqlite3.Connection, font_id: str, codepoint: int) -> Optional[str]:
    row = conn.execute(
        '''
        SELECT glyph_name FROM unicode_to_glyph_name
        WHERE font_id = ? COLLATE NOCASE AND glyph_unicode = ?
        ''',
        (font_id, codepoint),
    ).fetchone()
    return row[0] if row else None


def count_rows(conn: sqlite3.Connection) -> dict[str, int]:
    return {table: conn.execute(f'SELECT COUNT(*) FROM {table}').fetchone()[0] for table in TABLES}


class GlyphCache:
    """
    Asynchronous front end of the glyph cache.

    Every public coroutine waits for the schema to exist before touching the
    database. initialize() may be awaited any number of times; the schema is
    created by the first call only.
    """

    def __init__(self, db_path: str | None = None):
        self.db_path = db_path or CACHE_PATH
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='glyph-cache')
        self._conn: Optional[sqlite3.Connection] = None
        self._init_task: Optional[asyncio.Future] = None
        self._initialized = False
        self._closed = False

    async def __aenter__(self) -> 'GlyphCache':
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _execute(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, functools.partial(func, *args))

    def _open(self) -> None:
        try:
            if self._conn is None:
                self._conn = get_conn(self.db_path)
            create_schema(self._conn)
        except sqlite3.Error as e:
            raise CacheInitError(f'Glyph cache schema could not be created in {self.db_path!r}: {e}') from e
        self._initialized = True
        logger.debug('Glyph cache initialized (%s)', self.db_path)

    async def initialize(self) -> None:
        if self._initialized:
            return
        if self._init_task is None:
            self._init_task = asyncio.ensure_future(self._execute(self._open))
        # A cancelled caller must not cancel the shared schema setup
        await asyncio.shield(self._init_task)

    async def is_cached(self, font_id: str) -> bool:
        """Return True if the font has been recorded (case-insensitive id)."""
        await self.initialize()
        return await self._execute(font_exists, self._conn, font_id)

    def _record(self, font_id: str, font_name: str, glyphs: list) -> bool:
        try:
            with self._conn:
                upsert_font(self._conn, font_id, font_name)
                upsert_glyphs(self._conn, font_id, glyphs)
        except sqlite3.Error as e:
            raise CacheWriteError(f'Failed to add font record for "{font_id}" to cache: {e}') from e
        return True

    async def record(self, font_id: str, font_name: str, glyphs: Iterable) -> bool:
        """
        Record a font's glyph table in one transaction.

        Re-recording rows that already exist is a no-op.

        Args:
            font_id: External font identifier
            font_name: Display name (stored only)
            glyphs: Objects with index, name and unicodes attributes

        Returns:
            True once the rows are committed

        Raises:
            CacheWriteError: If the database rejects the write (nothing is kept)
        """
        await self.initialize()
        glyphs = list(glyphs)
        result = await self._execute(self._record, font_id, font_name, glyphs)
        logger.info('Cached font "%s" with %d glyphs', font_id, len(glyphs))
        return result

    async def resolve(self, font_id: str, codepoint: int) -> Optional[str]:
        """Return the glyph name mapped to codepoint in font_id, or None if unknown."""
        await self.initialize()
        return await self._execute(lookup_glyph_name, self._conn, font_id, codepoint)

    async def row_counts(self) -> dict[str, int]:
        await self.initialize()
        return await self._execute(count_rows, self._conn)

    def _close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._execute(self._close)
        self._executor.shutdown(wait=True)
        self._initialized = False
        self._init_task = None
