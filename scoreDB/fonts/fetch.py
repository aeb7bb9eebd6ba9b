"""
Font download and glyph table extraction.

Score digits on fussball.de are drawn from a per-page web font. The font is
downloaded into a temporary file, read with fontTools and reduced to its glyph
table: the glyph order plus every Unicode codepoint the cmap assigns to each
glyph.
"""
import asyncio
import logging
import os
import tempfile
from collections import defaultdict
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

import aiohttp
from fontTools.ttLib import TTFont

from ..config import FONT_FETCH_TIMEOUT, FONT_URL_TEMPLATE
from ..errors import FontParseError, FontWriteError, NetworkError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class Glyph:
    index: int
    name: str
    unicodes: tuple[int, ...] = ()


@dataclass(frozen=True)
class GlyphTable:
    """Ordered glyphs of one font."""
    font_id: str
    glyphs: tuple[Glyph, ...]

    def __len__(self) -> int:
        return len(self.glyphs)

    def by_codepoint(self) -> dict[int, str]:
        return {unicode: glyph.name for glyph in self.glyphs for unicode in glyph.unicodes}


def parse_glyph_table(font_id: str, path: str) -> GlyphTable:
    """
    Read a font file (WOFF, WOFF2, TTF or OTF) into a GlyphTable.

    Args:
        font_id: Identifier used in error messages and on the result
        path: Path of the font file

    Returns:
        GlyphTable with one Glyph per entry of the font's glyph order

    Raises:
        FontParseError: If fontTools cannot read the data
    """
    unicodes: dict[str, set[int]] = defaultdict(set)
    try:
        font = TTFont(path)
        try:
            order = font.getGlyphOrder()
            if 'cmap' in font:
                for subtable in font['cmap'].tables:
                    if not subtable.isUnicode():
                        continue
                    for code, name in subtable.cmap.items():
                        unicodes[name].add(code)
        finally:
            font.close()
    except Exception as e:
        raise FontParseError(font_id, f'font data could not be parsed: {e}') from e

    glyphs = tuple(
        Glyph(index=index, name=name, unicodes=tuple(sorted(unicodes.get(name, ()))))
        for index, name in enumerate(order)
    )
    return GlyphTable(font_id=font_id, glyphs=glyphs)


class FontFetcher:
    """
    Downloads fonts by id and parses them into glyph tables.

    Failures are raised once and never retried here.
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        url_template: str = FONT_URL_TEMPLATE,
        timeout: Optional[float] = FONT_FETCH_TIMEOUT,
        download_dir: Optional[str] = None,
    ):
        self.session = session
        self.url_template = url_template
        self.timeout = timeout
        self.download_dir = download_dir

    def font_url(self, font_id: str) -> str:
        return self.url_template.format(font_id=quote(font_id, safe=''))

    async def _stream(self, session: aiohttp.ClientSession, font_id: str, url: str) -> bytes:
        payload = bytearray()
        try:
            async with session.get(url, timeout=aiohttp.ClientTimeout(total=self.timeout)) as resp:
                if not 200 <= resp.status < 300:
                    raise NetworkError(font_id, f'download from {url} failed with status {resp.status}')
                async for chunk in resp.content.iter_chunked(CHUNK_SIZE):
                    payload.extend(chunk)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(font_id, f'download from {url} failed: {e!r}') from e
        return bytes(payload)

    async def _download(self, font_id: str, url: str) -> bytes:
        if self.session is not None:
            return await self._stream(self.session, font_id, url)
        async with aiohttp.ClientSession() as session:
            return await self._stream(session, font_id, url)

    def _create_temp_file(self, font_id: str) -> str:
        try:
            fd, path = tempfile.mkstemp(prefix='font-', suffix='.woff', dir=self.download_dir)
        except OSError as e:
            raise FontWriteError(font_id, f'temporary file could not be created: {e}') from e
        os.close(fd)
        return path

    @staticmethod
    def _write_and_parse(font_id: str, path: str, payload: bytes) -> GlyphTable:
        try:
            with open(path, 'wb') as out:
                out.write(payload)
        except OSError as e:
            raise FontWriteError(font_id, f'temporary file {path} could not be written: {e}') from e
        return parse_glyph_table(font_id, path)

    async def fetch(self, font_id: str) -> GlyphTable:
        """
        Download the font identified by font_id and extract its glyph table.

        The temporary file is created before the transfer and removed on every
        exit path. File access and parsing run in worker threads.

        Raises:
            NetworkError: Transport error or non-success status
            FontWriteError: The temporary file could not be created or written
            FontParseError: The payload is not a readable font
        """
        url = self.font_url(font_id)
        path = await asyncio.to_thread(self._create_temp_file, font_id)
        logger.info('Downloading font "%s" from %s', font_id, url)
        try:
            payload = await self._download(font_id, url)
            table = await asyncio.to_thread(self._write_and_parse, font_id, path, payload)
        finally:
            try:
                os.remove(path)
            except FileNotFoundError:
                pass

        logger.info('Font "%s" parsed: %d bytes, %d glyphs', font_id, len(payload), len(table))
        return table
