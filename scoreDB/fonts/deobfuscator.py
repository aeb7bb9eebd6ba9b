import logging
from typing import Optional

from ..db_utils import GlyphCache
from .fetch import FontFetcher
from .loader import FontLoader
from .resolver import GlyphDigitResolver

logger = logging.getLogger(__name__)


class ScoreDeobfuscator:
    """
    Wires cache, fetcher, loader and resolver together.

    Extra keyword arguments go to FontLoader (retry_failed_after, max_entries).
    """

    def __init__(
        self,
        cache: Optional[GlyphCache] = None,
        fetcher: Optional[FontFetcher] = None,
        **loader_options,
    ):
        self.cache = cache or GlyphCache()
        self.fetcher = fetcher or FontFetcher()
        self.loader = FontLoader(self.fetcher, self.cache, **loader_options)
        self.resolver = GlyphDigitResolver(self.cache)

    async def __aenter__(self) -> 'ScoreDeobfuscator':
        await self.cache.initialize()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def digit(self, font_id: str, codepoint: int) -> int:
        await self.loader.ensure_loaded(font_id)
        digit = await self.resolver.decode(font_id, codepoint)
        logger.debug('Font "%s" U+%04X -> %d', font_id, codepoint, digit)
        return digit

    async def close(self) -> None:
        await self.cache.close()
