"""
Deduplicated font loading.

Many score cells on a page reference the same font. FontLoader makes sure a
font is downloaded, parsed and written to the glyph cache by a single task,
which every caller asking for that font id awaits. The task is registered
before anything is awaited, so a caller arriving while the download is still
in flight joins it instead of starting another one.
"""
import asyncio
import enum
import functools
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Optional

from ..config import FAILED_LOAD_RETRY_AFTER, FONT_NAME_PLACEHOLDER, MAX_LOADED_FONTS
from ..errors import CacheWriteError
from .fetch import GlyphTable

logger = logging.getLogger(__name__)


class LoadState(enum.Enum):
    PENDING = 'pending'
    SUCCEEDED = 'succeeded'
    FAILED = 'failed'


@dataclass
class LoadEntry:
    font_id: str
    task: asyncio.Future
    state: LoadState = LoadState.PENDING
    error: Optional[BaseException] = None
    failed_at: Optional[float] = None


def registry_key(font_id: str) -> str:
    return font_id.casefold()


class FontLoader:
    """
    Registry of font load tasks keyed by font id (case-insensitive).

    Args:
        fetcher: Object with ``async fetch(font_id) -> GlyphTable``
        cache: Object with ``async is_cached(font_id)`` and ``async record(font_id, name, glyphs)``
        retry_failed_after: Seconds after which a failed load may be retried.
            None keeps the failure and hands it to every later caller.
        max_entries: Capacity of the registry. The least recently used finished
            entries are dropped first; pending loads are never dropped. None
            means unbounded.
        font_name: Name recorded for every font
        clock: Monotonic time source
    """

    def __init__(
        self,
        fetcher,
        cache,
        retry_failed_after: Optional[float] = FAILED_LOAD_RETRY_AFTER,
        max_entries: Optional[int] = MAX_LOADED_FONTS,
        font_name: str = FONT_NAME_PLACEHOLDER,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries is not None and max_entries < 1:
            raise ValueError('max_entries must be at least 1')
        self.fetcher = fetcher
        self.cache = cache
        self.retry_failed_after = retry_failed_after
        self.max_entries = max_entries
        self.font_name = font_name
        self._clock = clock
        self._registry: OrderedDict[str, LoadEntry] = OrderedDict()

    def __len__(self) -> int:
        return len(self._registry)

    def __contains__(self, font_id: str) -> bool:
        return registry_key(font_id) in self._registry

    def state(self, font_id: str) -> Optional[LoadState]:
        entry = self._registry.get(registry_key(font_id))
        return entry.state if entry else None

    async def ensure_loaded(self, font_id: str) -> GlyphTable:
        """
        Make sure the font is in the glyph cache and return its glyph table.

        Concurrent and repeated calls for the same font id share one load.
        A caller being cancelled does not cancel the shared load.
        """
        entry = self._entry_for(font_id)
        return await asyncio.shield(entry.task)

    def _entry_for(self, font_id: str) -> LoadEntry:
        key = registry_key(font_id)
        entry = self._registry.get(key)
        if entry is not None and self._retry_due(entry):
            logger.info('Retrying font "%s" after failed load: %s', font_id, entry.error)
            del self._registry[key]
            entry = None

        if entry is None:
            task = asyncio.ensure_future(self._load(font_id))
            entry = LoadEntry(font_id=font_id, task=task)
            task.add_done_callback(functools.partial(self._finished, entry))
            self._registry[key] = entry
            self._evict()
        else:
            logger.debug('Font "%s" already requested (%s)', font_id, entry.state.value)
            self._registry.move_to_end(key)
        return entry

    def _retry_due(self, entry: LoadEntry) -> bool:
        if entry.state is not LoadState.FAILED or self.retry_failed_after is None:
            return False
        return self._clock() - entry.failed_at >= self.retry_failed_after

    def _finished(self, entry: LoadEntry, task: asyncio.Future) -> None:
        if task.cancelled():
            error = asyncio.CancelledError()
        else:
            error = task.exception()
        if error is None:
            entry.state = LoadState.SUCCEEDED
            return
        entry.state = LoadState.FAILED
        entry.error = error
        entry.failed_at = self._clock()
        logger.warning('Loading font "%s" failed: %s', entry.font_id, error)

    def _evict(self) -> None:
        if self.max_entries is None:
            return
        while len(self._registry) > self.max_entries:
            victim = next(
                (key for key, entry in self._registry.items() if entry.state is not LoadState.PENDING),
                None,
            )
            if victim is None:
                break
            logger.debug('Evicting font "%s" from the load registry', self._registry[victim].font_id)
            del self._registry[victim]

    async def _load(self, font_id: str) -> GlyphTable:
        table = await self.fetcher.fetch(font_id)
        if await self.cache.is_cached(font_id):
            logger.debug('Font "%s" already cached', font_id)
            return table
        if not await self.cache.record(font_id, self.font_name, table.glyphs):
            raise CacheWriteError(f'Font "{font_id}" could not be cached!')
        return table
