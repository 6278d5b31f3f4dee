"""
In-memory TTL cache with lazy expiration and a background sweep.
Why: reuse computed results inside one process without an external store.

Expired entries leave the store in two independent ways: ``get`` drops an
expired entry as soon as it reads one, and an APScheduler interval job
periodically removes every expired entry to reclaim memory.

``get_or_set`` is not single-flight: concurrent misses on the same key each
run the factory and the last write wins. Factories must be idempotent and
cheap enough to run more than once.
"""

import inspect
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from reqcache.config.settings import Settings
from reqcache.config.settings import settings as default_settings

from .logging import get_logger

_LOG = get_logger(__name__)

DEFAULT_TTL = 300
DEFAULT_SWEEP_INTERVAL = 300.0
SWEEP_JOB_ID = "ttl_cache_sweep"

_MISSING = object()

Clock = Callable[[], float]
Factory = Callable[[], Union[Any, Awaitable[Any]]]


@dataclass
class _Entry:
    value: Any
    expires_at: float


class TTLCache:
    """Key-value store where each entry expires ``ttl`` seconds after ``set``."""

    def __init__(
        self,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL,
        clock: Clock = time.time,
    ) -> None:
        self._data: Dict[str, _Entry] = {}
        self._clock = clock
        self.sweep_interval = sweep_interval
        self._scheduler: Optional[AsyncIOScheduler] = None

    @property
    def sweeping(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def set(self, key: str, value: Any, ttl: float = DEFAULT_TTL) -> None:
        self._data[key] = _Entry(value=value, expires_at=self._clock() + ttl)

    def _lookup(self, key: str) -> Any:
        entry = self._data.get(key)
        if entry is None:
            return _MISSING
        if self._clock() > entry.expires_at:
            del self._data[key]
            return _MISSING
        return entry.value

    def get(self, key: str, default: Any = None) -> Any:
        value = self._lookup(key)
        return default if value is _MISSING else value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    async def get_or_set(
        self, key: str, factory: Factory, ttl: float = DEFAULT_TTL
    ) -> Any:
        """Return the live value for ``key`` or compute, store and return it.

        A stored ``None`` is a hit. If ``factory`` raises, the error reaches
        the caller untouched and the key is left as it was.
        """
        value = self._lookup(key)
        if value is not _MISSING:
            return value
        value = factory()
        if inspect.isawaitable(value):
            value = await value
        self.set(key, value, ttl)
        return value

    def sweep(self) -> int:
        """Remove every expired entry; return how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._data.items() if now > entry.expires_at]
        for key in expired:
            del self._data[key]
        if expired:
            _LOG.debug(f"cache sweep removed={len(expired)} remaining={len(self._data)}")
        return len(expired)

    async def _sweep_job(self) -> None:
        # coroutine job: AsyncIOExecutor runs it on the loop, not in a thread
        self.sweep()

    def get_stats(self) -> Dict[str, Any]:
        now = self._clock()
        return {
            "size": len(self._data),
            "entries": [
                {
                    "key": key,
                    "expires_in_ms": max(0, int((entry.expires_at - now) * 1000)),
                }
                for key, entry in self._data.items()
            ],
        }

    def start(self) -> None:
        """Start the background sweep. Needs a running event loop."""
        if self.sweeping:
            return
        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self._sweep_job,
            trigger=IntervalTrigger(seconds=self.sweep_interval),
            id=SWEEP_JOB_ID,
            replace_existing=True,
        )
        self._scheduler.start()
        _LOG.info(f"cache sweep started interval_s={self.sweep_interval}")

    def destroy(self) -> None:
        """Stop the background sweep and drop every entry.

        The cache stays usable afterwards; it just no longer cleans itself.
        """
        if self._scheduler is not None and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            _LOG.info("cache sweep stopped")
        self._scheduler = None
        self.clear()


def create_cache(config: Optional[Settings] = None, clock: Clock = time.time) -> TTLCache:
    """Build a cache from settings; the sweep is left off in test mode."""
    config = config or default_settings
    cache = TTLCache(sweep_interval=config.cache.sweep_interval, clock=clock)
    if not config.is_test:
        cache.start()
    return cache
