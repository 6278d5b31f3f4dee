"""Cache core, memoization and request-boundary helpers."""

from .cache import TTLCache, create_cache
from .memoize import cached, make_key, memoize

__all__ = ["TTLCache", "create_cache", "cached", "make_key", "memoize"]
