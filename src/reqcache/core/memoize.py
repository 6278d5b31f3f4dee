"""
Memoization on top of TTLCache.
Why: reuse results of repeated calls with identical arguments for a while.

Keys are ``<module>.<qualname>:<json of args and kwargs>``. Tuples and dicts
are tagged in the payload so ``f((1, 2))`` and ``f([1, 2])`` get different
keys. Arguments must otherwise be JSON-representable; cycles, callables, sets
and arbitrary objects make ``json`` raise, and that error reaches the caller.
Dict keys go through ``json`` too, so ``{1: x}`` and ``{"1": x}`` share a key.
Pass ``key_fn`` for anything else.

For methods, pass ``skip_self=True``: the instance is left out of the key, so
every instance of the class shares one entry per argument list. The class is
still part of the key through ``__qualname__``.
"""

import functools
import json
from typing import Any, Awaitable, Callable, Dict, Tuple

from .cache import DEFAULT_TTL, TTLCache

KeyFn = Callable[[Callable[..., Any], Tuple[Any, ...], Dict[str, Any]], str]


def _tag(value: Any) -> Any:
    if isinstance(value, tuple):
        return {"tuple": [_tag(v) for v in value]}
    if isinstance(value, list):
        return [_tag(v) for v in value]
    if isinstance(value, dict):
        return {"dict": {k: _tag(v) for k, v in value.items()}}
    return value


def make_key(fn: Callable[..., Any], args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> str:
    payload = json.dumps(
        [[_tag(a) for a in args], {k: _tag(v) for k, v in kwargs.items()}],
        sort_keys=True,
        separators=(",", ":"),
    )
    return f"{fn.__module__}.{fn.__qualname__}:{payload}"


def memoize(
    cache: TTLCache,
    fn: Callable[..., Any],
    ttl: float = DEFAULT_TTL,
    key_fn: KeyFn = make_key,
    skip_self: bool = False,
) -> Callable[..., Awaitable[Any]]:
    """Wrap ``fn`` (sync or async) so equal calls share one cached result."""

    @functools.wraps(fn)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        key_args = args[1:] if skip_self else args
        key = key_fn(fn, key_args, kwargs)
        return await cache.get_or_set(key, lambda: fn(*args, **kwargs), ttl)

    return wrapper


def cached(
    cache: TTLCache,
    ttl: float = DEFAULT_TTL,
    key_fn: KeyFn = make_key,
    skip_self: bool = False,
):
    """Decorator form of :func:`memoize`.

    Use ``skip_self=True`` on methods::

        class Reports:
            @cached(cache, ttl=60, skip_self=True)
            async def monthly(self, month): ...
    """

    def decorator(fn: Callable[..., Any]) -> Callable[..., Awaitable[Any]]:
        return memoize(cache, fn, ttl=ttl, key_fn=key_fn, skip_self=skip_self)

    return decorator
