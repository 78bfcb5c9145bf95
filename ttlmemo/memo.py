"""
ttlmemo Host Wiring

Exposes a CacheStore on host objects.

    class Economy(CacheMemo):
        @cache_for(timedelta(minutes=1))
        def gdp(self, country):
            return fetch_gdp(country)

Each host instance gets its own store on first use; the method's qualified
name is the operation key. Keyword arguments are part of the signature,
sorted by name so call order does not matter, and tagged so they never
match a positional value.

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import functools
import inspect
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

from ttlmemo.signature import KeywordArguments
from ttlmemo.store import CacheStore
from ttlmemo.validation import Duration, coerce_ttl, validate_operation

T = TypeVar("T")

STORE_ATTR = "_ttlmemo_store"

_attach_lock = threading.Lock()


def store_for(host: Any, create: bool = True) -> Optional[CacheStore]:
    """The CacheStore attached to host, creating it on first use."""
    store = getattr(host, STORE_ATTR, None)
    if store is None and create:
        with _attach_lock:
            store = getattr(host, STORE_ATTR, None)
            if store is None:
                store = CacheStore.from_config()
                setattr(host, STORE_ATTR, store)
    return store


def _call_args(args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> List[Any]:
    call_args: List[Any] = list(args)
    if kwargs:
        call_args.append(KeywordArguments(kwargs))
    return call_args


def _looks_like_method(func: Callable[..., Any]) -> bool:
    parts = func.__qualname__.split(".")
    if len(parts) < 2 or parts[-2] == "<locals>":
        return False
    params = list(inspect.signature(func).parameters)
    return bool(params) and params[0] == "self"


def cache_for(
    ttl: Duration,
    operation: Optional[str] = None,
    method: Optional[bool] = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator memoizing a method per host instance for ttl.

    A function defined inside a class whose first parameter is ``self`` is
    treated as a method. Anything else, including static and class methods,
    shares one store, exposed as ``wrapper.cache_store``. ``method`` overrides
    the detection.

    Example:
        class Prices:
            @cache_for(30)
            def quote(self, symbol):
                return fetch(symbol)

        @cache_for(timedelta(hours=1), operation="rates")
        def rates(base):
            return load_rates(base)
    """
    coerce_ttl(ttl)
    if operation is not None:
        validate_operation(operation)

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        if isinstance(func, (staticmethod, classmethod)):
            return type(func)(decorator(func.__func__))

        key = operation or func.__qualname__
        is_method = _looks_like_method(func) if method is None else method
        shared: Optional[CacheStore] = None if is_method else CacheStore.from_config()

        if is_method:
            @functools.wraps(func)
            def wrapper(self, *args, **kwargs) -> T:
                store = store_for(self)
                return store.get_or_compute(
                    key, ttl, _call_args(args, kwargs),
                    lambda: func(self, *args, **kwargs),
                )
        else:
            @functools.wraps(func)
            def wrapper(*args, **kwargs) -> T:
                return shared.get_or_compute(
                    key, ttl, _call_args(args, kwargs),
                    lambda: func(*args, **kwargs),
                )
            wrapper.cache_store = shared  # type: ignore[attr-defined]

        wrapper.cache_operation = key  # type: ignore[attr-defined]
        return wrapper
    return decorator


class CacheMemo:
    """Mixin giving a host class an explicitly keyed TTL cache."""

    @property
    def cache_data(self) -> Optional[CacheStore]:
        """This instance's store, or None before anything was cached."""
        return store_for(self, create=False)

    def cache_for_call(
        self,
        operation: str,
        ttl: Duration,
        compute: Callable[[], T],
        *args: Any,
    ) -> T:
        """Memoize compute under operation and args in this instance's store."""
        return store_for(self).get_or_compute(operation, ttl, list(args), compute)


__all__ = [
    "STORE_ATTR",
    "CacheMemo",
    "cache_for",
    "store_for",
]
