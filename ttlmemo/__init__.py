"""
ttlmemo — TTL Memoization Cache

Transparent get-or-compute cache for long-lived processes. Results are keyed
by an operation identifier and the arguments of the call, and stay valid for
a caller-chosen time-to-live.

Architecture
────────────

    ┌─────────────────────────────────────────────────────────────────────────┐
    │                            TTL MEMO CACHE                                │
    │                                                                          │
    │  HOST WIRING                                                             │
    │    memo.py           cache_for decorator, CacheMemo mixin                │
    │                                                                          │
    │  ENGINE                                                                  │
    │    store.py          operation -> signature -> entry, GC, accounting     │
    │    signature.py      canonical argument form, digest for long forms      │
    │                                                                          │
    │  SUPPORT                                                                 │
    │    validation.py     InvalidArgument, TTL coercion                       │
    │    config.py         YAML + TTLMEMO_* environment configuration          │
    │    observability.py  structured JSON logging                             │
    │                                                                          │
    └─────────────────────────────────────────────────────────────────────────┘

Design Principles
─────────────────

    Liveness on read: an entry is served only while expires_at > now,
    whether or not a sweep has run.

    Failures are never cached: a raising compute() leaves the store as it
    found it.

    Explicit ownership: a CacheStore is an ordinary object; the operation
    key is always passed in, never inferred from the caller.

Copyright (c) 2026 Momentum. All rights reserved.
"""

__version__ = "0.1.0"


# Lazy imports so that importing the package does not configure logging
def __getattr__(name):
    """Lazy import ttlmemo modules on first access."""

    if name in ("CacheStore", "CacheEntry", "OperationRecord", "OperationStats",
                "FAR_FUTURE"):
        from ttlmemo import store
        return getattr(store, name)

    if name in ("SignatureGenerator", "canonical_form"):
        from ttlmemo import signature
        return getattr(signature, name)

    if name in ("CacheMemo", "cache_for", "store_for"):
        from ttlmemo import memo
        return getattr(memo, name)

    if name in ("ValidationError", "InvalidArgument", "InvariantViolation",
                "coerce_ttl"):
        from ttlmemo import validation
        return getattr(validation, name)

    if name in ("MemoConfig", "ConfigManager", "ConfigError", "get_config",
                "get_config_manager"):
        from ttlmemo import config
        return getattr(config, name)

    raise AttributeError(f"module 'ttlmemo' has no attribute '{name}'")


__all__ = [
    "__version__",
    # Engine
    "CacheStore",
    "CacheEntry",
    "OperationRecord",
    "OperationStats",
    "FAR_FUTURE",
    "SignatureGenerator",
    "canonical_form",
    # Host wiring
    "CacheMemo",
    "cache_for",
    "store_for",
    # Errors
    "ValidationError",
    "InvalidArgument",
    "InvariantViolation",
    "coerce_ttl",
    # Config
    "MemoConfig",
    "ConfigManager",
    "ConfigError",
    "get_config",
    "get_config_manager",
]
