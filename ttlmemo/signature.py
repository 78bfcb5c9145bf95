"""
ttlmemo Argument Signatures

Turns the argument sequence of one call into a compact key that is equal for
structurally equal argument lists and different for different ones.

    short canonical form   ->  the canonical form itself (readable in dumps)
    long canonical form    ->  hex digest of the canonical form (fixed width)

The canonical form is compact JSON with sorted keys. Values JSON has no
native form for are normalized first. Everything that is not plain JSON
becomes an object carrying the reserved "__type__" key, so it can never be
confused with a string, a list, or a caller's own mapping:

    list / tuple           ->  list
    str-keyed dict         ->  object
    other dict             ->  {"__type__": "dict", "items": [[k, v], ...]}
    set / frozenset        ->  {"__type__": "set", "items": [...]}
    keyword arguments      ->  {"__type__": "kwargs", "items": [[k, v], ...]}
    plain instance         ->  {"__type__": "mod.Type", "state": {...}}
    anything else          ->  {"__type__": "mod.Type", "repr": "..."}

A plain instance is one whose class keeps object.__repr__; its attributes
(``__dict__`` and ``__slots__``) stand in for the address-bearing repr. A
container that contains itself is written as {"__type__": "ref", "depth": n}.

Two distinct long argument lists can collide on the digest. With SHA-1 that
is not expected at realistic key volumes; a salt can be configured to make
keys unpredictable across processes.

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ttlmemo.config import MemoConfig, get_config
from ttlmemo.validation import InvalidArgument

DEFAULT_THRESHOLD = 100
DEFAULT_ALGORITHM = "sha1"

TYPE_KEY = "__type__"


class KeywordArguments:
    """Keyword arguments of one call, kept apart from positional values."""

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, Any]):
        self._values = dict(values)

    def items(self):
        return self._values.items()

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={v!r}" for k, v in sorted(self._values.items()))
        return f"KeywordArguments({inner})"


def _dump(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _type_name(obj: Any) -> str:
    cls = type(obj)
    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


def _state(obj: Any) -> Dict[str, Any]:
    """Instance attributes from __dict__ and every __slots__ in the MRO."""
    state = dict(getattr(obj, "__dict__", {}))
    for cls in type(obj).__mro__:
        slots = cls.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for slot in slots:
            if slot in ("__dict__", "__weakref__"):
                continue
            attr = slot
            if slot.startswith("__") and not slot.endswith("__"):
                attr = f"_{cls.__name__.lstrip('_')}{slot}"
            if hasattr(obj, attr):
                state.setdefault(attr, getattr(obj, attr))
    return state


def _items(pairs: Iterable[Tuple[Any, Any]], path: Tuple[int, ...]) -> List[List[Any]]:
    items = [[_normalize(k, path), _normalize(v, path)] for k, v in pairs]
    items.sort(key=_dump)
    return items


def _normalize(obj: Any, path: Tuple[int, ...] = ()) -> Any:
    """Reduce obj to JSON-native values; path holds ids of enclosing containers."""
    if obj is None or isinstance(obj, (str, bool, int, float)):
        return obj
    if id(obj) in path:
        return {TYPE_KEY: "ref", "depth": len(path) - path.index(id(obj))}
    path = path + (id(obj),)

    if isinstance(obj, (list, tuple)):
        return [_normalize(v, path) for v in obj]
    if isinstance(obj, KeywordArguments):
        return {TYPE_KEY: "kwargs", "items": _items(obj.items(), path)}
    if isinstance(obj, dict):
        if TYPE_KEY not in obj and all(isinstance(k, str) for k in obj):
            return {k: _normalize(v, path) for k, v in obj.items()}
        return {TYPE_KEY: "dict", "items": _items(obj.items(), path)}
    if isinstance(obj, (set, frozenset)):
        members = sorted((_normalize(v, path) for v in obj), key=_dump)
        return {TYPE_KEY: "set", "items": members}

    if type(obj).__repr__ is object.__repr__:
        return {TYPE_KEY: _type_name(obj), "state": _normalize(_state(obj), path)}
    return {TYPE_KEY: _type_name(obj), "repr": repr(obj)}


def canonical_form(obj: Any) -> str:
    """Canonical JSON text of obj."""
    return _dump(_normalize(obj))


class SignatureGenerator:
    """
    Derives argument signatures.

    Example:
        generator = SignatureGenerator(threshold=100)
        generator([1, "a"])          # '[1,"a"]'
        generator(["x" * 500])       # 40-char SHA-1 hex digest
    """

    def __init__(
        self,
        threshold: int = DEFAULT_THRESHOLD,
        algorithm: str = DEFAULT_ALGORITHM,
        salt: str = "",
    ):
        if isinstance(threshold, bool) or not isinstance(threshold, int) or threshold < 0:
            raise InvalidArgument("threshold", "must be a non-negative int", threshold)
        try:
            digest_size = hashlib.new(algorithm).digest_size
        except (TypeError, ValueError) as e:
            raise InvalidArgument("algorithm", f"unknown digest: {algorithm}", algorithm) from e
        if digest_size == 0:
            # shake_* digests need an explicit length
            raise InvalidArgument("algorithm", f"variable-length digest: {algorithm}", algorithm)

        self._threshold = threshold
        self._algorithm = algorithm
        self._salt = salt
        self._digest_length = digest_size * 2

    @classmethod
    def from_config(cls, config: Optional[MemoConfig] = None) -> "SignatureGenerator":
        """Build a generator from the signature section of the configuration."""
        section = (config or get_config()).signature
        return cls(
            threshold=section.threshold.get(),
            algorithm=section.algorithm.get(),
            salt=section.salt.get(),
        )

    @property
    def threshold(self) -> int:
        return self._threshold

    @property
    def algorithm(self) -> str:
        return self._algorithm

    @property
    def digest_length(self) -> int:
        """Length of a hashed signature in characters."""
        return self._digest_length

    def __call__(self, args: Sequence[Any]) -> str:
        text = canonical_form(list(args))
        if len(text) <= self._threshold:
            return text
        digest = hashlib.new(self._algorithm)
        digest.update((self._salt + text).encode("utf-8"))
        return digest.hexdigest()

    def is_digest(self, signature: str) -> bool:
        """True if signature was produced by hashing rather than kept verbatim."""
        # Verbatim forms always start with "[" because args are a JSON list.
        return not signature.startswith("[")


_default: Optional[SignatureGenerator] = None


def signature(args: Sequence[Any]) -> str:
    """Signature of args using the default generator."""
    global _default
    if _default is None:
        _default = SignatureGenerator()
    return _default(args)


__all__ = [
    "DEFAULT_THRESHOLD",
    "DEFAULT_ALGORITHM",
    "TYPE_KEY",
    "KeywordArguments",
    "SignatureGenerator",
    "canonical_form",
    "signature",
]
