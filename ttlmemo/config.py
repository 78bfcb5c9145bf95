"""
ttlmemo Configuration

Settings for signature derivation, the cache store, and logging.

    signature.threshold       TTLMEMO_SIGNATURE_THRESHOLD   100
    signature.algorithm       TTLMEMO_SIGNATURE_ALGORITHM   sha1
    signature.salt            TTLMEMO_SIGNATURE_SALT        ""
    store.single_flight       TTLMEMO_SINGLE_FLIGHT         true
    observability.log_level   TTLMEMO_LOG_LEVEL             warning
    observability.log_format  TTLMEMO_LOG_FORMAT            json

An environment variable beats a value loaded from YAML or set at runtime,
which beats the default. Files are read with ConfigManager.load_from_file
or load_defaults (./ttlmemo.yaml, ./config/ttlmemo.yaml,
~/.ttlmemo/config.yaml, later files overriding earlier ones).

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import hashlib
import os
import threading
from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar, Union

import yaml

T = TypeVar("T")

_TRUTHY = ("true", "1", "yes", "on")
_FALSY = ("false", "0", "no", "off")


class ConfigError(Exception):
    """Configuration error."""
    pass


class ConfigValidationError(ConfigError):
    """A setting was given a value it does not accept."""
    pass


def _parse_bool(raw: str) -> bool:
    text = raw.strip().lower()
    if text in _TRUTHY:
        return True
    if text in _FALSY:
        return False
    raise ValueError(f"not a boolean: {raw!r}")


@dataclass
class ConfigValue(Generic[T]):
    """
    One setting: a default, an optional TTLMEMO_* variable, and a check.

    ``parse`` turns the environment string into the setting's type; values
    from YAML or ``set`` are checked but not parsed.
    """
    default: T
    env_var: Optional[str] = None
    parse: Callable[[str], T] = str  # type: ignore[assignment]
    check: Optional[Callable[[T], bool]] = None
    _override: Optional[T] = field(default=None, repr=False)

    def get(self) -> T:
        raw = os.environ.get(self.env_var) if self.env_var else None
        if raw is not None:
            try:
                value = self.parse(raw)
            except ValueError as e:
                raise ConfigValidationError(f"{self.env_var}: {e}") from e
            self._require(value, self.env_var)
            return value
        return self.default if self._override is None else self._override

    def set(self, value: T) -> None:
        self._require(value, "value")
        self._override = value

    def reset(self) -> None:
        self._override = None

    def _require(self, value: T, source: Optional[str]) -> None:
        if self.check is not None and not self.check(value):
            raise ConfigValidationError(f"{source}: {value!r} is not accepted")


def _setting(default: Any, env_var: str, parse: Callable[[str], Any] = str,
             check: Optional[Callable[[Any], bool]] = None) -> Any:
    return field(default_factory=lambda: ConfigValue(default, env_var, parse, check))


def _non_negative_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


@dataclass
class SignatureConfig:
    """How argument lists become keys."""
    threshold: ConfigValue[int] = _setting(
        100, "TTLMEMO_SIGNATURE_THRESHOLD", int, _non_negative_int)
    algorithm: ConfigValue[str] = _setting(
        "sha1", "TTLMEMO_SIGNATURE_ALGORITHM", str,
        lambda name: name in hashlib.algorithms_available)
    salt: ConfigValue[str] = _setting(
        "", "TTLMEMO_SIGNATURE_SALT", str, lambda s: isinstance(s, str))


@dataclass
class StoreConfig:
    single_flight: ConfigValue[bool] = _setting(
        True, "TTLMEMO_SINGLE_FLIGHT", _parse_bool, lambda b: isinstance(b, bool))


@dataclass
class ObservabilityConfig:
    log_level: ConfigValue[str] = _setting(
        "warning", "TTLMEMO_LOG_LEVEL", str.lower,
        lambda v: v in ("debug", "info", "warning", "error", "critical"))
    log_format: ConfigValue[str] = _setting(
        "json", "TTLMEMO_LOG_FORMAT", str.lower, lambda v: v in ("json", "text"))


@dataclass
class MemoConfig:
    """Root configuration for ttlmemo."""
    signature: SignatureConfig = field(default_factory=SignatureConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)


class ConfigManager:
    """
    Process-wide holder of the active MemoConfig.

    Builders such as CacheStore.from_config read from here when no explicit
    config is passed.
    """

    _instance: Optional["ConfigManager"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "ConfigManager":
        with cls._lock:
            if cls._instance is None:
                instance = super().__new__(cls)
                instance._config = MemoConfig()
                cls._instance = instance
            return cls._instance

    @property
    def config(self) -> MemoConfig:
        return self._config

    def load_from_file(self, path: Union[str, Path]) -> None:
        """Apply a YAML file of nested sections to the active configuration."""
        path = Path(path)
        if not path.is_file():
            raise ConfigError(f"Configuration file not found: {path}")

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if data is None:
            return
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration root must be a mapping: {path}")
        for dotted, value in _flatten(data):
            self.set(dotted, value)

    def load_defaults(self) -> List[Path]:
        """Load whichever default files exist. Returns the files loaded."""
        candidates = [
            Path("ttlmemo.yaml"),
            Path("config") / "ttlmemo.yaml",
            Path.home() / ".ttlmemo" / "config.yaml",
        ]
        loaded = [path for path in candidates if path.is_file()]
        for path in loaded:
            self.load_from_file(path)
        return loaded

    def get(self, path: str) -> Any:
        """Current value of a setting, e.g. get("signature.algorithm")."""
        return self._setting_at(path).get()

    def set(self, path: str, value: Any) -> None:
        """Runtime override of a setting, e.g. set("signature.threshold", 64)."""
        self._setting_at(path).set(value)

    def reset(self) -> None:
        """Back to defaults."""
        self._config = MemoConfig()

    def _setting_at(self, path: str) -> ConfigValue:
        node: Any = self._config
        for part in path.split("."):
            if not is_dataclass(node) or part not in {f.name for f in fields(node)}:
                raise ConfigError(f"Unknown config key: {path}")
            node = getattr(node, part)
        if not isinstance(node, ConfigValue):
            raise ConfigError(f"Not a setting: {path}")
        return node


def _flatten(data: Dict[str, Any], prefix: str = ""):
    for key, value in data.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, dict):
            yield from _flatten(value, f"{dotted}.")
        else:
            yield dotted, value


def get_config() -> MemoConfig:
    """Get the current ttlmemo configuration."""
    return ConfigManager().config


def get_config_manager() -> ConfigManager:
    """Get the configuration manager instance."""
    return ConfigManager()


__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "ConfigValue",
    "SignatureConfig",
    "StoreConfig",
    "ObservabilityConfig",
    "MemoConfig",
    "ConfigManager",
    "get_config",
    "get_config_manager",
]
