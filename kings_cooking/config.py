"""Environment-driven settings for the King's Cooking engine.

All knobs are read once from ``KINGS_COOKING_*`` environment variables.
Call ``get_settings.cache_clear()`` after changing the environment in tests.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Mapping, Optional

from .errors import ConfigurationError

__all__ = ["Settings", "get_settings"]

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _read_int(
    env: Mapping[str, str], name: str, default: int, low: int, high: int
) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        raise ConfigurationError(
            f"{name} must be an integer, got {raw!r}", variable=name
        ) from None
    if not low <= value <= high:
        raise ConfigurationError(
            f"{name} must be between {low} and {high}, got {value}",
            variable=name,
        )
    return value


def _read_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise ConfigurationError(
        f"{name} must be a boolean flag, got {raw!r}", variable=name
    )


@dataclass(frozen=True)
class Settings:
    """Runtime settings.

    Attributes:
        debounce_ms: Delay before a debounced transport write fires.
        compression_level: zlib level used by the URL codec.
        strict_invariants: Check state invariants after every applied move.
        log_level: Level name used by the CLI.
        base_url: Prefix of generated share links.
    """
    debounce_ms: int = 300
    compression_level: int = 9
    strict_invariants: bool = False
    log_level: str = "INFO"
    base_url: str = "https://kings-cooking.example/"

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0

    @property
    def log_level_value(self) -> int:
        return getattr(logging, self.log_level)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``env`` (defaults to ``os.environ``)."""
        if env is None:
            env = os.environ

        log_level = env.get("KINGS_COOKING_LOG_LEVEL", cls.log_level).strip().upper()
        if log_level not in _LOG_LEVELS:
            raise ConfigurationError(
                f"Unknown log level {log_level!r}",
                variable="KINGS_COOKING_LOG_LEVEL",
            )

        base_url = env.get("KINGS_COOKING_BASE_URL", cls.base_url).strip()
        if not base_url.startswith(("http://", "https://")):
            raise ConfigurationError(
                f"Base URL must be http(s), got {base_url!r}",
                variable="KINGS_COOKING_BASE_URL",
            )

        return cls(
            debounce_ms=_read_int(
                env, "KINGS_COOKING_DEBOUNCE_MS", cls.debounce_ms, 0, 60_000
            ),
            compression_level=_read_int(
                env, "KINGS_COOKING_COMPRESSION_LEVEL", cls.compression_level, 0, 9
            ),
            strict_invariants=_read_bool(
                env, "KINGS_COOKING_STRICT_INVARIANTS", cls.strict_invariants
            ),
            log_level=log_level,
            base_url=base_url,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
