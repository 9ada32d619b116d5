"""Explicit configuration objects.

Values are read once (optionally from the environment, after `load_dotenv`)
and passed into the cache, fetcher and processor at construction time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from dotenv import load_dotenv

from richtext.errors import ConfigurationError


GOLDEN_RATIO = 1.618033988749895

DEFAULT_CACHE_TTL = 3600.0
DEFAULT_FAILURE_TTL = 60.0
DEFAULT_KEY_PREFIX = "rte"
DEFAULT_USER_AGENT = "RichTextExtraction/1.0"
DEFAULT_EXCERPT_LENGTH = 300


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not str(raw).strip():
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not str(raw).strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or not str(raw).strip():
        return default
    return str(raw).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class CacheConfig:
    """Settings for `MetadataCache`.

    Durations are seconds.
    """

    ttl: float = DEFAULT_CACHE_TTL
    failure_ttl: float = DEFAULT_FAILURE_TTL
    max_attempts: int = 3
    base_delay: float = 0.05
    backoff_factor: float = GOLDEN_RATIO
    max_delay: float = 5.0
    fetch_timeout: float = 5.0
    degraded_threshold: float = 0.10
    degraded_ttl_factor: float = 0.1
    window_size: int = 100
    min_samples: int = 10
    serve_stale: bool = False
    stale_grace: float = 300.0
    max_workers: int = 8
    key_prefix: str = DEFAULT_KEY_PREFIX

    def validate(self) -> "CacheConfig":
        if self.ttl <= 0:
            raise ConfigurationError("ttl must be positive")
        if self.failure_ttl <= 0:
            raise ConfigurationError("failure_ttl must be positive")
        if self.failure_ttl > self.ttl:
            raise ConfigurationError("failure_ttl must not exceed ttl")
        if self.max_attempts < 1:
            raise ConfigurationError("max_attempts must be at least 1")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ConfigurationError("backoff delays must not be negative")
        if self.backoff_factor < 1.0:
            raise ConfigurationError("backoff_factor must be >= 1")
        if self.fetch_timeout <= 0:
            raise ConfigurationError("fetch_timeout must be positive")
        if not 0.0 <= self.degraded_threshold <= 1.0:
            raise ConfigurationError("degraded_threshold must be within [0, 1]")
        if not 0.0 < self.degraded_ttl_factor <= 1.0:
            raise ConfigurationError("degraded_ttl_factor must be within (0, 1]")
        if self.window_size < 1 or self.min_samples < 1:
            raise ConfigurationError("window_size and min_samples must be positive")
        if self.stale_grace < 0:
            raise ConfigurationError("stale_grace must not be negative")
        if self.max_workers < 1:
            raise ConfigurationError("max_workers must be at least 1")
        if not self.key_prefix or ":" in self.key_prefix:
            raise ConfigurationError("key_prefix must be non-empty and contain no ':'")
        return self

    def with_overrides(self, **changes) -> "CacheConfig":
        return replace(self, **changes).validate()

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "CacheConfig":
        if env is None:
            load_dotenv()
            env = os.environ
        d = cls()
        return cls(
            ttl=_env_float(env, "RTE_CACHE_TTL", d.ttl),
            failure_ttl=_env_float(env, "RTE_CACHE_FAILURE_TTL", d.failure_ttl),
            max_attempts=_env_int(env, "RTE_FETCH_MAX_ATTEMPTS", d.max_attempts),
            base_delay=_env_float(env, "RTE_FETCH_BASE_DELAY", d.base_delay),
            backoff_factor=_env_float(env, "RTE_FETCH_BACKOFF_FACTOR", d.backoff_factor),
            max_delay=_env_float(env, "RTE_FETCH_MAX_DELAY", d.max_delay),
            fetch_timeout=_env_float(env, "RTE_FETCH_TIMEOUT", d.fetch_timeout),
            degraded_threshold=_env_float(env, "RTE_DEGRADED_THRESHOLD", d.degraded_threshold),
            degraded_ttl_factor=_env_float(env, "RTE_DEGRADED_TTL_FACTOR", d.degraded_ttl_factor),
            window_size=_env_int(env, "RTE_FAILURE_WINDOW", d.window_size),
            min_samples=_env_int(env, "RTE_FAILURE_MIN_SAMPLES", d.min_samples),
            serve_stale=_env_bool(env, "RTE_SERVE_STALE", d.serve_stale),
            stale_grace=_env_float(env, "RTE_STALE_GRACE", d.stale_grace),
            max_workers=_env_int(env, "RTE_FETCH_WORKERS", d.max_workers),
            key_prefix=(env.get("RTE_CACHE_PREFIX") or d.key_prefix).strip(),
        ).validate()


@dataclass(frozen=True)
class FetchConfig:
    """Settings for the default HTTP metadata fetcher."""

    user_agent: str = DEFAULT_USER_AGENT
    connect_timeout: float = 5.0
    max_bytes: int = 2_000_000
    max_redirects: int = 3

    def validate(self) -> "FetchConfig":
        if not self.user_agent.strip():
            raise ConfigurationError("user_agent must not be empty")
        if self.connect_timeout <= 0:
            raise ConfigurationError("connect_timeout must be positive")
        if self.max_bytes <= 0:
            raise ConfigurationError("max_bytes must be positive")
        if self.max_redirects < 0:
            raise ConfigurationError("max_redirects must not be negative")
        return self

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "FetchConfig":
        if env is None:
            load_dotenv()
            env = os.environ
        d = cls()
        return cls(
            user_agent=(env.get("RTE_USER_AGENT") or d.user_agent),
            connect_timeout=_env_float(env, "RTE_CONNECT_TIMEOUT", d.connect_timeout),
            max_bytes=_env_int(env, "RTE_FETCH_MAX_BYTES", d.max_bytes),
            max_redirects=_env_int(env, "RTE_MAX_REDIRECTS", d.max_redirects),
        ).validate()
