# src/taskpoll/config.py

"""Settings and poll option resolution.

Design goals:
- One Settings object holding the system defaults (env vars + optional .env).
- Poller-level defaults (PollerConfig) layered on top, per Poller instance.
- Per-task overrides resolved last into an immutable TaskConfig.
- Invalid option values never raise: they are logged and replaced by the default.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Final, Literal, Optional, Union

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ENV_PREFIX = "TASKPOLL"

UNLIMITED: Final = "unlimited"
RetryLimit = Union[int, Literal["unlimited"]]

DEFAULT_INTERVAL = 1000  # ms
DEFAULT_RETRY_LIMIT = 10

_TRUTHY = frozenset({"1", "true", "yes", "y", "on"})
_FALSY = frozenset({"0", "false", "no", "n", "off"})


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def _env_int(name: str, default: int | None) -> int | None:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer", name, raw)
        return default


def _env_retry_limit(name: str, default: RetryLimit) -> RetryLimit:
    raw = os.getenv(name)
    if raw is not None and raw.strip().lower() == UNLIMITED:
        return UNLIMITED
    value = _env_int(name, None)
    return default if value is None else value


def _env_path(name: str) -> Path | None:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return Path(raw).expanduser()


# ---- validation ----


def is_non_negative_int(value: Any) -> bool:
    # bool is an int subclass; True is not a valid interval.
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def valid_interval(value: Any, default: int = DEFAULT_INTERVAL) -> int:
    if value is None:
        return default
    if is_non_negative_int(value):
        return value
    logger.warning("Interval should be a non-negative integer, got %r; using %s", value, default)
    return default


def valid_retry_limit(value: Any, default: RetryLimit = DEFAULT_RETRY_LIMIT) -> RetryLimit:
    if value is None:
        return default
    if value == UNLIMITED or is_non_negative_int(value):
        return value
    logger.warning(
        "Retry limit should be a non-negative integer or %r, got %r; using %s",
        UNLIMITED,
        value,
        default,
    )
    return default


def valid_timeout(value: Any) -> int | None:
    if value is None:
        return None
    if is_non_negative_int(value):
        return value
    logger.warning("Timeout should be a non-negative integer, got %r; ignoring it", value)
    return None


def valid_run_on_start(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        raw = value.strip().lower()
        if raw in _TRUTHY:
            return True
        if raw in _FALSY:
            return False
    logger.warning("run_on_start should be a boolean, got %r; using %r", value, default)
    return default


def effective_timeout(timeout: int | None, interval: int) -> int | None:
    """
    Timeout actually applied to one invocation.

    Unset means "same as interval"; anything above interval is clamped down so an
    invocation never outlives the next tick. 0 disables the guard.
    """
    if timeout is None:
        timeout = interval
    elif timeout > interval:
        logger.debug("Clamping timeout %s ms to interval %s ms", timeout, interval)
        timeout = interval
    return timeout or None


# ---- settings ----


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- Logging ----
    log_level: str
    log_dir: Optional[Path]

    # ---- System poll defaults ----
    interval: int
    timeout: Optional[int]
    retry_limit: RetryLimit
    run_on_start: bool

    @staticmethod
    def from_env() -> "Settings":
        load_dotenv(override=False)

        log_level = _env(_k("LOG_LEVEL"), "INFO")
        log_dir = _env_path(_k("LOG_DIR"))

        interval = valid_interval(_env_int(_k("INTERVAL"), DEFAULT_INTERVAL))
        timeout = valid_timeout(_env_int(_k("TIMEOUT"), None))
        retry_limit = valid_retry_limit(_env_retry_limit(_k("RETRY_LIMIT"), DEFAULT_RETRY_LIMIT))
        run_on_start = _env_bool(_k("RUN_ON_START"), False)

        return Settings(
            log_level=log_level,
            log_dir=log_dir,
            interval=interval,
            timeout=timeout,
            retry_limit=retry_limit,
            run_on_start=run_on_start,
        )

    def poller_defaults(self) -> "PollerConfig":
        return PollerConfig(
            interval=self.interval,
            timeout=self.timeout,
            retry_limit=self.retry_limit,
            run_on_start=self.run_on_start,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS


# ---- poller / task config ----


@dataclass(frozen=True, slots=True)
class PollerConfig:
    """Poller-level defaults. ``timeout`` is kept as configured (unclamped)."""

    interval: int = DEFAULT_INTERVAL
    timeout: Optional[int] = None
    retry_limit: RetryLimit = DEFAULT_RETRY_LIMIT
    run_on_start: bool = False

    def merged(self, **changes: Any) -> "PollerConfig":
        """
        Return a copy with the given fields validated and applied.

        Unknown names and None values are ignored (unknown names with a warning).
        """
        known = {f.name for f in fields(self)}
        clean: dict[str, Any] = {}
        for name, value in changes.items():
            if name not in known:
                logger.warning("Unknown poller option %r ignored", name)
                continue
            if value is None:
                continue
            if name == "interval":
                clean[name] = valid_interval(value, self.interval)
            elif name == "timeout":
                timeout = valid_timeout(value)
                if timeout is not None:
                    clean[name] = timeout
            elif name == "retry_limit":
                clean[name] = valid_retry_limit(value, self.retry_limit)
            else:
                clean[name] = valid_run_on_start(value, self.run_on_start)
        return replace(self, **clean)

    def resolve(
        self,
        *,
        interval: Any = None,
        timeout: Any = None,
        retry_limit: Any = None,
        run_on_start: Any = None,
        initial_value: Any = None,
    ) -> "TaskConfig":
        """Resolve per-task overrides against these defaults."""
        resolved_interval = valid_interval(interval, self.interval)
        raw_timeout = valid_timeout(timeout)
        if raw_timeout is None:
            raw_timeout = self.timeout
        return TaskConfig(
            interval=resolved_interval,
            timeout=effective_timeout(raw_timeout, resolved_interval),
            retry_limit=valid_retry_limit(retry_limit, self.retry_limit),
            run_on_start=valid_run_on_start(run_on_start, self.run_on_start),
            initial_value=initial_value,
        )


@dataclass(frozen=True, slots=True)
class TaskConfig:
    """Fully resolved options for one submitted task. ``timeout`` None = unguarded."""

    interval: int
    timeout: Optional[int]
    retry_limit: RetryLimit
    run_on_start: bool
    initial_value: Any = None

    @property
    def unlimited(self) -> bool:
        return self.retry_limit == UNLIMITED
