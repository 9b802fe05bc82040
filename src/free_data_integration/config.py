from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or not str(raw).strip():
        return default
    try:
        value = int(str(raw).strip())
    except ValueError:
        return default
    return max(minimum, value)


def _env_float(name: str, default: float, minimum: float = 0.0) -> float:
    raw = os.getenv(name)
    if raw is None or not str(raw).strip():
        return default
    try:
        value = float(str(raw).strip())
    except ValueError:
        return default
    return max(minimum, value)


def _env_str(name: str) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def _env_list(name: str) -> Tuple[str, ...]:
    raw = _env_str(name)
    if raw is None:
        return ()
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
    """Runtime knobs for one aggregation process.

    Everything comes from env vars so the HTTP app, the CLI and tests share
    the same defaults.
    """

    delay_ms: int = 100
    timeout_s: float = 15.0
    request_budget_s: float = 55.0
    max_sources: int = 5
    max_sources_after_specialized: int = 2
    scrape_limit: int = 25
    sqlite_path: Optional[str] = None
    log_level: str = "INFO"
    # Source names run ahead of registry priority, in this order.
    priority_sources: Tuple[str, ...] = ()

    @property
    def delay_s(self) -> float:
        return self.delay_ms / 1000.0

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            delay_ms=_env_int("FDI_DELAY_MS", 100),
            timeout_s=_env_float("FDI_TIMEOUT_S", 15.0, minimum=1.0),
            request_budget_s=_env_float("FDI_REQUEST_BUDGET_S", 55.0, minimum=1.0),
            max_sources=_env_int("FDI_MAX_SOURCES", 5, minimum=1),
            max_sources_after_specialized=_env_int(
                "FDI_MAX_SOURCES_AFTER_SPECIALIZED", 2, minimum=0
            ),
            scrape_limit=_env_int("FDI_SCRAPE_LIMIT", 25, minimum=1),
            sqlite_path=_env_str("FDI_SQLITE_PATH"),
            log_level=(_env_str("FDI_LOG_LEVEL") or "INFO").upper(),
            priority_sources=_env_list("FDI_PRIORITY_SOURCES"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


def reset_settings_cache() -> None:
    """Test helper to force env re-read."""

    get_settings.cache_clear()


def api_key(name: str) -> Optional[str]:
    """Read an API key at call time; blank values count as missing."""

    return _env_str(name)
