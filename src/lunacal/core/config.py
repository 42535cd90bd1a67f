# src/lunacal/core/config.py
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Tuple

ENV_LOG = "LUNACAL_LOG"
ENV_ELASTICSEARCH = "LUNACAL_ELASTICSEARCH"

DEFAULT_LOG_LEVEL = "debug"
DEFAULT_SEARCH_URL = "http://localhost:9200"
DEFAULT_HOST = "::1"
DEFAULT_PORT = 8080


@dataclass(frozen=True)
class MoonriseConfig:
    """
    Tuning for the daily moonrise scan.
    All time units are seconds.
    """
    # A result this close to (or before) the previous accepted moonrise
    # is re-queried against the next day boundary.
    proximity_seconds: int = 500
    day_seconds: int = 86400


@dataclass(frozen=True)
class ServerConfig:
    """
    Process-wide settings. Created once at startup and shared read-only.
    """
    log_level: str = DEFAULT_LOG_LEVEL
    search_url: str = DEFAULT_SEARCH_URL
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    search_index: str = "geolocations"
    search_timeout_seconds: float = 10.0

    cors_origins: Tuple[str, ...] = field(default_factory=lambda: ("*",))

    @classmethod
    def from_env(cls) -> "ServerConfig":
        return cls(
            log_level=os.environ.get(ENV_LOG, "").strip() or DEFAULT_LOG_LEVEL,
            search_url=os.environ.get(ENV_ELASTICSEARCH, "").strip() or DEFAULT_SEARCH_URL,
        )
