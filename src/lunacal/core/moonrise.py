# src/lunacal/core/moonrise.py
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from .astronomy import MoonriseOracle
from .config import MoonriseConfig
from .julian import local_day_start_jd, to_unix_seconds

log = logging.getLogger(__name__)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        raise ValueError("now must be timezone-aware (got naive datetime)")
    return dt.astimezone(timezone.utc)


def _too_close(candidate: int, previous: Optional[int], threshold: int) -> bool:
    # Earlier-than-previous counts as too close as well.
    return previous is not None and candidate - previous <= threshold


def generate_moonrises(
    lat: float,
    lon: float,
    number_of_days: int,
    *,
    oracle: MoonriseOracle,
    now: Optional[datetime] = None,
    config: MoonriseConfig = MoonriseConfig(),
) -> List[int]:
    """
    One moonrise per local solar day, starting with the day containing `now`.

    Days without a moonrise are skipped, so the result may be shorter than
    number_of_days. Returned instants are Unix seconds (UTC) in day order and
    no two of them are within config.proximity_seconds of each other.

    Parameters
    ----------
    lat, lon:
        Observer coordinates in signed degrees.
    number_of_days:
        How many consecutive days to scan (>= 1).
    oracle:
        Moonrise source; see MoonriseOracle.
    now:
        Scan anchor (timezone-aware). Defaults to the current UTC time.
    """
    if number_of_days < 1:
        raise ValueError(f"number_of_days must be >= 1 (got {number_of_days})")

    start = _as_utc(now) if now is not None else _now_utc()

    moonrises: List[int] = []
    previous: Optional[int] = None
    for i in range(number_of_days):
        anchor = start + timedelta(days=i)
        jd = local_day_start_jd(anchor.timestamp(), lon)
        candidate = oracle.moonrise(to_unix_seconds(jd), lon, lat)

        if candidate is not None and _too_close(candidate, previous, config.proximity_seconds):
            log.debug("moonrise %d too close to %d; retrying next day boundary", candidate, previous)
            candidate = oracle.moonrise(to_unix_seconds(jd + 1), lon, lat)
            # Accepted moonrises stay more than proximity_seconds apart.
            if candidate is not None and _too_close(candidate, previous, config.proximity_seconds):
                log.info("dropping moonrise %d for %s: still within %ds of %d",
                         candidate, anchor.isoformat(), config.proximity_seconds, previous)
                candidate = None

        if candidate is None:
            log.info("No moonrise for %s", anchor.isoformat())
            continue

        previous = candidate
        moonrises.append(candidate)

    log.info("moonrises lat=%.6f lon=%.6f days=%d -> %s", lat, lon, number_of_days, moonrises)
    return moonrises
