# src/lunacal/core/julian.py
from __future__ import annotations

import math

SECONDS_PER_DAY = 86400.0
UNIX_EPOCH_JD = 2440587.5


def to_julian_day(unix_seconds: float) -> float:
    """
    Convert a Unix timestamp (seconds, UTC) to a Julian Day number.

    Parameters
    ----------
    unix_seconds:
        Seconds since 1970-01-01T00:00:00Z.

    Returns
    -------
    float
        Julian Day (JD 2440587.5 == Unix epoch).
    """
    return unix_seconds / SECONDS_PER_DAY + UNIX_EPOCH_JD


def to_unix_seconds(julian_day: float) -> int:
    """
    Inverse of to_julian_day, rounded to the nearest whole second.
    """
    return int(round((julian_day - UNIX_EPOCH_JD) * SECONDS_PER_DAY))


def local_day_start_jd(unix_seconds: float, longitude: float) -> float:
    """
    Julian Day of the local solar day boundary containing unix_seconds.

    Shifts by longitude/360 so the boundary follows the location's solar day,
    not the UTC day. Result always ends in .5 (JD days start at noon).
    """
    return math.floor(to_julian_day(unix_seconds) + longitude / 360.0 + 0.5) - 0.5
