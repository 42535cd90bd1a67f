from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple, Union
import logging

from skyfield.api import Loader, wgs84
from skyfield import almanac

log = logging.getLogger(__name__)

# Moon's apparent radius; rise is when the upper limb clears the horizon.
MOON_RADIUS_DEG = 0.25


def _project_data_dir() -> Path:
    return Path(__file__).resolve().parents[4] / "data"


def _default_ephemeris_path() -> Path:
    # de440s when present, else de421.
    data_dir = _project_data_dir()
    p440s = data_dir / "de440s.bsp"
    p421 = data_dir / "de421.bsp"
    return p440s if p440s.exists() else p421


def _resolve_ephemeris_path(
    *,
    ephemeris_path: Optional[Path],
    ephemeris: Optional[Union[str, Path]],
) -> Path:
    """
    Explicit path first, then a file name (relative names live in ./data),
    then the bundled default.
    """
    if ephemeris_path is not None:
        return ephemeris_path

    if ephemeris is not None:
        p = ephemeris if isinstance(ephemeris, Path) else Path(ephemeris)
        if p.is_absolute():
            return p
        return _project_data_dir() / p

    return _default_ephemeris_path()


@lru_cache(maxsize=32)
def _topos_for_latlon(lat: float, lon: float):
    return wgs84.latlon(latitude_degrees=lat, longitude_degrees=lon)


@dataclass(frozen=True)
class SkyfieldProvider:
    """
    Moonrise oracle backed by Skyfield and a JPL ephemeris
    (de440s > de421 when not given explicitly).
    """

    ephemeris_path: Optional[Path] = None
    ephemeris: Optional[Union[str, Path]] = None

    def __post_init__(self) -> None:
        resolved = _resolve_ephemeris_path(
            ephemeris_path=self.ephemeris_path,
            ephemeris=self.ephemeris,
        )
        object.__setattr__(self, "ephemeris_path", resolved)

        if not self.ephemeris_path.exists():
            data_dir = _project_data_dir()
            candidates = [
                data_dir / "de440s.bsp",
                data_dir / "de421.bsp",
            ]
            cand_str = "\n".join(f"  - {p}" for p in candidates)
            raise FileNotFoundError(
                f"Ephemeris not found: {self.ephemeris_path}\n"
                f"Place one of the following files under {data_dir}:\n"
                f"{cand_str}\n"
                "Or pass ephemeris='de440s.bsp' / ephemeris_path=Path(...)."
            )

        loader = Loader(str(self.ephemeris_path.parent))
        eph = loader(self.ephemeris_path.name)
        ts = loader.timescale()

        object.__setattr__(self, "_eph", eph)
        object.__setattr__(self, "_ts", ts)
        object.__setattr__(self, "_moon", eph["moon"])

        start_utc, end_utc = self._compute_ephemeris_utc_range()
        object.__setattr__(self, "_ephem_start_utc", start_utc)
        object.__setattr__(self, "_ephem_end_utc", end_utc)

    def _compute_ephemeris_utc_range(self) -> Tuple[datetime, datetime]:
        """UTC span covered by the loaded SPK segments."""
        segments = getattr(self._eph, "spk", None)
        if segments is None or not getattr(segments, "segments", None):
            return (
                datetime.min.replace(tzinfo=timezone.utc),
                datetime.max.replace(tzinfo=timezone.utc),
            )

        segs = segments.segments
        start_jd = min(s.start_jd for s in segs)
        end_jd = max(s.end_jd for s in segs)

        t0 = self._ts.tt_jd(start_jd)
        t1 = self._ts.tt_jd(end_jd)
        start_utc = t0.utc_datetime().replace(tzinfo=timezone.utc)
        end_utc = t1.utc_datetime().replace(tzinfo=timezone.utc)
        return start_utc, end_utc

    def _check_ephemeris_range(self, dt_utc: datetime) -> None:
        start = self._ephem_start_utc
        end = self._ephem_end_utc

        if dt_utc < start or dt_utc > end:
            raise ValueError(
                "Requested datetime is outside ephemeris coverage.\n"
                f"  requested: {dt_utc.isoformat()}\n"
                f"  ephemeris: {self.ephemeris_path}\n"
                f"  coverage : {start.isoformat()} .. {end.isoformat()}"
            )

    def moonrise(self, day_start_unix: int, longitude: float, latitude: float) -> Optional[int]:
        start_utc = datetime.fromtimestamp(day_start_unix, tz=timezone.utc)
        end_utc = start_utc + timedelta(days=1)

        self._check_ephemeris_range(start_utc)
        self._check_ephemeris_range(end_utc)

        topos = _topos_for_latlon(latitude, longitude)
        fn = almanac.risings_and_settings(self._eph, self._moon, topos, radius_degrees=MOON_RADIUS_DEG)

        t0 = self._ts.from_datetime(start_utc)
        t1 = self._ts.from_datetime(end_utc)

        times, events = almanac.find_discrete(t0, t1, fn)

        for t, ev in zip(times, events):
            if int(ev) != 1:
                continue
            dt = t.utc_datetime()
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)
            return int(round(dt.timestamp()))

        log.debug(
            "moonrise not found: start_utc=%s lat=%.6f lon=%.6f",
            start_utc.isoformat(),
            latitude,
            longitude,
        )
        return None


@lru_cache(maxsize=4)
def provider_cached(ephemeris: str = "", ephemeris_path: str = "") -> SkyfieldProvider:
    ephem = ephemeris.strip() or None
    ep_path = Path(ephemeris_path).expanduser() if ephemeris_path else None
    return SkyfieldProvider(ephemeris=ephem, ephemeris_path=ep_path)
