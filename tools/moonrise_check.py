from __future__ import annotations

"""
Moonrise check script.

Uses:
- lunacal.core.moonrise.generate_moonrises
- lunacal.core.providers.skyfield_provider.SkyfieldProvider
"""

import argparse
import logging
from datetime import datetime, timezone

from lunacal.core.moonrise import generate_moonrises
from lunacal.core.providers.skyfield_provider import SkyfieldProvider
from lunacal.features.ical import resolve_timezone

from tools.common import add_common_args, dump_json, parse_now, resolve_ephemeris, skip


def main() -> None:
    parser = argparse.ArgumentParser(description="Moonrise sequence check")
    add_common_args(parser)
    args = parser.parse_args()

    if args.days < 1:
        parser.error("--days must be >= 1")

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    eph = resolve_ephemeris(args.ephemeris, args.ephemeris_path)
    if eph.skip_reason:
        skip(eph.skip_reason)

    provider = SkyfieldProvider(ephemeris_path=eph.path)
    tzinfo = resolve_timezone(args.tz)

    moonrises = generate_moonrises(
        args.lat,
        args.lon,
        args.days,
        oracle=provider,
        now=parse_now(args.now),
    )

    rows = []
    prev = None
    for ts in moonrises:
        utc = datetime.fromtimestamp(ts, tz=timezone.utc)
        gap_h = None if prev is None else round((ts - prev) / 3600.0, 3)
        rows.append(
            {
                "unix": ts,
                "utc": utc.isoformat(),
                "local": utc.astimezone(tzinfo).isoformat(),
                "gap_hours": gap_h,
            }
        )
        prev = ts

    if args.json:
        dump_json({"lat": args.lat, "lon": args.lon, "days": args.days, "moonrises": rows})
        return

    for r in rows:
        gap = "" if r["gap_hours"] is None else f"  (+{r['gap_hours']}h)"
        print(f"{r['local']}{gap}")
    print(f"{len(rows)}/{args.days} days with a moonrise")


if __name__ == "__main__":
    main()
