from __future__ import annotations

"""
Write a moonrise calendar for a location to disk (same output as POST /ical).
"""

import argparse
from pathlib import Path

from lunacal.core.providers.skyfield_provider import SkyfieldProvider
from lunacal.features.ical import FILENAME, CalendarRequest, calendar_for_request

from tools.common import add_common_args, parse_now, resolve_ephemeris, skip


def main() -> None:
    parser = argparse.ArgumentParser(description="Moonrise calendar export check")
    add_common_args(parser)
    parser.add_argument("--before", type=int, default=0)
    parser.add_argument("--after", type=int, default=0)
    parser.add_argument("--summary", default=None)
    parser.add_argument("--out", default=FILENAME)
    args = parser.parse_args()

    eph = resolve_ephemeris(args.ephemeris, args.ephemeris_path)
    if eph.skip_reason:
        skip(eph.skip_reason)

    req = CalendarRequest(
        lat=args.lat,
        lon=args.lon,
        before=args.before,
        after=args.after,
        number_of_days=args.days,
        summary=args.summary,
        timezone=args.tz,
    )
    content = calendar_for_request(req, oracle=SkyfieldProvider(ephemeris_path=eph.path), now=parse_now(args.now))

    out = Path(args.out)
    out.write_text(content, encoding="utf-8")
    print(f"written:{out} events:{content.count('BEGIN:VEVENT')}")


if __name__ == "__main__":
    main()
