# src/lunacal/features/ical.py
from __future__ import annotations

"""
Moonrise calendar feed.

- build_events: moonrise instants -> CalendarEvent (UTC arithmetic only)
- serialize_calendar: CalendarEvent -> iCalendar text (VCALENDAR/VEVENT)

The timezone only affects the human-readable DESCRIPTION; DTSTART/DTEND are
always written in UTC.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional, Tuple

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from icalendar import Calendar, Event

from lunacal.core.astronomy import MoonriseOracle
from lunacal.core.moonrise import generate_moonrises

log = logging.getLogger(__name__)

UTC = timezone.utc

DEFAULT_SUMMARY = "Moonrise"
DEFAULT_TZ = "UTC"
DESCRIPTION_PREFIX = "Moonrise @ "
DESCRIPTION_TIME_FORMAT = "%Y-%m-%d %H:%M:%S %Z"

FILENAME = "moonrises.ical"
PRODID = "-//lunacal//moonrise calendar//EN"


@dataclass(frozen=True)
class CalendarRequest:
    lat: float
    lon: float
    before: int
    after: int
    number_of_days: int
    summary: Optional[str] = None
    timezone: Optional[str] = None


@dataclass(frozen=True)
class CalendarEvent:
    summary: str
    description: str
    start: datetime
    end: datetime


CalendarDocument = Tuple[CalendarEvent, ...]


def _blank_to_none(s: Optional[str]) -> Optional[str]:
    if s is None:
        return None
    s = s.strip()
    return s or None


def resolve_timezone(name: Optional[str]) -> ZoneInfo:
    """
    ZoneInfo for an IANA name; unknown or malformed names fall back to UTC.
    """
    key = _blank_to_none(name) or DEFAULT_TZ
    try:
        return ZoneInfo(key)
    except (ZoneInfoNotFoundError, ValueError):
        log.warning("Unknown timezone %r; falling back to %s", name, DEFAULT_TZ)
        return ZoneInfo(DEFAULT_TZ)


def describe_moonrise(moonrise_utc: datetime, tzinfo: ZoneInfo) -> str:
    return DESCRIPTION_PREFIX + moonrise_utc.astimezone(tzinfo).strftime(DESCRIPTION_TIME_FORMAT)


def build_events(
    moonrises: Iterable[int],
    *,
    before: int,
    after: int,
    summary: Optional[str] = None,
    tz_name: Optional[str] = None,
) -> CalendarDocument:
    """
    One event per moonrise, in input order.

    start = moonrise - before minutes, end = moonrise + after minutes.
    """
    if before < 0 or after < 0:
        raise ValueError(f"before/after must be >= 0 (got before={before}, after={after})")

    title = _blank_to_none(summary) or DEFAULT_SUMMARY
    tzinfo = resolve_timezone(tz_name)

    events = []
    for ts in moonrises:
        moonrise_utc = datetime.fromtimestamp(ts, tz=UTC)
        events.append(
            CalendarEvent(
                summary=title,
                description=describe_moonrise(moonrise_utc, tzinfo),
                start=moonrise_utc - timedelta(minutes=before),
                end=moonrise_utc + timedelta(minutes=after),
            )
        )
    return tuple(events)


def serialize_calendar(document: CalendarDocument, *, stamp: Optional[datetime] = None) -> str:
    """
    iCalendar text with one VEVENT per event, in document order.

    stamp is written as DTSTAMP on every event (default: now, UTC).
    """
    dtstamp = (stamp or datetime.now(UTC)).astimezone(UTC)

    cal = Calendar()
    cal.add("prodid", PRODID)
    cal.add("version", "2.0")
    for e in document:
        ev = Event()
        ev.add("uid", f"{uuid.uuid4()}@lunacal")
        ev.add("dtstamp", dtstamp)
        ev.add("summary", e.summary)
        ev.add("description", e.description)
        ev.add("dtstart", e.start)
        ev.add("dtend", e.end)
        cal.add_component(ev)
    return cal.to_ical().decode("utf-8")


def calendar_for_request(
    req: CalendarRequest,
    *,
    oracle: MoonriseOracle,
    now: Optional[datetime] = None,
) -> str:
    moonrises = generate_moonrises(req.lat, req.lon, req.number_of_days, oracle=oracle, now=now)
    document = build_events(
        moonrises,
        before=req.before,
        after=req.after,
        summary=req.summary,
        tz_name=req.timezone,
    )
    return serialize_calendar(document)
