from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from fastapi import APIRouter, Depends, Form, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse, Response

from lunacal.core.astronomy import MoonriseOracle
from lunacal.core.config import ServerConfig
from lunacal.core.providers.skyfield_provider import provider_cached
from lunacal.features.ical import FILENAME, CalendarRequest, calendar_for_request
from lunacal.features.locations import LocationIndex, LocationIndexError, LocationRecord

router = APIRouter(tags=["public"])

log = logging.getLogger("lunacal.api.public")

LUNACAL_EPHEMERIS_ENV = "LUNACAL_EPHEMERIS"
LUNACAL_EPHEMERIS_PATH_ENV = "LUNACAL_EPHEMERIS_PATH"

MAX_NUMBER_OF_DAYS = 1000

ICAL_HEADERS = {
    "Content-Disposition": f'attachment; filename="{FILENAME}"',
}
ICAL_MEDIA_TYPE = "application/octet-stream; charset=utf-8"

ROBOTS_TXT = "User-Agent: *\nDisallow: /"


# ============================================================
# Dependencies
# ============================================================
def _resolve_ephemeris() -> Tuple[str, str]:
    ephem = os.environ.get(LUNACAL_EPHEMERIS_ENV, "").strip()
    path_raw = os.environ.get(LUNACAL_EPHEMERIS_PATH_ENV, "").strip()
    if path_raw:
        path_raw = str(Path(path_raw).expanduser())
    return ephem, path_raw


OracleLoader = Callable[[], MoonriseOracle]


def load_oracle() -> MoonriseOracle:
    ephem, ephem_path = _resolve_ephemeris()
    return provider_cached(ephem, ephem_path)


def get_oracle_loader() -> OracleLoader:
    # The ephemeris is only opened once the form has validated.
    return load_oracle


def get_config(request: Request) -> ServerConfig:
    cfg = getattr(request.app.state, "config", None)
    return cfg if isinstance(cfg, ServerConfig) else ServerConfig()


def get_location_index(cfg: ServerConfig = Depends(get_config)) -> LocationIndex:
    return LocationIndex(
        cfg.search_url,
        index=cfg.search_index,
        timeout=cfg.search_timeout_seconds,
    )


# ============================================================
# Endpoints
# ============================================================
@router.post("/ical")
def generate_calendar(
    lat: float = Form(..., ge=-90.0, le=90.0),
    lon: float = Form(..., ge=-180.0, le=180.0),
    before: int = Form(..., ge=0, description="minutes before moonrise"),
    after: int = Form(..., ge=0, description="minutes after moonrise"),
    number_of_days: int = Form(..., ge=1, le=MAX_NUMBER_OF_DAYS),
    summary: Optional[str] = Form(None),
    timezone: Optional[str] = Form(None, description="IANA timezone for the description"),
    oracle_loader: OracleLoader = Depends(get_oracle_loader),
) -> Response:
    req = CalendarRequest(
        lat=lat,
        lon=lon,
        before=before,
        after=after,
        number_of_days=number_of_days,
        summary=summary,
        timezone=timezone,
    )

    try:
        oracle = oracle_loader()
    except FileNotFoundError as e:
        log.error("ephemeris unavailable: %s", e)
        raise HTTPException(status_code=503, detail="Moonrise ephemeris unavailable") from e

    try:
        content = calendar_for_request(req, oracle=oracle)
    except ValueError as e:
        log.exception("moonrise calculation failed: lat=%.6f lon=%.6f days=%d", lat, lon, number_of_days)
        raise HTTPException(status_code=503, detail=f"Moonrise calculation failed: {e}") from e

    return Response(content=content, media_type=ICAL_MEDIA_TYPE, headers=ICAL_HEADERS)


@router.get("/search_location", response_model=List[LocationRecord])
def search_locations(
    query: str = Query(..., min_length=1, description="free-text location name or country code"),
    index: LocationIndex = Depends(get_location_index),
) -> List[LocationRecord]:
    try:
        return index.search(query)
    except LocationIndexError as e:
        log.exception("location search failed: query=%r", query)
        raise HTTPException(status_code=502, detail=str(e)) from e


@router.get("/robots.txt", response_class=PlainTextResponse)
def robots() -> str:
    return ROBOTS_TXT
