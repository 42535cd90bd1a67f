# src/lunacal/features/locations.py
from __future__ import annotations

"""
Location search against a GeoNames-shaped Elasticsearch index.

Index documents look like:
  {"name": .., "ascii_name": .., "location": [lon, lat], "feature_class": "P", ...}

NOTE:
  location is stored as [longitude, latitude] (GeoJSON order); the record
  exposes them as separate, correctly named fields.
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel

log = logging.getLogger(__name__)


class FeatureClass(str, Enum):
    CITY = "City"
    AREA = "Area"
    WATER_BODY = "WaterBody"
    REGION = "Region"
    ROAD = "Road"
    SPOT = "Spot"
    HILL = "Hill"
    UNDERSEA = "Undersea"
    FOREST = "Forest"
    UNKNOWN = "Unknown"

    @classmethod
    def from_code(cls, code: Optional[str]) -> "FeatureClass":
        """
        Decode a GeoNames feature class letter. Anything that is not exactly
        one known letter is UNKNOWN.
        """
        if not isinstance(code, str):
            return cls.UNKNOWN
        return FEATURE_CLASS_BY_CODE.get(code, cls.UNKNOWN)


FEATURE_CLASS_BY_CODE: Dict[str, FeatureClass] = {
    "A": FeatureClass.REGION,
    "H": FeatureClass.WATER_BODY,
    "L": FeatureClass.AREA,
    "P": FeatureClass.CITY,
    "R": FeatureClass.ROAD,
    "S": FeatureClass.SPOT,
    "T": FeatureClass.HILL,
    "U": FeatureClass.UNDERSEA,
    "V": FeatureClass.FOREST,
}


class LocationRecord(BaseModel):
    id: str
    name: str
    ascii_name: str
    latitude: float
    longitude: float
    feature_code: str
    country_code: str
    admin1: Optional[str] = None
    admin2: Optional[str] = None
    feature_class: FeatureClass = FeatureClass.UNKNOWN
    population: Optional[int] = None
    elevation: Optional[int] = None
    timezone: str
    modification_date: str


class LocationIndexError(Exception):
    """Search index unreachable, failing, or returning malformed data."""


def build_search_query(text: str) -> Dict[str, Any]:
    # Really "population centers": entries without population are filtered out.
    return {
        "query": {
            "bool": {
                "must": {
                    "multi_match": {
                        "fields": ["name", "country_code"],
                        "query": text,
                        "fuzziness": "AUTO",
                    }
                },
                "filter": {
                    "range": {"population": {"gt": 0}},
                },
            }
        }
    }


def _optional_str(source: Dict[str, Any], key: str) -> Optional[str]:
    v = source.get(key)
    return v if isinstance(v, str) else None


def _optional_int(source: Dict[str, Any], key: str) -> Optional[int]:
    v = source.get(key)
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        return None
    return int(v)


def location_from_hit(hit: Dict[str, Any]) -> LocationRecord:
    """
    Build a LocationRecord from one search hit (`_id` + `_source`).

    Raises
    ------
    LocationIndexError
        If required fields are missing or have the wrong shape.
    """
    try:
        source = hit["_source"]
        loc = source["location"]
        if not isinstance(loc, (list, tuple)) or len(loc) < 2:
            raise ValueError(f"location must be [lon, lat], got {loc!r}")
        return LocationRecord(
            id=str(hit["_id"]),
            name=source["name"],
            ascii_name=source["ascii_name"],
            longitude=float(loc[0]),
            latitude=float(loc[-1]),
            feature_code=source["feature_code"],
            country_code=source["country_code"],
            admin1=_optional_str(source, "admin1"),
            admin2=_optional_str(source, "admin2"),
            feature_class=FeatureClass.from_code(source.get("feature_class")),
            population=_optional_int(source, "population"),
            elevation=_optional_int(source, "elevation"),
            timezone=source["timezone"],
            modification_date=source["modification_date"],
        )
    except (KeyError, TypeError, ValueError) as e:
        # pydantic.ValidationError is a ValueError
        raise LocationIndexError(f"Malformed search hit: {e}") from e


def locations_from_response(body: Any) -> List[LocationRecord]:
    try:
        hits = body["hits"]["hits"]
    except (KeyError, TypeError) as e:
        raise LocationIndexError("Search response has no hits.hits") from e
    if not isinstance(hits, list):
        raise LocationIndexError(f"hits.hits must be a list, got {type(hits).__name__}")
    return [location_from_hit(h) for h in hits]


class LocationIndex:
    """
    Thin client for the geolocation index. A fresh HTTP client is opened per
    search; nothing is pooled across requests.
    """

    def __init__(
        self,
        base_url: str,
        *,
        index: str = "geolocations",
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.index = index
        self.timeout = timeout
        self._transport = transport

    @property
    def search_url(self) -> str:
        return f"{self.base_url}/{self.index}/_search"

    def search(self, text: str) -> List[LocationRecord]:
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                resp = client.post(self.search_url, json=build_search_query(text))
                resp.raise_for_status()
                body = resp.json()
        except httpx.HTTPStatusError as e:
            raise LocationIndexError(f"Search index returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise LocationIndexError(f"Search index unreachable: {e}") from e
        except ValueError as e:
            raise LocationIndexError("Search index returned invalid JSON") from e

        records = locations_from_response(body)
        log.info("search query=%r -> %d results", text, len(records))
        return records
