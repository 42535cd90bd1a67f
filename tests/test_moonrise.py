from __future__ import annotations

import random
from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest

from lunacal.core.astronomy import CallableOracle, MoonriseOracle, as_oracle
from lunacal.core.config import MoonriseConfig
from lunacal.core.moonrise import generate_moonrises

DAY = 86400
D0 = 1704067200  # 2024-01-01T00:00:00Z
NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class _RecordingOracle:
    """Oracle stub: moonrise = table[day_start] (default: day_start + offset)."""

    def __init__(self, table: Optional[Dict[int, Optional[int]]] = None, offset: int = 3600):
        self.table = table or {}
        self.offset = offset
        self.calls: List[int] = []

    def moonrise(self, day_start_unix: int, longitude: float, latitude: float) -> Optional[int]:
        self.calls.append(day_start_unix)
        if day_start_unix in self.table:
            return self.table[day_start_unix]
        return day_start_unix + self.offset


def _assert_well_separated(xs: List[int], threshold: int = 500) -> None:
    for a, b in zip(xs, xs[1:]):
        assert b - a > threshold


def test_stub_satisfies_protocol():
    assert isinstance(_RecordingOracle(), MoonriseOracle)


def test_one_moonrise_per_day_queries_utc_midnights():
    oracle = _RecordingOracle()
    out = generate_moonrises(40.7, 0.0, 5, oracle=oracle, now=NOW)

    assert out == [D0 + i * DAY + 3600 for i in range(5)]
    assert oracle.calls == [D0 + i * DAY for i in range(5)]


def test_western_longitude_starts_on_previous_utc_date():
    oracle = _RecordingOracle()
    early = datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc)
    generate_moonrises(40.7, -90.0, 2, oracle=oracle, now=early)

    assert oracle.calls == [D0 - DAY, D0]


def test_days_without_moonrise_are_skipped():
    oracle = _RecordingOracle(table={D0 + DAY: None})
    out = generate_moonrises(10.0, 0.0, 3, oracle=oracle, now=NOW)

    assert out == [D0 + 3600, D0 + 2 * DAY + 3600]


def test_polar_night_yields_empty_sequence():
    out = generate_moonrises(89.0, 0.0, 4, oracle=as_oracle(lambda start, lon, lat: None), now=NOW)
    assert out == []


def test_proximity_correction_requeries_next_boundary():
    # Day 1 returns an instant 100 s after day 0's moonrise.
    oracle = _RecordingOracle(table={D0 + DAY: D0 + 3600 + 100})
    out = generate_moonrises(40.7, 0.0, 3, oracle=oracle, now=NOW)

    assert out == [D0 + 3600, D0 + 2 * DAY + 3600, D0 + 3 * DAY + 3600]
    # day 1 naive, then day 1 + 1; day 2 hits the same instant again and moves on to day 3
    assert oracle.calls == [D0, D0 + DAY, D0 + 2 * DAY, D0 + 2 * DAY, D0 + 3 * DAY]
    _assert_well_separated(out)


def test_proximity_threshold_is_inclusive_at_500_seconds():
    oracle = _RecordingOracle(table={D0 + DAY: D0 + 3600 + 500})
    out = generate_moonrises(40.7, 0.0, 2, oracle=oracle, now=NOW)
    assert out == [D0 + 3600, D0 + 2 * DAY + 3600]

    oracle = _RecordingOracle(table={D0 + DAY: D0 + 3600 + 501})
    out = generate_moonrises(40.7, 0.0, 2, oracle=oracle, now=NOW)
    assert out == [D0 + 3600, D0 + 3600 + 501]


def test_single_retry_drops_result_still_too_close():
    # Every query returns a value 10 s later than the last one.
    state = {"n": 0}

    def creeping(start, lon, lat):
        state["n"] += 1
        return D0 + 10 * state["n"]

    out = generate_moonrises(40.7, 0.0, 4, oracle=CallableOracle(creeping), now=NOW)

    assert out == [D0 + 10]
    # first day: 1 query; every following day: naive + one retry
    assert state["n"] == 1 + 3 * 2


def test_earlier_than_previous_is_treated_as_too_close():
    oracle = _RecordingOracle(table={D0 + DAY: D0})
    out = generate_moonrises(40.7, 0.0, 2, oracle=oracle, now=NOW)
    assert out == [D0 + 3600, D0 + 2 * DAY + 3600]


def test_first_result_is_never_corrected():
    oracle = _RecordingOracle(table={D0: 100})
    out = generate_moonrises(40.7, 0.0, 1, oracle=oracle, now=NOW)
    assert out == [100]
    assert oracle.calls == [D0]


@pytest.mark.parametrize("seed", range(8))
def test_random_oracle_properties(seed):
    rng = random.Random(seed)

    def jittery(start, lon, lat):
        if rng.random() < 0.15:
            return None
        return start + rng.randint(-2 * 3600, DAY + 2 * 3600)

    n = 30
    out = generate_moonrises(-33.9, 151.2, n, oracle=as_oracle(jittery), now=NOW)

    assert 0 <= len(out) <= n
    _assert_well_separated(out)


def test_custom_threshold():
    oracle = _RecordingOracle(table={D0 + DAY: D0 + 3600 + 1000})
    cfg = MoonriseConfig(proximity_seconds=2000)
    out = generate_moonrises(40.7, 0.0, 2, oracle=oracle, now=NOW, config=cfg)
    assert out == [D0 + 3600, D0 + 2 * DAY + 3600]


def test_rejects_bad_inputs():
    with pytest.raises(ValueError):
        generate_moonrises(0.0, 0.0, 0, oracle=_RecordingOracle(), now=NOW)
    with pytest.raises(ValueError):
        generate_moonrises(0.0, 0.0, 1, oracle=_RecordingOracle(), now=datetime(2024, 1, 1))
    with pytest.raises(TypeError):
        as_oracle(42)
