from __future__ import annotations

import pytest

from lunacal.core.julian import local_day_start_jd, to_julian_day, to_unix_seconds

JAN_1_2024 = 1704067200  # 2024-01-01T00:00:00Z


def test_unix_epoch_is_jd_2440587_5():
    assert to_julian_day(0) == 2440587.5
    assert to_unix_seconds(2440587.5) == 0


@pytest.mark.parametrize(
    "t",
    [0, 1, -86400 * 365, 946684800, 1700000000, JAN_1_2024 + 43199, 2**31 - 1, 4102444800],
)
def test_round_trip_within_one_second(t):
    assert abs(to_unix_seconds(to_julian_day(t)) - t) <= 1


def test_to_unix_seconds_rounds_to_nearest_second():
    jd = to_julian_day(1700000000) + 0.4 / 86400.0
    assert to_unix_seconds(jd) == 1700000000
    jd = to_julian_day(1700000000) + 0.6 / 86400.0
    assert to_unix_seconds(jd) == 1700000001


def test_local_day_start_is_utc_midnight():
    noon = JAN_1_2024 + 12 * 3600
    for lon in (-179.9, -74.0, 0.0, 90.0, 179.9):
        jd = local_day_start_jd(noon, lon)
        assert jd % 1.0 == 0.5
        assert to_unix_seconds(jd) % 86400 == 0


def test_local_day_start_follows_longitude():
    # At 00:00Z it is still the previous day in the western hemisphere.
    assert local_day_start_jd(JAN_1_2024, 90.0) == 2460310.5
    assert local_day_start_jd(JAN_1_2024, 0.0) == 2460310.5
    assert local_day_start_jd(JAN_1_2024, -90.0) == 2460309.5
