"""Simplified AQI index: breakpoints, monotonicity and pollutant selection."""

import pytest

from backend.aqi import aqi_category, compute_index, index_for_concentration
from backend.models import Measurement


def pm(parameter, value):
    return Measurement(parameter=parameter, value=value, unit="µg/m³")


class TestIndexForConcentration:

    @pytest.mark.parametrize("value, expected", [
        (0, 0),
        (12, 25),
        (35.4, 100),
        (55.4, 200),
        (155.4, 400),
    ])
    def test_breakpoints(self, value, expected):
        assert index_for_concentration(value) == expected

    def test_monotonic_non_decreasing(self):
        values = [i / 10 for i in range(0, 5000)]
        indices = [index_for_concentration(v) for v in values]
        assert all(a <= b for a, b in zip(indices, indices[1:]))

    def test_rounds_half_up(self):
        # 25 * 6 / 12 == 12.5 exactly
        assert index_for_concentration(6) == 13


class TestComputeIndex:

    def test_empty_is_none(self):
        assert compute_index([]) is None

    def test_other_pollutants_do_not_substitute(self):
        assert compute_index([pm("no2", 80.0), pm("o3", 40.0)]) is None

    def test_prefers_pm25_over_pm10(self):
        assert compute_index([pm("pm10", 55.4), pm("pm25", 12.0)]) == 25

    def test_falls_back_to_pm10(self):
        assert compute_index([pm("no2", 10.0), pm("pm10", 35.4)]) == 100

    def test_first_pm25_wins_on_duplicates(self):
        assert compute_index([pm("pm25", 12.0), pm("pm25", 55.4)]) == 25


class TestCategory:

    def test_bands(self):
        assert aqi_category(None) is None
        assert aqi_category(25) == "Good"
        assert aqi_category(100) == "Moderate"
        assert aqi_category(180) == "Unhealthy"
        assert aqi_category(450) == "Hazardous"
