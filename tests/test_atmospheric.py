"""Tests for the boiling-point atmospheric model."""

import numpy as np
import pytest

from fusion.atmospheric import (boiling_point_from_altitude, boiling_point_from_inhg,
                                boiling_point_from_pressure, boiling_point_table,
                                fahrenheit_to_celsius, pressure_from_altitude)
from fusion.errors import InvalidReading


class TestBoilingPointFromPressure:
    """Tests for the pressure formula."""

    def test_sea_level(self):
        """Test standard sea-level pressure gives about 100 °C."""
        assert boiling_point_from_pressure(101.325) == pytest.approx(100.0, abs=0.5)

    def test_three_thousand_meters(self):
        """Test 70 kPa gives about 90.5 °C."""
        assert boiling_point_from_pressure(70.0) == pytest.approx(90.5, abs=1.0)

    def test_returns_plain_float_for_scalar(self):
        assert isinstance(boiling_point_from_pressure(90.0), float)

    def test_lower_pressure_lowers_boiling_point(self):
        assert boiling_point_from_pressure(80.0) < boiling_point_from_pressure(100.0)

    @pytest.mark.parametrize("pressure", [0.0, -1.0, float('nan'), float('-inf')])
    def test_rejects_non_physical_pressure(self, pressure):
        """Test invalid readings never reach the logarithm."""
        with pytest.raises(InvalidReading):
            boiling_point_from_pressure(pressure)

    def test_invalid_reading_is_value_error(self):
        with pytest.raises(ValueError):
            boiling_point_from_pressure(0.0)

    def test_array_input(self):
        """Test vectorized evaluation."""
        result = boiling_point_from_pressure(np.array([101.325, 70.0]))

        assert isinstance(result, np.ndarray)
        assert result[0] == pytest.approx(100.0, abs=0.5)
        assert result[1] == pytest.approx(90.0, abs=1.0)

    def test_array_with_one_bad_value_rejected(self):
        with pytest.raises(InvalidReading):
            boiling_point_from_pressure(np.array([101.325, 0.0]))

    def test_inhg_form_matches_fahrenheit_fit(self):
        """Test 29.921 inHg maps to 212 °F."""
        assert boiling_point_from_inhg(29.921) == pytest.approx(float(fahrenheit_to_celsius(212.0)), abs=0.05)


class TestBoilingPointFromAltitude:
    """Tests for the altitude fallback formula."""

    def test_sea_level(self):
        assert boiling_point_from_altitude(0.0) == pytest.approx(100.0, abs=0.5)

    def test_1600_meters(self):
        """Test Denver altitude gives about 95 °C."""
        assert boiling_point_from_altitude(1600.0) == pytest.approx(95.0, abs=1.0)

    def test_pressure_from_altitude_sea_level(self):
        assert pressure_from_altitude(0.0) == pytest.approx(29.921)

    def test_below_sea_level(self):
        """Test negative altitudes raise the boiling point."""
        assert boiling_point_from_altitude(-400.0) > 100.0

    def test_above_model_ceiling_rejected(self):
        """Test altitudes beyond the standard-atmosphere base are rejected."""
        with pytest.raises(InvalidReading):
            boiling_point_from_altitude(50000.0)

    def test_non_finite_altitude_rejected(self):
        with pytest.raises(InvalidReading):
            pressure_from_altitude(float('nan'))


class TestBoilingPointTable:
    """Tests for altitude tables."""

    def test_table_inclusive_range(self):
        altitudes, pressures, boiling_points = boiling_point_table(0.0, 3000.0, 1000.0)

        assert list(altitudes) == [0.0, 1000.0, 2000.0, 3000.0]
        assert pressures[0] == pytest.approx(101.325, abs=0.05)
        assert np.all(np.diff(boiling_points) < 0)

    def test_table_rejects_bad_step(self):
        with pytest.raises(ValueError):
            boiling_point_table(0.0, 1000.0, 0.0)
