"""
Atmospheric model for boiling-point estimation.

Converts ambient pressure (or, before the barometer reports, altitude) into
the boiling point of water using an empirical logarithmic fit.
All functions accept scalars or numpy arrays.
"""

import numpy as np
import logging

from .errors import InvalidReading

logger = logging.getLogger(__name__)

KPA_TO_INHG = 0.2953
METERS_TO_FEET = 3.28084

# BP(°F) = 49.161 * ln(P[inHg]) + 44.932
BP_LOG_COEFF_F = 49.161
BP_OFFSET_F = 44.932

# Standard atmosphere: P = 29.921 * (1 - 6.8753e-6 * h[ft]) ^ 5.2559
SEA_LEVEL_INHG = 29.921
LAPSE_COEFF_PER_FT = 0.0000068753
PRESSURE_EXPONENT = 5.2559


def _scalar_or_array(value):
    if np.ndim(value) == 0:
        return float(value)
    return value


def fahrenheit_to_celsius(temp_f):
    """Convert °F to °C."""
    return (np.asarray(temp_f, dtype=np.float64) - 32.0) * 5.0 / 9.0


def boiling_point_from_inhg(pressure_inhg):
    """
    Boiling point of water at a given pressure in inches of mercury.

    Args:
        pressure_inhg: Ambient pressure (inHg), must be > 0

    Returns:
        Boiling point in °C

    Raises:
        InvalidReading: pressure is zero, negative or not finite
    """
    p = np.asarray(pressure_inhg, dtype=np.float64)
    if not np.all(np.isfinite(p)) or np.any(p <= 0.0):
        raise InvalidReading(f"Invalid pressure reading: {pressure_inhg} inHg")

    bp_f = BP_LOG_COEFF_F * np.log(p) + BP_OFFSET_F
    return _scalar_or_array(fahrenheit_to_celsius(bp_f))


def boiling_point_from_pressure(pressure_kpa):
    """
    Boiling point of water from measured ambient pressure.

    Args:
        pressure_kpa: Ambient pressure (kPa)

    Returns:
        Boiling point in °C

    Raises:
        InvalidReading: pressure is zero, negative or not finite
    """
    p = np.asarray(pressure_kpa, dtype=np.float64)
    if not np.all(np.isfinite(p)) or np.any(p <= 0.0):
        raise InvalidReading(f"Invalid pressure reading: {pressure_kpa} kPa")

    bp_c = boiling_point_from_inhg(p * KPA_TO_INHG)

    logger.debug(f"Boiling point from pressure: {pressure_kpa} kPa -> {bp_c} °C")

    return bp_c


def pressure_from_altitude(altitude_m):
    """
    Standard-atmosphere pressure at a given altitude.

    Args:
        altitude_m: Altitude above sea level (meters)

    Returns:
        Pressure in inHg

    Raises:
        InvalidReading: altitude not finite or above the model's ceiling
    """
    h = np.asarray(altitude_m, dtype=np.float64)
    if not np.all(np.isfinite(h)):
        raise InvalidReading(f"Invalid altitude reading: {altitude_m} m")

    base = 1.0 - LAPSE_COEFF_PER_FT * (h * METERS_TO_FEET)
    if np.any(base <= 0.0):
        raise InvalidReading(f"Altitude out of range for standard atmosphere: {altitude_m} m")

    return _scalar_or_array(SEA_LEVEL_INHG * np.power(base, PRESSURE_EXPONENT))


def boiling_point_from_altitude(altitude_m):
    """
    Boiling point of water estimated from altitude alone.

    Used only until the barometer delivers a pressure reading.

    Args:
        altitude_m: Altitude above sea level (meters)

    Returns:
        Boiling point in °C
    """
    pressure_inhg = pressure_from_altitude(altitude_m)
    bp_c = boiling_point_from_inhg(pressure_inhg)

    logger.debug(f"Boiling point from altitude: {altitude_m} m -> {bp_c} °C")

    return bp_c


def boiling_point_table(start_m: float, stop_m: float, step_m: float):
    """
    Boiling point over an altitude range.

    Args:
        start_m: First altitude (meters)
        stop_m: Last altitude, inclusive when on a step (meters)
        step_m: Altitude step (meters), must be > 0

    Returns:
        (altitudes_m, pressures_kpa, boiling_points_c) as numpy arrays
    """
    if step_m <= 0:
        raise ValueError("step_m must be > 0")

    altitudes = np.arange(start_m, stop_m + step_m / 2.0, step_m, dtype=np.float64)
    pressures_kpa = np.atleast_1d(pressure_from_altitude(altitudes)) / KPA_TO_INHG
    boiling_points = np.atleast_1d(boiling_point_from_altitude(altitudes))

    return altitudes, pressures_kpa, boiling_points
