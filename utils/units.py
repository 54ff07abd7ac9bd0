"""
Display units and status formatting.

Stateless helpers for presenting estimator output in metric or imperial
units. Imperial is the default.
"""

from dataclasses import dataclass
from typing import Optional

from fusion.atmospheric import KPA_TO_INHG, METERS_TO_FEET
from fusion.models import EstimatorState


@dataclass(frozen=True)
class UnitPreferences:
    use_celsius: bool = False
    use_meters: bool = False
    use_kpa: bool = False


def celsius_to_fahrenheit(celsius: float) -> float:
    return celsius * 9.0 / 5.0 + 32.0


def meters_to_feet(meters: float) -> float:
    return meters * METERS_TO_FEET


def kpa_to_inhg(kpa: float) -> float:
    return kpa * KPA_TO_INHG


def temperature_unit(use_celsius: bool = False) -> str:
    return "°C" if use_celsius else "°F"


def format_temperature(celsius: float, use_celsius: bool = False) -> str:
    """Format a temperature with one decimal and its unit, e.g. '212.0°F'."""
    value = celsius if use_celsius else celsius_to_fahrenheit(celsius)
    return f"{value:.1f}{temperature_unit(use_celsius)}"


def format_altitude(meters: float, use_meters: bool = False) -> str:
    if use_meters:
        return f"{meters:.0f} m"
    return f"{meters_to_feet(meters):.0f} ft"


def format_pressure(kpa: float, use_kpa: bool = False) -> str:
    if use_kpa:
        return f"{kpa:.1f} kPa"
    return f"{kpa_to_inhg(kpa):.2f} inHg"


def describe_state(state: EstimatorState, prefs: Optional[UnitPreferences] = None) -> str:
    """
    One-line status for a state snapshot.

    Mirrors the display precedence: error first, then boiling point while
    active, then a waiting message, then inactive.
    """
    prefs = prefs or UnitPreferences()

    if state.error_message:
        return state.error_message

    if state.is_active and state.last_boiling_point_c is not None:
        parts = [f"Boiling point {format_temperature(state.last_boiling_point_c, prefs.use_celsius)}"]
        if state.last_altitude_m is not None:
            parts.append(f"Altitude {format_altitude(state.last_altitude_m, prefs.use_meters)}")
        if state.last_pressure_kpa is not None:
            parts.append(f"Pressure {format_pressure(state.last_pressure_kpa, prefs.use_kpa)}")
        return " | ".join(parts)

    if state.is_active:
        return "Measuring altitude..."

    return "Sensors inactive"
