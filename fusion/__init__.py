"""
Pressure/altitude fusion for boiling-point estimation.
Fuses a GNSS altitude baseline with barometric pressure and relative altitude.
"""

from .estimator import PressureAltitudeEstimator
from .models import EstimatorState, PermissionState, PositionFix, PressureSample
from .errors import EstimatorError, InvalidReading, PermissionDenied, SensorUnavailable
from .atmospheric import (
    boiling_point_from_altitude,
    boiling_point_from_pressure,
    boiling_point_table,
    pressure_from_altitude
)

__all__ = [
    'PressureAltitudeEstimator',
    'EstimatorState', 'PermissionState', 'PositionFix', 'PressureSample',
    'EstimatorError', 'InvalidReading', 'PermissionDenied', 'SensorUnavailable',
    'boiling_point_from_altitude', 'boiling_point_from_pressure',
    'boiling_point_table', 'pressure_from_altitude'
]
