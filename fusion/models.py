"""
Sensor events and estimator state.
"""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from typing import Optional


class PermissionState(enum.Enum):
    """Access state of the location source."""
    NOT_DETERMINED = "not_determined"
    RESTRICTED = "restricted"
    DENIED = "denied"
    AUTHORIZED = "authorized"

    @property
    def is_refused(self) -> bool:
        return self in (PermissionState.DENIED, PermissionState.RESTRICTED)


@dataclass(frozen=True)
class PositionFix:
    """
    Absolute position fix from the location source.

    Attributes:
        altitude_m: Altitude above mean sea level (meters)
        timestamp: UNIX time of the fix (seconds)
        lat, lon: Optional WGS84 degrees, kept for logging
        num_sats: Optional satellites used in the solution
    """
    altitude_m: float
    timestamp: float = field(default_factory=time.time)
    lat: Optional[float] = None
    lon: Optional[float] = None
    num_sats: Optional[int] = None


@dataclass(frozen=True)
class PressureSample:
    """
    Barometric sample.

    Attributes:
        relative_altitude_m: Altitude change since the sensor was started (meters)
        pressure_kpa: Ambient pressure (kPa)
        timestamp: UNIX time of the sample (seconds)
    """
    relative_altitude_m: float
    pressure_kpa: float
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class EstimatorState:
    """Snapshot of the estimator's fused outputs."""
    baseline_altitude_m: Optional[float] = None
    last_pressure_kpa: Optional[float] = None
    last_altitude_m: Optional[float] = None
    last_boiling_point_c: Optional[float] = None
    boiling_point_source: Optional[str] = None  # 'pressure' | 'altitude'
    error_message: Optional[str] = None
    error_kind: Optional[str] = None
    is_active: bool = False
