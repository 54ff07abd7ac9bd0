"""
Synthetic location and barometer sources for bench runs without hardware.
"""

import threading
import time
import logging
from dataclasses import dataclass, field
from typing import Iterator, Optional

import numpy as np

from fusion.atmospheric import KPA_TO_INHG, pressure_from_altitude
from fusion.models import PermissionState, PositionFix, PressureSample
from .sources import (ErrorCallback, FixCallback, LocationSource, PermissionCallback,
                      PressureSource, SampleCallback)

logger = logging.getLogger(__name__)


class _StreamThread:
    """Runs an iterator on a daemon thread, pushing items to a callback."""

    def __init__(self, name: str, interval: float):
        self.name = name
        self.interval = interval
        self._thread: Optional[threading.Thread] = None
        self._stop: Optional[threading.Event] = None

    def start(self, items: Iterator, on_item, on_error: ErrorCallback):
        self.stop()
        stop = threading.Event()
        self._stop = stop
        self._thread = threading.Thread(target=self._run, args=(stop, items, on_item, on_error),
                                        name=self.name, daemon=True)
        self._thread.start()

    def stop(self):
        if self._stop:
            self._stop.set()
            self._stop = None

    def _run(self, stop, items, on_item, on_error):
        try:
            for item in items:
                if stop.is_set():
                    break
                on_item(item)
                if stop.wait(self.interval):
                    break
        except OSError as e:
            if not stop.is_set():
                on_error(e)


@dataclass
class SimulatedLocation(LocationSource):
    """
    GNSS stand-in producing noisy fixes around a fixed altitude.

    Args:
        altitude_m: true altitude (meters)
        noise_m: altitude noise std (meters)
        interval: seconds between fixes
        permission: initial permission state
        seed: RNG seed
    """
    altitude_m: float = 1600.0
    noise_m: float = 3.0
    interval: float = 1.0
    permission: PermissionState = PermissionState.AUTHORIZED
    seed: int = 1234
    _stream: _StreamThread = field(init=False, repr=False)
    _permission_callback: Optional[PermissionCallback] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        self._stream = _StreamThread('sim-gnss', self.interval)

    def fixes(self, count: Optional[int] = None) -> Iterator[PositionFix]:
        rng = np.random.default_rng(self.seed)
        n = 0
        while count is None or n < count:
            alt = self.altitude_m + rng.normal(0.0, self.noise_m)
            yield PositionFix(altitude_m=float(alt), timestamp=time.time(), num_sats=9)
            n += 1

    def permission_state(self) -> PermissionState:
        return self.permission

    def observe_permission(self, callback: Optional[PermissionCallback]):
        self._permission_callback = callback

    def set_permission(self, permission: PermissionState):
        """Simulate the user changing location access."""
        if permission == self.permission:
            return
        self.permission = permission
        logger.info(f"Simulated permission -> {permission.value}")
        if self._permission_callback:
            self._permission_callback(permission)

    def subscribe(self, on_fix: FixCallback, on_error: ErrorCallback):
        self._stream.start(self.fixes(), on_fix, on_error)

    def unsubscribe(self):
        self._stream.stop()


@dataclass
class SimulatedBarometer(PressureSource):
    """
    Barometer stand-in following the standard atmosphere while climbing.

    Args:
        start_altitude_m: altitude at subscribe time (meters)
        climb_rate_mps: vertical speed (m/s), applied per sample interval
        noise_kpa: pressure noise std (kPa)
        interval: seconds between samples
        available: whether the sensor reports as present
        fail_after: raise an OSError after this many samples (None = never)
        seed: RNG seed
    """
    start_altitude_m: float = 1600.0
    climb_rate_mps: float = 0.0
    noise_kpa: float = 0.02
    interval: float = 0.5
    available: bool = True
    fail_after: Optional[int] = None
    seed: int = 4321
    _stream: _StreamThread = field(init=False, repr=False)

    def __post_init__(self):
        self._stream = _StreamThread('sim-baro', self.interval)

    def samples(self, count: Optional[int] = None) -> Iterator[PressureSample]:
        rng = np.random.default_rng(self.seed)
        n = 0
        while count is None or n < count:
            if self.fail_after is not None and n >= self.fail_after:
                raise OSError("simulated barometer read failure")

            relative_m = self.climb_rate_mps * self.interval * n
            pressure_kpa = pressure_from_altitude(self.start_altitude_m + relative_m) / KPA_TO_INHG
            pressure_kpa += rng.normal(0.0, self.noise_kpa)

            yield PressureSample(relative_altitude_m=float(relative_m),
                                 pressure_kpa=float(pressure_kpa),
                                 timestamp=time.time())
            n += 1

    def is_available(self) -> bool:
        return self.available

    def subscribe(self, on_sample: SampleCallback, on_error: ErrorCallback):
        self._stream.start(self.samples(), on_sample, on_error)

    def unsubscribe(self):
        self._stream.stop()
