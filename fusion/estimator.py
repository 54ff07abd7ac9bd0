"""
Pressure/altitude fusion for boiling-point estimation.

A GNSS fix provides the absolute altitude baseline; the barometer tracks
relative altitude changes and ambient pressure. Boiling point comes from
pressure once a sample has arrived, from altitude before that.

States: Inactive -> start() -> Active -> stop() / stream error -> Inactive
"""

import logging
import math
import threading
from dataclasses import replace
from functools import partial
from typing import Callable, List

from .atmospheric import boiling_point_from_altitude, boiling_point_from_pressure
from .errors import EstimatorError, InvalidReading, PermissionDenied, SensorUnavailable
from .models import EstimatorState, PermissionState, PositionFix, PressureSample

logger = logging.getLogger(__name__)

StateListener = Callable[[EstimatorState], None]

SOURCE_PRESSURE = 'pressure'
SOURCE_ALTITUDE = 'altitude'


class PressureAltitudeEstimator:
    """Fuses GNSS altitude and barometric samples into a boiling point."""

    def __init__(self, location, barometer):
        """
        Initialize estimator.

        Args:
            location: LocationSource providing position fixes and permission state
            barometer: PressureSource providing pressure samples
        """
        self.location = location
        self.barometer = barometer

        self._lock = threading.RLock()
        self._state = EstimatorState()
        self._listeners: List[StateListener] = []

        # Per-session latches, reset by start()
        self._baseline_latched = False
        self._pressure_seen = False

        # Bumped on every start(); stream callbacks carry the value they were subscribed with
        self._session = 0

        self.location.observe_permission(self.on_permission_change)

    # ------------------------------------------------------------------
    # Public surface
    # ------------------------------------------------------------------

    @property
    def state(self) -> EstimatorState:
        """Immutable snapshot of the current state."""
        with self._lock:
            return self._state

    @property
    def is_active(self) -> bool:
        return self.state.is_active

    def add_listener(self, listener: StateListener):
        """Call `listener` with a state snapshot after every change."""
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: StateListener):
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def start(self):
        """
        Begin monitoring.

        Preconditions are checked in order: location permission, then
        barometer availability. A failed precondition leaves the estimator
        Inactive with an error message; nothing is raised.
        """
        with self._lock:
            if self._state.is_active:
                logger.debug("start() ignored: already active")
                return

            self._update(error_message=None, error_kind=None)

            try:
                self._check_preconditions()
            except EstimatorError as e:
                logger.warning(f"Monitoring not started: {e}")
                self._set_error(e, halt=False)
                return

            self._session += 1
            self._baseline_latched = False
            self._pressure_seen = False
            self._update(baseline_altitude_m=None, is_active=True)

            session = self._session
            self.location.subscribe(partial(self._on_session_fix, session),
                                    partial(self._on_session_error, session, 'location'))
            self.barometer.subscribe(partial(self._on_session_sample, session),
                                     partial(self._on_session_error, session, 'barometer'))

            logger.info(f"✓ Monitoring started (session {session})")
            self._notify()

    def stop(self):
        """Stop monitoring. Last readings are retained."""
        with self._lock:
            was_active = self._state.is_active
            self._unsubscribe()
            self._update(is_active=False)
            if was_active:
                logger.info("Monitoring stopped")
            self._notify()

    # ------------------------------------------------------------------
    # Event handlers (called from source threads)
    # ------------------------------------------------------------------

    def on_position_fix(self, fix: PositionFix):
        """Latch the baseline altitude from the first fix of the session."""
        with self._lock:
            if not self._state.is_active:
                return

            if not self._baseline_latched:
                if fix.altitude_m is None or not math.isfinite(fix.altitude_m):
                    self._reject(InvalidReading(f"Invalid altitude in position fix: {fix.altitude_m}"))
                    return

                self._baseline_latched = True
                self._update(baseline_altitude_m=fix.altitude_m,
                             last_altitude_m=fix.altitude_m)
                logger.info(f"Baseline altitude latched: {fix.altitude_m:.1f} m")

            if not self._pressure_seen and self._state.last_altitude_m is not None:
                try:
                    bp_c = boiling_point_from_altitude(self._state.last_altitude_m)
                except InvalidReading as e:
                    self._reject(e)
                    return
                self._update(last_boiling_point_c=bp_c, boiling_point_source=SOURCE_ALTITUDE)

            self._notify()

    def on_pressure_sample(self, sample: PressureSample):
        """Record pressure, track relative altitude and recompute boiling point."""
        with self._lock:
            if not self._state.is_active:
                return

            if not math.isfinite(sample.relative_altitude_m):
                self._reject(InvalidReading(
                    f"Invalid relative altitude reading: {sample.relative_altitude_m} m"))
                return

            try:
                bp_c = boiling_point_from_pressure(sample.pressure_kpa)
            except InvalidReading as e:
                self._reject(e)
                return

            self._pressure_seen = True
            changes = dict(last_pressure_kpa=sample.pressure_kpa,
                           last_boiling_point_c=bp_c,
                           boiling_point_source=SOURCE_PRESSURE)

            if self._baseline_latched:
                changes['last_altitude_m'] = self._state.baseline_altitude_m + sample.relative_altitude_m

            if self._state.error_kind == InvalidReading.__name__:
                changes.update(error_message=None, error_kind=None)

            self._update(**changes)

            logger.debug(f"Pressure {sample.pressure_kpa:.3f} kPa, "
                         f"rel alt {sample.relative_altitude_m:+.2f} m -> BP {bp_c:.2f} °C")

            self._notify()

    def on_permission_change(self, permission: PermissionState):
        """React to location permission transitions."""
        with self._lock:
            logger.info(f"Location permission changed: {permission.value}")

            if permission == PermissionState.AUTHORIZED:
                self.start()
            elif permission.is_refused:
                self._set_error(PermissionDenied("Location access denied."))

    def on_stream_error(self, source: str, error: Exception):
        """Surface a stream failure and halt updates."""
        with self._lock:
            if not self._state.is_active:
                logger.debug(f"Ignoring {source} error after stop: {error}")
                return

            if source == 'location':
                message = f"Location error: {error}"
            else:
                message = f"Sensor error: {error}"

            logger.error(message)
            self._update(error_message=message, error_kind=type(error).__name__)
            self._halt()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _is_stale(self, session: int) -> bool:
        if session != self._session:
            logger.debug(f"Dropping event from session {session} (current {self._session})")
            return True
        return False

    def _on_session_fix(self, session: int, fix: PositionFix):
        with self._lock:
            if not self._is_stale(session):
                self.on_position_fix(fix)

    def _on_session_sample(self, session: int, sample: PressureSample):
        with self._lock:
            if not self._is_stale(session):
                self.on_pressure_sample(sample)

    def _on_session_error(self, session: int, source: str, error: Exception):
        with self._lock:
            if not self._is_stale(session):
                self.on_stream_error(source, error)

    def _check_preconditions(self):
        permission = self.location.permission_state()
        if permission == PermissionState.NOT_DETERMINED:
            permission = self.location.request_permission()

        if permission.is_refused:
            raise PermissionDenied(
                "Location access denied. Grant access to the GNSS device to measure altitude.")

        if not self.barometer.is_available():
            raise SensorUnavailable("Altimeter not available on this device.")

    def _reject(self, error: InvalidReading):
        logger.warning(f"Sample rejected: {error}")
        self._update(error_message=str(error), error_kind=type(error).__name__)
        self._notify()

    def _set_error(self, error: EstimatorError, halt: bool = True):
        self._update(error_message=str(error), error_kind=type(error).__name__)
        if halt:
            self._halt()
        else:
            self._notify()

    def _halt(self):
        self._unsubscribe()
        self._update(is_active=False)
        self._notify()

    def _unsubscribe(self):
        self.location.unsubscribe()
        self.barometer.unsubscribe()

    def _update(self, **changes):
        self._state = replace(self._state, **changes)

    def _notify(self):
        snapshot = self._state
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"State listener failed: {e}")
