"""Pytest configuration and fixtures."""

import pytest

from fusion import PressureAltitudeEstimator
from fusion.models import PermissionState, PositionFix, PressureSample
from hw.sources import LocationSource, PressureSource


class FakeLocation(LocationSource):
    """Location source driven by the test."""

    def __init__(self, permission=PermissionState.AUTHORIZED, granted_on_request=None):
        self.permission = permission
        self.granted_on_request = granted_on_request
        self.permission_callback = None
        self.on_fix = None
        self.on_error = None
        self.subscribe_calls = 0
        self.unsubscribe_calls = 0
        self.request_calls = 0

    def permission_state(self):
        return self.permission

    def request_permission(self):
        self.request_calls += 1
        if self.granted_on_request is not None:
            self.permission = self.granted_on_request
        return self.permission

    def observe_permission(self, callback):
        self.permission_callback = callback

    def set_permission(self, permission):
        self.permission = permission
        if self.permission_callback:
            self.permission_callback(permission)

    def subscribe(self, on_fix, on_error):
        self.subscribe_calls += 1
        self.on_fix = on_fix
        self.on_error = on_error

    def unsubscribe(self):
        self.unsubscribe_calls += 1
        self.on_fix = None
        self.on_error = None

    @property
    def subscribed(self):
        return self.on_fix is not None

    def emit(self, altitude_m, timestamp=0.0):
        self.on_fix(PositionFix(altitude_m=altitude_m, timestamp=timestamp))

    def fail(self, error):
        self.on_error(error)


class FakeBarometer(PressureSource):
    """Pressure source driven by the test."""

    def __init__(self, available=True):
        self.available = available
        self.on_sample = None
        self.on_error = None
        self.subscribe_calls = 0
        self.unsubscribe_calls = 0

    def is_available(self):
        return self.available

    def subscribe(self, on_sample, on_error):
        self.subscribe_calls += 1
        self.on_sample = on_sample
        self.on_error = on_error

    def unsubscribe(self):
        self.unsubscribe_calls += 1
        self.on_sample = None
        self.on_error = None

    @property
    def subscribed(self):
        return self.on_sample is not None

    def emit(self, pressure_kpa, relative_altitude_m=0.0, timestamp=0.0):
        self.on_sample(PressureSample(relative_altitude_m=relative_altitude_m,
                                      pressure_kpa=pressure_kpa,
                                      timestamp=timestamp))

    def fail(self, error):
        self.on_error(error)


@pytest.fixture
def location():
    return FakeLocation()


@pytest.fixture
def barometer():
    return FakeBarometer()


@pytest.fixture
def estimator(location, barometer):
    return PressureAltitudeEstimator(location, barometer)


@pytest.fixture
def active_estimator(estimator):
    estimator.start()
    assert estimator.is_active
    return estimator
