"""
Capability interfaces consumed by the boiling-point estimator.

Platform adapters (serial GNSS, I2C barometer, synthetic sources) implement
these; the estimator only talks to them through this surface.
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional

from fusion.models import PermissionState, PositionFix, PressureSample

FixCallback = Callable[[PositionFix], None]
SampleCallback = Callable[[PressureSample], None]
ErrorCallback = Callable[[Exception], None]
PermissionCallback = Callable[[PermissionState], None]


class LocationSource(ABC):
    """Source of absolute altitude fixes."""

    @abstractmethod
    def permission_state(self) -> PermissionState:
        """Current access state for this source."""

    def request_permission(self) -> PermissionState:
        """Ask for access. Default: nothing to ask, report current state."""
        return self.permission_state()

    def observe_permission(self, callback: Optional[PermissionCallback]):
        """Register a callback for permission transitions (None clears it)."""

    @abstractmethod
    def subscribe(self, on_fix: FixCallback, on_error: ErrorCallback):
        """Start delivering fixes until unsubscribe() is called."""

    @abstractmethod
    def unsubscribe(self):
        """Stop delivering fixes. Safe to call when not subscribed."""


class PressureSource(ABC):
    """Source of barometric pressure and relative altitude."""

    @abstractmethod
    def is_available(self) -> bool:
        """True when barometric hardware is present."""

    @abstractmethod
    def subscribe(self, on_sample: SampleCallback, on_error: ErrorCallback):
        """Start delivering samples until unsubscribe() is called."""

    @abstractmethod
    def unsubscribe(self):
        """Stop delivering samples. Safe to call when not subscribed."""
