"""
Error kinds surfaced by the boiling-point estimator.

None of these cross the estimator's start/stop boundary; they are caught
and turned into a human-readable message on the estimator state.
"""


class EstimatorError(Exception):
    """Base class for estimator failures."""


class PermissionDenied(EstimatorError):
    """Location access refused. Terminal until permission changes."""


class SensorUnavailable(EstimatorError):
    """No barometric hardware. Terminal for the session."""


class InvalidReading(EstimatorError, ValueError):
    """Malformed or non-physical sample. The sample is skipped."""
