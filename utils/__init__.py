"""
Utility functions for display units, configuration and logging.
"""

from .units import (UnitPreferences, describe_state, format_altitude, format_pressure,
                    format_temperature, temperature_unit)
from .config import Settings
from .logging_config import setup_logging

__all__ = [
    'UnitPreferences', 'describe_state', 'format_altitude', 'format_pressure', 'format_temperature',
    'temperature_unit', 'Settings', 'setup_logging'
]
