"""
Hardware drivers for the boiling-point monitor.
Supports: GNSS (NMEA over serial), barometer (BMP280 over I2C), simulated sources
"""

from .sources import LocationSource, PressureSource
from .gnss import GNSSReceiver
from .barometer import BarometerReader
from .simulated import SimulatedLocation, SimulatedBarometer

__all__ = ['LocationSource', 'PressureSource', 'GNSSReceiver', 'BarometerReader',
           'SimulatedLocation', 'SimulatedBarometer']
