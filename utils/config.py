"""
Runtime settings from environment variables (and an optional .env file).
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .units import UnitPreferences

logger = logging.getLogger(__name__)

_TRUE_VALUES = ('1', 'true', 'yes', 'on')


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == '':
        return default
    return value.strip().lower() in _TRUE_VALUES


@dataclass
class Settings:
    """Hardware, display and logging settings."""
    gnss_port: str = '/dev/ttyUSB0'
    gnss_baud: int = 9600
    baro_i2c_bus: int = 1
    baro_i2c_addr: int = 0x76
    baro_poll_interval: float = 0.5
    use_celsius: bool = False
    use_meters: bool = False
    use_kpa: bool = False
    log_level: str = 'INFO'
    log_file: Optional[str] = None

    @property
    def units(self) -> UnitPreferences:
        return UnitPreferences(use_celsius=self.use_celsius,
                               use_meters=self.use_meters,
                               use_kpa=self.use_kpa)

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> 'Settings':
        """
        Load settings.

        Args:
            dotenv_path: Optional .env file (default: search from cwd)

        Returns:
            Settings populated from GNSS_*, BARO_*, USE_*, LOG_* variables

        Raises:
            ValueError: a numeric variable does not parse
        """
        load_dotenv(dotenv_path)

        try:
            settings = cls(
                gnss_port=os.getenv('GNSS_PORT', cls.gnss_port),
                gnss_baud=int(os.getenv('GNSS_BAUD', cls.gnss_baud)),
                baro_i2c_bus=int(os.getenv('BARO_I2C_BUS', cls.baro_i2c_bus)),
                baro_i2c_addr=int(os.getenv('BARO_I2C_ADDR', str(cls.baro_i2c_addr)), 0),
                baro_poll_interval=float(os.getenv('BARO_POLL_INTERVAL', cls.baro_poll_interval)),
                use_celsius=_env_bool('USE_CELSIUS'),
                use_meters=_env_bool('USE_METERS'),
                use_kpa=_env_bool('USE_KPA'),
                log_level=os.getenv('LOG_LEVEL', cls.log_level).upper(),
                log_file=os.getenv('LOG_FILE') or None,
            )
        except ValueError as e:
            raise ValueError(f"Invalid setting in environment: {e}") from e

        logger.debug(f"Settings loaded: {settings}")
        return settings
