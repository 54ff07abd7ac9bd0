"""
Barometer reader for BMP280.
Provides ambient pressure and altitude change relative to the subscribe point.
"""

import threading
import time
import logging
from typing import Optional

import smbus2
from bmp280 import BMP280

from fusion.models import PressureSample
from .sources import ErrorCallback, PressureSource, SampleCallback

logger = logging.getLogger(__name__)

HPA_PER_KPA = 10.0


class BarometerReader(PressureSource):
    """BMP280 pressure source."""

    BMP280_ADDR = 0x76

    def __init__(self, bus_number: int = 1, device_addr: int = BMP280_ADDR,
                 poll_interval: float = 0.5):
        """
        Initialize barometer reader.

        Args:
            bus_number: I2C bus number (typically 1 on Raspberry Pi)
            device_addr: I2C device address (0x76, or 0x77 with SDO high)
            poll_interval: Seconds between samples while subscribed
        """
        self.bus_number = bus_number
        self.device_addr = device_addr
        self.poll_interval = poll_interval
        self.bus: Optional[smbus2.SMBus] = None
        self.sensor: Optional[BMP280] = None

        self._reader: Optional[threading.Thread] = None
        self._stop_reader: Optional[threading.Event] = None

    def open(self):
        """Open I2C bus and initialize the sensor."""
        try:
            self.bus = smbus2.SMBus(self.bus_number)
            self.sensor = BMP280(i2c_addr=self.device_addr, i2c_dev=self.bus)
            self.sensor.setup(mode='normal')

            logger.info(f"Barometer opened: BMP280 at 0x{self.device_addr:02X}")

        except Exception as e:
            logger.error(f"Failed to open barometer: {e}")
            self.close()
            raise

    def close(self):
        """Stop sampling and close I2C bus."""
        self.unsubscribe()
        if self._reader and self._reader is not threading.current_thread():
            self._reader.join(timeout=self.poll_interval * 2)
        self._reader = None
        self.sensor = None
        if self.bus:
            self.bus.close()
            self.bus = None
            logger.info("Barometer closed")

    def is_available(self) -> bool:
        """Probe the chip; True if a BMP280 answers on the configured address."""
        if self.sensor:
            return True
        try:
            self.open()
            return True
        except (OSError, RuntimeError) as e:
            logger.warning(f"Barometer not available: {e}")
            return False

    def read_pressure_kpa(self) -> float:
        """Read ambient pressure in kPa."""
        if not self.sensor:
            raise RuntimeError("Barometer not opened")
        return self.sensor.get_pressure() / HPA_PER_KPA

    def read_altitude_m(self) -> float:
        """Read pressure altitude (standard QNH) in meters."""
        if not self.sensor:
            raise RuntimeError("Barometer not opened")
        return self.sensor.get_altitude()

    def read_sample(self, reference_altitude_m: float) -> PressureSample:
        """
        Read one sample.

        Args:
            reference_altitude_m: Altitude the relative reading is measured from

        Returns:
            PressureSample with altitude relative to the reference point
        """
        timestamp = time.time()
        pressure_kpa = self.read_pressure_kpa()
        altitude_m = self.read_altitude_m()

        return PressureSample(
            relative_altitude_m=altitude_m - reference_altitude_m,
            pressure_kpa=pressure_kpa,
            timestamp=timestamp,
        )

    def subscribe(self, on_sample: SampleCallback, on_error: ErrorCallback):
        """Start sampling; relative altitude is measured from the first sample."""
        self.unsubscribe()

        stop = threading.Event()
        self._stop_reader = stop
        self._reader = threading.Thread(
            target=self._read_loop, args=(stop, on_sample, on_error),
            name='baro-reader', daemon=True)
        self._reader.start()

    def unsubscribe(self):
        if self._stop_reader:
            self._stop_reader.set()
            self._stop_reader = None

    def _read_loop(self, stop: threading.Event, on_sample: SampleCallback, on_error: ErrorCallback):
        try:
            if not self.sensor:
                self.open()

            # Reference is per reader; a new subscription starts from zero
            reference_altitude_m = self.read_altitude_m()
            logger.debug(f"Barometer reference altitude: {reference_altitude_m:.1f} m")

            while not stop.is_set():
                sample = self.read_sample(reference_altitude_m)
                if stop.is_set():
                    break
                on_sample(sample)
                stop.wait(self.poll_interval)

        except (OSError, RuntimeError) as e:
            logger.error(f"Barometer read failed: {e}")
            if not stop.is_set():
                on_error(e)

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
