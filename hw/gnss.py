"""
GNSS receiver driver for NMEA serial modules.
Parses GGA sentences for altitude fixes; runs a reader thread while subscribed.
"""

import os
import serial
import pynmea2
import threading
import time
import logging
from typing import Optional

from fusion.models import PermissionState, PositionFix
from .sources import ErrorCallback, FixCallback, LocationSource, PermissionCallback

logger = logging.getLogger(__name__)


class GNSSReceiver(LocationSource):
    """GNSS receiver providing the absolute altitude baseline."""

    def __init__(self, port: str = '/dev/ttyUSB0', baudrate: int = 9600, timeout: float = 1.0,
                 permission_poll_s: float = 2.0):
        """
        Initialize GNSS receiver.

        Args:
            port: Serial port (e.g., '/dev/ttyUSB0', 'COM3')
            baudrate: Baud rate (typically 9600 or 115200)
            timeout: Read timeout in seconds
            permission_poll_s: Interval for checking device access changes
        """
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self.permission_poll_s = permission_poll_s
        self.serial: Optional[serial.Serial] = None

        self._reader: Optional[threading.Thread] = None
        self._stop_reader: Optional[threading.Event] = None

        self._permission_callback: Optional[PermissionCallback] = None
        self._permission_watcher: Optional[threading.Thread] = None
        self._stop_watcher = threading.Event()

    # ------------------------------------------------------------------
    # Device access
    # ------------------------------------------------------------------

    def permission_state(self) -> PermissionState:
        """
        Map device-node access onto a permission state.

        Returns:
            AUTHORIZED if the port is readable and writable, DENIED if it
            exists but is not, NOT_DETERMINED if the device is not present yet
        """
        if not os.path.exists(self.port):
            return PermissionState.NOT_DETERMINED
        if os.access(self.port, os.R_OK | os.W_OK):
            return PermissionState.AUTHORIZED
        return PermissionState.DENIED

    def request_permission(self) -> PermissionState:
        state = self.permission_state()
        if state == PermissionState.DENIED:
            logger.warning(f"No access to {self.port} - add this user to the 'dialout' group")
        elif state == PermissionState.NOT_DETERMINED:
            logger.info(f"Waiting for GNSS device {self.port}")
        return state

    def observe_permission(self, callback: Optional[PermissionCallback]):
        """Poll device access and report transitions to `callback`."""
        self._permission_callback = callback
        if callback is None:
            self._stop_watcher.set()
            return

        if self._permission_watcher is None or not self._permission_watcher.is_alive():
            self._stop_watcher.clear()
            self._permission_watcher = threading.Thread(
                target=self._watch_permission, args=(self.permission_state(),),
                name='gnss-permission', daemon=True)
            self._permission_watcher.start()

    def _watch_permission(self, last: PermissionState):
        while not self._stop_watcher.wait(self.permission_poll_s):
            current = self.permission_state()
            if current != last:
                logger.info(f"GNSS permission {last.value} -> {current.value}")
                last = current
                callback = self._permission_callback
                if callback:
                    callback(current)

    def open(self):
        """Open serial connection to GNSS module."""
        try:
            self.serial = serial.Serial(
                port=self.port,
                baudrate=self.baudrate,
                timeout=self.timeout
            )
            logger.info(f"GNSS opened on {self.port} @ {self.baudrate} baud")

        except Exception as e:
            logger.error(f"Failed to open GNSS: {e}")
            raise

    def close(self):
        """Stop the reader and close the serial connection."""
        self.unsubscribe()
        if self._reader and self._reader is not threading.current_thread():
            self._reader.join(timeout=self.timeout * 2)
        self._reader = None
        self._stop_watcher.set()
        self._close_serial()

    def _close_serial(self):
        if self.serial:
            self.serial.close()
            self.serial = None
            logger.info("GNSS closed")

    # ------------------------------------------------------------------
    # NMEA parsing
    # ------------------------------------------------------------------

    def read_sentence(self) -> Optional[str]:
        """Read one NMEA sentence from serial port."""
        if not self.serial:
            raise RuntimeError("GNSS not opened")

        line = self.serial.readline().decode('ascii', errors='ignore').strip()
        return line if line.startswith('$') else None

    def parse_sentence(self, sentence: str) -> Optional[PositionFix]:
        """
        Parse one NMEA sentence into a position fix.

        Args:
            sentence: Raw NMEA sentence

        Returns:
            PositionFix for a GGA sentence with a valid fix and altitude, else None
        """
        try:
            msg = pynmea2.parse(sentence)
        except pynmea2.ParseError as e:
            logger.debug(f"NMEA parse error: {e}")
            return None

        if not isinstance(msg, pynmea2.types.talker.GGA):
            return None

        if not msg.gps_qual or msg.altitude is None:
            return None

        return PositionFix(
            altitude_m=float(msg.altitude),
            timestamp=time.time(),
            lat=msg.latitude,
            lon=msg.longitude,
            num_sats=int(msg.num_sats) if msg.num_sats else None,
        )

    def parse_and_update(self) -> Optional[PositionFix]:
        """Read and parse the next sentence from the serial port."""
        sentence = self.read_sentence()
        if not sentence:
            return None
        return self.parse_sentence(sentence)

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    def subscribe(self, on_fix: FixCallback, on_error: ErrorCallback):
        """Open the port (if needed) and deliver fixes from a reader thread."""
        self.unsubscribe()

        stop = threading.Event()
        self._stop_reader = stop
        self._reader = threading.Thread(
            target=self._read_loop, args=(stop, on_fix, on_error),
            name='gnss-reader', daemon=True)
        self._reader.start()

    def unsubscribe(self):
        if self._stop_reader:
            self._stop_reader.set()
            self._stop_reader = None

    def _wait_for_device(self, stop: threading.Event) -> bool:
        """Block until the device node exists. Returns False if stopped first."""
        if os.path.exists(self.port):
            return True

        logger.info(f"GNSS device {self.port} not present, waiting")
        while not stop.wait(self.permission_poll_s):
            if os.path.exists(self.port):
                logger.info(f"GNSS device {self.port} appeared")
                return True
        return False

    def _read_loop(self, stop: threading.Event, on_fix: FixCallback, on_error: ErrorCallback):
        try:
            if not self.serial:
                if not self._wait_for_device(stop):
                    return
                self.open()

            while not stop.is_set():
                fix = self.parse_and_update()
                if fix and not stop.is_set():
                    logger.debug(f"GNSS fix: alt={fix.altitude_m:.1f} m, sats={fix.num_sats}")
                    on_fix(fix)

        except (serial.SerialException, OSError, RuntimeError) as e:
            logger.error(f"GNSS read failed: {e}")
            self._close_serial()
            if not stop.is_set():
                on_error(e)

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
