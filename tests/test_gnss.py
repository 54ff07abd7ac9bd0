"""Tests for the NMEA GNSS receiver."""

import threading
import time
from unittest.mock import MagicMock, patch

import pytest
import serial

from fusion import PressureAltitudeEstimator
from fusion.models import PermissionState
from hw.gnss import GNSSReceiver
from tests.conftest import FakeBarometer

GGA_VALID = "$GPGGA,123519,4807.038,N,01131.000,E,1,08,0.9,545.4,M,46.9,M,,*47"
GGA_NO_FIX = "$GPGGA,123519,4807.038,N,01131.000,E,0,00,,,M,,M,,"
RMC_VALID = "$GPRMC,123519,A,4807.038,N,01131.000,E,022.4,084.4,230394,003.1,W*6A"


class TestParseSentence:
    """Tests for GGA parsing."""

    def test_valid_gga(self):
        """Test altitude and position come through from GGA."""
        gnss = GNSSReceiver()
        fix = gnss.parse_sentence(GGA_VALID)

        assert fix is not None
        assert fix.altitude_m == pytest.approx(545.4)
        assert fix.lat == pytest.approx(48.1173, abs=1e-4)
        assert fix.num_sats == 8

    def test_no_fix_ignored(self):
        assert GNSSReceiver().parse_sentence(GGA_NO_FIX) is None

    def test_other_sentences_ignored(self):
        assert GNSSReceiver().parse_sentence(RMC_VALID) is None

    def test_garbage_ignored(self):
        assert GNSSReceiver().parse_sentence("garbage,line") is None


class TestPermission:
    """Tests for device-node permission mapping."""

    def test_missing_device(self, tmp_path):
        gnss = GNSSReceiver(port=str(tmp_path / 'ttyUSB9'))
        assert gnss.permission_state() == PermissionState.NOT_DETERMINED

    def test_accessible_device(self, tmp_path):
        port = tmp_path / 'ttyUSB0'
        port.write_text('')
        gnss = GNSSReceiver(port=str(port))

        with patch('hw.gnss.os.access', return_value=True):
            assert gnss.permission_state() == PermissionState.AUTHORIZED

    def test_denied_device(self, tmp_path):
        port = tmp_path / 'ttyUSB0'
        port.write_text('')
        gnss = GNSSReceiver(port=str(port))

        with patch('hw.gnss.os.access', return_value=False):
            assert gnss.permission_state() == PermissionState.DENIED
            assert gnss.request_permission() == PermissionState.DENIED

    def test_permission_transition_reported(self, tmp_path):
        """Test the watcher reports a grant after a denial."""
        port = tmp_path / 'ttyUSB0'
        port.write_text('')
        gnss = GNSSReceiver(port=str(port), permission_poll_s=0.01)
        changes = []
        seen = threading.Event()

        def on_change(state):
            changes.append(state)
            seen.set()

        access = MagicMock(return_value=False)
        with patch('hw.gnss.os.access', access):
            gnss.observe_permission(on_change)
            access.return_value = True
            assert seen.wait(2.0)
            gnss.observe_permission(None)

        assert changes[0] == PermissionState.AUTHORIZED


class TestStreaming:
    """Tests for the reader thread."""

    def test_subscribe_delivers_fixes_then_error(self, tmp_path):
        """Test fixes are delivered and a serial failure reaches on_error."""
        device = tmp_path / 'ttyACM0'
        device.write_text('')
        port = MagicMock()
        port.readline.side_effect = [
            (GGA_NO_FIX + "\r\n").encode(),
            (GGA_VALID + "\r\n").encode(),
            b"\r\n",
            serial.SerialException("device unplugged"),
        ]
        fixes = []
        errors = []
        done = threading.Event()

        def on_error(e):
            errors.append(e)
            done.set()

        with patch('hw.gnss.serial.Serial', return_value=port):
            gnss = GNSSReceiver(port=str(device))
            gnss.subscribe(fixes.append, on_error)
            assert done.wait(2.0)

        assert [f.altitude_m for f in fixes] == [pytest.approx(545.4)]
        assert isinstance(errors[0], serial.SerialException)
        port.close.assert_called_once()
        assert gnss.serial is None

    def test_open_failure_reported(self, tmp_path):
        """Test a port that cannot be opened reaches on_error."""
        device = tmp_path / 'ttyACM0'
        device.write_text('')
        errors = []
        done = threading.Event()

        def on_error(e):
            errors.append(e)
            done.set()

        with patch('hw.gnss.serial.Serial', side_effect=serial.SerialException("no such port")):
            gnss = GNSSReceiver(port=str(device))
            gnss.subscribe(lambda fix: None, on_error)
            assert done.wait(2.0)

        assert "no such port" in str(errors[0])

    def test_read_without_open(self):
        with pytest.raises(RuntimeError):
            GNSSReceiver().read_sentence()

    def test_waits_for_missing_device(self, tmp_path):
        """Test an absent device node is waited for, not reported as an error."""
        device = tmp_path / 'ttyACM0'
        port = MagicMock()
        port.readline.return_value = (GGA_VALID + "\r\n").encode()
        fixes = []
        errors = []
        got_fix = threading.Event()

        def on_fix(fix):
            fixes.append(fix)
            got_fix.set()

        with patch('hw.gnss.serial.Serial', return_value=port) as serial_cls:
            gnss = GNSSReceiver(port=str(device), permission_poll_s=0.01)
            gnss.subscribe(on_fix, errors.append)

            assert not got_fix.wait(0.1)
            serial_cls.assert_not_called()

            device.write_text('')
            assert got_fix.wait(2.0)
            gnss.close()

        assert errors == []
        assert fixes[0].altitude_m == pytest.approx(545.4)

    def test_unsubscribe_while_waiting_for_device(self, tmp_path):
        gnss = GNSSReceiver(port=str(tmp_path / 'ttyACM0'), permission_poll_s=0.01)
        errors = []

        gnss.subscribe(lambda fix: None, errors.append)
        reader = gnss._reader
        gnss.unsubscribe()
        reader.join(timeout=1.0)

        assert not reader.is_alive()
        assert errors == []


class TestWithEstimator:
    """GNSS receiver driving the estimator."""

    def test_missing_device_keeps_monitoring(self, tmp_path):
        """Test an undetermined device leaves the session active and error-free."""
        gnss = GNSSReceiver(port=str(tmp_path / 'ttyACM0'), permission_poll_s=0.01)
        estimator = PressureAltitudeEstimator(gnss, FakeBarometer())

        try:
            estimator.start()
            time.sleep(0.2)

            state = estimator.state
            assert state.is_active
            assert state.error_message is None
        finally:
            estimator.stop()
            gnss.close()
