"""Tests for the pyserial-backed transport (serial port mocked)."""

from unittest.mock import MagicMock

import pytest
import serial

from bouffalo_flasher.protocol import (
    DeviceError,
    ProtocolViolation,
    Reset,
    SerialTransport,
    TransportIoError,
    sync_byte_count,
)
from bouffalo_flasher.protocol import serial_transport as serial_transport_module
from bouffalo_flasher.protocol.serial_transport import SYNC_TIMEOUT


def _transport_with_port(**port_attrs) -> SerialTransport:
    transport = SerialTransport("/dev/ttyTEST")
    transport.ser = MagicMock(is_open=True, **port_attrs)
    return transport


class TestSyncPreamble:
    def test_sync_byte_count_at_115200(self):
        assert sync_byte_count(115200) == 69
        assert sync_byte_count() == 69

    def test_sync_byte_count_scales_with_baud(self):
        assert sync_byte_count(2000000) == 1200

    def test_sync_ok(self):
        transport = _transport_with_port()
        transport.ser.write.side_effect = lambda data: len(data)
        transport.ser.read_until.return_value = b"\x00\x00OK"

        assert transport.sync() is True
        transport.ser.write.assert_called_once_with(b"\x55" * 69)
        transport.ser.read_until.assert_called_once_with(b"OK", 256)

    def test_sync_returns_once_ok_arrives(self):
        transport = _transport_with_port(timeout=10.0)
        transport.ser.write.side_effect = lambda data: len(data)
        seen_timeouts = []

        def _read_until(expected, size):
            seen_timeouts.append(transport.ser.timeout)
            return b"OK"

        transport.ser.read_until.side_effect = _read_until

        assert transport.sync() is True
        transport.ser.read.assert_not_called()
        assert seen_timeouts == [SYNC_TIMEOUT]
        assert transport.ser.timeout == 10.0

    def test_sync_restores_timeout_on_error(self):
        transport = _transport_with_port(timeout=10.0)
        transport.ser.write.side_effect = lambda data: len(data)
        transport.ser.read_until.side_effect = serial.SerialException("device gone")

        with pytest.raises(TransportIoError):
            transport.sync()
        assert transport.ser.timeout == 10.0

    def test_sync_without_ack_is_not_an_error(self):
        transport = _transport_with_port()
        transport.ser.write.side_effect = lambda data: len(data)
        transport.ser.read_until.return_value = b""
        assert transport.sync() is False


class TestReadWrite:
    def test_read_collects_partial_chunks(self):
        transport = _transport_with_port()
        transport.ser.read.side_effect = [b"O", b"K"]
        assert transport.read_bytes(2) == b"OK"

    def test_read_timeout_is_short_read(self):
        transport = _transport_with_port()
        transport.ser.read.side_effect = [b"O", b""]
        with pytest.raises(ProtocolViolation) as exc_info:
            transport.read_bytes(2)
        assert exc_info.value.received == b"O"

    def test_read_serial_exception(self):
        transport = _transport_with_port()
        transport.ser.read.side_effect = serial.SerialException("device gone")
        with pytest.raises(TransportIoError):
            transport.read_bytes(2)

    def test_incomplete_write(self):
        transport = _transport_with_port()
        transport.ser.write.return_value = 2
        with pytest.raises(TransportIoError):
            transport.write_bytes(b"\x21\x00\x00\x00")

    def test_write_serial_exception(self):
        transport = _transport_with_port()
        transport.ser.write.side_effect = serial.SerialException("device gone")
        with pytest.raises(TransportIoError):
            transport.write_bytes(b"\x21\x00\x00\x00")

    def test_not_open(self):
        transport = SerialTransport("/dev/ttyTEST")
        with pytest.raises(TransportIoError):
            transport.write_bytes(b"\x00")
        with pytest.raises(TransportIoError):
            transport.read_bytes(1)

    def test_send_command_over_serial(self):
        transport = _transport_with_port()
        transport.ser.write.side_effect = lambda data: len(data)
        transport.ser.read.side_effect = [b"OK"]
        assert transport.send_command(Reset()) is None
        transport.ser.write.assert_called_once_with(b"\x21\x00\x00\x00")

    def test_device_error_over_serial(self):
        transport = _transport_with_port()
        transport.ser.write.side_effect = lambda data: len(data)
        transport.ser.read.side_effect = [b"FL", b"\x04\x00"]
        with pytest.raises(DeviceError) as exc_info:
            transport.send_command(Reset())
        assert exc_info.value.code == 0x0004


class TestOpenClose:
    def test_open_failure(self, monkeypatch):
        def _raise(**kwargs):
            raise serial.SerialException("no such port")

        monkeypatch.setattr(serial_transport_module.serial, "Serial", _raise)
        with pytest.raises(TransportIoError):
            SerialTransport("/dev/ttyMISSING").open()

    def test_context_manager_opens_and_closes(self, monkeypatch):
        port = MagicMock(is_open=True)
        factory = MagicMock(return_value=port)
        monkeypatch.setattr(serial_transport_module.serial, "Serial", factory)

        with SerialTransport("/dev/ttyTEST", baudrate=115200, timeout=2.0) as transport:
            assert transport.ser is port

        kwargs = factory.call_args.kwargs
        assert kwargs["port"] == "/dev/ttyTEST"
        assert kwargs["baudrate"] == 115200
        assert kwargs["timeout"] == 2.0
        port.reset_input_buffer.assert_called_once()
        port.close.assert_called_once()
