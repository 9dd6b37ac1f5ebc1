"""
Serial transport for the boot-ROM UART interface.

This module provides:
- Serial port initialization and configuration
- Exact-length reads and full writes with hex-dump debug logging
- The baud-rate sync preamble that wakes the ROM's auto-baud detection
"""

import logging
from typing import Optional

try:
    import serial
except ImportError:
    raise ImportError("PySerial required: pip install pyserial")

from .errors import ProtocolViolation, TransportIoError
from .transport import ACK_OK, Transport

logger = logging.getLogger(__name__)

DEFAULT_BAUDRATE = 115200
DEFAULT_TIMEOUT = 10.0
SYNC_BYTE = 0x55
SYNC_READ_SIZE = 256
SYNC_TIMEOUT = 1.0


def sync_byte_count(baudrate: int = DEFAULT_BAUDRATE) -> int:
    """
    Number of 0x55 bytes to send for auto-baud detection.

    6 ms worth of 10-bit UART characters: 69 bytes at 115200 bps.
    """
    return int(0.006 * baudrate / 10)


class SerialTransport(Transport):
    """
    Boot-ROM transport over a serial port.

    Example:
        with SerialTransport("/dev/ttyUSB0") as transport:
            transport.sync()
            info = transport.send_command(GetBootInfo())
    """

    def __init__(
        self,
        port: str,
        baudrate: int = DEFAULT_BAUDRATE,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Args:
            port: Serial port (e.g., "/dev/ttyUSB0", "COM3")
            baudrate: Serial baud rate (default 115200)
            timeout: Per-call read/write timeout in seconds (default 10)
        """
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self.ser: Optional[serial.Serial] = None

    def open(self) -> None:
        """
        Open the serial port (8N1, no flow control).

        Raises:
            TransportIoError: If the port cannot be opened
        """
        try:
            self.ser = serial.Serial(
                port=self.port,
                baudrate=self.baudrate,
                bytesize=8,
                parity="N",
                stopbits=1,
                timeout=self.timeout,
                write_timeout=self.timeout,
                rtscts=False,
                dsrdtr=False,
            )
            self.ser.reset_input_buffer()
            self.ser.reset_output_buffer()
            logger.debug(
                f"Opened {self.port} at {self.baudrate} bps (timeout={self.timeout}s)"
            )
        except serial.SerialException as e:
            raise TransportIoError(f"Cannot open port {self.port}: {e}") from e

    def close(self) -> None:
        """Close serial port."""
        if self.ser and self.ser.is_open:
            self.ser.close()
            logger.debug(f"Closed {self.port}")

    def __enter__(self) -> "SerialTransport":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _require_open(self) -> None:
        if not self.ser or not self.ser.is_open:
            raise TransportIoError("Serial port not open")

    def write_bytes(self, data: bytes) -> None:
        """
        Write all of ``data``.

        Raises:
            TransportIoError: If the write fails or is incomplete
        """
        self._require_open()
        try:
            written = self.ser.write(data)
        except serial.SerialException as e:
            raise TransportIoError(f"Write error: {e}") from e
        if written != len(data):
            raise TransportIoError(f"Incomplete write: sent {written}/{len(data)} bytes")
        logger.debug(f">>> {bytes(data).hex().upper()}")

    def read_bytes(self, n: int) -> bytes:
        """
        Read exactly ``n`` bytes.

        Raises:
            TransportIoError: If the port fails
            ProtocolViolation: If the timeout expires before ``n`` bytes arrive
        """
        self._require_open()
        out = bytearray()
        try:
            while len(out) < n:
                chunk = self.ser.read(n - len(out))
                if not chunk:
                    break
                out.extend(chunk)
        except serial.SerialException as e:
            raise TransportIoError(f"Read error: {e}") from e

        if len(out) != n:
            raise ProtocolViolation(
                f"Short read: expected {n} bytes, got {len(out)} (timeout)", bytes(out)
            )
        logger.debug(f"<<< {out.hex().upper()}")
        return bytes(out)

    def sync(self) -> bool:
        """
        Send the auto-baud preamble and report whether the ROM answered "OK".

        The result is informational; commands may still succeed without it.
        """
        self._require_open()
        count = sync_byte_count(self.baudrate)
        logger.info(f"Sending {count} sync bytes at {self.baudrate} bps")
        self.write_bytes(bytes([SYNC_BYTE]) * count)

        # read_until returns as soon as "OK" arrives; the short timeout
        # bounds the wait when the ROM stays silent.
        previous_timeout = self.ser.timeout
        self.ser.timeout = min(SYNC_TIMEOUT, self.timeout)
        try:
            reply = self.ser.read_until(ACK_OK, SYNC_READ_SIZE)
        except serial.SerialException as e:
            raise TransportIoError(f"Read error: {e}") from e
        finally:
            self.ser.timeout = previous_timeout
        logger.debug(f"sync <<< {reply.hex().upper()}")

        if reply.endswith(ACK_OK):
            logger.info("Baud rate sync OK")
            return True
        logger.warning(f"No sync acknowledgement (got {len(reply)} bytes)")
        return False


def open_serial(
    port: str,
    baudrate: int = DEFAULT_BAUDRATE,
    timeout: float = DEFAULT_TIMEOUT,
) -> SerialTransport:
    """
    Open a boot-ROM serial transport.

    Returns:
        SerialTransport instance (already open)
    """
    transport = SerialTransport(port, baudrate, timeout)
    transport.open()
    return transport
