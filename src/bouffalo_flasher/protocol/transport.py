"""
Boot-ROM transport abstraction and command round trip.

A transport only has to move bytes (``read_bytes``/``write_bytes``); the
request/response exchange is implemented once here:

    1. Encode the command and write the frame
    2. Read the 2-byte ack: "OK" or "FL" + u16 error code
    3. Unit responses stop here
    4. Read u16 payload length, then the payload, then decode

The device has no request tagging, so one round trip must finish before
the next command is written. Nothing here retries: a short read leaves
the byte stream desynchronized and the caller has to re-sync.
"""

import logging
import struct

from .codec import decode, encode
from .commands import Command
from .errors import DeviceError, ProtocolViolation

logger = logging.getLogger(__name__)

ACK_OK = b"OK"
ACK_FAIL = b"FL"


class Transport:
    """
    Byte-stream transport to a boot-ROM.

    Subclasses implement :meth:`read_bytes` and :meth:`write_bytes`.
    ``read_bytes(n)`` must return exactly ``n`` bytes or raise; a short
    read is reported as :class:`ProtocolViolation`.
    """

    def read_bytes(self, n: int) -> bytes:
        raise NotImplementedError

    def write_bytes(self, data: bytes) -> None:
        raise NotImplementedError

    def read_u16(self) -> int:
        """Read a little-endian u16 (UART length/error code field)."""
        return struct.unpack("<H", self._read_exact(2))[0]

    def read_u32(self) -> int:
        """Read a little-endian u32."""
        return struct.unpack("<I", self._read_exact(4))[0]

    def _read_exact(self, n: int) -> bytes:
        data = self.read_bytes(n)
        if len(data) != n:
            raise ProtocolViolation(
                f"Short read: expected {n} bytes, got {len(data)}", data
            )
        return data

    def _read_ack(self) -> None:
        ack = self._read_exact(2)
        if ack == ACK_FAIL:
            code = self.read_u16()
            logger.debug(f"Device error 0x{code:04X}")
            raise DeviceError(code)
        if ack != ACK_OK:
            raise ProtocolViolation(f"Invalid ack {ack!r} (expected OK or FL)", ack)

    def _read_payload(self) -> bytes:
        length = self.read_u16()
        if length == 0:
            return b""
        return self._read_exact(length)

    def send_command(self, command: Command):
        """
        Perform one full round trip and return the decoded response.

        Raises:
            TransportIoError: If the frame could not be written
            DeviceError: If the device answered "FL"
            ProtocolViolation: On a malformed ack or a short read
            ChecksumMismatch / TextDecodeError: If decoding fails
        """
        shape = command.RESPONSE
        logger.debug(f"Sending {type(command).__name__} (0x{command.COMMAND_ID:02X})")
        self.write_bytes(encode(command))
        self._read_ack()

        if shape.size_hint == 0:
            return decode(shape, b"")

        return decode(shape, self._read_payload())

    def call_raw_no_resp(self, frame: bytes) -> None:
        """Write a pre-built frame and check the ack only."""
        self.write_bytes(frame)
        self._read_ack()

    def call_raw_cmd(self, frame: bytes) -> bytes:
        """Write a pre-built frame and return its length-prefixed payload."""
        self.write_bytes(frame)
        self._read_ack()
        payload = self._read_payload()
        logger.debug(f"Raw command payload: {len(payload)} bytes")
        return payload
