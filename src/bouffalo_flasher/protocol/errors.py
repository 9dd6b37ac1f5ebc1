"""
Boot-ROM protocol errors.

Every layer (codec, transport, workflows) raises one of these. Malformed
device input is always reported through this hierarchy, never as an
IndexError or struct.error leaking out of a decoder.
"""

from typing import Dict, Optional


# Error codes reported by the boot-ROM after an "FL" ack.
DEVICE_ERROR_CODES: Dict[int, str] = {
    0x0001: "flash init error",
    0x0002: "flash erase parameter error",
    0x0003: "flash erase error",
    0x0004: "flash write parameter error",
    0x0005: "flash write address error",
    0x0006: "flash write error",
    0x0007: "flash boot parameter error",
    0x0008: "flash set parameter error",
    0x0009: "flash read status register error",
    0x000A: "flash write status register error",
    0x0101: "command id error",
    0x0102: "command length error",
    0x0103: "command checksum error",
    0x0104: "command sequence error",
    0x0201: "boot header length error",
    0x0202: "boot header not loaded",
    0x0203: "boot header magic error",
    0x0204: "boot header CRC error",
    0x0205: "boot header encrypt mismatch",
    0x0206: "boot header sign mismatch",
    0xFFFC: "interface rate length error",
    0xFFFD: "interface rate parameter error",
    0xFFFE: "interface password error",
    0xFFFF: "interface password closed",
}


class BootromError(Exception):
    """Base exception for boot-ROM protocol errors"""
    pass


class TransportIoError(BootromError):
    """Underlying serial port failure or incomplete write"""
    pass


class ProtocolViolation(BootromError):
    """
    Device sent something the protocol does not allow.

    Raised for an ack that is neither "OK" nor "FL", for a short read of a
    fixed-size field, and for payloads too short for their fixed layout.
    """

    def __init__(self, message: str, received: bytes = b""):
        super().__init__(message)
        self.received = bytes(received)


class DeviceError(BootromError):
    """Device answered "FL" followed by an error code"""

    def __init__(self, code: int):
        self.code = code
        self.description = DEVICE_ERROR_CODES.get(code, "unknown error")
        super().__init__(f"Boot-ROM error 0x{code:04X} ({self.description})")


class ChecksumMismatch(BootromError):
    """CRC32 trailer did not match, or there was no room for one"""

    def __init__(
        self,
        message: str = "CRC32 checksum mismatch",
        expected: Optional[int] = None,
        actual: Optional[int] = None,
    ):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class TextDecodeError(BootromError):
    """Text response payload is not valid UTF-8"""
    pass


class CustomError(BootromError):
    """Contextual failure that fits none of the other kinds"""
    pass
