"""
Response shapes for boot-ROM commands.

Each shape knows how to turn the payload that follows an "OK" ack into a
Python value. ``size_hint`` tells the transport whether a length field
follows the ack at all: a hint of exactly 0 means the device sends nothing
after "OK".
"""

import struct
from dataclasses import dataclass
from typing import Any, Optional

from .codec import crc32
from .errors import ChecksumMismatch, ProtocolViolation, TextDecodeError

BOOT_INFO_MIN_SIZE = 18
CHIP_ID_OFFSET = 12
CHIP_ID_SIZE = 6
CRC32_SIZE = 4
SHA256_SIZE = 32


class ResponseShape:
    """Base class for response decoders."""

    size_hint: Optional[int] = None

    def decode(self, raw: bytes) -> Any:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class UnitResponse(ResponseShape):
    """Acknowledgement only; the device sends no length or payload."""

    size_hint = 0

    def decode(self, raw: bytes) -> None:
        if raw:
            raise ProtocolViolation(
                f"Unexpected {len(raw)}-byte payload for unit response", raw
            )
        return None


class BytesResponse(ResponseShape):
    """Raw payload bytes, returned as-is."""

    def decode(self, raw: bytes) -> bytes:
        return bytes(raw)


class TextResponse(ResponseShape):
    """UTF-8 text payload."""

    def decode(self, raw: bytes) -> str:
        try:
            return bytes(raw).decode("utf-8")
        except UnicodeDecodeError as e:
            raise TextDecodeError(f"Response is not valid UTF-8: {e}") from e


class FixedBytesResponse(ResponseShape):
    """Payload of a known exact length (e.g. a SHA-256 digest)."""

    def __init__(self, size: int):
        self.size = size

    def decode(self, raw: bytes) -> bytes:
        if len(raw) != self.size:
            raise ProtocolViolation(
                f"Expected {self.size}-byte payload, got {len(raw)}", raw
            )
        return bytes(raw)

    def __repr__(self) -> str:
        return f"FixedBytesResponse({self.size})"


@dataclass(frozen=True)
class BootInfo:
    """Boot-ROM identification returned by GetBootInfo."""

    boot_rom_version: bytes
    sign: int
    encrypt: int
    chip_id: bytes

    @classmethod
    def from_raw(cls, raw: bytes) -> "BootInfo":
        """
        Parse the GetBootInfo payload.

        Layout:
            0..4   boot-ROM version
            4      sign flag
            5      encrypt flag
            12..18 chip id, stored byte-reversed
        """
        if len(raw) < BOOT_INFO_MIN_SIZE:
            raise ProtocolViolation(
                f"Boot info payload too short: {len(raw)} bytes "
                f"(need {BOOT_INFO_MIN_SIZE})",
                raw,
            )
        chip_id = bytes(reversed(raw[CHIP_ID_OFFSET:CHIP_ID_OFFSET + CHIP_ID_SIZE]))
        return cls(
            boot_rom_version=bytes(raw[0:4]),
            sign=raw[4],
            encrypt=raw[5],
            chip_id=chip_id,
        )

    @property
    def version_string(self) -> str:
        return ".".join(str(b) for b in self.boot_rom_version)

    @property
    def chip_id_hex(self) -> str:
        return self.chip_id.hex()

    def __str__(self) -> str:
        return (
            f"BootInfo(boot_rom_version={self.version_string}, sign={self.sign}, "
            f"encrypt={self.encrypt}, chip_id={self.chip_id_hex})"
        )


class BootInfoResponse(ResponseShape):
    """Decodes a :class:`BootInfo` record."""

    def decode(self, raw: bytes) -> BootInfo:
        return BootInfo.from_raw(raw)


@dataclass(frozen=True)
class Crc32Value:
    """Inner value of a response whose CRC32 trailer has been verified."""

    data: Any


class Crc32Response(ResponseShape):
    """
    Wraps another shape with a trailing little-endian CRC32 check.

    The trailer is verified over every byte before it; only then is the
    body handed to the inner shape.
    """

    size_hint = None

    def __init__(self, inner: ResponseShape):
        self.inner = inner

    def decode(self, raw: bytes) -> Crc32Value:
        if len(raw) < CRC32_SIZE:
            raise ChecksumMismatch(
                f"Payload too short for CRC32 trailer: {len(raw)} bytes"
            )
        body = bytes(raw[:-CRC32_SIZE])
        (expected,) = struct.unpack("<I", raw[-CRC32_SIZE:])
        actual = crc32(body)
        if actual != expected:
            raise ChecksumMismatch(
                f"CRC32 mismatch: got 0x{actual:08X}, want 0x{expected:08X}",
                expected=expected,
                actual=actual,
            )
        return Crc32Value(self.inner.decode(body))

    def __repr__(self) -> str:
        return f"Crc32Response({self.inner!r})"


UNIT = UnitResponse()
RAW_BYTES = BytesResponse()
TEXT = TextResponse()
BOOT_INFO = BootInfoResponse()
SHA256 = FixedBytesResponse(SHA256_SIZE)
