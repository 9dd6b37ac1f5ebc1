"""
Frame codec for the boot-ROM command protocol.

Command frame layout (host -> device)::

    +---------+----------+-------------+------------------+
    | Cmd ID  | Checksum |   Length    |     Payload      |
    | 1 byte  | 1 byte   | 2 bytes LE  | variable length  |
    +---------+----------+-------------+------------------+

- Length: number of payload bytes following the header
- Checksum: 8-bit wraparound sum of the length field and payload

Commands without payload are the bare 4-byte header ``[id, 0, 0, 0]``.
"""

import binascii
import struct

HEADER_SIZE = 4
MAX_PAYLOAD = 0xFFFF


def checksum8(data: bytes) -> int:
    """8-bit wraparound sum of ``data``."""
    return sum(data) & 0xFF


def crc32(data: bytes) -> int:
    """CRC-32/ISO-HDLC (the zlib polynomial) of ``data``."""
    return binascii.crc32(data) & 0xFFFFFFFF


def build_frame(command_id: int, payload: bytes = b"") -> bytes:
    """
    Build a command frame from an identifier and payload.

    The length field is written first and the checksum is computed over
    the finished buffer from offset 2 onwards.

    Raises:
        ValueError: If the id does not fit a byte or the payload does not
            fit the 16-bit length field.
    """
    if not (0 <= command_id <= 0xFF):
        raise ValueError(f"command id must fit in uint8, got {command_id!r}")
    if len(payload) > MAX_PAYLOAD:
        raise ValueError(f"payload too large for uint16 length: {len(payload)} bytes")

    raw = bytearray([command_id, 0x00, 0x00, 0x00])
    raw += payload
    struct.pack_into("<H", raw, 2, len(payload))
    raw[1] = checksum8(raw[2:])
    return bytes(raw)


def encode(command) -> bytes:
    """Encode a command dataclass into its wire frame."""
    return build_frame(command.COMMAND_ID, command.payload())


def decode(shape, raw: bytes):
    """Decode ``raw`` payload bytes with the given response shape."""
    return shape.decode(bytes(raw))
