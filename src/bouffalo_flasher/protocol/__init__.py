"""Boot-ROM protocol layer - frame codec, commands, responses and transports."""

from .errors import (
    BootromError,
    TransportIoError,
    ProtocolViolation,
    DeviceError,
    ChecksumMismatch,
    TextDecodeError,
    CustomError,
    DEVICE_ERROR_CODES,
)
from .codec import build_frame, checksum8, crc32, decode, encode
from .responses import (
    BootInfo,
    Crc32Response,
    Crc32Value,
    ResponseShape,
    BOOT_INFO,
    RAW_BYTES,
    SHA256,
    TEXT,
    UNIT,
)
from .commands import (
    Command,
    COMMANDS_BY_ID,
    GetBootInfo,
    GetChipId,
    ClockSet,
    Reset,
    EfuseReadMac,
    FlashReadJedecId,
    FlashErase,
    FlashWrite,
    FlashRead,
    FlashSetPara,
    FlashWriteCheck,
    FlashXipReadSha,
    FlashXipReadStart,
    FlashXipReadFinish,
    LogRead,
)
from .transport import Transport, ACK_OK, ACK_FAIL
from .serial_transport import SerialTransport, open_serial, sync_byte_count

__all__ = [
    # Errors
    "BootromError",
    "TransportIoError",
    "ProtocolViolation",
    "DeviceError",
    "ChecksumMismatch",
    "TextDecodeError",
    "CustomError",
    "DEVICE_ERROR_CODES",
    # Codec
    "build_frame",
    "checksum8",
    "crc32",
    "decode",
    "encode",
    # Responses
    "BootInfo",
    "Crc32Response",
    "Crc32Value",
    "ResponseShape",
    "BOOT_INFO",
    "RAW_BYTES",
    "SHA256",
    "TEXT",
    "UNIT",
    # Commands
    "Command",
    "COMMANDS_BY_ID",
    "GetBootInfo",
    "GetChipId",
    "ClockSet",
    "Reset",
    "EfuseReadMac",
    "FlashReadJedecId",
    "FlashErase",
    "FlashWrite",
    "FlashRead",
    "FlashSetPara",
    "FlashWriteCheck",
    "FlashXipReadSha",
    "FlashXipReadStart",
    "FlashXipReadFinish",
    "LogRead",
    # Transport
    "Transport",
    "ACK_OK",
    "ACK_FAIL",
    "SerialTransport",
    "open_serial",
    "sync_byte_count",
]
