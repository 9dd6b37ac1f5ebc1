"""
Boot-ROM command set.

Each command is a small frozen dataclass carrying its typed fields. The
class attributes bind it to a one-byte identifier and to the response
shape the device answers with; ``payload()`` serializes the fields
(little-endian) and the codec wraps them in a frame.

Example:
    frame = encode(FlashErase(start=0x2000, end=0x8D3F))
    # 30 f4 08 00 00 20 00 00 3f 8d 00 00
"""

import struct
from dataclasses import dataclass
from typing import ClassVar, Dict, Type

from .responses import (
    BOOT_INFO,
    RAW_BYTES,
    SHA256,
    TEXT,
    UNIT,
    Crc32Response,
    ResponseShape,
)


class Command:
    """Base class for boot-ROM commands."""

    COMMAND_ID: ClassVar[int]
    RESPONSE: ClassVar[ResponseShape] = UNIT

    def payload(self) -> bytes:
        return b""


@dataclass(frozen=True)
class GetBootInfo(Command):
    """Read boot-ROM version, sign/encrypt flags and chip id."""

    COMMAND_ID: ClassVar[int] = 0x10
    RESPONSE: ClassVar[ResponseShape] = BOOT_INFO


@dataclass(frozen=True)
class GetChipId(Command):
    """Read the chip identification string (e.g. "CHIPWB03A00_BL")."""

    COMMAND_ID: ClassVar[int] = 0x05
    RESPONSE: ClassVar[ResponseShape] = TEXT


@dataclass(frozen=True)
class ClockSet(Command):
    """Configure PLL/clock and the UART load speed."""

    COMMAND_ID: ClassVar[int] = 0x22

    irq_enable: bool = True
    load_speed: int = 115200
    clock_parameter: bytes = b""

    def payload(self) -> bytes:
        return struct.pack("<II", int(self.irq_enable), self.load_speed) + bytes(self.clock_parameter)


@dataclass(frozen=True)
class Reset(Command):
    COMMAND_ID: ClassVar[int] = 0x21


@dataclass(frozen=True)
class EfuseReadMac(Command):
    """Read the MAC address from eFuse; the payload carries a CRC32 trailer."""

    COMMAND_ID: ClassVar[int] = 0x42
    RESPONSE: ClassVar[ResponseShape] = Crc32Response(RAW_BYTES)


@dataclass(frozen=True)
class FlashReadJedecId(Command):
    COMMAND_ID: ClassVar[int] = 0x36
    RESPONSE: ClassVar[ResponseShape] = RAW_BYTES


@dataclass(frozen=True)
class FlashErase(Command):
    """Erase flash from ``start`` to ``end`` (both inclusive)."""

    COMMAND_ID: ClassVar[int] = 0x30

    start: int
    end: int

    def payload(self) -> bytes:
        return struct.pack("<II", self.start, self.end)


@dataclass(frozen=True)
class FlashWrite(Command):
    COMMAND_ID: ClassVar[int] = 0x31

    start_addr: int
    data: bytes

    def payload(self) -> bytes:
        return struct.pack("<I", self.start_addr) + bytes(self.data)


@dataclass(frozen=True)
class FlashRead(Command):
    COMMAND_ID: ClassVar[int] = 0x32
    RESPONSE: ClassVar[ResponseShape] = RAW_BYTES

    start_addr: int
    len: int

    def payload(self) -> bytes:
        return struct.pack("<II", self.start_addr, self.len)


@dataclass(frozen=True)
class FlashSetPara(Command):
    """
    Select flash pins, clock, IO mode and timing.

    An empty ``flash_para`` leaves the ROM's probed flash configuration
    in place.
    """

    COMMAND_ID: ClassVar[int] = 0x3B

    flash_pin: int = 0x00
    flash_clock_cfg: int = 0x41
    flash_io_mode: int = 0x01
    flash_clk_delay: int = 0x00
    flash_para: bytes = b""

    def payload(self) -> bytes:
        return struct.pack(
            "<BBBB",
            self.flash_pin,
            self.flash_clock_cfg,
            self.flash_io_mode,
            self.flash_clk_delay,
        ) + bytes(self.flash_para)


@dataclass(frozen=True)
class FlashWriteCheck(Command):
    COMMAND_ID: ClassVar[int] = 0x3A


@dataclass(frozen=True)
class FlashXipReadSha(Command):
    """SHA-256 of ``len`` bytes of flash at ``start_addr``, read over XIP."""

    COMMAND_ID: ClassVar[int] = 0x3E
    RESPONSE: ClassVar[ResponseShape] = SHA256

    start_addr: int
    len: int

    def payload(self) -> bytes:
        return struct.pack("<II", self.start_addr, self.len)


@dataclass(frozen=True)
class FlashXipReadStart(Command):
    COMMAND_ID: ClassVar[int] = 0x60


@dataclass(frozen=True)
class FlashXipReadFinish(Command):
    COMMAND_ID: ClassVar[int] = 0x61


@dataclass(frozen=True)
class LogRead(Command):
    """Read the boot-ROM log buffer."""

    COMMAND_ID: ClassVar[int] = 0x71
    RESPONSE: ClassVar[ResponseShape] = TEXT


COMMANDS_BY_ID: Dict[int, Type[Command]] = {
    cls.COMMAND_ID: cls
    for cls in (
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
}
