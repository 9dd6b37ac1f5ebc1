"""Shared fixtures: an in-memory boot-ROM transport and frame builders."""

import hashlib
import struct

import pytest

from bouffalo_flasher.protocol import (
    ClockSet,
    EfuseReadMac,
    FlashErase,
    FlashRead,
    FlashReadJedecId,
    FlashSetPara,
    FlashWrite,
    FlashWriteCheck,
    FlashXipReadFinish,
    FlashXipReadSha,
    FlashXipReadStart,
    GetBootInfo,
    GetChipId,
    LogRead,
    Reset,
    Transport,
)


class ScriptedTransport(Transport):
    """
    Transport that replays canned device bytes and records host writes.

    Reads past the end of the script return whatever is left (possibly
    nothing), like a serial port hitting its timeout.
    """

    def __init__(self, device_bytes: bytes = b""):
        self.rx = bytearray(device_bytes)
        self.writes = []
        self.reads = []

    def feed(self, data: bytes) -> None:
        self.rx.extend(data)

    def read_bytes(self, n: int) -> bytes:
        self.reads.append(n)
        data = bytes(self.rx[:n])
        del self.rx[:n]
        return data

    def write_bytes(self, data: bytes) -> None:
        self.writes.append(bytes(data))

    @property
    def command_ids(self):
        return [frame[0] for frame in self.writes]


def ok() -> bytes:
    return b"OK"


def ok_payload(payload: bytes) -> bytes:
    return b"OK" + struct.pack("<H", len(payload)) + payload


def fail(code: int) -> bytes:
    return b"FL" + struct.pack("<H", code)


BOOT_INFO_PAYLOAD = (
    bytes([1, 0, 0, 0])          # boot-ROM version
    + bytes([0, 0])              # sign, encrypt
    + bytes(6)                   # reserved
    + bytes.fromhex("fbaf35cf0eb4")  # chip id, byte-reversed
    + bytes(6)
)


def flash_script(image: bytes, chunks: int, sha: bytes = None) -> bytes:
    """Device replies for a full flash_firmware run."""
    script = ok_payload(BOOT_INFO_PAYLOAD)    # GetBootInfo
    script += ok() * 3                        # ClockSet, FlashSetPara, FlashErase
    script += ok() * chunks                   # FlashWrite
    script += ok()                            # FlashWriteCheck
    script += ok()                            # FlashXipReadStart
    script += ok_payload(sha if sha is not None else hashlib.sha256(image).digest())
    script += ok()                            # FlashXipReadFinish
    script += ok()                            # Reset
    return script


SAMPLE_COMMANDS = [
    GetBootInfo(),
    GetChipId(),
    ClockSet(),
    Reset(),
    EfuseReadMac(),
    FlashReadJedecId(),
    FlashErase(start=0x2000, end=0x8D3F),
    FlashWrite(start_addr=0x2000, data=bytes(range(256)) * 8),
    FlashRead(start_addr=0x0, len=0x1000),
    FlashSetPara(flash_para=bytes(84)),
    FlashWriteCheck(),
    FlashXipReadSha(start_addr=0x2000, len=0x6D40),
    FlashXipReadStart(),
    FlashXipReadFinish(),
    LogRead(),
]


@pytest.fixture
def transport():
    return ScriptedTransport()
