"""
Core workflow actions.

These functions drive a boot-ROM session over an already-open transport
and return an :class:`OperationResult`. Protocol failures (device error
codes, checksum mismatches, short reads) are raised to the caller
unchanged; only outcomes the protocol itself reports as success, such as
a SHA-256 that does not match the image, are recorded as result errors.
"""

import hashlib
import logging
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, Tuple

from bouffalo_flasher.protocol import (
    ClockSet,
    CustomError,
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

from .results import ChipInfo, OperationResult, format_region

logger = logging.getLogger(__name__)

FLASH_START_ADDR = 0x2000
CHUNK_SIZE = 2 * 1024
FIRMWARE_ALIGNMENT = 16

ProgressCallback = Callable[[int, int], None]
LogCallback = Callable[[str], None]


class _ListLogHandler(logging.Handler):
    """Capture log records into a list of formatted strings."""

    def __init__(self, level: int = logging.INFO) -> None:
        super().__init__(level)
        self.records = []
        self.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(self.format(record))


@contextmanager
def _capture_logs(logger_name: str = "bouffalo_flasher"):
    """Capture logs for core operations into a list."""
    target_logger = logging.getLogger(logger_name)
    handler = _ListLogHandler()
    previous_level = target_logger.level
    if previous_level in (logging.NOTSET, logging.WARNING, logging.ERROR, logging.CRITICAL):
        target_logger.setLevel(logging.INFO)
    target_logger.addHandler(handler)
    try:
        yield handler.records
    finally:
        target_logger.removeHandler(handler)
        target_logger.setLevel(previous_level)


def pad_firmware(data: bytes, alignment: int = FIRMWARE_ALIGNMENT) -> bytes:
    """Zero-pad ``data`` to a multiple of ``alignment`` bytes."""
    remainder = len(data) % alignment
    if remainder == 0:
        return bytes(data)
    return bytes(data) + b"\x00" * (alignment - remainder)


def iter_chunks(
    data: bytes,
    start_addr: int = FLASH_START_ADDR,
    chunk_size: int = CHUNK_SIZE,
) -> Iterator[Tuple[int, bytes]]:
    """Yield ``(address, chunk)`` pairs covering ``data``."""
    if chunk_size <= 0:
        raise ValueError("chunk_size must be > 0")
    for offset in range(0, len(data), chunk_size):
        yield start_addr + offset, data[offset:offset + chunk_size]


def flash_firmware(
    transport: Optional[Transport],
    firmware: bytes,
    *,
    start_addr: int = FLASH_START_ADDR,
    chunk_size: int = CHUNK_SIZE,
    clock: Optional[ClockSet] = None,
    flash_para: Optional[FlashSetPara] = None,
    verify: bool = True,
    reset: bool = True,
    dry_run: bool = False,
    progress_cb: Optional[ProgressCallback] = None,
    log_cb: Optional[LogCallback] = None,
) -> OperationResult:
    """
    Write a firmware image to flash through the boot-ROM.

    Sequence:
        GetBootInfo -> ClockSet -> FlashSetPara -> FlashErase(range)
        -> FlashWrite per chunk -> FlashWriteCheck
        -> [FlashXipReadStart -> FlashXipReadSha -> FlashXipReadFinish]
        -> [Reset]

    Args:
        transport: Open transport with the sync preamble done (None for dry_run)
        firmware: Raw image bytes (zero-padded to 16 bytes here)
        start_addr: Flash offset of the first byte
        chunk_size: Bytes per FlashWrite command
        clock: ClockSet command to send (default: 115200 with IRQ enabled)
        flash_para: FlashSetPara command to send (default parameters)
        verify: Compare the device's XIP SHA-256 with the image
        reset: Reset the chip when done
        dry_run: Only compute the plan; send nothing
        progress_cb: Optional progress callback(bytes_written, total)
        log_cb: Optional callback for human-readable progress lines

    Returns:
        OperationResult with the flashed range, chunk count, host and
        device SHA-256 and the verification outcome.
        A SHA-256 mismatch marks the result failed.

    Raises:
        ValueError: If the image is empty
        BootromError: On any protocol failure
    """
    if not firmware:
        raise ValueError("Firmware image is empty")
    if transport is None and not dry_run:
        raise ValueError("A transport is required unless dry_run is set")

    def _log(message: str) -> None:
        logger.info(message)
        if log_cb:
            log_cb(message)

    with _capture_logs() as logs:
        image = pad_firmware(firmware)
        total = len(image)
        end_addr = start_addr + total - 1
        chunks = list(iter_chunks(image, start_addr, chunk_size))

        result = OperationResult.success(
            operation="flash_firmware",
            start_addr=start_addr,
            length=total,
            chunks=len(chunks),
            sha256=hashlib.sha256(image).hexdigest(),
            logs=logs,
        )
        region = format_region(start_addr, total)

        if total != len(firmware):
            result.add_warning(
                f"Firmware padded from {len(firmware)} to {total} bytes"
            )

        if dry_run:
            result.add_warning("Dry run - flash was not modified")
            _log(f"Dry run: would write {total} bytes to {region} in {len(chunks)} chunks")
            return result

        boot_info = transport.send_command(GetBootInfo())
        result.chip = boot_info.chip_id_hex
        _log(f"Boot-ROM {boot_info.version_string}, chip id {boot_info.chip_id_hex}")

        transport.send_command(clock or ClockSet())
        transport.send_command(flash_para or FlashSetPara())

        _log(f"Erasing {region}")
        transport.send_command(FlashErase(start=start_addr, end=end_addr))

        written = 0
        for address, chunk in chunks:
            logger.debug(f"Flash write 0x{address:08X}..0x{address + len(chunk) - 1:08X}")
            transport.send_command(FlashWrite(start_addr=address, data=chunk))
            written += len(chunk)
            if progress_cb:
                progress_cb(written, total)
        _log(f"Flash done: {written} bytes")

        transport.send_command(FlashWriteCheck())

        if verify:
            transport.send_command(FlashXipReadStart())
            device_sha = transport.send_command(FlashXipReadSha(start_addr=start_addr, len=total))
            transport.send_command(FlashXipReadFinish())

            result.device_sha256 = device_sha.hex()
            result.verified = result.device_sha256 == result.sha256
            if result.verified:
                _log("SHA-256 verified")
            else:
                result.add_error(
                    f"SHA-256 mismatch: device {device_sha.hex()}, "
                    f"image {result.sha256}"
                )
        else:
            result.add_warning("Verification skipped")

        if reset:
            transport.send_command(Reset())
            _log("Chip reset")

        return result


def probe_chip(transport: Transport) -> OperationResult:
    """
    Read identification data from the boot-ROM.

    Returns:
        OperationResult with ``chip`` (chip id, hex) and ``chip_info``
        (boot info, identification string, CRC32-verified eFuse MAC and
        flash JEDEC id).
    """
    with _capture_logs() as logs:
        boot_info = transport.send_command(GetBootInfo())
        chip_name = transport.send_command(GetChipId())
        mac = transport.send_command(EfuseReadMac())
        jedec_id = transport.send_command(FlashReadJedecId())

        info = ChipInfo(
            boot_info=boot_info,
            name=chip_name.rstrip("\x00"),
            mac=mac.data,
            jedec_id=jedec_id,
        )
        logger.info(f"Probed chip {boot_info.chip_id_hex} ({info.name})")
        return OperationResult.success(
            operation="probe_chip",
            chip=boot_info.chip_id_hex,
            chip_info=info,
            logs=logs,
        )


def read_flash(
    transport: Transport,
    start_addr: int,
    length: int,
    *,
    chunk_size: int = CHUNK_SIZE,
    progress_cb: Optional[ProgressCallback] = None,
) -> OperationResult:
    """
    Read ``length`` bytes of flash starting at ``start_addr``.

    Returns:
        OperationResult with ``data`` holding the bytes read.

    Raises:
        CustomError: If the device returns a block of the wrong size
    """
    if length <= 0:
        raise ValueError("length must be > 0")

    with _capture_logs() as logs:
        data = bytearray()
        address = start_addr
        chunks = 0
        while len(data) < length:
            size = min(chunk_size, length - len(data))
            block = transport.send_command(FlashRead(start_addr=address, len=size))
            if len(block) != size:
                raise CustomError(
                    f"Flash read at 0x{address:08X} returned {len(block)} bytes, expected {size}"
                )
            data.extend(block)
            address += size
            chunks += 1
            if progress_cb:
                progress_cb(len(data), length)

        result = OperationResult.success(
            operation="read_flash",
            start_addr=start_addr,
            length=length,
            chunks=chunks,
            sha256=hashlib.sha256(data).hexdigest(),
            data=bytes(data),
            logs=logs,
        )
        logger.info(f"Read {length} bytes from {result.region}")
        return result


def read_log(transport: Transport) -> OperationResult:
    """Read the boot-ROM log buffer into ``text``."""
    text = transport.send_command(LogRead())
    return OperationResult.success(operation="read_log", length=len(text), text=text)


def reset_chip(transport: Transport) -> OperationResult:
    transport.send_command(Reset())
    return OperationResult.success(operation="reset")
