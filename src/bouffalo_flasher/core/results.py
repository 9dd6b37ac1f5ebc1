"""
Result objects for boot-ROM workflows.

Every workflow in :mod:`bouffalo_flasher.core.actions` returns an
:class:`OperationResult`. Flash-range fields (start address, length,
chunk count, SHA-256 digests) are typed attributes; per-operation
payloads live in ``chip_info``, ``data`` and ``text``.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from bouffalo_flasher.protocol import BootInfo


def format_region(start_addr: int, length: int) -> str:
    """Inclusive flash range, e.g. ``0x00002000-0x00008D3F``."""
    return f"0x{start_addr:08X}-0x{start_addr + length - 1:08X}"


@dataclass
class ChipInfo:
    """Identification gathered by probe_chip."""

    boot_info: BootInfo
    name: str
    mac: bytes
    jedec_id: bytes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "chip_id": self.boot_info.chip_id_hex,
            "boot_rom_version": self.boot_info.version_string,
            "sign": self.boot_info.sign,
            "encrypt": self.boot_info.encrypt,
            "mac": self.mac.hex(),
            "jedec_id": self.jedec_id.hex(),
        }


@dataclass
class OperationResult:
    """
    Outcome of one workflow.

    Attributes:
        ok: False once an error has been recorded
        operation: Workflow name ("flash_firmware", "read_flash", ...)
        chip: Chip id (hex) from GetBootInfo, if the workflow read it
        start_addr: First flash address touched, if any
        length: Bytes written or read (padded image size for flashing)
        chunks: Number of FlashWrite/FlashRead commands
        sha256: Host-side SHA-256 of the image or the bytes read
        device_sha256: XIP SHA-256 reported by the device
        verified: None when verification did not run
        chip_info: Identification from probe_chip
        data: Bytes returned by read_flash
        text: Boot-ROM log from read_log
        warnings: Non-blocking issues
        errors: Issues that make the result fail
        logs: Log lines captured while the workflow ran
    """
    ok: bool
    operation: str
    chip: str = ""
    start_addr: Optional[int] = None
    length: int = 0
    chunks: int = 0
    sha256: str = ""
    device_sha256: str = ""
    verified: Optional[bool] = None
    chip_info: Optional[ChipInfo] = None
    data: bytes = b""
    text: str = ""
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    logs: List[str] = field(default_factory=list)

    @property
    def region(self) -> str:
        if self.start_addr is None or not self.length:
            return ""
        return format_region(self.start_addr, self.length)

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    def add_error(self, message: str) -> None:
        """Add an error message and mark result as failed."""
        self.errors.append(message)
        self.ok = False

    def to_summary(self) -> str:
        """
        Generate a human-readable summary string.

        Suitable for CLI output or simple logging.
        """
        status = "SUCCESS" if self.ok else "FAILED"
        lines = [f"[{status}] {self.operation}"]

        if self.chip:
            lines.append(f"  Chip: {self.chip}")
        if self.region:
            lines.append(f"  Region: {self.region}")
        if self.length:
            lines.append(f"  Bytes: {self.length:,}")
        if self.chunks:
            lines.append(f"  Chunks: {self.chunks}")
        if self.sha256:
            lines.append(f"  SHA-256: {self.sha256[:16]}...")
        if self.verified is not None:
            lines.append(f"  Verified: {'yes' if self.verified else 'NO'}")

        if self.warnings:
            lines.append("  Warnings:")
            for warn in self.warnings:
                lines.append(f"    - {warn}")

        if self.errors:
            lines.append("  Errors:")
            for err in self.errors:
                lines.append(f"    - {err}")

        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary (read data as its size only)."""
        return {
            "ok": self.ok,
            "operation": self.operation,
            "chip": self.chip,
            "start_addr": self.start_addr,
            "length": self.length,
            "region": self.region,
            "chunks": self.chunks,
            "sha256": self.sha256,
            "device_sha256": self.device_sha256,
            "verified": self.verified,
            "chip_info": self.chip_info.to_dict() if self.chip_info else None,
            "data_len": len(self.data),
            "text": self.text,
            "warnings": list(self.warnings),
            "errors": list(self.errors),
        }

    @classmethod
    def success(cls, operation: str, **kwargs) -> "OperationResult":
        """Create a successful result."""
        return cls(ok=True, operation=operation, **kwargs)
