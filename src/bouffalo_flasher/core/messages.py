"""
Standardized warning and message system.

Provides structured warning items with stable codes so every front end
can display operation outcomes consistently.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Dict, Any

from .results import OperationResult


class MessageLevel(Enum):
    """Severity level for messages."""
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class WarningCode(Enum):
    """Stable warning codes for known conditions."""
    # Connection
    W_SYNC_FAILED = "W_SYNC_FAILED"
    W_SERIAL_TIMEOUT = "W_SERIAL_TIMEOUT"
    W_SERIAL_ERROR = "W_SERIAL_ERROR"

    # Device
    W_DEVICE_ERROR = "W_DEVICE_ERROR"
    W_CHECKSUM = "W_CHECKSUM"

    # Data
    W_DATA_PADDED = "W_DATA_PADDED"
    W_VERIFY_MISMATCH = "W_VERIFY_MISMATCH"
    W_VERIFY_SKIPPED = "W_VERIFY_SKIPPED"

    # Operation
    W_DRY_RUN = "W_DRY_RUN"

    W_UNKNOWN = "W_UNKNOWN"


WARNING_REMEDIATIONS: Dict[WarningCode, str] = {
    WarningCode.W_SYNC_FAILED:
        "Hold the BOOT pin while resetting the chip, then retry.",
    WarningCode.W_SERIAL_TIMEOUT:
        "Check cable connection and that the chip is in boot-ROM mode.",
    WarningCode.W_SERIAL_ERROR:
        "Close other serial apps using the port. Check USB driver.",
    WarningCode.W_DEVICE_ERROR:
        "The boot-ROM rejected the command. Check addresses and flash parameters.",
    WarningCode.W_CHECKSUM:
        "Response was corrupted in transit. Re-sync and retry.",
    WarningCode.W_DATA_PADDED:
        "Firmware was zero-padded to a 16-byte boundary.",
    WarningCode.W_VERIFY_MISMATCH:
        "Flash contents do not match the image. Erase and flash again.",
    WarningCode.W_VERIFY_SKIPPED:
        "Run again without --no-verify to check the written image.",
    WarningCode.W_DRY_RUN:
        "Dry run complete. Remove --dry-run to write flash.",
    WarningCode.W_UNKNOWN:
        "Check logs for more details.",
}


@dataclass
class WarningItem:
    """
    Structured warning message with stable code.

    Attributes:
        level: Severity (INFO, WARN, ERROR)
        code: Stable warning code for programmatic handling
        title: Short, user-facing title
        detail: Longer explanation of the issue
        remediation: Suggested action to resolve the issue
    """
    level: MessageLevel
    code: WarningCode
    title: str
    detail: str = ""
    remediation: str = ""

    def __post_init__(self):
        if not self.remediation and self.code in WARNING_REMEDIATIONS:
            self.remediation = WARNING_REMEDIATIONS[self.code]

    @classmethod
    def warn(cls, code: WarningCode, title: str, detail: str = "") -> "WarningItem":
        return cls(MessageLevel.WARN, code, title, detail)

    @classmethod
    def error(cls, code: WarningCode, title: str, detail: str = "") -> "WarningItem":
        return cls(MessageLevel.ERROR, code, title, detail)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level.value,
            "code": self.code.value,
            "title": self.title,
            "detail": self.detail,
            "remediation": self.remediation,
        }


def _classify(message: str) -> WarningCode:
    msg_lower = message.lower()
    if "sync" in msg_lower:
        return WarningCode.W_SYNC_FAILED
    if "padded" in msg_lower:
        return WarningCode.W_DATA_PADDED
    if "dry run" in msg_lower:
        return WarningCode.W_DRY_RUN
    if "verification skipped" in msg_lower:
        return WarningCode.W_VERIFY_SKIPPED
    if "sha" in msg_lower and "mismatch" in msg_lower:
        return WarningCode.W_VERIFY_MISMATCH
    if "crc32" in msg_lower:
        return WarningCode.W_CHECKSUM
    if "boot-rom error" in msg_lower:
        return WarningCode.W_DEVICE_ERROR
    if "timeout" in msg_lower or "short read" in msg_lower:
        return WarningCode.W_SERIAL_TIMEOUT
    if "port" in msg_lower:
        return WarningCode.W_SERIAL_ERROR
    return WarningCode.W_UNKNOWN


def result_to_warnings(result: OperationResult) -> List[WarningItem]:
    """Convert a result's warning and error strings to WarningItem list."""
    items = [WarningItem.warn(_classify(msg), msg) for msg in result.warnings]
    items.extend(WarningItem.error(_classify(msg), msg) for msg in result.errors)
    return items
