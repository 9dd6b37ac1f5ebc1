"""
Core module for Bouffalo Flasher.

This module provides the single source of truth for:
- Address parsing (parsing.py)
- Result objects (results.py)
- Flash/probe/read workflows (actions.py)
- Standardized warnings/messages (messages.py)

Front ends call into this module rather than driving the protocol
directly.
"""

from .parsing import parse_address
from .results import ChipInfo, OperationResult, format_region
from .messages import (
    MessageLevel,
    WarningCode,
    WarningItem,
    result_to_warnings,
)
from .actions import (
    FLASH_START_ADDR,
    CHUNK_SIZE,
    FIRMWARE_ALIGNMENT,
    pad_firmware,
    iter_chunks,
    flash_firmware,
    probe_chip,
    read_flash,
    read_log,
    reset_chip,
)

__all__ = [
    # Parsing
    "parse_address",
    # Results
    "ChipInfo",
    "OperationResult",
    "format_region",
    # Messages
    "MessageLevel",
    "WarningCode",
    "WarningItem",
    "result_to_warnings",
    # Actions
    "FLASH_START_ADDR",
    "CHUNK_SIZE",
    "FIRMWARE_ALIGNMENT",
    "pad_firmware",
    "iter_chunks",
    "flash_firmware",
    "probe_chip",
    "read_flash",
    "read_log",
    "reset_chip",
]
