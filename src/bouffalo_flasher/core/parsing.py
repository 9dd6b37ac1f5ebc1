"""
Centralized parsing helpers for addresses and sizes given on the command line.
"""

from typing import Optional


def parse_address(value: Optional[str]) -> Optional[int]:
    """
    Parse a flash address or length from string.

    Accepts:
        - Decimal: "8192"
        - Hex with 0x prefix: "0x2000" or "0X2000"
        - Hex with h suffix: "2000h" or "2000H"
        - Size suffix: "2k"/"2K" (x1024), "1m"/"1M" (x1048576)
        - None or blank for "use the default"

    Returns:
        Parsed integer, or None if value is None or empty.

    Raises:
        ValueError: If value cannot be parsed or is negative.
    """
    if value is None:
        return None

    value = value.strip()
    if not value:
        return None

    lowered = value.lower()
    try:
        if lowered.startswith("0x"):
            result = int(lowered, 16)
        elif lowered.endswith("h"):
            result = int(lowered[:-1], 16)
        elif lowered.endswith("k"):
            result = int(lowered[:-1]) * 1024
        elif lowered.endswith("m"):
            result = int(lowered[:-1]) * 1024 * 1024
        else:
            result = int(lowered)
    except ValueError:
        raise ValueError(
            f"Invalid address '{value}'. Use decimal (8192), hex (0x2000), "
            f"suffix (2000h) or size (8k)."
        )

    if result < 0:
        raise ValueError(f"Address must not be negative: '{value}'")
    return result
