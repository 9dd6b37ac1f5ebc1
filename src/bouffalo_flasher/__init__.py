"""
Bouffalo Flasher - host-side firmware flasher for Bouffalo boot-ROMs

Command codec, UART transport and flashing workflow for the ROM
bootloader's command/response protocol.
"""

__version__ = "0.1.0"

from bouffalo_flasher.protocol import SerialTransport, Transport, BootromError
from bouffalo_flasher.core import flash_firmware, probe_chip

__all__ = [
    "SerialTransport",
    "Transport",
    "BootromError",
    "flash_firmware",
    "probe_chip",
    "__version__",
]
