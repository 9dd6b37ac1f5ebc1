"""
Bouffalo Flasher CLI

Command-line interface for probing and flashing chips through the boot-ROM.
"""

import sys
import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.logging import RichHandler
from rich.progress import Progress, BarColumn, TextColumn

from bouffalo_flasher.protocol import BootromError, ClockSet, SerialTransport
from bouffalo_flasher.protocol.serial_transport import DEFAULT_BAUDRATE, DEFAULT_TIMEOUT
from bouffalo_flasher.core.parsing import parse_address as _parse_address_core
from bouffalo_flasher.core.results import OperationResult
from bouffalo_flasher.core.actions import (
    CHUNK_SIZE,
    FLASH_START_ADDR,
    flash_firmware,
    pad_firmware,
    probe_chip,
    read_flash as core_read_flash,
    read_log,
    reset_chip,
)
from bouffalo_flasher.core.messages import (
    MessageLevel,
    WarningItem,
    result_to_warnings,
)

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    handlers=[RichHandler(rich_tracebacks=True)],
)
logger = logging.getLogger("bouffalo_flasher")
logger.addHandler(logging.NullHandler())

console = Console()

app = typer.Typer(help="Bouffalo boot-ROM flasher")


def print_header(text: str) -> None:
    console.print(Panel(text, expand=False, style="bold blue"))


def print_success(text: str) -> None:
    console.print(f"✓ {text}", style="green")


def print_warning(text: str) -> None:
    console.print(f"⚠️  {text}", style="yellow")


def print_error(text: str) -> None:
    console.print(f"❌ {text}", style="red")


def print_structured_warning(warning: WarningItem, verbose: bool = False) -> None:
    """Print a structured warning with optional remediation."""
    if warning.level == MessageLevel.ERROR:
        style = "red"
        icon = "❌"
    elif warning.level == MessageLevel.WARN:
        style = "yellow"
        icon = "⚠️"
    else:
        style = "blue"
        icon = "ℹ️"

    console.print(f"{icon} [{warning.code.value}] {warning.title}", style=style)
    if verbose and warning.detail:
        console.print(f"   {warning.detail}", style="dim")
    if verbose and warning.remediation:
        console.print(f"   → {warning.remediation}", style="cyan")


def print_warnings_from_result(result: OperationResult, verbose: bool = False) -> None:
    for warning in result_to_warnings(result):
        print_structured_warning(warning, verbose=verbose)


def parse_address(value: Optional[str], required: bool = False) -> Optional[int]:
    """
    CLI wrapper around core.parsing.parse_address that converts
    ValueError to typer.BadParameter for proper CLI error handling.

    With ``required`` set, a blank value is rejected instead of
    returning None.
    """
    try:
        parsed = _parse_address_core(value)
    except ValueError as e:
        raise typer.BadParameter(str(e))
    if parsed is None and required:
        raise typer.BadParameter("a value is required")
    return parsed


def print_result_json(result: OperationResult) -> None:
    """Print a result and its structured warnings as JSON."""
    payload = result.to_dict()
    payload["messages"] = [w.to_dict() for w in result_to_warnings(result)]
    typer.echo(json.dumps(payload, indent=2))


def confirm_write(force: bool, prompt: str) -> None:
    """Ask before writing flash unless --yes was given."""
    if force:
        return
    if not typer.confirm(prompt):
        raise typer.Abort()


@contextmanager
def quiet_logging(enabled: bool) -> Iterator[None]:
    """Keep package log records off the console while JSON is printed."""
    if not enabled:
        yield
        return
    logger.propagate = False
    try:
        yield
    finally:
        logger.propagate = True


@contextmanager
def open_session(
    port: str,
    baud: int,
    timeout: float,
    sync: bool = True,
    quiet: bool = False,
) -> Iterator[SerialTransport]:
    """Open the port and run the sync preamble."""
    with SerialTransport(port, baudrate=baud, timeout=timeout) as transport:
        if sync and not transport.sync() and not quiet:
            print_warning("Boot-ROM did not acknowledge sync; continuing anyway")
        yield transport


@app.callback()
def main_options(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log raw frames (hex)"),
) -> None:
    if verbose:
        logger.setLevel(logging.DEBUG)


@app.command()
def ports() -> None:
    """List available serial ports."""
    print_header("Available Serial Ports")

    import serial.tools.list_ports

    ports_list = list(serial.tools.list_ports.comports())
    if not ports_list:
        print_warning("No serial ports found")
        return

    table = Table(title="Serial Ports")
    table.add_column("Port", style="cyan")
    table.add_column("Description", style="green")
    table.add_column("HWID", style="magenta")

    for port in ports_list:
        table.add_row(port.device, port.description or "-", port.hwid or "-")

    console.print(table)


@app.command()
def info(
    ctx: typer.Context,
    port: str = typer.Argument(..., help="Serial device (e.g. /dev/ttyUSB0)"),
    baud: int = typer.Option(DEFAULT_BAUDRATE, "--baud", "-b", help="Baud rate"),
    timeout: float = typer.Option(DEFAULT_TIMEOUT, "--timeout", help="Read timeout (s)"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON for scripting"),
) -> None:
    """Show boot-ROM, chip and flash identification."""
    ctx.with_resource(quiet_logging(output_json))
    if not output_json:
        print_header("Chip Information")
        console.print(f"Port: {port}")

    try:
        with open_session(port, baud, timeout, quiet=output_json) as transport:
            result = probe_chip(transport)
    except BootromError as exc:
        if output_json:
            typer.echo(json.dumps({"error": str(exc)}, indent=2))
            sys.exit(1)
        print_error(f"Probe failed: {exc}")
        sys.exit(1)

    if output_json:
        print_result_json(result)
        return

    chip_info = result.chip_info
    table = Table(title="Boot-ROM")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Chip", chip_info.name)
    table.add_row("Chip ID", result.chip)
    table.add_row("Boot-ROM Version", chip_info.boot_info.version_string)
    table.add_row("Sign", str(chip_info.boot_info.sign))
    table.add_row("Encrypt", str(chip_info.boot_info.encrypt))
    table.add_row("MAC", chip_info.mac.hex())
    table.add_row("Flash JEDEC ID", chip_info.jedec_id.hex())

    console.print(table)
    print_success("Chip detected")


@app.command()
def flash(
    ctx: typer.Context,
    port: str = typer.Argument(..., help="Serial device (e.g. /dev/ttyUSB0)"),
    firmware: Path = typer.Argument(..., help="Firmware image (.bin)"),
    offset: str = typer.Option(f"0x{FLASH_START_ADDR:X}", "--offset", "-o", help="Flash offset"),
    chunk_size: int = typer.Option(CHUNK_SIZE, "--chunk-size", help="Bytes per write command"),
    baud: int = typer.Option(DEFAULT_BAUDRATE, "--baud", "-b", help="Baud rate"),
    timeout: float = typer.Option(DEFAULT_TIMEOUT, "--timeout", help="Read timeout (s)"),
    verify: bool = typer.Option(True, "--verify/--no-verify", help="Check XIP SHA-256 after writing"),
    reset: bool = typer.Option(True, "--reset/--no-reset", help="Reset the chip when done"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show the plan, write nothing"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    details: bool = typer.Option(False, "--details", help="Show remediation hints"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON for scripting"),
) -> None:
    """
    Flash a firmware image.

    Example:
        bouffalo-flasher flash /dev/ttyUSB0 firmware.bin --offset 0x2000
    """
    ctx.with_resource(quiet_logging(output_json))
    if not output_json:
        print_header("Flash Firmware")

    if not firmware.exists():
        print_error(f"File not found: {firmware}")
        sys.exit(1)

    start_addr = parse_address(offset, required=True)
    data = firmware.read_bytes()
    if not data:
        print_error(f"Firmware file is empty: {firmware}")
        sys.exit(1)

    if not output_json:
        console.print(f"Firmware: {firmware} ({len(data):,} bytes)")
        console.print(f"Offset:   0x{start_addr:08X}")

    if dry_run:
        result = flash_firmware(None, data, start_addr=start_addr, chunk_size=chunk_size, dry_run=True)
        if output_json:
            print_result_json(result)
            return
        console.print(result.to_summary())
        print_warnings_from_result(result, verbose=details)
        return

    confirm_write(yes, f"Write {len(data):,} bytes to flash at 0x{start_addr:08X}?")

    options = dict(
        start_addr=start_addr,
        chunk_size=chunk_size,
        clock=ClockSet(load_speed=baud),
        verify=verify,
        reset=reset,
    )
    try:
        with open_session(port, baud, timeout, quiet=output_json) as transport:
            if output_json:
                result = flash_firmware(transport, data, **options)
            else:
                with Progress(
                    TextColumn("[{task.description}]"),
                    BarColumn(),
                    TextColumn("[{task.percentage:.0f}%]"),
                    console=console,
                ) as progress:
                    task = progress.add_task("Writing flash...", total=len(pad_firmware(data)))

                    def _on_progress(done: int, total: int) -> None:
                        progress.update(task, completed=done, total=total)

                    result = flash_firmware(transport, data, progress_cb=_on_progress, **options)
    except (BootromError, ValueError) as exc:
        if output_json:
            typer.echo(json.dumps({"error": str(exc)}, indent=2))
            sys.exit(1)
        print_error(f"Flash failed: {exc}")
        sys.exit(1)

    if output_json:
        print_result_json(result)
        if not result.ok:
            sys.exit(1)
        return

    console.print(result.to_summary())
    print_warnings_from_result(result, verbose=details)
    if not result.ok:
        sys.exit(1)
    print_success("Flash complete")


@app.command("read-flash")
def read_flash(
    port: str = typer.Argument(..., help="Serial device (e.g. /dev/ttyUSB0)"),
    out: Path = typer.Argument(..., help="Output file"),
    offset: str = typer.Option("0x0", "--offset", "-o", help="Flash offset"),
    length: str = typer.Option(..., "--length", "-l", help="Bytes to read (e.g. 0x1000, 64k)"),
    baud: int = typer.Option(DEFAULT_BAUDRATE, "--baud", "-b", help="Baud rate"),
    timeout: float = typer.Option(DEFAULT_TIMEOUT, "--timeout", help="Read timeout (s)"),
) -> None:
    """Read a flash region to a file."""
    print_header("Read Flash")

    start_addr = parse_address(offset, required=True)
    size = parse_address(length, required=True)

    try:
        with open_session(port, baud, timeout) as transport:
            with Progress(
                TextColumn("[{task.description}]"),
                BarColumn(),
                TextColumn("[{task.percentage:.0f}%]"),
                console=console,
            ) as progress:
                task = progress.add_task("Reading flash...", total=size)
                result = core_read_flash(
                    transport,
                    start_addr,
                    size,
                    progress_cb=lambda done, total: progress.update(task, completed=done),
                )
    except (BootromError, ValueError) as exc:
        print_error(f"Read failed: {exc}")
        sys.exit(1)

    out.write_bytes(result.data)
    console.print(f"SHA256: {result.sha256}")
    print_success(f"Saved {result.length:,} bytes from {result.region} to {out}")


@app.command()
def log(
    port: str = typer.Argument(..., help="Serial device (e.g. /dev/ttyUSB0)"),
    baud: int = typer.Option(DEFAULT_BAUDRATE, "--baud", "-b", help="Baud rate"),
    timeout: float = typer.Option(DEFAULT_TIMEOUT, "--timeout", help="Read timeout (s)"),
) -> None:
    """Print the boot-ROM log buffer."""
    try:
        with open_session(port, baud, timeout) as transport:
            result = read_log(transport)
    except BootromError as exc:
        print_error(f"Log read failed: {exc}")
        sys.exit(1)

    console.print(result.text, markup=False, highlight=False)


@app.command()
def reset(
    port: str = typer.Argument(..., help="Serial device (e.g. /dev/ttyUSB0)"),
    baud: int = typer.Option(DEFAULT_BAUDRATE, "--baud", "-b", help="Baud rate"),
    timeout: float = typer.Option(DEFAULT_TIMEOUT, "--timeout", help="Read timeout (s)"),
) -> None:
    """Reset the chip."""
    try:
        with open_session(port, baud, timeout) as transport:
            reset_chip(transport)
    except BootromError as exc:
        print_error(f"Reset failed: {exc}")
        sys.exit(1)
    print_success("Chip reset")


def main() -> None:
    """Main entry point."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(0)
    except Exception as e:
        console.print(f"\n[red bold]Fatal error:[/red bold] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
