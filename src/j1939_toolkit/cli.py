"""J1939-84 Toolkit CLI application."""

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from .bus.adapter import AdapterDetector
from .bus.manager import BusManager
from .config import ConfigError, HarnessConfig
from .controllers.data_repository import DataRepository
from .controllers.listener import CompositeListener
from .controllers.part import RunEnvironment
from .controllers.runner import ExitCode, TestRunner, exit_code_for
from .display.console import console as display_console
from .display.listener import ConsoleListener
from .display.tables import TableDisplay
from .errors import BusError, DecodeError, Interrupted
from .modules import DiagnosticMessageModule, EngineSpeedModule, VehicleInformationModule
from .packets.packet import Packet
from .packets.registry import parse
from .steps import PART_DEFINITIONS, available_parts, build_part
from .storage.report import ReportFileListener

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="j1939-toolkit",
    help="J1939-84 Toolkit - Run OBD compliance tests against a heavy-duty vehicle over J1939",
    no_args_is_help=True,
)

_table_display = TableDisplay(Console())


def setup_logging(verbose: bool) -> None:
    """Route log records through rich; DEBUG with --verbose, WARNING otherwise."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=verbose)],
        force=True,
    )
    # python-can is chatty at DEBUG
    logging.getLogger("can").setLevel(logging.INFO if verbose else logging.WARNING)


def _parse_hex(text: str) -> bytes:
    cleaned = text.replace(" ", "").replace(":", "").replace("-", "")
    return bytes.fromhex(cleaned)


@app.command()
def run(
    part: List[int] = typer.Option(..., "--part", "-p", help="Part to run (repeatable)"),
    interface: Optional[str] = typer.Option(None, "--interface", "-i", help="python-can interface (socketcan, pcan, slcan, ...)"),
    channel: Optional[str] = typer.Option(None, "--channel", "-c", help="Interface channel (can0, PCAN_USBBUS1, /dev/ttyACM0)"),
    bitrate: Optional[int] = typer.Option(None, "--bitrate", "-b", help="Bus bit rate"),
    report: Optional[Path] = typer.Option(None, "--report", "-r", help="Report file (time-stamped file if omitted)"),
    config: Optional[Path] = typer.Option(None, "--config", help="JSON config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show the transcript and debug logging"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Answer questions with yes and skip acknowledgements"),
):
    """Run test parts against the vehicle."""
    setup_logging(verbose)
    display_console.print_banner()

    unknown = [number for number in part if number not in PART_DEFINITIONS]
    if unknown:
        display_console.error(f"Unknown part(s): {unknown}. Available: {available_parts()}")
        raise typer.Exit(ExitCode.ERROR)

    try:
        settings = HarnessConfig.load(config).with_overrides(interface=interface, channel=channel, bitrate=bitrate)
    except ConfigError as e:
        display_console.error(str(e))
        raise typer.Exit(ExitCode.ERROR)

    manager = BusManager(tool_address=settings.tool_address)
    connection = manager.connect(
        interface=settings.interface,
        channel=settings.channel,
        bitrate=settings.bitrate,
        global_window=settings.global_window,
        ds_timeout=settings.ds_timeout,
        ds_retries=settings.ds_retries,
    )
    if not connection.success:
        display_console.error(f"{connection.message}: {connection.error}")
        raise typer.Exit(ExitCode.ERROR)
    display_console.success(connection.message)

    with manager:
        j1939 = manager.j1939
        if report is None and settings.report_dir is not None:
            report = settings.report_dir / f"j1939-84_{j1939.clock.wall_time():%Y%m%d_%H%M%S}.txt"
        report_listener = ReportFileListener(report, j1939.clock)
        listener = CompositeListener(ConsoleListener(display_console, verbose=verbose, interactive=not yes),
                                     report_listener)

        diagnostic_messages = DiagnosticMessageModule(j1939)
        vehicle_information = VehicleInformationModule(j1939)
        env = RunEnvironment(
            listener=listener,
            repository=DataRepository(),
            clock=j1939.clock,
            j1939=j1939,
            diagnostic_messages=diagnostic_messages,
            engine_speed=EngineSpeedModule(j1939, running_rpm=settings.engine_running_rpm),
            vehicle_information=vehicle_information,
            poll_interval=settings.poll_interval,
        )
        j1939.set_cancel_check(listener.is_cancelled)

        def prepare(environment: RunEnvironment) -> None:
            vehicle_information.collect(environment.listener, environment.repository, diagnostic_messages)

        runner = TestRunner(env, [build_part(number) for number in part], prepare=prepare)
        results = []
        try:
            results = runner.run()
        except Interrupted as e:
            display_console.warning(e.message)
            raise typer.Exit(ExitCode.ABORTED)
        except BusError as e:
            display_console.error(f"Bus error: {e}")
            raise typer.Exit(ExitCode.ERROR)
        except Exception as e:
            logger.exception("Run failed")
            display_console.error(f"Internal error: {e}")
            raise typer.Exit(ExitCode.ERROR)
        finally:
            if results:
                report_listener.write_summary(results, env.repository.vehicle_information)
            report_listener.close()

    for result in results:
        _table_display.show(_table_display.part_result_table(result))
    _table_display.show(_table_display.summary_table(results))
    display_console.info(f"Report saved to {report_listener.path}")

    raise typer.Exit(exit_code_for(results))


@app.command()
def parts():
    """List the test parts and their encoded steps."""
    _table_display.show(_table_display.parts_table([build_part(number) for number in available_parts()]))


@app.command()
def scan():
    """Scan for serial CAN adapters."""
    display_console.header("Scanning for CAN Adapters")

    adapters = AdapterDetector.detect_all()

    if not adapters:
        display_console.warning("No serial CAN adapters found")
        display_console.info("SocketCAN and PCAN interfaces are not listed; use --interface and --channel directly")
        return

    _table_display.show(_table_display.adapters_table(adapters))
    display_console.info(f"Found {len(adapters)} adapter(s)")


@app.command()
def decode(
    identifier: str = typer.Argument(..., help="29-bit CAN identifier in hex, e.g. 18FECB00"),
    data: str = typer.Argument(..., help="Payload in hex, e.g. '00 FF 00 00 00 00 FF FF'"),
):
    """Decode a single J1939 frame."""
    try:
        packet = Packet.from_identifier(int(identifier, 16), _parse_hex(data))
        parsed = parse(packet)
    except ValueError as e:
        display_console.error(f"Invalid frame: {e}")
        raise typer.Exit(1)
    except DecodeError as e:
        display_console.error(f"Decode error: {e}")
        raise typer.Exit(1)

    display_console.print_line(str(packet))
    display_console.print_line(str(parsed))
    if parsed.definition and parsed.definition.spns:
        try:
            _table_display.show(_table_display.packet_table(parsed))
        except DecodeError as e:
            display_console.warning(str(e))


@app.command("config")
def show_config(
    config: Optional[Path] = typer.Option(None, "--config", help="JSON config file"),
    write: bool = typer.Option(False, "--write", help="Write the effective settings back to the file"),
):
    """Show the effective configuration."""
    try:
        settings = HarnessConfig.load(config)
    except ConfigError as e:
        display_console.error(str(e))
        raise typer.Exit(ExitCode.ERROR)

    items = settings.model_dump(mode="json")
    display_console.panel("\n".join(f"[bold]{key}:[/bold] {value}" for key, value in items.items()),
                          title="Configuration")
    if write:
        display_console.success(f"Saved {settings.save(config)}")


@app.command()
def version():
    """Show version information."""
    from . import __version__
    display_console.print(f"J1939-84 Toolkit v{__version__}")


if __name__ == "__main__":
    app()
