"""Table display utilities for the J1939 toolkit."""

from typing import List, Optional

from rich.console import Console
from rich.table import Table

from ..bus.adapter import AdapterInfo
from ..controllers.part import PartController
from ..models.outcome import Outcome, PartResult
from ..packets.generic import GenericPacket
from .console import OUTCOME_STYLES


def _styled(outcome: Outcome) -> str:
    style = OUTCOME_STYLES[outcome]
    return f"[{style}]{outcome.value}[/{style}]"


class TableDisplay:
    """Create and display formatted tables."""

    def __init__(self, console: Optional[Console] = None):
        self._console = console or Console()

    def parts_table(self, parts: List[PartController]) -> Table:
        """Create a table of the available parts and their encoded steps."""
        table = Table(title="Test Parts", show_header=True, header_style="bold cyan")

        table.add_column("Part", style="cyan bold", justify="right")
        table.add_column("Name", width=16)
        table.add_column("Steps", justify="right")
        table.add_column("Encoded Steps")

        for part in parts:
            encoded = "\n".join(step.banner for step in part.encoded_steps) or "-"
            table.add_row(str(part.part_number), part.display_name, str(part.step_count), encoded)

        return table

    def part_result_table(self, result: PartResult, include_incomplete: bool = False) -> Table:
        """Create a table of step outcomes for one part."""
        table = Table(title=f"{result.display_name} Results", show_header=True, header_style="bold cyan")

        table.add_column("Step", style="cyan", width=10)
        table.add_column("Outcome", width=12)
        table.add_column("Details")

        for step in result.ordered_steps:
            if step.worst == Outcome.INCOMPLETE and not include_incomplete:
                continue
            details = "\n".join(record.message for record in step.outcomes if record.outcome != Outcome.PASS)
            table.add_row(f"6.{step.part}.{step.step}", _styled(step.worst), details or "-")

        return table

    def summary_table(self, results: List[PartResult]) -> Table:
        """Create a table of outcome counts per part."""
        table = Table(title="Summary", show_header=True, header_style="bold cyan")

        table.add_column("Part", style="cyan bold")
        table.add_column("Result", width=12)
        for outcome in Outcome:
            table.add_column(outcome.value, justify="right")

        for result in results:
            counts = result.counts
            table.add_row(result.display_name, _styled(result.worst), *(str(counts[outcome]) for outcome in Outcome))

        return table

    def packet_table(self, packet: GenericPacket) -> Table:
        """Create a table of the SPNs in a packet."""
        table = Table(title=f"{packet.name} from {packet.module_name}", show_header=True, header_style="bold cyan")

        table.add_column("SPN", style="cyan bold", justify="right")
        table.add_column("Parameter", width=45)
        table.add_column("Value", justify="right")

        for value in packet.spn_values():
            table.add_row(str(value.spn), value.label, value.formatted_value)

        return table

    def adapters_table(self, adapters: List[AdapterInfo]) -> Table:
        """Create a table of detected adapters."""
        table = Table(title="Detected CAN Adapters", show_header=True, header_style="bold cyan")

        table.add_column("Port", style="cyan bold")
        table.add_column("Type", width=14)
        table.add_column("Interface", width=10)
        table.add_column("Description", width=35)
        table.add_column("Manufacturer", width=20)

        for adapter in adapters:
            table.add_row(
                adapter.port,
                adapter.adapter_type.value,
                adapter.interface,
                adapter.description or "-",
                adapter.manufacturer or "-",
            )

        return table

    def show(self, table: Table) -> None:
        """Display a table to the console."""
        self._console.print(table)
        self._console.print()
