"""Step framework: the step capability, its context and the shared rule checks."""

import logging
import math
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence, Type, TypeVar

from ..clock import TimeSource
from ..errors import Interrupted
from ..models.outcome import Outcome
from ..packets.acknowledgment import AcknowledgmentPacket
from ..packets.generic import GenericPacket
from ..packets.lookup import get_address_name
from .data_repository import DataRepository
from .listener import AnswerType, MessageType, QuestionCallback, ResultsListener

if TYPE_CHECKING:
    from ..bus.j1939 import J1939
    from ..modules import DiagnosticMessageModule, EngineSpeedModule, VehicleInformationModule

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=GenericPacket)

ENGINE_POLL_INTERVAL = 0.5


class Ending(str, Enum):
    """How a run is being ended."""
    ABORTED = "Aborted"
    STOPPED = "Stopped"
    COMPLETED = "Completed"


class EndingSignal:
    """Shared between the part controller and the step contexts it creates."""

    def __init__(self):
        self.ending: Optional[Ending] = None

    def set(self, ending: Ending) -> None:
        if self.ending is None or ending != Ending.COMPLETED:
            self.ending = ending

    @property
    def is_interrupting(self) -> bool:
        return self.ending in (Ending.ABORTED, Ending.STOPPED)


class StepContext:
    """
    Everything a step needs while it runs.

    Every suspension point (bus requests through the modules, prompts and
    pauses) checks the listener's cancel flag and the ending signal and
    raises Interrupted when either asks the part to stop.
    """

    def __init__(
        self,
        part: int,
        step: int,
        listener: ResultsListener,
        repository: DataRepository,
        clock: TimeSource,
        j1939: Optional["J1939"] = None,
        diagnostic_messages: Optional["DiagnosticMessageModule"] = None,
        engine_speed: Optional["EngineSpeedModule"] = None,
        vehicle_information: Optional["VehicleInformationModule"] = None,
        total_steps: int = 0,
        ending: Optional[EndingSignal] = None,
        poll_interval: float = ENGINE_POLL_INTERVAL,
    ):
        self.part = part
        self.step = step
        self.listener = listener
        self.repository = repository
        self.clock = clock
        self.j1939 = j1939
        self.diagnostic_messages = diagnostic_messages
        self.engine_speed = engine_speed
        self.vehicle_information = vehicle_information
        self.total_steps = total_steps
        self.ending = ending or EndingSignal()
        self.poll_interval = poll_interval
        self._progress = 0

    # Cancellation

    def is_interrupted(self) -> bool:
        return self.listener.is_cancelled() or self.ending.is_interrupting

    def check_ending(self) -> None:
        """
        Raises:
            Interrupted: If the run was cancelled or a step set an aborting ending
        """
        if self.listener.is_cancelled():
            raise Interrupted()
        if self.ending.ending == Ending.ABORTED:
            raise Interrupted("Aborted")
        if self.ending.ending == Ending.STOPPED:
            raise Interrupted("Stopped")

    def set_ending(self, ending: Ending) -> None:
        logger.info(f"Step 6.{self.part}.{self.step} set ending {ending.value}")
        self.ending.set(ending)

    # Outcomes

    def add_outcome(self, outcome: Outcome, message: str) -> None:
        self.repository.record_outcome(self.part, self.step, outcome, message)
        self.listener.add_outcome(self.part, self.step, outcome, message)

    def add_failure(self, message: str) -> None:
        self.add_outcome(Outcome.FAIL, message)

    def add_warning(self, message: str) -> None:
        self.add_outcome(Outcome.WARN, message)

    def add_info(self, message: str) -> None:
        """Transcript line only; no outcome is recorded."""
        self.listener.on_result(message)

    # Progress

    def increment_progress(self, message: str) -> None:
        self._progress += 1
        self.listener.on_progress(self._progress, self.total_steps, message)

    def update_progress(self, message: str) -> None:
        self.listener.on_progress(self._progress, self.total_steps, message)

    # Repository

    def save(self, packet: GenericPacket) -> None:
        self.repository.save(packet)

    def get(self, packet_class: Type[T], address: int) -> Optional[T]:
        return self.repository.get(packet_class, address)

    def obd_module_addresses(self) -> List[int]:
        return self.repository.obd_module_addresses()

    # Suspension points

    def pause_for(self, seconds: float) -> None:
        """
        Raises:
            Interrupted: If cancelled before or during the pause
        """
        self.check_ending()
        if not self.clock.pause_for(seconds, self.is_interrupted):
            self.check_ending()

    def wait_for(self, seconds: int, progress_text: str) -> None:
        """Count down with a progress update every second."""
        stop_time = self.clock.now() + seconds
        remaining = seconds
        while remaining > 0:
            self.update_progress(f"{progress_text} {remaining} seconds")
            self.pause_for(min(1.0, stop_time - self.clock.now()))
            remaining = math.ceil(round(stop_time - self.clock.now(), 6))

    def urgent_message(
        self,
        text: str,
        title: str,
        severity: MessageType,
        question_callback: Optional[QuestionCallback] = None,
    ) -> Optional[AnswerType]:
        self.check_ending()
        answer = self.listener.on_urgent_message(text, title, severity, question_callback)
        if answer == AnswerType.CANCEL:
            raise Interrupted()
        return answer

    def ensure_key_on_engine_on(self) -> None:
        """Prompt for key on engine on, then poll engine speed until it is running."""
        if self.engine_speed.is_engine_running():
            return
        self.urgent_message("Please turn the Engine ON with Key ON", "Adjust Key Switch", MessageType.WARNING)
        while not self.engine_speed.is_engine_running():
            self.update_progress("Waiting for Key ON, Engine ON...")
            self.pause_for(self.poll_interval)

    def ensure_key_on_engine_off(self) -> None:
        """Prompt for key on engine off, then poll engine speed until it is stopped."""
        if self.engine_speed.is_engine_not_running():
            return
        self.urgent_message("Please turn Key ON with Engine OFF", "Adjust Key Switch", MessageType.WARNING)
        while not self.engine_speed.is_engine_not_running():
            self.update_progress("Waiting for Key ON, Engine OFF...")
            self.pause_for(self.poll_interval)

    # Shared rules

    def compare_request_packets(self, global_packets: Sequence[GenericPacket], ds_packets: Sequence[GenericPacket],
                                citation: str) -> None:
        for message in compare_request_packets(global_packets, ds_packets, citation):
            self.add_failure(message)

    def check_for_nacks(self, global_packets: Sequence[GenericPacket], ds_acks: Sequence[AcknowledgmentPacket],
                        citation: str, addresses: Optional[Iterable[int]] = None) -> None:
        addresses = self.obd_module_addresses() if addresses is None else addresses
        for message in check_for_nacks(global_packets, ds_acks, addresses, citation):
            self.add_failure(message)

    def check_for_nacks_ds(self, ds_packets: Sequence[GenericPacket], ds_acks: Sequence[AcknowledgmentPacket],
                           citation: str, addresses: Optional[Iterable[int]] = None) -> None:
        addresses = self.obd_module_addresses() if addresses is None else addresses
        for message in check_for_nacks_ds(ds_packets, ds_acks, addresses, citation):
            self.add_failure(message)


def compare_request_packets(global_packets: Sequence[GenericPacket], ds_packets: Sequence[GenericPacket],
                            citation: str) -> List[str]:
    """
    Failure messages for modules whose DS response differs from their global one.

    Only modules that answered both requests are compared; packet equality
    ignores the receive time stamp and the destination address.
    """
    global_by_address = {packet.source_address: packet for packet in global_packets}
    ds_by_address = {packet.source_address: packet for packet in ds_packets}

    failures = []
    for address in sorted(global_by_address.keys() & ds_by_address.keys()):
        if global_by_address[address] != ds_by_address[address]:
            failures.append(f"{citation} - Difference compared to data received during global request "
                            f"from {get_address_name(address)}")
    return failures


def _nacked_addresses(acks: Iterable[AcknowledgmentPacket]) -> set:
    return {ack.source_address for ack in acks if ack.is_nack}


def check_for_nacks(global_packets: Sequence[GenericPacket], ds_acks: Sequence[AcknowledgmentPacket],
                    addresses: Iterable[int], citation: str) -> List[str]:
    """Failure messages for OBD modules absent from the global responses that did not NACK the DS request."""
    responded = {packet.source_address for packet in global_packets}
    nacked = _nacked_addresses(ds_acks)
    return [
        f"{citation} - OBD module {get_address_name(address)} did not provide a response to Global query "
        f"and did not provide a NACK for the DS query"
        for address in sorted(set(addresses))
        if address not in responded and address not in nacked
    ]


def check_for_nacks_ds(ds_packets: Sequence[GenericPacket], ds_acks: Sequence[AcknowledgmentPacket],
                       addresses: Iterable[int], citation: str) -> List[str]:
    """Failure messages for OBD modules that neither answered nor NACKed a DS request."""
    responded = {packet.source_address for packet in ds_packets}
    nacked = _nacked_addresses(ds_acks)
    return [
        f"{citation} - OBD module {get_address_name(address)} did not provide a NACK for the DS query"
        for address in sorted(set(addresses))
        if address not in responded and address not in nacked
    ]


class BaseStep(ABC):
    """
    One test step of J1939-84.

    Subclasses set PART_NUMBER, STEP_NUMBER, TOTAL_STEPS (sub-step count
    for progress) and DESCRIPTION, and implement run().
    """

    PART_NUMBER: int = 0
    STEP_NUMBER: int = 0
    TOTAL_STEPS: int = 0
    DESCRIPTION: str = ""

    @property
    def part_number(self) -> int:
        return self.PART_NUMBER

    @property
    def step_number(self) -> int:
        return self.STEP_NUMBER

    @property
    def display_name(self) -> str:
        return f"Part {self.PART_NUMBER} Step {self.STEP_NUMBER}"

    @property
    def banner(self) -> str:
        text = f"Step 6.{self.PART_NUMBER}.{self.STEP_NUMBER}"
        return f"{text} - {self.DESCRIPTION}" if self.DESCRIPTION else text

    @abstractmethod
    def run(self, ctx: StepContext) -> None:
        """
        Execute the step.

        Raises:
            Interrupted: When the run is cancelled at a suspension point
        """
        pass


class PlaceholderStep(BaseStep):
    """Stands in for a step that has no encoded rules."""

    def __init__(self, part: int, step: int):
        self.PART_NUMBER = part
        self.STEP_NUMBER = step

    def run(self, ctx: StepContext) -> None:
        ctx.add_outcome(Outcome.INCOMPLETE, "Step not encoded")

