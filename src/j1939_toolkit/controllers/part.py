"""Part controller: runs the steps of one part in order."""

import logging
import traceback
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Sequence

from ..clock import TimeSource
from ..errors import BusError, Interrupted
from ..models.outcome import Outcome, PartResult, StepState
from .data_repository import DataRepository
from .listener import ResultsListener
from .step import ENGINE_POLL_INTERVAL, BaseStep, Ending, EndingSignal, PlaceholderStep, StepContext

if TYPE_CHECKING:
    from ..bus.j1939 import J1939
    from ..modules import DiagnosticMessageModule, EngineSpeedModule, VehicleInformationModule

logger = logging.getLogger(__name__)


@dataclass
class RunEnvironment:
    """Values shared by every step of a run."""
    listener: ResultsListener
    repository: DataRepository
    clock: TimeSource
    j1939: Optional["J1939"] = None
    diagnostic_messages: Optional["DiagnosticMessageModule"] = None
    engine_speed: Optional["EngineSpeedModule"] = None
    vehicle_information: Optional["VehicleInformationModule"] = None
    poll_interval: float = ENGINE_POLL_INTERVAL
    ending: EndingSignal = field(default_factory=EndingSignal)

    def context(self, step: BaseStep) -> StepContext:
        return StepContext(
            part=step.part_number,
            step=step.step_number,
            listener=self.listener,
            repository=self.repository,
            clock=self.clock,
            j1939=self.j1939,
            diagnostic_messages=self.diagnostic_messages,
            engine_speed=self.engine_speed,
            vehicle_information=self.vehicle_information,
            total_steps=step.TOTAL_STEPS,
            ending=self.ending,
            poll_interval=self.poll_interval,
        )


class PartController:
    """
    Runs steps 1..step_count of a part.

    Step numbers without an encoded step run a placeholder that records
    INCOMPLETE, so numbering stays dense and in declared order.
    """

    def __init__(self, part_number: int, display_name: str, step_count: int, steps: Sequence[BaseStep] = ()):
        numbers = [step.step_number for step in steps]
        if numbers != sorted(set(numbers)):
            raise ValueError(f"Steps of part {part_number} must be strictly ascending: {numbers}")
        for step in steps:
            if step.part_number != part_number:
                raise ValueError(f"{step.display_name} does not belong to part {part_number}")
            if not 1 <= step.step_number <= step_count:
                raise ValueError(f"{step.display_name} is outside 1..{step_count}")

        self.part_number = part_number
        self.display_name = display_name
        self.step_count = step_count
        self._steps = {step.step_number: step for step in steps}

    @property
    def encoded_steps(self) -> List[BaseStep]:
        return [self._steps[number] for number in sorted(self._steps)]

    def step_controllers(self) -> List[BaseStep]:
        return [
            self._steps.get(number) or PlaceholderStep(self.part_number, number)
            for number in range(1, self.step_count + 1)
        ]

    def _banner(self, env: RunEnvironment, text: str) -> None:
        env.listener.on_result(f"{env.clock.format_time()} {text}")

    def execute(self, env: RunEnvironment) -> PartResult:
        """
        Run every step in order.

        Interrupted records ABORT and stops the part. BusError records FAIL
        and stops the part only when the error is unrecoverable. Any other
        exception records FAIL and the part moves on to the next step.
        """
        listener = env.listener
        result = env.repository.part_result(self.part_number, self.display_name)
        result.state = StepState.RUNNING
        result.start_time = env.clock.wall_time()

        logger.info(f"Starting {self.display_name}")
        listener.begin_part(self.part_number, self.display_name)
        self._banner(env, f"START {self.display_name}")

        steps = self.step_controllers()
        for index, step in enumerate(steps, 1):
            if env.ending.ending == Ending.COMPLETED:
                logger.info(f"{self.display_name} completed early before step {step.step_number}")
                break

            step_result = result.step_result(step.step_number, step.DESCRIPTION)
            step_result.state = StepState.RUNNING
            listener.on_progress(index, len(steps), step.banner)
            listener.begin_step(self.part_number, step.step_number, step.display_name)
            self._banner(env, step.banner)

            ctx = env.context(step)
            if env.j1939 is not None:
                env.j1939.set_cancel_check(ctx.is_interrupted)
                env.j1939.set_decode_error_handler(lambda e, ctx=ctx: ctx.add_failure(f"decode error - {e}"))

            stop = False
            try:
                ctx.check_ending()
                step.run(ctx)
                ctx.check_ending()
                step_result.state = StepState.COMPLETED
            except Interrupted as e:
                logger.warning(f"{step.display_name} interrupted: {e.message}")
                if step_result.worst != Outcome.ABORT:
                    ctx.add_outcome(Outcome.ABORT, e.message)
                step_result.state = StepState.ABORTED
                result.state = StepState.ABORTED
                stop = True
            except BusError as e:
                logger.error(f"{step.display_name} bus error: {e}")
                ctx.add_failure(f"Bus error - {e}")
                step_result.state = StepState.FAILED_UNEXPECTED
                if not e.recoverable:
                    result.state = StepState.FAILED_UNEXPECTED
                    stop = True
            except Exception as e:
                logger.exception(f"{step.display_name} failed unexpectedly")
                ctx.add_failure(f"Unexpected error - {e}")
                ctx.add_info(traceback.format_exc().rstrip())
                step_result.state = StepState.FAILED_UNEXPECTED
            finally:
                if env.j1939 is not None:
                    env.j1939.set_decode_error_handler(None)
                listener.end_step(self.part_number, step.step_number, step.display_name, step_result.worst)

            if stop:
                break

        if result.state == StepState.RUNNING:
            result.state = StepState.COMPLETED
        result.end_time = env.clock.wall_time()

        self._summary(env, result)
        listener.end_part(self.part_number, self.display_name, result.worst)
        logger.info(f"Finished {self.display_name}: {result.worst.value}")
        return result

    def _summary(self, env: RunEnvironment, result: PartResult) -> None:
        counts = ", ".join(f"{outcome.value} {count}" for outcome, count in result.counts.items())
        self._banner(env, f"END {self.display_name}")
        env.listener.on_result(f"{self.display_name}: {result.worst.value} ({counts})")
