"""Part 1: key on, engine off tests."""

from typing import List

from ..bus.j1939 import RequestResult
from ..controllers.listener import AnswerType, MessageType
from ..controllers.step import BaseStep, Ending, StepContext
from ..models.outcome import Outcome
from ..packets.definitions import SpnValue
from ..packets.readiness import DM21DiagnosticReadinessPacket

IDLE_SECONDS = 60


def _not_zero(value: SpnValue) -> bool:
    """Anything but a valid zero, including error and not available."""
    return not value.is_valid or value.value != 0


def _valid_not_zero(value: SpnValue) -> bool:
    return value.is_valid and value.value != 0


def _more_than_one_minute(value: SpnValue) -> bool:
    return value.is_valid and value.value > 1


class Part01Step11(BaseStep):
    """DM21 distance and time since code clear are zero after a code clear."""

    PART_NUMBER = 1
    STEP_NUMBER = 11
    DESCRIPTION = "DM21: Diagnostic Readiness 2"

    def _check(self, ctx: StepContext, packets: List[DM21DiagnosticReadinessPacket], section: str) -> None:
        for packet in packets:
            if _not_zero(packet.km_while_mil_is_activated):
                ctx.add_failure(f"6.1.11.{section}.a - {packet.module_name} reported distance with MIL on "
                                f"(SPN 3069) is not zero")
        for packet in packets:
            if _not_zero(packet.km_since_dtcs_cleared):
                ctx.add_failure(f"6.1.11.{section}.b - {packet.module_name} reported distance SCC "
                                f"(SPN 3294) is not zero")
        for packet in packets:
            if _valid_not_zero(packet.minutes_while_mil_is_activated):
                ctx.add_failure(f"6.1.11.{section}.c - {packet.module_name} reported time with MIL on "
                                f"(SPN 3295) is not zero")
        for packet in packets:
            if _more_than_one_minute(packet.minutes_since_dtcs_cleared):
                ctx.add_failure(f"6.1.11.{section}.d - {packet.module_name} reported time SCC "
                                f"(SPN 3296) > 1 minute")

    def run(self, ctx: StepContext) -> None:
        # 6.1.11.1.a Global DM21
        global_packets = ctx.diagnostic_messages.request_dm21(ctx.listener).packets

        if not global_packets:
            ctx.add_failure("6.1.11.1.e - No OBD ECU provided a DM21 message")
        else:
            self._check(ctx, global_packets, "1")

        # 6.1.11.3.a DS DM21 to each OBD ECU
        ds_results: RequestResult[DM21DiagnosticReadinessPacket] = RequestResult()
        for address in ctx.obd_module_addresses():
            ds_results.add(ctx.diagnostic_messages.request_dm21_ds(ctx.listener, address))

        self._check(ctx, ds_results.packets, "4")
        ctx.compare_request_packets(global_packets, ds_results.packets, "6.1.11.4.e")
        ctx.check_for_nacks(global_packets, ds_results.acks, "6.1.11.4.f")

        for packet in global_packets + ds_results.packets:
            ctx.save(packet)


TRANSITION_QUESTION = (
    "Ready to transition from Part 1 to Part 2 of the test\n"
    "a. Testing may be stopped for vehicles with failed tests and for vehicles with the MIL on "
    "or a non-emissions related fault displayed in DM1.\n"
    "   Vehicles with the MIL on will fail subsequent tests.\n\n"
    "This vehicle has had failures and will likely fail subsequent tests.  Would you still like to continue?\n"
)


class Part01Step27(BaseStep):
    """Part 1 to Part 2 transition."""

    PART_NUMBER = 1
    STEP_NUMBER = 27
    TOTAL_STEPS = 3
    DESCRIPTION = "Part 1 to Part 2 Transition"

    def run(self, ctx: StepContext) -> None:
        ctx.increment_progress("Part 1, Step 27 - Part 1 to Part 2 Transition")
        self._confirm_continue(ctx)

        ctx.increment_progress("Part 1, Step 27 b.i - Ensuring Key On, Engine On")
        ctx.ensure_key_on_engine_on()

        ctx.increment_progress("Part 1, Step 27 b.iii - Allowing engine to idle one minute")
        ctx.add_info(f"Allowing engine to idle for {IDLE_SECONDS} seconds")
        ctx.wait_for(IDLE_SECONDS, "Allowing engine to idle for")

    def _confirm_continue(self, ctx: StepContext) -> None:
        """Ask whether to continue, only when part 1 already has failures."""
        steps = ctx.repository.part_result(self.PART_NUMBER).steps.values()
        if not any(step.worst == Outcome.FAIL for step in steps):
            return

        def on_answer(answer: AnswerType) -> None:
            if answer == AnswerType.NO:
                ctx.add_outcome(Outcome.ABORT, "Aborting - user ended test")
                ctx.set_ending(Ending.ABORTED)

        ctx.urgent_message(TRANSITION_QUESTION, "Start Part 2", MessageType.QUESTION, on_answer)
        ctx.check_ending()
