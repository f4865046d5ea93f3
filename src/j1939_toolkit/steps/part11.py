"""Part 11: exercise general denominator tests."""

from ..bus.j1939 import RequestResult
from ..controllers.step import BaseStep, StepContext
from ..packets.readiness import DM26TripDiagnosticReadinessPacket

# Drift between the reported and the measured time since engine start must stay below this
TIME_TOLERANCE_SECONDS = 10


class Part11Step11(BaseStep):
    """DM26 time since engine start keeps pace with the clock."""

    PART_NUMBER = 11
    STEP_NUMBER = 11
    DESCRIPTION = "DM26: Diagnostic Readiness 3"

    def run(self, ctx: StepContext) -> None:
        # 6.11.11.1.a DS DM26 to each OBD ECU
        results: RequestResult[DM26TripDiagnosticReadinessPacket] = RequestResult()
        for address in ctx.obd_module_addresses():
            results.add(ctx.diagnostic_messages.request_dm26_ds(ctx.listener, address))

        # 6.11.11.2.a
        for packet in results.packets:
            if not self._is_time_consistent(ctx, packet):
                ctx.add_failure(f"6.11.11.2.a - {packet.module_name} reported time since engine start "
                                f"differs by more than ±{TIME_TOLERANCE_SECONDS} seconds from expected value")

        # 6.11.11.2.b
        ctx.check_for_nacks_ds(results.packets, results.acks, "6.11.11.2.b")

        # 6.11.11.1.b recorded last so the previous packets are still available above
        for packet in results.packets:
            ctx.save(packet)

    @staticmethod
    def _is_time_consistent(ctx: StepContext, current: DM26TripDiagnosticReadinessPacket) -> bool:
        previous = ctx.get(DM26TripDiagnosticReadinessPacket, current.source_address)
        if previous is None:
            return False

        current_seconds = current.time_since_engine_start
        previous_seconds = previous.time_since_engine_start
        if not current_seconds.is_valid or not previous_seconds.is_valid:
            return False

        elapsed = current.timestamp - previous.timestamp
        reported = current_seconds.value - previous_seconds.value
        return abs(elapsed - reported) < TIME_TOLERANCE_SECONDS
