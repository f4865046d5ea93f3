"""Part 3: pending fault tests."""

from ..bus.j1939 import RequestResult
from ..controllers.step import BaseStep, StepContext
from ..packets.diagnostic import DM2PreviouslyActiveDTC
from ..packets.dtc import LampStatus


class Part03Step07(BaseStep):
    """DM2 previously active DTCs are absent and the MIL is off."""

    PART_NUMBER = 3
    STEP_NUMBER = 7
    DESCRIPTION = "DM2: Previously Active Diagnostic Trouble Codes"

    def run(self, ctx: StepContext) -> None:
        # 6.3.7.1.a Global DM2
        global_packets = ctx.diagnostic_messages.request_dm2(ctx.listener).packets

        for packet in global_packets:
            if not ctx.repository.is_obd_module(packet.source_address):
                # 6.3.7.2.c
                if packet.mil_status not in (LampStatus.OFF, LampStatus.NOT_SUPPORTED):
                    ctx.add_failure(f"6.3.7.2.c - Non-OBD ECU {packet.module_name} "
                                    f"did not report MIL off or not supported")
                continue

            # 6.3.7.2.a
            if packet.has_dtcs:
                ctx.add_failure(f"6.3.7.2.a - OBD ECU {packet.module_name} reported a previously active DTC")
            # 6.3.7.2.b
            if packet.mil_status != LampStatus.OFF:
                ctx.add_failure(f"6.3.7.2.b - OBD ECU {packet.module_name} did not report MIL off")

        # 6.3.7.3.a DS DM2 to each OBD ECU
        ds_results: RequestResult[DM2PreviouslyActiveDTC] = RequestResult()
        for address in ctx.obd_module_addresses():
            ds_results.add(ctx.diagnostic_messages.request_dm2_ds(ctx.listener, address))

        ctx.compare_request_packets(global_packets, ds_results.packets, "6.3.7.4.a")
        ctx.check_for_nacks(global_packets, ds_results.acks, "6.3.7.4.b")

        for packet in global_packets + ds_results.packets:
            ctx.save(packet)
