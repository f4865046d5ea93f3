"""DM1, DM2, DM5, DM21 and DM26 requests."""

from typing import List

from ..bus.j1939 import BusResult, RequestResult
from ..controllers.listener import ResultsListener
from ..errors import Interrupted
from ..packets.diagnostic import DM1ActiveDTCsPacket, DM2PreviouslyActiveDTC
from ..packets.readiness import (
    DM5DiagnosticReadinessPacket,
    DM21DiagnosticReadinessPacket,
    DM26TripDiagnosticReadinessPacket,
)
from .base import FunctionalModule

# DM1 is broadcast once a second
DM1_WINDOW = 3.0


class DiagnosticMessageModule(FunctionalModule):
    """Requests the diagnostic messages the steps evaluate."""

    def read_dm1(self, listener: ResultsListener, window: float = DM1_WINDOW) -> List[DM1ActiveDTCsPacket]:
        """
        Listen for broadcast DM1 packets, keeping the latest from each module.

        Raises:
            Interrupted: If the run was cancelled while listening
        """
        listener.on_result(f"{self._time()} Reading bus for {window:.0f} seconds for DM1 messages")
        packets = self.j1939.read_packets(DM1ActiveDTCsPacket, window)
        if packets is None:
            raise Interrupted()

        latest = {packet.source_address: packet for packet in packets}
        result = [latest[address] for address in sorted(latest)]
        for packet in result:
            self._write_packet(listener, packet)
        return result

    def request_dm2(self, listener: ResultsListener) -> RequestResult[DM2PreviouslyActiveDTC]:
        return self._request_global(listener, "Global DM2 Request", DM2PreviouslyActiveDTC)

    def request_dm2_ds(self, listener: ResultsListener, address: int) -> BusResult[DM2PreviouslyActiveDTC]:
        return self._request_ds(listener, f"DS DM2 Request to {address}", DM2PreviouslyActiveDTC, address)

    def request_dm5(self, listener: ResultsListener) -> RequestResult[DM5DiagnosticReadinessPacket]:
        return self._request_global(listener, "Global DM5 Request", DM5DiagnosticReadinessPacket)

    def request_dm21(self, listener: ResultsListener) -> RequestResult[DM21DiagnosticReadinessPacket]:
        return self._request_global(listener, "Global DM21 Request", DM21DiagnosticReadinessPacket)

    def request_dm21_ds(self, listener: ResultsListener, address: int) -> BusResult[DM21DiagnosticReadinessPacket]:
        return self._request_ds(listener, f"DS DM21 Request to {address}", DM21DiagnosticReadinessPacket, address)

    def request_dm26(self, listener: ResultsListener) -> RequestResult[DM26TripDiagnosticReadinessPacket]:
        return self._request_global(listener, "Global DM26 Request", DM26TripDiagnosticReadinessPacket)

    def request_dm26_ds(self, listener: ResultsListener, address: int) -> BusResult[DM26TripDiagnosticReadinessPacket]:
        return self._request_ds(listener, f"DS DM26 Request to {address}", DM26TripDiagnosticReadinessPacket, address)
