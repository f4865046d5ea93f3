"""Base class for the request modules used by test steps."""

import logging
from typing import Optional, Type, TypeVar

from ..bus.j1939 import J1939, BusResult, RequestResult
from ..clock import SystemClock, TimeSource
from ..controllers.listener import ResultsListener
from ..errors import BusError, Interrupted
from ..packets.acknowledgment import RequestPacket
from ..packets.generic import GenericPacket

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=GenericPacket)

TIMEOUT_LINE = "Timeout - No Response"


class FunctionalModule:
    """
    Issues J1939 requests on behalf of a step and writes them to the transcript.

    Every request, response and timeout is written to the listener as
    time-stamped raw frames followed by the decoded packet.
    """

    def __init__(self, j1939: Optional[J1939] = None, clock: Optional[TimeSource] = None):
        self._j1939 = j1939
        self._clock = clock or (j1939.clock if j1939 else SystemClock())

    def set_j1939(self, j1939: J1939) -> None:
        self._j1939 = j1939
        self._clock = j1939.clock

    @property
    def j1939(self) -> J1939:
        if self._j1939 is None:
            raise BusError("Not connected to the vehicle bus", recoverable=False)
        return self._j1939

    def _time(self) -> str:
        return self._clock.format_time()

    def _write_request(self, listener: ResultsListener, title: str, pgn: int, address: Optional[int]) -> None:
        request = RequestPacket.create(pgn, self.j1939.tool_address,
                                       destination_address=0xFF if address is None else address)
        listener.on_result(f"{self._time()} {title}")
        listener.on_result(f"{self._time()} {request.packet}")

    def _write_packet(self, listener: ResultsListener, packet: GenericPacket) -> None:
        listener.on_result(f"{self._time()} {packet.packet}")
        listener.on_result(str(packet))

    def _request_global(self, listener: ResultsListener, title: str, packet_class: Type[T]) -> RequestResult[T]:
        """
        Global request with transcript lines.

        Raises:
            Interrupted: If the run was cancelled while waiting
        """
        self._write_request(listener, title, packet_class.PGN, None)
        result = self.j1939.request_global(packet_class)
        if result.cancelled:
            raise Interrupted()

        for packet in result.packets:
            self._write_packet(listener, packet)
        for ack in result.acks:
            self._write_packet(listener, ack)
        if not result.packets and not result.acks:
            listener.on_result(f"{self._time()} {TIMEOUT_LINE}")
        return result

    def _request_ds(self, listener: ResultsListener, title: str, packet_class: Type[T], address: int) -> BusResult[T]:
        """
        Destination specific request with transcript lines.

        Raises:
            Interrupted: If the run was cancelled while waiting
        """
        self._write_request(listener, title, packet_class.PGN, address)
        result = self.j1939.request_ds(packet_class, address)
        if result.is_cancelled:
            raise Interrupted()

        if result.packet is not None:
            self._write_packet(listener, result.packet)
        elif result.ack is not None:
            self._write_packet(listener, result.ack)
        else:
            listener.on_result(f"{self._time()} {TIMEOUT_LINE}")
        return result

