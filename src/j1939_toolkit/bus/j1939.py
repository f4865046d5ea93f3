"""J1939 request/response transactions over a python-can bus."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Generic, List, Optional, Type, TypeVar

import can

from ..clock import PAUSE_QUANTUM, SystemClock, TimeSource
from ..errors import BusError, DecodeError
from ..packets.acknowledgment import AckResponse, AcknowledgmentPacket, RequestPacket
from ..packets.generic import GenericPacket
from ..packets.packet import GLOBAL_ADDRESS, Packet
from ..packets.registry import parse
from .transport import TransportProtocol, bam_frames

logger = logging.getLogger(__name__)

TOOL_ADDRESS = 0xF9
GLOBAL_WINDOW = 1.25
DS_TIMEOUT = 0.22
DS_RETRIES = 2

T = TypeVar("T", bound=GenericPacket)


class ResultKind(str, Enum):
    """Outcome of a destination specific transaction."""
    PACKET = "packet"
    ACK = "ack"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


@dataclass
class BusResult(Generic[T]):
    """Exactly one of packet received, acknowledgment received, timeout or cancelled."""
    kind: ResultKind
    packet: Optional[T] = None
    ack: Optional[AcknowledgmentPacket] = None
    attempts: int = 1

    @classmethod
    def of_packet(cls, packet: T, attempts: int = 1) -> "BusResult[T]":
        return cls(ResultKind.PACKET, packet=packet, attempts=attempts)

    @classmethod
    def of_ack(cls, ack: AcknowledgmentPacket, attempts: int = 1) -> "BusResult[T]":
        return cls(ResultKind.ACK, ack=ack, attempts=attempts)

    @classmethod
    def timeout(cls, attempts: int = 1) -> "BusResult[T]":
        return cls(ResultKind.TIMEOUT, attempts=attempts)

    @classmethod
    def cancelled(cls) -> "BusResult[T]":
        return cls(ResultKind.CANCELLED)

    @property
    def is_timeout(self) -> bool:
        return self.kind == ResultKind.TIMEOUT

    @property
    def is_cancelled(self) -> bool:
        return self.kind == ResultKind.CANCELLED

    @property
    def is_nack(self) -> bool:
        return self.ack is not None and self.ack.response == AckResponse.NACK


@dataclass
class RequestResult(Generic[T]):
    """Packets and acknowledgments collected by one or more transactions, in receive order."""
    packets: List[T] = field(default_factory=list)
    acks: List[AcknowledgmentPacket] = field(default_factory=list)
    cancelled: bool = False

    def add(self, result: BusResult[T]) -> "RequestResult[T]":
        """Merge a destination specific result."""
        if result.packet is not None:
            self.packets.append(result.packet)
        if result.ack is not None:
            self.acks.append(result.ack)
        if result.is_cancelled:
            self.cancelled = True
        return self

    def extend(self, other: "RequestResult[T]") -> "RequestResult[T]":
        self.packets.extend(other.packets)
        self.acks.extend(other.acks)
        self.cancelled = self.cancelled or other.cancelled
        return self

    @property
    def nacks(self) -> List[AcknowledgmentPacket]:
        return [ack for ack in self.acks if ack.is_nack]

    @property
    def source_addresses(self) -> List[int]:
        return sorted({packet.source_address for packet in self.packets})

    def __len__(self) -> int:
        return len(self.packets)


class J1939:
    """
    Serial request/response access to the vehicle bus.

    Every transaction polls is_cancelled at least once per pause quantum and
    returns a cancelled result instead of waiting out its window.
    """

    def __init__(
        self,
        bus: can.BusABC,
        clock: Optional[TimeSource] = None,
        tool_address: int = TOOL_ADDRESS,
        global_window: float = GLOBAL_WINDOW,
        ds_timeout: float = DS_TIMEOUT,
        ds_retries: int = DS_RETRIES,
        is_cancelled: Optional[Callable[[], bool]] = None,
    ):
        self._bus = bus
        self._clock = clock or SystemClock()
        self._tool_address = tool_address
        self._global_window = global_window
        self._ds_timeout = ds_timeout
        self._ds_retries = ds_retries
        self._is_cancelled = is_cancelled or (lambda: False)
        self._transport = TransportProtocol(tool_address, self.send)
        self._decode_error_handler: Optional[Callable[[DecodeError], None]] = None

    @property
    def tool_address(self) -> int:
        return self._tool_address

    @property
    def clock(self) -> TimeSource:
        return self._clock

    def set_cancel_check(self, is_cancelled: Callable[[], bool]) -> None:
        self._is_cancelled = is_cancelled

    def set_decode_error_handler(self, handler: Optional[Callable[[DecodeError], None]]) -> None:
        """Route decode failures of received packets to handler (None to only log them)."""
        self._decode_error_handler = handler

    def send(self, packet: Packet) -> None:
        """
        Transmit a packet, using BAM when it does not fit one frame.

        Raises:
            BusError: If the adapter rejects the frame
        """
        frames = [packet] if packet.length <= 8 else bam_frames(packet)
        for frame in frames:
            message = can.Message(arbitration_id=frame.identifier, data=frame.data, is_extended_id=True)
            logger.debug(f"TX {frame}")
            try:
                self._bus.send(message)
            except can.CanError as e:
                logger.error(f"Send failed: {e}")
                raise BusError(f"Failed to send {frame}: {e}", recoverable=True) from e

    def read(self, timeout: float) -> Optional[Packet]:
        """
        Receive the next complete packet, reassembling transport sessions.

        Returns:
            The packet, or None when nothing complete arrived within timeout

        Raises:
            BusError: If the adapter reports a failure (link down)
        """
        try:
            message = self._bus.recv(timeout=timeout)
        except can.CanError as e:
            logger.error(f"Receive failed: {e}")
            raise BusError(f"CAN adapter failure: {e}", recoverable=False) from e

        if message is None or not message.is_extended_id or message.is_error_frame or message.is_remote_frame:
            return None

        packet = Packet.from_identifier(message.arbitration_id, bytes(message.data), self._clock.now())
        if packet.source_address == self._tool_address:
            return None
        logger.debug(f"RX {packet}")
        return self._transport.process(packet)

    def _parse(self, packet: Packet) -> Optional[GenericPacket]:
        try:
            return parse(packet)
        except DecodeError as e:
            logger.warning(f"Decode error: {e}")
            if self._decode_error_handler:
                self._decode_error_handler(e)
            return None

    def _collect(self, window: float, accept: Callable[[GenericPacket], bool]) -> Optional[List[GenericPacket]]:
        """Parsed packets passing accept until window elapses; None if cancelled."""
        collected = []
        deadline = self._clock.now() + window
        while True:
            if self._is_cancelled():
                return None
            remaining = deadline - self._clock.now()
            if remaining <= 0:
                return collected
            packet = self.read(min(remaining, PAUSE_QUANTUM))
            if packet is None:
                continue
            parsed = self._parse(packet)
            if parsed is not None and accept(parsed):
                collected.append(parsed)

    def _is_ack_for(self, parsed: GenericPacket, pgn: int, source_address: Optional[int] = None) -> bool:
        if not isinstance(parsed, AcknowledgmentPacket) or parsed.pgn_requested != pgn:
            return False
        if parsed.destination_address not in (GLOBAL_ADDRESS, self._tool_address):
            return False
        return source_address is None or parsed.source_address == source_address

    def request_global(self, packet_class: Type[T], pgn: Optional[int] = None) -> RequestResult[T]:
        """
        Request a PGN from every module and collect responses for the global window.

        Args:
            packet_class: Typed packet class of the requested PGN
            pgn: Override for classes shared by several PGNs

        Returns:
            Responses and acknowledgments in receive order
        """
        pgn = pgn if pgn is not None else packet_class.PGN
        logger.info(f"Global request for PGN {pgn}")
        self.send(RequestPacket.create(pgn, self._tool_address).packet)

        result: RequestResult[T] = RequestResult()
        collected = self._collect(
            self._global_window,
            lambda parsed: parsed.pgn == pgn or self._is_ack_for(parsed, pgn),
        )
        if collected is None:
            result.cancelled = True
            return result

        for parsed in collected:
            if isinstance(parsed, AcknowledgmentPacket) and parsed.pgn != pgn:
                result.acks.append(parsed)
            else:
                result.packets.append(parsed)
        logger.info(f"Global request for PGN {pgn}: {len(result.packets)} responses, {len(result.acks)} acks")
        return result

    def request_ds(self, packet_class: Type[T], address: int, pgn: Optional[int] = None) -> BusResult[T]:
        """
        Request a PGN from one module.

        Each attempt waits the DS timeout; attempts are retried only when
        nothing at all was received from the module.
        """
        pgn = pgn if pgn is not None else packet_class.PGN
        request = RequestPacket.create(pgn, self._tool_address, destination_address=address).packet

        def accept(parsed: GenericPacket) -> bool:
            if parsed.pgn == pgn and parsed.source_address == address:
                return True
            return self._is_ack_for(parsed, pgn, address)

        attempts = self._ds_retries + 1
        for attempt in range(1, attempts + 1):
            if self._is_cancelled():
                return BusResult.cancelled()
            logger.info(f"DS request for PGN {pgn} to {address}, attempt {attempt}")
            self.send(request)

            collected = self._collect_one(self._ds_timeout, accept)
            if collected is None:
                return BusResult.cancelled()
            if collected is False:
                continue
            if isinstance(collected, AcknowledgmentPacket) and collected.pgn != pgn:
                return BusResult.of_ack(collected, attempt)
            return BusResult.of_packet(collected, attempt)

        logger.info(f"DS request for PGN {pgn} to {address} timed out")
        return BusResult.timeout(attempts)

    def _collect_one(self, window: float, accept: Callable[[GenericPacket], bool]):
        """First accepted packet within window, False on timeout, None if cancelled."""
        deadline = self._clock.now() + window
        while True:
            if self._is_cancelled():
                return None
            remaining = deadline - self._clock.now()
            if remaining <= 0:
                return False
            packet = self.read(min(remaining, PAUSE_QUANTUM))
            if packet is None:
                continue
            parsed = self._parse(packet)
            if parsed is not None and accept(parsed):
                return parsed

    def read_packets(self, packet_class: Type[T], window: float) -> Optional[List[T]]:
        """
        Listen for broadcast packets of one PGN.

        Returns:
            Packets in receive order, or None if cancelled
        """
        pgn = packet_class.PGN
        return self._collect(window, lambda parsed: parsed.pgn == pgn)
