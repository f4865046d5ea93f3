"""J1939-21 transport protocol: BAM and RTS/CTS reassembly."""

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, Dict, List, Optional, Tuple

from ..packets.packet import GLOBAL_ADDRESS, MAX_PAYLOAD, Packet

logger = logging.getLogger(__name__)

TP_CM_PGN = 60416
TP_DT_PGN = 60160
TP_PRIORITY = 7
BYTES_PER_FRAME = 7
MAX_PACKETS_PER_CTS = 16

# Session is dropped when no frame arrives within T1/T2 of J1939-21
SESSION_TIMEOUT = 0.75


class ControlByte(IntEnum):
    """TP.CM control byte."""
    RTS = 0x10
    CTS = 0x11
    END_OF_MESSAGE_ACK = 0x13
    BAM = 0x20
    ABORT = 0xFF


class AbortReason(IntEnum):
    ALREADY_IN_SESSION = 1
    RESOURCES = 2
    TIMEOUT = 3
    BAD_SEQUENCE = 7


def _pgn_bytes(pgn: int) -> List[int]:
    return [pgn & 0xFF, (pgn >> 8) & 0xFF, (pgn >> 16) & 0xFF]


@dataclass
class _Session:
    """Reassembly state for one sender."""
    pgn: int
    size: int
    total_packets: int
    source_address: int
    destination_address: int
    last_frame: float
    max_per_cts: int = MAX_PACKETS_PER_CTS
    frames: Dict[int, bytes] = field(default_factory=dict)
    next_sequence: int = 1
    window_end: int = 0

    @property
    def is_bam(self) -> bool:
        return self.destination_address == GLOBAL_ADDRESS

    @property
    def complete(self) -> bool:
        return len(self.frames) >= self.total_packets

    def payload(self) -> bytes:
        data = b"".join(self.frames[i] for i in range(1, self.total_packets + 1))
        return data[:self.size]


class TransportProtocol:
    """
    Reassembles multi-frame messages for one local address.

    Feed every received frame to process(); it returns the reassembled
    Packet when a session completes, the frame itself when it is not a
    transport frame, and None while a session is still in progress. RTS
    sessions addressed to the local address are answered with CTS and an
    end of message acknowledgment through the send callback.
    """

    def __init__(self, local_address: int, send: Callable[[Packet], None]):
        self._local_address = local_address
        self._send = send
        self._sessions: Dict[Tuple[int, int], _Session] = {}

    @property
    def active_sessions(self) -> int:
        return len(self._sessions)

    def process(self, packet: Packet) -> Optional[Packet]:
        self._expire(packet.timestamp)
        if packet.pgn == TP_CM_PGN:
            return self._control(packet)
        if packet.pgn == TP_DT_PGN:
            return self._data(packet)
        return packet

    def _is_for_us(self, packet: Packet) -> bool:
        return packet.destination_address in (GLOBAL_ADDRESS, self._local_address)

    def _control(self, packet: Packet) -> Optional[Packet]:
        if packet.length < 8 or not self._is_for_us(packet):
            return None

        control = packet.get(0)
        pgn = packet.get24(5)
        key = (packet.source_address, packet.destination_address)

        if control in (ControlByte.BAM, ControlByte.RTS):
            size = packet.get16(1)
            total_packets = packet.get(3)
            if size > MAX_PAYLOAD or total_packets * BYTES_PER_FRAME < size:
                logger.warning(f"TP: rejecting {size} byte session from {packet.source_address}")
                if control == ControlByte.RTS:
                    self._abort(packet.source_address, pgn, AbortReason.RESOURCES)
                return None

            if key in self._sessions:
                logger.warning(f"TP: new session from {packet.source_address} replaces one in progress")

            session = _Session(
                pgn=pgn,
                size=size,
                total_packets=total_packets,
                source_address=packet.source_address,
                destination_address=packet.destination_address,
                last_frame=packet.timestamp,
            )
            self._sessions[key] = session

            if control == ControlByte.RTS:
                session.max_per_cts = min(packet.get(4), MAX_PACKETS_PER_CTS) or MAX_PACKETS_PER_CTS
                self._clear_to_send(session)
            return None

        if control == ControlByte.ABORT:
            if self._sessions.pop(key, None):
                logger.warning(f"TP: session for PGN {pgn} aborted by {packet.source_address}")
            return None

        return None

    def _data(self, packet: Packet) -> Optional[Packet]:
        key = (packet.source_address, packet.destination_address)
        session = self._sessions.get(key)
        if session is None or packet.length < 2:
            return None

        sequence = packet.get(0)
        if sequence < 1 or sequence > session.total_packets:
            logger.warning(f"TP: bad sequence {sequence} from {packet.source_address}")
            del self._sessions[key]
            if not session.is_bam:
                self._abort(session.source_address, session.pgn, AbortReason.BAD_SEQUENCE)
            return None

        session.frames[sequence] = packet.data[1:8]
        session.last_frame = packet.timestamp

        if session.complete:
            del self._sessions[key]
            if not session.is_bam:
                self._end_of_message(session)
            logger.debug(f"TP: reassembled {session.size} bytes of PGN {session.pgn} from {session.source_address}")
            return Packet(
                pgn=session.pgn,
                source_address=session.source_address,
                data=session.payload(),
                destination_address=session.destination_address,
                timestamp=packet.timestamp,
            )

        if not session.is_bam and sequence >= session.window_end:
            self._clear_to_send(session, sequence + 1)
        return None

    def _expire(self, now: float) -> None:
        for key, session in list(self._sessions.items()):
            if now - session.last_frame > SESSION_TIMEOUT:
                logger.warning(f"TP: session for PGN {session.pgn} from {session.source_address} timed out")
                del self._sessions[key]
                if not session.is_bam:
                    self._abort(session.source_address, session.pgn, AbortReason.TIMEOUT)

    def _clear_to_send(self, session: _Session, next_sequence: int = 1) -> None:
        count = min(session.max_per_cts, session.total_packets - next_sequence + 1)
        session.next_sequence = next_sequence
        session.window_end = next_sequence + count - 1
        self._send_cm(session.source_address,
                      [ControlByte.CTS, count, next_sequence, 0xFF, 0xFF] + _pgn_bytes(session.pgn))

    def _end_of_message(self, session: _Session) -> None:
        self._send_cm(session.source_address,
                      [ControlByte.END_OF_MESSAGE_ACK, session.size & 0xFF, session.size >> 8,
                       session.total_packets, 0xFF] + _pgn_bytes(session.pgn))

    def _abort(self, destination: int, pgn: int, reason: AbortReason) -> None:
        self._send_cm(destination, [ControlByte.ABORT, reason, 0xFF, 0xFF, 0xFF] + _pgn_bytes(pgn))

    def _send_cm(self, destination: int, data: List[int]) -> None:
        self._send(Packet(pgn=TP_CM_PGN, source_address=self._local_address, data=bytes(data),
                          priority=TP_PRIORITY, destination_address=destination))


def bam_frames(packet: Packet) -> List[Packet]:
    """
    Split a packet longer than 8 bytes into a BAM announcement and data frames.

    Used to broadcast multi-frame messages and by simulated ECUs in tests.
    """
    data = packet.data
    total = (len(data) + BYTES_PER_FRAME - 1) // BYTES_PER_FRAME
    frames = [Packet(
        pgn=TP_CM_PGN,
        source_address=packet.source_address,
        data=bytes([ControlByte.BAM, len(data) & 0xFF, len(data) >> 8, total, 0xFF] + _pgn_bytes(packet.pgn)),
        priority=TP_PRIORITY,
        destination_address=GLOBAL_ADDRESS,
        timestamp=packet.timestamp,
    )]
    for index in range(total):
        chunk = data[index * BYTES_PER_FRAME:(index + 1) * BYTES_PER_FRAME]
        frames.append(Packet(
            pgn=TP_DT_PGN,
            source_address=packet.source_address,
            data=bytes([index + 1]) + chunk.ljust(BYTES_PER_FRAME, b"\xff"),
            priority=TP_PRIORITY,
            destination_address=GLOBAL_ADDRESS,
            timestamp=packet.timestamp,
        ))
    return frames
