"""Acknowledgment (PGN 59392) and Request (PGN 59904) packets."""

from enum import Enum
from typing import Optional

from .generic import GenericPacket
from .packet import GLOBAL_ADDRESS, Packet


class AckResponse(int, Enum):
    """Control byte of an Acknowledgment."""
    ACK = 0
    NACK = 1
    DENIED = 2
    BUSY = 3

    @property
    def label(self) -> str:
        return {
            AckResponse.ACK: "ACK",
            AckResponse.NACK: "NACK",
            AckResponse.DENIED: "Access Denied",
            AckResponse.BUSY: "Busy",
        }[self]


class AcknowledgmentPacket(GenericPacket):
    """
    Positive or negative acknowledgment of a request.

    Byte 0 control, byte 1 group function, bytes 2-3 reserved, byte 4 the
    address being acknowledged, bytes 5-7 the acknowledged PGN (little endian).
    """

    PGN = 59392
    NAME = "Acknowledgment"
    MIN_LENGTH = 8

    @classmethod
    def create(
        cls,
        source_address: int,
        response: AckResponse,
        pgn_requested: int = 0,
        address_acknowledged: int = 0xF9,
        group_function: int = 0xFF,
        destination_address: int = GLOBAL_ADDRESS,
        timestamp: float = 0.0,
    ) -> "AcknowledgmentPacket":
        data = bytes([
            int(response),
            group_function & 0xFF,
            0xFF,
            0xFF,
            address_acknowledged & 0xFF,
            pgn_requested & 0xFF,
            (pgn_requested >> 8) & 0xFF,
            (pgn_requested >> 16) & 0xFF,
        ])
        return cls(Packet(pgn=cls.PGN, source_address=source_address, data=data,
                          destination_address=destination_address, timestamp=timestamp))

    @property
    def control_byte(self) -> int:
        return self._packet.get(0)

    @property
    def response(self) -> Optional[AckResponse]:
        try:
            return AckResponse(self.control_byte)
        except ValueError:
            return None

    @property
    def group_function(self) -> int:
        return self._packet.get(1)

    @property
    def address_acknowledged(self) -> int:
        return self._packet.get(4)

    @property
    def pgn_requested(self) -> int:
        return self._packet.get24(5)

    @property
    def is_nack(self) -> bool:
        return self.response == AckResponse.NACK

    def __str__(self) -> str:
        response = self.response.label if self.response is not None else f"Unknown ({self.control_byte})"
        return (f"{self.string_prefix}Response: {response}, Group Function: {self.group_function}, "
                f"Address Acknowledged: {self.address_acknowledged}, PGN Requested: {self.pgn_requested}")


class RequestPacket(GenericPacket):
    """Request for a parameter group, global or destination specific."""

    PGN = 59904
    NAME = "Request"
    MIN_LENGTH = 3

    @classmethod
    def create(cls, pgn: int, source_address: int, destination_address: int = GLOBAL_ADDRESS) -> "RequestPacket":
        data = bytes([pgn & 0xFF, (pgn >> 8) & 0xFF, (pgn >> 16) & 0xFF])
        return cls(Packet(pgn=cls.PGN, source_address=source_address, data=data,
                          destination_address=destination_address))

    @property
    def requested_pgn(self) -> int:
        return self._packet.get24(0)

    @property
    def is_global(self) -> bool:
        return self.destination_address == GLOBAL_ADDRESS

    def __str__(self) -> str:
        target = "Global" if self.is_global else f"DS to {self.destination_address}"
        return f"{self.string_prefix}{target} Request for PGN {self.requested_pgn}"
