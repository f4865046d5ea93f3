"""Static PGN to packet class registry."""

from typing import Dict, Optional, Type, TypeVar

from .acknowledgment import AcknowledgmentPacket, RequestPacket
from .diagnostic import DM1ActiveDTCsPacket, DM2PreviouslyActiveDTC
from .engine_speed import EngineSpeedPacket
from .generic import GenericPacket
from .packet import Packet
from .readiness import DM5DiagnosticReadinessPacket, DM21DiagnosticReadinessPacket, DM26TripDiagnosticReadinessPacket
from .vehicle import DM19CalibrationInformationPacket, VehicleIdentificationPacket

T = TypeVar("T", bound=GenericPacket)

PACKET_CLASSES: Dict[int, Type[GenericPacket]] = {
    cls.PGN: cls
    for cls in (
        AcknowledgmentPacket,
        RequestPacket,
        DM1ActiveDTCsPacket,
        DM2PreviouslyActiveDTC,
        DM5DiagnosticReadinessPacket,
        DM19CalibrationInformationPacket,
        DM21DiagnosticReadinessPacket,
        DM26TripDiagnosticReadinessPacket,
        EngineSpeedPacket,
        VehicleIdentificationPacket,
    )
}


def packet_class_for(pgn: int) -> Type[GenericPacket]:
    """Class used to parse a PGN; GenericPacket when none is registered."""
    return PACKET_CLASSES.get(pgn, GenericPacket)


def parse(packet: Packet) -> GenericPacket:
    """
    Parse a raw packet into its typed view.

    Raises:
        DecodeError: If the payload is too short for the registered class
    """
    return packet_class_for(packet.pgn)(packet)


def as_type(parsed: Optional[GenericPacket], cls: Type[T]) -> Optional[T]:
    """The packet as cls, or None when it is some other type."""
    return parsed if isinstance(parsed, cls) else None
