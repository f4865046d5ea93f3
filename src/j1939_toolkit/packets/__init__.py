"""J1939 packet codec: raw frames to typed packets."""

from .acknowledgment import AckResponse, AcknowledgmentPacket, RequestPacket
from .definitions import J1939DaRepository, SpnState, SpnValue
from .diagnostic import DM1ActiveDTCsPacket, DM2PreviouslyActiveDTC, DiagnosticTroubleCodePacket
from .dtc import DiagnosticTroubleCode, LampStatus
from .engine_speed import EngineSpeedPacket
from .generic import GenericPacket
from .lookup import get_address_name
from .packet import GLOBAL_ADDRESS, Packet
from .readiness import DM5DiagnosticReadinessPacket, DM21DiagnosticReadinessPacket, DM26TripDiagnosticReadinessPacket
from .registry import as_type, parse
from .vehicle import CalibrationInformation, DM19CalibrationInformationPacket, VehicleIdentificationPacket

__all__ = [
    "AckResponse",
    "AcknowledgmentPacket",
    "RequestPacket",
    "J1939DaRepository",
    "SpnState",
    "SpnValue",
    "DM1ActiveDTCsPacket",
    "DM2PreviouslyActiveDTC",
    "DiagnosticTroubleCodePacket",
    "DiagnosticTroubleCode",
    "LampStatus",
    "EngineSpeedPacket",
    "GenericPacket",
    "get_address_name",
    "GLOBAL_ADDRESS",
    "Packet",
    "DM5DiagnosticReadinessPacket",
    "DM21DiagnosticReadinessPacket",
    "DM26TripDiagnosticReadinessPacket",
    "as_type",
    "parse",
    "CalibrationInformation",
    "DM19CalibrationInformationPacket",
    "VehicleIdentificationPacket",
]
