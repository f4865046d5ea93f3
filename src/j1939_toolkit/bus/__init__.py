"""CAN bus access and J1939 transactions."""

from .adapter import AdapterDetector, AdapterInfo, AdapterType
from .j1939 import J1939, BusResult, RequestResult, ResultKind
from .manager import BusManager, ConnectionResult, ConnectionState
from .transport import TransportProtocol, bam_frames

__all__ = [
    "AdapterDetector",
    "AdapterInfo",
    "AdapterType",
    "J1939",
    "BusResult",
    "RequestResult",
    "ResultKind",
    "BusManager",
    "ConnectionResult",
    "ConnectionState",
    "TransportProtocol",
    "bam_frames",
]
