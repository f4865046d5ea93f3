"""Engine speed (SPN 190) from EEC1."""

from typing import Optional

from .definitions import SpnValue
from .generic import GenericPacket
from .packet import Packet


class EngineSpeedPacket(GenericPacket):
    """The packet responsible for translating Engine Speed (SPN 190)."""

    PGN = 61444
    NAME = "Engine Speed"
    MIN_LENGTH = 5

    @classmethod
    def create(cls, source_address: int, rpm: Optional[float], timestamp: float = 0.0) -> "EngineSpeedPacket":
        """Build an EEC1 carrying only engine speed; None encodes "not available"."""
        raw = 0xFFFF if rpm is None else int(round(rpm / 0.125)) & 0xFFFF
        data = bytes([0xFF, 0xFF, 0xFF, raw & 0xFF, raw >> 8, 0xFF, 0xFF, 0xFF])
        return cls(Packet(pgn=cls.PGN, source_address=source_address, data=data, priority=3, timestamp=timestamp))

    @property
    def engine_speed(self) -> SpnValue:
        """Engine speed in revolutions per minute."""
        return self.spn_value(190)

    @property
    def rpm(self) -> Optional[float]:
        value = self.engine_speed
        return value.value if value.is_valid else None

    def is_error(self) -> bool:
        """True if the ECU flags the engine speed signal as errored."""
        return self.engine_speed.is_error

    def is_not_available(self) -> bool:
        """True if the ECU could not read the engine speed."""
        return self.engine_speed.is_not_available

    def __str__(self) -> str:
        value = self.engine_speed
        if value.is_valid:
            return self.string_prefix + f"{value.value:.3f} RPM"
        return self.string_prefix + value.formatted_value
