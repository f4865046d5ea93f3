"""Diagnostic Trouble Codes and lamp states carried by DM1/DM2."""

from dataclasses import dataclass
from enum import Enum

from ..errors import DecodeError


class LampStatus(str, Enum):
    """Two-bit lamp state from the first byte of a DTC packet."""
    OFF = "off"
    ON = "on"
    RESERVED = "reserved"
    NOT_SUPPORTED = "not supported"

    @classmethod
    def from_bits(cls, bits: int) -> "LampStatus":
        return _LAMP_BY_BITS[bits & 0x03]

    @property
    def bits(self) -> int:
        return _BITS_BY_LAMP[self]


_LAMP_BY_BITS = {
    0b00: LampStatus.OFF,
    0b01: LampStatus.ON,
    0b10: LampStatus.RESERVED,
    0b11: LampStatus.NOT_SUPPORTED,
}
_BITS_BY_LAMP = {lamp: bits for bits, lamp in _LAMP_BY_BITS.items()}


@dataclass(frozen=True)
class DiagnosticTroubleCode:
    """A single DTC: SPN (19 bits), FMI (5 bits), occurrence count (7 bits), CM (1 bit)."""
    spn: int
    fmi: int
    occurrence_count: int = 0
    conversion_method: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.spn < (1 << 19):
            raise ValueError(f"SPN out of range: {self.spn}")
        if not 0 <= self.fmi < (1 << 5):
            raise ValueError(f"FMI out of range: {self.fmi}")
        if not 0 <= self.occurrence_count < (1 << 7):
            raise ValueError(f"Occurrence count out of range: {self.occurrence_count}")
        if self.conversion_method not in (0, 1):
            raise ValueError(f"Conversion method must be 0 or 1: {self.conversion_method}")

    @classmethod
    def create(cls, spn: int, fmi: int, occurrence_count: int = 0, conversion_method: int = 0) -> "DiagnosticTroubleCode":
        return cls(spn, fmi, occurrence_count, conversion_method)

    @classmethod
    def from_bytes(cls, data: bytes) -> "DiagnosticTroubleCode":
        """Decode the four-byte wire form (conversion method 0 layout)."""
        if len(data) < 4:
            raise DecodeError(f"DTC requires 4 bytes, got {len(data)}")
        spn = data[0] | (data[1] << 8) | ((data[2] & 0xE0) << 11)
        fmi = data[2] & 0x1F
        conversion_method = (data[3] >> 7) & 0x01
        occurrence_count = data[3] & 0x7F
        return cls(spn, fmi, occurrence_count, conversion_method)

    def to_bytes(self) -> bytes:
        return bytes([
            self.spn & 0xFF,
            (self.spn >> 8) & 0xFF,
            ((self.spn >> 11) & 0xE0) | (self.fmi & 0x1F),
            ((self.conversion_method & 0x01) << 7) | (self.occurrence_count & 0x7F),
        ])

    def __str__(self) -> str:
        return f"DTC {self.spn}:{self.fmi} - SPN {self.spn} FMI {self.fmi} - {self.occurrence_count} times"
