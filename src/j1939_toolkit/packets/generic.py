"""Base class for parsed J1939 packets."""

from typing import List, Optional

from ..errors import DecodeError
from .definitions import PgnDefinition, SpnValue, get_da_repository
from .lookup import get_address_name
from .packet import Packet

KM_TO_MILES_FACTOR = 0.6213712


class GenericPacket:
    """
    A PGN-specific view over a raw Packet.

    Subclasses set PGN, NAME and MIN_LENGTH and add typed accessors. PGNs
    without a dedicated class are exposed through this class, which slices
    SPNs using the Digital Annex definition when one exists.
    """

    PGN: Optional[int] = None
    NAME: str = ""
    MIN_LENGTH: int = 0

    def __init__(self, packet: Packet, definition: Optional[PgnDefinition] = None):
        if packet.length < self.MIN_LENGTH:
            raise DecodeError(
                f"{self.NAME or 'PGN ' + str(packet.pgn)} from {get_address_name(packet.source_address)} "
                f"requires {self.MIN_LENGTH} bytes, got {packet.length}",
                pgn=packet.pgn,
                source_address=packet.source_address,
            )
        self._packet = packet
        self._definition = definition or get_da_repository().find_pgn_definition(packet.pgn)

    @property
    def packet(self) -> Packet:
        return self._packet

    @property
    def definition(self) -> Optional[PgnDefinition]:
        return self._definition

    @property
    def pgn(self) -> int:
        return self._packet.pgn

    @property
    def source_address(self) -> int:
        return self._packet.source_address

    @property
    def destination_address(self) -> int:
        return self._packet.destination_address

    @property
    def timestamp(self) -> float:
        return self._packet.timestamp

    @property
    def module_name(self) -> str:
        return get_address_name(self.source_address)

    @property
    def name(self) -> str:
        if self.NAME:
            return self.NAME
        if self._definition and self._definition.acronym:
            return self._definition.acronym
        return f"PGN {self.pgn}"

    def spn_value(self, spn: int) -> SpnValue:
        """
        Decode a single SPN using the Digital Annex definition.

        Raises:
            DecodeError: If the SPN is not defined for this PGN or the payload is too short
        """
        definition = self._definition.find_spn(spn) if self._definition else None
        if definition is None:
            raise DecodeError(f"SPN {spn} is not defined for PGN {self.pgn}", pgn=self.pgn,
                              source_address=self.source_address)
        try:
            return definition.decode(self._packet.data)
        except DecodeError as e:
            raise DecodeError(f"{self.name} from {self.module_name}: {e}", pgn=self.pgn,
                              source_address=self.source_address) from e

    def spn_values(self) -> List[SpnValue]:
        """All SPNs defined for this PGN, in catalog order."""
        if not self._definition:
            return []
        return [self.spn_value(spn.spn) for spn in self._definition.spns]

    def encode(self) -> bytes:
        """Payload bytes for this packet."""
        return self._packet.data

    @property
    def string_prefix(self) -> str:
        return f"{self.name} from {self.module_name}: "

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GenericPacket):
            return NotImplemented
        return self.pgn == other.pgn and self.source_address == other.source_address \
            and self.encode() == other.encode()

    def __hash__(self) -> int:
        return hash((self.pgn, self.source_address, self.encode()))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._packet})"

    def __str__(self) -> str:
        if not self._definition or not self._definition.spns:
            return self.string_prefix + self._packet.hex_data()
        try:
            lines = [f"  {value}" for value in self.spn_values()]
        except DecodeError:
            return self.string_prefix + self._packet.hex_data()
        return self.string_prefix + "[\n" + "\n".join(lines) + "\n]"


def value_with_units(value: SpnValue, *conversions) -> str:
    """Format an SPN with optional (factor, unit) conversions appended."""
    if not value.is_valid:
        return value.formatted_value
    text = f"{value.value:.0f} {value.unit}"
    for factor, unit in conversions:
        text += f" ({value.value * factor:.0f} {unit})"
    return text
