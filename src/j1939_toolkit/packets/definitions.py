"""Table-driven PGN and SPN definitions from the Digital Annex catalog."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field

from ..data import load_pgn_definitions
from ..errors import DecodeError


class SpnState(str, Enum):
    """Interpretation of a raw SPN value."""
    VALUE = "value"
    ERROR = "error"
    NOT_AVAILABLE = "not available"


def sentinel_state(raw: int, length_bits: int) -> SpnState:
    """
    Classify a raw value against the J1939-71 sentinel ranges.

    Parameters of 8 bits or more reserve the top byte values 0xFE (error) and
    0xFF (not available). Discrete parameters of 2 to 7 bits reserve the
    all-ones pattern for not available and the one below it for error.
    """
    if length_bits >= 8:
        top = raw >> (length_bits - 8)
        if top == 0xFF:
            return SpnState.NOT_AVAILABLE
        if top == 0xFE:
            return SpnState.ERROR
        return SpnState.VALUE

    if length_bits >= 2:
        all_ones = (1 << length_bits) - 1
        if raw == all_ones:
            return SpnState.NOT_AVAILABLE
        if raw == all_ones - 1:
            return SpnState.ERROR

    return SpnState.VALUE


@dataclass(frozen=True)
class SpnValue:
    """A decoded SPN with its state."""
    spn: int
    label: str
    raw: Union[int, bytes]
    state: SpnState
    value: Optional[Union[float, str]] = None
    unit: str = ""

    @property
    def is_valid(self) -> bool:
        return self.state == SpnState.VALUE

    @property
    def is_error(self) -> bool:
        return self.state == SpnState.ERROR

    @property
    def is_not_available(self) -> bool:
        return self.state == SpnState.NOT_AVAILABLE

    @property
    def formatted_value(self) -> str:
        if self.state == SpnState.ERROR:
            return "Error"
        if self.state == SpnState.NOT_AVAILABLE:
            return "Not Available"
        if isinstance(self.value, float):
            text = f"{self.value:.3f}"
        else:
            text = str(self.value)
        return f"{text} {self.unit}".rstrip()

    def __str__(self) -> str:
        return f"SPN {self.spn}, {self.label}: {self.formatted_value}"


class SpnDefinition(BaseModel):
    """Location and scaling of one SPN within a PGN payload."""

    spn: int = Field(..., description="Suspect Parameter Number")
    label: str = Field(default="", description="Parameter name")
    start_byte: int = Field(..., ge=0, description="Zero-based first byte")
    start_bit: int = Field(default=0, ge=0, le=7, description="Bit offset within the first byte")
    length_bits: int = Field(..., gt=0, description="Parameter width in bits")
    resolution: float = Field(default=1.0, description="Scale applied to the raw value")
    offset: float = Field(default=0.0, description="Offset added after scaling")
    unit: str = Field(default="", description="Engineering unit")
    endianness: str = Field(default="little", description="Byte order of multi-byte values")
    data_type: str = Field(default="numeric", description="numeric, bitfield or ascii")

    @property
    def end_byte(self) -> int:
        """Exclusive end of the byte range holding this SPN."""
        return self.start_byte + (self.start_bit + self.length_bits + 7) // 8

    def extract_raw(self, data: bytes) -> Union[int, bytes]:
        """Slice the raw value out of a payload."""
        if self.data_type == "ascii":
            if len(data) <= self.start_byte:
                raise DecodeError(f"SPN {self.spn} requires at least {self.start_byte + 1} bytes, got {len(data)}")
            return bytes(data[self.start_byte:self.end_byte])

        if len(data) < self.end_byte:
            raise DecodeError(f"SPN {self.spn} requires {self.end_byte} bytes, got {len(data)}")

        chunk = bytes(data[self.start_byte:self.end_byte])
        value = int.from_bytes(chunk, "big" if self.endianness == "big" else "little")
        return (value >> self.start_bit) & ((1 << self.length_bits) - 1)

    def decode(self, data: bytes) -> SpnValue:
        """
        Decode this SPN from a payload.

        Raises:
            DecodeError: If the payload is shorter than the SPN's byte range
        """
        raw = self.extract_raw(data)

        if isinstance(raw, bytes):
            text = raw.decode("ascii", errors="replace").split("*")[0].strip("\x00 ")
            return SpnValue(self.spn, self.label, raw, SpnState.VALUE, text, self.unit)

        state = sentinel_state(raw, self.length_bits) if self.data_type == "numeric" else SpnState.VALUE
        value: Optional[float] = None
        if state == SpnState.VALUE:
            value = raw * self.resolution + self.offset if self.data_type == "numeric" else raw
        return SpnValue(self.spn, self.label, raw, state, value, self.unit)


class PgnDefinition(BaseModel):
    """A parameter group and the SPNs it carries."""

    pgn: int
    acronym: str = ""
    label: str = ""
    length: Optional[int] = Field(default=None, description="Fixed length, None when variable")
    spns: List[SpnDefinition] = Field(default_factory=list)

    def find_spn(self, spn: int) -> Optional[SpnDefinition]:
        for definition in self.spns:
            if definition.spn == spn:
                return definition
        return None


class J1939DaRepository:
    """Read-only view over the bundled Digital Annex catalog."""

    def __init__(self, definitions: Optional[dict] = None):
        raw = definitions if definitions is not None else load_pgn_definitions()
        self._pgns: Dict[int, PgnDefinition] = {}
        for item in raw.get("pgns", []):
            definition = PgnDefinition(**item)
            self._pgns[definition.pgn] = definition

    def find_pgn_definition(self, pgn: int) -> Optional[PgnDefinition]:
        return self._pgns.get(pgn)

    def find_spn_definition(self, spn: int) -> Optional[SpnDefinition]:
        for definition in self._pgns.values():
            found = definition.find_spn(spn)
            if found:
                return found
        return None

    @property
    def pgns(self) -> List[int]:
        return sorted(self._pgns)


_repository: Optional[J1939DaRepository] = None


def get_da_repository() -> J1939DaRepository:
    """Get or create the shared catalog instance."""
    global _repository
    if _repository is None:
        _repository = J1939DaRepository()
    return _repository
