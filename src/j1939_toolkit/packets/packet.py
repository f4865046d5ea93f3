"""Raw J1939 packets and 29-bit identifier handling."""

from dataclasses import dataclass, field

GLOBAL_ADDRESS = 0xFF
MAX_PAYLOAD = 1785
CAN_EXT_ID_MAX = 0x1FFFFFFF
PDU2_THRESHOLD = 240


def is_pdu1(pgn: int) -> bool:
    """True for destination-specific PGNs (PF < 240)."""
    return ((pgn >> 8) & 0xFF) < PDU2_THRESHOLD


def build_identifier(priority: int, pgn: int, source_address: int, destination_address: int = GLOBAL_ADDRESS) -> int:
    """Assemble a 29-bit CAN identifier."""
    if is_pdu1(pgn):
        pgn = (pgn & 0x3FF00) | (destination_address & 0xFF)
    return ((priority & 0x07) << 26) | ((pgn & 0x3FFFF) << 8) | (source_address & 0xFF)


@dataclass(frozen=True)
class Packet:
    """
    A received or outgoing J1939 message.

    The timestamp is excluded from equality so two packets with the same
    content compare equal regardless of when they arrived.
    """
    pgn: int
    source_address: int
    data: bytes
    priority: int = 6
    destination_address: int = GLOBAL_ADDRESS
    timestamp: float = field(default=0.0, compare=False)

    def __post_init__(self) -> None:
        if len(self.data) > MAX_PAYLOAD:
            raise ValueError(f"Payload of {len(self.data)} bytes exceeds {MAX_PAYLOAD}")
        if not 0 <= self.source_address <= 0xFF:
            raise ValueError(f"Source address out of range: {self.source_address}")
        if isinstance(self.data, (list, bytearray)):
            object.__setattr__(self, "data", bytes(self.data))

    @classmethod
    def from_identifier(cls, identifier: int, data: bytes, timestamp: float = 0.0) -> "Packet":
        """
        Decode a 29-bit identifier into a packet.

        Args:
            identifier: Extended CAN identifier
            data: Frame payload
            timestamp: Receive time in seconds

        Returns:
            Packet with PGN, addresses and priority filled in
        """
        if not 0 <= identifier <= CAN_EXT_ID_MAX:
            raise ValueError(f"Extended CAN ID out of range: {identifier:#x}")

        priority = (identifier >> 26) & 0x07
        pgn = (identifier >> 8) & 0x3FFFF
        source_address = identifier & 0xFF
        destination_address = GLOBAL_ADDRESS

        if is_pdu1(pgn):
            destination_address = pgn & 0xFF
            pgn &= 0x3FF00

        return cls(
            pgn=pgn,
            source_address=source_address,
            data=bytes(data),
            priority=priority,
            destination_address=destination_address,
            timestamp=timestamp,
        )

    @classmethod
    def create(
        cls,
        pgn: int,
        source_address: int,
        *data: int,
        destination_address: int = GLOBAL_ADDRESS,
        priority: int = 6,
        timestamp: float = 0.0,
    ) -> "Packet":
        """Build a packet from individual byte values."""
        return cls(
            pgn=pgn,
            source_address=source_address,
            data=bytes(data),
            priority=priority,
            destination_address=destination_address,
            timestamp=timestamp,
        )

    @property
    def identifier(self) -> int:
        """The 29-bit CAN identifier for this packet."""
        return build_identifier(self.priority, self.pgn, self.source_address, self.destination_address)

    @property
    def length(self) -> int:
        return len(self.data)

    @property
    def is_destination_specific(self) -> bool:
        return is_pdu1(self.pgn) and self.destination_address != GLOBAL_ADDRESS

    def get(self, index: int) -> int:
        """Single byte at index."""
        return self.data[index]

    def get16(self, index: int) -> int:
        """Little-endian 16-bit value starting at index."""
        return self.data[index] | (self.data[index + 1] << 8)

    def get24(self, index: int) -> int:
        """Little-endian 24-bit value starting at index."""
        return self.data[index] | (self.data[index + 1] << 8) | (self.data[index + 2] << 16)

    def get32(self, index: int) -> int:
        """Little-endian 32-bit value starting at index."""
        return self.get16(index) | (self.get16(index + 2) << 16)

    def with_timestamp(self, timestamp: float) -> "Packet":
        """Copy of this packet stamped with a new receive time."""
        return Packet(
            pgn=self.pgn,
            source_address=self.source_address,
            data=self.data,
            priority=self.priority,
            destination_address=self.destination_address,
            timestamp=timestamp,
        )

    def hex_data(self) -> str:
        return " ".join(f"{b:02X}" for b in self.data)

    def __str__(self) -> str:
        return f"{self.identifier:08X} [{self.length}] {self.hex_data()}".rstrip()
