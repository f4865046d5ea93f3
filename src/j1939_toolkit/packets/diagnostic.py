"""DM1 and DM2 diagnostic trouble code packets."""

from typing import List

from .dtc import DiagnosticTroubleCode, LampStatus
from .generic import GenericPacket
from .packet import Packet

NO_DTC = bytes([0x00, 0x00, 0x00, 0x00])
DEFAULT_FLASH = 0xFF


class DiagnosticTroubleCodePacket(GenericPacket):
    """
    Lamp status followed by zero or more DTCs.

    Byte 0 carries the MIL, red stop, amber warning and protect lamp states
    (two bits each, MIL in the high bits), byte 1 the lamp flash states and
    bytes 2.. four bytes per DTC. A single all-zero DTC means "no DTCs".
    """

    MIN_LENGTH = 2

    def __init__(self, packet: Packet, definition=None):
        super().__init__(packet, definition)
        data = packet.data
        lamps = data[0]
        self._mil = LampStatus.from_bits(lamps >> 6)
        self._red_stop = LampStatus.from_bits(lamps >> 4)
        self._amber_warning = LampStatus.from_bits(lamps >> 2)
        self._protect = LampStatus.from_bits(lamps)
        self._flash = data[1]

        self._dtcs: List[DiagnosticTroubleCode] = []
        for index in range(2, len(data) - 3, 4):
            chunk = data[index:index + 4]
            if chunk == NO_DTC:
                continue
            self._dtcs.append(DiagnosticTroubleCode.from_bytes(chunk))

    @classmethod
    def create(
        cls,
        source_address: int,
        mil: LampStatus,
        red_stop: LampStatus,
        amber_warning: LampStatus,
        protect: LampStatus,
        *dtcs: DiagnosticTroubleCode,
        flash: int = DEFAULT_FLASH,
        timestamp: float = 0.0,
    ):
        """Build a packet from lamp states and DTCs."""
        data = cls.encode_fields(mil, red_stop, amber_warning, protect, flash, list(dtcs))
        return cls(Packet(pgn=cls.PGN, source_address=source_address, data=data, timestamp=timestamp))

    @staticmethod
    def encode_fields(mil, red_stop, amber_warning, protect, flash: int, dtcs: List[DiagnosticTroubleCode]) -> bytes:
        lamps = (mil.bits << 6) | (red_stop.bits << 4) | (amber_warning.bits << 2) | protect.bits
        data = bytearray([lamps, flash & 0xFF])
        if dtcs:
            for dtc in dtcs:
                data += dtc.to_bytes()
        else:
            data += NO_DTC
        while len(data) < 8:
            data.append(0xFF)
        return bytes(data)

    @property
    def mil_status(self) -> LampStatus:
        return self._mil

    @property
    def red_stop_lamp_status(self) -> LampStatus:
        return self._red_stop

    @property
    def amber_warning_lamp_status(self) -> LampStatus:
        return self._amber_warning

    @property
    def protect_lamp_status(self) -> LampStatus:
        return self._protect

    @property
    def flash_status(self) -> int:
        return self._flash

    @property
    def dtcs(self) -> List[DiagnosticTroubleCode]:
        return list(self._dtcs)

    @property
    def has_dtcs(self) -> bool:
        return bool(self._dtcs)

    def encode(self) -> bytes:
        data = self._packet.data
        lamps = (self._mil.bits << 6) | (self._red_stop.bits << 4) | (self._amber_warning.bits << 2) | self._protect.bits
        encoded = bytearray([lamps, self._flash])
        dtcs = iter(self._dtcs)
        index = 2
        while index + 4 <= len(data):
            encoded += NO_DTC if data[index:index + 4] == NO_DTC else next(dtcs).to_bytes()
            index += 4
        # trailing padding is kept as received
        encoded += data[index:]
        return bytes(encoded)

    def __str__(self) -> str:
        result = self.string_prefix
        result += f"MIL: {self._mil.value}, RSL: {self._red_stop.value}, "
        result += f"AWL: {self._amber_warning.value}, PL: {self._protect.value}"
        if not self._dtcs:
            return result + ", No DTCs"
        for dtc in self._dtcs:
            result += f"\n{dtc}"
        return result


class DM1ActiveDTCsPacket(DiagnosticTroubleCodePacket):
    """DM1: Active Diagnostic Trouble Codes."""
    PGN = 65226
    NAME = "DM1"


class DM2PreviouslyActiveDTC(DiagnosticTroubleCodePacket):
    """DM2: Previously Active Diagnostic Trouble Codes."""
    PGN = 65227
    NAME = "DM2"
