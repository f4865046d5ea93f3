"""Vehicle identification (PGN 65260) and DM19 calibration information."""

from dataclasses import dataclass
from typing import List

from ..errors import DecodeError
from .generic import GenericPacket
from .packet import Packet

CALIBRATION_RECORD_LENGTH = 20
CALIBRATION_ID_LENGTH = 16


class VehicleIdentificationPacket(GenericPacket):
    """VIN as ASCII, terminated by '*'; manufacturer data may follow."""

    PGN = 65260
    NAME = "Vehicle Identification"
    MIN_LENGTH = 1

    @classmethod
    def create(cls, source_address: int, vin: str, manufacturer_data: str = "") -> "VehicleIdentificationPacket":
        text = f"{vin}*{manufacturer_data}*" if manufacturer_data else f"{vin}*"
        return cls(Packet(pgn=cls.PGN, source_address=source_address, data=text.encode("ascii")))

    @property
    def vin(self) -> str:
        text = self._packet.data.decode("ascii", errors="replace")
        return text.split("*")[0].strip("\x00 ")

    @property
    def manufacturer_data(self) -> str:
        parts = self._packet.data.decode("ascii", errors="replace").split("*")
        return parts[1].strip("\x00 ") if len(parts) > 1 else ""

    def __str__(self) -> str:
        return self.string_prefix + self.vin


@dataclass(frozen=True)
class CalibrationInformation:
    """One calibration ID with its verification number."""
    calibration_identification: str
    calibration_verification_number: int

    def to_bytes(self) -> bytes:
        cal_id = self.calibration_identification.encode("ascii")[:CALIBRATION_ID_LENGTH]
        cal_id = cal_id.ljust(CALIBRATION_ID_LENGTH, b"\x00")
        return self.calibration_verification_number.to_bytes(4, "little") + cal_id

    def __str__(self) -> str:
        return f"CAL ID of {self.calibration_identification} and CVN of 0x{self.calibration_verification_number:08X}"


class DM19CalibrationInformationPacket(GenericPacket):
    """DM19: calibration IDs and CVNs, 20 bytes per calibration."""

    PGN = 54016
    NAME = "DM19"
    MIN_LENGTH = CALIBRATION_RECORD_LENGTH

    def __init__(self, packet: Packet, definition=None):
        super().__init__(packet, definition)
        if packet.length % CALIBRATION_RECORD_LENGTH:
            raise DecodeError(
                f"DM19 from {self.module_name} length {packet.length} is not a multiple of "
                f"{CALIBRATION_RECORD_LENGTH}",
                pgn=self.PGN,
                source_address=packet.source_address,
            )

    @classmethod
    def create(cls, source_address: int, *calibrations: CalibrationInformation,
               destination_address: int = 0xFF) -> "DM19CalibrationInformationPacket":
        data = b"".join(calibration.to_bytes() for calibration in calibrations)
        return cls(Packet(pgn=cls.PGN, source_address=source_address, data=data,
                          destination_address=destination_address))

    @property
    def calibration_information(self) -> List[CalibrationInformation]:
        result = []
        data = self._packet.data
        for index in range(0, len(data), CALIBRATION_RECORD_LENGTH):
            record = data[index:index + CALIBRATION_RECORD_LENGTH]
            cvn = int.from_bytes(record[:4], "little")
            cal_id = record[4:].decode("ascii", errors="replace").strip("\x00 ")
            result.append(CalibrationInformation(cal_id, cvn))
        return result

    def __str__(self) -> str:
        lines = [str(calibration) for calibration in self.calibration_information]
        return self.string_prefix + "[\n  " + "\n  ".join(lines) + "\n]"
