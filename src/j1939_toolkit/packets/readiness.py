"""DM21 and DM26 diagnostic readiness packets."""

import struct
from typing import Optional

from .definitions import SpnValue
from .generic import KM_TO_MILES_FACTOR, GenericPacket, value_with_units
from .packet import Packet

NOT_AVAILABLE_16 = 0xFFFF


def _short(value: Optional[int]) -> int:
    return NOT_AVAILABLE_16 if value is None else value & 0xFFFF


class DM21DiagnosticReadinessPacket(GenericPacket):
    """DM21: distances and times with the MIL on and since DTCs were cleared."""

    PGN = 49408
    NAME = "DM21"
    MIN_LENGTH = 8
    TSCC_LINE = "Time Since DTCs Cleared:"

    @classmethod
    def create(
        cls,
        source_address: int,
        km_while_mil_on: Optional[int] = 0,
        km_since_code_clear: Optional[int] = 0,
        minutes_while_mil_on: Optional[int] = 0,
        minutes_since_code_clear: Optional[int] = 0,
        destination_address: int = 0xFF,
        timestamp: float = 0.0,
    ) -> "DM21DiagnosticReadinessPacket":
        """Build a DM21; None encodes "not available"."""
        data = struct.pack(
            "<HHHH",
            _short(km_while_mil_on),
            _short(km_since_code_clear),
            _short(minutes_while_mil_on),
            _short(minutes_since_code_clear),
        )
        return cls(Packet(pgn=cls.PGN, source_address=source_address, data=data,
                          destination_address=destination_address, timestamp=timestamp))

    @property
    def km_while_mil_is_activated(self) -> SpnValue:
        """SPN 3069, distance traveled while the MIL is activated."""
        return self.spn_value(3069)

    @property
    def km_since_dtcs_cleared(self) -> SpnValue:
        """SPN 3294, distance traveled since DTCs were last cleared."""
        return self.spn_value(3294)

    @property
    def minutes_while_mil_is_activated(self) -> SpnValue:
        """SPN 3295, engine run time while the MIL is activated."""
        return self.spn_value(3295)

    @property
    def minutes_since_dtcs_cleared(self) -> SpnValue:
        """SPN 3296, engine run time since DTCs were last cleared."""
        return self.spn_value(3296)

    @property
    def miles_while_mil_is_activated(self) -> Optional[float]:
        value = self.km_while_mil_is_activated
        return value.value * KM_TO_MILES_FACTOR if value.is_valid else None

    @property
    def miles_since_dtcs_cleared(self) -> Optional[float]:
        value = self.km_since_dtcs_cleared
        return value.value * KM_TO_MILES_FACTOR if value.is_valid else None

    def encode(self) -> bytes:
        return struct.pack(
            "<HHHH",
            self.km_while_mil_is_activated.raw,
            self.km_since_dtcs_cleared.raw,
            self.minutes_while_mil_is_activated.raw,
            self.minutes_since_dtcs_cleared.raw,
        ) + self._packet.data[8:]

    def __str__(self) -> str:
        miles = (KM_TO_MILES_FACTOR, "mi")
        result = self.string_prefix + "[\n"
        result += "  Distance Traveled While MIL is Activated:     " \
            + value_with_units(self.km_while_mil_is_activated, miles) + "\n"
        result += "  Time Run by Engine While MIL is Activated:    " \
            + value_with_units(self.minutes_while_mil_is_activated) + "\n"
        result += "  Distance Since DTCs Cleared:                  " \
            + value_with_units(self.km_since_dtcs_cleared, miles) + "\n"
        result += "  " + self.TSCC_LINE + "                      " \
            + value_with_units(self.minutes_since_dtcs_cleared) + "\n"
        result += "]"
        return result


class DM26TripDiagnosticReadinessPacket(GenericPacket):
    """DM26: readiness of monitors for the current trip."""

    PGN = 64952
    NAME = "DM26"
    MIN_LENGTH = 8

    @classmethod
    def create(
        cls,
        source_address: int,
        seconds_since_engine_start: Optional[int] = 0,
        warm_ups: Optional[int] = 0,
        continuous_status: int = 0,
        non_continuous_enabled: int = 0,
        non_continuous_complete: int = 0,
        timestamp: float = 0.0,
    ) -> "DM26TripDiagnosticReadinessPacket":
        data = struct.pack(
            "<HBBHH",
            _short(seconds_since_engine_start),
            0xFF if warm_ups is None else warm_ups & 0xFF,
            continuous_status & 0xFF,
            non_continuous_enabled & 0xFFFF,
            non_continuous_complete & 0xFFFF,
        )
        return cls(Packet(pgn=cls.PGN, source_address=source_address, data=data, timestamp=timestamp))

    @property
    def time_since_engine_start(self) -> SpnValue:
        """SPN 3301, seconds since the engine was started."""
        return self.spn_value(3301)

    @property
    def warm_ups_since_clear(self) -> SpnValue:
        """SPN 3302."""
        return self.spn_value(3302)

    @property
    def continuously_monitored_systems(self) -> int:
        """SPN 3303 bitmask; low nibble supported, high nibble not complete."""
        return self._packet.get(3)

    @property
    def non_continuously_monitored_enabled(self) -> int:
        return self._packet.get16(4)

    @property
    def non_continuously_monitored_complete(self) -> int:
        return self._packet.get16(6)

    def encode(self) -> bytes:
        return struct.pack(
            "<HBBHH",
            self.time_since_engine_start.raw,
            self.warm_ups_since_clear.raw,
            self.continuously_monitored_systems,
            self.non_continuously_monitored_enabled,
            self.non_continuously_monitored_complete,
        ) + self._packet.data[8:]

    def __str__(self) -> str:
        result = self.string_prefix + "[\n"
        result += f"  Time Since Engine Start:                      {value_with_units(self.time_since_engine_start)}\n"
        result += f"  Warm-ups Since DTCs Cleared:                  {value_with_units(self.warm_ups_since_clear)}\n"
        result += f"  Continuously Monitored Systems:               {self.continuously_monitored_systems:08b}\n"
        result += f"  Non-continuously Monitored Systems Enabled:   {self.non_continuously_monitored_enabled:016b}\n"
        result += f"  Non-continuously Monitored Systems Complete:  {self.non_continuously_monitored_complete:016b}\n"
        result += "]"
        return result


class DM5DiagnosticReadinessPacket(GenericPacket):
    """DM5: DTC counts, OBD compliance and monitor support."""

    PGN = 65230
    NAME = "DM5"
    MIN_LENGTH = 8

    # SPN 1220 values that do not claim OBD compliance
    NON_OBD_COMPLIANCE = (0, 5, 0xFB, 0xFC, 0xFD, 0xFE, 0xFF)

    @classmethod
    def create(
        cls,
        source_address: int,
        active_count: int = 0,
        previously_active_count: int = 0,
        obd_compliance: int = 0x13,
        continuous_support: int = 0,
        non_continuous_support: int = 0,
        non_continuous_status: int = 0,
        timestamp: float = 0.0,
    ) -> "DM5DiagnosticReadinessPacket":
        data = struct.pack(
            "<BBBBHH",
            active_count & 0xFF,
            previously_active_count & 0xFF,
            obd_compliance & 0xFF,
            continuous_support & 0xFF,
            non_continuous_support & 0xFFFF,
            non_continuous_status & 0xFFFF,
        )
        return cls(Packet(pgn=cls.PGN, source_address=source_address, data=data, timestamp=timestamp))

    @property
    def active_code_count(self) -> SpnValue:
        return self.spn_value(1218)

    @property
    def previously_active_code_count(self) -> SpnValue:
        return self.spn_value(1219)

    @property
    def obd_compliance(self) -> int:
        return self._packet.get(2)

    @property
    def is_obd(self) -> bool:
        """True when the module claims compliance with an OBD standard."""
        return self.obd_compliance not in self.NON_OBD_COMPLIANCE

    @property
    def continuously_monitored_systems(self) -> int:
        return self._packet.get(3)

    @property
    def non_continuously_monitored_support(self) -> int:
        return self._packet.get16(4)

    @property
    def non_continuously_monitored_status(self) -> int:
        return self._packet.get16(6)

    def __str__(self) -> str:
        return (f"{self.string_prefix}OBD Compliance: {self.obd_compliance}, "
                f"Active Codes: {self.active_code_count.formatted_value}, "
                f"Previously Active Codes: {self.previously_active_code_count.formatted_value}")
