"""Serial CAN adapter detection."""

from typing import Optional, List
from dataclasses import dataclass
from enum import Enum

import serial.tools.list_ports


class AdapterType(str, Enum):
    """Type of serial CAN adapter."""
    SLCAN = "SLCAN"
    CANDLELIGHT = "candleLight"
    UNKNOWN = "Unknown"


@dataclass
class AdapterInfo:
    """Information about a detected CAN adapter."""
    port: str
    description: str
    adapter_type: AdapterType
    hwid: str = ""
    manufacturer: str = ""
    vid: Optional[int] = None
    pid: Optional[int] = None

    @property
    def interface(self) -> str:
        """python-can interface name for this adapter."""
        return "gs_usb" if self.adapter_type == AdapterType.CANDLELIGHT else "slcan"

    @property
    def display_name(self) -> str:
        """Human-readable display name."""
        return f"{self.adapter_type.value} on {self.port}"

    def __str__(self) -> str:
        return self.display_name


class AdapterDetector:
    """Detects serial port CAN adapters usable with python-can."""

    # USB VID/PID combinations of common slcan adapters
    KNOWN_SLCAN_IDS = [
        (0x0483, 0x5740),  # STM32 virtual COM port (CANable slcan firmware)
        (0x16D0, 0x117E),  # CANable 2.0
        (0x0403, 0x6001),  # FTDI FT232R (Lawicel CANUSB)
        (0x0403, 0xFFA8),  # Lawicel CANUSB
        (0x1A86, 0x7523),  # CH340 based clones
    ]

    KNOWN_CANDLELIGHT_IDS = [
        (0x1D50, 0x606F),  # candleLight / CANable gs_usb firmware
    ]

    SLCAN_KEYWORDS = [
        "canable", "slcan", "canusb", "lawicel", "usbtin", "can adapter", "j1939",
    ]

    @classmethod
    def detect_all(cls) -> List[AdapterInfo]:
        """Detect all potential CAN adapters."""
        adapters = []
        ports = serial.tools.list_ports.comports()

        for port in ports:
            adapter = cls._analyze_port(port)
            if adapter:
                adapters.append(adapter)

        return adapters

    @classmethod
    def find_best_adapter(cls) -> Optional[AdapterInfo]:
        """Find the most likely CAN adapter, preferring confirmed slcan devices."""
        adapters = cls.detect_all()

        confirmed = [a for a in adapters if a.adapter_type != AdapterType.UNKNOWN]
        if confirmed:
            return confirmed[0]

        return adapters[0] if adapters else None

    @classmethod
    def _analyze_port(cls, port) -> Optional[AdapterInfo]:
        """Analyze a serial port to determine if it's a CAN adapter."""
        description = port.description or ""
        hwid = port.hwid or ""
        manufacturer = port.manufacturer or ""

        vid = getattr(port, 'vid', None)
        pid = getattr(port, 'pid', None)

        all_info = f"{description} {hwid} {manufacturer}".lower()

        adapter_type = None
        if vid and pid and (vid, pid) in cls.KNOWN_CANDLELIGHT_IDS:
            adapter_type = AdapterType.CANDLELIGHT
        elif vid and pid and (vid, pid) in cls.KNOWN_SLCAN_IDS:
            adapter_type = AdapterType.SLCAN
        elif any(kw in all_info for kw in cls.SLCAN_KEYWORDS):
            adapter_type = AdapterType.SLCAN
        elif cls._is_likely_serial_adapter(port):
            adapter_type = AdapterType.UNKNOWN

        if adapter_type is None:
            return None

        return AdapterInfo(
            port=port.device,
            description=description,
            adapter_type=adapter_type,
            hwid=hwid,
            manufacturer=manufacturer,
            vid=vid,
            pid=pid,
        )

    @classmethod
    def _is_likely_serial_adapter(cls, port) -> bool:
        """Check if port is likely a USB-to-serial adapter."""
        description = (port.description or "").lower()
        manufacturer = (port.manufacturer or "").lower()

        serial_keywords = [
            "usb", "serial", "uart", "ftdi", "stm", "ch340", "cp210", "converter"
        ]

        return any(kw in description or kw in manufacturer for kw in serial_keywords)

    @classmethod
    def get_port_by_name(cls, port_name: str) -> Optional[AdapterInfo]:
        """Get adapter info for a specific port name."""
        for port in serial.tools.list_ports.comports():
            if port.device == port_name:
                return cls._analyze_port(port) or AdapterInfo(
                    port=port_name,
                    description=port.description or "Unknown",
                    adapter_type=AdapterType.UNKNOWN,
                )

        return None
