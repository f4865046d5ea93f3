"""Tests for adapter detection and the bus manager."""

from unittest.mock import MagicMock, patch

import can

from j1939_toolkit.bus.adapter import AdapterDetector, AdapterType
from j1939_toolkit.bus.manager import BusManager, ConnectionState


def make_port(device, description="", hwid="", manufacturer="", vid=None, pid=None):
    port = MagicMock()
    port.device = device
    port.description = description
    port.hwid = hwid
    port.manufacturer = manufacturer
    port.vid = vid
    port.pid = pid
    return port


PORTS = [
    make_port("/dev/ttyS0", "ttyS0"),
    make_port("/dev/ttyUSB0", "USB Serial", manufacturer="Prolific"),
    make_port("/dev/ttyACM0", "CANable", vid=0x16D0, pid=0x117E),
    make_port("/dev/ttyACM1", "candleLight", vid=0x1D50, pid=0x606F),
]


@patch("serial.tools.list_ports.comports", return_value=PORTS)
class TestAdapterDetector:

    def test_detect_all(self, comports):
        adapters = AdapterDetector.detect_all()

        assert [adapter.port for adapter in adapters] == ["/dev/ttyUSB0", "/dev/ttyACM0", "/dev/ttyACM1"]
        assert [adapter.adapter_type for adapter in adapters] == [
            AdapterType.UNKNOWN, AdapterType.SLCAN, AdapterType.CANDLELIGHT,
        ]
        assert adapters[1].interface == "slcan"
        assert adapters[2].interface == "gs_usb"
        assert str(adapters[1]) == "SLCAN on /dev/ttyACM0"

    def test_find_best_adapter_prefers_confirmed(self, comports):
        assert AdapterDetector.find_best_adapter().port == "/dev/ttyACM0"

    def test_get_port_by_name(self, comports):
        assert AdapterDetector.get_port_by_name("/dev/ttyS0").adapter_type == AdapterType.UNKNOWN
        assert AdapterDetector.get_port_by_name("/dev/ttyACM1").adapter_type == AdapterType.CANDLELIGHT
        assert AdapterDetector.get_port_by_name("/dev/missing") is None


class TestBusManager:

    @patch("j1939_toolkit.bus.manager.can.Bus")
    def test_connect(self, bus_class):
        states = []
        manager = BusManager()
        manager.on_state_change(states.append)

        result = manager.connect(interface="virtual", channel="test", ds_retries=1)

        assert result.success
        bus_class.assert_called_once_with(interface="virtual", channel="test", bitrate=250000)
        assert manager.is_connected
        assert manager.j1939.tool_address == 0xF9
        assert states == [ConnectionState.CONNECTING, ConnectionState.CONNECTED]

        manager.disconnect()

        bus_class.return_value.shutdown.assert_called_once()
        assert manager.j1939 is None
        assert manager.state == ConnectionState.DISCONNECTED

    @patch("j1939_toolkit.bus.manager.can.Bus", side_effect=can.CanError("no such device"))
    def test_connect_failure(self, bus_class):
        manager = BusManager()

        result = manager.connect(interface="socketcan", channel="can9")

        assert not result.success
        assert result.error == "no such device"
        assert manager.state == ConnectionState.ERROR
        assert not manager.is_connected

    @patch("serial.tools.list_ports.comports", return_value=[])
    def test_slcan_without_adapter(self, comports):
        result = BusManager().connect(interface="slcan")

        assert not result.success
        assert result.message == "No CAN adapter found"

    @patch("j1939_toolkit.bus.manager.can.Bus")
    @patch("serial.tools.list_ports.comports", return_value=PORTS)
    def test_slcan_auto_detect(self, comports, bus_class):
        with BusManager() as manager:
            result = manager.connect(interface="slcan")

            assert result.success
            assert result.channel == "/dev/ttyACM0"
            assert manager.adapter_info.adapter_type == AdapterType.SLCAN

        assert not manager.is_connected
