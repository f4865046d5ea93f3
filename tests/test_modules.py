"""Tests for the request modules."""

import pytest

from j1939_toolkit.errors import BusError, Interrupted
from j1939_toolkit.modules import DiagnosticMessageModule, EngineSpeedModule, VehicleInformationModule
from j1939_toolkit.modules.base import TIMEOUT_LINE
from j1939_toolkit.packets import (
    AckResponse,
    AcknowledgmentPacket,
    CalibrationInformation,
    DM1ActiveDTCsPacket,
    DM2PreviouslyActiveDTC,
    DM5DiagnosticReadinessPacket,
    DM19CalibrationInformationPacket,
    EngineSpeedPacket,
    LampStatus,
    VehicleIdentificationPacket,
)

OFF = LampStatus.OFF


def answer_requests(replies_by_pgn):
    def responder(packet):
        if packet.pgn != 59904:
            return []
        return replies_by_pgn.get(packet.get24(0), [])
    return responder


class TestDiagnosticMessageModule:

    @pytest.fixture
    def module(self, j1939):
        return DiagnosticMessageModule(j1939)

    def test_global_request_transcript(self, module, fake_bus, listener):
        packet = DM2PreviouslyActiveDTC.create(0, OFF, OFF, OFF, OFF).packet
        fake_bus.responder = answer_requests({DM2PreviouslyActiveDTC.PGN: [packet]})

        result = module.request_dm2(listener)

        assert [p.source_address for p in result.packets] == [0]
        assert listener.results[0] == "10:15:30.0000 Global DM2 Request"
        assert listener.results[1] == "10:15:30.0000 18EAFFF9 [3] CB FE 00"
        assert listener.results[2].endswith(" 18FECB00 [8] 00 FF 00 00 00 00 FF FF")
        assert listener.results[3] == "DM2 from Engine #1 (0): MIL: off, RSL: off, AWL: off, PL: off, No DTCs"

    def test_global_request_without_responses(self, module, listener):
        result = module.request_dm5(listener)

        assert len(result) == 0
        assert listener.results[-1].endswith(TIMEOUT_LINE)

    def test_ds_request_nack(self, module, fake_bus, listener):
        nack = AcknowledgmentPacket.create(1, AckResponse.NACK, pgn_requested=DM2PreviouslyActiveDTC.PGN).packet
        fake_bus.responder = answer_requests({DM2PreviouslyActiveDTC.PGN: [nack]})

        result = module.request_dm2_ds(listener, 1)

        assert result.is_nack
        assert listener.results[0] == "10:15:30.0000 DS DM2 Request to 1"
        assert listener.results[1] == "10:15:30.0000 18EA01F9 [3] CB FE 00"
        assert "Response: NACK" in listener.results[-1]

    def test_ds_request_timeout(self, module, listener):
        result = module.request_dm21_ds(listener, 0)

        assert result.is_timeout
        assert listener.results[-1].endswith(TIMEOUT_LINE)

    def test_cancelled_request(self, module, j1939, listener):
        j1939.set_cancel_check(lambda: True)

        with pytest.raises(Interrupted):
            module.request_dm26(listener)
        with pytest.raises(Interrupted):
            module.request_dm26_ds(listener, 0)

    def test_read_dm1_keeps_latest(self, module, fake_bus, listener):
        fake_bus.push(DM1ActiveDTCsPacket.create(1, OFF, OFF, OFF, OFF).packet, delay=0.5)
        fake_bus.push(DM1ActiveDTCsPacket.create(0, OFF, OFF, OFF, OFF).packet, delay=0.6)
        latest = DM1ActiveDTCsPacket.create(0, LampStatus.ON, OFF, OFF, OFF)
        fake_bus.push(latest.packet, delay=1.5)

        packets = module.read_dm1(listener)

        assert [packet.source_address for packet in packets] == [0, 1]
        assert packets[0] == latest
        assert listener.results[0] == "10:15:30.0000 Reading bus for 3 seconds for DM1 messages"

    def test_not_connected(self, listener):
        with pytest.raises(BusError):
            DiagnosticMessageModule().request_dm2(listener)


class TestEngineSpeedModule:

    @pytest.fixture
    def module(self, j1939):
        return EngineSpeedModule(j1939)

    def test_running(self, module, fake_bus):
        fake_bus.push(EngineSpeedPacket.create(0, 650).packet)
        fake_bus.push(EngineSpeedPacket.create(0, 700).packet, delay=0.1)

        assert module.get_engine_speed() == pytest.approx(700)

        fake_bus.push(EngineSpeedPacket.create(0, 700).packet)
        assert module.is_engine_running()

    def test_key_on_engine_off(self, module, fake_bus):
        fake_bus.push(EngineSpeedPacket.create(0, 0).packet)
        assert module.is_engine_not_running()

    def test_no_broadcast(self, module):
        assert module.get_engine_speed_packet() is None
        assert not module.is_engine_running()
        assert not module.is_engine_not_running()

    def test_not_available_speed(self, module, fake_bus):
        fake_bus.push(EngineSpeedPacket.create(0, None).packet)
        assert module.get_engine_speed() is None

    def test_threshold(self, j1939, fake_bus):
        module = EngineSpeedModule(j1939, running_rpm=500)
        fake_bus.push(EngineSpeedPacket.create(0, 450).packet)
        assert not module.is_engine_running()

    def test_cancelled(self, module, j1939):
        j1939.set_cancel_check(lambda: True)
        with pytest.raises(Interrupted):
            module.is_engine_running()


class TestVehicleInformationModule:

    def test_collect(self, j1939, fake_bus, listener, repository, sample_vin):
        calibration = CalibrationInformation("PBT5MPR3", 0x40DCBF96)
        fake_bus.responder = answer_requests({
            DM5DiagnosticReadinessPacket.PGN: [
                DM5DiagnosticReadinessPacket.create(0, obd_compliance=0x13, continuous_support=0x07).packet,
                DM5DiagnosticReadinessPacket.create(0x21, obd_compliance=0x05).packet,
            ],
            DM19CalibrationInformationPacket.PGN: [DM19CalibrationInformationPacket.create(0, calibration).packet],
            VehicleIdentificationPacket.PGN: [VehicleIdentificationPacket.create(0, sample_vin).packet],
        })
        module = VehicleInformationModule(j1939)

        information = module.collect(listener, repository, DiagnosticMessageModule(j1939))

        assert repository.obd_module_addresses() == [0]
        obd_module = repository.get_obd_module(0)
        assert obd_module.obd_compliance == 0x13
        assert obd_module.monitor_support["continuous"] == 0x07
        assert obd_module.calibration_ids == ["PBT5MPR3"]
        assert information.vin == sample_vin
        assert information.calibration_ids == ["PBT5MPR3"]
        assert information.emission_units == 1
        assert repository.vehicle_information is information
        assert repository.vin == sample_vin

    def test_no_vin(self, j1939, listener):
        assert VehicleInformationModule(j1939).get_vin(listener) == ""

    def test_calibrations(self, j1939, fake_bus, listener):
        first = CalibrationInformation("CAL1", 1)
        second = CalibrationInformation("CAL2", 2)
        fake_bus.responder = answer_requests({
            DM19CalibrationInformationPacket.PGN: [DM19CalibrationInformationPacket.create(0, first, second).packet],
        })

        assert VehicleInformationModule(j1939).get_calibrations(listener) == [first, second]
