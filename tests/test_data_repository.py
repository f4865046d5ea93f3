"""Tests for the data repository."""

from j1939_toolkit.controllers.data_repository import DataRepository
from j1939_toolkit.models import OBDModuleInformation, Outcome, VehicleInformation
from j1939_toolkit.packets import DM2PreviouslyActiveDTC, DM21DiagnosticReadinessPacket, LampStatus

OFF = LampStatus.OFF


class TestObdModules:

    def test_addresses_are_sorted(self, repository):
        repository.put_obd_module(1)
        repository.put_obd_module(0x17)
        repository.put_obd_module(0)

        assert repository.obd_module_addresses() == [0, 1, 0x17]
        assert repository.is_obd_module(1)
        assert not repository.is_obd_module(2)

    def test_existing_module_kept(self, repository):
        repository.put_obd_module(OBDModuleInformation(source_address=0, obd_compliance=0x13))
        module = repository.put_obd_module(0)

        assert module.obd_compliance == 0x13
        assert repository.get_obd_module(0) is module

    def test_full_record_replaces(self, repository):
        repository.put_obd_module(0)
        repository.put_obd_module(OBDModuleInformation(source_address=0, calibration_ids=["CAL1"]))

        assert repository.get_obd_module(0).calibration_ids == ["CAL1"]
        assert repository.obd_modules()[0].module_name == "Engine #1 (0)"


class TestPackets:

    def test_latest_packet_per_address(self, repository):
        first = DM2PreviouslyActiveDTC.create(0, OFF, OFF, OFF, OFF)
        second = DM2PreviouslyActiveDTC.create(0, LampStatus.ON, OFF, OFF, OFF)
        repository.save(first)
        repository.save(second)

        assert repository.get(DM2PreviouslyActiveDTC, 0) is second
        assert repository.get(DM2PreviouslyActiveDTC, 1) is None
        assert repository.get(DM21DiagnosticReadinessPacket, 0) is None

    def test_packets_by_class(self, repository):
        repository.save(DM21DiagnosticReadinessPacket.create(3))
        repository.save(DM21DiagnosticReadinessPacket.create(0))
        repository.save(DM2PreviouslyActiveDTC.create(0, OFF, OFF, OFF, OFF))

        packets = repository.packets(DM21DiagnosticReadinessPacket)

        assert [packet.source_address for packet in packets] == [0, 3]


class TestResults:

    def test_record_outcome(self, repository):
        repository.record_outcome(3, 7, Outcome.FAIL, "6.3.7.2.a - failure")
        repository.record_outcome(3, 7, Outcome.WARN, "warning")

        result = repository.part_result(3)
        step = result.steps[7]
        assert [record.outcome for record in step.outcomes] == [Outcome.FAIL, Outcome.WARN]
        assert step.worst == Outcome.FAIL
        assert result.worst == Outcome.FAIL
        assert result.counts[Outcome.FAIL] == 1
        assert result.counts[Outcome.PASS] == 0

    def test_part_name_filled_later(self, repository):
        repository.record_outcome(1, 1, Outcome.INCOMPLETE, "Step not encoded")
        result = repository.part_result(1, "Part 1 Test")

        assert result.name == "Part 1 Test"
        assert repository.part_results() == [result]

    def test_snapshot_is_a_copy(self, repository):
        repository.put_obd_module(0)
        repository.vehicle_information = VehicleInformation(vin="VIN")
        repository.record_outcome(1, 1, Outcome.FAIL, "failure")

        snapshot = repository.snapshot()
        repository.record_outcome(1, 1, Outcome.FAIL, "another")
        repository.get_obd_module(0).calibration_ids.append("CAL")

        assert len(snapshot.part_results[1].steps[1].outcomes) == 1
        assert snapshot.obd_modules[0].calibration_ids == []
        assert snapshot.vehicle_information.vin == "VIN"


def test_vehicle_scalars_without_information():
    repository = DataRepository()

    assert repository.vin == ""
    assert repository.calibration_ids == []
    assert repository.fuel_type is None
