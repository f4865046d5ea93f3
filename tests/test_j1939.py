"""Tests for J1939 request/response transactions."""

import can
import pytest

from j1939_toolkit.bus.j1939 import RequestResult, ResultKind
from j1939_toolkit.errors import BusError
from j1939_toolkit.packets import (
    AckResponse,
    AcknowledgmentPacket,
    DM2PreviouslyActiveDTC,
    DM21DiagnosticReadinessPacket,
    EngineSpeedPacket,
    LampStatus,
    Packet,
    VehicleIdentificationPacket,
)
from j1939_toolkit.packets.acknowledgment import RequestPacket

OFF = LampStatus.OFF
DM2_PGN = DM2PreviouslyActiveDTC.PGN


def requests_for(pgn, replies_by_destination):
    """Responder answering requests for pgn with the replies listed for the request's destination."""

    def responder(packet):
        if packet.pgn != RequestPacket.PGN or packet.get24(0) != pgn:
            return []
        return replies_by_destination.get(packet.destination_address, [])

    return responder


def dm2(address, mil=OFF):
    return DM2PreviouslyActiveDTC.create(address, mil, OFF, OFF, OFF).packet


def nack(address, pgn=DM2_PGN):
    return AcknowledgmentPacket.create(address, AckResponse.NACK, pgn_requested=pgn).packet


class TestGlobalRequest:

    def test_collects_responses_and_acks(self, j1939, fake_bus, clock):
        fake_bus.responder = requests_for(DM2_PGN, {0xFF: [dm2(0), (dm2(1), 0.5), (nack(0x17), 0.6)]})

        result = j1939.request_global(DM2PreviouslyActiveDTC)

        assert [packet.source_address for packet in result.packets] == [0, 1]
        assert all(isinstance(packet, DM2PreviouslyActiveDTC) for packet in result.packets)
        assert [ack.source_address for ack in result.acks] == [0x17]
        assert not result.cancelled
        assert clock.now() == pytest.approx(1.25)

    def test_request_frame(self, j1939, fake_bus):
        j1939.request_global(DM2PreviouslyActiveDTC)

        assert len(fake_bus.sent) == 1
        message = fake_bus.sent[0]
        assert message.is_extended_id
        assert message.arbitration_id == 0x18EAFFF9
        assert bytes(message.data) == bytes([0xCB, 0xFE, 0x00])

    def test_late_response_is_ignored(self, j1939, fake_bus):
        fake_bus.responder = requests_for(DM2_PGN, {0xFF: [(dm2(0), 1.5)]})
        assert len(j1939.request_global(DM2PreviouslyActiveDTC)) == 0

    def test_other_pgns_are_ignored(self, j1939, fake_bus):
        fake_bus.responder = requests_for(DM2_PGN, {0xFF: [EngineSpeedPacket.create(0, 700).packet, dm2(0)]})

        result = j1939.request_global(DM2PreviouslyActiveDTC)

        assert [packet.pgn for packet in result.packets] == [DM2_PGN]

    def test_cancelled(self, j1939, fake_bus, clock):
        fake_bus.responder = requests_for(DM2_PGN, {0xFF: [(dm2(0), 1.0)]})
        j1939.set_cancel_check(lambda: clock.now() >= 0.5)

        result = j1939.request_global(DM2PreviouslyActiveDTC)

        assert result.cancelled
        assert result.packets == []
        assert clock.now() < 0.7

    def test_decode_error_handler(self, j1939, fake_bus):
        short = Packet.create(DM21DiagnosticReadinessPacket.PGN, 0, 0, 0, 0)
        fake_bus.responder = requests_for(DM21DiagnosticReadinessPacket.PGN, {0xFF: [short]})
        errors = []
        j1939.set_decode_error_handler(errors.append)

        result = j1939.request_global(DM21DiagnosticReadinessPacket)

        assert result.packets == []
        assert len(errors) == 1
        assert "requires 8 bytes" in str(errors[0])


class TestDestinationSpecificRequest:

    def test_response(self, j1939, fake_bus):
        fake_bus.responder = requests_for(DM2_PGN, {0: [dm2(0)]})

        result = j1939.request_ds(DM2PreviouslyActiveDTC, 0)

        assert result.kind == ResultKind.PACKET
        assert result.packet.source_address == 0
        assert result.attempts == 1
        assert fake_bus.sent[0].arbitration_id == 0x18EA00F9

    def test_nack(self, j1939, fake_bus):
        fake_bus.responder = requests_for(DM2_PGN, {1: [nack(1)]})

        result = j1939.request_ds(DM2PreviouslyActiveDTC, 1)

        assert result.kind == ResultKind.ACK
        assert result.is_nack
        assert result.packet is None

    def test_timeout_retries(self, j1939, fake_bus, clock):
        result = j1939.request_ds(DM2PreviouslyActiveDTC, 1)

        assert result.is_timeout
        assert result.attempts == 3
        assert len(fake_bus.sent) == 3
        assert clock.now() == pytest.approx(0.66)

    def test_response_on_retry(self, j1939, fake_bus):
        calls = []

        def responder(packet):
            calls.append(packet)
            return [dm2(0)] if len(calls) == 2 else []

        fake_bus.responder = responder

        result = j1939.request_ds(DM2PreviouslyActiveDTC, 0)

        assert result.kind == ResultKind.PACKET
        assert result.attempts == 2

    def test_response_from_other_module_ignored(self, j1939, fake_bus):
        fake_bus.responder = requests_for(DM2_PGN, {1: [dm2(0), nack(0)]})
        assert j1939.request_ds(DM2PreviouslyActiveDTC, 1).is_timeout

    def test_cancelled_before_send(self, j1939, fake_bus):
        j1939.set_cancel_check(lambda: True)

        result = j1939.request_ds(DM2PreviouslyActiveDTC, 0)

        assert result.is_cancelled
        assert fake_bus.sent == []

    def test_multi_frame_response(self, j1939, fake_bus, sample_vin):
        vin = VehicleIdentificationPacket.create(0, sample_vin).packet
        fake_bus.responder = requests_for(VehicleIdentificationPacket.PGN, {0: [vin]})

        result = j1939.request_ds(VehicleIdentificationPacket, 0)

        assert result.packet.vin == sample_vin


class TestRequestResult:

    def test_add(self, j1939, fake_bus):
        fake_bus.responder = requests_for(DM2_PGN, {0: [dm2(0)], 1: [nack(1)]})

        result = RequestResult()
        result.add(j1939.request_ds(DM2PreviouslyActiveDTC, 0))
        result.add(j1939.request_ds(DM2PreviouslyActiveDTC, 1))
        result.add(j1939.request_ds(DM2PreviouslyActiveDTC, 2))

        assert result.source_addresses == [0]
        assert [ack.source_address for ack in result.nacks] == [1]
        assert not result.cancelled


class TestBusAccess:

    def test_receive_failure_is_unrecoverable(self, j1939, fake_bus):
        fake_bus.recv_error = can.CanError("link down")

        with pytest.raises(BusError) as exc_info:
            j1939.request_global(DM2PreviouslyActiveDTC)

        assert not exc_info.value.recoverable

    def test_send_failure_is_recoverable(self, j1939, fake_bus):
        fake_bus.send_error = can.CanError("tx buffer full")

        with pytest.raises(BusError) as exc_info:
            j1939.request_ds(DM2PreviouslyActiveDTC, 0)

        assert exc_info.value.recoverable

    def test_long_packet_sent_with_bam(self, j1939, fake_bus):
        j1939.send(Packet(pgn=VehicleIdentificationPacket.PGN, source_address=0xF9, data=bytes(20)))

        assert len(fake_bus.sent) == 4
        assert fake_bus.sent_packets[0].data[0] == 0x20

    def test_read_skips_own_and_standard_frames(self, j1939, fake_bus):
        fake_bus.push(EngineSpeedPacket.create(0xF9, 700).packet)
        fake_bus.push_message(can.Message(arbitration_id=0x123, data=bytes(8), is_extended_id=False))
        fake_bus.push(EngineSpeedPacket.create(0, 700).packet)

        packets = [j1939.read(0.1) for _ in range(3)]

        assert packets[:2] == [None, None]
        assert packets[2].source_address == 0

    def test_read_packets(self, j1939, fake_bus):
        fake_bus.push(EngineSpeedPacket.create(0, 600).packet, delay=0.05)
        fake_bus.push(dm2(0), delay=0.1)
        fake_bus.push(EngineSpeedPacket.create(0, 650).packet, delay=0.15)

        packets = j1939.read_packets(EngineSpeedPacket, 0.3)

        assert [packet.rpm for packet in packets] == [pytest.approx(600), pytest.approx(650)]
        assert packets[0].timestamp == pytest.approx(0.05)
