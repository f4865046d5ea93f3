"""Pytest fixtures for J1939-84 toolkit tests."""

from collections import deque
from typing import Callable, Iterable, List, Optional

import can
import pytest
from unittest.mock import MagicMock

from j1939_toolkit.bus.j1939 import J1939
from j1939_toolkit.bus.transport import bam_frames
from j1939_toolkit.clock import VirtualClock
from j1939_toolkit.controllers.data_repository import DataRepository
from j1939_toolkit.controllers.listener import TranscriptListener
from j1939_toolkit.controllers.part import RunEnvironment
from j1939_toolkit.controllers.step import EndingSignal, StepContext
from j1939_toolkit.modules import DiagnosticMessageModule, EngineSpeedModule, VehicleInformationModule
from j1939_toolkit.packets.packet import Packet

Responder = Callable[[Packet], Optional[Iterable]]


class FakeBus:
    """
    In-memory stand-in for a python-can bus driven by a VirtualClock.

    Queued frames become receivable once the clock reaches their due time;
    recv() advances the clock by its timeout when nothing is due. A
    responder, if set, sees every sent packet and returns the packets (or
    (packet, delay) pairs) to queue in reply.
    """

    def __init__(self, clock: VirtualClock, responder: Optional[Responder] = None):
        self.clock = clock
        self.responder = responder
        self.sent: List[can.Message] = []
        self.recv_error: Optional[Exception] = None
        self.send_error: Optional[Exception] = None
        self._queue = deque()

    @property
    def sent_packets(self) -> List[Packet]:
        return [Packet.from_identifier(message.arbitration_id, bytes(message.data)) for message in self.sent]

    def push(self, packet: Packet, delay: float = 0.01) -> None:
        """Queue a packet, split into BAM frames when it does not fit one frame."""
        due = self.clock.now() + delay
        frames = [packet] if packet.length <= 8 else bam_frames(packet)
        for frame in frames:
            self.push_message(can.Message(arbitration_id=frame.identifier, data=frame.data, is_extended_id=True),
                              due)

    def push_message(self, message: can.Message, due: Optional[float] = None) -> None:
        self._queue.append((self.clock.now() if due is None else due, message))

    def send(self, message: can.Message, timeout: Optional[float] = None) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(message)
        if self.responder is None:
            return
        packet = Packet.from_identifier(message.arbitration_id, bytes(message.data))
        for reply in self.responder(packet) or []:
            if isinstance(reply, tuple):
                self.push(*reply)
            else:
                self.push(reply)

    def recv(self, timeout: Optional[float] = None) -> Optional[can.Message]:
        if self.recv_error is not None:
            raise self.recv_error
        timeout = timeout or 0.0
        if self._queue:
            due, message = self._queue[0]
            if due <= self.clock.now() + timeout:
                self._queue.popleft()
                if due > self.clock.now():
                    self.clock.advance(due - self.clock.now())
                return message
        self.clock.advance(timeout)
        return None

    def shutdown(self) -> None:
        pass


@pytest.fixture
def clock():
    return VirtualClock()


@pytest.fixture
def fake_bus(clock):
    return FakeBus(clock)


@pytest.fixture
def j1939(fake_bus, clock):
    return J1939(fake_bus, clock=clock)


@pytest.fixture
def listener():
    return TranscriptListener()


@pytest.fixture
def repository():
    return DataRepository()


@pytest.fixture
def mock_diagnostic_messages():
    """DiagnosticMessageModule whose requests are configured per test."""
    return MagicMock(spec=DiagnosticMessageModule)


@pytest.fixture
def mock_engine_speed():
    mock = MagicMock(spec=EngineSpeedModule)
    mock.is_engine_running.return_value = True
    mock.is_engine_not_running.return_value = False
    return mock


@pytest.fixture
def mock_vehicle_information():
    return MagicMock(spec=VehicleInformationModule)


@pytest.fixture
def env(listener, repository, clock, mock_diagnostic_messages, mock_engine_speed, mock_vehicle_information):
    return RunEnvironment(
        listener=listener,
        repository=repository,
        clock=clock,
        diagnostic_messages=mock_diagnostic_messages,
        engine_speed=mock_engine_speed,
        vehicle_information=mock_vehicle_information,
    )


@pytest.fixture
def make_context(listener, repository, clock, mock_diagnostic_messages, mock_engine_speed):
    """Factory for a StepContext of a given part and step."""

    def factory(part: int = 1, step: int = 1, total_steps: int = 0, ending: Optional[EndingSignal] = None):
        return StepContext(
            part=part,
            step=step,
            listener=listener,
            repository=repository,
            clock=clock,
            diagnostic_messages=mock_diagnostic_messages,
            engine_speed=mock_engine_speed,
            total_steps=total_steps,
            ending=ending,
        )

    return factory


@pytest.fixture
def sample_vin():
    """Sample VIN for testing."""
    return "1FUJGLDR5CLBP8834"
