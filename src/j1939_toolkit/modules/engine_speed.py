"""Engine speed monitoring used to check key and engine state."""

import logging
from typing import Optional

from ..errors import Interrupted
from ..packets.engine_speed import EngineSpeedPacket
from .base import FunctionalModule

logger = logging.getLogger(__name__)

# EEC1 is broadcast every 10 to 100 ms depending on engine speed
ENGINE_SPEED_WINDOW = 0.3
ENGINE_RUNNING_RPM = 300.0


class EngineSpeedModule(FunctionalModule):
    """Reads broadcast EEC1 to tell whether the engine is running."""

    def __init__(self, j1939=None, clock=None, running_rpm: float = ENGINE_RUNNING_RPM,
                 window: float = ENGINE_SPEED_WINDOW):
        super().__init__(j1939, clock)
        self._running_rpm = running_rpm
        self._window = window

    def get_engine_speed_packet(self) -> Optional[EngineSpeedPacket]:
        """
        Latest EEC1 heard within the listen window.

        Raises:
            Interrupted: If the run was cancelled while listening
        """
        packets = self.j1939.read_packets(EngineSpeedPacket, self._window)
        if packets is None:
            raise Interrupted()
        return packets[-1] if packets else None

    def get_engine_speed(self) -> Optional[float]:
        """Engine speed in RPM, None when not broadcast, errored or not available."""
        packet = self.get_engine_speed_packet()
        if packet is None:
            logger.debug("No engine speed broadcast heard")
            return None
        return packet.rpm

    def is_engine_running(self) -> bool:
        rpm = self.get_engine_speed()
        return rpm is not None and rpm >= self._running_rpm

    def is_engine_not_running(self) -> bool:
        """True with the key on and the engine stopped (engine speed broadcast and below the threshold)."""
        rpm = self.get_engine_speed()
        return rpm is not None and rpm < self._running_rpm
