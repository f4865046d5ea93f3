"""Bus manager for python-can interfaces."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import can

from ..clock import TimeSource
from .adapter import AdapterDetector, AdapterInfo
from .j1939 import J1939

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    """Connection state enumeration."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


@dataclass
class ConnectionResult:
    """Result of a connection attempt."""
    success: bool
    state: ConnectionState
    message: str
    interface: str = ""
    channel: str = ""
    adapter_info: Optional[AdapterInfo] = None
    error: Optional[str] = None


class BusManager:
    """Opens and closes the CAN bus and hands out the J1939 transaction layer."""

    def __init__(self, tool_address: int = 0xF9):
        self._bus: Optional[can.BusABC] = None
        self._j1939: Optional[J1939] = None
        self._tool_address = tool_address
        self._adapter_info: Optional[AdapterInfo] = None
        self._state = ConnectionState.DISCONNECTED
        self._on_state_change: Optional[Callable[[ConnectionState], None]] = None

    @property
    def bus(self) -> Optional[can.BusABC]:
        """Get the underlying python-can bus."""
        return self._bus

    @property
    def j1939(self) -> Optional[J1939]:
        return self._j1939

    @property
    def is_connected(self) -> bool:
        return self._bus is not None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def adapter_info(self) -> Optional[AdapterInfo]:
        return self._adapter_info

    def on_state_change(self, callback: Callable[[ConnectionState], None]) -> None:
        """Register callback for state changes."""
        self._on_state_change = callback

    def _set_state(self, state: ConnectionState) -> None:
        self._state = state
        if self._on_state_change:
            self._on_state_change(state)

    def connect(
        self,
        interface: str = "socketcan",
        channel: Optional[str] = None,
        bitrate: int = 250000,
        clock: Optional[TimeSource] = None,
        **j1939_options,
    ) -> ConnectionResult:
        """
        Open the CAN bus.

        Args:
            interface: python-can interface name (socketcan, pcan, slcan, ...)
            channel: Interface channel; for slcan the serial port is auto-detected if None
            bitrate: Bus bit rate; J1939 vehicles use 250000 or 500000
            clock: Time source for the transaction layer
            **j1939_options: Passed through to J1939 (global_window, ds_timeout, ds_retries)

        Returns:
            ConnectionResult with success status and details
        """
        self._set_state(ConnectionState.CONNECTING)

        if channel is None and interface == "slcan":
            adapter = AdapterDetector.find_best_adapter()
            if adapter is None:
                self._set_state(ConnectionState.ERROR)
                return ConnectionResult(
                    success=False,
                    state=ConnectionState.ERROR,
                    message="No CAN adapter found",
                    interface=interface,
                    error="Could not auto-detect a serial CAN adapter. Please specify a channel.",
                )
            channel = adapter.port
            self._adapter_info = adapter
            logger.info(f"Auto-detected adapter: {adapter}")
        elif channel and interface == "slcan":
            self._adapter_info = AdapterDetector.get_port_by_name(channel)

        if self._bus:
            self.disconnect()

        try:
            logger.info(f"Opening {interface} channel {channel} at {bitrate} bit/s")
            self._bus = can.Bus(interface=interface, channel=channel, bitrate=bitrate)
        except (can.CanError, OSError, ValueError) as e:
            logger.error(f"Connection error: {e}")
            self._set_state(ConnectionState.ERROR)
            return ConnectionResult(
                success=False,
                state=ConnectionState.ERROR,
                message="Connection failed",
                interface=interface,
                channel=str(channel),
                error=str(e),
            )

        self._j1939 = J1939(self._bus, clock=clock, tool_address=self._tool_address, **j1939_options)
        self._set_state(ConnectionState.CONNECTED)
        return ConnectionResult(
            success=True,
            state=ConnectionState.CONNECTED,
            message=f"Connected to {interface} {channel}",
            interface=interface,
            channel=str(channel),
            adapter_info=self._adapter_info,
        )

    def disconnect(self) -> None:
        """Shut down the CAN bus."""
        if self._bus:
            try:
                self._bus.shutdown()
            except can.CanError as e:
                logger.warning(f"Error closing bus: {e}")
            finally:
                self._bus = None
                self._j1939 = None

        self._adapter_info = None
        self._set_state(ConnectionState.DISCONNECTED)
        logger.info("Disconnected from CAN bus")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()
        return False
