"""Exception hierarchy for the J1939-84 toolkit."""

from typing import Optional


class J1939Error(Exception):
    """Base class for all toolkit errors."""


class DecodeError(J1939Error):
    """A payload is too short or malformed for the requested parameter."""

    def __init__(self, message: str, pgn: Optional[int] = None, source_address: Optional[int] = None):
        super().__init__(message)
        self.pgn = pgn
        self.source_address = source_address


class BusError(J1939Error):
    """The CAN adapter failed (link down, driver error, send failure)."""

    def __init__(self, message: str, recoverable: bool = True):
        super().__init__(message)
        self.recoverable = recoverable


class Interrupted(J1939Error):
    """The run was cancelled or a step requested an abort."""

    def __init__(self, message: str = "User cancelled operation"):
        super().__init__(message)
        self.message = message


class UnexpectedError(J1939Error):
    """Wraps any other failure raised while a step was running."""

    def __init__(self, message: str, trace: str = ""):
        super().__init__(message)
        self.trace = trace
