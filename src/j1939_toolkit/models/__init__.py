"""Data models for the J1939-84 toolkit."""

from .outcome import Outcome, OutcomeRecord, PartResult, StepResult, StepState, worst_outcome
from .vehicle import FuelType, OBDModuleInformation, VehicleInformation

__all__ = [
    "Outcome",
    "OutcomeRecord",
    "PartResult",
    "StepResult",
    "StepState",
    "worst_outcome",
    "FuelType",
    "OBDModuleInformation",
    "VehicleInformation",
]
