"""Request modules used by test steps."""

from .base import FunctionalModule
from .diagnostic_message import DiagnosticMessageModule
from .engine_speed import EngineSpeedModule
from .vehicle_information import VehicleInformationModule

__all__ = ["FunctionalModule", "DiagnosticMessageModule", "EngineSpeedModule", "VehicleInformationModule"]
