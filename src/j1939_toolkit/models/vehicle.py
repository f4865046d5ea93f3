"""Vehicle level and per-module information gathered during a run."""

from enum import Enum
from typing import Dict, List, Optional, Set

from pydantic import BaseModel, Field

from ..packets.lookup import get_address_name


class FuelType(str, Enum):
    """Fuel type as entered by the operator or reported by SPN 5837."""
    DIESEL = "Diesel"
    GASOLINE = "Gasoline"
    NATURAL_GAS = "Natural Gas"
    PROPANE = "Propane"
    ELECTRIC = "Electric"
    HYBRID_DIESEL = "Hybrid Diesel"
    HYBRID_GASOLINE = "Hybrid Gasoline"
    UNKNOWN = "Unknown"

    @property
    def is_compression_ignition(self) -> bool:
        return self in (FuelType.DIESEL, FuelType.HYBRID_DIESEL)


class OBDModuleInformation(BaseModel):
    """What is known about one OBD module."""

    source_address: int = Field(..., ge=0, le=253)
    function: Optional[int] = Field(default=None, description="Declared J1939 function")
    obd_compliance: Optional[int] = Field(default=None, description="DM5 OBD compliance byte")
    supported_spns: Set[int] = Field(default_factory=set)
    supported_pgns: Set[int] = Field(default_factory=set)
    monitor_support: Dict[str, int] = Field(default_factory=dict, description="Monitor bitmasks by name")
    calibration_ids: List[str] = Field(default_factory=list)

    @property
    def module_name(self) -> str:
        return get_address_name(self.source_address)


class VehicleInformation(BaseModel):
    """Vehicle level values confirmed at the start of a run."""

    vin: str = Field(default="", description="Vehicle Identification Number")
    model_year: Optional[int] = Field(default=None)
    fuel_type: FuelType = Field(default=FuelType.UNKNOWN)
    engine_model_year: Optional[int] = Field(default=None)
    calibration_ids: List[str] = Field(default_factory=list)
    emission_units: int = Field(default=0, ge=0, description="Expected number of OBD modules")
    certification_intent: str = Field(default="US-EPA")

    def __str__(self) -> str:
        lines = [
            f"VIN: {self.vin}",
            f"Model Year: {self.model_year if self.model_year is not None else 'Unknown'}",
            f"Fuel Type: {self.fuel_type.value}",
            f"Calibrations: {len(self.calibration_ids)}",
        ]
        return "\n".join(lines)
