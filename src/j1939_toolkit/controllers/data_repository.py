"""Cross-step store of what has been observed during a run."""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Type, TypeVar, Union

from ..models.outcome import Outcome, OutcomeRecord, PartResult
from ..models.vehicle import OBDModuleInformation, VehicleInformation
from ..packets.generic import GenericPacket

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=GenericPacket)


@dataclass(frozen=True)
class RepositorySnapshot:
    """Read-only copy of the repository for reporting."""
    obd_modules: Dict[int, OBDModuleInformation] = field(default_factory=dict)
    packets: Dict[Tuple[str, int], GenericPacket] = field(default_factory=dict)
    part_results: Dict[int, PartResult] = field(default_factory=dict)
    vehicle_information: Optional[VehicleInformation] = None


class DataRepository:
    """
    Observed vehicle state for one run.

    Owned by the orchestrator thread; steps read and write it only while
    they run, so no locking is done.
    """

    def __init__(self):
        self._obd_modules: Dict[int, OBDModuleInformation] = {}
        self._packets: Dict[Tuple[type, int], GenericPacket] = {}
        self._part_results: Dict[int, PartResult] = {}
        self.vehicle_information: Optional[VehicleInformation] = None

    # OBD modules

    def put_obd_module(self, module: Union[int, OBDModuleInformation]) -> OBDModuleInformation:
        """
        Register an OBD module.

        An address that is already known keeps its existing record; a full
        OBDModuleInformation replaces it.
        """
        if isinstance(module, OBDModuleInformation):
            self._obd_modules[module.source_address] = module
            return module

        existing = self._obd_modules.get(module)
        if existing is None:
            existing = OBDModuleInformation(source_address=module)
            self._obd_modules[module] = existing
            logger.debug(f"Registered OBD module {existing.module_name}")
        return existing

    def get_obd_module(self, address: int) -> Optional[OBDModuleInformation]:
        return self._obd_modules.get(address)

    def is_obd_module(self, address: int) -> bool:
        return address in self._obd_modules

    def obd_module_addresses(self) -> List[int]:
        return sorted(self._obd_modules)

    def obd_modules(self) -> List[OBDModuleInformation]:
        return [self._obd_modules[address] for address in self.obd_module_addresses()]

    # Packets

    def save(self, packet: GenericPacket) -> None:
        """Record the latest packet of its class from its source address."""
        self._packets[(type(packet), packet.source_address)] = packet

    def get(self, packet_class: Type[T], address: int) -> Optional[T]:
        """Most recent packet of packet_class from address, or None."""
        return self._packets.get((packet_class, address))

    def packets(self, packet_class: Type[T]) -> List[T]:
        """Latest packet of a class from every address, ordered by address."""
        found = [(key[1], packet) for key, packet in self._packets.items() if key[0] is packet_class]
        return [packet for _, packet in sorted(found, key=lambda item: item[0])]

    # Vehicle scalars

    @property
    def vin(self) -> str:
        return self.vehicle_information.vin if self.vehicle_information else ""

    @property
    def calibration_ids(self) -> List[str]:
        return list(self.vehicle_information.calibration_ids) if self.vehicle_information else []

    @property
    def fuel_type(self):
        return self.vehicle_information.fuel_type if self.vehicle_information else None

    # Results

    def part_result(self, part: int, name: str = "") -> PartResult:
        """Get or create the result for a part."""
        result = self._part_results.get(part)
        if result is None:
            result = PartResult(part=part, name=name)
            self._part_results[part] = result
        elif name and not result.name:
            result.name = name
        return result

    def part_results(self) -> List[PartResult]:
        return [self._part_results[part] for part in sorted(self._part_results)]

    def record_outcome(self, part: int, step: int, outcome: Outcome, message: str = "") -> OutcomeRecord:
        """Append an outcome to the step's result."""
        record = OutcomeRecord(part=part, step=step, outcome=outcome, message=message)
        self.part_result(part).step_result(step).add(record)
        return record

    def snapshot(self) -> RepositorySnapshot:
        return RepositorySnapshot(
            obd_modules={address: module.model_copy(deep=True) for address, module in self._obd_modules.items()},
            packets={(cls.__name__, address): packet for (cls, address), packet in self._packets.items()},
            part_results={part: result.model_copy(deep=True) for part, result in self._part_results.items()},
            vehicle_information=self.vehicle_information.model_copy(deep=True) if self.vehicle_information else None,
        )
