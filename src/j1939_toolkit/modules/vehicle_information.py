"""VIN, calibration and OBD module discovery."""

import logging
from typing import List

from ..controllers.data_repository import DataRepository
from ..controllers.listener import ResultsListener
from ..models.vehicle import OBDModuleInformation, VehicleInformation
from ..packets.vehicle import CalibrationInformation, DM19CalibrationInformationPacket, VehicleIdentificationPacket
from .base import FunctionalModule
from .diagnostic_message import DiagnosticMessageModule

logger = logging.getLogger(__name__)


class VehicleInformationModule(FunctionalModule):
    """Collects the vehicle level information a run starts from."""

    def request_vin(self, listener: ResultsListener) -> List[VehicleIdentificationPacket]:
        return self._request_global(listener, "Global VIN Request", VehicleIdentificationPacket).packets

    def get_vin(self, listener: ResultsListener) -> str:
        """
        The VIN reported by the vehicle.

        Returns:
            The VIN, or an empty string when no module reported one
        """
        vins = {packet.vin for packet in self.request_vin(listener) if packet.vin}
        if len(vins) > 1:
            logger.warning(f"Modules reported different VINs: {sorted(vins)}")
        return sorted(vins)[0] if vins else ""

    def request_calibration_information(self, listener: ResultsListener) -> List[DM19CalibrationInformationPacket]:
        return self._request_global(listener, "Global DM19 (Calibration Information) Request",
                                    DM19CalibrationInformationPacket).packets

    def get_calibrations(self, listener: ResultsListener) -> List[CalibrationInformation]:
        calibrations = []
        for packet in self.request_calibration_information(listener):
            calibrations.extend(packet.calibration_information)
        return calibrations

    def collect(self, listener: ResultsListener, repository: DataRepository,
                diagnostic_messages: DiagnosticMessageModule) -> VehicleInformation:
        """
        Fill the repository with the VIN, calibrations and OBD modules.

        A module is an OBD module when its DM5 claims OBD compliance.
        """
        for packet in diagnostic_messages.request_dm5(listener).packets:
            if packet.is_obd:
                repository.put_obd_module(OBDModuleInformation(
                    source_address=packet.source_address,
                    obd_compliance=packet.obd_compliance,
                    monitor_support={
                        "continuous": packet.continuously_monitored_systems,
                        "non_continuous": packet.non_continuously_monitored_support,
                    },
                ))

        calibrations = self.request_calibration_information(listener)
        for packet in calibrations:
            module = repository.get_obd_module(packet.source_address)
            if module is not None:
                module.calibration_ids = [cal.calibration_identification for cal in packet.calibration_information]

        information = VehicleInformation(
            vin=self.get_vin(listener),
            calibration_ids=[cal.calibration_identification
                             for packet in calibrations for cal in packet.calibration_information],
            emission_units=len(repository.obd_module_addresses()),
        )
        repository.vehicle_information = information
        logger.info(f"Vehicle {information.vin or 'without VIN'}, OBD modules {repository.obd_module_addresses()}")
        return information
