"""Encoded J1939-84 test steps and the parts they belong to."""

from typing import Dict, List

from ..controllers.part import PartController
from .part01 import Part01Step11, Part01Step27
from .part03 import Part03Step07
from .part11 import Part11Step11

# part number: (display name, step count, encoded step classes)
PART_DEFINITIONS = {
    1: ("Part 1 Test", 27, (Part01Step11, Part01Step27)),
    3: ("Part 3 Test", 14, (Part03Step07,)),
    11: ("Part 11 Test", 14, (Part11Step11,)),
}


def available_parts() -> List[int]:
    return sorted(PART_DEFINITIONS)


def build_part(part_number: int) -> PartController:
    """
    Create the controller for a part.

    Raises:
        KeyError: If the part is unknown
    """
    name, step_count, step_classes = PART_DEFINITIONS[part_number]
    return PartController(part_number, name, step_count, [cls() for cls in step_classes])


def build_parts(part_numbers: List[int]) -> Dict[int, PartController]:
    return {number: build_part(number) for number in sorted(set(part_numbers))}


__all__ = [
    "PART_DEFINITIONS",
    "available_parts",
    "build_part",
    "build_parts",
    "Part01Step11",
    "Part01Step27",
    "Part03Step07",
    "Part11Step11",
]
