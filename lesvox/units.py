"""
Physical length formatting and scale bar sizing for voxel grids.
"""

import math
from dataclasses import dataclass
from typing import Dict, List, Tuple

from lesvox.layout import AXES, Dimensions

# (label, meters per unit), smallest first
UNITS: List[Tuple[str, float]] = [
    ("pm", 1e-12),
    ("nm", 1e-9),
    ("um", 1e-6),
    ("mm", 1e-3),
    ("cm", 1e-2),
    ("m", 1.0),
    ("km", 1e3),
]

NICE_NUMBERS = (1, 2, 5, 10)


@dataclass
class ScaleBar:
    """A scale bar with a round length in a readable unit."""
    length_in_voxels: float
    length_in_meters: float
    label: str
    unit: str
    value: float


def format_physical_length(length_in_meters: float) -> str:
    """
    Format a length with 4 significant digits in the first unit that puts it
    in [0.1, 10000).

    Example:
        >>> format_physical_length(2e-7)
        '200 nm'
    """
    if length_in_meters <= 0:
        return "0"

    label, meters = UNITS[0]
    for unit_label, unit_meters in UNITS:
        value = length_in_meters / unit_meters
        if 0.1 <= value < 10000:
            label, meters = unit_label, unit_meters
            break

    value = length_in_meters / meters
    formatted = f"{float(f'{value:.4g}'):g}"
    return f"{formatted} {label}"


def calculate_scale_bar(
    size_in_voxels: int,
    voxel_pitch: float,
    target_ratio: float = 0.25,
) -> ScaleBar:
    """
    Pick a scale bar close to `target_ratio` of the model size, rounded to
    1, 2 or 5 times a power of ten in the unit that reads closest to 10.

    Args:
        size_in_voxels: Model extent along the axis, in voxels
        voxel_pitch: Voxel edge length in meters
        target_ratio: Desired bar length as a fraction of the model

    Returns:
        ScaleBar
    """
    target_meters = size_in_voxels * voxel_pitch * target_ratio
    if not target_meters > 0 or not math.isfinite(target_meters):
        raise ValueError(f"Scale bar needs a positive finite length, got {target_meters}")

    best_label, best_meters = min(
        UNITS, key=lambda unit: abs(math.log10(target_meters / unit[1]) - 1)
    )

    value_in_unit = target_meters / best_meters
    magnitude = 10 ** math.floor(math.log10(value_in_unit))
    normalized = value_in_unit / magnitude
    nice = min(NICE_NUMBERS, key=lambda n: abs(n - normalized))

    value = nice * magnitude
    length_in_meters = value * best_meters

    if float(value).is_integer():
        display = str(int(value))
    else:
        display = f"{value:.1f}"

    return ScaleBar(
        length_in_voxels=length_in_meters / voxel_pitch,
        length_in_meters=length_in_meters,
        label=f"{display} {best_label}",
        unit=best_label,
        value=value,
    )


def calculate_scale_bars(dims: Dimensions, voxel_pitch: float) -> Dict[str, ScaleBar]:
    """Independent scale bars for the x, y and z extents."""
    return {
        axis: calculate_scale_bar(size, voxel_pitch)
        for axis, size in zip(AXES, dims.as_tuple())
    }
