"""
In-memory representation of a decoded leS file.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import numpy as np

from lesvox.layout import Dimensions, flatten_volume, volume_view
from lesvox.validation import (
    MAX_VOXEL_VALUE,
    MIN_VOXEL_VALUE,
    validate_data_array,
    validate_header,
    validate_voxel_array,
)

DEFAULT_VOXEL_PITCH = 1.0
DEFAULT_SOURCE_NAME = "untitled.leS"


@dataclass
class VoxelDataset:
    """
    A voxel grid loaded from (or destined for) a leS file.

    Attributes:
        dimensions: Grid extent, each axis in [1, 1024]
        voxel_pitch: Edge length of one voxel in meters (metadata only)
        values: Flat uint8 buffer of X*Y*Z values, index x + X*(y + Y*z)
        source_name: File name the data came from
        source_path: Full path, or None for unsaved data
    """
    dimensions: Dimensions
    voxel_pitch: float
    values: np.ndarray
    source_name: str = DEFAULT_SOURCE_NAME
    source_path: Optional[str] = None

    @classmethod
    def create(
        cls,
        dimensions: Dimensions,
        voxel_pitch: float = DEFAULT_VOXEL_PITCH,
        values: Optional[np.ndarray] = None,
        source_name: str = DEFAULT_SOURCE_NAME,
        source_path: Optional[str] = None,
    ) -> "VoxelDataset":
        """
        Build a validated dataset directly, without going through the decoder.

        Args:
            dimensions: Grid extent
            voxel_pitch: Voxel edge length in meters
            values: Flat buffer in memory order (zeros if omitted)
            source_name: Display name
            source_path: Optional path

        Raises:
            ParseError: If the header values, buffer length or any value is
                invalid
        """
        validate_header(dimensions.x, dimensions.y, dimensions.z, voxel_pitch)

        if values is None:
            values = np.zeros(dimensions.total_voxels(), dtype=np.uint8)
        else:
            values = _as_voxel_buffer(values, dimensions)

        return cls(
            dimensions=dimensions,
            voxel_pitch=float(voxel_pitch),
            values=values,
            source_name=source_name,
            source_path=source_path,
        )

    @classmethod
    def from_volume(
        cls,
        volume: np.ndarray,
        voxel_pitch: float = DEFAULT_VOXEL_PITCH,
        source_name: str = DEFAULT_SOURCE_NAME,
        source_path: Optional[str] = None,
    ) -> "VoxelDataset":
        """
        Build a dataset from a 3D array indexed [x, y, z].

        Example:
            >>> vol = np.zeros((4, 3, 2), dtype=np.uint8)
            >>> vol[1, 2, 0] = 7
            >>> ds = VoxelDataset.from_volume(vol, 1e-8)
            >>> ds.get_voxel(1, 2, 0)
            7
        """
        flat, dims = flatten_volume(volume)
        return cls.create(dims, voxel_pitch, flat, source_name, source_path)

    def to_volume(self) -> np.ndarray:
        """Return a writable [x, y, z] view of the value buffer (no copy)."""
        return volume_view(self.values, self.dimensions)

    def _check_bounds(self, x: int, y: int, z: int) -> None:
        dims = self.dimensions
        if not (0 <= x < dims.x and 0 <= y < dims.y and 0 <= z < dims.z):
            raise IndexError(f"Voxel ({x}, {y}, {z}) outside grid {dims}")

    def get_voxel(self, x: int, y: int, z: int) -> int:
        self._check_bounds(x, y, z)
        return int(self.values[self.dimensions.flat_index(x, y, z)])

    def set_voxel(self, x: int, y: int, z: int, value: int) -> None:
        """Set one voxel in place. Value must be in [0, 255]."""
        self._check_bounds(x, y, z)
        if value < MIN_VOXEL_VALUE or value > MAX_VOXEL_VALUE:
            raise ValueError(f"Voxel value {value} outside [0, 255]")
        self.values[self.dimensions.flat_index(x, y, z)] = value

    def physical_size(self) -> Tuple[float, float, float]:
        """Extent of the grid in meters along x, y, z."""
        dims = self.dimensions
        return (
            dims.x * self.voxel_pitch,
            dims.y * self.voxel_pitch,
            dims.z * self.voxel_pitch,
        )

    def value_histogram(self) -> np.ndarray:
        """Counts of each value 0..255."""
        return np.bincount(self.values, minlength=MAX_VOXEL_VALUE + 1)

    def get_stats(self) -> Dict[str, Any]:
        """
        Summary statistics for display.

        Returns:
            Dict with dimensions, pitch, voxel counts, value range and
            physical size
        """
        total_voxels = self.dimensions.total_voxels()
        histogram = self.value_histogram()
        nonzero_voxels = total_voxels - int(histogram[0])
        present = np.flatnonzero(histogram)

        return {
            "dimensions": self.dimensions.as_tuple(),
            "voxel_pitch_m": self.voxel_pitch,
            "total_voxels": total_voxels,
            "nonzero_voxels": nonzero_voxels,
            "empty_voxels": int(histogram[0]),
            "fill_ratio": float(nonzero_voxels / total_voxels) if total_voxels > 0 else 0,
            "distinct_values": int(len(present)),
            "min_value": int(present[0]) if len(present) else 0,
            "max_value": int(present[-1]) if len(present) else 0,
            "physical_size_m": self.physical_size(),
        }


def _as_voxel_buffer(values, dimensions: Dimensions) -> np.ndarray:
    """
    Coerce values into a flat uint8 array without wrapping or truncating.

    Anything that is not already bytes is range-checked first, so -1, 256 and
    1.5 are rejected rather than silently turned into a different byte.
    """
    if isinstance(values, np.ndarray) and values.dtype == np.uint8:
        arr = values.reshape(-1)
    elif isinstance(values, (bytes, bytearray, memoryview)):
        arr = np.frombuffer(bytearray(values), dtype=np.uint8)
    else:
        arr = np.asarray(values).reshape(-1)

    validate_data_array(arr, dimensions)
    validate_voxel_array(arr, dimensions)
    return arr.astype(np.uint8, copy=False)
