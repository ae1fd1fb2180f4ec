"""
Grid extent and voxel addressing for leS data.

Two index mappings live here so that the decoder and encoder cannot drift:

- File order: body row i holds the Z values of the (x, y) pair
  x = i // Y, y = i % Y, ordered by increasing z.
- Memory order: the flat buffer uses x fastest, then y, then z
  (flat = x + X * (y + Y * z)), which is what 3D texture uploads expect.

The numpy views below are the vectorised form of the same contract.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np

# Constants
MIN_DIMENSION = 1
MAX_DIMENSION = 1024
AXES = ("x", "y", "z")


@dataclass(frozen=True)
class Dimensions:
    """Extent of a voxel grid along x, y and z."""
    x: int
    y: int
    z: int

    @property
    def row_count(self) -> int:
        """Number of body rows in a leS file (one per (x, y) pair)."""
        return self.x * self.y

    def total_voxels(self) -> int:
        """Total number of voxels. Python ints, so 1024^3 does not overflow."""
        return self.x * self.y * self.z

    def row_coordinates(self, row_index: int) -> Tuple[int, int]:
        """
        Map a body row index to its (x, y) grid coordinates.

        Args:
            row_index: Zero-based body row, in [0, x*y)

        Returns:
            (x_coord, y_coord)

        Raises:
            IndexError: If row_index is outside the body
        """
        if row_index < 0 or row_index >= self.x * self.y:
            raise IndexError(
                f"Row index {row_index} out of range for {self.x * self.y} rows"
            )
        return row_index // self.y, row_index % self.y

    def flat_index(self, x: int, y: int, z: int) -> int:
        """Flat buffer index of voxel (x, y, z). Callers bounds-check first."""
        return x + self.x * (y + self.y * z)

    def rows_flat_indices(self, start: int, stop: int) -> np.ndarray:
        """
        Flat buffer indices of every voxel on body rows [start, stop).

        Returns:
            Int array of shape [stop - start, z]; entry [r, k] is the index of
            value k on row start + r
        """
        rows = np.arange(start, stop, dtype=np.int64)
        x_coords, y_coords = divmod(rows, self.y)
        z_coords = np.arange(self.z, dtype=np.int64)
        return self.flat_index(x_coords[:, None], y_coords[:, None], z_coords[None, :])

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.x, self.y, self.z)

    def __str__(self) -> str:
        return f"{self.x}x{self.y}x{self.z}"


def volume_view(values: np.ndarray, dims: Dimensions) -> np.ndarray:
    """
    View a flat value buffer as an array indexed [x, y, z].

    The flat buffer is z-major in C order, so it reshapes to (z, y, x) and is
    transposed. No data is copied; writes through the view land in `values`.
    """
    return np.asarray(values).reshape((dims.z, dims.y, dims.x)).transpose(2, 1, 0)


def rows_view(values: np.ndarray, dims: Dimensions) -> np.ndarray:
    """
    View a flat value buffer in file order, shape [x*y, z].

    Row i of the result is body row i of the leS file.
    """
    return volume_view(values, dims).reshape((dims.x * dims.y, dims.z))


def flatten_volume(volume: np.ndarray) -> Tuple[np.ndarray, Dimensions]:
    """
    Convert an [x, y, z] array into a flat buffer in memory order.

    The dtype is kept; range checks and the uint8 cast belong to the caller
    (see VoxelDataset.create).

    Args:
        volume: 3D array with shape [dim_x, dim_y, dim_z]

    Returns:
        Tuple of (flat array, Dimensions)
    """
    volume = np.asarray(volume)
    if volume.ndim != 3:
        raise ValueError(f"Volume must be 3D, got shape {volume.shape}")

    dim_x, dim_y, dim_z = volume.shape
    flat = np.ascontiguousarray(volume.transpose(2, 1, 0)).ravel()
    return flat, Dimensions(int(dim_x), int(dim_y), int(dim_z))
