"""
Synthetic voxel volumes for testing and demos.

All generators return uint8 arrays indexed [x, y, z]; wrap them with
VoxelDataset.from_volume or use make_dataset.
"""

from typing import Callable, Dict, Tuple

import numpy as np

from lesvox.dataset import VoxelDataset
from lesvox.layout import Dimensions
from lesvox.validation import validate_header


def random_spheres(
    dims: Dimensions,
    num_spheres: int = 10,
    min_radius: int = 5,
    max_radius: int = 30,
    seed: int = 42,
) -> np.ndarray:
    """
    Place solid spheres with random centres, radii and material ids (1-255).

    Later spheres overwrite earlier ones where they overlap.

    Args:
        dims: Grid extent
        num_spheres: Number of spheres
        min_radius: Smallest radius in voxels
        max_radius: Largest radius in voxels
        seed: Random seed, for reproducible volumes

    Returns:
        uint8 array [dim_x, dim_y, dim_z]
    """
    if min_radius > max_radius:
        raise ValueError(f"min_radius {min_radius} > max_radius {max_radius}")

    rng = np.random.default_rng(seed)
    volume = np.zeros(dims.as_tuple(), dtype=np.uint8)
    xs, ys, zs = np.ogrid[0:dims.x, 0:dims.y, 0:dims.z]

    for _ in range(num_spheres):
        # Keep centres far enough from the faces when the grid allows it
        cx, cy, cz = (_random_centre(rng, size, max_radius) for size in dims.as_tuple())
        radius = int(rng.integers(min_radius, max_radius + 1))
        material_id = int(rng.integers(1, 256))

        inside = (xs - cx) ** 2 + (ys - cy) ** 2 + (zs - cz) ** 2 <= radius ** 2
        volume[inside] = material_id

    return volume


def _random_centre(rng: np.random.Generator, size: int, margin: int) -> int:
    low = min(margin, size - 1)
    high = max(low, size - margin - 1)
    return int(rng.integers(low, high + 1))


def spatial_regions(dims: Dimensions, num_regions: int = 8) -> np.ndarray:
    """
    Split each axis into `num_regions` slabs and give every block its own id.

    Ids cycle through 1..16 in x-major, then y, then z block order.
    """
    if num_regions < 1:
        raise ValueError(f"num_regions must be >= 1, got {num_regions}")

    # Block index of every coordinate along each axis
    bx, by, bz = (
        (np.arange(size) * num_regions) // size for size in dims.as_tuple()
    )
    block = (
        bx[:, None, None] * num_regions * num_regions
        + by[None, :, None] * num_regions
        + bz[None, None, :]
    )
    return (block % 16 + 1).astype(np.uint8)


def gradient(dims: Dimensions, axis: int = 2) -> np.ndarray:
    """
    Linear ramp from 1 to 255 along one axis (0 = x, 1 = y, 2 = z).
    """
    if axis not in (0, 1, 2):
        raise ValueError(f"axis must be 0, 1 or 2, got {axis}")

    shape = dims.as_tuple()
    size = shape[axis]
    ramp = np.floor(np.arange(size) / max(1, size - 1) * 255)
    ramp = np.clip(ramp, 1, 255).astype(np.uint8)

    index_shape = [1, 1, 1]
    index_shape[axis] = size
    return np.broadcast_to(ramp.reshape(index_shape), shape).copy()


def checkerboard(
    dims: Dimensions,
    block_size: int = 16,
    values: Tuple[int, int] = (10, 5),
) -> np.ndarray:
    """3D checkerboard of `block_size`-voxel cubes alternating between two values."""
    if block_size < 1:
        raise ValueError(f"block_size must be >= 1, got {block_size}")

    xs, ys, zs = np.ogrid[0:dims.x, 0:dims.y, 0:dims.z]
    parity = (xs // block_size + ys // block_size + zs // block_size) % 2
    even, odd = values
    return np.where(parity == 0, even, odd).astype(np.uint8)


PATTERNS: Dict[str, Callable[..., np.ndarray]] = {
    "spheres": random_spheres,
    "regions": spatial_regions,
    "gradient": gradient,
    "checkerboard": checkerboard,
}


def make_dataset(
    pattern: str,
    dims: Dimensions,
    voxel_pitch: float = 1e-8,
    source_name: str = "synthetic.leS",
    **kwargs,
) -> VoxelDataset:
    """
    Generate a named pattern and wrap it as a VoxelDataset.

    Example:
        >>> ds = make_dataset("checkerboard", Dimensions(32, 32, 32), 5e-8, block_size=8)
    """
    if pattern not in PATTERNS:
        raise ValueError(f"Unknown pattern: {pattern}. Choose from {sorted(PATTERNS)}")
    validate_header(dims.x, dims.y, dims.z, voxel_pitch)

    volume = PATTERNS[pattern](dims, **kwargs)
    return VoxelDataset.from_volume(volume, voxel_pitch, source_name)
