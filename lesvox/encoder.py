"""
leS encoder: VoxelDataset -> text.

Output is normalised: single spaces between values, "\\n" line endings and the
pitch in 6-fractional-digit scientific notation. Decoding the output gives
back the same dimensions and values, and the pitch to 7 significant digits.
"""

from typing import Iterator

import numpy as np

from lesvox.dataset import VoxelDataset
from lesvox.layout import rows_view
from lesvox.validation import validate_data_array, validate_header, validate_voxel_array

# Decimal text of every byte value, indexed by value
_VALUE_TEXT = tuple(str(v) for v in range(256))


def format_header(dataset: VoxelDataset) -> str:
    """Header line without the trailing newline, e.g. "11 20 29 2.000000e-08"."""
    dims = dataset.dimensions
    return f"{dims.x} {dims.y} {dims.z} {dataset.voxel_pitch:.6e}"


def iter_les_lines(dataset: VoxelDataset) -> Iterator[str]:
    """
    Yield the lines of the encoded file, each terminated by a newline.

    Raises:
        ParseError: If the dataset violates the header, length or value
            invariants. Datasets built without VoxelDataset.create may hold
            any dtype, so values are checked here too.
    """
    dims = dataset.dimensions
    values = dataset.values
    validate_header(dims.x, dims.y, dims.z, dataset.voxel_pitch)
    validate_data_array(values, dims)
    validate_voxel_array(values, dims)

    yield format_header(dataset) + "\n"

    value_text = _VALUE_TEXT
    for row in rows_view(np.asarray(values).astype(np.uint8, copy=False), dims):
        yield " ".join([value_text[v] for v in row.tolist()]) + "\n"


def encode_les(dataset: VoxelDataset) -> str:
    """
    Serialize a dataset to leS text.

    Example:
        >>> ds = VoxelDataset.create(Dimensions(1, 1, 3), 1e-9, [0, 128, 255])
        >>> encode_les(ds)
        '1 1 3 1.000000e-09\\n0 128 255\\n'
    """
    return "".join(iter_les_lines(dataset))


def encode_les_bytes(dataset: VoxelDataset) -> bytes:
    """Serialize a dataset to ASCII bytes ready to be written to disk."""
    return encode_les(dataset).encode("ascii")
