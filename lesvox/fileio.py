"""
Read and write leS files on disk, with transparent gzip for .leS.gz.

The codec itself only sees decompressed bytes; this module is the layer that
owns paths and compression.
"""

import gzip
import zlib
from pathlib import Path
from typing import Optional, Union

from lesvox.dataset import VoxelDataset
from lesvox.decoder import decode_les
from lesvox.encoder import iter_les_lines
from lesvox.validation import (
    MAX_FILE_SIZE,
    FileTooLargeError,
    validate_file_extension,
    validate_file_size,
)


def is_gzip_name(name: str) -> bool:
    return name.lower().endswith(".gz")


def read_les(path: Union[str, Path]) -> VoxelDataset:
    """
    Read a .leS or .leS.gz file.

    Args:
        path: Path to the file

    Returns:
        Decoded VoxelDataset with source_name/source_path set from `path`

    Raises:
        FileNotFoundError: If the file does not exist
        ParseError: If the name, size or contents are invalid
        OSError: If a .gz file is truncated or its deflate stream is corrupt
    """
    path = Path(path)
    validate_file_extension(path.name)

    if not path.exists():
        raise FileNotFoundError(f"leS file not found: {path}")

    validate_file_size(path.stat().st_size)

    if is_gzip_name(path.name):
        try:
            with gzip.open(path, "rb") as f:
                # One byte over the limit is enough to know it is too large
                content = f.read(MAX_FILE_SIZE + 1)
        except (EOFError, zlib.error, gzip.BadGzipFile) as e:
            raise OSError(f"Corrupt gzip data in {path.name}: {e}") from e
        if len(content) > MAX_FILE_SIZE:
            raise FileTooLargeError(len(content))
    else:
        content = path.read_bytes()

    return decode_les(content, path.name, str(path))


def write_les(
    path: Union[str, Path],
    dataset: VoxelDataset,
    compress: Optional[bool] = None,
) -> Path:
    """
    Write a dataset as a leS file.

    Args:
        path: Output path (.leS or .leS.gz)
        dataset: Data to write
        compress: Gzip the output. None means "gzip if the path ends in .gz"

    Returns:
        Path to the written file

    Example:
        >>> write_les("volume.leS.gz", dataset)
    """
    path = Path(path)
    validate_file_extension(path.name)

    # Pulling the header runs the dataset checks before the file is created
    lines = iter_les_lines(dataset)
    header = next(lines)

    path.parent.mkdir(parents=True, exist_ok=True)

    if compress is None:
        compress = is_gzip_name(path.name)

    opener = gzip.open if compress else open
    with opener(path, "wt", encoding="ascii", newline="\n") as f:
        f.write(header)
        f.writelines(lines)

    return path
