"""
leS decoder: bytes -> VoxelDataset.

Format:
    X Y Z [voxel_pitch]
    v v v ... (Z values)        <- row 0, (x, y) = (0, 0)
    v v v ...                   <- row 1, (x, y) = (0, 1)
    ...                         <- X*Y rows in total

Row i holds the voxels at x = i // Y, y = i % Y in increasing z. Values are
written into the flat buffer at Dimensions.flat_index(x, y, z), which is not
the same order as the file (see lesvox.layout).

Whitespace-only lines are dropped before numbering, so a stray blank line
neither breaks parsing nor shifts the reported line of later rows relative to
the header. This leniency is intentional.
"""

import re
from typing import List, Optional, Tuple

import numpy as np

from lesvox.dataset import DEFAULT_SOURCE_NAME, DEFAULT_VOXEL_PITCH, VoxelDataset
from lesvox.layout import Dimensions
from lesvox.validation import (
    MAX_VOXEL_VALUE,
    EmptyFileError,
    HeaderParseError,
    InvalidCharacterError,
    row_line_number,
    validate_data_array,
    validate_file_extension,
    validate_file_size,
    validate_header,
    validate_row_count,
    validate_row_length,
    validate_voxel_value,
)

_INT_TOKEN = re.compile(r"[+-]?[0-9]+\Z")
_FLOAT_TOKEN = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?\Z")

# Row scanner states
_BETWEEN = 0
_SIGN = 1
_DIGITS = 2

_WHITESPACE = frozenset(" \t\r\f\v")

# Vectorised body reader
_CHUNK_CHARS = 1 << 22
_MAX_FAST_DIGITS = 3
_NEWLINE = ord("\n")
_ZERO = ord("0")
_ASCII_DIGIT = np.zeros(256, dtype=bool)
_ASCII_DIGIT[_ZERO:_ZERO + 10] = True
_ASCII_SPACE = np.zeros(256, dtype=bool)
_ASCII_SPACE[list(b" \t\n\r\f\v")] = True


def decode_les(
    content: bytes,
    name: Optional[str] = None,
    path: Optional[str] = None,
) -> VoxelDataset:
    """
    Decode leS file content into a VoxelDataset.

    Args:
        content: Raw (already decompressed) file bytes
        name: File name used for the extension check and as source_name
        path: Optional source path, stored on the result

    Returns:
        Decoded VoxelDataset

    Raises:
        ParseError: On the first invalid byte, header field or row

    Example:
        >>> ds = decode_les(b"2 1 3 1e-8\\n0 1 2\\n3 4 5\\n", "tiny.leS")
        >>> ds.get_voxel(1, 0, 2)
        5
    """
    validate_file_size(len(content))
    if name is not None:
        validate_file_extension(name)

    # utf-8-sig drops a leading BOM; bad sequences become U+FFFD and are
    # reported by the row scanner as invalid characters
    text = str(content, "utf-8-sig", "replace")
    lines = [line for line in text.split("\n") if line.strip()]

    if not lines:
        raise EmptyFileError()

    dimensions, voxel_pitch = parse_header(lines[0])
    values = _parse_body(lines, dimensions)

    validate_data_array(values, dimensions)

    return VoxelDataset(
        dimensions=dimensions,
        voxel_pitch=voxel_pitch,
        values=values,
        source_name=name if name is not None else DEFAULT_SOURCE_NAME,
        source_path=path,
    )


def decode_les_text(
    text: str,
    name: Optional[str] = None,
    path: Optional[str] = None,
) -> VoxelDataset:
    """Decode leS content that is already a str."""
    return decode_les(text.encode("utf-8"), name, path)


def parse_header(header_line: str) -> Tuple[Dimensions, float]:
    """
    Parse and validate the header line "X Y Z [voxel_pitch]".

    Tokens after the fourth are ignored. The pitch defaults to 1.0.

    Raises:
        HeaderParseError: Too few or non-numeric tokens
        BadDimensionError: An axis outside [1, 1024]
        BadPitchError: Pitch not positive or not finite
    """
    tokens = header_line.split()

    if len(tokens) < 3:
        raise HeaderParseError(
            f'Invalid header format. Expected "X Y Z [voxel_pitch]", got: {header_line.strip()}'
        )

    if not all(_INT_TOKEN.match(token) for token in tokens[:3]):
        raise HeaderParseError(
            "Invalid dimensions in header. X, Y, Z must be integers. "
            f"Got: {tokens[0]}, {tokens[1]}, {tokens[2]}"
        )
    x, y, z = (int(token) for token in tokens[:3])

    if len(tokens) >= 4:
        if not _FLOAT_TOKEN.match(tokens[3]):
            raise HeaderParseError(
                f"Invalid voxel pitch in header. Must be a number. Got: {tokens[3]}"
            )
        voxel_pitch = float(tokens[3])
    else:
        voxel_pitch = DEFAULT_VOXEL_PITCH

    validate_header(x, y, z, voxel_pitch)
    return Dimensions(x, y, z), voxel_pitch


def _parse_body(lines: List[str], dims: Dimensions) -> np.ndarray:
    """
    Decode the X*Y body rows into a flat buffer in memory order.

    Rows are taken in chunks. Each chunk goes through the vectorised reader
    first; a chunk it declines is re-read by the row scanner, which either
    raises with the exact line and column or accepts input the fast reader
    does not handle (leading zeros past three digits, minus zero, Unicode
    whitespace). Chunks are visited in file order, so the first error in the
    file is still the one reported.
    """
    expected_rows = dims.row_count

    # Checked before allocating so a header claiming a huge grid over a tiny
    # body never reserves the full buffer
    validate_row_count(len(lines) - 1, expected_rows)

    values = np.zeros(dims.total_voxels(), dtype=np.uint8)
    body = lines[1:]
    rows_per_chunk = max(1, _CHUNK_CHARS // (4 * dims.z))

    for start in range(0, expected_rows, rows_per_chunk):
        stop = min(start + rows_per_chunk, expected_rows)
        if not _read_rows_fast(body, start, stop, dims, values):
            _scan_rows(body, start, stop, dims, values)

    return values


def _read_rows_fast(
    body: List[str],
    start: int,
    stop: int,
    dims: Dimensions,
    values: np.ndarray,
) -> bool:
    """
    Vectorised read of body rows [start, stop) into `values`.

    Handles the common case only: ASCII digits and whitespace, tokens of at
    most three digits, exactly Z values per row and none above 255. Anything
    else returns False before `values` is touched.
    """
    try:
        raw = ("\n".join(body[start:stop]) + "\n").encode("ascii")
    except UnicodeEncodeError:
        return False

    chars = np.frombuffer(raw, dtype=np.uint8)
    is_digit = _ASCII_DIGIT[chars]
    if not (is_digit | _ASCII_SPACE[chars]).all():
        return False

    # Token boundaries are the rising and falling edges of the digit mask
    edges = np.diff(is_digit.astype(np.int8), prepend=0, append=0)
    starts = np.flatnonzero(edges == 1)
    ends = np.flatnonzero(edges == -1)

    row_count = stop - start
    if len(starts) != row_count * dims.z:
        return False

    lengths = ends - starts
    if lengths.max() > _MAX_FAST_DIGITS:
        return False

    newlines = np.flatnonzero(chars == _NEWLINE)
    per_row = np.bincount(np.searchsorted(newlines, starts), minlength=row_count)
    if (per_row != dims.z).any():
        return False

    tokens = np.zeros(len(starts), dtype=np.int16)
    for place in range(_MAX_FAST_DIGITS):
        more = lengths > place
        tokens[more] = tokens[more] * 10 + (chars[starts[more] + place] - _ZERO)
    if tokens.max() > MAX_VOXEL_VALUE:
        return False

    values[dims.rows_flat_indices(start, stop)] = tokens.reshape(row_count, dims.z)
    return True


def _scan_rows(
    body: List[str],
    start: int,
    stop: int,
    dims: Dimensions,
    values: np.ndarray,
) -> None:
    """Row-by-row scan of body rows [start, stop), raising on the first error."""
    for row_index in range(start, stop):
        x_coord, y_coord = dims.row_coordinates(row_index)
        count = _scan_row(body[row_index], row_index, x_coord, y_coord, dims, values)
        validate_row_length(row_index, count, dims.z)


def _scan_row(
    line: str,
    row_index: int,
    x_coord: int,
    y_coord: int,
    dims: Dimensions,
    buffer: np.ndarray,
) -> int:
    """
    Scan one body row, writing each value into `buffer`.

    A single pass over the characters with three states: between tokens,
    after a minus sign, inside digits. Digits accumulate, whitespace flushes.
    Values past the Z-th are validated and counted but not stored.

    Returns:
        Number of values found on the row
    """
    line_number = row_line_number(row_index)
    depth = dims.z

    state = _BETWEEN
    value = 0
    negative = False
    token_start = 0
    count = 0

    def flush(end: int) -> None:
        nonlocal count
        number = value
        if number > MAX_VOXEL_VALUE:
            # accumulation stops at 256; recover the full number for the message
            number = int(line[token_start:end].lstrip("-"))
        if negative:
            number = -number
        validate_voxel_value(number, row_index, count)
        if count < depth:
            buffer[dims.flat_index(x_coord, y_coord, count)] = number
        count += 1

    for column, ch in enumerate(line):
        if "0" <= ch <= "9":
            if state == _BETWEEN:
                token_start = column
                value = 0
                negative = False
            if value <= MAX_VOXEL_VALUE:
                value = value * 10 + (ord(ch) - 48)
            state = _DIGITS
        elif ch in _WHITESPACE or ch.isspace():
            if state == _DIGITS:
                flush(column)
            elif state == _SIGN:
                raise InvalidCharacterError("-", line_number, token_start + 1)
            state = _BETWEEN
        elif ch == "-" and state == _BETWEEN:
            token_start = column
            value = 0
            negative = True
            state = _SIGN
        else:
            raise InvalidCharacterError(ch, line_number, column + 1)

    if state == _DIGITS:
        flush(len(line))
    elif state == _SIGN:
        raise InvalidCharacterError("-", line_number, token_start + 1)

    return count
