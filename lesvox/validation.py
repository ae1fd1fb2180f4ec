"""
Validation rules and error types for leS data.

Every rejection in the codec goes through one of the validate_* checks below.
Line numbers are 1-based and count the header as line 1, so body row i is
reported on line i + 2.
"""

import math
from typing import Optional

import numpy as np

from lesvox.layout import AXES, MAX_DIMENSION, MIN_DIMENSION, Dimensions, rows_view

# Constants
MAX_FILE_SIZE = 1024 * 1024 * 1024  # 1 GiB
MIN_VOXEL_VALUE = 0
MAX_VOXEL_VALUE = 255
VALID_EXTENSIONS = (".les", ".les.gz")
HEADER_LINE = 1


def row_line_number(row_index: int) -> int:
    """1-based file line of body row `row_index` (header is line 1)."""
    return row_index + 2


class ParseError(ValueError):
    """
    Base class for invalid leS data.

    Attributes:
        message: Human-readable description
        line: 1-based line number, if known
        column: 1-based column, if known
        kind: Stable identifier of the error kind
    """

    kind = "parse_error"

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column

    def location(self) -> str:
        """Render the position as "line L, column C" (empty if unknown)."""
        parts = []
        if self.line is not None:
            parts.append(f"line {self.line}")
        if self.column is not None:
            parts.append(f"column {self.column}")
        return ", ".join(parts)


class FileTooLargeError(ParseError):
    kind = "too_large"

    def __init__(self, size: int, limit: int = MAX_FILE_SIZE):
        super().__init__(
            f"File too large: {size / (1024 * 1024):.2f} MB. "
            f"Maximum {limit / (1024 * 1024 * 1024):g} GB allowed."
        )
        self.size = size
        self.limit = limit


class BadExtensionError(ParseError):
    kind = "bad_extension"

    def __init__(self, file_name: str):
        super().__init__(
            f"Invalid file extension. Expected .leS or .leS.gz file, got: {file_name}"
        )
        self.file_name = file_name


class EmptyFileError(ParseError):
    kind = "empty_file"

    def __init__(self):
        super().__init__("File is empty")


class HeaderParseError(ParseError):
    kind = "header_parse"

    def __init__(self, message: str):
        super().__init__(message, line=HEADER_LINE)


class BadDimensionError(ParseError):
    kind = "bad_dimension"

    def __init__(self, axis: str, value: int):
        super().__init__(
            f"Invalid {axis.upper()} dimension: {value}. "
            f"Must be between {MIN_DIMENSION} and {MAX_DIMENSION}.",
            line=HEADER_LINE,
        )
        self.axis = axis
        self.value = value


class BadPitchError(ParseError):
    kind = "bad_pitch"

    def __init__(self, value: float):
        super().__init__(
            f"Invalid voxel pitch: {value}. Must be a positive finite number.",
            line=HEADER_LINE,
        )
        self.value = value


class RowCountMismatchError(ParseError):
    kind = "row_count_mismatch"

    def __init__(self, actual: int, expected: int):
        qualifier = "Insufficient" if actual < expected else "Too many"
        super().__init__(
            f"{qualifier} data rows: {actual} found, {expected} expected (X*Y)."
        )
        self.actual = actual
        self.expected = expected


class RowLengthMismatchError(ParseError):
    kind = "row_length_mismatch"

    def __init__(self, row_index: int, actual: int, expected: int):
        qualifier = "insufficient" if actual < expected else "too many"
        super().__init__(
            f"Row {row_index + 1}: {qualifier} values "
            f"({actual} found, {expected} expected).",
            line=row_line_number(row_index),
        )
        self.row_index = row_index
        self.actual = actual
        self.expected = expected


class InvalidCharacterError(ParseError):
    kind = "invalid_character"

    def __init__(self, character: str, line: int, column: int):
        super().__init__(
            f"Invalid character {character!r} at line {line}, column {column}.",
            line=line,
            column=column,
        )
        self.character = character


class ValueOutOfRangeError(ParseError):
    kind = "value_out_of_range"

    def __init__(self, value, row_index: int, col_index: int):
        super().__init__(
            f"Invalid voxel value: {value} at row {row_index + 1}, "
            f"column {col_index + 1}. Must be {MIN_VOXEL_VALUE}-{MAX_VOXEL_VALUE}.",
            line=row_line_number(row_index),
            column=col_index + 1,
        )
        self.value = value


class ValueNonFiniteError(ParseError):
    kind = "value_non_finite"

    def __init__(self, value, row_index: int, col_index: int):
        super().__init__(
            f"Non-numeric voxel value at row {row_index + 1}, column {col_index + 1}.",
            line=row_line_number(row_index),
            column=col_index + 1,
        )
        self.value = value


class LengthMismatchError(ParseError):
    kind = "length_mismatch"

    def __init__(self, actual: int, expected: int):
        super().__init__(
            f"Data array length mismatch: {actual} values, {expected} expected (X*Y*Z)."
        )
        self.actual = actual
        self.expected = expected


def validate_file_size(size_in_bytes: int) -> None:
    """Reject inputs larger than 1 GiB."""
    if size_in_bytes > MAX_FILE_SIZE:
        raise FileTooLargeError(size_in_bytes)


def validate_file_extension(file_name: str) -> None:
    """Accept names ending in .les or .les.gz, case-insensitively."""
    if not file_name.lower().endswith(VALID_EXTENSIONS):
        raise BadExtensionError(file_name)


def validate_header(x: int, y: int, z: int, voxel_pitch: float) -> None:
    """Check each axis is within [1, 1024] and the pitch is positive and finite."""
    for axis, value in zip(AXES, (x, y, z)):
        if value < MIN_DIMENSION or value > MAX_DIMENSION:
            raise BadDimensionError(axis, value)

    if not math.isfinite(voxel_pitch) or voxel_pitch <= 0:
        raise BadPitchError(voxel_pitch)


def validate_row_count(actual_rows: int, expected_rows: int) -> None:
    if actual_rows != expected_rows:
        raise RowCountMismatchError(actual_rows, expected_rows)


def validate_row_length(row_index: int, actual_length: int, expected_length: int) -> None:
    if actual_length != expected_length:
        raise RowLengthMismatchError(row_index, actual_length, expected_length)


def validate_voxel_value(value, row_index: int, col_index: int) -> None:
    """
    Check a single voxel value is an integer in [0, 255].

    Non-finite floats (NaN, inf) are reported separately from out-of-range
    numbers. Finite non-integral floats count as out of range.
    """
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueNonFiniteError(value, row_index, col_index)
        if not value.is_integer():
            raise ValueOutOfRangeError(value, row_index, col_index)

    if value < MIN_VOXEL_VALUE or value > MAX_VOXEL_VALUE:
        raise ValueOutOfRangeError(value, row_index, col_index)


def validate_data_array(values, dimensions: Dimensions) -> None:
    """Final check that the flat buffer holds exactly X*Y*Z values."""
    expected_length = dimensions.total_voxels()
    if len(values) != expected_length:
        raise LengthMismatchError(len(values), expected_length)


def validate_voxel_array(values, dimensions: Dimensions) -> None:
    """
    Check every value of a flat buffer, as validate_voxel_value does for one.

    uint8 buffers pass without a scan. For anything wider the whole buffer is
    checked at once, and the first bad value in file order is reported with
    its row and value column. Call validate_data_array first.

    Raises:
        ValueOutOfRangeError: A value outside [0, 255] or a non-integral float
        ValueNonFiniteError: A NaN or infinite float
        ValueError: A buffer that is not numeric at all
    """
    arr = np.asarray(values)
    if arr.dtype == np.uint8:
        return
    if arr.dtype.kind not in "biuf":
        raise ValueError(f"Voxel values must be numeric, got dtype {arr.dtype}")

    rows = rows_view(arr, dimensions)
    with np.errstate(invalid="ignore"):
        bad = (rows < MIN_VOXEL_VALUE) | (rows > MAX_VOXEL_VALUE)
        if arr.dtype.kind == "f":
            bad |= ~np.isfinite(rows) | (rows != np.floor(rows))

    if bad.any():
        row_index, col_index = np.argwhere(bad)[0]
        validate_voxel_value(rows[row_index, col_index].item(), int(row_index), int(col_index))
