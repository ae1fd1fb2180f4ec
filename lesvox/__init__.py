"""
lesvox - Reader and writer for the leS plain-text voxel format.

A .leS file is a header line "X Y Z [voxel_pitch]" followed by X*Y rows of
Z byte values (0-255). Files may be gzip-compressed as .leS.gz.
"""

__version__ = "0.1.0"

from lesvox.layout import Dimensions
from lesvox.dataset import VoxelDataset
from lesvox.decoder import decode_les, decode_les_text
from lesvox.encoder import encode_les, encode_les_bytes
from lesvox.fileio import read_les, write_les
from lesvox.validation import ParseError

__all__ = [
    "Dimensions",
    "VoxelDataset",
    "decode_les",
    "decode_les_text",
    "encode_les",
    "encode_les_bytes",
    "read_les",
    "write_les",
    "ParseError",
]
