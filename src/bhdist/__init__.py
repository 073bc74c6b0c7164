"""bhdist"""

from . import config, tools
from .bitarr import MaskedBitArray, masked_hamming, parse_bits
from .readwrite import read_samples, read_samples_columns, read_samples_rows, write_distance_matrix
from .tools import compute_distance_matrix
from .trimat import TriMat

from importlib.metadata import version

package_name = "binary-hamming-dist"
__version__ = version(package_name)

__all__ = [
    "MaskedBitArray",
    "TriMat",
    "compute_distance_matrix",
    "masked_hamming",
    "parse_bits",
    "read_samples",
    "read_samples_columns",
    "read_samples_rows",
    "write_distance_matrix",
]
