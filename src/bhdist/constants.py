from __future__ import annotations

from typing import Final, Mapping
from types import MappingProxyType

import numpy as np

## Input alphabet ##
ZERO_CHAR: Final[str] = "0"
ONE_CHAR: Final[str] = "1"
DEFAULT_NA_CHAR: Final[str] = "X"

## Output ##
OUTPUT_SEP: Final[str] = ","
STDIN_PATH: Final[str] = "-"

## Distance computation ##
WORD_BITS: Final[int] = 64
DEFAULT_THREADS: Final[int] = 1
DEFAULT_DTYPE: Final[str] = "uint32"
# Upper bound on the temporary word block compared against one sample at a time.
DEFAULT_BLOCK_BYTES: Final[int] = 32 * 1024 * 1024

DISTANCE_DTYPES: Final[Mapping[str, type]] = MappingProxyType(
    {
        "uint16": np.uint16,
        "uint32": np.uint32,
        "uint64": np.uint64,
    }
)
