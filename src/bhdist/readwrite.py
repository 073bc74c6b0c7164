## readwrite ##
from __future__ import annotations

import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, TextIO, Tuple, Union

import numpy as np

from bhdist.bitarr import MaskedBitArray, parse_bits
from bhdist.constants import DEFAULT_NA_CHAR, OUTPUT_SEP, STDIN_PATH
from bhdist.errors import (
    InputFormatError,
    InvalidCharacterError,
    MatrixWriteError,
    SampleShapeError,
)
from bhdist.logging_utils import get_logger
from bhdist.trimat import TriMat

logger = get_logger(__name__)

PathLike = Union[str, Path]


######################################################################################################
## Input handling
@contextmanager
def _open_input(path: PathLike) -> Iterator[TextIO]:
    """Open ``path`` for reading; ``-`` is stdin, which is left open afterwards."""
    if str(path) == STDIN_PATH:
        yield sys.stdin
        return
    with open(path, "r", encoding="utf-8") as fh:
        yield fh


def _empty_input(path: PathLike) -> SampleShapeError:
    return SampleShapeError(f"Error parsing input file {path}. Is it empty?")


def _parse_line(
    line: str,
    path: PathLike,
    line_no: int,
    width: int,
    na_char: str,
) -> Tuple[np.ndarray, np.ndarray]:
    text = line.rstrip("\r\n")
    try:
        values, valid = parse_bits(text, na_char)
    except InvalidCharacterError as exc:
        raise InputFormatError(path, line_no, exc.position, exc.char, na_char) from exc
    if len(text) != width:
        raise SampleShapeError(
            f"Error parsing {path} at line {line_no}: expected {width} characters, found {len(text)}"
        )
    return values, valid


def read_samples_rows(path: PathLike, na_char: str = DEFAULT_NA_CHAR) -> List[MaskedBitArray]:
    """
    Read one sample per line, e.g.::

        010X11001
        01100X010

    where ``na_char`` ('X' here) marks missing values.

    Raises
    ------
    InputFormatError
        On a character other than '0', '1' or ``na_char``.
    SampleShapeError
        If lines differ in length or the file is empty.
    """
    samples: List[MaskedBitArray] = []
    width: Optional[int] = None
    with _open_input(path) as fh:
        for line_no, line in enumerate(fh, start=1):
            if width is None:
                width = len(line.rstrip("\r\n"))
            values, valid = _parse_line(line, path, line_no, width, na_char)
            samples.append(MaskedBitArray.from_bools(values, valid))

    if not samples:
        raise _empty_input(path)
    logger.info("Read %d samples of length %d from %s", len(samples), width, path)
    return samples


def _read_columns_two_pass(fh: TextIO, path: PathLike, na_char: str) -> List[MaskedBitArray]:
    # first pass: the first line gives the number of samples, the line count the length
    first = fh.readline()
    if not first:
        raise _empty_input(path)
    n_samples = len(first.rstrip("\r\n"))
    length = 1
    while fh.readline():
        length += 1

    values = np.zeros((length, n_samples), dtype=bool)
    valid = np.ones((length, n_samples), dtype=bool)

    fh.seek(0)
    for line_no, line in enumerate(fh, start=1):
        if line_no > length:
            raise SampleShapeError(f"Input file {path} grew while it was being read")
        values[line_no - 1], valid[line_no - 1] = _parse_line(line, path, line_no, n_samples, na_char)

    return MaskedBitArray.from_bool_matrix(values.T, valid.T)


def _read_columns_single_pass(fh: TextIO, path: PathLike, na_char: str) -> List[MaskedBitArray]:
    value_lines: List[np.ndarray] = []
    valid_lines: List[np.ndarray] = []
    n_samples: Optional[int] = None
    for line_no, line in enumerate(fh, start=1):
        if n_samples is None:
            n_samples = len(line.rstrip("\r\n"))
        values, valid = _parse_line(line, path, line_no, n_samples, na_char)
        value_lines.append(values)
        valid_lines.append(valid)

    if n_samples is None:
        raise _empty_input(path)
    return MaskedBitArray.from_bool_matrix(
        np.stack(value_lines, axis=1), np.stack(valid_lines, axis=1)
    )


def read_samples_columns(path: PathLike, na_char: str = DEFAULT_NA_CHAR) -> List[MaskedBitArray]:
    """
    Read a transposed file with one sample per column, e.g.::

        00
        11
        X0
        1X

    holds two samples of length 4.

    Regular files are read twice: once to measure the dimensions, once to
    fill pre-sized arrays. Pipes, process substitution (``/dev/fd/N``) and
    stdin cannot be rewound, so they are read once and grown line by line.
    """
    with _open_input(path) as fh:
        if fh.seekable():
            logger.debug("Reading transposed input %s in two passes", path)
            samples = _read_columns_two_pass(fh, path, na_char)
        else:
            logger.debug("Input %s is not seekable; reading transposed input in one pass", path)
            samples = _read_columns_single_pass(fh, path, na_char)

    if not samples:
        raise SampleShapeError(f"Error parsing input file {path}: first line holds no samples")
    logger.info("Read %d samples of length %d from %s", len(samples), len(samples[0]), path)
    return samples


def read_samples(
    path: PathLike,
    na_char: str = DEFAULT_NA_CHAR,
    transposed: bool = False,
) -> List[MaskedBitArray]:
    """Read samples from rows, or from columns when ``transposed``."""
    if transposed:
        return read_samples_columns(path, na_char)
    return read_samples_rows(path, na_char)
######################################################################################################

######################################################################################################
## Output handling
def write_distance_matrix(
    store: TriMat,
    output_path: Optional[PathLike] = None,
    sep: str = OUTPUT_SEP,
) -> Optional[Path]:
    """
    Write the full symmetric matrix to ``output_path``, or to stdout when it is None.

    Parent directories of ``output_path`` are created. Returns the path written.
    """
    if output_path is None:
        store.write_symmetric(sys.stdout, sep=sep)
        try:
            sys.stdout.flush()
        except OSError as exc:
            raise MatrixWriteError(store.n_samples, exc) from exc
        return None

    out = Path(output_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    fh = out.open("w", encoding="utf-8")
    # buffered text only reaches the file on flush/close
    try:
        with fh:
            store.write_symmetric(fh, sep=sep)
            fh.flush()
    except MatrixWriteError:
        raise
    except OSError as exc:
        if isinstance(exc.__context__, MatrixWriteError):
            raise exc.__context__ from exc
        raise MatrixWriteError(store.n_samples, exc) from exc
    logger.info("Wrote %dx%d distance matrix to %s", store.n_samples, store.n_samples, out)
    return out
######################################################################################################
