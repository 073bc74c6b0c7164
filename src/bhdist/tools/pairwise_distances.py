"""Parallel all-pairs masked Hamming distances filling a triangular store."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Sequence

import numpy as np
from tqdm import tqdm

from bhdist.bitarr import MaskedBitArray, masked_hamming, stack_samples
from bhdist.constants import DEFAULT_BLOCK_BYTES, DEFAULT_THREADS
from bhdist.logging_utils import get_logger
from bhdist.parallel_utils import resolve_n_threads
from bhdist.trimat import TriMat, TriRow

logger = get_logger(__name__)


def _block_cols(n_words: int, block_bytes: int) -> int:
    """Number of samples compared against one row sample per kernel call."""
    return max(1, block_bytes // max(1, n_words * 8))


def _fill_row(
    row: TriRow,
    i: int,
    bits: np.ndarray,
    not_nas: np.ndarray,
    block_cols: int,
    dtype,
) -> int:
    """
    Fill ``row`` with the distances from sample ``i`` to every later sample.

    Entries are appended in increasing ``j``; the store's addressing depends on it.
    """
    n = bits.shape[0]
    for j0 in range(i + 1, n, block_cols):
        j1 = min(n, j0 + block_cols)
        row.extend(
            masked_hamming(bits[i], not_nas[i], bits[j0:j1], not_nas[j0:j1], dtype=dtype)
        )
    return i


def compute_distance_matrix(
    samples: Sequence[MaskedBitArray],
    threads: int = DEFAULT_THREADS,
    dtype=np.uint32,
    show_progress: bool = True,
    block_bytes: int = DEFAULT_BLOCK_BYTES,
) -> TriMat:
    """
    All-pairs masked Hamming distances.

    Parameters
    ----------
    samples
        Samples of equal length; their order defines matrix rows/columns.
    threads
        Worker threads; ``0`` uses every available CPU.
    dtype
        Unsigned integer type of the distances. Must hold the sample length.
    show_progress
        Show a progress bar with one step per finished row.
    block_bytes
        Approximate size of the packed block compared in one kernel call.

    Returns
    -------
    TriMat
        Complete store with ``len(samples) - 1`` rows.

    Raises
    ------
    SampleShapeError
        If ``samples`` is empty or lengths differ.
    ValueError
        If ``threads`` is negative or ``dtype`` is too narrow.
    """
    bits, not_nas, length = stack_samples(samples)
    dtype = np.dtype(dtype)
    if not np.issubdtype(dtype, np.unsignedinteger):
        raise ValueError(f"dtype must be an unsigned integer type, got {dtype}")
    if length > np.iinfo(dtype).max:
        raise ValueError(
            f"Bit strings of length {length} can overflow {dtype}; use a wider dtype"
        )
    if block_bytes <= 0:
        raise ValueError("block_bytes must be > 0")
    n_workers = resolve_n_threads(threads)

    n = bits.shape[0]
    dists = TriMat(n - 1, dtype=dtype)
    block_cols = _block_cols(bits.shape[1], block_bytes)

    logger.info(
        "Computing %d pairwise distances between %d samples of length %d with %d thread(s)",
        n * (n - 1) // 2,
        n,
        length,
        n_workers,
    )
    logger.debug("Comparing against blocks of up to %d samples", block_cols)

    # Rows are queued longest first; idle workers pull the next one.
    with ThreadPoolExecutor(max_workers=n_workers) as pool:
        futures = [
            pool.submit(_fill_row, dists.row(i), i, bits, not_nas, block_cols, dtype.type)
            for i in range(n - 1)
        ]
        with tqdm(
            total=n - 1,
            desc=f"Distances ({n_workers} threads)",
            unit=" rows",
            disable=not show_progress,
        ) as pbar:
            try:
                for future in as_completed(futures):
                    future.result()
                    pbar.update(1)
            except BaseException:
                for future in futures:
                    future.cancel()
                raise

    return dists
