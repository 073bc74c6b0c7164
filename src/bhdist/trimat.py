"""Compact storage for a symmetric distance matrix with an implicit zero diagonal."""

from __future__ import annotations

from typing import List, TextIO

import numpy as np

from bhdist.constants import OUTPUT_SEP
from bhdist.errors import MatrixWriteError


class TriRow:
    """
    Append-only handle on one pre-allocated row of a :class:`TriMat`.

    Entries are written left to right; the row is readable once full.
    """

    __slots__ = ("_data", "_filled")

    def __init__(self, capacity: int, dtype):
        self._data = np.zeros(capacity, dtype=dtype)
        self._filled = 0

    @property
    def capacity(self) -> int:
        return self._data.shape[0]

    def append(self, value) -> None:
        if self._filled >= self.capacity:
            raise IndexError(f"Row already holds its {self.capacity} entries")
        self._data[self._filled] = value
        self._filled += 1

    def extend(self, values) -> None:
        values = np.asarray(values)
        end = self._filled + values.shape[0]
        if end > self.capacity:
            raise IndexError(
                f"Cannot add {values.shape[0]} entries to a row with "
                f"{self.capacity - self._filled} free slots"
            )
        self._data[self._filled:end] = values
        self._filled = end

    def is_full(self) -> bool:
        return self._filled == self.capacity

    def view(self) -> np.ndarray:
        """Read-only view of the entries written so far."""
        out = self._data[: self._filled]
        out.flags.writeable = False
        return out

    def __len__(self) -> int:
        return self._filled


class TriMat:
    """
    Strictly-upper triangle of a symmetric ``n_samples x n_samples`` matrix.

    Built for ``n = n_samples - 1``: row ``i`` holds the distances from
    sample ``i`` to samples ``i + 1 .. n_samples - 1`` in that order, so it has
    ``n - i`` entries. The last sample has no row of its own; its distances
    are read from the rows above it. The diagonal is never stored.
    """

    def __init__(self, n: int, dtype=np.uint32):
        if n < 0:
            raise ValueError(f"TriMat needs n >= 0 rows, got {n}")
        self.dtype = np.dtype(dtype)
        self.mat: List[TriRow] = [TriRow(n - i, self.dtype) for i in range(n)]

    @property
    def n_samples(self) -> int:
        return len(self.mat) + 1

    def row(self, i: int) -> TriRow:
        if not 0 <= i < len(self.mat):
            raise IndexError(f"Row index {i} out of range for {len(self.mat)} rows")
        return self.mat[i]

    def __getitem__(self, i: int) -> np.ndarray:
        return self.row(i).view()

    def __len__(self) -> int:
        return len(self.mat)

    def is_complete(self) -> bool:
        return all(row.is_full() for row in self.mat)

    def _full_row(self, i: int) -> np.ndarray:
        row = self.mat[i]
        if not row.is_full():
            raise RuntimeError(
                f"Row {i} is incomplete ({len(row)} of {row.capacity} entries)"
            )
        return row.view()

    def get(self, i: int, j: int):
        """Distance between samples ``i`` and ``j``, read symmetrically."""
        n = self.n_samples
        if not (0 <= i < n and 0 <= j < n):
            raise IndexError(f"({i}, {j}) out of range for {n} samples")
        if i == j:
            return self.dtype.type(0)
        lo, hi = min(i, j), max(i, j)
        return self._full_row(lo)[hi - lo - 1]

    def to_dense(self) -> np.ndarray:
        """Full symmetric matrix as an (n_samples, n_samples) array."""
        n = self.n_samples
        out = np.zeros((n, n), dtype=self.dtype)
        for i in range(len(self.mat)):
            row = self._full_row(i)
            out[i, i + 1:] = row
            out[i + 1:, i] = row
        return out

    def write_symmetric(self, sink: TextIO, sep: str = OUTPUT_SEP) -> None:
        """
        Write the full matrix, one line of ``n_samples`` fields per sample.

        Raises
        ------
        MatrixWriteError
            If the sink fails; ``line`` is the 1-based output line.
        """
        dense = self.to_dense()
        for i, line in enumerate(dense):
            try:
                sink.write(sep.join(map(str, line.tolist())) + "\n")
            except OSError as exc:
                raise MatrixWriteError(i + 1, exc) from exc

    def __repr__(self) -> str:
        filled = sum(row.is_full() for row in self.mat)
        return f"<TriMat n_samples={self.n_samples} dtype={self.dtype} rows_filled={filled}/{len(self.mat)}>"
