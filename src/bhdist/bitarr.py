"""Bit-packed samples with a missing-value mask, and the masked Hamming distance."""

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

import numpy as np

from bhdist.constants import DEFAULT_NA_CHAR, ONE_CHAR, WORD_BITS, ZERO_CHAR
from bhdist.errors import InvalidCharacterError, SampleShapeError

# Number of set bits for every possible byte value.
_POPCOUNT_TABLE = np.array([bin(i).count("1") for i in range(256)], dtype=np.uint8)


def _n_words(length: int) -> int:
    return -(-length // WORD_BITS)


def _pack_bool_to_u64(B: np.ndarray) -> np.ndarray:
    """
    Pack a boolean (or 0/1) matrix (n, w) into uint64 blocks (n, ceil(w/64)).
    Safe w.r.t. contiguity/layout. Padding bits are zero.
    """
    B = np.asarray(B, dtype=np.uint8)
    packed_u8 = np.packbits(B, axis=1)  # (n, ceil(w/8)) uint8

    n, nb = packed_u8.shape
    n_words = -(-nb // 8)
    pad = n_words * 8 - nb
    if pad:
        packed_u8 = np.pad(packed_u8, ((0, 0), (0, pad)), mode="constant", constant_values=0)

    packed_u8 = np.ascontiguousarray(packed_u8)

    # group 8 bytes -> uint64
    packed_u64 = packed_u8.reshape(n, n_words, 8).view(np.uint64).reshape(n, n_words)
    return packed_u64


def _popcount_u64(A_u64: np.ndarray) -> np.ndarray:
    """
    Popcount summed over the last axis of a uint64 array.

    Works on the byte view of the words with a lookup table, so it is portable
    across NumPy versions. A 1-D input yields a scalar.
    """
    A_u64 = np.ascontiguousarray(A_u64, dtype=np.uint64)
    b = A_u64.view(np.uint8)
    return _POPCOUNT_TABLE[b].sum(axis=-1, dtype=np.uint64)


def parse_bits(text: str, na_char: str = DEFAULT_NA_CHAR) -> Tuple[np.ndarray, np.ndarray]:
    """
    Map each character of ``text`` to a (value, valid) pair of booleans.

    Raises
    ------
    InvalidCharacterError
        At the first character that is not '0', '1' or ``na_char``, with its
        1-based position.
    """
    if len(na_char) != 1 or na_char in (ZERO_CHAR, ONE_CHAR):
        raise ValueError(f"na_char must be a single character other than '0' and '1', got {na_char!r}")
    if text:
        codes = np.frombuffer(text.encode("utf-32-le", "surrogatepass"), dtype="<u4")
    else:
        codes = np.zeros(0, dtype="<u4")
    ones = codes == ord(ONE_CHAR)
    zeros = codes == ord(ZERO_CHAR)
    missing = codes == ord(na_char)
    bad = ~(ones | zeros | missing)
    if bad.any():
        idx = int(np.flatnonzero(bad)[0])
        raise InvalidCharacterError(idx + 1, text[idx], na_char)
    return ones, ~missing


def masked_hamming(
    bits_a: np.ndarray,
    valid_a: np.ndarray,
    bits_b: np.ndarray,
    valid_b: np.ndarray,
    dtype=np.uint32,
):
    """
    Masked Hamming distance on packed words.

    Counts positions that are valid in both operands and whose bits differ:
    ``popcount((bits_a ^ bits_b) & (valid_a & valid_b))``.

    The operands broadcast, so a single sample (1-D words) can be compared
    against a block of samples (2-D words, one row per sample) in one call;
    the result then has one entry per row. ``dtype`` must be wide enough to
    hold the number of positions; counts above its maximum wrap.
    """
    if np.shape(bits_a)[-1] != np.shape(bits_b)[-1]:
        raise SampleShapeError(
            f"Cannot compare packed samples of {np.shape(bits_a)[-1]} and "
            f"{np.shape(bits_b)[-1]} words"
        )
    diff = np.bitwise_and(np.bitwise_xor(bits_a, bits_b), np.bitwise_and(valid_a, valid_b))
    counts = _popcount_u64(diff)
    dtype = np.dtype(dtype).type
    if np.ndim(counts) == 0:
        return dtype(counts)
    return counts.astype(dtype)


class MaskedBitArray:
    """
    One sample: a bit string plus a parallel mask of observed positions.

    ``bits`` and ``not_nas`` are packed into uint64 words. A cleared
    ``not_nas`` bit marks a missing position; its ``bits`` entry is kept at
    zero. Both arrays are read-only once the sample exists.
    """

    __slots__ = ("bits", "not_nas", "length")

    def __init__(self, bits: np.ndarray, not_nas: np.ndarray, length: int):
        bits = np.array(bits, dtype=np.uint64, copy=True)
        not_nas = np.array(not_nas, dtype=np.uint64, copy=True)
        if bits.ndim != 1 or bits.shape != not_nas.shape:
            raise SampleShapeError(
                f"bits and not_nas must be 1-D with equal shapes; got {bits.shape} and {not_nas.shape}"
            )
        if bits.shape[0] != _n_words(length):
            raise SampleShapeError(
                f"{bits.shape[0]} words cannot hold exactly {length} positions"
            )
        bits.flags.writeable = False
        not_nas.flags.writeable = False
        self.bits = bits
        self.not_nas = not_nas
        self.length = int(length)

    # ------------------------------------------------------------------ #
    # Constructors
    # ------------------------------------------------------------------ #
    @classmethod
    def new(cls, length: int) -> "MaskedBitArray":
        """All-zero bits, every position observed."""
        return cls.from_bools(np.zeros(length, dtype=bool), np.ones(length, dtype=bool))

    @classmethod
    def from_string(cls, text: str, na_char: str = DEFAULT_NA_CHAR) -> "MaskedBitArray":
        """Parse a string of '0', '1' and ``na_char`` characters (see :func:`parse_bits`)."""
        values, valid = parse_bits(text, na_char)
        return cls.from_bools(values, valid)

    @classmethod
    def from_bools(cls, values: Sequence[bool], valid: Sequence[bool]) -> "MaskedBitArray":
        values = np.asarray(values, dtype=bool)
        valid = np.asarray(valid, dtype=bool)
        if values.ndim != 1 or values.shape != valid.shape:
            raise SampleShapeError(
                f"values and valid must be 1-D with equal shapes; got {values.shape} and {valid.shape}"
            )
        return cls.from_bool_matrix(values[None, :], valid[None, :])[0]

    @classmethod
    def from_bool_matrix(cls, values: np.ndarray, valid: np.ndarray) -> List["MaskedBitArray"]:
        """One sample per row of two (n_samples, length) boolean matrices."""
        values = np.asarray(values, dtype=bool)
        valid = np.asarray(valid, dtype=bool)
        if values.ndim != 2 or values.shape != valid.shape:
            raise SampleShapeError(
                f"values and valid must be 2-D with equal shapes; got {values.shape} and {valid.shape}"
            )
        length = values.shape[1]
        bits = _pack_bool_to_u64(values & valid)
        not_nas = _pack_bool_to_u64(valid)
        return [cls(bits[i], not_nas[i], length) for i in range(values.shape[0])]

    # ------------------------------------------------------------------ #
    # Accessors
    # ------------------------------------------------------------------ #
    def _unpack(self, words: np.ndarray) -> np.ndarray:
        return np.unpackbits(words.view(np.uint8))[: self.length].astype(bool)

    def values(self) -> np.ndarray:
        return self._unpack(self.bits)

    def valid(self) -> np.ndarray:
        return self._unpack(self.not_nas)

    @property
    def n_missing(self) -> int:
        return self.length - int(_popcount_u64(self.not_nas))

    def dist(self, other: "MaskedBitArray", dtype=np.uint32):
        """Masked Hamming distance to ``other``; both must have the same length."""
        if self.length != other.length:
            raise SampleShapeError(
                f"Cannot compare samples of length {self.length} and {other.length}"
            )
        return masked_hamming(self.bits, self.not_nas, other.bits, other.not_nas, dtype=dtype)

    def __len__(self) -> int:
        return self.length

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MaskedBitArray):
            return NotImplemented
        return (
            self.length == other.length
            and np.array_equal(self.not_nas, other.not_nas)
            and np.array_equal(self.bits & self.not_nas, other.bits & other.not_nas)
        )

    __hash__ = None

    def __str__(self) -> str:
        bits = "".join("1" if b else "0" for b in self.values())
        not_nas = "".join("1" if b else "0" for b in self.valid())
        return f"bits:\t\t{bits}\nnot_nas:\t{not_nas}"

    def __repr__(self) -> str:
        return f"<MaskedBitArray length={self.length} missing={self.n_missing}>"


def stack_samples(samples: Iterable[MaskedBitArray]) -> Tuple[np.ndarray, np.ndarray, int]:
    """
    Stack samples into (n_samples, n_words) word matrices.

    Returns ``(bits, not_nas, length)``.

    Raises
    ------
    SampleShapeError
        If there are no samples, or any sample's length differs from the first.
    """
    samples = list(samples)
    if not samples:
        raise SampleShapeError("No samples to compare")
    length = len(samples[0])
    for idx, sample in enumerate(samples):
        if len(sample) != length:
            raise SampleShapeError(
                f"Sample {idx} has length {len(sample)}; expected {length} (length of sample 0)"
            )
    bits = np.stack([s.bits for s in samples])
    not_nas = np.stack([s.not_nas for s in samples])
    return bits, not_nas, length
