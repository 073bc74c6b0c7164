import os

import pytest

from bhdist.parallel_utils import resolve_n_threads


def test_zero_uses_all_cpus():
    assert resolve_n_threads(0) == (os.cpu_count() or 1)


def test_explicit_count_is_kept():
    assert resolve_n_threads(3) == 3


@pytest.mark.parametrize("threads", [-1, 1.5, "2", True])
def test_invalid_counts_raise(threads):
    with pytest.raises(ValueError):
        resolve_n_threads(threads)
