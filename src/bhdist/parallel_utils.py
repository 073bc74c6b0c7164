"""Utilities for sizing the distance worker pool."""

from __future__ import annotations

import os


def resolve_n_threads(threads: int) -> int:
    """Resolve a requested thread count to a concrete positive worker count.

    Parameters
    ----------
    threads:
        Number of worker threads. ``0`` maps to ``os.cpu_count()``.

    Raises
    ------
    ValueError
        If ``threads`` is negative or not an integer.
    """
    if isinstance(threads, bool) or not isinstance(threads, int):
        raise ValueError(f"threads must be an integer, got {threads!r}")
    if threads < 0:
        raise ValueError(f"threads must be >= 0 (0 uses all CPUs), got {threads}")
    if threads == 0:
        return os.cpu_count() or 1
    return threads
