from typing import NamedTuple

import numpy as np
from numba import njit

# Sentinels for an empty window: min above every sample, max below every sample
FLOAT_MAX = 1.7976931348623157e308


class SampleStats(NamedTuple):
    """Minimum, arithmetic mean and maximum of a sample window."""

    min: float
    avg: float
    max: float


@njit
def _aggregate_numba(x: np.ndarray, offset: int, count: int):
    """
    Numba-optimized single-pass min/avg/max over ``x[offset:offset + count]``.

    Parameters
    ----------
    x : np.ndarray
        Input sample array.
    offset : int
        First sample of the window.
    count : int
        Number of samples. Zero means the rest of the buffer from ``offset``.

    Returns
    -------
    Tuple[float, float, float]
        Window minimum, mean and maximum. The mean is NaN when the clamped
        window holds no samples.
    """
    n_total = len(x)
    if count == 0 or offset + count > n_total:
        count = n_total - offset

    vmin = FLOAT_MAX
    vmax = -FLOAT_MAX
    total = 0.0
    for i in range(offset, offset + count):
        val = x[i]
        if val < vmin:
            vmin = val
        if val > vmax:
            vmax = val
        total += val

    if count > 0:
        avg = total / count
    else:
        avg = np.nan
    return vmin, avg, vmax


def aggregate(buffer: np.ndarray, offset: int = 0, count: int = 0) -> SampleStats:
    """
    Compute (min, avg, max) over a contiguous window of ``buffer``.

    The window is clamped to the end of the buffer. The caller guarantees at
    least one sample in range; an empty window yields a NaN average and the
    inverted sentinels for min and max rather than an error.

    Parameters
    ----------
    buffer : np.ndarray
        Sample buffer.
    offset : int, default=0
        Index of the first sample, must be >= 0.
    count : int, default=0
        Window length, 0 for "rest of buffer".

    Returns
    -------
    SampleStats
        Window statistics.
    """
    if offset < 0:
        raise ValueError(f"offset must be >= 0, got {offset}")
    if count < 0:
        raise ValueError(f"count must be >= 0, got {count}")

    x_contiguous = np.ascontiguousarray(buffer, dtype=np.float32)
    vmin, avg, vmax = _aggregate_numba(x_contiguous, int(offset), int(count))
    return SampleStats(float(vmin), float(avg), float(vmax))
