import math
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np
from loguru import logger
from numba import njit

from .data import Extent, SampleBuffer
from .stats import _aggregate_numba


@njit
def _decimate_envelope_numba(
    x: np.ndarray, lhs: int, n_samples: int, step: int, n_bins: int
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Numba-optimized min/avg/max envelope decimation.

    Parameters
    ----------
    x : np.ndarray
        Full sample buffer.
    lhs : int
        Index of the first sample in view.
    n_samples : int
        Number of samples in view, starting at ``lhs``.
    step : int
        Samples per bin.
    n_bins : int
        Number of bins to create.

    Returns
    -------
    Tuple[np.ndarray, np.ndarray, np.ndarray]
        Min envelope, mean and max envelope arrays.
    """
    x_min_envelope = np.zeros(n_bins, dtype=np.float32)
    x_decimated = np.zeros(n_bins, dtype=np.float32)
    x_max_envelope = np.zeros(n_bins, dtype=np.float32)

    end = lhs + n_samples
    for i in range(n_bins):
        offset = lhs + i * step
        count = min(step, end - offset)
        bin_min, bin_avg, bin_max = _aggregate_numba(x, offset, count)
        x_min_envelope[i] = bin_min
        x_decimated[i] = bin_avg
        x_max_envelope[i] = bin_max

    return x_min_envelope, x_decimated, x_max_envelope


@dataclass(frozen=True)
class DecimatedView:
    """
    Drawable points for the current view.

    ``y`` holds raw samples, or the per-pixel mean when ``is_envelope``; the
    min/max envelope arrays are only set in the latter case.
    """

    x: np.ndarray
    y: np.ndarray
    y_min: Optional[np.ndarray]
    y_max: Optional[np.ndarray]
    samples_per_pixel: int
    lhs: int
    rhs: int

    @property
    def is_envelope(self) -> bool:
        return self.y_min is not None


class DecimationManager:
    """
    Decides per draw between raw samples and a min/avg/max envelope.

    When more than one sample falls in a pixel column, the view is reduced to
    roughly one vertex per column while keeping every extremum in the
    envelope. Results are cached by view so redraws without a view change
    (overlay updates, resizes back to the same size) skip the pass.
    """

    CACHE_MAX_SIZE = 10

    def __init__(self, cache_max_size: int = CACHE_MAX_SIZE):
        """
        Initialise the decimation manager.

        Parameters
        ----------
        cache_max_size : int, default=CACHE_MAX_SIZE
            Maximum number of cached decimation results.
        """
        self._cache: Dict[str, Optional[DecimatedView]] = {}
        self._cache_max_size = cache_max_size

    def _get_cache_key(self, visible: Extent, rect_width: float) -> str:
        """Generate cache key for decimated data."""
        # Round to reasonable precision to improve cache hits
        xlim_rounded = (round(visible.min.x, 9), round(visible.max.x, 9))
        return f"{xlim_rounded}_{rect_width:.3f}"

    def _manage_cache_size(self) -> None:
        """Remove oldest cache entry if cache is full."""
        if len(self._cache) >= self._cache_max_size:
            oldest_key = next(iter(self._cache))
            del self._cache[oldest_key]

    def clear_cache(self) -> None:
        """Clear the decimation cache. Must be called when the buffer is replaced."""
        self._cache.clear()

    @staticmethod
    def sample_window(samples: SampleBuffer, visible: Extent) -> Tuple[int, int]:
        """
        Inclusive sample index bounds ``[lhs, rhs]`` covering ``visible``.

        One extra sample past the right edge is included when available so
        the polyline reaches the edge of the view.
        """
        lhs, rhs = samples.index_bounds(visible.min.x, visible.max.x)
        last = len(samples) - 1
        lhs = max(lhs, 0)
        rhs = min(rhs, last)
        # If there's a sample to the right, render up to it to avoid a gap
        if rhs < last:
            rhs += 1
        return lhs, rhs

    @staticmethod
    def samples_per_pixel(samples: SampleBuffer, visible: Extent, rect_width: float) -> int:
        """Number of whole samples that fall in one pixel column."""
        if rect_width <= 0:
            return 1
        units_per_pixel = visible.width / rect_width
        return int(math.floor(units_per_pixel / samples.xstep))

    def decimate_for_view(
        self, samples: SampleBuffer, visible: Extent, rect_width: float
    ) -> Optional[DecimatedView]:
        """
        Produce drawable points for ``visible`` in a ``rect_width`` pixel wide view.

        Parameters
        ----------
        samples : SampleBuffer
            Attached sample buffer.
        visible : Extent
            Currently visible extent.
        rect_width : float
            Width of the target rectangle in pixels.

        Returns
        -------
        Optional[DecimatedView]
            Raw samples when there is at most one sample per pixel, otherwise
            the min/avg/max envelope. None when nothing is in view.
        """
        cache_key = self._get_cache_key(visible, rect_width)
        if cache_key in self._cache:
            logger.debug(f"Using cached decimation for key: {cache_key}")
            return self._cache[cache_key]

        result = self._decimate(samples, visible, rect_width)

        self._manage_cache_size()
        self._cache[cache_key] = result
        return result

    def _decimate(
        self, samples: SampleBuffer, visible: Extent, rect_width: float
    ) -> Optional[DecimatedView]:
        if len(samples) < 2:
            return None

        lhs, rhs = self.sample_window(samples, visible)
        if rhs <= lhs:
            logger.warning(
                f"No data in view for x=[{visible.min.x:.6g}, {visible.max.x:.6g}]. Skipping draw."
            )
            return None

        n_samples = rhs - lhs + 1
        step = self.samples_per_pixel(samples, visible, rect_width)
        logger.debug(
            f"Decimating view: lhs={lhs}, rhs={rhs}, n_samples={n_samples}, samples_per_pixel={step}"
        )

        if step <= 1:
            x_view = samples.x_at(np.arange(lhs, rhs + 1))
            y_view = samples.values[lhs : rhs + 1]
            return DecimatedView(x_view, y_view, None, None, max(step, 1), lhs, rhs)

        n_bins = int(math.ceil(n_samples / step))
        x_min, x_mean, x_max = _decimate_envelope_numba(
            samples.values, lhs, n_samples, step, n_bins
        )
        x_view = samples.x_at(lhs + np.arange(n_bins) * step)
        logger.debug(
            f"Envelope decimation: {n_samples} samples -> {n_bins} bins, "
            f"y=[{float(np.min(x_min)):.6g}, {float(np.max(x_max)):.6g}]"
        )
        return DecimatedView(x_view, x_mean, x_min, x_max, step, lhs, rhs)
