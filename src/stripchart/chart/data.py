from dataclasses import dataclass, field
from typing import NamedTuple

import numpy as np
from loguru import logger

from .stats import FLOAT_MAX, aggregate


class Point2D(NamedTuple):
    """A point in the data coordinate system."""

    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class Extent:
    """
    Axis-aligned bounding box in data space.

    Used for the data limits of a buffer, the visible window and the entries
    of the zoom stack.
    """

    min: Point2D = field(default_factory=Point2D)
    max: Point2D = field(default_factory=Point2D)

    @classmethod
    def from_bounds(cls, xmin: float, ymin: float, xmax: float, ymax: float) -> "Extent":
        return cls(Point2D(float(xmin), float(ymin)), Point2D(float(xmax), float(ymax)))

    @property
    def width(self) -> float:
        return abs(self.max.x - self.min.x)

    @property
    def height(self) -> float:
        return abs(self.max.y - self.min.y)

    def normalized(self) -> "Extent":
        """Return a copy with ``min <= max`` on both axes."""
        xmin, xmax = sorted((self.min.x, self.max.x))
        ymin, ymax = sorted((self.min.y, self.max.y))
        if (xmin, ymin, xmax, ymax) == (self.min.x, self.min.y, self.max.x, self.max.y):
            return self
        logger.debug(f"Swapping inverted extent {self}")
        return Extent(Point2D(xmin, ymin), Point2D(xmax, ymax))

    def contains(self, p: Point2D) -> bool:
        """Check whether ``p`` lies in the extent, edges included."""
        inx = self.min.x <= p.x <= self.max.x
        iny = self.min.y <= p.y <= self.max.y
        return inx and iny


# Shown before any data is attached, so the template still has a range
DEFAULT_VISIBLE = Extent.from_bounds(0.0, 0.0, 20.0, 50.0)

# Data limits of a chart with no buffer: inverted so any sample widens it
EMPTY_LIMITS = Extent.from_bounds(FLOAT_MAX, FLOAT_MAX, -FLOAT_MAX, -FLOAT_MAX)


class SampleBuffer:
    """
    Uniformly sampled, immutable series.

    Sample ``i`` sits at ``x = xstart + i * xstep``. The array is copied to
    float32 and made read-only, so a buffer is only ever replaced, never
    mutated.
    """

    def __init__(self, values: np.ndarray, xstep: float, xstart: float = 0.0):
        """
        Initialise the sample buffer.

        Parameters
        ----------
        values : np.ndarray
            One-dimensional sample values.
        xstep : float
            Distance between consecutive samples, must be positive.
        xstart : float, default=0.0
            Data-space x of the first sample.

        Raises
        ------
        ValueError
            If ``values`` is not one-dimensional or ``xstep`` is not positive.
        """
        values = np.array(values, dtype=np.float32)
        if values.ndim != 1:
            raise ValueError(f"Sample buffer must be 1-D, got shape {values.shape}")
        if not np.isfinite(xstep) or xstep <= 0:
            raise ValueError(f"xstep must be positive and finite, got {xstep}")
        if not np.isfinite(xstart):
            raise ValueError(f"xstart must be finite, got {xstart}")

        values.setflags(write=False)
        self.values = values
        self.xstep = float(xstep)
        self.xstart = float(xstart)
        self.limits = self._compute_limits()

    def __len__(self) -> int:
        return len(self.values)

    def _compute_limits(self) -> Extent:
        """Full extent: x spans every sample slot, y the global min/max."""
        if len(self.values) == 0:
            return EMPTY_LIMITS
        stats = aggregate(self.values)
        xmax = self.xstart + len(self.values) * self.xstep
        return Extent.from_bounds(self.xstart, stats.min, xmax, stats.max)

    def index_bounds(self, xmin: float, xmax: float):
        """Sample indices ``floor`` of ``xmin`` and ``ceil`` of ``xmax``, unclamped."""
        lhs = int(np.floor((xmin - self.xstart) / self.xstep))
        rhs = int(np.ceil((xmax - self.xstart) / self.xstep))
        return lhs, rhs

    def x_at(self, index) -> np.ndarray:
        """Data-space x of sample index (scalar or array)."""
        return self.xstart + np.asarray(index, dtype=np.float64) * self.xstep
