"""
StripChart: level-of-detail strip charts for large uniformly sampled series.

A library for drawing millions of samples into a few hundred pixels with
drag-to-zoom, zoom history and a min/avg/max envelope that never hides an
extremum.
"""

# Import from chart subpackage
from stripchart.chart.config import ChartProperties
from stripchart.chart.data import Extent, Point2D, SampleBuffer
from stripchart.chart.decimation import DecimatedView, DecimationManager
from stripchart.chart.stats import SampleStats, aggregate
from stripchart.chart.strip_chart import StripChart
from stripchart.chart.tics import quantize_step, tic_range, tic_step
from stripchart.chart.viewport import TargetRect, Viewport
from stripchart.chart.zoom import PointerEvent, PointerState, ZoomController

# Import from canvas subpackage
from stripchart.canvas.host import Debouncer, HostRegion
from stripchart.canvas.surface import RasterSurface, data_space
from stripchart.exceptions import (
    InvalidTicCount,
    MalformedPolicy,
    MissingHostElement,
    StripChartError,
)
from stripchart.log import configure_logging

__all__ = [
    # Chart engine
    "StripChart",
    "ChartProperties",
    "SampleBuffer",
    "Extent",
    "Point2D",
    "Viewport",
    "TargetRect",
    "ZoomController",
    "PointerEvent",
    "PointerState",
    "DecimationManager",
    "DecimatedView",
    "SampleStats",
    "aggregate",
    "quantize_step",
    "tic_step",
    "tic_range",
    # Drawing collaborators
    "RasterSurface",
    "data_space",
    "HostRegion",
    "Debouncer",
    # Errors and logging
    "StripChartError",
    "InvalidTicCount",
    "MalformedPolicy",
    "MissingHostElement",
    "configure_logging",
]
