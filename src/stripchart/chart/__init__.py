"""
Strip chart engine: statistics, tics, viewport transform, level-of-detail
decimation, zoom state and the renderer that composes them.
"""

from stripchart.chart.config import ChartProperties
from stripchart.chart.decimation import DecimationManager
from stripchart.chart.strip_chart import StripChart
from stripchart.chart.viewport import Viewport
from stripchart.chart.zoom import ZoomController

__all__ = [
    "StripChart",
    "ChartProperties",
    "DecimationManager",
    "Viewport",
    "ZoomController",
]
