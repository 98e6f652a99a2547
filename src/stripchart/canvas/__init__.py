"""
Drawing collaborators for the chart engine: a raster drawing surface and the
host region it is laid out in.
"""

from stripchart.canvas.host import Debouncer, HostRegion
from stripchart.canvas.surface import RasterSurface, data_space

__all__ = [
    "RasterSurface",
    "data_space",
    "HostRegion",
    "Debouncer",
]
