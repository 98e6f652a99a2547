import math
import time
from typing import Callable, Optional, Tuple

import numpy as np
from loguru import logger
from PIL import Image

from stripchart.canvas.host import Debouncer, HostRegion
from stripchart.canvas.surface import RasterSurface, data_space
from stripchart.exceptions import MissingHostElement, StripChartError

from .config import ChartProperties
from .data import Extent, SampleBuffer
from .decimation import DecimatedView, DecimationManager
from .tics import coordinate_places, format_tic, tic_range, tic_step
from .viewport import Viewport, padding_from
from .zoom import PointerEvent, PointerResult, ZoomController


class StripChart:
    """
    Strip chart of one uniformly sampled series, with drag-to-zoom.

    Draws into two stacked surfaces sized to the host's ``"strip-chart"``
    region: the chart itself, and an overlay that only ever holds the zoom
    selection. Large buffers are reduced to a min/avg/max envelope of about
    one vertex per pixel column before drawing.
    """

    CHART_REGION = "strip-chart"

    # Behaviour
    RESIZE_DEBOUNCE_S = 0.25
    PIXEL_RATIO = 1.0

    # Template styling
    GRID_STYLE = "gray"
    GRID_LINE_WIDTH = 0.2
    AXIS_STYLE = "black"
    AXIS_LINE_WIDTH = 1.0
    SELECTION_STYLE = "black"
    SELECTION_ALPHA = 0.25

    def __init__(
        self,
        host: HostRegion,
        properties: Optional[ChartProperties] = None,
        pixel_ratio: float = PIXEL_RATIO,
        resize_debounce: float = RESIZE_DEBOUNCE_S,
        min_zoom_pixels: float = ZoomController.MIN_ZOOM_PIXELS,
        min_zoom_samples: int = ZoomController.MIN_ZOOM_SAMPLES,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Create a chart bound to ``host``.

        Parameters
        ----------
        host : HostRegion
            Layout box containing a ``"strip-chart"`` child region.
        properties : Optional[ChartProperties], default=None
            Display options. Defaults are used if None.
        pixel_ratio : float, default=1.0
            Device pixels per logical pixel of the surfaces.
        resize_debounce : float, default=0.25
            Quiet period, in seconds, before a resize is acted on.
        min_zoom_pixels : float, default=5
            Narrowest selection, in pixels, that zooms.
        min_zoom_samples : int, default=10
            Fewest samples a zoom must span.
        clock : Callable[[], float], default=time.monotonic
            Time source for the resize debounce.

        Raises
        ------
        MissingHostElement
            If the host or its chart region cannot be found.
        """
        if host is None:
            raise MissingHostElement("No host region given for the strip chart")
        find = getattr(host, "find", None)
        region = find(self.CHART_REGION) if callable(find) else None
        if region is None:
            raise MissingHostElement(f"Host region has no {self.CHART_REGION!r} region")

        self.host = host
        self.region = region
        self.props = properties if properties is not None else ChartProperties()

        self.surface = RasterSurface(region.width, region.height, pixel_ratio)
        self.overlay = RasterSurface(region.width, region.height, pixel_ratio)

        self.viewport = Viewport()
        self.zoom = ZoomController(self.viewport, min_zoom_pixels, min_zoom_samples)
        self.decimator = DecimationManager()
        self.samples: Optional[SampleBuffer] = None
        self.readout: Optional[Tuple[str, str]] = None

        self._resize_debouncer = Debouncer(self._on_resize_settled, resize_debounce, clock)
        host.add_resize_listener(self._resize_debouncer.trigger)

        self.resize()

    # --- state --------------------------------------------------------------

    @property
    def visible(self) -> Extent:
        return self.zoom.visible

    @property
    def data_limits(self) -> Extent:
        """Full extent of the data; the default view when no samples are attached."""
        return self.zoom.limits

    @property
    def zoom_depth(self) -> int:
        return self.zoom.depth

    def get(self, key: str):
        return self.props.get(key)

    def set(self, key: str, value) -> None:
        self.props[key] = value

    def width_in_pixels(self) -> float:
        """Width of the plotted area; useful for picking a sample density."""
        return self.viewport.rect.w

    def visible_sample_range(self) -> Optional[Tuple[int, int]]:
        """Unclamped sample indices ``(floor, ceil)`` of the visible x range."""
        if self.samples is None:
            return None
        return self.samples.index_bounds(self.visible.min.x, self.visible.max.x)

    # --- data and zoom ------------------------------------------------------

    def attach(self, buffer: np.ndarray, xstep: float, xstart: float = 0.0) -> None:
        """
        Replace the data and show all of it.

        Parameters
        ----------
        buffer : np.ndarray
            Sample values.
        xstep : float
            Spacing between samples in data units.
        xstart : float, default=0.0
            Data-space x of the first sample.
        """
        self.samples = SampleBuffer(buffer, xstep, xstart)
        self.decimator.clear_cache()
        self.zoom.attach(self.samples)
        self.viewport.update_scale(self.visible)
        logger.info(
            f"Attached {len(self.samples)} samples: xstep={self.samples.xstep:.6g}, limits={self.samples.limits}"
        )

    def reset_zoom(self) -> None:
        self.zoom.reset()
        self.draw()

    def previous_zoom(self) -> None:
        if self.zoom.previous():
            self.draw()

    # --- events -------------------------------------------------------------

    def handle_pointer(self, event: PointerEvent, px: float, py: float) -> PointerResult:
        """
        Handle a pointer event at host offset ``(px, py)``.

        Press starts a selection, move extends it, release zooms to it and
        leave cancels it.
        """
        if event is PointerEvent.MOVE:
            self.readout = self.coordinate_readout(px, py)

        result = self.zoom.handle_pointer(event, px, py)
        if result.chart:
            self.draw()
        elif result.overlay:
            self._draw_selection()
        return result

    def coordinate_readout(self, px: float, py: float) -> Optional[Tuple[str, str]]:
        """Formatted data coordinates under the pointer, None outside the plotted area."""
        p = self.viewport.to_data(px, py, self.visible)
        if not self.zoom.in_chart(p):
            return None
        xplaces = coordinate_places(self.viewport.xppu)
        yplaces = coordinate_places(self.viewport.yppu)
        return f"{p.x:.{xplaces}f}", f"{p.y:.{yplaces}f}"

    def process_events(self, now: Optional[float] = None) -> bool:
        """Run a pending resize once the host has been quiet long enough."""
        return self._resize_debouncer.poll(now)

    def _on_resize_settled(self) -> None:
        self.resize()
        self.draw()

    # --- drawing ------------------------------------------------------------

    def resize(self) -> None:
        """Size both surfaces to the chart region and recompute the target rectangle."""
        width, height = self.region.width, self.region.height
        if (self.surface.width, self.surface.height) != (width, height):
            logger.debug(f"Resizing surfaces to {width}x{height}")
            self.surface.resize(width, height)
            self.overlay.resize(width, height)
        self.viewport.resize(width, height, self.props.get("pad"))
        self.viewport.update_scale(self.visible)

    def draw(self) -> None:
        """Redraw the template (grid, axes, text) and then the data."""
        try:
            self.resize()
            self._draw_template()
            self._draw_data()
        except StripChartError as e:
            logger.error(f"Drawing failed: {e}")
            raise

    def _draw_template(self) -> None:
        self.surface.clear()
        self.overlay.clear()
        self.viewport.update_scale(self.visible)
        self._draw_vertical_gridlines()
        self._draw_horizontal_gridlines()
        self._draw_origin_axes()
        self._draw_text()

    def _transform(self):
        return self.viewport.transform(self.visible)

    def _draw_vertical_gridlines(self) -> None:
        visible = self.visible
        tics = tic_range(visible.min.x, visible.max.x, self.props.get("xtics"))
        if not tics:
            return
        with data_space(self.surface, self._transform()) as ds:
            for x in tics:
                ds.move_to(x, visible.max.y)
                ds.line_to(x, visible.min.y)
            ds.stroke(self.GRID_STYLE, self.GRID_LINE_WIDTH)

    def _draw_horizontal_gridlines(self) -> None:
        visible = self.visible
        tics = tic_range(visible.min.y, visible.max.y, self.props.get("ytics"))
        if not tics:
            return
        with data_space(self.surface, self._transform()) as ds:
            for y in tics:
                ds.move_to(visible.max.x, y)
                ds.line_to(visible.min.x, y)
            ds.stroke(self.GRID_STYLE, self.GRID_LINE_WIDTH)

    def _draw_origin_axes(self) -> None:
        visible = self.visible
        if self.props.get("origin"):
            with data_space(self.surface, self._transform()) as ds:
                # If either origin is visible, render a dark line there
                if visible.min.y <= 0 <= visible.max.y:
                    ds.move_to(visible.min.x, 0.0)
                    ds.line_to(visible.max.x, 0.0)
                if visible.min.x <= 0 <= visible.max.x:
                    ds.move_to(0.0, visible.min.y)
                    ds.line_to(0.0, visible.max.y)
                ds.stroke(self.AXIS_STYLE, self.AXIS_LINE_WIDTH)

        with data_space(self.surface, self._transform()) as ds:
            ds.move_to(visible.min.x, visible.min.y)
            ds.line_to(visible.min.x, visible.max.y)
            ds.line_to(visible.max.x, visible.max.y)
            ds.line_to(visible.max.x, visible.min.y)
            ds.line_to(visible.min.x, visible.min.y)
            ds.stroke(self.GRID_STYLE, self.GRID_LINE_WIDTH)

    def _draw_text(self) -> None:
        self.surface.font = self.props.get("font")
        self.surface.fill_style = "black"
        self._draw_title()
        self._draw_xlabel()
        self._draw_xtic_values()
        self._draw_ylabel()
        self._draw_ytic_values()

    def _draw_title(self) -> None:
        title = self.props.get("title")
        if not title:
            return
        _, _, top, _ = padding_from(self.props.get("pad"))
        self.surface.save()
        self.surface.text_baseline = "middle"
        self.surface.text_align = "center"
        self.surface.fill_text(title, self.surface.width / 2, top / 2)
        self.surface.restore()

    def _draw_xlabel(self) -> None:
        xlabel = self.props.get("xlabel")
        if not xlabel:
            return
        rect = self.viewport.rect
        self.surface.save()
        self.surface.text_baseline = "middle"
        self.surface.text_align = "center"
        self.surface.fill_text(xlabel, rect.tx + rect.w / 2, self.surface.height - rect.ty / 3)
        self.surface.restore()

    def _draw_ylabel(self) -> None:
        ylabel = self.props.get("ylabel")
        if not ylabel:
            return
        rect = self.viewport.rect
        self.surface.save()
        self.surface.translate(rect.tx * 0.20, self.surface.height - rect.ty - rect.h / 2)
        self.surface.rotate(-math.pi / 2)
        self.surface.text_baseline = "middle"
        self.surface.text_align = "center"
        self.surface.fill_text(ylabel, 0.0, 0.0)
        self.surface.restore()

    def _axis_step(self, axis: str) -> Optional[float]:
        visible = self.visible
        policy = self.props.get(f"{axis}tics") or "auto"
        if axis == "x":
            return tic_step(visible.min.x, visible.max.x, policy)
        return tic_step(visible.min.y, visible.max.y, policy)

    def _draw_xtic_values(self) -> None:
        visible = self.visible
        tics = tic_range(visible.min.x, visible.max.x, self.props.get("xtics"))
        if not tics:
            return
        step = self._axis_step("x")
        y = self.surface.height - self.viewport.rect.ty * 2 / 3
        self.surface.save()
        self.surface.text_baseline = "middle"
        self.surface.text_align = "center"
        for x in tics:
            px = self.viewport.to_pixel(x, visible.min.y, visible).x
            self.surface.fill_text(format_tic(x, step), px, y)
        self.surface.restore()

    def _draw_ytic_values(self) -> None:
        visible = self.visible
        tics = tic_range(visible.min.y, visible.max.y, self.props.get("ytics"))
        if not tics:
            return
        step = self._axis_step("y")
        x = self.viewport.rect.tx * 0.95
        self.surface.save()
        self.surface.text_baseline = "middle"
        self.surface.text_align = "right"
        for y in tics:
            py = self.viewport.to_pixel(visible.min.x, y, visible).y
            self.surface.fill_text(format_tic(y, step), x, py)
        self.surface.restore()

    def _draw_data(self) -> None:
        if self.samples is None or len(self.samples) < 2:
            return
        view = self.decimator.decimate_for_view(self.samples, self.visible, self.viewport.rect.w)
        if view is None:
            return

        line_width = self.props.line_width()
        stroke_style = self.props.get("stroke-style") or "red"
        if view.is_envelope:
            envelope_style = self.props.get("envelope-style") or "silver"
            self._draw_series(view.x, view.y_min, envelope_style, line_width)
            self._draw_series(view.x, view.y_max, envelope_style, line_width)
        self._draw_series(view.x, view.y, stroke_style, line_width)

    def _draw_series(self, x: np.ndarray, y: np.ndarray, style: str, line_width: float) -> None:
        """
        Stroke one polyline in data space, clipped to the visible extent.

        A flat axis is clipped to the whole canvas instead, so a flat extent
        still clips on the other axis.
        """
        visible = self.visible
        rect = self.viewport.rect
        x0, width = visible.min.x, visible.width
        y0, height = visible.min.y, visible.height
        if width <= 0:
            x0 = visible.min.x - rect.tx / self.viewport.xppu
            width = self.viewport.canvas_width / self.viewport.xppu
        if height <= 0:
            y0 = visible.min.y - rect.ty / self.viewport.yppu
            height = self.viewport.canvas_height / self.viewport.yppu
        with data_space(self.surface, self._transform()) as ds:
            ds.rect(x0, y0, width, height)
            ds.clip()
            ds.begin_path()
            ds.polyline(x, y)
            ds.stroke(style, line_width)

    def _draw_selection(self) -> None:
        """Redraw the overlay with the current selection, if any."""
        self.overlay.clear()
        selection = self.zoom.selection()
        if selection is None:
            return
        x1, x2 = selection
        visible = self.visible
        # Always draw something, at least one pixel wide
        width = max(x2 - x1, 1.0 / self.viewport.xppu)
        with data_space(self.overlay, self._transform()) as ds:
            self.overlay.fill_style = self.SELECTION_STYLE
            self.overlay.global_alpha = self.SELECTION_ALPHA
            ds.fill_rect(x1, visible.min.y, width, visible.height)

    # --- output -------------------------------------------------------------

    def last_view(self) -> Optional[DecimatedView]:
        """Points drawn for the data on the last draw."""
        if self.samples is None:
            return None
        return self.decimator.decimate_for_view(self.samples, self.visible, self.viewport.rect.w)

    def export_image(self) -> Image.Image:
        """Snapshot of the chart (without the overlay) at device resolution."""
        return self.surface.to_image()

    def save(self, filepath: str) -> None:
        """
        Save the current chart to a file.

        Parameters
        ----------
        filepath : str
            Path to save the chart image.
        """
        self.export_image().save(filepath)
        logger.info(f"Chart saved to {filepath}")
