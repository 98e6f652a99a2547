from dataclasses import dataclass
from enum import Enum
from typing import List, NamedTuple, Optional, Tuple

from loguru import logger

from .data import DEFAULT_VISIBLE, Extent, Point2D, SampleBuffer
from .stats import aggregate
from .viewport import Viewport


class PointerState(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


class PointerEvent(Enum):
    PRESS = "press"
    MOVE = "move"
    RELEASE = "release"
    LEAVE = "leave"


@dataclass
class ZoomWindow:
    """In-progress selection, in data coordinates."""

    start: Point2D
    end: Point2D


class PointerResult(NamedTuple):
    """What the renderer has to redraw after a pointer event."""

    overlay: bool = False
    chart: bool = False


class ZoomController:
    """
    Owns the visible extent, the drag selection and the zoom history.

    The pointer state is derived from the drag window: the controller is
    dragging exactly when a zoom window exists.
    """

    # Smallest selection width in pixels, and in samples, that commits a zoom
    MIN_ZOOM_PIXELS = 5.0
    MIN_ZOOM_SAMPLES = 10

    def __init__(
        self,
        viewport: Viewport,
        min_zoom_pixels: float = MIN_ZOOM_PIXELS,
        min_zoom_samples: int = MIN_ZOOM_SAMPLES,
    ):
        """
        Initialise the zoom controller.

        Parameters
        ----------
        viewport : Viewport
            Viewport used for pointer translation and the pixel scale.
        min_zoom_pixels : float, default=MIN_ZOOM_PIXELS
            Narrowest selection, in pixels, that is accepted as a zoom.
        min_zoom_samples : int, default=MIN_ZOOM_SAMPLES
            Fewest samples a zoom window must span.
        """
        self.viewport = viewport
        self.min_zoom_pixels = min_zoom_pixels
        self.min_zoom_samples = min_zoom_samples

        self.samples: Optional[SampleBuffer] = None
        self._visible = DEFAULT_VISIBLE
        self._stack: List[Extent] = []
        self._drag: Optional[ZoomWindow] = None

    @property
    def visible(self) -> Extent:
        return self._visible

    @visible.setter
    def visible(self, extent: Extent) -> None:
        self._visible = extent.normalized()

    @property
    def limits(self) -> Extent:
        """Full extent of the attached data, or the default view without data."""
        if self.samples is None or len(self.samples) == 0:
            return DEFAULT_VISIBLE
        return self.samples.limits

    @property
    def state(self) -> PointerState:
        return PointerState.IDLE if self._drag is None else PointerState.DRAGGING

    @property
    def zoom_window(self) -> Optional[ZoomWindow]:
        return self._drag

    @property
    def depth(self) -> int:
        """Number of extents on the zoom stack."""
        return len(self._stack)

    @property
    def history(self) -> Tuple[Extent, ...]:
        return tuple(self._stack)

    def attach(self, samples: Optional[SampleBuffer]) -> None:
        """Replace the data and show all of it, discarding any zoom."""
        self.samples = samples
        self._stack.clear()
        self._drag = None
        self.visible = self.limits

    def reset(self) -> None:
        """Clear the zoom history and the selection, then show the full data."""
        self._stack.clear()
        self._drag = None
        self.visible = self.limits
        logger.info(f"Zoom reset to {self._visible}")

    def previous(self) -> bool:
        """
        Return to the extent before the last zoom.

        Returns
        -------
        bool
            True if the visible extent changed, False on an empty stack.
        """
        if not self._stack:
            return False
        self.visible = self._stack.pop()
        logger.info(f"Previous zoom restored: {self._visible} (depth={len(self._stack)})")
        return True

    def in_chart(self, p: Point2D) -> bool:
        """Whether a data-space point is in the plotted area (not in a margin)."""
        return self._visible.contains(p)

    def press(self, p: Point2D) -> bool:
        """Start a selection at ``p``. Returns True if a drag started."""
        if self._drag is not None or not self.in_chart(p):
            return False
        self._drag = ZoomWindow(start=Point2D(p.x, p.y), end=Point2D(p.x, p.y))
        return True

    def move(self, p: Point2D) -> bool:
        """Extend the selection to ``p``, clamped to the visible x range."""
        if self._drag is None:
            return False
        end_x = min(max(p.x, self._visible.min.x), self._visible.max.x)
        self._drag.end = Point2D(end_x, self._drag.end.y)
        return True

    def release(self, p: Optional[Point2D] = None) -> bool:
        """
        Finish the selection and try to zoom to it.

        Returns
        -------
        bool
            True if the zoom was committed.
        """
        if self._drag is None:
            return False
        if p is not None:
            self.move(p)
        window = self._drag
        self._drag = None
        return self.zoom_x(window)

    def leave(self) -> bool:
        """Cancel the selection without zooming. Returns True if one was active."""
        if self._drag is None:
            return False
        self._drag = None
        return True

    def selection(self) -> Optional[Tuple[float, float]]:
        """Selected ``(x1, x2)`` with ``x1 <= x2`` while dragging."""
        if self._drag is None:
            return None
        x1, x2 = sorted((self._drag.start.x, self._drag.end.x))
        return x1, x2

    def zoom_x(self, window: ZoomWindow) -> bool:
        """
        Zoom to the x range of ``window``, auto-ranging y over the samples in it.

        Selections narrower than ``min_zoom_pixels`` or spanning fewer than
        ``min_zoom_samples`` samples are ignored.

        Returns
        -------
        bool
            True if the zoom was committed.
        """
        if self.samples is None or len(self.samples) == 0:
            return False

        x1, x2 = sorted((window.start.x, window.end.x))
        if x2 - x1 < self.min_zoom_pixels / self.viewport.xppu:
            logger.debug(f"Zoom selection [{x1:.6g}, {x2:.6g}] narrower than {self.min_zoom_pixels}px")
            return False

        sample1, sample2 = self.samples.index_bounds(x1, x2)
        if sample2 - sample1 < self.min_zoom_samples:
            logger.debug(f"Zoom selection spans {sample2 - sample1} samples, too small")
            return False

        offset = max(sample1, 0)
        count = sample2 - offset
        if count <= 0 or offset >= len(self.samples):
            logger.debug(f"Zoom selection [{x1:.6g}, {x2:.6g}] holds no samples")
            return False
        stats = aggregate(self.samples.values, offset, count)

        self._stack.append(self._visible)
        self.visible = Extent.from_bounds(x1, stats.min, x2, stats.max)
        logger.info(f"Zoomed to {self._visible} (depth={len(self._stack)})")
        return True

    def handle_pointer(self, event: PointerEvent, px: float, py: float) -> PointerResult:
        """
        Dispatch a pointer event given in device pixels.

        Parameters
        ----------
        event : PointerEvent
            Kind of pointer event.
        px, py : float
            Pointer offset in the host, in pixels.

        Returns
        -------
        PointerResult
            Which layers need redrawing.
        """
        p = self.viewport.to_data(px, py, self._visible)

        if self._drag is None:
            if event is PointerEvent.PRESS:
                return PointerResult(overlay=self.press(p))
            return PointerResult()

        if event is PointerEvent.MOVE:
            return PointerResult(overlay=self.move(p))
        if event is PointerEvent.LEAVE:
            return PointerResult(overlay=self.leave())
        if event is PointerEvent.RELEASE:
            committed = self.release(p)
            return PointerResult(overlay=True, chart=committed)
        return PointerResult()
