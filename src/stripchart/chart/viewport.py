from typing import NamedTuple, Optional, Sequence, Tuple

from loguru import logger
from matplotlib.transforms import Affine2D

from .data import Extent, Point2D

# Pixels per unit used when an axis extent (or the target rectangle) is empty
FALLBACK_PPU = 10.0


class TargetRect(NamedTuple):
    """Chart drawing region in pixels, measured from the bottom-left corner."""

    tx: float = 0.0
    ty: float = 0.0
    w: float = 0.0
    h: float = 0.0


def padding_from(pad: Optional[Sequence[Optional[float]]]) -> Tuple[float, float, float, float]:
    """Normalise a ``[left, bottom, top, right]`` padding value; missing entries are 0."""
    if pad is None:
        return 0.0, 0.0, 0.0, 0.0
    values = list(pad)[:4] + [0.0] * max(0, 4 - len(pad))
    left, bottom, top, right = (float(v) if v else 0.0 for v in values)
    return left, bottom, top, right


class Viewport:
    """
    Handles transformations between data space and device pixels.

    Data space has y increasing upward with the visible minimum at the lower
    left of the target rectangle; device space has its origin at the top left
    of the host with y increasing downward.
    """

    def __init__(self, width: float = 0.0, height: float = 0.0, pad=None):
        """
        Initialise the viewport.

        Parameters
        ----------
        width : float, default=0.0
            Host width in pixels.
        height : float, default=0.0
            Host height in pixels.
        pad : Optional[Sequence[float]], default=None
            Margins ``[left, bottom, top, right]`` in pixels.
        """
        self.canvas_width = 0.0
        self.canvas_height = 0.0
        self.rect = TargetRect()
        self.xppu = 1.0
        self.yppu = 1.0
        self.resize(width, height, pad)

    def resize(self, width: float, height: float, pad=None) -> TargetRect:
        """Recompute the target rectangle for a host of ``width`` x ``height``."""
        left, bottom, top, right = padding_from(pad)
        self.canvas_width = float(width)
        self.canvas_height = float(height)
        self.rect = TargetRect(
            tx=left,
            ty=bottom,
            w=max(0.0, self.canvas_width - left - right),
            h=max(0.0, self.canvas_height - bottom - top),
        )
        return self.rect

    def update_scale(self, visible: Extent) -> Tuple[float, float]:
        """
        Recompute pixels-per-unit on both axes for ``visible``.

        Returns
        -------
        Tuple[float, float]
            ``(xppu, yppu)``.
        """
        self.xppu = self._ppu(self.rect.w, visible.width)
        self.yppu = self._ppu(self.rect.h, visible.height)
        logger.debug(
            f"Viewport scale: xppu={self.xppu:.6g}, yppu={self.yppu:.6g}, rect={tuple(self.rect)}"
        )
        return self.xppu, self.yppu

    @staticmethod
    def _ppu(pixels: float, span: float) -> float:
        if span == 0 or pixels <= 0:
            return FALLBACK_PPU
        return pixels / span

    def transform(self, visible: Extent) -> Affine2D:
        """
        Build the data-to-device transform for ``visible``.

        Applied in order: shift the visible minimum to the origin, scale to
        pixels, offset into the target rectangle, shift by the canvas height,
        then flip vertically.
        """
        return (
            Affine2D()
            .translate(-visible.min.x, -visible.min.y)
            .scale(self.xppu, self.yppu)
            .translate(self.rect.tx, self.rect.ty)
            .translate(0.0, -self.canvas_height)
            .scale(1.0, -1.0)
        )

    def to_pixel(self, x: float, y: float, visible: Extent) -> Point2D:
        """Convert a data-space point to device pixels."""
        px, py = self.transform(visible).transform_point((x, y))
        return Point2D(float(px), float(py))

    def to_data(self, px: float, py: float, visible: Extent) -> Point2D:
        """Convert a device pixel (e.g. a pointer offset) to data space."""
        x = px
        y = self.canvas_height - py  # flip
        x -= self.rect.tx
        y -= self.rect.ty
        x /= self.xppu
        y /= self.yppu
        x += visible.min.x
        y += visible.min.y
        return Point2D(x, y)
