"""
Raster drawing surface with a canvas-style state stack.

Coordinates given to path and fill calls go through the current transform at
the time of the call; the line width goes through the transform in effect
when :meth:`RasterSurface.stroke` is called. Resetting the transform before a
stroke therefore keeps widths in device pixels, and because the reset does
not touch the saved state, a clip set earlier stays active.
"""

import math
import re
from contextlib import contextmanager
from dataclasses import dataclass, replace
from functools import lru_cache
from typing import Iterator, List, Optional, Tuple, Union

import numpy as np
from loguru import logger
from matplotlib.transforms import Affine2D
from PIL import Image, ImageChops, ImageColor, ImageDraw, ImageFont

DEFAULT_FONT = "10pt sans-serif"
POINTS_TO_PIXELS = 96.0 / 72.0

_FONT_SIZE_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*(pt|px)\b")
_GENERIC_FAMILIES = {
    "sans-serif": "DejaVuSans.ttf",
    "serif": "DejaVuSerif.ttf",
    "monospace": "DejaVuSansMono.ttf",
    "fixed": "DejaVuSansMono.ttf",
}
_ALIGN_ANCHORS = {"left": "l", "start": "l", "center": "m", "right": "r", "end": "r"}
_BASELINE_ANCHORS = {
    "top": "t",
    "hanging": "a",
    "middle": "m",
    "alphabetic": "s",
    "ideographic": "d",
    "bottom": "b",
}

Matrix = np.ndarray
ClipBox = Tuple[float, float, float, float]


@lru_cache(maxsize=32)
def load_font(spec: Optional[str], pixel_ratio: float = 1.0) -> ImageFont.FreeTypeFont:
    """
    Load a Pillow font from a CSS-style descriptor such as ``"10pt Consolas, Courier"``.

    Families are tried in order; when none is installed the default font is
    used at the requested size.
    """
    spec = spec or DEFAULT_FONT
    found = _FONT_SIZE_PATTERN.search(spec)
    size_px = 10.0 * POINTS_TO_PIXELS
    families_text = spec
    if found is not None:
        size = float(found.group(1))
        size_px = size * POINTS_TO_PIXELS if found.group(2) == "pt" else size
        families_text = spec[found.end() :]
    size_px = max(1, round(size_px * pixel_ratio))

    families = [f.strip().strip("'\"") for f in families_text.split(",") if f.strip()]
    for family in families:
        candidates = [_GENERIC_FAMILIES.get(family.lower(), family)]
        if not candidates[0].lower().endswith((".ttf", ".otf")):
            candidates.append(f"{family}.ttf")
        for candidate in candidates:
            try:
                return ImageFont.truetype(candidate, size_px)
            except OSError:
                continue
    logger.debug(f"No installed font matches {spec!r}, using Pillow's default at {size_px}px")
    return ImageFont.load_default(size=size_px)


def _rgba(style: str, alpha: float) -> Tuple[int, int, int, int]:
    rgb = ImageColor.getrgb(style)
    base_alpha = rgb[3] if len(rgb) == 4 else 255
    return rgb[0], rgb[1], rgb[2], int(round(base_alpha * min(max(alpha, 0.0), 1.0)))


@dataclass
class SurfaceState:
    """Everything :meth:`RasterSurface.save` captures."""

    matrix: Matrix
    clip: Optional[ClipBox] = None
    stroke_style: str = "black"
    fill_style: str = "black"
    line_width: float = 1.0
    global_alpha: float = 1.0
    font: Optional[str] = None
    text_align: str = "left"
    text_baseline: str = "alphabetic"


def _state_property(name: str) -> property:
    """Expose a style attribute of the current state on the surface."""

    def getter(self):
        return getattr(self._state, name)

    def setter(self, value):
        setattr(self._state, name, value)

    return property(getter, setter)


class RasterSurface:
    """
    2-D drawing surface rendered with Pillow.

    Supports a save/restore stack of transform, clip and style; path
    construction; stroking; filled rectangles; rectangular clipping; and text.
    Logical sizes are multiplied by ``pixel_ratio`` to get the raster size.
    """

    def __init__(self, width: float, height: float, pixel_ratio: float = 1.0):
        """
        Initialise the surface.

        Parameters
        ----------
        width : float
            Logical width in pixels.
        height : float
            Logical height in pixels.
        pixel_ratio : float, default=1.0
            Device pixels per logical pixel.
        """
        self.pixel_ratio = float(pixel_ratio)
        self._stack: List[SurfaceState] = []
        self._path: List[List[Tuple[float, float]]] = []
        self.resize(width, height)

    # --- size -------------------------------------------------------------

    @property
    def width(self) -> float:
        return self._width

    @property
    def height(self) -> float:
        return self._height

    @property
    def size(self) -> Tuple[int, int]:
        """Raster size in device pixels."""
        return self._image.size

    def resize(self, width: float, height: float) -> None:
        """Resize and clear the surface, resetting all state."""
        self._width = float(width)
        self._height = float(height)
        device_size = (
            max(1, int(round(self._width * self.pixel_ratio))),
            max(1, int(round(self._height * self.pixel_ratio))),
        )
        self._image = Image.new("RGBA", device_size, (0, 0, 0, 0))
        self._stack.clear()
        self._path = []
        self._state = SurfaceState(matrix=self._identity())

    # --- state ------------------------------------------------------------

    stroke_style = _state_property("stroke_style")
    fill_style = _state_property("fill_style")
    line_width = _state_property("line_width")
    global_alpha = _state_property("global_alpha")
    font = _state_property("font")
    text_align = _state_property("text_align")
    text_baseline = _state_property("text_baseline")

    @property
    def matrix(self) -> Matrix:
        return self._state.matrix.copy()

    @property
    def clip_box(self) -> Optional[ClipBox]:
        return self._state.clip

    @property
    def depth(self) -> int:
        """Number of saved states."""
        return len(self._stack)

    def save(self) -> None:
        self._stack.append(replace(self._state, matrix=self._state.matrix.copy()))

    def restore(self) -> None:
        if self._stack:
            self._state = self._stack.pop()

    # --- transform --------------------------------------------------------

    def _identity(self) -> Matrix:
        return Affine2D().scale(self.pixel_ratio).get_matrix().copy()

    def transform(self, transform: Union[Affine2D, Matrix]) -> None:
        """Apply ``transform`` to coordinates before the current transform."""
        m = transform.get_matrix() if isinstance(transform, Affine2D) else np.asarray(transform)
        self._state.matrix = self._state.matrix @ m

    def translate(self, tx: float, ty: float) -> None:
        self.transform(Affine2D().translate(tx, ty))

    def scale(self, sx: float, sy: Optional[float] = None) -> None:
        self.transform(Affine2D().scale(sx, sy))

    def rotate(self, radians: float) -> None:
        self.transform(Affine2D().rotate(radians))

    def set_transform(self, transform: Union[Affine2D, Matrix]) -> None:
        """Replace the current transform (in device pixels)."""
        m = transform.get_matrix() if isinstance(transform, Affine2D) else np.asarray(transform)
        self._state.matrix = np.array(m, dtype=float)

    def reset_transform(self) -> None:
        """Reset to the pixel identity: logical pixels scaled by the pixel ratio only."""
        self._state.matrix = self._identity()

    def _to_device(self, points: np.ndarray) -> np.ndarray:
        return Affine2D(self._state.matrix).transform(np.asarray(points, dtype=float))

    def _device_scale(self) -> float:
        m = self._state.matrix
        return math.sqrt(abs(m[0, 0] * m[1, 1] - m[0, 1] * m[1, 0]))

    # --- paths ------------------------------------------------------------

    def begin_path(self) -> None:
        self._path = []

    def move_to(self, x: float, y: float) -> None:
        self._path.append([tuple(self._to_device([[x, y]])[0])])

    def line_to(self, x: float, y: float) -> None:
        point = tuple(self._to_device([[x, y]])[0])
        if self._path:
            self._path[-1].append(point)
        else:
            self._path.append([point])

    def polyline(self, xs: np.ndarray, ys: np.ndarray) -> None:
        """Start a new subpath through all ``(xs[i], ys[i])``."""
        points = np.column_stack([np.asarray(xs, dtype=float), np.asarray(ys, dtype=float)])
        if len(points) == 0:
            return
        device = self._to_device(points)
        device = device[np.all(np.isfinite(device), axis=1)]
        self._path.append([tuple(p) for p in device])

    def rect(self, x: float, y: float, w: float, h: float) -> None:
        corners = [[x, y], [x + w, y], [x + w, y + h], [x, y + h], [x, y]]
        self._path.append([tuple(p) for p in self._to_device(corners)])

    def clip(self) -> None:
        """Intersect the clip region with the bounding box of the current path."""
        points = [p for subpath in self._path for p in subpath]
        if not points:
            return
        arr = np.asarray(points)
        box = (arr[:, 0].min(), arr[:, 1].min(), arr[:, 0].max(), arr[:, 1].max())
        if self._state.clip is not None:
            cx0, cy0, cx1, cy1 = self._state.clip
            box = (max(box[0], cx0), max(box[1], cy0), min(box[2], cx1), min(box[3], cy1))
        self._state.clip = tuple(float(v) for v in box)

    # --- painting ---------------------------------------------------------

    def _composite(self, layer: Image.Image) -> None:
        if self._state.clip is not None:
            x0, y0, x1, y1 = self._state.clip
            mask = Image.new("L", layer.size, 0)
            if x1 > x0 and y1 > y0:
                ImageDraw.Draw(mask).rectangle(
                    [math.floor(x0), math.floor(y0), math.ceil(x1) - 1, math.ceil(y1) - 1], fill=255
                )
            layer.putalpha(ImageChops.multiply(layer.getchannel("A"), mask))
        self._image.alpha_composite(layer)

    def stroke(self) -> None:
        """Stroke the current path with the current style and transform-scaled width."""
        subpaths = [s for s in self._path if len(s) >= 2]
        if not subpaths:
            return
        device_width = self.line_width * self._device_scale()
        width = max(1, int(round(device_width)))
        # Sub-pixel widths are drawn 1px wide and proportionally fainter
        alpha = self.global_alpha * min(1.0, device_width)
        color = _rgba(self.stroke_style, alpha)

        layer = Image.new("RGBA", self._image.size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(layer)
        for subpath in subpaths:
            draw.line(subpath, fill=color, width=width, joint="curve" if width > 2 else None)
        self._composite(layer)

    def fill_rect(self, x: float, y: float, w: float, h: float) -> None:
        corners = self._to_device([[x, y], [x + w, y], [x + w, y + h], [x, y + h]])
        layer = Image.new("RGBA", self._image.size, (0, 0, 0, 0))
        ImageDraw.Draw(layer).polygon(
            [tuple(p) for p in corners], fill=_rgba(self.fill_style, self.global_alpha)
        )
        self._composite(layer)

    def clear(self) -> None:
        """Erase every pixel; state and path are kept."""
        self._image = Image.new("RGBA", self._image.size, (0, 0, 0, 0))

    def fill_text(self, text: str, x: float, y: float) -> None:
        """
        Draw ``text`` anchored at ``(x, y)`` per ``text_align``/``text_baseline``.

        Rotated text is always centred on the anchor point.
        """
        if not text:
            return
        font = load_font(self.font, self.pixel_ratio)
        px, py = self._to_device([[x, y]])[0]
        color = _rgba(self.fill_style, self.global_alpha)
        m = self._state.matrix
        angle = math.degrees(math.atan2(m[1, 0], m[0, 0]))

        layer = Image.new("RGBA", self._image.size, (0, 0, 0, 0))
        if abs(angle) < 1e-6:
            anchor = _ALIGN_ANCHORS.get(self.text_align, "l") + _BASELINE_ANCHORS.get(
                self.text_baseline, "s"
            )
            ImageDraw.Draw(layer).text((px, py), text, fill=color, font=font, anchor=anchor)
        else:
            left, top, right, bottom = font.getbbox(text, anchor="mm")
            pad = 2
            label = Image.new("RGBA", (int(right - left) + 2 * pad, int(bottom - top) + 2 * pad))
            ImageDraw.Draw(label).text(
                (label.width / 2, label.height / 2), text, fill=color, font=font, anchor="mm"
            )
            # Image.rotate turns counter-clockwise on screen; the matrix angle turns clockwise
            label = label.rotate(-angle, expand=True)
            layer.paste(label, (int(round(px - label.width / 2)), int(round(py - label.height / 2))))
        self._composite(layer)

    def to_image(self) -> Image.Image:
        """Return a copy of the raster at device resolution."""
        return self._image.copy()


class DataSpace:
    """
    Handle yielded by :func:`data_space`.

    Path calls are forwarded to the surface in data coordinates; :meth:`stroke`
    switches back to the pixel identity first so line widths are in device
    pixels, without dropping any clip set in the guard.
    """

    def __init__(self, surface: RasterSurface):
        self.surface = surface

    def __getattr__(self, name):
        return getattr(self.surface, name)

    def stroke(self, style: Optional[str] = None, width: Optional[float] = None) -> None:
        if style is not None:
            self.surface.stroke_style = style
        if width is not None:
            self.surface.line_width = width
        self.surface.reset_transform()
        self.surface.stroke()


@contextmanager
def data_space(surface: RasterSurface, transform: Affine2D) -> Iterator[DataSpace]:
    """
    Draw in data coordinates for the duration of the block.

    The surface state is saved on entry and restored on every exit path.
    """
    surface.save()
    try:
        surface.transform(transform)
        surface.begin_path()
        yield DataSpace(surface)
    finally:
        surface.restore()
