"""
Drawing surfaces for interpolated curves.

Defines the path-drawing capability that curve segments are replayed onto,
plus a Pillow-backed raster implementation that produces numpy frames.
"""

import logging
import math
from typing import Protocol, Sequence

import numpy as np
from PIL import Image, ImageDraw

from spectracurve.core.curve import CurveSpec, coerce_points

logger = logging.getLogger(__name__)

Vertex = tuple[float, float]


class PathSurface(Protocol):
    """Anything that can build and paint a 2D path, canvas-style."""

    def begin_path(self) -> None: ...

    def move_to(self, x: float, y: float) -> None: ...

    def line_to(self, x: float, y: float) -> None: ...

    def bezier_curve_to(
        self, c1x: float, c1y: float, c2x: float, c2y: float, x: float, y: float
    ) -> None: ...

    def quadratic_curve_to(self, cx: float, cy: float, x: float, y: float) -> None: ...

    def close_path(self) -> None: ...

    def fill(self, color: str) -> None: ...

    def stroke(self, color: str, width: float, dash: Sequence[float]) -> None: ...

    def fill_rect(self, x: float, y: float, w: float, h: float, color: str) -> None: ...


def draw_curve(surface: PathSurface, curve: CurveSpec) -> None:
    """
    Trace a curve onto a surface, then fill, stroke and mark its points.

    Args:
        surface: Target drawing surface.
        curve: Curve points, interpolation mode and styling.
    """
    segments = curve.trace()
    points = coerce_points(curve.points)

    surface.begin_path()
    for segment in segments:
        segment.apply(surface)

    if curve.is_filled:
        surface.fill(curve.fill)

    if curve.is_stroked:
        surface.stroke(curve.stroke, curve.stroke_width, curve.stroke_dash)

    if curve.show_points:
        for p in points:
            surface.fill_rect(p.x - 2, p.y - 2, 4, 4, curve.points_fill)


def dash_polyline(vertices: list[Vertex], pattern: Sequence[float]) -> list[list[Vertex]]:
    """
    Split a polyline into the "on" pieces of a dash pattern.

    An odd-length pattern is repeated to make it even. An empty, all-zero
    or negative pattern leaves the line solid.
    """
    pattern = list(pattern)
    if (
        not pattern
        or any(not math.isfinite(d) or d < 0 for d in pattern)
        or sum(pattern) <= 0
    ):
        return [vertices]
    if len(pattern) % 2:
        pattern = pattern * 2

    pieces = []
    current = [vertices[0]]
    drawing = True
    index = 0
    remaining = pattern[0]

    for (x0, y0), (x1, y1) in zip(vertices, vertices[1:]):
        length = math.hypot(x1 - x0, y1 - y0)
        pos = 0.0
        while length - pos > remaining:
            pos += remaining
            split = (x0 + (x1 - x0) * pos / length, y0 + (y1 - y0) * pos / length)
            if drawing:
                current.append(split)
                pieces.append(current)
            else:
                current = [split]
            drawing = not drawing
            index = (index + 1) % len(pattern)
            remaining = pattern[index]
        remaining -= length - pos
        if drawing:
            current.append((x1, y1))

    if drawing:
        pieces.append(current)
    return [p for p in pieces if len(p) >= 2]


class PillowSurface:
    """
    Raster PathSurface backed by a Pillow RGBA image.

    Curves are flattened into polylines, so ``curve_steps`` sets how many
    line segments approximate each Bezier or quadratic curve.
    """

    def __init__(
        self,
        width: int,
        height: int,
        background: str | tuple = (0, 0, 0, 0),
        curve_steps: int = 24,
    ):
        self.image = Image.new("RGBA", (width, height), background)
        self._draw = ImageDraw.Draw(self.image)
        self.curve_steps = curve_steps
        self._subpaths: list[list[Vertex]] = []

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    def _current(self, x: float, y: float) -> list[Vertex]:
        # Drawing without a current point starts a subpath there, as a canvas does
        if not self._subpaths:
            self._subpaths.append([(x, y)])
        return self._subpaths[-1]

    def _flatten(self, path: list[Vertex], controls: np.ndarray) -> None:
        start = np.array(path[-1], dtype=np.float64)
        nodes = np.vstack([start, controls])
        degree = len(nodes) - 1
        t = np.linspace(0.0, 1.0, self.curve_steps + 1)[1:, None]
        # Bernstein basis
        coeffs = [math.comb(degree, k) * (1 - t) ** (degree - k) * t**k for k in range(degree + 1)]
        curve = sum(c * node for c, node in zip(coeffs, nodes))
        path.extend((float(x), float(y)) for x, y in curve)

    def begin_path(self) -> None:
        self._subpaths = []

    def move_to(self, x: float, y: float) -> None:
        self._subpaths.append([(x, y)])

    def line_to(self, x: float, y: float) -> None:
        self._current(x, y).append((x, y))

    def bezier_curve_to(self, c1x, c1y, c2x, c2y, x, y) -> None:
        path = self._current(c1x, c1y)
        self._flatten(path, np.array([[c1x, c1y], [c2x, c2y], [x, y]], dtype=np.float64))

    def quadratic_curve_to(self, cx, cy, x, y) -> None:
        path = self._current(cx, cy)
        self._flatten(path, np.array([[cx, cy], [x, y]], dtype=np.float64))

    def close_path(self) -> None:
        if self._subpaths and len(self._subpaths[-1]) > 1:
            path = self._subpaths[-1]
            path.append(path[0])
            # Later drawing starts a new subpath at the closed path's start
            self._subpaths.append([path[0]])

    def _finite(self, vertices: list[Vertex]) -> list[Vertex]:
        arr = np.asarray(vertices, dtype=np.float64).reshape(-1, 2)
        mask = np.isfinite(arr).all(axis=1)
        if not mask.all():
            logger.debug("Dropped %d non-finite vertices", int((~mask).sum()))
        return [tuple(v) for v in arr[mask].tolist()]

    def fill(self, color: str) -> None:
        for path in self._subpaths:
            vertices = self._finite(path)
            if len(vertices) >= 3:
                self._draw.polygon(vertices, fill=color)

    def stroke(self, color: str, width: float = 1.0, dash: Sequence[float] = ()) -> None:
        line_width = max(1, int(round(width)))
        for path in self._subpaths:
            vertices = self._finite(path)
            if len(vertices) < 2:
                continue
            for piece in dash_polyline(vertices, dash):
                self._draw.line(piece, fill=color, width=line_width, joint="curve")

    def fill_rect(self, x: float, y: float, w: float, h: float, color: str) -> None:
        if not all(math.isfinite(v) for v in (x, y, w, h)):
            return
        self._draw.rectangle([x, y, x + w - 1, y + h - 1], fill=color)

    def to_array(self) -> np.ndarray:
        """(H, W, 4) uint8 RGBA copy of the surface."""
        return np.array(self.image)
