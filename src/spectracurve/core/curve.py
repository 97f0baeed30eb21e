"""
Parametric curve interpolation.

Fits smooth paths through an ordered sequence of 2D points and emits them
as path segments (move/line/cubic/quadratic/close) for any drawing surface
to consume. Three strategies are available:

- Line: cardinal (Catmull-Rom style) spline flattened into line segments
- Bezier curve: cubic Bezier per point pair, control points from local gradient
- Quadratic curve: two quadratic arcs per pair, meeting at the midpoint
"""

import abc
import enum
import math
import numbers
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Union

import numpy as np

from spectracurve.exceptions import (
    ConfigurationError,
    InsufficientPointsError,
    InvalidInputError,
)


@dataclass(frozen=True)
class Point:
    """A 2D point."""

    x: float
    y: float

    @classmethod
    def of(cls, value: Any) -> "Point":
        """Coerce a Point, an (x, y) pair or an {"x", "y"} mapping."""
        if isinstance(value, Point):
            return value
        try:
            if isinstance(value, Mapping):
                x, y = value["x"], value["y"]
            else:
                x, y = value
            return cls(float(x), float(y))
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidInputError(f"cannot interpret {value!r} as a 2D point") from e


@dataclass(frozen=True)
class MoveTo:
    point: Point

    def apply(self, surface) -> None:
        surface.move_to(self.point.x, self.point.y)


@dataclass(frozen=True)
class LineTo:
    point: Point

    def apply(self, surface) -> None:
        surface.line_to(self.point.x, self.point.y)


@dataclass(frozen=True)
class CubicTo:
    c1: Point
    c2: Point
    end: Point

    def apply(self, surface) -> None:
        surface.bezier_curve_to(
            self.c1.x, self.c1.y, self.c2.x, self.c2.y, self.end.x, self.end.y
        )


@dataclass(frozen=True)
class QuadraticTo:
    control: Point
    end: Point

    def apply(self, surface) -> None:
        surface.quadratic_curve_to(self.control.x, self.control.y, self.end.x, self.end.y)


@dataclass(frozen=True)
class ClosePath:
    def apply(self, surface) -> None:
        surface.close_path()


PathSegment = Union[MoveTo, LineTo, CubicTo, QuadraticTo, ClosePath]


class CurveMode(enum.Enum):
    """How a curve is fitted through its points."""

    LINE = 0
    BEZIER_CURVE = 1
    QUADRATIC_CURVE = 2


def _to_point_list(points: Any) -> list[Point]:
    # Unordered containers would lose the sequence the curve passes through
    if isinstance(points, (set, frozenset, Mapping, str, bytes)):
        raise InvalidInputError(
            f"points must be an ordered sequence, got {type(points).__name__}"
        )
    try:
        return [Point.of(p) for p in points]
    except TypeError as e:
        raise InvalidInputError(f"points must be iterable, got {type(points).__name__}") from e


def _is_real(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def coerce_points(points: Any) -> list[Point]:
    """Convert an ordered point sequence to a list of at least two Points."""
    result = _to_point_list(points)
    if len(result) < 2:
        raise InsufficientPointsError(
            f"at least 2 points are required to draw a curve, got {len(result)}"
        )
    return result


def gradient(a: Point, b: Point) -> float:
    """
    Slope of the line from a to b.

    Vertical lines follow IEEE rules: +/-inf, or nan when a == b.
    """
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.float64(b.y - a.y) / np.float64(b.x - a.x))


@dataclass
class CurveSpec:
    """Drawing configuration and point list for one visual curve."""

    is_filled: bool = True
    is_stroked: bool = True
    is_closed: bool = True
    show_points: bool = False

    fill: str = "white"
    stroke: str = "white"
    stroke_width: float = 1.0
    stroke_dash: list[float] = field(default_factory=list)  # dash pattern, [] is solid
    points_fill: str = "blue"

    points: list[Point] = field(default_factory=list)

    factor: float = 0.3  # Bezier control offset; 0 draws straight lines
    tension: float = 0.5
    num_of_segments: int = 16  # Line mode steps per point pair

    mode: CurveMode = CurveMode.LINE

    def __post_init__(self):
        self.points = _to_point_list(self.points)
        try:
            self.mode = CurveMode(self.mode)
        except ValueError as e:
            raise ConfigurationError(f"unknown curve mode {self.mode!r}") from e
        self.validate()

    def validate(self) -> None:
        """Raise ConfigurationError for out-of-range algorithm parameters."""
        for name in ("tension", "factor", "stroke_width"):
            value = getattr(self, name)
            if not _is_real(value) or not math.isfinite(value) or value < 0:
                raise ConfigurationError(f"{name} must be finite and >= 0, got {value!r}")
        steps = self.num_of_segments
        if not _is_real(steps) or not math.isfinite(steps) or int(steps) != steps:
            raise ConfigurationError(f"num_of_segments must be an integer, got {steps!r}")
        if steps < 1:
            raise ConfigurationError(f"num_of_segments must be at least 1, got {steps}")

    def add(self, x: float, y: float) -> "CurveSpec":
        """Append a point."""
        self.points.append(Point(float(x), float(y)))
        return self

    def remove(self, index: int) -> "CurveSpec":
        """
        Remove the point at index.

        Negative indexes count from the end, as with a list. Indexes
        outside the list are ignored.
        """
        if -len(self.points) <= index < len(self.points):
            del self.points[index]
        return self

    def clear(self) -> None:
        self.points = []

    def interpolate(self) -> Iterator[PathSegment]:
        return interpolate(self.points, self)

    def trace(self) -> Iterator[PathSegment]:
        return trace(self)


class Interpolator(abc.ABC):
    """Strategy that fits path segments through a point sequence."""

    def interpolate(self, points: Any, curve: CurveSpec) -> Iterator[PathSegment]:
        """
        Validate inputs, then lazily generate path segments.

        Validation happens before the generator is returned, so errors
        surface at the call site rather than on first iteration.
        """
        pts = coerce_points(points)
        curve.validate()
        return self._segments(pts, curve)

    @abc.abstractmethod
    def _segments(self, points: list[Point], curve: CurveSpec) -> Iterator[PathSegment]:
        pass


class LineInterpolator(Interpolator):
    """
    Cardinal spline through every point, flattened into line segments.

    Each pair is split into ``num_of_segments`` steps evaluated with the
    cubic Hermite basis, so ``num_of_segments + 1`` LineTo segments are
    emitted per pair.
    """

    def _segments(self, points, curve):
        # Neighbours for the end points: wrap around when closed,
        # duplicate the end points (zero tangent) when open.
        if curve.is_closed:
            extended = [points[-1], *points, points[0]]
        else:
            extended = [points[0], *points, points[-1]]
        xy = np.array([(p.x, p.y) for p in extended], dtype=np.float64)

        steps = curve.num_of_segments
        s = np.arange(steps + 1) / steps
        h1 = 2 * s**3 - 3 * s**2 + 1
        h2 = -h1 + 1
        h3 = s**3 - 2 * s**2 + s
        h4 = s**3 - s**2

        yield MoveTo(extended[0])
        for i in range(1, len(extended) - 2):
            t1 = (xy[i + 1] - xy[i - 1]) * curve.tension
            t2 = (xy[i + 2] - xy[i]) * curve.tension
            coords = (
                np.outer(h1, xy[i])
                + np.outer(h2, xy[i + 1])
                + np.outer(h3, t1)
                + np.outer(h4, t2)
            )
            for x, y in coords:
                yield LineTo(Point(float(x), float(y)))


class BezierInterpolator(Interpolator):
    """
    One cubic Bezier per point pair.

    The outgoing control offset at a point follows the gradient between its
    two neighbours. The next segment mirrors that offset on its incoming
    side, so tangents line up at every joint. The final point gets a zero
    offset.
    """

    def _segments(self, points, curve):
        f = curve.factor
        t = curve.tension

        yield MoveTo(points[0])

        dx1 = dy1 = 0.0
        prev = points[0]
        for i in range(1, len(points)):
            cur = points[i]
            if i + 1 < len(points):
                nxt = points[i + 1]
                m = gradient(prev, nxt)
                dx2 = (nxt.x - cur.x) * -f
                with np.errstate(invalid="ignore"):
                    dy2 = float(np.float64(dx2) * m * t)
            else:
                dx2 = dy2 = 0.0

            yield CubicTo(
                Point(prev.x - dx1, prev.y - dy1),
                Point(cur.x + dx2, cur.y + dy2),
                cur,
            )
            dx1, dy1 = dx2, dy2
            prev = cur


class QuadraticInterpolator(Interpolator):
    """Two quadratic arcs per pair, joined at the pair's midpoint."""

    def _segments(self, points, curve):
        yield MoveTo(points[0])
        for a, b in zip(points, points[1:]):
            mid = Point((a.x + b.x) / 2, (a.y + b.y) / 2)
            yield QuadraticTo(Point((mid.x + a.x) / 2, a.y), mid)
            yield QuadraticTo(Point((mid.x + b.x) / 2, b.y), b)


INTERPOLATORS: dict[CurveMode, Interpolator] = {
    CurveMode.LINE: LineInterpolator(),
    CurveMode.BEZIER_CURVE: BezierInterpolator(),
    CurveMode.QUADRATIC_CURVE: QuadraticInterpolator(),
}


def interpolate(points: Any, curve: CurveSpec) -> Iterator[PathSegment]:
    """Path segments through ``points`` using the strategy for ``curve.mode``."""
    return INTERPOLATORS[curve.mode].interpolate(points, curve)


def trace(curve: CurveSpec) -> Iterator[PathSegment]:
    """Interpolated segments of ``curve``, closed when ``curve.is_closed``."""
    segments = interpolate(curve.points, curve)

    def _closed():
        yield from segments
        if curve.is_closed:
            yield ClosePath()

    return _closed()
