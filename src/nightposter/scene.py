"""Drawing surface: an ordered display list of primitive ops in canvas pixels.

The composer paints onto a SceneBuilder; renderers (matplotlib, SVG,
Plotly) only ever see the finished Scene. Coordinates are top-left
origin with y pointing down.
"""

from __future__ import annotations

import math
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Iterator

Point = tuple[float, float]


@dataclass(frozen=True)
class Affine:
    """Axis-aligned scale followed by translation: x' = a·x + tx, y' = d·y + ty."""

    a: float = 1.0
    d: float = 1.0
    tx: float = 0.0
    ty: float = 0.0

    def apply(self, x: float, y: float) -> Point:
        return (self.a * x + self.tx, self.d * y + self.ty)

    def apply_all(self, points: tuple[Point, ...]) -> tuple[Point, ...]:
        return tuple(self.apply(x, y) for x, y in points)

    def compose(self, inner: Affine) -> Affine:
        """Return the transform that applies `inner` first, then self."""
        return Affine(
            a=self.a * inner.a,
            d=self.d * inner.d,
            tx=self.a * inner.tx + self.tx,
            ty=self.d * inner.ty + self.ty,
        )

    @property
    def length_scale(self) -> float:
        """Scale factor for isotropic lengths (radii, line widths)."""
        return math.sqrt(abs(self.a * self.d))


def translate(dx: float, dy: float) -> Affine:
    return Affine(tx=dx, ty=dy)


def scale(sx: float, sy: float) -> Affine:
    return Affine(a=sx, d=sy)


def scale_about(cx: float, cy: float, factor: float) -> Affine:
    """Uniform zoom around (cx, cy)."""
    return Affine(a=factor, d=factor, tx=cx - factor * cx, ty=cy - factor * cy)


# --- Clip shapes ---


@dataclass(frozen=True)
class CircleClip:
    cx: float
    cy: float
    r: float

    def map(self, t: Affine) -> CircleClip:
        cx, cy = t.apply(self.cx, self.cy)
        return CircleClip(cx=cx, cy=cy, r=self.r * t.length_scale)

    def outline(self, steps: int = 180) -> tuple[Point, ...]:
        return tuple(
            (
                self.cx + self.r * math.cos(2 * math.pi * i / steps),
                self.cy + self.r * math.sin(2 * math.pi * i / steps),
            )
            for i in range(steps)
        )


@dataclass(frozen=True)
class RectClip:
    x: float
    y: float
    w: float
    h: float

    def map(self, t: Affine) -> RectClip:
        x, y = t.apply(self.x, self.y)
        return RectClip(x=x, y=y, w=self.w * t.a, h=self.h * t.d)

    def outline(self, steps: int = 0) -> tuple[Point, ...]:
        return (
            (self.x, self.y),
            (self.x + self.w, self.y),
            (self.x + self.w, self.y + self.h),
            (self.x, self.y + self.h),
        )


@dataclass(frozen=True)
class PolygonClip:
    points: tuple[Point, ...]

    def map(self, t: Affine) -> PolygonClip:
        return PolygonClip(points=t.apply_all(self.points))

    def outline(self, steps: int = 0) -> tuple[Point, ...]:
        return self.points


ClipShape = CircleClip | RectClip | PolygonClip


# --- Draw ops ---


@dataclass(frozen=True)
class FillRect:
    x: float
    y: float
    w: float
    h: float
    color: str
    alpha: float = 1.0

    def map(self, t: Affine) -> FillRect:
        x, y = t.apply(self.x, self.y)
        return replace(self, x=x, y=y, w=self.w * t.a, h=self.h * t.d)


@dataclass(frozen=True)
class StrokeRect:
    x: float
    y: float
    w: float
    h: float
    color: str
    line_width: float
    alpha: float = 1.0

    def map(self, t: Affine) -> StrokeRect:
        x, y = t.apply(self.x, self.y)
        return replace(
            self,
            x=x,
            y=y,
            w=self.w * t.a,
            h=self.h * t.d,
            line_width=self.line_width * t.length_scale,
        )


@dataclass(frozen=True)
class Dot:
    """Filled circle."""

    cx: float
    cy: float
    r: float
    color: str
    alpha: float = 1.0

    def map(self, t: Affine) -> Dot:
        cx, cy = t.apply(self.cx, self.cy)
        return replace(self, cx=cx, cy=cy, r=self.r * t.length_scale)


@dataclass(frozen=True)
class Ring:
    """Stroked circle."""

    cx: float
    cy: float
    r: float
    color: str
    line_width: float
    alpha: float = 1.0

    def map(self, t: Affine) -> Ring:
        cx, cy = t.apply(self.cx, self.cy)
        s = t.length_scale
        return replace(self, cx=cx, cy=cy, r=self.r * s, line_width=self.line_width * s)


@dataclass(frozen=True)
class Polyline:
    points: tuple[Point, ...]
    color: str
    line_width: float
    alpha: float = 1.0
    closed: bool = False

    def map(self, t: Affine) -> Polyline:
        return replace(
            self,
            points=t.apply_all(self.points),
            line_width=self.line_width * t.length_scale,
        )


@dataclass(frozen=True)
class Label:
    """Single line of text, anchored at its top edge."""

    x: float
    y: float
    text: str
    size: float  # Font size in canvas pixels
    weight: int
    font_key: str
    color: str
    alpha: float = 1.0
    align: str = "center"  # left | center | right

    def map(self, t: Affine) -> Label:
        x, y = t.apply(self.x, self.y)
        return replace(self, x=x, y=y, size=self.size * t.d)


@dataclass(frozen=True)
class PushClip:
    shape: ClipShape

    def map(self, t: Affine) -> PushClip:
        return PushClip(shape=self.shape.map(t))


@dataclass(frozen=True)
class PopClip:
    def map(self, t: Affine) -> PopClip:
        return self


Op = FillRect | StrokeRect | Dot | Ring | Polyline | Label | PushClip | PopClip


@dataclass(frozen=True)
class Scene:
    """A complete frame, ready to hand to an encoder."""

    width: float
    height: float
    background: str
    ops: tuple[Op, ...]

    def scaled(self, width: float, height: float) -> Scene:
        """The same composition at another output size (sx = W/w, sy = H/h)."""
        t = scale(width / self.width, height / self.height)
        return Scene(
            width=width,
            height=height,
            background=self.background,
            ops=tuple(op.map(t) for op in self.ops),
        )


class SceneBuilder:
    """Collects ops under a stack of transforms, like a 2D canvas context."""

    def __init__(self, width: float, height: float, background: str) -> None:
        self.width = width
        self.height = height
        self.background = background
        self._ops: list[Op] = []
        self._transform = Affine()

    @contextmanager
    def transform(self, t: Affine) -> Iterator[None]:
        previous = self._transform
        self._transform = previous.compose(t)
        try:
            yield
        finally:
            self._transform = previous

    @contextmanager
    def clip(self, shape: ClipShape) -> Iterator[None]:
        self._ops.append(PushClip(shape=shape.map(self._transform)))
        try:
            yield
        finally:
            self._ops.append(PopClip())

    def add(self, op: Op) -> None:
        self._ops.append(op.map(self._transform))

    def build(self) -> Scene:
        return Scene(
            width=self.width,
            height=self.height,
            background=self.background,
            ops=tuple(self._ops),
        )
