"""Map styles, viewport shapes, colour themes, and the scene-config factory.

Each viewport shape is a capability record (geometry, clip, outline,
grid-zoom flag) instead of branches on a style string.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Callable

from nightposter.catalog import load_catalog
from nightposter.decoration import clamp_grid_opacity, seed_from_key
from nightposter.models import (
    Catalog,
    ObserverContext,
    PosterDecor,
    PosterText,
    RenderTokens,
    SceneConfig,
)
from nightposter.scene import (
    CircleClip,
    ClipShape,
    Op,
    PolygonClip,
    Polyline,
    RectClip,
    Ring,
    StrokeRect,
)

POSTER_W = 900
POSTER_H = 1200

FRAME_PCT_MAX = 0.06
FRAME_INSET_MAX = 160
OUTLINE_THICKNESS = 4.0

ZOOM_MIN, ZOOM_MAX = 1.0, 1.6
CONSTELLATION_SIZE_MIN, CONSTELLATION_SIZE_MAX = 1.0, 4.0

OVERLAY_MODES = ("none", "stars", "const", "stars+const")


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


# --- Viewport shapes ---


@dataclass(frozen=True)
class MapGeometry:
    """Shape geometry in map-local logical pixels."""

    width: float
    height: float
    cx: float  # Zoom pivot and sky-disc center
    cy: float
    extent: float  # Circle: content radius. Heart: curve size. Rect: unused
    sky_radius: float  # Horizon radius for projection and the globe grid


def heart_points(
    cx: float, cy: float, size: float, steps: int = 220
) -> tuple[tuple[float, float], ...]:
    """Parametric heart.

    x = 16 sin³t, y = 13 cos t − 5 cos 2t − 2 cos 3t − cos 4t.
    """
    s = size / 18
    pts = []
    for i in range(steps + 1):
        t = (i / steps) * math.pi * 2
        x = 16 * math.sin(t) ** 3
        y = (
            13 * math.cos(t)
            - 5 * math.cos(2 * t)
            - 2 * math.cos(3 * t)
            - math.cos(4 * t)
        )
        pts.append((cx + x * s * 1.10, cy - y * s * 1.15))
    return tuple(pts)


def _circle_geometry(width: float, height: float, inset: float) -> MapGeometry:
    r_content = min(width, height) / 2 - inset
    return MapGeometry(width, height, width / 2, height / 2, r_content, r_content)


def _heart_geometry(width: float, height: float, inset: float) -> MapGeometry:
    cy = height / 2 - round(height * 0.06)
    base = min(width, height) * (0.5227 * 0.95)
    size = clamp(base - inset * 0.95, base * 0.70, base)
    return MapGeometry(width, height, width / 2, cy, size, size * 0.60)


def _rect_geometry(width: float, height: float, inset: float) -> MapGeometry:
    return MapGeometry(
        width, height, width / 2, height / 2, 0.0, min(width, height) * 0.48
    )


def _circle_clip(g: MapGeometry) -> ClipShape:
    return CircleClip(cx=g.cx, cy=g.cy, r=g.extent)


def _heart_clip(g: MapGeometry) -> ClipShape:
    return PolygonClip(points=heart_points(g.cx, g.cy, g.extent))


def _rect_clip(g: MapGeometry) -> ClipShape:
    return RectClip(x=0.0, y=0.0, w=g.width, h=g.height)


def _circle_outline(g: MapGeometry, color: str, width: float) -> Op:
    return Ring(
        cx=g.cx,
        cy=g.cy,
        r=max(0.0, g.extent - width / 2),
        color=color,
        line_width=width,
    )


def _heart_outline(g: MapGeometry, color: str, width: float) -> Op:
    return Polyline(
        points=heart_points(g.cx, g.cy, g.extent),
        color=color,
        line_width=width,
        closed=True,
    )


def _rect_outline(g: MapGeometry, color: str, width: float) -> Op:
    half = width / 2
    return StrokeRect(
        x=half,
        y=half,
        w=g.width - width,
        h=g.height - width,
        color=color,
        line_width=width,
    )


@dataclass(frozen=True)
class ViewportShape:
    kind: str
    geometry: Callable[[float, float, float], MapGeometry]
    clip: Callable[[MapGeometry], ClipShape]
    outline: Callable[[MapGeometry, str, float], Op]
    grid_zoom_exempt: bool  # Grid drawn outside the zoom transform


CIRCLE = ViewportShape("circle", _circle_geometry, _circle_clip, _circle_outline, True)
RECTANGLE = ViewportShape("rect", _rect_geometry, _rect_clip, _rect_outline, True)
HEART = ViewportShape("heart", _heart_geometry, _heart_clip, _heart_outline, True)


# --- Map styles ---


@dataclass(frozen=True)
class MapStyle:
    id: str
    name: str
    layout: str  # "classic" (centered text) | "minimal" (left-aligned text)
    shape: ViewportShape
    grid_allowed: bool = False
    forces_plain: bool = False  # Frame and margin always off
    map_base: float = 780.0  # Circle base size before the frame shrink
    default_decor: PosterDecor = field(default_factory=PosterDecor)

    def map_size(self, frame_px: float) -> tuple[float, float]:
        """Map area (width, height) in logical pixels."""
        if self.shape is RECTANGLE:
            return (820.0, 860.0)
        if self.shape is CIRCLE:
            size = clamp(self.map_base - round(frame_px * 0.6), 600.0, self.map_base)
            return (size, size)
        return (780.0, 780.0)


MAP_STYLES: tuple[MapStyle, ...] = (
    MapStyle(
        "classic",
        "Clásico",
        "classic",
        CIRCLE,
        grid_allowed=True,
        default_decor=PosterDecor(frame=False, margin=True, outline=True),
    ),
    MapStyle(
        "moderno",
        "Moderno",
        "minimal",
        CIRCLE,
        grid_allowed=True,
        map_base=740.0,
    ),
    MapStyle("poster", "Poster", "classic", RECTANGLE, forces_plain=True),
    MapStyle(
        "romantico",
        "Romántico",
        "classic",
        HEART,
        default_decor=PosterDecor(frame=False, margin=False, outline=True),
    ),
)


def get_style(style_id: str) -> MapStyle:
    """Look up a style by id, falling back to the first (classic) style."""
    for style in MAP_STYLES:
        if style.id == style_id:
            return style
    return MAP_STYLES[0]


def effective_decor(style: MapStyle, decor: PosterDecor) -> PosterDecor:
    """Apply the hard rules: frame wins over margin; plain styles drop both."""
    if style.forces_plain:
        return PosterDecor(frame=False, margin=False, outline=decor.outline)
    if decor.frame and decor.margin:
        return decor.with_frame(True)
    return decor


@dataclass(frozen=True)
class StylePreferences:
    """Per-style decoration toggles remembered across style switches."""

    prefs: dict[str, PosterDecor] = field(
        default_factory=lambda: {s.id: s.default_decor for s in MAP_STYLES}
    )

    def load(self, style_id: str) -> PosterDecor:
        style = get_style(style_id)
        return effective_decor(style, self.prefs.get(style.id, style.default_decor))

    def save(self, style_id: str, decor: PosterDecor) -> StylePreferences:
        style = get_style(style_id)
        prefs = dict(self.prefs)
        prefs[style.id] = effective_decor(style, decor)
        return StylePreferences(prefs=prefs)

    def switch(
        self, from_style: str, decor: PosterDecor, to_style: str
    ) -> tuple[StylePreferences, PosterDecor]:
        """Save the current toggles under `from_style` and load those of `to_style`."""
        saved = self.save(from_style, decor)
        return saved, saved.load(to_style)


# --- Colour themes and tokens ---

COLOR_THEMES: dict[str, tuple[str, str]] = {
    # id: (background, star)
    "mono": ("#0A0B0D", "#FFFFFF"),
    "marino": ("#0B0D12", "#FFFFFF"),
    "ice": ("#071016", "#E9F6FF"),
    "warm": ("#140E0A", "#F6E7C9"),
    "forest": ("#06130E", "#EAF7F1"),
    "rose": ("#16080C", "#FFE9EF"),
    "neonBlue": ("#05050A", "#4EA7FF"),
    "neonGreen": ("#05050A", "#3CFF9B"),
    "neonRose": ("#05050A", "#FF4FD8"),
}


def is_neon_theme(theme_id: str) -> bool:
    return str(theme_id or "").startswith("neon")


def compute_render_tokens(
    theme_id: str, background_mode: str = "match"
) -> RenderTokens:
    """Resolve the palette for a colour theme and background mode."""
    bg, star = COLOR_THEMES.get(theme_id, COLOR_THEMES["mono"])

    if is_neon_theme(theme_id):
        return RenderTokens(
            background_color="#000000",
            ink_color=star,
            map_background_color="#000000",
            star_color=star,
            grid_line_color=star,
            constellation_line_color=star,
            constellation_node_color=star,
            outline_color=star,
            is_neon=True,
        )

    if background_mode == "white":
        return RenderTokens(
            background_color="#FFFFFF",
            ink_color=bg,
            map_background_color=bg,
            star_color=star,
            grid_line_color="#FFFFFF",
            constellation_line_color="#FFFFFF",
            constellation_node_color="#FFFFFF",
            outline_color="#FFFFFF",
            is_neon=False,
        )

    return RenderTokens(
        background_color=bg,
        ink_color="#FFFFFF",
        map_background_color=bg,
        star_color="#FFFFFF",
        grid_line_color="#FFFFFF",
        constellation_line_color="#FFFFFF",
        constellation_node_color="#FFFFFF",
        outline_color="#FFFFFF",
        is_neon=False,
    )


def frame_inset_px(frame_pct: float) -> float:
    """Frame inset in logical pixels, from a fraction of the poster width."""
    pct = clamp(frame_pct, 0.0, FRAME_PCT_MAX)
    return clamp(round(POSTER_W * pct), 0, FRAME_INSET_MAX)


def make_scene_config(
    style_id: str = "classic",
    color_theme: str = "mono",
    background_mode: str = "match",
    decor: PosterDecor | None = None,
    seed: int | None = None,
    text: PosterText | None = None,
    observer: ObserverContext | None = None,
    catalog: Catalog | None = None,
    **options,
) -> SceneConfig:
    """Build a SceneConfig with every cross-field rule applied.

    Neon themes force the matching background; plain styles drop frame and
    margin; grid is removed where the style does not allow it; sliders are
    clamped to their ranges. Without an explicit seed the seed is derived
    from the caption coordinates, date and time.

    Args:
        style_id: One of MAP_STYLES ids; unknown ids fall back to classic.
        color_theme: Key of COLOR_THEMES.
        background_mode: "match" or "white".
        decor: Frame/margin/outline toggles; the style default when None.
        seed: 32-bit decorative seed.
        text: Caption fields.
        observer: Observer for the real-catalog layer.
        catalog: Star catalog; the bundled one when None and an overlay is on.
        **options: Any other SceneConfig field.

    Returns:
        A fresh, immutable SceneConfig.
    """
    style = get_style(style_id)
    text = text or PosterText()
    if is_neon_theme(color_theme):
        background_mode = "match"
    if background_mode not in ("match", "white"):
        background_mode = "match"

    decor = effective_decor(style, decor if decor is not None else style.default_decor)
    if seed is None:
        seed = seed_from_key(text.coords, text.date, text.time)

    overlay = options.pop("overlay", "stars+const")
    if overlay not in OVERLAY_MODES:
        overlay = "stars+const"
    if catalog is None and overlay != "none":
        catalog = load_catalog()

    config = SceneConfig(
        style_id=style.id,
        color_theme=color_theme if color_theme in COLOR_THEMES else "mono",
        background_mode=background_mode,
        tokens=compute_render_tokens(color_theme, background_mode),
        decor=decor,
        seed=seed & 0xFFFFFFFF,
        text=text,
        overlay=overlay,
        observer=observer,
        catalog=catalog,
        **options,
    )
    return replace(
        config,
        show_grid=config.show_grid and style.grid_allowed,
        grid_opacity=clamp_grid_opacity(config.grid_opacity),
        map_zoom=clamp(config.map_zoom, ZOOM_MIN, ZOOM_MAX),
        constellation_size=clamp(
            config.constellation_size, CONSTELLATION_SIZE_MIN, CONSTELLATION_SIZE_MAX
        ),
        frame_pct=clamp(config.frame_pct, 0.0, FRAME_PCT_MAX),
    )
