"""Scene composer. Paints one poster into a Scene in logical 900×1200 space.

Layering: paper, frame or margin, map background (clipped), globe grid,
zoom group {synthetic starfield, synthetic constellations, real sky},
clip release, map outline, cardinal labels, captions. Output sizes are
produced by Scene.scaled(), never by re-composing.

Frame and margin are painted right after the paper instead of after the
outline: the frame is a full-poster fill that must sit under everything,
and the margin line never overlaps the map area.
"""

import logging

from nightposter.compute import compute_sky_data
from nightposter.decoration import (
    RIM_WIDTH,
    generate_constellations,
    generate_starfield,
    globe_grid,
    mulberry32,
)
from nightposter.i18n import cardinal_label
from nightposter.layout import layout_captions
from nightposter.models import SceneConfig
from nightposter.projection import (
    ALTITUDE_RINGS,
    CARDINAL_AZIMUTHS,
    altitude_ring_radius,
    project,
    star_opacity,
    star_radius,
)
from nightposter.scene import (
    Dot,
    FillRect,
    Label,
    Polyline,
    Ring,
    Scene,
    SceneBuilder,
    StrokeRect,
    scale_about,
    translate,
)
from nightposter.styles import (
    OUTLINE_THICKNESS,
    POSTER_H,
    POSTER_W,
    MapGeometry,
    frame_inset_px,
    get_style,
)

logger = logging.getLogger(__name__)

MARGIN_GAP = 50
MARGIN_THICKNESS = 4.0
MAP_TOP_GAP = 70

REAL_LINE_ALPHA = 0.18
REAL_LINE_WIDTH = 1.2
RING_ALPHA = REAL_LINE_ALPHA * 0.5
RING_LINE_WIDTH = 1.0
CARDINAL_SIZE = 12
CARDINAL_ALPHA = 0.35
CARDINAL_LIFT = 8


class RenderSetupError(Exception):
    """The render request cannot produce a poster (missing inputs, bad size)."""


def _check_setup(config: SceneConfig, width: float, height: float) -> None:
    if width <= 0 or height <= 0:
        raise RenderSetupError(f"Output size must be positive, got {width}x{height}")
    if config.overlay == "none":
        return
    if config.observer is None:
        raise RenderSetupError(f"Overlay {config.overlay!r} requires an observer")
    if config.catalog is None or not config.catalog.stars:
        raise RenderSetupError(
            f"Overlay {config.overlay!r} requires a non-empty catalog"
        )


def _paint_poster_decor(builder: SceneBuilder, config: SceneConfig) -> float:
    """Paper, frame and margin. Returns the inner top inset."""
    tokens = config.tokens
    builder.add(FillRect(0, 0, POSTER_W, POSTER_H, tokens.background_color))

    inner = 0.0
    if config.decor.frame:
        inner = frame_inset_px(config.frame_pct)
        builder.add(FillRect(0, 0, POSTER_W, POSTER_H, tokens.ink_color))
        builder.add(
            FillRect(
                inner,
                inner,
                POSTER_W - 2 * inner,
                POSTER_H - 2 * inner,
                tokens.background_color,
            )
        )
    elif config.decor.margin:
        half = MARGIN_THICKNESS / 2
        builder.add(
            StrokeRect(
                MARGIN_GAP + half,
                MARGIN_GAP + half,
                POSTER_W - 2 * MARGIN_GAP - MARGIN_THICKNESS,
                POSTER_H - 2 * MARGIN_GAP - MARGIN_THICKNESS,
                tokens.ink_color,
                MARGIN_THICKNESS,
            )
        )
    return inner


def _paint_grid(builder: SceneBuilder, config: SceneConfig, g: MapGeometry) -> None:
    color = config.tokens.grid_line_color
    grid = globe_grid(g.cx, g.cy, g.sky_radius, config.grid_opacity)
    for line in grid.lines:
        builder.add(Polyline(line.points, color, line.line_width, line.alpha))
    builder.add(Ring(g.cx, g.cy, g.sky_radius, color, RIM_WIDTH, grid.rim_alpha))


def _paint_synthetic(
    builder: SceneBuilder, config: SceneConfig, g: MapGeometry
) -> None:
    """Seeded starfield, then constellations from the same generator."""
    tokens = config.tokens
    rand = mulberry32(config.seed)

    for star in generate_starfield(rand, g.width, g.height):
        if star.r > 0:
            builder.add(Dot(star.x, star.y, star.r, tokens.star_color, star.alpha))

    if not config.show_constellations:
        return
    cs = config.constellation_size
    line_width = 0.9 + cs * 0.55
    node_r = 1.6 + cs * 0.35
    for pts in generate_constellations(rand, g.width, g.height):
        builder.add(Polyline(pts, tokens.constellation_line_color, line_width))
        for x, y in pts:
            builder.add(Dot(x, y, node_r, tokens.constellation_node_color))


def _paint_real_sky(
    builder: SceneBuilder, config: SceneConfig, g: MapGeometry
) -> None:
    """Catalog stars and figures for the observer, projected onto the sky disc."""
    tokens = config.tokens
    cx, cy, radius = g.cx, g.cy, g.sky_radius

    if config.show_altitude_rings:
        for alt in ALTITUDE_RINGS:
            builder.add(
                Ring(
                    cx,
                    cy,
                    altitude_ring_radius(alt, radius),
                    tokens.constellation_line_color,
                    RING_LINE_WIDTH,
                    RING_ALPHA,
                )
            )

    sky = compute_sky_data(config.observer, config.catalog)

    if config.overlay in ("const", "stars+const"):
        for _, a, b in sky.segments:
            pa = project(a.position.az_deg, a.position.alt_deg, cx, cy, radius)
            pb = project(b.position.az_deg, b.position.alt_deg, cx, cy, radius)
            builder.add(
                Polyline(
                    ((pa.x, pa.y), (pb.x, pb.y)),
                    tokens.constellation_line_color,
                    REAL_LINE_WIDTH,
                    REAL_LINE_ALPHA,
                )
            )

    if config.overlay in ("stars", "stars+const"):
        for vs in sky.stars:
            p = project(vs.position.az_deg, vs.position.alt_deg, cx, cy, radius)
            builder.add(
                Dot(
                    p.x,
                    p.y,
                    star_radius(vs.star.magnitude),
                    tokens.star_color,
                    star_opacity(vs.star.magnitude),
                )
            )

    logger.debug(
        "real sky: %d stars, %d segments (overlay=%s)",
        len(sky.stars),
        len(sky.segments),
        config.overlay,
    )


def _paint_cardinals(
    builder: SceneBuilder, config: SceneConfig, g: MapGeometry
) -> None:
    """N/E/S/W just above the horizon points of the unzoomed sky disc.

    Painted after the clip is released so the glyphs straddling the rim are
    drawn whole by every backend. Zoom scales about the disc center and keeps
    directions, so the labels stay on their azimuths.
    """
    for code, az in CARDINAL_AZIMUTHS:
        p = project(az, 0.0, g.cx, g.cy, g.sky_radius)
        builder.add(
            Label(
                p.x,
                p.y - CARDINAL_LIFT,
                cardinal_label(code, config.lang),
                CARDINAL_SIZE,
                700,
                config.text.font_key,
                config.tokens.star_color,
                CARDINAL_ALPHA,
            )
        )


def compose_poster(
    config: SceneConfig, width: float = POSTER_W, height: float = POSTER_H
) -> Scene:
    """Compose the poster and scale it to the requested output size.

    Args:
        config: Fully resolved render request (see styles.make_scene_config).
        width: Output width in pixels.
        height: Output height in pixels.

    Returns:
        Scene in output pixels.

    Raises:
        RenderSetupError: If the size is not positive, or a real-sky overlay
            is requested without an observer or with an empty catalog.
    """
    _check_setup(config, width, height)
    style = get_style(config.style_id)
    shape = style.shape

    builder = SceneBuilder(POSTER_W, POSTER_H, config.tokens.background_color)
    inner = _paint_poster_decor(builder, config)

    map_w, map_h = style.map_size(inner)
    map_x = (POSTER_W - map_w) / 2
    map_y = inner + MAP_TOP_GAP
    inset = 0
    if config.decor.frame or config.decor.margin:
        inset = round(min(map_w, map_h) * config.map_inset_pct)
    g = shape.geometry(map_w, map_h, inset)

    with builder.transform(translate(map_x, map_y)):
        with builder.clip(shape.clip(g)):
            builder.add(
                FillRect(0, 0, map_w, map_h, config.tokens.map_background_color)
            )
            if config.show_grid and shape.grid_zoom_exempt:
                _paint_grid(builder, config, g)
            with builder.transform(scale_about(g.cx, g.cy, config.map_zoom)):
                if config.show_grid and not shape.grid_zoom_exempt:
                    _paint_grid(builder, config, g)
                _paint_synthetic(builder, config, g)
                if config.overlay != "none":
                    _paint_real_sky(builder, config, g)
        if config.decor.outline:
            builder.add(
                shape.outline(g, config.tokens.outline_color, OUTLINE_THICKNESS)
            )
        if config.overlay != "none" and config.show_cardinals:
            _paint_cardinals(builder, config, g)

    for label in layout_captions(config):
        builder.add(label)

    scene = builder.build()
    logger.info(
        "composed %s poster (%s/%s): %d ops at %gx%g",
        style.id,
        config.color_theme,
        config.background_mode,
        len(scene.ops),
        width,
        height,
    )
    if (width, height) == (POSTER_W, POSTER_H):
        return scene
    return scene.scaled(width, height)
