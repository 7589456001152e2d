"""Matplotlib renderer for PNG, JPEG and PDF output.

The axes span the whole figure with data units equal to output pixels
(y pointing down), so scene coordinates are used unchanged. Font sizes
and line widths are converted from pixels to points at the figure dpi.
"""

import logging
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
from matplotlib.artist import Artist  # noqa: E402
from matplotlib.figure import Figure  # noqa: E402
from matplotlib.lines import Line2D  # noqa: E402
from matplotlib.patches import Circle, Patch, Polygon, Rectangle  # noqa: E402

from nightposter.layout import get_font  # noqa: E402
from nightposter.scene import (  # noqa: E402
    CircleClip,
    ClipShape,
    Dot,
    FillRect,
    Label,
    PolygonClip,
    Polyline,
    PopClip,
    PushClip,
    RectClip,
    Ring,
    Scene,
    StrokeRect,
)

logger = logging.getLogger(__name__)

JPEG_QUALITY = 95

# Agg truncates the canvas size to whole pixels
_RASTER_PAD_PX = 1e-3


def _clip_patch(shape: ClipShape, ax) -> Patch:
    if isinstance(shape, CircleClip):
        return Circle((shape.cx, shape.cy), shape.r, transform=ax.transData)
    if isinstance(shape, RectClip):
        return Rectangle((shape.x, shape.y), shape.w, shape.h, transform=ax.transData)
    return Polygon(shape.points, closed=True, transform=ax.transData)


def _artist_for(op, px_to_pt: float) -> Artist | None:
    if isinstance(op, FillRect):
        return Rectangle(
            (op.x, op.y), op.w, op.h, facecolor=op.color, alpha=op.alpha, linewidth=0
        )
    if isinstance(op, StrokeRect):
        return Rectangle(
            (op.x, op.y),
            op.w,
            op.h,
            fill=False,
            edgecolor=op.color,
            alpha=op.alpha,
            linewidth=op.line_width * px_to_pt,
            joinstyle="miter",
        )
    if isinstance(op, Dot):
        return Circle(
            (op.cx, op.cy), op.r, facecolor=op.color, alpha=op.alpha, linewidth=0
        )
    if isinstance(op, Ring):
        return Circle(
            (op.cx, op.cy),
            op.r,
            fill=False,
            edgecolor=op.color,
            alpha=op.alpha,
            linewidth=op.line_width * px_to_pt,
        )
    if isinstance(op, Polyline):
        if op.closed:
            return Polygon(
                op.points,
                closed=True,
                fill=False,
                edgecolor=op.color,
                alpha=op.alpha,
                linewidth=op.line_width * px_to_pt,
            )
        xs = [p[0] for p in op.points]
        ys = [p[1] for p in op.points]
        return Line2D(
            xs, ys, color=op.color, alpha=op.alpha, linewidth=op.line_width * px_to_pt
        )
    return None


def render_scene_figure(scene: Scene, dpi: int = 100, raster: bool = True) -> Figure:
    """Render a Scene onto a matplotlib Figure sized to the scene in pixels.

    Args:
        scene: Composed scene in output pixels.
        dpi: Figure resolution; one scene pixel is one output pixel.
        raster: Pad the figure by a fraction of a pixel so Agg keeps the
            exact pixel count. Leave False for vector output.

    Returns:
        matplotlib Figure object. The caller closes it.
    """
    pad = _RASTER_PAD_PX if raster else 0.0
    fig = plt.figure(
        figsize=((scene.width + pad) / dpi, (scene.height + pad) / dpi), dpi=dpi
    )
    fig.patch.set_facecolor(scene.background)
    ax = fig.add_axes((0, 0, 1, 1))
    ax.set_xlim(0, scene.width)
    ax.set_ylim(scene.height, 0)
    ax.axis("off")

    px_to_pt = 72.0 / dpi
    clip: Patch | None = None
    for z, op in enumerate(scene.ops):
        if isinstance(op, PushClip):
            clip = _clip_patch(op.shape, ax)
            continue
        if isinstance(op, PopClip):
            clip = None
            continue

        if isinstance(op, Label):
            font = get_font(op.font_key)
            artist = ax.text(
                op.x,
                op.y,
                op.text,
                fontsize=op.size * px_to_pt,
                fontweight=op.weight,
                fontfamily=list(font.families),
                color=op.color,
                alpha=op.alpha,
                ha=op.align,
                va="top",
                zorder=z,
            )
        else:
            artist = _artist_for(op, px_to_pt)
            if artist is None:
                logger.warning("Skipping unsupported op %s", type(op).__name__)
                continue
            artist.set_zorder(z)
            if isinstance(artist, Line2D):
                ax.add_line(artist)
            else:
                ax.add_patch(artist)
        if clip is not None:
            # ax.text defaults to clip_on=False; a clip path alone is ignored
            artist.set_clip_on(True)
            artist.set_clip_path(clip)

    return fig


def save_scene(
    scene: Scene,
    output_path: Path,
    fmt: str = "png",
    dpi: int = 100,
    quality: int = JPEG_QUALITY,
) -> Path:
    """Encode a Scene as PNG, JPEG or PDF.

    Args:
        scene: Composed scene in output pixels.
        output_path: Destination file.
        fmt: "png", "jpg" or "pdf".
        dpi: Resolution; for PDF the page is (pixels / dpi) inches.
        quality: JPEG quality.

    Returns:
        Path to the saved file.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig = render_scene_figure(scene, dpi=dpi, raster=fmt != "pdf")
    try:
        kwargs = {"pil_kwargs": {"quality": quality}} if fmt == "jpg" else {}
        fig.savefig(
            output_path, format=fmt, dpi=dpi, facecolor=scene.background, **kwargs
        )
    finally:
        plt.close(fig)
    return output_path
