"""Plotly interactive poster preview.

Draws a Scene into a Plotly figure with the scene's pixel coordinates as
data units (y reversed). Plotly has no clip paths, so dots and polylines
inside a clip are filtered against the clip outline, and a clipped
background fill becomes a filled outline shape. Supports wheel zoom and
drag panning to inspect details.
"""

from collections import defaultdict
from pathlib import Path

import numpy as np
import plotly.graph_objects as go
from matplotlib.path import Path as MplPath

from nightposter.layout import get_font
from nightposter.scene import (
    ClipShape,
    Dot,
    FillRect,
    Label,
    Polyline,
    PopClip,
    PushClip,
    Ring,
    Scene,
    StrokeRect,
)

_PREVIEW_WIDTH = 450
_PLOTLY_CONFIG = {"scrollZoom": True, "displayModeBar": False}


def _svg_path(points) -> str:
    head, *rest = points
    segments = " ".join(f"L {x:.2f},{y:.2f}" for x, y in rest)
    return f"M {head[0]:.2f},{head[1]:.2f} {segments} Z"


def _rect_points(x: float, y: float, w: float, h: float):
    return ((x, y), (x + w, y), (x + w, y + h), (x, y + h))


def _clip_path(shape: ClipShape) -> MplPath:
    return MplPath(np.asarray(shape.outline(), dtype=float), closed=True)


def _inside_runs(points: np.ndarray, clip: MplPath | None) -> list[np.ndarray]:
    """Split a polyline into the runs of consecutive points inside the clip."""
    if clip is None:
        return [points]
    inside = clip.contains_points(points)
    runs: list[np.ndarray] = []
    start = None
    for i, ok in enumerate(inside):
        if ok and start is None:
            start = i
        elif not ok and start is not None:
            runs.append(points[start:i])
            start = None
    if start is not None:
        runs.append(points[start:])
    return [r for r in runs if len(r) >= 2]


def render_scene_preview(scene: Scene, width: int = _PREVIEW_WIDTH) -> go.Figure:
    """Render a Scene as a Plotly figure for interactive preview.

    Args:
        scene: Composed scene (any output size).
        width: Display width in screen pixels; height keeps the aspect.

    Returns:
        Plotly Figure object.
    """
    k = width / scene.width
    shapes: list[dict] = []
    annotations: list[dict] = []
    # (color, alpha) -> x, y, marker sizes
    dots: dict[tuple[str, float], tuple[list, list, list]] = defaultdict(
        lambda: ([], [], [])
    )
    # (color, width, alpha) -> x, y with None separators
    lines: dict[tuple[str, float, float], tuple[list, list]] = defaultdict(
        lambda: ([], [])
    )

    clip: MplPath | None = None
    clip_shape: ClipShape | None = None
    for op in scene.ops:
        if isinstance(op, PushClip):
            clip_shape = op.shape
            clip = _clip_path(op.shape)
        elif isinstance(op, PopClip):
            clip, clip_shape = None, None
        elif isinstance(op, FillRect):
            if clip_shape is not None:
                path = _svg_path(clip_shape.outline())
            else:
                path = _svg_path(_rect_points(op.x, op.y, op.w, op.h))
            shapes.append(
                dict(
                    type="path",
                    path=path,
                    fillcolor=op.color,
                    opacity=op.alpha,
                    line=dict(width=0),
                    layer="below",
                )
            )
        elif isinstance(op, StrokeRect):
            shapes.append(
                dict(
                    type="rect",
                    x0=op.x,
                    y0=op.y,
                    x1=op.x + op.w,
                    y1=op.y + op.h,
                    line=dict(color=op.color, width=op.line_width * k),
                    opacity=op.alpha,
                    layer="below",
                )
            )
        elif isinstance(op, Ring):
            shapes.append(
                dict(
                    type="circle",
                    x0=op.cx - op.r,
                    y0=op.cy - op.r,
                    x1=op.cx + op.r,
                    y1=op.cy + op.r,
                    line=dict(color=op.color, width=op.line_width * k),
                    opacity=op.alpha,
                    layer="above",
                )
            )
        elif isinstance(op, Dot):
            if clip is not None and not clip.contains_point((op.cx, op.cy)):
                continue
            xs, ys, sizes = dots[(op.color, round(op.alpha, 2))]
            xs.append(op.cx)
            ys.append(op.cy)
            sizes.append(max(1.0, 2 * op.r * k))
        elif isinstance(op, Polyline):
            closing = (op.points[0],) if op.closed else ()
            pts = np.asarray(op.points + closing, dtype=float)
            key = (op.color, round(op.line_width * k, 2), round(op.alpha, 2))
            lx, ly = lines[key]
            for run in _inside_runs(pts, clip):
                lx.extend(run[:, 0].tolist() + [None])
                ly.extend(run[:, 1].tolist() + [None])
        elif isinstance(op, Label):
            annotations.append(
                dict(
                    x=op.x,
                    y=op.y,
                    text=op.text,
                    showarrow=False,
                    xanchor=op.align,
                    yanchor="top",
                    font=dict(
                        size=op.size * k,
                        color=op.color,
                        family=get_font(op.font_key).css,
                    ),
                    opacity=op.alpha,
                )
            )

    traces = [
        go.Scatter(
            x=lx,
            y=ly,
            mode="lines",
            line=dict(color=color, width=lw),
            opacity=alpha,
            hoverinfo="skip",
        )
        for (color, lw, alpha), (lx, ly) in lines.items()
    ]
    traces += [
        go.Scatter(
            x=xs,
            y=ys,
            mode="markers",
            marker=dict(size=sizes, color=color, line=dict(width=0)),
            opacity=alpha,
            hoverinfo="skip",
        )
        for (color, alpha), (xs, ys, sizes) in dots.items()
    ]

    fig = go.Figure(data=traces)
    fig.update_layout(
        paper_bgcolor=scene.background,
        plot_bgcolor=scene.background,
        showlegend=False,
        margin=dict(l=0, r=0, t=0, b=0),
        width=width,
        height=round(scene.height * k),
        dragmode="pan",
        xaxis=dict(visible=False, range=[0, scene.width], autorange=False),
        yaxis=dict(
            visible=False,
            range=[scene.height, 0],
            autorange=False,
            scaleanchor="x",
        ),
        shapes=shapes,
        annotations=annotations,
    )
    fig._config = _PLOTLY_CONFIG  # type: ignore[attr-defined]
    return fig


def save_scene_preview(
    scene: Scene, output_path: Path, width: int = _PREVIEW_WIDTH
) -> Path:
    """Write the interactive preview as a standalone .html file."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig = render_scene_preview(scene, width=width)
    fig.write_html(output_path, config=_PLOTLY_CONFIG, include_plotlyjs="cdn")
    return output_path
