"""SVG poster renderer.

Produces a standalone SVG document string from a Scene. The viewBox is
the scene size in pixels, so coordinates are written unchanged. Each
PushClip opens a <g clip-path> group that the matching PopClip closes.
"""

from __future__ import annotations

from pathlib import Path
from xml.sax.saxutils import escape, quoteattr

from nightposter.layout import get_font
from nightposter.scene import (
    CircleClip,
    ClipShape,
    Dot,
    FillRect,
    Label,
    Polyline,
    PopClip,
    PushClip,
    RectClip,
    Ring,
    Scene,
    StrokeRect,
)

_ANCHOR = {"left": "start", "center": "middle", "right": "end"}


def _points_attr(points: tuple[tuple[float, float], ...]) -> str:
    return " ".join(f"{x:.2f},{y:.2f}" for x, y in points)


def _opacity(alpha: float) -> str:
    return "" if alpha >= 1.0 else f' opacity="{alpha:.3f}"'


def _clip_element(clip_id: str, shape: ClipShape) -> str:
    if isinstance(shape, CircleClip):
        inner = f'<circle cx="{shape.cx:.2f}" cy="{shape.cy:.2f}" r="{shape.r:.2f}"/>'
    elif isinstance(shape, RectClip):
        inner = (
            f'<rect x="{shape.x:.2f}" y="{shape.y:.2f}"'
            f' width="{shape.w:.2f}" height="{shape.h:.2f}"/>'
        )
    else:
        inner = f'<polygon points="{_points_attr(shape.points)}"/>'
    return f'<clipPath id="{clip_id}">{inner}</clipPath>'


def _element(op) -> str:
    if isinstance(op, FillRect):
        return (
            f'<rect x="{op.x:.2f}" y="{op.y:.2f}"'
            f' width="{op.w:.2f}" height="{op.h:.2f}"'
            f' fill="{op.color}"{_opacity(op.alpha)}/>'
        )
    if isinstance(op, StrokeRect):
        return (
            f'<rect x="{op.x:.2f}" y="{op.y:.2f}"'
            f' width="{op.w:.2f}" height="{op.h:.2f}"'
            f' fill="none" stroke="{op.color}" stroke-width="{op.line_width:.2f}"'
            f"{_opacity(op.alpha)}/>"
        )
    if isinstance(op, Dot):
        return (
            f'<circle cx="{op.cx:.2f}" cy="{op.cy:.2f}" r="{op.r:.3f}"'
            f' fill="{op.color}"{_opacity(op.alpha)}/>'
        )
    if isinstance(op, Ring):
        return (
            f'<circle cx="{op.cx:.2f}" cy="{op.cy:.2f}" r="{op.r:.2f}" fill="none"'
            f' stroke="{op.color}" stroke-width="{op.line_width:.2f}"'
            f"{_opacity(op.alpha)}/>"
        )
    if isinstance(op, Polyline):
        tag = "polygon" if op.closed else "polyline"
        return (
            f'<{tag} points="{_points_attr(op.points)}" fill="none"'
            f' stroke="{op.color}" stroke-width="{op.line_width:.2f}"'
            f"{_opacity(op.alpha)}/>"
        )
    if isinstance(op, Label):
        family = quoteattr(get_font(op.font_key).css)
        return (
            f'<text x="{op.x:.2f}" y="{op.y:.2f}" font-size="{op.size:.2f}"'
            f' font-weight="{op.weight}" font-family={family}'
            f' fill="{op.color}" text-anchor="{_ANCHOR.get(op.align, "middle")}"'
            f' dominant-baseline="hanging"{_opacity(op.alpha)}>{escape(op.text)}</text>'
        )
    raise TypeError(f"Unsupported scene op: {type(op).__name__}")


def render_scene_svg(scene: Scene) -> str:
    """Return an SVG document for the scene.

    Args:
        scene: Composed scene in output pixels.

    Returns:
        SVG markup with width/height equal to the scene size.
    """
    defs: list[str] = []
    body: list[str] = []
    open_groups = 0

    for op in scene.ops:
        if isinstance(op, PushClip):
            clip_id = f"clip{len(defs)}"
            defs.append(_clip_element(clip_id, op.shape))
            body.append(f'<g clip-path="url(#{clip_id})">')
            open_groups += 1
        elif isinstance(op, PopClip):
            if open_groups:
                body.append("</g>")
                open_groups -= 1
        else:
            body.append(_element(op))
    body.extend("</g>" for _ in range(open_groups))

    w, h = scene.width, scene.height
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{w:g}" height="{h:g}"'
        f' viewBox="0 0 {w:g} {h:g}">'
        f'<rect width="100%" height="100%" fill="{scene.background}"/>'
        f"<defs>{''.join(defs)}</defs>"
        f"{''.join(body)}"
        f"</svg>"
    )


def save_scene_svg(scene: Scene, output_path: Path) -> Path:
    """Write the scene as an .svg file."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(render_scene_svg(scene), encoding="utf-8")
    return output_path
