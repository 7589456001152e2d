import math
import xml.etree.ElementTree as ET

import matplotlib.pyplot as plt
import plotly.graph_objects as go
import pytest

from nightposter.compose import compose_poster
from nightposter.compute import resolve_observer
from nightposter.models import PosterDecor, PosterText
from nightposter.renderers.plotly_2d import render_scene_preview
from nightposter.renderers.static import render_scene_figure
from nightposter.renderers.svg_2d import render_scene_svg
from nightposter.scene import (
    CircleClip,
    Dot,
    FillRect,
    Label,
    Scene,
    SceneBuilder,
    scale_about,
    translate,
)
from nightposter.styles import make_scene_config

SVG_NS = "{http://www.w3.org/2000/svg}"


@pytest.fixture(scope="module")
def scene():
    text = PosterText(title="Stars <& friends>")
    decor = PosterDecor(margin=True, outline=True)
    config = make_scene_config(overlay="none", text=text, decor=decor, seed=7)
    return compose_poster(config)


def test_builder_composes_transforms():
    b = SceneBuilder(100, 100, "#000000")
    with b.transform(translate(10, 20)):
        with b.transform(scale_about(5, 5, 2.0)):
            b.add(Dot(6, 5, 1, "#FFFFFF"))
        b.add(Dot(0, 0, 1, "#FFFFFF"))
    b.add(Dot(0, 0, 1, "#FFFFFF"))
    ops = b.build().ops
    assert (ops[0].cx, ops[0].cy, ops[0].r) == (17, 25, 2)
    assert (ops[1].cx, ops[1].cy) == (10, 20)
    assert (ops[2].cx, ops[2].cy) == (0, 0)


def test_scaled_scene_is_anisotropic_safe():
    ops = (
        FillRect(1, 1, 2, 2, "#FFFFFF"),
        Label(5, 5, "x", 10, 400, "system", "#FFFFFF"),
    )
    s = Scene(10, 10, "#000000", ops)
    big = s.scaled(20, 40)
    assert big.ops[0] == FillRect(2, 4, 4, 8, "#FFFFFF")
    assert big.ops[1].size == 40


def test_svg_is_well_formed(scene):
    root = ET.fromstring(render_scene_svg(scene))
    assert root.tag == f"{SVG_NS}svg"
    assert root.get("viewBox") == "0 0 900 1200"
    assert len(root.findall(f".//{SVG_NS}clipPath")) == 1
    clipped = root.findall(f"{SVG_NS}g")
    assert len(clipped) == 1 and clipped[0].get("clip-path") == "url(#clip0)"
    texts = [t.text for t in root.iter(f"{SVG_NS}text")]
    assert "Stars <& friends>" in texts


def test_svg_element_counts_match_scene(scene):
    root = ET.fromstring(render_scene_svg(scene))
    dots = sum(1 for op in scene.ops if isinstance(op, Dot))
    circles = root.iter(f"{SVG_NS}circle")
    filled = [c for c in circles if c.get("fill") not in (None, "none")]
    assert len(filled) == dots


def test_svg_scales_with_scene(scene):
    root = ET.fromstring(render_scene_svg(scene.scaled(1800, 2400)))
    assert root.get("width") == "1800"
    assert root.get("height") == "2400"


def test_matplotlib_figure_size(scene):
    fig = render_scene_figure(scene, dpi=100)
    try:
        w, h = fig.get_size_inches() * fig.dpi
        assert round(w) == 900 and round(h) == 1200
        ax = fig.axes[0]
        assert ax.get_xlim() == (0, 900)
        assert ax.get_ylim() == (1200, 0)
        assert len(ax.texts) == sum(1 for op in scene.ops if isinstance(op, Label))
        clipped = [p for p in ax.patches if p.get_clip_path() is not None]
        assert clipped
    finally:
        plt.close(fig)


def test_plotly_preview(scene):
    fig = render_scene_preview(scene, width=450)
    assert isinstance(fig, go.Figure)
    assert fig.layout.width == 450
    assert fig.layout.height == 600
    labels = sum(1 for op in scene.ops if isinstance(op, Label))
    assert len(fig.layout.annotations) == labels
    # Markers are filtered to the circular map clip
    clip = next(op.shape for op in scene.ops if type(op).__name__ == "PushClip")
    for trace in fig.data:
        if trace.mode == "markers":
            for x, y in zip(trace.x, trace.y):
                assert math.hypot(x - clip.cx, y - clip.cy) <= clip.r + 1e-9


def _clipped_label_scene():
    b = SceneBuilder(100, 100, "#000000")
    with b.clip(CircleClip(50, 50, 20)):
        b.add(Label(50, 25, "inside", 12, 700, "system", "#FFFFFF"))
    b.add(Label(50, 80, "outside", 12, 700, "system", "#FFFFFF"))
    return b.build()


def test_text_clipping_agrees_between_svg_and_matplotlib():
    scene = _clipped_label_scene()

    root = ET.fromstring(render_scene_svg(scene))
    group = root.find(f"{SVG_NS}g")
    svg_clipped = {t.text for t in group.iter(f"{SVG_NS}text")}

    fig = render_scene_figure(scene, dpi=100)
    try:
        mpl_clipped = {
            t.get_text()
            for t in fig.axes[0].texts
            if t.get_clip_on() and t.get_clip_path() is not None
        }
    finally:
        plt.close(fig)

    assert svg_clipped == mpl_clipped == {"inside"}


def test_cardinal_labels_are_never_clipped():
    observer = resolve_observer(19.4326, -99.1332, "1995-12-25", "22:00")
    config = make_scene_config(overlay="stars", observer=observer, show_cardinals=True)
    scene = compose_poster(config)

    root = ET.fromstring(render_scene_svg(scene))
    group = root.find(f"{SVG_NS}g")
    assert not {t.text for t in group.iter(f"{SVG_NS}text")} & {"N", "E", "S", "W"}

    fig = render_scene_figure(scene, dpi=100)
    try:
        texts = fig.axes[0].texts
        cardinals = [t for t in texts if t.get_text() in ("N", "E", "S", "W")]
        assert len(cardinals) == 4
        assert all(t.get_clip_path() is None for t in cardinals)
    finally:
        plt.close(fig)
