import re

import pytest
from PIL import Image

from nightposter.compose import compose_poster
from nightposter.export import (
    EXPORT_SIZES,
    ExportError,
    cm_to_px,
    encode_scene,
    export_poster,
    output_pixels,
    pdf_page_points,
)
from nightposter.models import PosterDecor
from nightposter.styles import make_scene_config


@pytest.fixture(scope="module")
def config():
    return make_scene_config(
        overlay="none", show_grid=True, decor=PosterDecor(margin=True, outline=True)
    )


@pytest.mark.parametrize(
    "key,expected",
    [
        ("digital_900x1200", (900, 1200)),
        ("45x60cm_300dpi", (5315, 7087)),
        ("60x80cm_300dpi", (7087, 9449)),
        ("90x120cm_300dpi", (10630, 14173)),
    ],
)
def test_output_pixels(key, expected):
    assert output_pixels(EXPORT_SIZES[key]) == expected


def test_cm_to_px_follows_dpi():
    assert cm_to_px(2.54, 300) == 300
    assert cm_to_px(45, 30) == 531
    assert cm_to_px(60, 30) == 709


def test_pdf_page_points():
    assert pdf_page_points(900, 1200, 300) == pytest.approx((216.0, 288.0))
    w, h = pdf_page_points(*output_pixels(EXPORT_SIZES["45x60cm_300dpi"]), 300)
    assert w == pytest.approx(45 / 2.54 * 72, abs=0.2)
    assert h == pytest.approx(60 / 2.54 * 72, abs=0.2)


def test_png_digital_size(config, tmp_path):
    path = export_poster(config, "digital_900x1200", "png", tmp_path / "poster.png")
    with Image.open(path) as img:
        assert img.size == (900, 1200)
        assert img.format == "PNG"


def test_physical_size_keeps_exact_pixels(config, tmp_path):
    out = tmp_path / "poster.png"
    path = export_poster(config, "45x60cm_300dpi", "png", out, dpi=30)
    with Image.open(path) as img:
        assert img.size == (531, 709)


def test_jpeg_export(config, tmp_path):
    path = export_poster(config, "digital_900x1200", "jpg", tmp_path / "poster.jpg")
    with Image.open(path) as img:
        assert img.format == "JPEG"
        assert img.size == (900, 1200)


def test_white_background_pixel(tmp_path):
    cfg = make_scene_config(
        overlay="none", style_id="poster", color_theme="warm", background_mode="white",
        show_constellations=False,
    )
    path = export_poster(cfg, "digital_900x1200", "png", tmp_path / "poster.png")
    with Image.open(path) as img:
        assert img.convert("RGB").getpixel((3, 3)) == (255, 255, 255)


def test_pdf_page_size(config, tmp_path):
    path = export_poster(config, "digital_900x1200", "pdf", tmp_path / "poster.pdf")
    data = path.read_bytes()
    assert data.startswith(b"%PDF")
    m = re.search(rb"/MediaBox\s*\[\s*0\s+0\s+([\d.]+)\s+([\d.]+)\s*\]", data)
    assert m is not None
    assert float(m.group(1)) == pytest.approx(216.0, abs=0.01)
    assert float(m.group(2)) == pytest.approx(288.0, abs=0.01)


def test_svg_export(config, tmp_path):
    path = export_poster(config, "digital_900x1200", "svg", tmp_path / "poster.svg")
    text = path.read_text(encoding="utf-8")
    assert text.startswith("<svg")
    assert 'viewBox="0 0 900 1200"' in text


def test_unknown_size_and_format(config, tmp_path):
    with pytest.raises(ExportError):
        export_poster(config, "a4", "png", tmp_path / "x.png")
    with pytest.raises(ExportError):
        export_poster(config, "digital_900x1200", "gif", tmp_path / "x.gif")
    with pytest.raises(ExportError):
        export_poster(config, "digital_900x1200", "png", tmp_path / "x.png", dpi=0)


def test_encoder_failure_is_wrapped_and_scene_reusable(config, tmp_path):
    scene = compose_poster(config)
    target = tmp_path / "taken"
    target.mkdir()
    with pytest.raises(ExportError) as excinfo:
        encode_scene(scene, "png", target)
    assert excinfo.value.__cause__ is not None

    path = encode_scene(scene, "png", tmp_path / "retry.png")
    with Image.open(path) as img:
        assert img.size == (900, 1200)
