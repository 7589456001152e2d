"""Export adapter: physical sizes, DPI conversion and encoder hand-off."""

import logging
from dataclasses import dataclass
from pathlib import Path

from nightposter.compose import compose_poster
from nightposter.models import SceneConfig
from nightposter.renderers.static import JPEG_QUALITY, save_scene
from nightposter.renderers.svg_2d import save_scene_svg
from nightposter.scene import Scene

logger = logging.getLogger(__name__)

DEFAULT_DPI = 300
FORMATS = ("png", "jpg", "pdf", "svg")


class ExportError(Exception):
    """Encoding or writing the poster failed."""


@dataclass(frozen=True)
class ExportSize:
    key: str
    unit: str  # "px" | "cm"
    width: float
    height: float


EXPORT_SIZES: dict[str, ExportSize] = {
    s.key: s
    for s in (
        ExportSize("digital_900x1200", "px", 900, 1200),
        ExportSize("45x60cm_300dpi", "cm", 45, 60),
        ExportSize("60x80cm_300dpi", "cm", 60, 80),
        ExportSize("90x120cm_300dpi", "cm", 90, 120),
    )
}


def cm_to_px(cm: float, dpi: int = DEFAULT_DPI) -> int:
    return round(cm / 2.54 * dpi)


def output_pixels(size: ExportSize, dpi: int = DEFAULT_DPI) -> tuple[int, int]:
    """Output (width, height) in pixels for an export size."""
    if size.unit == "cm":
        return (cm_to_px(size.width, dpi), cm_to_px(size.height, dpi))
    return (round(size.width), round(size.height))


def pdf_page_points(
    width_px: int, height_px: int, dpi: int = DEFAULT_DPI
) -> tuple[float, float]:
    """PDF page size in points for a full-bleed image of the given pixels."""
    return (width_px / dpi * 72, height_px / dpi * 72)


def encode_scene(
    scene: Scene, fmt: str, output_path: Path, dpi: int = DEFAULT_DPI
) -> Path:
    """Hand a composed scene to the matching encoder.

    Raises:
        ExportError: On an unknown format or any encoder/IO failure. The
            scene is left untouched and can be encoded again.
    """
    if fmt not in FORMATS:
        raise ExportError(f"Unsupported format: {fmt!r}")
    try:
        if fmt == "svg":
            return save_scene_svg(scene, output_path)
        return save_scene(scene, output_path, fmt=fmt, dpi=dpi, quality=JPEG_QUALITY)
    except Exception as e:
        raise ExportError(f"Failed to write {fmt} to {output_path}: {e}") from e


def export_poster(
    config: SceneConfig,
    size_key: str,
    fmt: str,
    output_path: Path,
    dpi: int = DEFAULT_DPI,
) -> Path:
    """Compose the poster at the export size and encode it.

    Args:
        config: Fully resolved render request.
        size_key: Key of EXPORT_SIZES.
        fmt: One of FORMATS.
        output_path: Destination file.
        dpi: Resolution for physical (cm) sizes and the PDF page.

    Returns:
        Path to the written file.

    Raises:
        ExportError: On an unknown size or format, or an encoder failure.
        RenderSetupError: If the poster cannot be composed.
    """
    size = EXPORT_SIZES.get(size_key)
    if size is None:
        raise ExportError(f"Unknown export size: {size_key!r}")
    if dpi <= 0:
        raise ExportError(f"DPI must be positive, got {dpi}")

    width, height = output_pixels(size, dpi)
    scene = compose_poster(config, width, height)
    path = encode_scene(scene, fmt, output_path, dpi)
    logger.info(
        "exported %s %s (%dx%d px, %d dpi) -> %s",
        size_key,
        fmt,
        width,
        height,
        dpi,
        path,
    )
    return path
