"""Caption layout with font presets and auto-shrinking text lines.

Text is placed analytically in the logical 900×1200 space and measured
with matplotlib's TextPath, so the layout never depends on a browser.
"""

from dataclasses import dataclass
from functools import lru_cache

from matplotlib.font_manager import FontProperties
from matplotlib.textpath import TextPath

from nightposter.models import SceneConfig
from nightposter.scene import Label
from nightposter.styles import POSTER_H, POSTER_W, frame_inset_px, get_style

TITLE_MAX = 120
SUBTITLE_MAX = 240

TEXT_PAD_X = 110
_BOTTOM_OFFSET = 100
_BOTTOM_OFFSET_POSTER = 60
_MARGIN_CLEARANCE = 50 + 4 + 18
_SUBTITLE_GAP = 10


@dataclass(frozen=True)
class FontPreset:
    families: tuple[str, ...]  # matplotlib font families, first match wins
    css: str  # CSS font-family for the SVG backend


FONT_PRESETS: dict[str, FontPreset] = {
    "system": FontPreset(
        ("sans-serif",), "system-ui, -apple-system, Segoe UI, Roboto, Arial"
    ),
    "inter": FontPreset(("sans-serif",), "Inter, system-ui, Arial"),
    "georgia": FontPreset(("serif",), "Georgia, 'Times New Roman', serif"),
    "times": FontPreset(("serif",), "'Times New Roman', Times, serif"),
    "mono": FontPreset(("monospace",), "ui-monospace, Menlo, Consolas, monospace"),
    "rounded": FontPreset(
        ("sans-serif",), "ui-rounded, 'SF Pro Rounded', 'Nunito', system-ui, Arial"
    ),
}


def get_font(font_key: str) -> FontPreset:
    return FONT_PRESETS.get(font_key, FONT_PRESETS["system"])


def font_properties(font_key: str, weight: int) -> FontProperties:
    return FontProperties(family=list(get_font(font_key).families), weight=weight)


@lru_cache(maxsize=2048)
def measure_text_width(
    text: str, size: float, weight: int, font_key: str = "system"
) -> float:
    """Advance width of a single line in pixels at the given font size."""
    if not text.strip():
        return 0.0
    # TextPath treats paired dollar signs as mathtext
    escaped = text.replace("$", r"\$")
    prop = font_properties(font_key, weight)
    path = TextPath((0, 0), escaped, size=size, prop=prop)
    return float(path.get_extents().width)


def fit_font_to_width(
    text: str,
    start: float,
    minimum: float,
    weight: int,
    max_width: float,
    font_key: str = "system",
) -> float:
    """Shrink the font by 1px steps until the text fits or the floor is reached.

    Args:
        text: Line to fit.
        start: Preferred font size.
        minimum: Floor; the result is never smaller.
        weight: Numeric font weight.
        max_width: Available width in pixels.
        font_key: Key of FONT_PRESETS.

    Returns:
        The chosen font size.
    """
    size = start
    while size > minimum:
        if measure_text_width(text, round(size), weight, font_key) <= max_width:
            break
        size -= 1
    return max(minimum, size)


def format_datetime(date: str, time: str) -> str:
    """Caption date/time as "DD.MM.YYYY HH:MM". Either part may be empty."""
    d = date.strip()
    parts = d.split("-")
    if len(parts) == 3 and len(parts[0]) == 4 and all(p.isdigit() for p in parts):
        d = f"{parts[2]}.{parts[1]}.{parts[0]}"
    t = time.strip()
    return " ".join(p for p in (d, t) if p)


@dataclass(frozen=True)
class _Line:
    text: str
    start: float
    minimum: float
    weight: int
    alpha: float
    leading: float  # Line box height as a multiple of the font size
    gap_below: float = 0.0


def caption_bottom(config: SceneConfig) -> float:
    """Y of the bottom edge of the caption block."""
    style = get_style(config.style_id)
    offset = _BOTTOM_OFFSET_POSTER if style.forces_plain else _BOTTOM_OFFSET
    if config.decor.margin:
        offset = max(offset, _MARGIN_CLEARANCE)
    if config.decor.frame:
        offset = max(offset, frame_inset_px(config.frame_pct) + 18)
    return POSTER_H - offset


def layout_captions(config: SceneConfig) -> list[Label]:
    """Lay out the visible caption lines, stacked upward from the bottom.

    Order top to bottom: title, subtitle, place, coordinates, date/time.
    Hidden or empty lines take no space.
    """
    text = config.text
    style = get_style(config.style_id)
    compact = style.forces_plain

    lines: list[_Line] = []
    if text.show_title:
        title_size = 46 if compact else 54
        lines.append(_Line(text.title[:TITLE_MAX], title_size, 22, 900, 1.0, 1.1))
    if text.show_subtitle:
        subtitle_size = 16 if compact else 18
        lines.append(
            _Line(
                text.subtitle[:SUBTITLE_MAX],
                subtitle_size,
                12,
                650,
                0.85,
                1.4,
                _SUBTITLE_GAP,
            )
        )
    if text.show_place:
        lines.append(_Line(text.place, 14, 11, 650, 0.82, 1.5))
    if text.show_coords:
        lines.append(_Line(text.coords, 14, 11, 650, 0.82, 1.5))
    if text.show_datetime:
        when = format_datetime(text.date, text.time)
        lines.append(_Line(when, 14, 11, 650, 0.82, 1.5))
    lines = [ln for ln in lines if ln.text.strip()]

    if style.layout == "minimal":
        x, align = float(TEXT_PAD_X), "left"
    else:
        x, align = POSTER_W / 2, "center"
    max_width = POSTER_W - 2 * TEXT_PAD_X

    labels: list[Label] = []
    cursor = caption_bottom(config)
    for line in reversed(lines):
        size = fit_font_to_width(
            line.text, line.start, line.minimum, line.weight, max_width, text.font_key
        )
        cursor -= line.gap_below + size * line.leading
        labels.append(
            Label(
                x=x,
                y=cursor,
                text=line.text,
                size=float(round(size)),
                weight=line.weight,
                font_key=text.font_key,
                color=config.tokens.ink_color,
                alpha=line.alpha,
                align=align,
            )
        )
    labels.reverse()
    return labels
