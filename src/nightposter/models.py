"""Data model definitions.

Explicit boundaries between catalog, compute and render layers.
"""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class StarEntry:
    """A single catalog star. Loaded once, never mutated."""

    name: str
    ra_deg: float  # Right ascension (degrees)
    dec_deg: float  # Declination (degrees)
    magnitude: float  # Visual magnitude (lower = brighter)


@dataclass(frozen=True)
class ConstellationSegment:
    """A single constellation line segment. A pair of catalog indices."""

    star_index_a: int
    star_index_b: int


@dataclass(frozen=True)
class Catalog:
    """Star table plus constellation segments grouped by name."""

    stars: tuple[StarEntry, ...]
    constellations: dict[str, tuple[ConstellationSegment, ...]] = field(
        default_factory=dict
    )


@dataclass(frozen=True)
class ObserverContext:
    """Where and when the sky is observed. Immutable for one render."""

    lat: float  # Latitude (decimal degrees, [-90, 90])
    lng: float  # Longitude (decimal degrees, [-180, 180])
    utc_dt: datetime  # UTC datetime (with tzinfo=utc)
    place_display: str = ""  # Human-readable place name for captions


@dataclass(frozen=True)
class SkyPosition:
    """Local horizon coordinates. Derived, never stored."""

    az_deg: float  # Azimuth, 0=N, 90=E, [0, 360)
    alt_deg: float  # Altitude, [-90, 90]

    @property
    def visible(self) -> bool:
        return self.alt_deg > 0


@dataclass(frozen=True)
class ProjectedPoint:
    """Canvas pixel position."""

    x: float
    y: float


@dataclass(frozen=True)
class VisibleStar:
    """A catalog star above the horizon, with its catalog index."""

    index: int
    star: StarEntry
    position: SkyPosition


@dataclass(frozen=True)
class SkyData:
    """Fully computed real-sky state for one observer."""

    context: ObserverContext
    lst_deg: float  # Local sidereal time (degrees)
    stars: tuple[VisibleStar, ...]  # Only alt > 0
    segments: tuple[tuple[str, VisibleStar, VisibleStar], ...]  # Both ends visible


@dataclass(frozen=True)
class RenderTokens:
    """Resolved palette for one render pass."""

    background_color: str  # Poster paper
    ink_color: str  # Poster text, frame, margin
    map_background_color: str
    star_color: str
    grid_line_color: str
    constellation_line_color: str
    constellation_node_color: str
    outline_color: str
    is_neon: bool


@dataclass(frozen=True)
class PosterText:
    """Caption fields and their visibility toggles."""

    title: str = "NIGHT SKY"
    subtitle: str = "A moment to remember"
    place: str = "Mexico City, MX"
    coords: str = "19.4326, -99.1332"
    date: str = "1995-12-25"  # "YYYY-MM-DD"
    time: str = "19:30"  # "HH:MM"
    show_title: bool = True
    show_subtitle: bool = True
    show_place: bool = True
    show_coords: bool = True
    show_datetime: bool = True
    font_key: str = "system"


@dataclass(frozen=True)
class PosterDecor:
    """Poster-level decoration toggles. Frame and margin are mutually exclusive."""

    frame: bool = False
    margin: bool = False
    outline: bool = False

    def with_frame(self, enabled: bool) -> "PosterDecor":
        return PosterDecor(
            frame=enabled, margin=self.margin and not enabled, outline=self.outline
        )

    def with_margin(self, enabled: bool) -> "PosterDecor":
        return PosterDecor(
            frame=self.frame and not enabled, margin=enabled, outline=self.outline
        )

    def with_outline(self, enabled: bool) -> "PosterDecor":
        return PosterDecor(frame=self.frame, margin=self.margin, outline=enabled)


@dataclass(frozen=True)
class SceneConfig:
    """The aggregate render request. Built fresh for every render pass."""

    style_id: str
    color_theme: str
    background_mode: str  # "match" | "white"
    tokens: RenderTokens
    decor: PosterDecor
    seed: int  # 32-bit unsigned decorative seed
    text: PosterText = field(default_factory=PosterText)
    frame_pct: float = 0.06  # Frame inset as a fraction of poster width
    show_grid: bool = False
    grid_opacity: float = 0.60
    show_constellations: bool = True
    constellation_size: float = 2.0
    map_zoom: float = 1.0
    map_inset_pct: float = 0.10  # Map inset when a frame or margin is on
    # Real catalog layer: none | stars | const | stars+const
    overlay: str = "stars+const"
    observer: ObserverContext | None = None
    catalog: Catalog | None = None
    show_cardinals: bool = False
    show_altitude_rings: bool = False
    lang: str = "en"
