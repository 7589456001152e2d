"""Static bright-star catalog and constellation figures.

A deliberately small table: enough for a decorative poster, not for
astrometry. Any larger catalog works with the compute layer as long as
it carries RA/Dec/magnitude per star.
"""

from nightposter.models import Catalog, ConstellationSegment, StarEntry


class CatalogError(Exception):
    """Constellation segment references a star outside the catalog."""


# name, ra_deg, dec_deg, magnitude
_STARS: tuple[tuple[str, float, float, float], ...] = (
    ("Sirius", 101.2875, -16.7161, -1.46),
    ("Canopus", 95.9879, -52.6957, -0.74),
    ("Arcturus", 213.9154, 19.1825, -0.05),
    ("Vega", 279.2347, 38.7837, 0.03),
    ("Capella", 79.1723, 45.9979, 0.08),
    ("Rigel", 78.6345, -8.2016, 0.12),
    ("Procyon", 114.8255, 5.2250, 0.38),
    ("Betelgeuse", 88.7929, 7.4071, 0.50),
    ("Achernar", 24.4286, -57.2368, 0.46),
    ("Hadar", 210.9558, -60.3730, 0.61),
    ("Altair", 297.6958, 8.8683, 0.76),
    ("Acrux", 186.6496, -63.0991, 0.77),
    ("Aldebaran", 68.9802, 16.5093, 0.85),
    ("Antares", 247.3519, -26.4320, 1.06),
    ("Spica", 201.2983, -11.1614, 0.98),
    ("Pollux", 116.3289, 28.0262, 1.14),
    ("Fomalhaut", 344.4128, -29.6222, 1.16),
    ("Deneb", 310.3579, 45.2803, 1.25),
    ("Regulus", 152.0929, 11.9672, 1.35),
    ("Castor", 113.6494, 31.8883, 1.58),
    ("Bellatrix", 81.2828, 6.3497, 1.64),
    ("Elnath", 81.5729, 28.6074, 1.65),
    ("Miaplacidus", 138.3000, -69.7172, 1.67),
    ("Alnilam", 84.0534, -1.2019, 1.69),
    ("Alnair", 332.0583, -46.9611, 1.74),
    ("Alioth", 193.5073, 55.9598, 1.76),
    ("Dubhe", 165.9320, 61.7510, 1.79),
    ("Mirfak", 51.0807, 49.8612, 1.79),
    ("Wezen", 104.6564, -26.3932, 1.83),
    ("Sadr", 305.5571, 40.2567, 2.23),
    ("Alpheratz", 2.0969, 29.0904, 2.06),
    ("Almach", 30.9748, 42.3297, 2.10),
    ("Mizar", 200.9814, 54.9254, 2.23),
    ("Polaris", 37.9546, 89.2641, 1.98),
)

# Each segment is a pair of indices into _STARS
_CONSTELLATIONS: dict[str, tuple[tuple[int, int], ...]] = {
    # Betelgeuse - Bellatrix - Alnilam - Rigel, plus Betelgeuse - Alnilam
    "Orion": ((7, 20), (20, 23), (23, 5), (7, 23)),
    # Dubhe - Mizar - Alioth
    "Ursa Major": ((26, 32), (32, 25)),
}


def build_catalog(
    stars: tuple[tuple[str, float, float, float], ...],
    constellations: dict[str, tuple[tuple[int, int], ...]],
) -> Catalog:
    """Build a Catalog from raw rows, checking every segment index.

    Raises:
        CatalogError: When a segment index falls outside the star table.
    """
    entries = tuple(
        StarEntry(name=name, ra_deg=ra, dec_deg=dec, magnitude=mag)
        for name, ra, dec, mag in stars
    )
    figures: dict[str, tuple[ConstellationSegment, ...]] = {}
    for name, pairs in constellations.items():
        segments = []
        for a, b in pairs:
            if not (0 <= a < len(entries) and 0 <= b < len(entries)):
                raise CatalogError(
                    f"{name}: segment ({a}, {b}) outside catalog"
                    f" of {len(entries)} stars"
                )
            segments.append(ConstellationSegment(star_index_a=a, star_index_b=b))
        figures[name] = tuple(segments)
    return Catalog(stars=entries, constellations=figures)


def load_catalog() -> Catalog:
    """Return the bundled bright-star catalog."""
    return build_catalog(_STARS, _CONSTELLATIONS)
