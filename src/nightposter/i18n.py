"""Simple two-language (en/es) translation helper."""

_STRINGS: dict[str, dict[str, str]] = {
    "cardinal_n": {
        "en": "N",
        "es": "N",
    },
    "cardinal_e": {
        "en": "E",
        "es": "E",
    },
    "cardinal_s": {
        "en": "S",
        "es": "S",
    },
    "cardinal_w": {
        "en": "W",
        "es": "O",
    },
    "default_title": {
        "en": "NIGHT SKY",
        "es": "NOCHE ESTRELLADA",
    },
    "default_subtitle": {
        "en": "A moment to remember",
        "es": "Un momento para recordar",
    },
    "saved": {
        "en": "Saved: {path}",
        "es": "Guardado: {path}",
    },
}


def t(key: str, lang: str) -> str:
    """Return the translated string for key in lang.

    Falls back to 'en', then to the key itself if not found.
    """
    entry = _STRINGS.get(key)
    if entry is None:
        return key
    return entry.get(lang) or entry.get("en") or key


def cardinal_label(direction: str, lang: str) -> str:
    """Label for a cardinal direction code ("n", "e", "s", "w")."""
    return t(f"cardinal_{direction}", lang)
