"""CLI entry point for poster generation.

    uv run python src/nightposter/starchart.py --lat 19.4326 --lng -99.1332 \\
        --date 1995-12-25 --time 22:00 --place "Mexico City, MX"
"""

import argparse
import logging
import re
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

from nightposter.compose import RenderSetupError, compose_poster  # noqa: E402
from nightposter.compute import ObserverError, resolve_observer  # noqa: E402
from nightposter.config import load_settings  # noqa: E402
from nightposter.export import (  # noqa: E402
    EXPORT_SIZES,
    FORMATS,
    ExportError,
    export_poster,
)
from nightposter.i18n import t  # noqa: E402
from nightposter.models import PosterDecor, PosterText  # noqa: E402
from nightposter.renderers.plotly_2d import save_scene_preview  # noqa: E402
from nightposter.styles import (  # noqa: E402
    COLOR_THEMES,
    MAP_STYLES,
    OVERLAY_MODES,
    make_scene_config,
)

logger = logging.getLogger("nightposter")


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Render a star-map poster.")
    p.add_argument("--lat", type=float, required=True)
    p.add_argument("--lng", type=float, required=True)
    p.add_argument("--date", required=True, help="Local date, YYYY-MM-DD")
    p.add_argument("--time", required=True, help="Local time, HH:MM")
    p.add_argument("--place", default="")
    p.add_argument("--title")
    p.add_argument("--subtitle")
    p.add_argument("--style", default="classic", choices=[s.id for s in MAP_STYLES])
    p.add_argument("--theme", default="mono", choices=list(COLOR_THEMES))
    p.add_argument("--background", default="match", choices=["match", "white"])
    p.add_argument("--frame", action="store_true")
    p.add_argument("--margin", action="store_true")
    p.add_argument("--outline", action="store_true")
    p.add_argument("--grid", action="store_true")
    p.add_argument("--zoom", type=float, default=1.0)
    p.add_argument("--overlay", default="stars+const", choices=list(OVERLAY_MODES))
    p.add_argument("--cardinals", action="store_true")
    p.add_argument("--rings", action="store_true")
    p.add_argument("--lang", default="en", choices=["en", "es"])
    p.add_argument("--font", default="system")
    p.add_argument("--size", default="digital_900x1200", choices=list(EXPORT_SIZES))
    p.add_argument("--format", default="png", choices=list(FORMATS))
    p.add_argument("--dpi", type=int)
    p.add_argument("--output", help="Output file; auto-generated when omitted")
    p.add_argument(
        "--preview",
        metavar="HTML",
        help="Write an interactive HTML preview instead of exporting",
    )
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = _parse_args(argv)

    try:
        observer = resolve_observer(
            args.lat, args.lng, args.date, args.time, args.place
        )
    except ObserverError as e:
        logger.error("%s", e)
        return 2

    text = PosterText(
        title=args.title or t("default_title", args.lang),
        subtitle=args.subtitle or t("default_subtitle", args.lang),
        place=args.place,
        coords=f"{args.lat:.4f}, {args.lng:.4f}",
        date=args.date,
        time=args.time,
        show_place=bool(args.place),
        font_key=args.font,
    )
    decor = None
    if args.frame or args.margin or args.outline:
        decor = PosterDecor(margin=args.margin, outline=args.outline)
        decor = decor.with_frame(args.frame)
    config = make_scene_config(
        style_id=args.style,
        color_theme=args.theme,
        background_mode=args.background,
        decor=decor,
        text=text,
        observer=observer,
        overlay=args.overlay,
        show_grid=args.grid,
        map_zoom=args.zoom,
        show_cardinals=args.cardinals,
        show_altitude_rings=args.rings,
        lang=args.lang,
    )

    if args.preview:
        try:
            path = save_scene_preview(compose_poster(config), Path(args.preview))
        except RenderSetupError as e:
            logger.error("%s", e)
            return 1
        print(t("saved", args.lang).format(path=path))
        return 0

    if args.output:
        output_path = Path(args.output)
    else:
        key = f"{args.place or 'sky'}__{args.date}_{args.time}"
        stem = re.sub(r"[^\w.-]+", "_", key)
        output_path = settings.output_dir / f"{stem}_{args.size}.{args.format}"

    try:
        path = export_poster(
            config,
            args.size,
            args.format,
            output_path,
            dpi=args.dpi or settings.dpi,
        )
    except (RenderSetupError, ExportError) as e:
        logger.error("%s", e)
        return 1
    print(t("saved", args.lang).format(path=path))
    return 0


if __name__ == "__main__":
    sys.exit(main())
