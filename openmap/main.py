"""Main application entry point."""

import argparse
import logging
import sys


def setup_logging(verbose: bool = False):
    """
    Set up logging configuration.

    Args:
        verbose: Enable verbose logging
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(),
        ],
    )


def cmd_render(args):
    """Handle render subcommand - render a map centered on a point."""
    setup_logging(args.verbose)
    from openmap.cli import run_render
    from openmap.models.geo import GeoPoint

    try:
        center = GeoPoint(args.lat, args.lon)
    except ValueError as e:
        logging.error(f"Invalid center: {e}")
        return 1

    return run_render(
        center,
        args.output,
        config_path=args.config,
        zoom=args.zoom,
        width=args.width,
        height=args.height,
        style=args.style,
        layer_specs=args.layer,
    )


def cmd_render_bounds(args):
    """Handle render-bounds subcommand - render a map that fits a bounding box."""
    setup_logging(args.verbose)
    from openmap.cli import run_render
    from openmap.models.geo import BoundingBox

    try:
        bbox = BoundingBox(min_lat=args.min_lat, min_lon=args.min_lon, max_lat=args.max_lat, max_lon=args.max_lon)
        if args.padding:
            bbox = bbox.expand(args.padding)
    except ValueError as e:
        logging.error(f"Invalid bounds: {e}")
        return 1

    return run_render(
        bbox,
        args.output,
        config_path=args.config,
        width=args.width,
        height=args.height,
        style=args.style,
        layer_specs=args.layer,
    )


def cmd_region(args):
    """Handle region subcommand - render a named city or province."""
    setup_logging(args.verbose)
    from openmap.cli import run_render
    from openmap.utils.regions import get_region

    try:
        location = get_region(args.name)
    except KeyError as e:
        logging.error(e.args[0])
        return 1

    return run_render(
        location,
        args.output,
        config_path=args.config,
        zoom=args.zoom,
        width=args.width,
        height=args.height,
        style=args.style,
        layer_specs=args.layer,
    )


def cmd_composite(args):
    """Handle composite subcommand - stack layers onto an existing image."""
    setup_logging(args.verbose)
    from openmap.cli import run_composite

    return run_composite(args.base, args.layer or [], args.output)


def cmd_list_styles(args):
    """Handle list-styles subcommand."""
    from openmap.core.config import PROVIDERS

    print("Available map styles:")
    print()

    for style, provider in PROVIDERS.items():
        print(f"  {style.value:13} - {provider.display_name}")
        print(f"                  URL: {provider.url_template}")
        if provider.dark_variant is not None:
            print(f"                  Dark mode: {provider.dark_variant.value}")
        print()

    return 0


def cmd_attribution(args):
    """Handle attribution subcommand - print required attribution for styles."""
    from openmap.core.config import parse_map_style
    from openmap.utils.attribution import build_attribution_from_styles, get_attribution

    styles = [parse_map_style(name) for name in args.styles]
    for style in styles:
        text, url = get_attribution(style)
        print(f"{style.value}: {text} <{url}>")

    if len(styles) > 1:
        print()
        print(build_attribution_from_styles(styles))

    return 0


def cmd_clear_cache(args):
    """Handle clear-cache subcommand."""
    setup_logging(args.verbose)
    from openmap.cli import run_clear_cache

    return run_clear_cache(args.config, expired_only=args.expired)


def _add_common_arguments(parser: argparse.ArgumentParser):
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("-c", "--config", help="YAML settings file")


def _add_render_arguments(parser: argparse.ArgumentParser, with_zoom: bool = True):
    parser.add_argument("-o", "--output", default="map.png", help="Output image path (default: map.png)")
    parser.add_argument("--width", type=int, help="Output width in pixels")
    parser.add_argument("--height", type=int, help="Output height in pixels")
    parser.add_argument("--style", help="Map style (see list-styles)")
    if with_zoom:
        parser.add_argument("--zoom", type=int, help="Zoom level 0-18")
    parser.add_argument(
        "--layer",
        action="append",
        metavar="PATH[:OPACITY[:ALIGNMENT]]",
        help="Overlay image to composite on the map (repeatable)",
    )


def main():
    """Main application entry point."""
    parser = argparse.ArgumentParser(
        description="OpenMap - Render map backgrounds from raster tiles and composite overlay layers",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Render subcommand
    render_parser = subparsers.add_parser("render", help="Render a map centered on a point")
    render_parser.add_argument("lat", type=float, help="Center latitude")
    render_parser.add_argument("lon", type=float, help="Center longitude")
    _add_render_arguments(render_parser)
    _add_common_arguments(render_parser)
    render_parser.set_defaults(func=cmd_render)

    # Render-bounds subcommand
    bounds_parser = subparsers.add_parser("render-bounds", help="Render a map that fits a bounding box")
    bounds_parser.add_argument("min_lat", type=float, help="Southern latitude")
    bounds_parser.add_argument("min_lon", type=float, help="Western longitude")
    bounds_parser.add_argument("max_lat", type=float, help="Northern latitude")
    bounds_parser.add_argument("max_lon", type=float, help="Eastern longitude")
    bounds_parser.add_argument("--padding", type=float, default=0.0, help="Expand the box by this percentage")
    _add_render_arguments(bounds_parser, with_zoom=False)
    _add_common_arguments(bounds_parser)
    bounds_parser.set_defaults(func=cmd_render_bounds)

    # Region subcommand
    region_parser = subparsers.add_parser("region", help="Render a named city or province")
    region_parser.add_argument("name", help="City or region name, e.g. toronto or ontario")
    _add_render_arguments(region_parser)
    _add_common_arguments(region_parser)
    region_parser.set_defaults(func=cmd_region)

    # Composite subcommand
    composite_parser = subparsers.add_parser("composite", help="Composite layers onto an existing image")
    composite_parser.add_argument("base", help="Base image")
    composite_parser.add_argument(
        "--layer",
        action="append",
        metavar="PATH[:OPACITY[:ALIGNMENT]]",
        help="Layer to composite, bottom to top (repeatable)",
    )
    composite_parser.add_argument("-o", "--output", default="composite.png", help="Output image path")
    composite_parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    composite_parser.set_defaults(func=cmd_composite)

    # List styles subcommand
    list_parser = subparsers.add_parser("list-styles", help="List available map styles")
    list_parser.set_defaults(func=cmd_list_styles)

    # Attribution subcommand
    attribution_parser = subparsers.add_parser("attribution", help="Print required attribution for map styles")
    attribution_parser.add_argument("styles", nargs="+", help="Map style names")
    attribution_parser.set_defaults(func=cmd_attribution)

    # Clear-cache subcommand
    cache_parser = subparsers.add_parser("clear-cache", help="Remove cached tiles")
    cache_parser.add_argument("--expired", action="store_true", help="Only remove expired tiles")
    _add_common_arguments(cache_parser)
    cache_parser.set_defaults(func=cmd_clear_cache)

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
