"""CLI mode: render maps and composite layers from the command line."""

import asyncio
import logging
from pathlib import Path

from openmap.core.map_compositor import MapCompositor
from openmap.core.tile_cache import TileCache
from openmap.models.geo import BoundingBox, GeoPoint
from openmap.models.layer import Layer
from openmap.models.render_request import CompositeRequest
from openmap.models.settings import OpenMapSettings, load_settings
from openmap.utils.image_encoding import ImageEncoder

logger = logging.getLogger(__name__)


def load_cli_settings(config_path: str | None) -> OpenMapSettings:
    """
    Load settings for a CLI run.

    Args:
        config_path: Optional path to YAML settings file

    Returns:
        Settings from the file, or defaults when no file is given
    """
    if config_path is None:
        return OpenMapSettings()

    logger.info(f"Loading settings from: {config_path}")
    return load_settings(config_path)


def _is_number(value: str) -> bool:
    try:
        float(value)
    except ValueError:
        return False
    return True


def parse_layer_spec(spec: str) -> Layer:
    """
    Parse a layer argument of the form PATH[:OPACITY[:ALIGNMENT]].

    Args:
        spec: Layer argument, e.g. "radar.png:0.7:top_left"

    Returns:
        Layer loaded from disk

    Raises:
        FileNotFoundError: If the image doesn't exist
        ValueError: If opacity or alignment are invalid
    """
    path, opacity, alignment = spec, 1.0, "fill"
    parts = spec.split(":")

    # Options are only recognized after a numeric opacity, so paths may contain ':'
    if len(parts) >= 3 and _is_number(parts[-2]):
        path, opacity, alignment = ":".join(parts[:-2]), float(parts[-2]), parts[-1]
    elif len(parts) >= 2 and _is_number(parts[-1]):
        path, opacity = ":".join(parts[:-1]), float(parts[-1])

    return Layer.from_file(path, opacity=opacity, alignment=alignment)


async def _render_request(
    settings: OpenMapSettings,
    request: CompositeRequest,
    output_path: Path,
    layers: list[Layer],
) -> int:
    async with MapCompositor(settings) as compositor:
        result = await compositor.render(request)
        fetcher = compositor.fetcher
        logger.info(
            f"Tiles: {result.tiles_drawn}/{result.tiles_requested} drawn, {result.tiles_failed} unavailable "
            f"({fetcher.http_requests} downloaded, {fetcher.cache_hits} from cache)"
        )

    image = result.image
    if layers:
        image = MapCompositor.composite_layers(image, layers)

    path = ImageEncoder.save(image, output_path)
    text, url = MapCompositor.get_attribution(result.style)
    logger.info(f"✓ Created: {path} (zoom {result.zoom}, {result.style.value})")
    logger.info(f"Attribution: {text} <{url}>")
    return 0


def run_render(
    location: GeoPoint | BoundingBox,
    output_path: str | Path,
    config_path: str | None = None,
    zoom: int | None = None,
    width: int | None = None,
    height: int | None = None,
    style: str | None = None,
    layer_specs: list[str] | None = None,
) -> int:
    """
    Render a map and write it to disk.

    Width, height and style fall back to the settings defaults. The zoom is
    solved from the bounds when a BoundingBox is given without one.

    Args:
        location: Center point or area to cover
        output_path: Output image path (.png or .jpg)
        config_path: Optional path to YAML settings file
        zoom: Zoom level
        width: Output width in pixels
        height: Output height in pixels
        style: Map style name
        layer_specs: Optional overlay layers as PATH[:OPACITY[:ALIGNMENT]]

    Returns:
        Exit code (0 for success, 1 for error)
    """
    try:
        settings = load_cli_settings(config_path)
        request = CompositeRequest(
            location=location,
            width=settings.default_width if width is None else width,
            height=settings.default_height if height is None else height,
            zoom=zoom,
            style=style or settings.default_map_style,
        )
        layers = [parse_layer_spec(spec) for spec in layer_specs or []]

        logger.info("Render:")
        logger.info(f"  Location: {request.location}")
        logger.info(f"  Size: {request.width}x{request.height}")
        logger.info(f"  Zoom: {'auto' if request.zoom is None else request.zoom}")
        logger.info(f"  Style: {request.style.value}")
        if layers:
            logger.info(f"  Overlays: {', '.join(layer.name for layer in layers)}")

        return asyncio.run(_render_request(settings, request, Path(output_path), layers))

    except FileNotFoundError as e:
        logger.error(f"File not found: {e}")
        return 1
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1


def run_composite(base_path: str, layer_specs: list[str], output_path: str) -> int:
    """
    Composite layers onto an existing image.

    Args:
        base_path: Base image path; its size defines the output size
        layer_specs: Layers as PATH[:OPACITY[:ALIGNMENT]], bottom to top
        output_path: Output image path

    Returns:
        Exit code (0 for success, 1 for error)
    """
    try:
        base = Layer.from_file(base_path).image
        layers = [parse_layer_spec(spec) for spec in layer_specs]

        image = MapCompositor.composite_layers(base, layers)
        path = ImageEncoder.save(image, output_path)
        logger.info(f"✓ Created: {path} ({len(layers)} layers)")
        return 0

    except FileNotFoundError as e:
        logger.error(f"File not found: {e}")
        return 1
    except ValueError as e:
        logger.error(f"Invalid layer: {e}")
        return 1
    except OSError as e:
        logger.error(f"Could not read or write image: {e}")
        return 1


def run_clear_cache(config_path: str | None = None, expired_only: bool = False) -> int:
    """
    Remove cached tiles.

    Args:
        config_path: Optional path to YAML settings file
        expired_only: Only remove entries older than the retention period

    Returns:
        Exit code (0 for success, 1 for error)
    """
    try:
        settings = load_cli_settings(config_path)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Configuration error: {e}")
        return 1

    cache = TileCache(settings.tile_cache_directory, settings.cache_duration_hours)
    removed = cache.prune() if expired_only else cache.clear()
    logger.info(f"Removed {removed} cached tiles")
    return 0
