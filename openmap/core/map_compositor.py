"""Map compositor: renders base maps from tiles and stacks overlay layers."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from PIL import Image

from openmap.core.config import TILE_SIZE, MapStyle, TileProvider, parse_map_style
from openmap.core.layer_compositor import LayerCompositor
from openmap.core.tile_cache import TileCache
from openmap.core.tile_calculator import TileCalculator, validate_dimensions, validate_zoom
from openmap.core.tile_fetcher import TileFetcher, TileResult
from openmap.models.geo import BoundingBox, GeoPoint
from openmap.models.layer import Layer, LayerAlignment
from openmap.models.render_request import CompositeRequest, RenderResult
from openmap.models.settings import OpenMapSettings
from openmap.utils.attribution import get_attribution
from openmap.utils.image_encoding import ImageEncoder, parse_hex_color

logger = logging.getLogger(__name__)


class MapCompositor:
    """Renders map backgrounds from raster tiles and composites overlays.

    Every render is independent and produces a fresh canvas. The tile cache
    is the only state shared between renders.

    Usage:
        async with MapCompositor(settings) as compositor:
            result = await compositor.render_background(GeoPoint(43.65, -79.38), zoom=10)
            attribution_text, attribution_url = compositor.get_attribution(result.style)
    """

    def __init__(
        self,
        settings: OpenMapSettings | None = None,
        cache: TileCache | None = None,
        providers: dict[MapStyle, TileProvider] | None = None,
    ):
        """
        Initialize compositor.

        Args:
            settings: Engine settings, defaults to OpenMapSettings()
            cache: Tile cache to use; created from settings when omitted and
                caching is enabled
            providers: Provider lookup table override
        """
        self.settings = settings or OpenMapSettings()

        if cache is None and self.settings.enable_tile_cache:
            cache = TileCache(self.settings.tile_cache_directory, self.settings.cache_duration_hours)
        self.cache = cache if self.settings.enable_tile_cache else None
        if not self.settings.enable_tile_cache:
            logger.info("Tile caching disabled")

        self.fetcher = TileFetcher(self.settings, cache=self.cache, providers=providers)
        self.background_color = parse_hex_color(self.settings.background_color)

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def close(self):
        """Close network resources."""
        await self.fetcher.close()

    def resolve_style(self, style: MapStyle | str | None) -> MapStyle:
        """
        Pick the style to render, applying the default and dark mode.

        Args:
            style: Requested style, style name, or None for the default

        Returns:
            Style to render
        """
        resolved = self.settings.default_map_style if style is None else parse_map_style(style)

        dark_variant = self.fetcher.get_provider(resolved).dark_variant
        if self.settings.use_dark_mode and dark_variant is not None:
            logger.debug(f"Dark mode: using {dark_variant.value} instead of {resolved.value}")
            return dark_variant
        return resolved

    @staticmethod
    def _blit(canvas: Image.Image, result: TileResult, origin_x: float, origin_y: float) -> None:
        """Alpha-composite one tile onto the canvas, clipped to its bounds."""
        tile_image = result.image
        if tile_image.size != (TILE_SIZE, TILE_SIZE):
            tile_image = tile_image.resize((TILE_SIZE, TILE_SIZE), Image.Resampling.BILINEAR)

        # Truncate toward zero, matching device-pixel placement
        dest_x = int(result.tile.x * TILE_SIZE - origin_x)
        dest_y = int(result.tile.y * TILE_SIZE - origin_y)

        canvas_width, canvas_height = canvas.size
        left, top = max(0, dest_x), max(0, dest_y)
        right = min(canvas_width, dest_x + TILE_SIZE)
        bottom = min(canvas_height, dest_y + TILE_SIZE)
        if right <= left or bottom <= top:
            return

        canvas.alpha_composite(
            tile_image,
            dest=(left, top),
            source=(left - dest_x, top - dest_y, right - dest_x, bottom - dest_y),
        )

    async def render_background(
        self,
        center: GeoPoint,
        zoom: int | None = None,
        width: int | None = None,
        height: int | None = None,
        style: MapStyle | str | None = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> RenderResult:
        """
        Render a map background centered on a point.

        The canvas is filled with the background color before any tile is
        drawn. Tiles that fail to load leave that region at the background
        color and are counted in RenderResult.tiles_failed.

        Args:
            center: Viewport center
            zoom: Zoom level, defaults to the configured zoom
            width: Output width in pixels, defaults to the configured width
            height: Output height in pixels, defaults to the configured height
            style: Map style, defaults to the configured style
            cancel_event: When set, pending tile fetches are abandoned and
                the partial canvas is returned with cancelled=True

        Returns:
            RenderResult with a width x height RGBA image

        Raises:
            ValueError: If zoom or dimensions are invalid
        """
        zoom = self.settings.default_zoom_level if zoom is None else zoom
        width = self.settings.default_width if width is None else width
        height = self.settings.default_height if height is None else height
        validate_zoom(zoom)
        validate_dimensions(width, height)
        style = self.resolve_style(style)

        canvas = Image.new("RGBA", (width, height), self.background_color)
        tiles = TileCalculator.tiles_in_viewport(center, zoom, width, height)
        origin_x, origin_y, _, _ = TileCalculator.viewport_pixel_bounds(center, zoom, width, height)

        result = RenderResult(image=canvas, zoom=zoom, center=center, style=style, tiles_requested=len(tiles))
        logger.debug(f"Rendering {width}x{height} {style.value} map at {center}, zoom {zoom}: {len(tiles)} tiles")

        if cancel_event is not None and cancel_event.is_set():
            result.cancelled = True
            return result

        semaphore = asyncio.Semaphore(self.settings.max_concurrent_downloads)

        async def fetch_with_limit(tile):
            async with semaphore:
                return await self.fetcher.fetch(style, tile.x, tile.y, tile.zoom)

        pending = {asyncio.create_task(fetch_with_limit(tile)) for tile in tiles}
        cancel_waiter = asyncio.create_task(cancel_event.wait()) if cancel_event is not None else None

        try:
            while pending:
                wait_on = pending | {cancel_waiter} if cancel_waiter is not None else pending
                done, _ = await asyncio.wait(wait_on, return_when=asyncio.FIRST_COMPLETED)

                # Blits run here, between awaits, so a tile rectangle is never half-written
                for task in done:
                    if task is cancel_waiter:
                        continue
                    pending.discard(task)
                    try:
                        tile_result = task.result()
                    except asyncio.CancelledError:
                        raise
                    except Exception as e:
                        logger.warning(f"Tile fetch raised {type(e).__name__}: {e}")
                        result.tiles_failed += 1
                        continue

                    if tile_result.ok:
                        self._blit(canvas, tile_result, origin_x, origin_y)
                        result.tiles_drawn += 1
                    else:
                        result.tiles_failed += 1

                if cancel_waiter is not None and cancel_waiter in done:
                    result.cancelled = True
                    logger.info(f"Render cancelled with {len(pending)} tiles outstanding")
                    break
        finally:
            leftovers = list(pending)
            if cancel_waiter is not None:
                leftovers.append(cancel_waiter)
            for task in leftovers:
                task.cancel()
            await asyncio.gather(*leftovers, return_exceptions=True)

        if result.tiles_failed:
            logger.warning(f"{result.tiles_failed} of {result.tiles_requested} tiles unavailable")

        return result

    async def render_background_for_bounds(
        self,
        bbox: BoundingBox,
        width: int | None = None,
        height: int | None = None,
        style: MapStyle | str | None = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> RenderResult:
        """
        Render a map background that fits a bounding box.

        The zoom is solved so that the box fits in the output size, and the
        map is centered on the box center.

        Args:
            bbox: Area to cover
            width: Output width in pixels, defaults to the configured width
            height: Output height in pixels, defaults to the configured height
            style: Map style, defaults to the configured style
            cancel_event: Optional cancellation event

        Returns:
            RenderResult with a width x height RGBA image
        """
        width = self.settings.default_width if width is None else width
        height = self.settings.default_height if height is None else height
        validate_dimensions(width, height)

        zoom = TileCalculator.solve_zoom_for_bounds(bbox, width, height)
        logger.debug(f"Solved zoom {zoom} for {bbox} at {width}x{height}")

        return await self.render_background(bbox.center(), zoom, width, height, style, cancel_event)

    async def render(self, request: CompositeRequest, cancel_event: Optional[asyncio.Event] = None) -> RenderResult:
        """
        Render a CompositeRequest.

        Args:
            request: Validated render request
            cancel_event: Optional cancellation event

        Returns:
            RenderResult for the request
        """
        if request.is_bounds_request and request.zoom is None:
            return await self.render_background_for_bounds(
                request.location, request.width, request.height, request.style, cancel_event
            )

        center = request.location.center() if request.is_bounds_request else request.location
        return await self.render_background(
            center, request.zoom, request.width, request.height, request.style, cancel_event
        )

    @staticmethod
    def composite_layers(base: Image.Image, layers: list[Layer]) -> Image.Image:
        """
        Composite layers onto a base image, bottom to top.

        Args:
            base: Base raster
            layers: Overlay layers

        Returns:
            New RGBA image the size of base
        """
        return LayerCompositor.composite_layers(base, layers)

    def overlay_image(self, base: Image.Image, overlay: Image.Image, opacity: float | None = None) -> Image.Image:
        """
        Overlay one image (such as radar) at its native size on a map.

        Args:
            base: Map background
            overlay: Image drawn from the top-left corner
            opacity: Overlay opacity, defaults to the configured overlay opacity

        Returns:
            New RGBA image the size of base
        """
        effective_opacity = self.settings.overlay_opacity if opacity is None else opacity
        layer = Layer(image=overlay, opacity=effective_opacity, alignment=LayerAlignment.TOP_LEFT, name="overlay")
        return LayerCompositor.composite_layers(base, [layer])

    @staticmethod
    def get_attribution(style: MapStyle | str) -> tuple[str, str]:
        """
        Get the attribution text and link required for a style.

        Returns:
            Tuple of (text, url)
        """
        return get_attribution(style)

    async def save_png(
        self,
        output_path: str | Path,
        center: GeoPoint,
        zoom: int | None = None,
        width: int | None = None,
        height: int | None = None,
        style: MapStyle | str | None = None,
    ) -> Path:
        """
        Render a map background and save it as PNG.

        Args:
            output_path: Destination file; parent directories are created
            center: Viewport center
            zoom: Zoom level
            width: Output width in pixels
            height: Output height in pixels
            style: Map style

        Returns:
            Path of the written file
        """
        result = await self.render_background(center, zoom, width, height, style)
        path = ImageEncoder.save(result.image, Path(output_path).with_suffix(".png"))
        logger.info(f"Saved map to {path}")
        return path
