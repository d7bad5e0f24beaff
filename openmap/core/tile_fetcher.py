"""Tile downloading client with a disk cache fast path."""

import asyncio
import io
import logging
from dataclasses import dataclass
from typing import Optional

import aiohttp
from PIL import Image

from openmap.core.config import PROVIDERS, MapStyle, TileProvider
from openmap.core.tile_cache import TileCache
from openmap.models.geo import TileIndex
from openmap.models.settings import OpenMapSettings

logger = logging.getLogger(__name__)

# Pillow refuses oversized images with DecompressionBombError, which is not an OSError
DECODE_ERRORS = (OSError, ValueError, Image.DecompressionBombError)


class TileUnavailableError(Exception):
    """A tile could not be obtained from the cache or the provider."""

    def __init__(self, tile: TileIndex, url: str, reason: str):
        super().__init__(f"Tile {tile} unavailable ({url}): {reason}")
        self.tile = tile
        self.url = url
        self.reason = reason


@dataclass
class TileResult:
    """Outcome of fetching one tile: either a decoded image or an error."""

    tile: TileIndex
    image: Optional[Image.Image] = None
    error: Optional[TileUnavailableError] = None
    from_cache: bool = False

    @property
    def ok(self) -> bool:
        return self.image is not None


def decode_tile(data: bytes) -> Image.Image:
    """
    Decode tile bytes into an RGBA image.

    Raises:
        OSError: If Pillow cannot identify or read the image
        ValueError: If the image data is malformed
        Image.DecompressionBombError: If the image header claims too many pixels
    """
    with Image.open(io.BytesIO(data)) as img:
        img.load()
        return img.convert("RGBA")


class TileFetcher:
    """Fetches single tiles for a map style, using TileCache when available.

    No retries are attempted; every failure is reported through
    TileResult.error and left to the caller.
    """

    def __init__(
        self,
        settings: OpenMapSettings,
        cache: TileCache | None = None,
        providers: dict[MapStyle, TileProvider] | None = None,
    ):
        """
        Initialize tile fetcher.

        Args:
            settings: Engine settings (timeout, User-Agent)
            cache: Optional tile cache; None disables caching
            providers: Provider lookup table, defaults to PROVIDERS
        """
        self.settings = settings
        self.cache = cache
        self.providers = providers if providers is not None else PROVIDERS
        self.session: Optional[aiohttp.ClientSession] = None
        self.http_requests = 0
        self.cache_hits = 0

    async def __aenter__(self):
        """Async context manager entry."""
        await self.get_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session."""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                headers={"User-Agent": self.settings.user_agent},
                timeout=aiohttp.ClientTimeout(total=self.settings.tile_download_timeout_seconds),
            )
        return self.session

    async def close(self):
        """Close aiohttp session."""
        if self.session and not self.session.closed:
            await self.session.close()
        self.session = None

    def get_provider(self, style: MapStyle) -> TileProvider:
        """Look up the provider for a style."""
        try:
            return self.providers[style]
        except KeyError:
            raise ValueError(f"No tile provider configured for style {style}") from None

    def build_tile_url(self, style: MapStyle, x: int, y: int, zoom: int) -> str:
        """
        Resolve the URL of a tile.

        Args:
            style: Map style
            x: Tile X coordinate
            y: Tile Y coordinate
            zoom: Zoom level

        Returns:
            Fully resolved tile URL
        """
        return self.get_provider(style).tile_url(x, y, zoom)

    def _from_cache(self, tile: TileIndex, key: str) -> Optional[Image.Image]:
        data = self.cache.get(key)
        if data is None:
            return None

        try:
            image = decode_tile(data)
        except DECODE_ERRORS as e:
            logger.warning(f"Corrupt cached tile {key}, discarding: {e}")
            self.cache.invalidate(key)
            return None

        self.cache_hits += 1
        logger.debug(f"Cache hit: {tile}")
        return image

    async def _download(self, url: str) -> bytes:
        session = await self.get_session()
        self.http_requests += 1
        async with session.get(url) as response:
            if response.status != 200:
                raise aiohttp.ClientResponseError(
                    response.request_info,
                    response.history,
                    status=response.status,
                    message=f"HTTP {response.status}",
                )
            return await response.read()

    async def fetch(self, style: MapStyle, x: int, y: int, zoom: int) -> TileResult:
        """
        Fetch a single tile.

        Checks the cache first, downloads if not cached, and saves to cache
        after the downloaded bytes decode successfully.

        Args:
            style: Map style
            x: Tile X coordinate
            y: Tile Y coordinate
            zoom: Zoom level

        Returns:
            TileResult holding the RGBA image or a TileUnavailableError
        """
        tile = TileIndex(x=x, y=y, zoom=zoom)
        url = self.build_tile_url(style, x, y, zoom)

        if not tile.is_valid():
            return TileResult(tile, error=TileUnavailableError(tile, url, "index outside tile grid"))

        key = TileCache.key_for_url(url)
        if self.cache is not None:
            image = self._from_cache(tile, key)
            if image is not None:
                return TileResult(tile, image=image, from_cache=True)

        try:
            data = await self._download(url)
        except aiohttp.ClientResponseError as e:
            logger.warning(f"Failed to fetch tile {url}: HTTP {e.status}")
            return TileResult(tile, error=TileUnavailableError(tile, url, f"HTTP {e.status}"))
        except asyncio.TimeoutError:
            logger.warning(f"Timed out fetching tile {url}")
            return TileResult(tile, error=TileUnavailableError(tile, url, "timeout"))
        except aiohttp.ClientError as e:
            logger.warning(f"Error fetching tile {url}: {e}")
            return TileResult(tile, error=TileUnavailableError(tile, url, str(e) or type(e).__name__))

        try:
            image = decode_tile(data)
        except DECODE_ERRORS as e:
            logger.warning(f"Could not decode tile {url}: {e}")
            return TileResult(tile, error=TileUnavailableError(tile, url, "undecodable image"))

        if self.cache is not None:
            self.cache.put(key, data)

        logger.debug(f"Downloaded: {tile}")
        return TileResult(tile, image=image)
