"""Tile calculation and coordinate conversion utilities."""

import logging
import math

from openmap.core.config import FALLBACK_ZOOM, MAX_LATITUDE, MAX_ZOOM, MIN_ZOOM, TILE_SIZE
from openmap.models.geo import BoundingBox, GeoPoint, TileIndex

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0


def validate_zoom(zoom: int) -> None:
    """Raise ValueError when zoom is outside the supported range."""
    if not MIN_ZOOM <= zoom <= MAX_ZOOM:
        raise ValueError(f"Zoom must be between {MIN_ZOOM} and {MAX_ZOOM}, got {zoom}")


def validate_dimensions(width: int, height: int) -> None:
    """Raise ValueError unless both pixel dimensions are positive."""
    if width <= 0 or height <= 0:
        raise ValueError(f"Width and height must be positive, got {width}x{height}")


class TileCalculator:
    """Utilities for Web-Mercator tile math and coordinate conversions."""

    @staticmethod
    def clamp_latitude(lat: float) -> float:
        """Clamp latitude to the range the Mercator projection is defined on."""
        return max(-MAX_LATITUDE, min(MAX_LATITUDE, lat))

    @staticmethod
    def world_size(zoom: int) -> float:
        """Width and height of the whole world in pixels at a zoom level."""
        return float(TILE_SIZE * (1 << zoom))

    @staticmethod
    def lon_to_pixel_x(lon: float, zoom: int) -> float:
        """Project longitude to a global pixel x coordinate."""
        return (lon + 180.0) / 360.0 * TileCalculator.world_size(zoom)

    @staticmethod
    def lat_to_pixel_y(lat: float, zoom: int) -> float:
        """Project latitude to a global pixel y coordinate."""
        lat_rad = math.radians(TileCalculator.clamp_latitude(lat))
        merc = math.log(math.tan(lat_rad) + 1.0 / math.cos(lat_rad))
        return (1.0 - merc / math.pi) / 2.0 * TileCalculator.world_size(zoom)

    @staticmethod
    def lat_lon_to_pixel(lat: float, lon: float, zoom: int) -> tuple[float, float]:
        """
        Convert latitude/longitude to continuous global pixel coordinates.

        Args:
            lat: Latitude in degrees (clamped to the Mercator limit)
            lon: Longitude in degrees
            zoom: Zoom level

        Returns:
            Tuple of (x, y) pixel coordinates
        """
        return TileCalculator.lon_to_pixel_x(lon, zoom), TileCalculator.lat_to_pixel_y(lat, zoom)

    @staticmethod
    def lat_lon_to_tile(lat: float, lon: float, zoom: int) -> tuple[int, int]:
        """
        Convert latitude/longitude to tile coordinates.

        Args:
            lat: Latitude in degrees
            lon: Longitude in degrees
            zoom: Zoom level

        Returns:
            Tuple of (x, y) tile coordinates
        """
        x, y = TileCalculator.lat_lon_to_pixel(lat, lon, zoom)
        return (math.floor(x / TILE_SIZE), math.floor(y / TILE_SIZE))

    @staticmethod
    def viewport_pixel_bounds(
        center: GeoPoint, zoom: int, width: int, height: int
    ) -> tuple[float, float, float, float]:
        """
        Get the global pixel rectangle covered by a viewport.

        Args:
            center: Viewport center
            zoom: Zoom level
            width: Viewport width in pixels
            height: Viewport height in pixels

        Returns:
            Tuple of (min_x, min_y, max_x, max_y) in global pixels
        """
        center_x, center_y = TileCalculator.lat_lon_to_pixel(center.latitude, center.longitude, zoom)
        return (
            center_x - width / 2.0,
            center_y - height / 2.0,
            center_x + width / 2.0,
            center_y + height / 2.0,
        )

    @staticmethod
    def viewport_tile_range(center: GeoPoint, zoom: int, width: int, height: int) -> tuple[int, int, int, int]:
        """
        Get the inclusive tile index range covering a viewport.

        Indices may fall outside [0, 2^zoom); callers skip those.

        Args:
            center: Viewport center
            zoom: Zoom level
            width: Viewport width in pixels
            height: Viewport height in pixels

        Returns:
            Tuple of (tile_min_x, tile_min_y, tile_max_x, tile_max_y)
        """
        validate_zoom(zoom)
        validate_dimensions(width, height)

        min_x, min_y, max_x, max_y = TileCalculator.viewport_pixel_bounds(center, zoom, width, height)
        return (
            math.floor(min_x / TILE_SIZE),
            math.floor(min_y / TILE_SIZE),
            math.floor(max_x / TILE_SIZE),
            math.floor(max_y / TILE_SIZE),
        )

    @staticmethod
    def tiles_in_viewport(center: GeoPoint, zoom: int, width: int, height: int) -> list[TileIndex]:
        """
        Get all valid tiles intersecting a viewport.

        Args:
            center: Viewport center
            zoom: Zoom level
            width: Viewport width in pixels
            height: Viewport height in pixels

        Returns:
            List of TileIndex, row by row, limited to the [0, 2^zoom) grid
        """
        tile_min_x, tile_min_y, tile_max_x, tile_max_y = TileCalculator.viewport_tile_range(
            center, zoom, width, height
        )

        tiles = []
        for y in range(tile_min_y, tile_max_y + 1):
            for x in range(tile_min_x, tile_max_x + 1):
                tile = TileIndex(x=x, y=y, zoom=zoom)
                if tile.is_valid():
                    tiles.append(tile)

        return tiles

    @staticmethod
    def solve_zoom_for_bounds(bbox: BoundingBox, width: int, height: int) -> int:
        """
        Find the highest zoom at which a bounding box fits in a viewport.

        Scans from MAX_ZOOM down and returns the first zoom whose tile span,
        multiplied by the tile size, fits the requested dimensions on both axes.

        Args:
            bbox: Bounding box to fit
            width: Viewport width in pixels
            height: Viewport height in pixels

        Returns:
            Zoom level, or FALLBACK_ZOOM if no level fits
        """
        validate_dimensions(width, height)

        for zoom in range(MAX_ZOOM, MIN_ZOOM - 1, -1):
            west_x, north_y = TileCalculator.lat_lon_to_tile(bbox.max_lat, bbox.min_lon, zoom)
            east_x, south_y = TileCalculator.lat_lon_to_tile(bbox.min_lat, bbox.max_lon, zoom)

            tiles_x = east_x - west_x
            tiles_y = south_y - north_y

            if tiles_x * TILE_SIZE <= width and tiles_y * TILE_SIZE <= height:
                return zoom

        logger.warning(f"No zoom level fits {bbox} in {width}x{height}, falling back to zoom {FALLBACK_ZOOM}")
        return FALLBACK_ZOOM

    @staticmethod
    def haversine_distance_km(a: GeoPoint, b: GeoPoint) -> float:
        """
        Great-circle distance between two points.

        Args:
            a: First point
            b: Second point

        Returns:
            Distance in kilometers
        """
        lat1 = math.radians(a.latitude)
        lat2 = math.radians(b.latitude)
        delta_lat = math.radians(b.latitude - a.latitude)
        delta_lon = math.radians(b.longitude - a.longitude)

        h = math.sin(delta_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(delta_lon / 2) ** 2
        return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
