"""Configuration for tile providers and engine constants."""

import logging
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class MapStyle(Enum):
    """Closed set of supported tile providers."""

    STANDARD = "standard"
    MINIMAL = "minimal"
    TERRAIN = "terrain"
    SATELLITE = "satellite"
    TERRAIN_DARK = "terrain_dark"


@dataclass(frozen=True)
class TileProvider:
    """Configuration for a raster tile provider.

    Providers only differ in URL formatting, so a lookup table of these
    values covers every style.
    """

    name: str
    display_name: str
    base_url: str
    attribution_text: str
    attribution_url: str
    extension: str = "png"
    swap_xy: bool = False  # Provider expects /{z}/{y}/{x}
    dark_variant: MapStyle | None = None

    @property
    def url_template(self) -> str:
        """Get the URL template for this provider.

        The template uses {z}, {x} and {y} placeholders in the order the
        provider expects them.
        """
        path = "{z}/{y}/{x}" if self.swap_xy else "{z}/{x}/{y}"
        suffix = f".{self.extension}" if self.extension else ""
        return f"{self.base_url}/{path}{suffix}"

    def tile_url(self, x: int, y: int, zoom: int) -> str:
        """Resolve the URL of one tile."""
        return self.url_template.format(x=x, y=y, z=zoom)


OSM_ATTRIBUTION = "© OpenStreetMap contributors"
OSM_COPYRIGHT_URL = "https://www.openstreetmap.org/copyright"

# Available tile providers
PROVIDERS: dict[MapStyle, TileProvider] = {
    # ODbL license
    MapStyle.STANDARD: TileProvider(
        name="standard",
        display_name="Standard OpenStreetMap",
        base_url="https://tile.openstreetmap.org",
        attribution_text=OSM_ATTRIBUTION,
        attribution_url=OSM_COPYRIGHT_URL,
    ),
    # Humanitarian OSM Team (HOT) style
    MapStyle.MINIMAL: TileProvider(
        name="minimal",
        display_name="Humanitarian (minimal)",
        base_url="https://tile.openstreetmap.fr/hot",
        attribution_text=OSM_ATTRIBUTION,
        attribution_url=OSM_COPYRIGHT_URL,
    ),
    MapStyle.TERRAIN: TileProvider(
        name="terrain",
        display_name="OpenTopoMap terrain",
        base_url="https://tile.opentopomap.org",
        attribution_text="© OpenStreetMap contributors, SRTM | Style: © OpenTopoMap (CC-BY-SA)",
        attribution_url="https://opentopomap.org/about",
        dark_variant=MapStyle.TERRAIN_DARK,
    ),
    # Esri World Imagery orders the path as /{z}/{y}/{x} and has no extension
    MapStyle.SATELLITE: TileProvider(
        name="satellite",
        display_name="Esri World Imagery",
        base_url="https://server.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile",
        attribution_text="Esri, Maxar, Earthstar Geographics",
        attribution_url="https://www.esri.com/en-us/legal/terms/full-master-agreement",
        extension="",
        swap_xy=True,
    ),
    MapStyle.TERRAIN_DARK: TileProvider(
        name="terrain_dark",
        display_name="CARTO Dark Matter",
        base_url="https://cartodb-basemaps-a.global.ssl.fastly.net/dark_all",
        attribution_text="© OpenStreetMap contributors © CARTO",
        attribution_url="https://carto.com/attributions",
    ),
}


def parse_map_style(value: str | MapStyle | None) -> MapStyle:
    """
    Parse a map style name.

    Matching ignores case, underscores, hyphens and spaces, so "TerrainDark",
    "terrain_dark" and "terrain-dark" are equivalent.

    Args:
        value: Style name, MapStyle, or None

    Returns:
        Parsed style, or MapStyle.STANDARD when value is empty or unknown
    """
    if isinstance(value, MapStyle):
        return value
    if value is None or not value.strip():
        return MapStyle.STANDARD

    normalized = value.strip().lower().replace("_", "").replace("-", "").replace(" ", "")
    for style in MapStyle:
        if style.value.replace("_", "") == normalized:
            return style

    logger.warning(f"Unknown map style '{value}', using {MapStyle.STANDARD.value}")
    return MapStyle.STANDARD


# Download settings
MAX_CONCURRENT_DOWNLOADS = 8
DOWNLOAD_TIMEOUT = 30  # seconds
USER_AGENT = "OpenMap/1.0 (+https://github.com/NoID-Softwork/weather-still-api)"

# Tile settings
TILE_SIZE = 256  # pixels
MIN_ZOOM = 0
MAX_ZOOM = 18
DEFAULT_ZOOM = 10
FALLBACK_ZOOM = 5  # Used when no zoom level fits a bounding box
MAX_LATITUDE = 85.0511287798  # Web-Mercator projection limit

# Cache settings
DEFAULT_CACHE_DIR = "MapCache"
DEFAULT_CACHE_HOURS = 168
MIN_RECOMMENDED_CACHE_HOURS = 168  # 7 days per common tile usage policies

# Rendering defaults
DEFAULT_WIDTH = 1920
DEFAULT_HEIGHT = 1080
DEFAULT_BACKGROUND_COLOR = "#D3D3D3"
DEFAULT_OVERLAY_OPACITY = 0.7
