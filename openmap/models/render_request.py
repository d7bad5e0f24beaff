"""Render request and result models."""

from dataclasses import dataclass

from PIL import Image

from openmap.core.config import MAX_ZOOM, MIN_ZOOM, MapStyle, parse_map_style
from openmap.models.geo import BoundingBox, GeoPoint


@dataclass
class CompositeRequest:
    """Request parameters for rendering a base map.

    A zoom of None means "auto": it is solved from the bounding box, or taken
    from the default zoom setting when the location is a point. A style of
    None uses the default style setting.
    """

    location: GeoPoint | BoundingBox
    width: int
    height: int
    zoom: int | None = None
    style: MapStyle | None = None

    def __post_init__(self):
        """Validate the render request."""
        if not isinstance(self.location, (GeoPoint, BoundingBox)):
            raise ValueError(f"location must be a GeoPoint or BoundingBox, got {type(self.location).__name__}")

        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"width and height must be positive, got {self.width}x{self.height}")

        if self.zoom is not None and not MIN_ZOOM <= self.zoom <= MAX_ZOOM:
            raise ValueError(f"zoom must be between {MIN_ZOOM} and {MAX_ZOOM}, got {self.zoom}")

        if self.style is not None:
            self.style = parse_map_style(self.style)

    @property
    def is_bounds_request(self) -> bool:
        """Check if the request covers a bounding box rather than a center point."""
        return isinstance(self.location, BoundingBox)


@dataclass
class RenderResult:
    """Rendered base map plus a per-request tile summary."""

    image: Image.Image
    zoom: int
    center: GeoPoint
    style: MapStyle
    tiles_requested: int = 0
    tiles_drawn: int = 0
    tiles_failed: int = 0
    cancelled: bool = False

    @property
    def complete(self) -> bool:
        """True when every requested tile was drawn."""
        return not self.cancelled and self.tiles_drawn == self.tiles_requested
