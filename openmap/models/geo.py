"""Data models for geographic points, bounding boxes and tile indices."""

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class GeoPoint:
    """Geographic coordinate in degrees."""

    latitude: float
    longitude: float

    def __post_init__(self):
        """Validate coordinate ranges."""
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"Latitude must be between -90 and 90, got {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"Longitude must be between -180 and 180, got {self.longitude}")

    def __str__(self) -> str:
        return f"{self.latitude:.4f}, {self.longitude:.4f}"


@dataclass(frozen=True)
class BoundingBox:
    """Geographic extent defined by lat/lon bounds.

    Longitude wraparound across the antimeridian is not supported, so the
    minimum values must not exceed the maximum values.
    """

    min_lat: float
    min_lon: float
    max_lat: float
    max_lon: float

    def __post_init__(self):
        """Validate bounds."""
        for name in ("min_lat", "max_lat"):
            value = getattr(self, name)
            if not -90.0 <= value <= 90.0:
                raise ValueError(f"{name} must be between -90 and 90, got {value}")
        for name in ("min_lon", "max_lon"):
            value = getattr(self, name)
            if not -180.0 <= value <= 180.0:
                raise ValueError(f"{name} must be between -180 and 180, got {value}")
        if self.min_lat > self.max_lat:
            raise ValueError(f"min_lat ({self.min_lat}) cannot be greater than max_lat ({self.max_lat})")
        if self.min_lon > self.max_lon:
            raise ValueError(f"min_lon ({self.min_lon}) cannot be greater than max_lon ({self.max_lon})")

    @property
    def lat_span(self) -> float:
        """Latitude span in degrees."""
        return self.max_lat - self.min_lat

    @property
    def lon_span(self) -> float:
        """Longitude span in degrees."""
        return self.max_lon - self.min_lon

    def center(self) -> GeoPoint:
        """
        Calculate the center point of the box.

        Returns:
            GeoPoint halfway between the bounds on both axes
        """
        return GeoPoint(
            latitude=(self.min_lat + self.max_lat) / 2.0,
            longitude=(self.min_lon + self.max_lon) / 2.0,
        )

    def expand(self, percentage: float) -> "BoundingBox":
        """
        Expand the box by a fraction of its span on every side.

        Args:
            percentage: Padding as a fraction of the span (0.1 adds 10% per side)

        Returns:
            New BoundingBox, clamped to valid lat/lon ranges
        """
        if percentage < 0:
            raise ValueError(f"Expansion percentage cannot be negative, got {percentage}")

        lat_padding = self.lat_span * percentage
        lon_padding = self.lon_span * percentage

        return BoundingBox(
            min_lat=max(-90.0, self.min_lat - lat_padding),
            min_lon=max(-180.0, self.min_lon - lon_padding),
            max_lat=min(90.0, self.max_lat + lat_padding),
            max_lon=min(180.0, self.max_lon + lon_padding),
        )

    def contains(self, point: GeoPoint) -> bool:
        """Check whether a point lies inside the box (bounds inclusive)."""
        return (
            self.min_lat <= point.latitude <= self.max_lat
            and self.min_lon <= point.longitude <= self.max_lon
        )

    def to_dict(self) -> Dict[str, float]:
        """
        Convert box to dictionary.

        Returns:
            Dictionary with min_lat, min_lon, max_lat, max_lon keys
        """
        return {
            "min_lat": self.min_lat,
            "min_lon": self.min_lon,
            "max_lat": self.max_lat,
            "max_lon": self.max_lon,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, float]) -> "BoundingBox":
        """
        Create box from dictionary.

        Args:
            data: Dictionary with min_lat, min_lon, max_lat, max_lon keys

        Returns:
            BoundingBox instance
        """
        return cls(
            min_lat=float(data["min_lat"]),
            min_lon=float(data["min_lon"]),
            max_lat=float(data["max_lat"]),
            max_lon=float(data["max_lon"]),
        )

    def __str__(self) -> str:
        return f"[{self.min_lat:.2f},{self.min_lon:.2f}] to [{self.max_lat:.2f},{self.max_lon:.2f}]"


@dataclass(frozen=True)
class TileIndex:
    """Index of one 256x256 tile in the Web-Mercator pyramid."""

    x: int
    y: int
    zoom: int

    def is_valid(self) -> bool:
        """Check that the index lies inside the 2^zoom x 2^zoom grid."""
        if self.zoom < 0:
            return False
        n = 1 << self.zoom
        return 0 <= self.x < n and 0 <= self.y < n

    def __str__(self) -> str:
        return f"{self.zoom}/{self.x}/{self.y}"
