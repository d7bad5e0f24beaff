"""Named location presets for common Canadian map views."""

from openmap.models.geo import BoundingBox, GeoPoint

CITIES: dict[str, GeoPoint] = {
    "toronto": GeoPoint(43.6532, -79.3832),
    "vancouver": GeoPoint(49.2827, -123.1207),
    "montreal": GeoPoint(45.5017, -73.5673),
    "calgary": GeoPoint(51.0447, -114.0719),
    "ottawa": GeoPoint(45.4215, -75.6972),
    "edmonton": GeoPoint(53.5461, -113.4938),
    "winnipeg": GeoPoint(49.8951, -97.1384),
    "quebec_city": GeoPoint(46.8139, -71.2080),
    "halifax": GeoPoint(44.6488, -63.5752),
    "victoria": GeoPoint(48.4284, -123.3656),
}

REGIONS: dict[str, BoundingBox] = {
    "ontario": BoundingBox(min_lat=41.7, min_lon=-95.2, max_lat=56.9, max_lon=-74.3),
    "quebec": BoundingBox(min_lat=45.0, min_lon=-79.8, max_lat=62.6, max_lon=-57.1),
    "british_columbia": BoundingBox(min_lat=48.3, min_lon=-139.1, max_lat=60.0, max_lon=-114.0),
    "alberta": BoundingBox(min_lat=49.0, min_lon=-120.0, max_lat=60.0, max_lon=-110.0),
    "saskatchewan": BoundingBox(min_lat=49.0, min_lon=-110.0, max_lat=60.0, max_lon=-101.4),
    "manitoba": BoundingBox(min_lat=49.0, min_lon=-102.0, max_lat=60.0, max_lon=-89.0),
    "canada": BoundingBox(min_lat=41.7, min_lon=-141.0, max_lat=83.1, max_lon=-52.6),
}


def _normalize(name: str) -> str:
    return name.strip().lower().replace("-", "_").replace(" ", "_")


def get_region(name: str) -> GeoPoint | BoundingBox:
    """
    Look up a named city or region.

    Names are matched case-insensitively, and spaces or hyphens are treated
    as underscores ("Quebec City" finds "quebec_city").

    Args:
        name: City or region name

    Returns:
        GeoPoint for a city, BoundingBox for a province or country

    Raises:
        KeyError: If the name is unknown
    """
    key = _normalize(name)
    if key in CITIES:
        return CITIES[key]
    if key in REGIONS:
        return REGIONS[key]

    known = ", ".join(sorted(list(CITIES) + list(REGIONS)))
    raise KeyError(f"Unknown region '{name}'. Known regions: {known}")
