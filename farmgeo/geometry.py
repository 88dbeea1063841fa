"""
Polygon validation, area, unit conversion and centroid for farm boundaries.

Everything here is a pure function over plain GeoJSON-shaped values. Bad input
never raises: validation answers False, area answers 0.0 ("unknown").

Interior rings (holes) are accepted structurally but are never subtracted from
the area; only the exterior ring is measured.
"""

from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Any, Mapping, Optional

from farmgeo.schemas import AreaResult
from farmgeo.utils import (
    LonLat,
    is_real_number,
    is_sequence,
    normalize_ring,
    round2,
    round_half_up,
)

logger = logging.getLogger(__name__)

EARTH_RADIUS_M = 6_371_000
SQM_PER_HECTARE = 10_000
SQM_PER_ACRE = 4_047

# equirectangular scale factors, meters per degree
M_PER_DEG_LON = 111_320
M_PER_DEG_LAT = 110_540


class AreaMethod(str, Enum):
    PLANAR = "planar"
    SPHERICAL = "spherical"


# ---------- validation ----------

def _valid_position(p: Any) -> bool:
    if not is_sequence(p) or len(p) < 2:
        return False
    return is_real_number(p[0]) and is_real_number(p[1])


def _in_range(p: Any) -> bool:
    lon, lat = p[0], p[1]
    return -180 <= lon <= 180 and -90 <= lat <= 90


def validate_polygon(value: Any) -> bool:
    """True when `value` is a GeoJSON Polygon with a closed, in-range exterior ring."""
    if not isinstance(value, Mapping):
        return False
    if value.get("type") != "Polygon":
        return False
    coords = value.get("coordinates")
    if not is_sequence(coords) or not coords:
        return False
    ring = coords[0]
    if not is_sequence(ring) or len(ring) < 4:
        return False
    if not all(_valid_position(p) for p in ring):
        return False
    if not all(_in_range(p) for p in ring):
        return False
    first, last = ring[0], ring[-1]
    return first[0] == last[0] and first[1] == last[1]


# ---------- area ----------

def planar_area(points: list[LonLat]) -> float:
    """Shoelace over an equirectangular projection. Small parcels only."""
    if len(points) < 3:
        return 0.0
    projected = [
        (lon * M_PER_DEG_LON * math.cos(math.radians(lat)), lat * M_PER_DEG_LAT)
        for lon, lat in points
    ]
    n = len(projected)
    acc = 0.0
    for i in range(n):
        x1, y1 = projected[i]
        x2, y2 = projected[(i + 1) % n]
        acc += x1 * y2 - x2 * y1
    return abs(acc) / 2


def spherical_area(points: list[LonLat]) -> float:
    """Spherical-excess approximation on a sphere of radius EARTH_RADIUS_M."""
    if len(points) < 3:
        return 0.0
    ring = list(points)
    if ring[0] != ring[-1]:
        ring.append(ring[0])
    acc = 0.0
    for (lon1, lat1), (lon2, lat2) in zip(ring, ring[1:]):
        acc += math.radians(lon2 - lon1) * (2 + math.sin(math.radians(lat1)) + math.sin(math.radians(lat2)))
    return abs(acc) * EARTH_RADIUS_M * EARTH_RADIUS_M / 2


_AREA_FUNCS = {
    AreaMethod.PLANAR: planar_area,
    AreaMethod.SPHERICAL: spherical_area,
}


def polygon_area(ring: Any, method: AreaMethod | str = AreaMethod.SPHERICAL) -> float:
    """Unsigned area in square meters of a ring (or a Polygon's exterior ring).

    Degenerate or malformed input gives 0.0; an unknown method name falls
    back to SPHERICAL.
    """
    try:
        points = normalize_ring(ring)
    except (TypeError, ValueError) as e:
        logger.warning("Could not read ring for area calculation: %s", e)
        return 0.0
    return _AREA_FUNCS[area_method(method)](points)


# ---------- units ----------

def to_hectares(sqm: float) -> float:
    return sqm / SQM_PER_HECTARE


def to_acres(sqm: float) -> float:
    return sqm / SQM_PER_ACRE


def farm_area(polygon: Any, method: AreaMethod | str = AreaMethod.SPHERICAL) -> AreaResult:
    """Area of a GeoJSON Polygon in m² (integer), hectares and acres (2dp)."""
    if not isinstance(polygon, Mapping) or polygon.get("type") != "Polygon":
        return AreaResult()
    sqm = polygon_area(polygon, method)
    return AreaResult(
        square_meters=int(round_half_up(sqm)),
        hectares=round2(to_hectares(sqm)),
        acres=round2(to_acres(sqm)),
    )


# ---------- centroid ----------

def polygon_centroid(ring: Any) -> tuple[float, float]:
    """(lon, lat) mean of the ring's vertices.

    Not area-weighted: fine for small near-convex parcels, pulled towards
    dense vertices on concave ones.
    """
    try:
        points = normalize_ring(ring)
    except (TypeError, ValueError) as e:
        logger.warning("Could not read ring for centroid: %s", e)
        points = []
    if not points:
        return (0.0, 0.0)
    n = len(points)
    return (sum(p[0] for p in points) / n, sum(p[1] for p in points) / n)


def area_method(value: Optional[str]) -> AreaMethod:
    """Parse a method name; unknown names fall back to SPHERICAL."""
    try:
        return AreaMethod((value or AreaMethod.SPHERICAL.value).lower())
    except ValueError:
        logger.warning("Unknown area method %r; using %s", value, AreaMethod.SPHERICAL.value)
        return AreaMethod.SPHERICAL
