from __future__ import annotations

from typing import Any, Mapping, Optional, Union
import logging
import math

logger = logging.getLogger(__name__)

Number = Union[int, float]
LonLat = tuple[float, float]


def is_real_number(v: Any) -> bool:
    """Strict check: an actual int/float (no strings, no bools), finite."""
    return isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v)


def to_float(v: Any) -> Optional[float]:
    """Parse a value as a finite float; return None if invalid or empty."""
    if v is None or v == "" or isinstance(v, bool):
        return None
    try:
        out = float(v)
    except (TypeError, ValueError):
        return None
    return out if math.isfinite(out) else None


def round_half_up(v: float, ndigits: int = 0) -> float:
    """Round with ties going up (2.5 -> 3, 0.125 -> 0.13 at 2dp), not to even."""
    scale = 10 ** ndigits
    return math.floor(v * scale + 0.5) / scale


def round2(v: Optional[Number]) -> Optional[float]:
    """Round a value to 2 decimal places, ties up; return None if invalid."""
    try:
        return None if v is None or v == "" else round_half_up(float(v), 2)
    except (TypeError, ValueError, OverflowError):
        return None


def is_sequence(v: Any) -> bool:
    return isinstance(v, (list, tuple))


def parse_coordinate(value: Any) -> Optional[LonLat]:
    """Normalize one position to a canonical (lon, lat) pair.

    Accepts {"latitude", "longitude"}, {"lat", "lng"} / {"lat", "lon"} mappings
    and GeoJSON-ordered [lng, lat] (extra elements such as altitude are ignored).
    Returns None when the value is not a usable position.
    """
    if isinstance(value, Mapping):
        if "latitude" in value and "longitude" in value:
            lat, lon = value["latitude"], value["longitude"]
        elif "lat" in value and "lng" in value:
            lat, lon = value["lat"], value["lng"]
        elif "lat" in value and "lon" in value:
            lat, lon = value["lat"], value["lon"]
        else:
            return None
    elif is_sequence(value) and len(value) >= 2:
        lon, lat = value[0], value[1]
    else:
        return None

    lon_f, lat_f = to_float(lon), to_float(lat)
    if lon_f is None or lat_f is None:
        return None
    return (lon_f, lat_f)


def exterior_ring(value: Any) -> Any:
    """Return the exterior ring of a GeoJSON Polygon, or the value itself."""
    if isinstance(value, Mapping):
        coords = value.get("coordinates")
        if is_sequence(coords) and coords:
            return coords[0]
        return None
    return value


def normalize_ring(value: Any) -> list[LonLat]:
    """Flatten a polygon or ring into usable (lon, lat) pairs, dropping bad positions."""
    ring = exterior_ring(value)
    if not is_sequence(ring):
        return []
    points = []
    for p in ring:
        pt = parse_coordinate(p)
        if pt is not None:
            points.append(pt)
    if len(points) < len(ring):
        logger.debug("Dropped %d unusable position(s) from ring", len(ring) - len(points))
    return points


def read_field(obj: Any, *names: str, default: Any = None) -> Any:
    """First present value among `names` on a mapping or attribute object."""
    for name in names:
        if isinstance(obj, Mapping):
            if name in obj:
                return obj[name]
        elif hasattr(obj, name):
            return getattr(obj, name)
    return default
