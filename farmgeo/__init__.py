"""Farm boundary area and derived farm/farmer status engine."""

from farmgeo.geometry import (
    AreaMethod,
    farm_area,
    polygon_area,
    polygon_centroid,
    to_acres,
    to_hectares,
    validate_polygon,
)
from farmgeo.resolvers import (
    resolve_farm_size,
    resolve_farmer_status,
    total_hectares,
)
from farmgeo.schemas import AreaResult, Farm, Farmer, FarmerStatus

__all__ = [
    "AreaMethod",
    "AreaResult",
    "Farm",
    "Farmer",
    "FarmerStatus",
    "farm_area",
    "polygon_area",
    "polygon_centroid",
    "resolve_farm_size",
    "resolve_farmer_status",
    "to_acres",
    "to_hectares",
    "total_hectares",
    "validate_polygon",
]
