import logging
from collections import Counter
from typing import Any, Iterable, Mapping, Optional, Sequence

import pandas as pd
from pydantic import ValidationError

from farmgeo.geometry import AreaMethod, polygon_area, to_hectares
from farmgeo.schemas import (
    Farm,
    Farmer,
    FarmerStatus,
    StatusChange,
    StatusUpdatePlan,
)
from farmgeo.utils import read_field, round2, round_half_up

logger = logging.getLogger(__name__)

# (min, max, label); max=None is open-ended
DEFAULT_SIZE_RANGES: Sequence[tuple[float, Optional[float], str]] = (
    (0, 1, "0-1 hectares"),
    (1, 5, "1-5 hectares"),
    (5, 10, "5-10 hectares"),
    (10, 50, "10-50 hectares"),
    (50, None, "50+ hectares"),
)

# ---------- tiny, single-purpose helpers ----------

_SCALARS = (str, bytes, int, float, list, tuple)

def _as_farm(obj: Any) -> Farm:
    if isinstance(obj, Farm):
        return obj
    if obj is None or isinstance(obj, _SCALARS):
        raise TypeError(f"Cannot read a farm record from {type(obj).__name__}")
    if isinstance(obj, Mapping):
        return Farm.model_validate(dict(obj))
    return Farm.model_validate(obj, from_attributes=True)

def _as_farmer(obj: Any) -> Farmer:
    if isinstance(obj, Farmer):
        return obj
    if isinstance(obj, (str, FarmerStatus)) or obj is None:
        return Farmer(status=obj)
    if isinstance(obj, _SCALARS):
        raise TypeError(f"Cannot read a farmer record from {type(obj).__name__}")
    if isinstance(obj, Mapping):
        return Farmer.model_validate(dict(obj))
    return Farmer.model_validate(obj, from_attributes=True)

def _has_authoritative_size(farm: Farm) -> bool:
    return farm.farm_size is not None and farm.farm_size > 0

def _count(farm_count: Any) -> int:
    try:
        return int(farm_count or 0)
    except (TypeError, ValueError, OverflowError):
        logger.warning("Invalid farm count %r; treating as 0", farm_count)
        return 0

def _derive_from_polygon(
    farm: Farm,
    method: AreaMethod = AreaMethod.SPHERICAL,
) -> tuple[Optional[float], float]:
    """Returns (hectares rounded to 2dp or None, raw square meters)."""
    if farm.farm_polygon is None:
        return None, 0.0
    sqm = polygon_area(farm.farm_polygon, method)
    hectares = round2(to_hectares(sqm))
    if not hectares or hectares <= 0:
        return None, sqm
    return hectares, sqm

# ---------- farm size ----------

def resolve_farm_size(farm: Any, *, method: AreaMethod = AreaMethod.SPHERICAL) -> Farm:
    """
    Returns a Farm snapshot with farm_size filled in when it can be derived.
    - farm_size > 0: authoritative, returned unchanged (geometry is not consulted).
    - otherwise a usable polygon gives farm_size (ha, 2dp) with calculated_size=True,
      and farm_area (m²) when the record has none.
    - otherwise unchanged; farm_size stays unknown.
    """
    farm = _as_farm(farm)
    if _has_authoritative_size(farm):
        return farm

    hectares, sqm = _derive_from_polygon(farm, method)
    if hectares is None:
        return farm

    update: dict[str, Any] = {"farm_size": hectares, "calculated_size": True}
    if farm.farm_area is None:
        update["farm_area"] = sqm
    return farm.model_copy(update=update)

def _resolve_or_none(farm: Any, method: AreaMethod) -> Optional[Farm]:
    try:
        return resolve_farm_size(farm, method=method)
    except (ValidationError, TypeError, ValueError) as e:
        logger.warning("Skipping unreadable farm record: %s", e)
        return None

def resolve_farms(
    farms: Optional[Iterable[Any]],
    *,
    method: AreaMethod = AreaMethod.SPHERICAL,
) -> list[Optional[Farm]]:
    """Resolve a batch; unreadable records come back as None in their slot."""
    if not farms:
        return []
    return [_resolve_or_none(f, method) for f in farms]

def total_hectares(
    farms: Optional[Iterable[Any]],
    *,
    method: AreaMethod = AreaMethod.SPHERICAL,
) -> float:
    """Sum of resolved farm sizes (unknown counts as 0), rounded to 2dp."""
    total = 0.0
    for farm in resolve_farms(farms, method=method):
        if farm is not None and farm.farm_size is not None:
            total += farm.farm_size
    return round2(total)

def farms_frame(
    farms: Optional[Iterable[Any]],
    *,
    method: AreaMethod = AreaMethod.SPHERICAL,
) -> pd.DataFrame:
    rows = [
        {
            "farm_id": f.farm_id,
            "farm_size": f.farm_size,
            "calculated_size": f.calculated_size,
            "farm_area": f.farm_area,
        }
        for f in resolve_farms(farms, method=method)
        if f is not None
    ]
    return pd.DataFrame(rows, columns=["farm_id", "farm_size", "calculated_size", "farm_area"])

def size_distribution(
    farms: Optional[Iterable[Any]],
    ranges: Optional[Sequence[tuple[float, Optional[float], str]]] = None,
    *,
    method: AreaMethod = AreaMethod.SPHERICAL,
) -> list[dict[str, Any]]:
    """
    Bucket resolved farm sizes into hectare ranges ([min, max)).
    Percentages are of ALL records, including those with unknown size.
    """
    ranges = list(ranges or DEFAULT_SIZE_RANGES)
    farms = list(farms or [])
    frame = farms_frame(farms, method=method)
    total = len(farms)

    edges = [float(lo) for lo, _, _ in ranges]
    last_hi = ranges[-1][1]
    edges.append(float("inf") if last_hi is None else float(last_hi))
    labels = [label for _, _, label in ranges]

    sizes = pd.to_numeric(frame["farm_size"], errors="coerce").dropna().astype(float)
    buckets = pd.cut(sizes, bins=edges, labels=labels, right=False)
    counts = buckets.value_counts()

    out = []
    for label in labels:
        count = int(counts.get(label, 0))
        out.append({
            "range": label,
            "count": count,
            "percentage": int(round_half_up(count / total * 100)) if total > 0 else 0,
        })
    return out

# ---------- farmer status ----------

def resolve_farmer_status(farmer: Any, farm_count: Any) -> FarmerStatus:
    """
    Validated/Verified are never changed here, whatever the farm count.
    Otherwise: FarmCaptured when the farmer has farms, else Enrolled.
    """
    current = _as_farmer(farmer).status
    if current.is_terminal:
        return current
    if _count(farm_count) > 0:
        return FarmerStatus.FARM_CAPTURED
    return FarmerStatus.ENROLLED

def status_counts(farmers: Optional[Iterable[Any]]) -> dict[str, int]:
    """Farmers per status; every status is present, zero-filled."""
    counter: Counter[str] = Counter({s.value: 0 for s in FarmerStatus})
    for farmer in farmers or []:
        try:
            counter[_as_farmer(farmer).status.value] += 1
        except (ValidationError, TypeError, ValueError) as e:
            logger.warning("Skipping unreadable farmer record: %s", e)
    return dict(counter)

def plan_status_updates(pairs: Optional[Iterable[tuple[Any, Any]]]) -> StatusUpdatePlan:
    """
    Given (farmer, farm_count) pairs, list the status changes a maintenance
    pass should persist. Terminal farmers are left out of the total; a bad
    record goes to `errors` and the pass carries on.
    """
    plan = StatusUpdatePlan()
    for farmer, farm_count in pairs or []:
        farmer_id = read_field(farmer, "farmer_id", "farmerId", "id")
        try:
            current = _as_farmer(farmer)
        except (ValidationError, TypeError, ValueError) as e:
            plan.total += 1
            plan.errors.append({"farmer_id": farmer_id, "error": str(e)})
            continue

        if current.status.is_terminal:
            continue
        plan.total += 1

        new_status = resolve_farmer_status(current, farm_count)
        if new_status != current.status:
            plan.changes.append(
                StatusChange(farmer_id=current.farmer_id, previous=current.status, status=new_status)
            )

    plan.updated = len(plan.changes)
    logger.info("Farmer status pass: %d/%d farmers to update", plan.updated, plan.total)
    return plan
