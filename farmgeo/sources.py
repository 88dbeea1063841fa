# farmgeo/sources.py
from __future__ import annotations
from typing import Iterable, Protocol, Any, Dict
import csv, io, json, logging

logger = logging.getLogger(__name__)

class FarmSource(Protocol):
    def records(self) -> Iterable[Dict[str, Any]]:
        """Yield normalized dicts with keys:
        farm_id, farm_size, farm_polygon, farm_area, source
        """
        ...

def _first(mapping: Dict[str, Any], *names: str) -> Any:
    for n in names:
        v = mapping.get(n)
        if v not in (None, ""):
            return v
    return None

class CsvSource(FarmSource):
    def __init__(self, content: str):
        self._content = content

    def records(self) -> Iterable[Dict[str, Any]]:
        reader = csv.DictReader(io.StringIO(self._content))
        for line_no, row in enumerate(reader, start=2):
            raw_polygon = _first(row, "farm_polygon", "farmPolygon")
            try:
                polygon = json.loads(raw_polygon) if raw_polygon else None
            except json.JSONDecodeError as e:
                raise ValueError(f"Line {line_no}: farm_polygon is not valid JSON: {e}") from e
            yield {
                "farm_id": _first(row, "farm_id", "farmId", "id"),
                "farm_size": _first(row, "farm_size", "farmSize"),
                "farm_polygon": polygon,
                "farm_area": _first(row, "farm_area", "farmArea"),
                "source": "csv",
            }

class GeoJSONSource(FarmSource):
    def __init__(self, geojson: dict):
        self._geojson = geojson

    def records(self) -> Iterable[Dict[str, Any]]:
        gtype = self._geojson.get("type") if isinstance(self._geojson, dict) else None
        if gtype == "FeatureCollection":
            features = self._geojson.get("features", []) or []
            if not isinstance(features, list):
                raise ValueError("FeatureCollection.features must be a list")
        elif gtype == "Feature":
            features = [self._geojson]
        else:
            raise ValueError("Body must be GeoJSON Feature or FeatureCollection")

        for i, feat in enumerate(features):
            if not isinstance(feat, dict):
                logger.warning("Skipping feature %d: not a GeoJSON object", i)
                continue
            props = feat.get("properties") or {}
            if not isinstance(props, dict):
                logger.warning("Feature %d: ignoring non-object properties", i)
                props = {}
            yield {
                "farm_id": _first(props, "farm_id", "farmId", "id") or feat.get("id"),
                "farm_size": _first(props, "farm_size", "farmSize"),
                "farm_polygon": feat.get("geometry"),
                "farm_area": _first(props, "farm_area", "farmArea"),
                "source": "geojson",
            }
