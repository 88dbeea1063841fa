from __future__ import annotations

import json

import pytest

from farmgeo import resolvers
from farmgeo.config.settings import Settings
from farmgeo.geometry import AreaMethod
from farmgeo.service import FarmAnalyticsService
from farmgeo.sources import CsvSource, GeoJSONSource


SQUARE = [[0, 0], [0.0009, 0], [0.0009, 0.0009], [0, 0.0009], [0, 0]]
POLYGON = {"type": "Polygon", "coordinates": [SQUARE]}


class ResolverSpy:
    """Records every call so tests can check what the service asked for."""

    def __init__(self):
        self.calls: list[tuple[dict, AreaMethod]] = []

    def __call__(self, record, *, method=AreaMethod.SPHERICAL):
        self.calls.append((record, method))
        return resolvers.resolve_farm_size(record, method=method)


def csv_polygon(value: dict) -> str:
    """Embed GeoJSON inside a CSV field with doubled quotes."""
    return json.dumps(value).replace('"', '""')


def feature(farm_id: str, geometry: dict | None = None, **props) -> dict:
    return {
        "type": "Feature",
        "geometry": geometry,
        "properties": {"farm_id": farm_id, **props},
    }


@pytest.fixture
def service():
    spy = ResolverSpy()
    return FarmAnalyticsService(settings=Settings(), resolver=spy), spy


# ---------- sources ----------

def test_csv_source_parses_polygon_and_sizes():
    content = (
        "farm_id,farm_size,farm_polygon,farm_area\n"
        f'F1,,"{csv_polygon(POLYGON)}",\n'
        "F2,2.75,,\n"
    )
    records = list(CsvSource(content).records())

    assert [r["farm_id"] for r in records] == ["F1", "F2"]
    assert records[0]["farm_polygon"] == POLYGON
    assert records[0]["farm_size"] is None
    assert records[1]["farm_size"] == "2.75"
    assert records[1]["farm_polygon"] is None
    assert all(r["source"] == "csv" for r in records)


def test_csv_source_accepts_camel_case_headers():
    content = "id,farmSize,farmArea\nF9,4,40000\n"
    (rec,) = CsvSource(content).records()
    assert rec == {"farm_id": "F9", "farm_size": "4", "farm_polygon": None, "farm_area": "40000", "source": "csv"}


def test_csv_source_rejects_invalid_polygon_json():
    content = 'farm_id,farm_size,farm_polygon\nF3,,"{not-json}"\n'
    with pytest.raises(ValueError, match="Line 2"):
        list(CsvSource(content).records())


def test_geojson_source_reads_feature_collection():
    fc = {
        "type": "FeatureCollection",
        "features": [
            feature("G1", POLYGON),
            feature("G2", None, farmSize=3.2, farmArea=32000),
        ],
    }
    records = list(GeoJSONSource(fc).records())

    assert [r["farm_id"] for r in records] == ["G1", "G2"]
    assert records[0]["farm_polygon"] == POLYGON
    assert records[1]["farm_size"] == 3.2
    assert records[1]["farm_area"] == 32000


def test_geojson_source_reads_single_feature_and_feature_id():
    feat = {"type": "Feature", "id": "X1", "geometry": POLYGON, "properties": {}}
    (rec,) = GeoJSONSource(feat).records()
    assert rec["farm_id"] == "X1"


@pytest.mark.parametrize("body", [{"type": "Polygon", "coordinates": []}, {}, []])
def test_geojson_source_rejects_non_features(body):
    with pytest.raises(ValueError, match="Feature or FeatureCollection"):
        list(GeoJSONSource(body).records())


def test_geojson_source_skips_malformed_features(caplog):
    fc = {
        "type": "FeatureCollection",
        "features": [
            feature("G1", POLYGON),
            None,
            "junk",
            {"type": "Feature", "id": "G4", "geometry": None, "properties": ["not", "a", "dict"]},
        ],
    }
    records = list(GeoJSONSource(fc).records())

    assert [r["farm_id"] for r in records] == ["G1", "G4"]
    assert "Skipping feature 1" in caplog.text
    assert "Skipping feature 2" in caplog.text


def test_geojson_source_rejects_non_list_features():
    with pytest.raises(ValueError, match="must be a list"):
        list(GeoJSONSource({"type": "FeatureCollection", "features": 5}).records())


# ---------- service ----------

def test_summary_over_geojson(service):
    svc, spy = service
    fc = {
        "type": "FeatureCollection",
        "features": [
            feature("G1", POLYGON),
            feature("G2", None, farm_size=7),
            feature("G3", None),
            feature("G4", POLYGON, farm_size=60),
        ],
    }
    summary = svc.summarize(GeoJSONSource(fc))

    assert summary["farms"] == 4
    assert summary["total_hectares"] == 68.0
    assert summary["calculated"] == 1
    assert summary["unknown_size"] == 1
    assert summary["skipped"] == 0
    assert [b["count"] for b in summary["size_distribution"]] == [0, 1, 1, 0, 1]
    assert [b["percentage"] for b in summary["size_distribution"]] == [0, 25, 25, 0, 25]
    assert len(spy.calls) == 4
    assert all(method is AreaMethod.SPHERICAL for _, method in spy.calls)


def test_summary_uses_configured_area_method():
    spy = ResolverSpy()
    settings = Settings.model_validate({"area": {"method": "planar"}})
    svc = FarmAnalyticsService(settings=settings, resolver=spy)

    content = f'farm_id,farm_polygon\nF1,"{csv_polygon(POLYGON)}"\n'
    summary = svc.summarize(CsvSource(content))

    assert summary["total_hectares"] == 1.0
    assert spy.calls[0][1] is AreaMethod.PLANAR


def test_summary_skips_records_the_resolver_rejects(caplog):
    def picky(record, *, method=AreaMethod.SPHERICAL):
        if record["farm_id"] == "BAD":
            raise ValueError("corrupt record")
        return resolvers.resolve_farm_size(record, method=method)

    svc = FarmAnalyticsService(settings=Settings(), resolver=picky)
    content = "farm_id,farm_size\nOK,2\nBAD,3\n"
    summary = svc.summarize(CsvSource(content))

    assert summary["farms"] == 1
    assert summary["skipped"] == 1
    assert summary["total_hectares"] == 2.0
    assert "Skipping farm BAD" in caplog.text


def test_summary_carries_on_past_malformed_features(service):
    svc, spy = service
    fc = {"type": "FeatureCollection", "features": [feature("G1", POLYGON), None, feature("G2", farm_size=2)]}

    summary = svc.summarize(GeoJSONSource(fc))

    assert summary["farms"] == 2
    assert summary["total_hectares"] == 3.0
    assert len(spy.calls) == 2


def test_summary_of_empty_export(service):
    svc, _ = service
    summary = svc.summarize(GeoJSONSource({"type": "FeatureCollection", "features": []}))

    assert summary["farms"] == 0
    assert summary["total_hectares"] == 0
    assert all(b["percentage"] == 0 for b in summary["size_distribution"])
