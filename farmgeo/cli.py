"""
farmgeo CLI entrypoint.

Offline helpers over exported farm records: total hectares and size
distribution for a CSV/GeoJSON export, and the area of a single boundary.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from farmgeo.config.settings import get_settings
from farmgeo.geometry import AreaMethod, farm_area, polygon_centroid, validate_polygon
from farmgeo.logging_setup import configure_logging
from farmgeo.service import FarmAnalyticsService
from farmgeo.sources import CsvSource, FarmSource, GeoJSONSource


def _load_source(path: Path) -> FarmSource:
    """Pick a record source from the file extension."""
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".csv":
        return CsvSource(text)
    try:
        return GeoJSONSource(json.loads(text))
    except json.JSONDecodeError as e:
        raise ValueError(f"{path} is not valid JSON: {e}") from e


def _polygon_from(doc: Any) -> Any:
    if isinstance(doc, dict) and doc.get("type") == "Feature":
        return doc.get("geometry")
    return doc


def _cmd_summary(args: argparse.Namespace) -> int:
    settings = get_settings()
    if args.method:
        settings = settings.model_copy(
            update={"area": settings.area.model_copy(update={"method": AreaMethod(args.method)})}
        )
    service = FarmAnalyticsService(settings=settings)
    summary = service.summarize(_load_source(Path(args.path)))

    if args.json:
        print(json.dumps(summary, indent=2))
        return 0

    print(f"farms: {summary['farms']}  total: {summary['total_hectares']:.2f} ha")
    print(f"  derived from boundary: {summary['calculated']}  unknown size: {summary['unknown_size']}")
    if summary["skipped"]:
        print(f"  skipped: {summary['skipped']}")
    for bucket in summary["size_distribution"]:
        print(f"  {bucket['range']:>16}: {bucket['count']} ({bucket['percentage']}%)")
    return 0


def _cmd_area(args: argparse.Namespace) -> int:
    doc = json.loads(Path(args.path).read_text(encoding="utf-8"))
    polygon = _polygon_from(doc)
    method = AreaMethod(args.method) if args.method else get_settings().area.method

    result = farm_area(polygon, method)
    lon, lat = polygon_centroid(polygon)
    out = {
        "valid": validate_polygon(polygon),
        "area": result.model_dump(by_alias=True),
        "centroid": [lon, lat],
    }
    print(json.dumps(out, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the farmgeo CLI."""
    parser = argparse.ArgumentParser(prog="farmgeo")
    sub = parser.add_subparsers(dest="command", required=True)
    methods = [m.value for m in AreaMethod]

    s = sub.add_parser("summary", help="Total hectares and size distribution of a CSV/GeoJSON export.")
    s.add_argument("path")
    s.add_argument("--method", choices=methods, default=None)
    s.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    s.set_defaults(func=_cmd_summary)

    a = sub.add_parser("area", help="Area and centroid of a GeoJSON Polygon or Feature.")
    a.add_argument("path")
    a.add_argument("--method", choices=methods, default=None)
    a.set_defaults(func=_cmd_area)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m farmgeo.cli`."""
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    func: Any = getattr(args, "func")
    try:
        return int(func(args))
    except (OSError, ValueError) as e:
        print(f"farmgeo: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
