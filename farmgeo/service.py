# farmgeo/service.py
from __future__ import annotations
from typing import Any, Callable, Dict, Optional
import logging

from farmgeo import resolvers
from farmgeo.config.settings import Settings, get_settings
from farmgeo.schemas import Farm
from farmgeo.sources import FarmSource

logger = logging.getLogger(__name__)

Resolver = Callable[..., Farm]

class FarmAnalyticsService:
    def __init__(self, *, settings: Settings | None = None, resolver: Resolver | None = None):
        # DI
        self._settings = settings or get_settings()
        self._resolve = resolver or resolvers.resolve_farm_size

    def _resolve_record(self, record: Dict[str, Any]) -> Optional[Farm]:
        try:
            return self._resolve(record, method=self._settings.area.method)
        except (ValueError, TypeError) as e:
            # pydantic.ValidationError is a ValueError
            logger.warning("Skipping farm %s: %s", record.get("farm_id"), e)
            return None

    def summarize(self, source: FarmSource) -> Dict[str, Any]:
        farms: list[Farm] = []
        skipped = 0

        for r in source.records():
            farm = self._resolve_record(r)
            if farm is None:
                skipped += 1
                continue
            farms.append(farm)

        calculated = sum(1 for f in farms if f.calculated_size)
        unknown = sum(1 for f in farms if f.farm_size is None)
        total = resolvers.total_hectares(farms, method=self._settings.area.method)

        logger.info(
            "Summarized %d farms (%d derived from boundary, %d unknown size, %d skipped)",
            len(farms), calculated, unknown, skipped,
        )
        return {
            "farms": len(farms),
            "total_hectares": total,
            "calculated": calculated,
            "unknown_size": unknown,
            "skipped": skipped,
            "size_distribution": resolvers.size_distribution(
                farms,
                self._settings.analytics.as_tuples(),
                method=self._settings.area.method,
            ),
        }
