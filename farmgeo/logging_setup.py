"""
Process-wide logging for the farmgeo CLI and batch jobs.

Handlers and formats live in `farmgeo/config/logging.yaml`. The level comes
from settings (`app.log_level`, or `FARMGEO_LOG_LEVEL`) and is applied to the
root logger and every handler, so `FARMGEO_LOG_LEVEL=DEBUG` also surfaces the
per-ring "dropped position" messages from the geometry code.
"""

from __future__ import annotations

import copy
import logging.config

from farmgeo.config.settings import get_logging_config, get_settings


def configure_logging() -> None:
    settings = get_settings()
    # the cached dict is shared; never edit it in place
    config = copy.deepcopy(get_logging_config())

    level = settings.app.log_level.upper()
    config.setdefault("root", {})["level"] = level
    for handler in config.get("handlers", {}).values():
        if isinstance(handler, dict) and "level" in handler:
            handler["level"] = level

    logging.config.dictConfig(config)
