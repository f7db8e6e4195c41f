from __future__ import annotations

import logging
import logging.config

from hotfeed.core.settings import settings

log = logging.getLogger("hotfeed")


def configure_logging(level: str | None = None) -> None:
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {"format": "[%(levelname)s] %(asctime)s %(name)s - %(message)s"},
            },
            "handlers": {
                "console": {"class": "logging.StreamHandler", "formatter": "default"},
            },
            "loggers": {
                "hotfeed": {"handlers": ["console"], "level": (level or settings.log_level).upper(), "propagate": False},
            },
        }
    )
