"""Logging setup shared by the API entry point and scripts."""

import logging

from reservation_engine.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format=LOG_FORMAT,
    )


__all__ = ["configure_logging", "LOG_FORMAT"]
