"""
Centralized logging.

stdlib logging, configured once. Services get a child logger handed to them at
construction (`get_logger("records")`) rather than importing a global.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from discs.core.settings import settings


@lru_cache
def initialize_logger() -> logging.Logger:
    logging.basicConfig(
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        level=settings.LOG_LEVEL.upper(),
    )
    return logging.getLogger("discs")


def get_logger(name: str) -> logging.Logger:
    return initialize_logger().getChild(name)


logger = initialize_logger()
