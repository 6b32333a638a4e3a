"""Process-wide logging setup."""
from __future__ import annotations

import logging

from townsquare.core.settings import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Apply ``LOG_LEVEL`` to the root logger; repeated calls are no-ops."""
    logging.basicConfig(level=(level or settings.log_level).upper(), format=LOG_FORMAT)
    if not settings.sql_debug:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
