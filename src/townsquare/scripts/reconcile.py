"""Recompute denormalized counters from source rows.

Usage: ``python -m townsquare.scripts.reconcile``
"""
from __future__ import annotations

import logging

from townsquare.db.session import SessionLocal
from townsquare.core.log import configure_logging
from townsquare.services.counters import reconcile_counters

logger = logging.getLogger(__name__)


def main() -> int:
    configure_logging()
    with SessionLocal() as session:
        fixed = reconcile_counters(session)
    logger.info("Reconciliation finished; %d rows corrected", fixed)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
