"""Worker process for scheduled accrual recalculation.

Runs an asyncio loop that recalculates every active employee's accrual
periods once per configured interval (daily by default).
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date

from vacation_ledger.config import get_settings
from vacation_ledger.db import get_session_factory

logger = logging.getLogger(__name__)


async def run_accrual_loop() -> None:
    """Main worker loop that recalculates accruals for all active employees."""
    from vacation_ledger.services.accrual import recalculate_all_accruals

    settings = get_settings()
    logger.info("Accrual worker started, interval=%ds", settings.accrual_interval_seconds)
    session_factory = get_session_factory()

    while True:
        today = date.today()
        logger.info("Recalculating accruals as of %s", today)
        try:
            async with session_factory() as session:
                result = await recalculate_all_accruals(session, today)
            logger.info(
                "Accrual run complete for %s: processed=%d errors=%d",
                today,
                result.processed,
                result.errors,
            )
        except Exception:
            logger.exception("Accrual run failed for %s", today)

        await asyncio.sleep(settings.accrual_interval_seconds)


def main() -> None:
    """Entry point for the worker process."""
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    asyncio.run(run_accrual_loop())


if __name__ == "__main__":
    main()
