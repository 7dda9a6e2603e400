"""
Expiry sweeper job.

    python -m src.jobs.token_sweeper          # every SWEEPER_INTERVAL_SECONDS
    python -m src.jobs.token_sweeper --once   # single pass
"""

import argparse
import asyncio
import logging

from config import ApplicationConfig
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.reset_policy import ResetPolicy
from src.app.use_cases.admin import SweepExpiredTokensUseCase
from src.app.use_cases.auth.dtos import CleanupTokensResponse

logger = logging.getLogger(__name__)


async def run_sweep_cycle(session_factory, policy: ResetPolicy) -> CleanupTokensResponse:
    async with session_factory() as session:
        use_case = SweepExpiredTokensUseCase(SqlAlchemyUnitOfWork(session), policy=policy)
        result = await use_case.execute()
    return result.value


async def run_forever(session_factory, policy: ResetPolicy, interval: float) -> None:
    while True:
        try:
            await run_sweep_cycle(session_factory, policy)
        except Exception:
            # A failed pass is retried on the next tick
            logger.exception("Token sweep failed")
        await asyncio.sleep(interval)


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Expire and purge password reset tokens")
    parser.add_argument("--once", action="store_true", help="run a single sweep and exit")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=ApplicationConfig.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    from src.depends import AsyncSessionLocal

    policy = ResetPolicy.from_config(ApplicationConfig)
    if args.once:
        swept = asyncio.run(run_sweep_cycle(AsyncSessionLocal, policy))
        print(swept.message)
        return

    asyncio.run(
        run_forever(AsyncSessionLocal, policy, float(ApplicationConfig.SWEEPER_INTERVAL_SECONDS))
    )


if __name__ == "__main__":
    main()
