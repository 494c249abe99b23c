"""Expiry worker: periodically moves lapsed intents and stale pending matches forward."""

import asyncio
import logging
import time
from collections.abc import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.db import AsyncSessionLocal
from core.metrics import expiry_sweep_duration
from core.timeutils import Clock, utcnow
from services.intent_lifecycle import IntentLifecycle
from services.match_coordinator import MatchCoordinator

logger = logging.getLogger(__name__)


class ExpiryWorker:
    """Runs expiry sweeps on a fixed interval. Sweeps are idempotent, so overlapping workers are safe."""

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] = AsyncSessionLocal,
        interval_seconds: float = settings.expiry_sweep_interval_seconds,
        clock: Clock = utcnow,
    ) -> None:
        self.session_factory = session_factory
        self.clock = clock
        self.interval_seconds = interval_seconds
        self.running = False

    async def start(self) -> None:
        """Start the expiry worker."""
        self.running = True
        logger.info(f"Expiry worker started, sweeping every {self.interval_seconds}s")

        while self.running:
            try:
                await self.sweep()
            except Exception as e:
                logger.error(f"Error in expiry worker loop: {e}")
            await asyncio.sleep(self.interval_seconds)

    async def stop(self) -> None:
        """Stop the expiry worker."""
        self.running = False

    async def sweep(self) -> tuple[int, int]:
        """
        Run one sweep.

        Returns:
            (expired intents, expired matches)
        """
        t0 = time.perf_counter()
        try:
            async with self.session_factory() as db:
                intents = await IntentLifecycle(db, clock=self.clock).expire_overdue()
            async with self.session_factory() as db:
                matches = await MatchCoordinator(db, clock=self.clock).expire_stale_matches()
        finally:
            expiry_sweep_duration.observe(time.perf_counter() - t0)

        if intents or matches:
            logger.info(f"Sweep expired {intents} intents and {matches} pending matches")
        return intents, matches


async def main() -> None:
    """Run expiry worker."""
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    worker = ExpiryWorker()
    try:
        await worker.start()
    except KeyboardInterrupt:
        await worker.stop()


if __name__ == "__main__":
    asyncio.run(main())
