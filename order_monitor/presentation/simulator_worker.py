import asyncio
import logging

from order_monitor.application.simulate_status import SimulateStatusTickUseCase
from order_monitor.infrastructure.broadcaster import Broadcaster

logger = logging.getLogger(__name__)


class SimulatorWorker:
    """Runs a simulator tick every ``interval_seconds`` until stopped."""

    def __init__(
        self,
        use_case: SimulateStatusTickUseCase,
        broadcaster: Broadcaster,
        interval_seconds: float = 10.0,
    ):
        self._use_case = use_case
        self._broadcaster = broadcaster
        self._interval_seconds = interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run(self):
        self._broadcaster.set_feed_status(True)
        logger.info(f"Order simulator started, ticking every {self._interval_seconds}s")
        try:
            while True:
                await asyncio.sleep(self._interval_seconds)
                try:
                    await self._use_case()
                except Exception as e:
                    logger.error(f"Simulated tick failed: {e}", exc_info=True)
        finally:
            self._broadcaster.set_feed_status(False)
            logger.info("Order simulator stopped")

    def start(self) -> asyncio.Task:
        if not self.is_running:
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self):
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
