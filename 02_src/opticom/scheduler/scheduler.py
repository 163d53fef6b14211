"""BackgroundScheduler implementation."""

import asyncio
import time
from typing import Callable, Protocol

from ..generation import IGenerationDriver
from ..lifecycle import IConversationManager
from ..logging_config import get_logger

logger = get_logger(__name__)


class IScheduler(Protocol):
    """Recurring sweep that advances active conversations."""

    def start(self) -> None:
        """Start the tick loop (idempotent)."""
        ...

    async def stop(self) -> None:
        """Stop ticking, wait for an in-flight sweep, forget advance times."""
        ...

    async def sweep(self) -> int:
        """Advance every eligible active conversation once."""
        ...


class BackgroundScheduler:
    """Non-overlapping periodic sweep with a per-conversation minimum interval."""

    def __init__(
        self,
        conversations: IConversationManager,
        driver: IGenerationDriver,
        response_interval_ms: int = 1000,
        tick_seconds: float | None = None,
        shutdown_timeout: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if response_interval_ms <= 0:
            raise ValueError("response_interval_ms must be positive")

        self._conversations = conversations
        self._driver = driver
        self._interval_ms = response_interval_ms
        # Tick at least every second
        self._tick_seconds = tick_seconds or min(1.0, response_interval_ms / 1000)
        self._shutdown_timeout = shutdown_timeout
        self._clock = clock

        self._last_advance: dict[str, float] = {}
        self._loop_task: asyncio.Task | None = None
        self._sweep_task: asyncio.Task | None = None
        self._sweeping = False
        # Bumped by stop(); a sweep from an earlier run stops recording
        self._generation = 0

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def is_sweeping(self) -> bool:
        return self._sweeping

    @property
    def last_advance(self) -> dict[str, float]:
        return dict(self._last_advance)

    def start(self) -> None:
        """Start the tick loop. Must be called from a running event loop."""
        if self.is_running:
            return

        self._loop_task = asyncio.create_task(self._run())
        logger.info("Scheduler started (tick %.2fs, interval %dms)", self._tick_seconds, self._interval_ms)

    async def stop(self) -> None:
        """
        Stop ticking and clear per-conversation advance times.

        A sweep already in flight is awaited up to ``shutdown_timeout``
        seconds and abandoned after that.
        """
        if self._loop_task:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
            self._loop_task = None

        if self._sweep_task and not self._sweep_task.done():
            try:
                await asyncio.wait_for(asyncio.shield(self._sweep_task), self._shutdown_timeout)
            except asyncio.TimeoutError:
                logger.warning("In-flight sweep did not finish within %.1fs", self._shutdown_timeout)
        self._sweep_task = None
        self._generation += 1
        self._sweeping = False

        self._last_advance.clear()
        logger.info("Scheduler stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._tick_seconds)
            self.tick()

    def tick(self) -> None:
        """Launch a sweep unless one is still running."""
        if self._sweeping or (self._sweep_task and not self._sweep_task.done()):
            logger.debug("Previous sweep still running, skipping tick")
            return
        self._sweep_task = asyncio.create_task(self.sweep())

    async def sweep(self) -> int:
        """
        Advance each active conversation whose last advance is old enough.

        Returns the number of conversations advanced. Never raises: errors
        for one conversation are logged and the sweep moves on.
        """
        if self._sweeping:
            return 0
        if not self._driver.status().is_enabled:
            return 0

        self._sweeping = True
        generation = self._generation
        advanced = 0
        try:
            now = self._clock()
            active = await self._conversations.list_active()

            active_ids = {c.id for c in active}
            for stale_id in set(self._last_advance) - active_ids:
                del self._last_advance[stale_id]
            self._driver.prune(active_ids)

            for conversation in active:
                if generation != self._generation:
                    logger.debug("Scheduler stopped, abandoning sweep")
                    break
                last = self._last_advance.get(conversation.id)
                if last is not None and (now - last) * 1000 < self._interval_ms:
                    continue

                try:
                    await self._driver.advance(conversation)
                except Exception as e:
                    logger.error(
                        "Error advancing conversation %s: %s",
                        conversation.name,
                        e,
                        exc_info=True,
                        extra={"context": {"conversation_id": conversation.id}},
                    )
                if generation != self._generation:
                    break
                self._last_advance[conversation.id] = now
                advanced += 1
        except Exception as e:
            logger.error("Error processing conversations: %s", e, exc_info=True)
        finally:
            if generation == self._generation:
                self._sweeping = False

        return advanced
