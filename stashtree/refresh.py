"""Debounced tree refresh scheduling.

Bursts of refresh triggers collapse into one reload. Each key owns a single
``PendingTimer`` slot: a new trigger cancels whatever is pending in that slot
and starts the delay again. Force refreshes share one global slot and always
render. Passive refreshes (a repository's stash ref changed) get one slot per
repository path, re-read the raw stash listing, and render only when it
differs from the last listing seen for that path.

Everything runs on one event loop; the last-seen map is only read and written
from timer-driven tasks.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path

from .config import StashConfig
from .errors import CommandError, LaunchError
from .logger import get_logger

logger = get_logger(__name__)

RawListingFetcher = Callable[[Path], Awaitable[str | None]]
RenderCallback = Callable[[Path | None], None]


class PendingTimer:
    """Single-slot cancel-and-reschedule timer."""

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, delay: float, callback: Callable[[], None]) -> None:
        """Replace any pending callback with ``callback`` after ``delay`` seconds."""
        self.cancel()

        def fire() -> None:
            self._handle = None
            callback()

        self._handle = self._loop.call_later(delay, fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class RefreshScheduler:
    """Debounce force and passive refresh triggers into render calls.

    ``on_render`` receives ``None`` for a full refresh and the repository path
    for a passive one whose stash listing changed.
    """

    def __init__(
        self,
        get_raw_listing: RawListingFetcher,
        on_render: RenderCallback,
        config: StashConfig,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.get_raw_listing = get_raw_listing
        self.on_render = on_render
        self.config = config
        self._loop = loop or asyncio.get_running_loop()
        self._force_timer = PendingTimer(self._loop)
        self._passive_timers: dict[Path, PendingTimer] = {}
        self._last_seen: dict[Path, str | None] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    def update_config(self, config: StashConfig) -> None:
        self.config = config

    def seed_listing(self, path: Path, listing: str | None) -> None:
        """Record ``listing`` as already rendered for ``path``."""
        self._last_seen[path] = listing

    def last_seen(self, path: Path) -> str | None:
        return self._last_seen.get(path)

    def trigger_force(self) -> None:
        self._force_timer.schedule(self.config.force_refresh_delay, self._fire_force)

    def trigger_passive(self, path: Path) -> None:
        timer = self._passive_timers.get(path)
        if timer is None:
            timer = PendingTimer(self._loop)
            self._passive_timers[path] = timer
        timer.schedule(self.config.passive_refresh_delay, lambda: self._fire_passive(path))

    def _fire_force(self) -> None:
        logger.debug("force refresh")
        self.on_render(None)

    def _fire_passive(self, path: Path) -> None:
        task = self._loop.create_task(self._passive_refresh(path))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _passive_refresh(self, path: Path) -> None:
        try:
            listing = await self.get_raw_listing(path)
        except (CommandError, LaunchError) as exc:
            logger.warning("stash listing refresh failed", path=str(path), error=str(exc))
            return

        if path in self._last_seen and self._last_seen[path] == listing:
            logger.debug("stash listing unchanged", path=str(path))
            return
        self._last_seen[path] = listing
        logger.debug("stash listing changed", path=str(path))
        self.on_render(path)

    async def wait_idle(self) -> None:
        """Wait for passive refreshes already past their delay."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    def cancel_all(self) -> None:
        self._force_timer.cancel()
        for timer in self._passive_timers.values():
            timer.cancel()
        for task in list(self._tasks):
            task.cancel()


__all__ = ["PendingTimer", "RefreshScheduler"]
