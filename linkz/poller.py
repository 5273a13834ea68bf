from __future__ import annotations

import asyncio
from typing import Iterable, Optional, Protocol, Set

from linkz.config import WatchConfig
from linkz.crawler.fetcher import FetchError
from linkz.crawler.link_extractor import DEFAULT_EXCLUSIONS, extract_links
from linkz.crawler.models import PageData, TickOutcome
from linkz.logger import logger
from linkz.report import Reporter
from linkz.store import SeenStore

__all__ = ("PollerState", "Poller")


class SupportsFetch(Protocol):
    async def fetch(self, url: str) -> str: ...


class PollerState:
    """Target URL and seen-set, guarded together by one lock."""

    def __init__(self, target_url: str, seen: Optional[SeenStore] = None) -> None:
        self._target_url = target_url
        self.seen = seen if seen is not None else SeenStore()
        self.lock = asyncio.Lock()

    @property
    def target_url(self) -> str:
        return self._target_url


class Poller:
    """Fixed-interval poller: every tick fetches the target and reports unseen links.

    Each tick runs as its own task. At most ``max_in_flight`` ticks exist at
    once; when the bound is reached the schedule waits for a slot instead of
    dropping the tick. The fetch-diff-report section of a tick runs under
    ``state.lock``, so ticks never interleave inside it.
    """

    def __init__(
        self,
        state: PollerState,
        fetcher: SupportsFetch,
        reporter: Reporter,
        *,
        interval: float,
        max_in_flight: int = 4,
        exclusions: Iterable[str] = DEFAULT_EXCLUSIONS,
        collapse_equivalent: bool = True,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be > 0")
        if max_in_flight < 1:
            raise ValueError("max_in_flight must be >= 1")
        self.state = state
        self.fetcher = fetcher
        self.reporter = reporter
        self.interval = interval
        self.max_in_flight = max_in_flight
        self.exclusions = tuple(exclusions)
        self.collapse_equivalent = collapse_equivalent
        self.ticks = 0
        self._active = 0
        self._slots = asyncio.Semaphore(max_in_flight)
        self._tasks: Set[asyncio.Task[None]] = set()

    @classmethod
    def from_config(
        cls,
        config: WatchConfig,
        fetcher: SupportsFetch,
        reporter: Reporter,
        state: Optional[PollerState] = None,
    ) -> Poller:
        return cls(
            state or PollerState(config.target_url),
            fetcher,
            reporter,
            interval=config.interval,
            max_in_flight=config.max_in_flight,
            exclusions=config.exclusions,
            collapse_equivalent=config.collapse_equivalent,
        )

    @property
    def in_flight(self) -> int:
        return self._active

    async def run(self, max_ticks: Optional[int] = None) -> None:
        """Tick forever, or *max_ticks* times and then wait for the last ticks to finish."""
        loop = asyncio.get_running_loop()
        next_at = loop.time()
        logger.info("Polling %s every %s s", self.state.target_url, self.interval)
        try:
            while max_ticks is None or self.ticks < max_ticks:
                delay = next_at - loop.time()
                if delay > 0:
                    await asyncio.sleep(delay)
                next_at += self.interval
                await self._slots.acquire()
                self.ticks += 1
                self._active += 1
                task = asyncio.create_task(self._run_tick(self.ticks), name=f"linkz-tick-{self.ticks}")
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)
        except asyncio.CancelledError:
            for task in self._tasks:
                task.cancel()
            raise
        finally:
            if self._tasks:
                await asyncio.gather(*self._tasks, return_exceptions=True)
            logger.info(
                "Stopped after %d ticks: %d links seen, %d errors",
                self.ticks,
                len(self.state.seen),
                self.reporter.errors,
            )

    async def _run_tick(self, tick: int) -> None:
        try:
            await self.tick(tick)
        except Exception as exc:
            logger.exception("Tick %d failed", tick)
            self.reporter.error(exc)
        finally:
            self._active -= 1
            self._slots.release()

    async def tick(self, tick: int = 0) -> TickOutcome:
        """One fetch → extract → diff → report pass."""
        async with self.state.lock:
            url = self.state.target_url
            try:
                body = await self.fetcher.fetch(url)
            except FetchError as exc:
                self.reporter.error(exc)
                return TickOutcome(tick, error=exc)

            extraction = extract_links(
                PageData(url, body), self.exclusions, collapse_equivalent=self.collapse_equivalent
            )
            for err in extraction.errors:
                self.reporter.error(err)
            new_links = self.state.seen.diff_and_record(extraction.links)
            self.reporter.report(new_links)

        logger.debug("Tick %d: %d links, %d new", tick, len(extraction.links), len(new_links))
        return TickOutcome(tick, links=extraction.links, new_links=new_links)
