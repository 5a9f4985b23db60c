"""
poller.py — Periodic feed polling
==================================
Every `period` minutes, fetch all configured feeds concurrently and wait
for the whole batch before going idle again.

Tick schedule is wall-clock based: ticks fall at start + k*period no matter
how long a cycle takes. A cycle that overruns one or more ticks is followed
immediately by a single catch-up cycle (missed ticks are not replayed), and
the schedule stays aligned afterwards. Cycles never overlap. The first poll
happens one full period after start.

Usage:
    from poller import FeedPoller

    poller = FeedPoller(config.feeds, fetcher, config.period)
    poller.start()
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Optional, Sequence

log = logging.getLogger("poller")


def next_deadline(deadline: float, now: float, period: float) -> float:
    """Next tick after the one at `deadline`, given the cycle finished at `now`.

    Overdue ticks collapse into the latest one not after `now`, which then
    fires immediately.
    """
    deadline += period
    if deadline <= now:
        missed = int((now - deadline) // period)
        deadline += missed * period
    return deadline


class FeedPoller:
    """Idle -> Fetching -> Idle, until stop() or process exit."""

    def __init__(
        self,
        sources: Sequence[str],
        fetcher,
        period_minutes: float,
        max_workers: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
        stop_event: Optional[threading.Event] = None,
    ):
        if period_minutes <= 0:
            raise ValueError(f"poll period must be positive, got {period_minutes!r}")
        self.sources = tuple(sources)
        self.fetcher = fetcher
        self.period = float(period_minutes) * 60
        self.max_workers = max_workers
        self.clock = clock
        self.stop_event = stop_event or threading.Event()
        self.cycles = 0
        self._thread = None

    def _fetch_one(self, source: str) -> int:
        try:
            return len(self.fetcher.fetch(source))
        except Exception:
            log.exception("Fetch of %s raised; counting zero entries", source)
            return 0

    def run_cycle(self) -> Dict[str, int]:
        """Fan out one fetch per source and block until every one is done."""
        if not self.sources:
            log.info("No feeds configured; nothing to poll")
            return {}

        workers = self.max_workers or len(self.sources)
        t0 = time.time()
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="fetch") as pool:
            futures = {source: pool.submit(self._fetch_one, source) for source in self.sources}
            counts = {source: fut.result() for source, fut in futures.items()}

        self.cycles += 1
        log.info(
            "Poll cycle %d: %d feeds, %d entries in %.1fs",
            self.cycles, len(counts), sum(counts.values()), time.time() - t0,
        )
        return counts

    def run_forever(self) -> None:
        deadline = self.clock() + self.period
        while True:
            wait = max(0.0, deadline - self.clock())
            if self.stop_event.wait(wait):
                break
            try:
                self.run_cycle()
            except Exception:
                log.exception("Poll cycle failed; waiting for next tick")
            deadline = next_deadline(deadline, self.clock(), self.period)
        log.info("Poller stopped after %d cycles", self.cycles)

    def start(self) -> threading.Thread:
        self._thread = threading.Thread(target=self.run_forever, name="feed-poller", daemon=True)
        self._thread.start()
        log.info("Polling %d feeds every %g minutes", len(self.sources), self.period / 60)
        return self._thread

    def stop(self, timeout: Optional[float] = None) -> None:
        """Ask the loop to exit at its next wait. In-flight fetches are not cancelled."""
        self.stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
