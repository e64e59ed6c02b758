"""
Crawl coordinator that dispatches page workers under a concurrency cap and
decides when the crawl is finished.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Set, Tuple

from .classifier import UrlClassifier
from .fetcher import WebFetcher
from .frontier import CrawlState, VisitedRegistry
from .parser import LinkExtractor
from ..utils.config import DEFAULT_MAX_CONCURRENCY
from ..utils.logger import get_crawler_logger


class CrawlPhase(Enum):
    """Lifecycle of a coordinator."""
    IDLE = 'idle'
    DRAINING = 'draining'
    DONE = 'done'


@dataclass
class PageOutcome:
    """What a worker reports back to the coordinator for one URL."""
    url: str
    status_code: int = 0
    links: List[Tuple[str, str]] = field(default_factory=list)
    error: Optional[str] = None
    error_type: Optional[str] = None  # 'transport' or 'worker'
    fetch_time: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None and self.status_code == 200


@dataclass
class CrawlStats:
    """Statistics for a crawl run."""
    start_time: float
    end_time: Optional[float] = None
    pages_fetched: int = 0
    pages_registered: int = 0
    links_found: int = 0
    non_200_responses: int = 0
    transport_errors: int = 0
    worker_errors: int = 0
    max_in_flight: int = 0

    @property
    def elapsed_time(self) -> float:
        end = self.end_time if self.end_time is not None else time.time()
        return end - self.start_time

    @property
    def pages_per_second(self) -> float:
        elapsed = self.elapsed_time
        return self.pages_fetched / elapsed if elapsed > 0 else 0.0


class CrawlCoordinator:
    """
    Crawls every in-scope page reachable from a root URL.

    The coordinator is the only owner of the frontier and the visited
    registry. Workers fetch and extract links, then hand a PageOutcome back
    over a queue; the coordinator applies it and re-checks the termination
    predicate (frontier empty and no worker in flight) after every one.
    At most max_concurrency workers run at any time.
    """

    def __init__(self, root: str, fetcher: WebFetcher,
                 max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
                 extractor: Optional[LinkExtractor] = None,
                 monitor=None,
                 stats_interval: float = 0):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")

        self.root = root
        self.fetcher = fetcher
        self.max_concurrency = max_concurrency
        self.classifier = UrlClassifier(root)
        self.extractor = extractor or LinkExtractor()
        self.monitor = monitor
        self.stats_interval = stats_interval
        self.logger = logging.getLogger(__name__)
        self.url_logger = get_crawler_logger(__name__, root=root)

        self.state = CrawlState(root)
        self.phase = CrawlPhase.IDLE
        self.stats = CrawlStats(start_time=time.time())

        self._slots: Optional[asyncio.Semaphore] = None
        self._outcomes: Optional[asyncio.Queue] = None
        self._workers: Set[asyncio.Task] = set()
        self._active = 0

    @property
    def registry(self) -> VisitedRegistry:
        return self.state.registry

    async def crawl(self) -> VisitedRegistry:
        """
        Run the crawl to completion.

        Returns:
            The visited registry mapping each fetched page to its links
        """
        if self.phase is not CrawlPhase.IDLE:
            raise RuntimeError("A coordinator can only crawl once")

        self.phase = CrawlPhase.DRAINING
        self.stats = CrawlStats(start_time=time.time())
        self._slots = asyncio.Semaphore(self.max_concurrency)
        self._outcomes = asyncio.Queue()

        self.logger.info(f"Started crawling {self.root} with up to {self.max_concurrency} concurrent fetches")

        stats_task = None
        if self.stats_interval > 0:
            stats_task = asyncio.create_task(self._stats_reporter())

        try:
            while not self.state.is_exhausted:
                await self._dispatch_ready()
                outcome = await self._outcomes.get()
                self._absorb(outcome)
        finally:
            if stats_task:
                stats_task.cancel()
            await self._cancel_workers()
            self.stats.end_time = time.time()

        self.phase = CrawlPhase.DONE
        self._log_final_stats()
        return self.state.registry

    async def _dispatch_ready(self):
        """Start a worker for every queued URL, waiting for free slots as needed."""
        while self.state.frontier:
            # Only the coordinator mutates the frontier, so it is still
            # non-empty once the slot is acquired
            await self._slots.acquire()
            url = self.state.checkout()
            self._active += 1

            task = asyncio.create_task(self._run_worker(url))
            self._workers.add(task)
            task.add_done_callback(self._workers.discard)

            self.stats.max_in_flight = max(self.stats.max_in_flight, self._active)
            if self.monitor:
                self.monitor.update_active_workers(self._active)
                self.monitor.update_queue_size(len(self.state.frontier))

    async def _run_worker(self, url: str):
        """Process url and always report an outcome, releasing the slot."""
        outcome = PageOutcome(url=url, error="Worker did not finish", error_type='worker')
        try:
            outcome = await self.process(url)
        except Exception as e:
            self.logger.error(f"Worker failed on {url}: {e}", exc_info=True)
            outcome = PageOutcome(url=url, error=f"Worker error: {e}", error_type='worker')
        finally:
            self._active -= 1
            self._slots.release()
            self._outcomes.put_nowait(outcome)

    async def process(self, url: str) -> PageOutcome:
        """
        Fetch one page and collect its in-scope links.

        Does not touch the shared crawl state.
        """
        result = await self.fetcher.fetch(url)

        if result.error:
            self.url_logger.log_url_event(logging.DEBUG, url, f"Abandoning {url}: {result.error}")
            return PageOutcome(
                url=url,
                status_code=result.status_code,
                error=result.error,
                error_type='transport',
                fetch_time=result.fetch_time
            )

        if result.status_code != 200:
            self.url_logger.log_url_event(logging.DEBUG, url, f"Skipping {url}: status {result.status_code}")
            return PageOutcome(url=url, status_code=result.status_code, fetch_time=result.fetch_time)

        links = []
        for href in self.extractor.extract(result.content):
            absolute = self.classifier.classify(href)
            if absolute is not None:
                links.append((href, absolute))

        return PageOutcome(url=url, status_code=200, links=links, fetch_time=result.fetch_time)

    def _absorb(self, outcome: PageOutcome):
        """Apply a worker's outcome to the crawl state."""
        self.stats.pages_fetched += 1

        if outcome.ok:
            queued = self.state.record_page(outcome.url, outcome.links)
            self.stats.pages_registered += 1
            self.stats.links_found += len(outcome.links)
            self.logger.debug(f"Processed {outcome.url}: {len(outcome.links)} links, {queued} queued")
        else:
            self.state.release(outcome.url)
            if outcome.error_type == 'transport':
                self.stats.transport_errors += 1
            elif outcome.error_type == 'worker':
                self.stats.worker_errors += 1
            else:
                self.stats.non_200_responses += 1

        if self.monitor:
            self.monitor.record_page(outcome.url, outcome.status_code, outcome.fetch_time)
            if outcome.error_type:
                self.monitor.record_error(outcome.error_type)
            self.monitor.update_active_workers(self._active)
            self.monitor.update_queue_size(len(self.state.frontier))

    async def _cancel_workers(self):
        """Cancel and await any worker still running."""
        if self._workers:
            pending = list(self._workers)
            for worker in pending:
                if not worker.done():
                    worker.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            self._workers.clear()

    async def _stats_reporter(self):
        """Periodically log crawl progress."""
        while True:
            await asyncio.sleep(self.stats_interval)
            self._log_current_stats()

    def _log_current_stats(self):
        self.logger.info(
            f"Crawl Progress: "
            f"Fetched={self.stats.pages_fetched}, "
            f"Registered={self.stats.pages_registered}, "
            f"Queued={len(self.state.frontier)}, "
            f"InFlight={len(self.state.in_flight)}, "
            f"Errors={self.stats.transport_errors + self.stats.worker_errors}, "
            f"Rate={self.stats.pages_per_second:.1f} pages/s"
        )

    def _log_final_stats(self):
        self.logger.info("=== CRAWL COMPLETED ===")
        self.logger.info(f"Pages fetched: {self.stats.pages_fetched}")
        self.logger.info(f"Pages registered: {self.stats.pages_registered}")
        self.logger.info(f"In-scope links found: {self.stats.links_found}")
        self.logger.info(f"Non-200 responses: {self.stats.non_200_responses}")
        self.logger.info(f"Transport errors: {self.stats.transport_errors}")
        self.logger.info(f"Worker errors: {self.stats.worker_errors}")
        self.logger.info(f"Peak concurrent fetches: {self.stats.max_in_flight}")
        self.logger.info(f"Total time: {self.stats.elapsed_time:.2f} seconds")
        self.logger.info(f"Fetcher stats: {self.fetcher.get_stats()}")

    def get_stats(self) -> dict:
        """Get current crawl statistics."""
        return {
            'phase': self.phase.value,
            'pages_fetched': self.stats.pages_fetched,
            'pages_registered': self.stats.pages_registered,
            'links_found': self.stats.links_found,
            'non_200_responses': self.stats.non_200_responses,
            'transport_errors': self.stats.transport_errors,
            'worker_errors': self.stats.worker_errors,
            'max_in_flight': self.stats.max_in_flight,
            'urls_in_queue': len(self.state.frontier),
            'in_flight': len(self.state.in_flight),
            'active_fetches': self._active,
            'elapsed_time': self.stats.elapsed_time
        }
