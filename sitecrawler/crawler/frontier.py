"""
Frontier and visited registry for a single crawl.

Both structures are owned by the crawl coordinator. Workers never mutate them
directly; they report what they found and the coordinator applies it here,
which makes every check-then-insert below a single uninterrupted step on the
event loop.
"""

import logging
from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple


class Frontier:
    """Unordered collection of absolute URLs waiting to be fetched."""

    def __init__(self, urls: Optional[Iterable[str]] = None):
        self._urls: Set[str] = set(urls or ())

    def add(self, url: str) -> bool:
        """Add a URL. Returns False if it was already queued."""
        if url in self._urls:
            return False
        self._urls.add(url)
        return True

    def pop(self) -> str:
        """Remove and return an arbitrary URL. Raises KeyError when empty."""
        return self._urls.pop()

    def __contains__(self, url: str) -> bool:
        return url in self._urls

    def __len__(self) -> int:
        return len(self._urls)

    def __bool__(self) -> bool:
        return bool(self._urls)

    def __iter__(self) -> Iterator[str]:
        return iter(set(self._urls))


class VisitedRegistry:
    """
    Map from fetched URL to the in-scope links found on that page.

    Doubles as the crawl's "seen" set and as its final result. Links are kept
    in document order, as written in the page, duplicates included.
    """

    def __init__(self):
        self._pages: Dict[str, List[str]] = {}

    def register(self, url: str) -> bool:
        """Create an empty entry for url. Returns False if it already exists."""
        if url in self._pages:
            return False
        self._pages[url] = []
        return True

    def append(self, parent: str, href: str):
        self._pages.setdefault(parent, []).append(href)

    def get(self, url: str) -> Optional[List[str]]:
        links = self._pages.get(url)
        return list(links) if links is not None else None

    def items(self) -> Iterator[Tuple[str, List[str]]]:
        return iter(self._pages.items())

    def as_dict(self) -> Dict[str, List[str]]:
        return {url: list(links) for url, links in self._pages.items()}

    def __contains__(self, url: str) -> bool:
        return url in self._pages

    def __len__(self) -> int:
        return len(self._pages)

    def __iter__(self) -> Iterator[str]:
        return iter(self._pages)


class CrawlState:
    """
    Shared crawl state: frontier, registry and the set of URLs being fetched.

    offer() is the only way a URL enters the frontier. A URL is accepted only
    if it is not registered, not already queued and not currently in flight.
    """

    def __init__(self, root: str):
        self.root = root
        self.frontier = Frontier([root])
        self.registry = VisitedRegistry()
        self.in_flight: Set[str] = set()
        self.logger = logging.getLogger(__name__)

    def offer(self, url: str) -> bool:
        """Queue url if it has never been seen. Returns True if it was queued."""
        if url in self.registry or url in self.in_flight:
            return False
        return self.frontier.add(url)

    def checkout(self) -> str:
        """Move one URL from the frontier to the in-flight set."""
        url = self.frontier.pop()
        self.in_flight.add(url)
        return url

    def release(self, url: str):
        """Forget an in-flight URL without registering it."""
        self.in_flight.discard(url)

    def record_page(self, url: str, links: Iterable[Tuple[str, str]]) -> int:
        """
        Register a successfully fetched page and its in-scope links.

        Args:
            url: The fetched page
            links: (href as written, absolute URL) pairs in document order

        Returns:
            Number of URLs newly added to the frontier
        """
        self.in_flight.discard(url)
        if not self.registry.register(url):
            # Only reachable if the same URL was dispatched twice
            raise RuntimeError(f"Page registered twice: {url}")

        queued = 0
        for href, absolute in links:
            self.registry.append(url, href)
            if self.offer(absolute):
                queued += 1

        self.logger.debug(f"Recorded {url}: {len(self.registry.get(url))} links, {queued} new")
        return queued

    @property
    def is_exhausted(self) -> bool:
        """Termination predicate: nothing queued and nothing in flight."""
        return not self.frontier and not self.in_flight
