"""
URL scope classification for single-site crawling.

An href is in scope when it points at the crawl root's origin, either
absolutely or as a root-relative path. No further normalization is done:
URLs that differ only in case, query string, fragment or trailing slash
are treated as distinct pages.
"""

from typing import Optional
from urllib.parse import urlparse


_ORIGIN_BOUNDARY = ('/', '?', '#')


class UrlClassifier:
    """Decides whether raw hrefs belong to the crawl root's site."""

    def __init__(self, root: str):
        parsed = urlparse(root)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError(f"Crawl root must be an absolute URL: {root!r}")

        self.root = root
        self.scheme = parsed.scheme
        self.origin = f"{parsed.scheme}://{parsed.netloc}"

    def classify(self, href: str) -> Optional[str]:
        """
        Classify a raw href against the crawl root.

        Args:
            href: The href attribute value as found in the document

        Returns:
            The absolute URL if the href is in scope, otherwise None
        """
        href = href.strip() if href else ''
        if not href:
            return None

        if href.startswith('//'):
            # protocol-relative: names a host, so it is not root-relative;
            # borrow the root's scheme and apply the origin test below
            href = f"{self.scheme}:{href}"
        elif href.startswith('/'):
            return self.origin + href

        if self._same_origin(href):
            return href

        return None

    def is_in_scope(self, href: str) -> bool:
        return self.classify(href) is not None

    def _same_origin(self, url: str) -> bool:
        # a bare prefix match would also accept hosts like example.test.evil
        if not url.startswith(self.origin):
            return False
        rest = url[len(self.origin):]
        return not rest or rest.startswith(_ORIGIN_BOUNDARY)


def classify(href: str, root: str) -> Optional[str]:
    """Classify a single href against root. Returns the absolute URL or None."""
    return UrlClassifier(root).classify(href)
