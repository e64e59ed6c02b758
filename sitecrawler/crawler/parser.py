"""
HTML link extraction.
"""

import logging
from typing import Iterator, Optional

from bs4 import BeautifulSoup, SoupStrainer


class LinkExtractor:
    """
    Extracts raw href values from anchor elements of an HTML document.

    Hrefs are yielded in document order exactly as written in the markup.
    Duplicates are kept; deduplication happens when links enter the frontier.
    """

    def __init__(self, features: str = 'lxml'):
        self.features = features
        self.logger = logging.getLogger(__name__)
        # Only build anchor elements, the rest of the tree is never needed
        self._only_anchors = SoupStrainer('a')

    def extract(self, html_content: Optional[str]) -> Iterator[str]:
        """
        Lazily yield the href of every anchor that has one.

        Args:
            html_content: Raw HTML document body

        Yields:
            Raw href attribute values
        """
        if not html_content:
            return

        soup = BeautifulSoup(html_content, self.features, parse_only=self._only_anchors)
        for anchor in soup.find_all('a', href=True):
            yield anchor['href']

    def extract_all(self, html_content: Optional[str]) -> list:
        """Extract hrefs eagerly into a list."""
        links = list(self.extract(html_content))
        self.logger.debug(f"Extracted {len(links)} anchor hrefs")
        return links
