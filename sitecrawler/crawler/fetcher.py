"""
Web page fetcher built on a single shared aiohttp session.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Dict, Optional

import aiohttp
from aiohttp import ClientError, ClientSession, ClientTimeout

from ..utils.config import DEFAULT_USER_AGENT


STATUS_UNDER_LOAD = 202


class ContentTooLargeError(Exception):
    """Raised when a response body exceeds max_content_size."""


@dataclass
class FetchResult:
    """Result of a fetch operation."""
    url: str
    status_code: int
    content: Optional[str] = None
    error: Optional[str] = None
    fetch_time: float = 0.0
    content_type: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.status_code == 200

    @property
    def under_load(self) -> bool:
        return self.status_code == STATUS_UNDER_LOAD


class WebFetcher:
    """
    Issues GET requests with a fixed browser identity.

    One session (and its connection pool) is shared by every worker of a crawl.
    Transport failures never raise out of fetch(); they come back as a
    FetchResult with status_code 0 and the error message set.
    """

    def __init__(self, user_agent: str = DEFAULT_USER_AGENT,
                 request_timeout: Optional[float] = None,
                 max_connections: int = 100,
                 max_content_size: int = 10 * 1024 * 1024):
        self.user_agent = user_agent
        self.request_timeout = request_timeout
        self.max_connections = max_connections
        self.max_content_size = max_content_size

        self.logger = logging.getLogger(__name__)
        self.session: Optional[ClientSession] = None

        self.stats = {
            'total_requests': 0,
            'successful_requests': 0,
            'non_200_responses': 0,
            'failed_requests': 0,
            'total_bytes_downloaded': 0
        }

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def start(self):
        """Initialize the fetcher session."""
        if self.session is None:
            # total=None disables the timeout entirely
            timeout = ClientTimeout(total=self.request_timeout)
            headers = {'User-Agent': self.user_agent}

            self.session = aiohttp.ClientSession(
                timeout=timeout,
                headers=headers,
                connector=aiohttp.TCPConnector(
                    limit=self.max_connections,
                    ttl_dns_cache=300,
                    use_dns_cache=True
                )
            )
            self.logger.info("WebFetcher session started")

    async def close(self):
        """Close the fetcher session."""
        if self.session:
            await self.session.close()
            self.session = None
            self.logger.info("WebFetcher session closed")

    async def fetch(self, url: str) -> FetchResult:
        """
        Fetch a single URL.

        The body is only downloaded for 200 responses.

        Args:
            url: The absolute URL to fetch

        Returns:
            FetchResult object containing the response data or error information
        """
        if self.session is None:
            raise RuntimeError("WebFetcher.start() must be called before fetch()")

        start_time = time.time()
        self.stats['total_requests'] += 1

        try:
            async with self.session.get(url) as response:
                content_type = response.headers.get('content-type', '').lower()

                if response.status != 200:
                    self.stats['non_200_responses'] += 1
                    self.logger.debug(f"Non-200 response for {url}: {response.status}")
                    return FetchResult(
                        url=url,
                        status_code=response.status,
                        content_type=content_type,
                        fetch_time=time.time() - start_time
                    )

                content = None
                if self._is_text_content(content_type):
                    content = await self._read_content(response)
                else:
                    self.logger.debug(f"Skipping non-text content: {url} ({content_type})")

                self.stats['successful_requests'] += 1
                if content:
                    self.stats['total_bytes_downloaded'] += len(content)

                self.logger.debug(f"Fetched {url}: {response.status} ({len(content) if content else 0} chars)")
                return FetchResult(
                    url=url,
                    status_code=response.status,
                    content=content,
                    content_type=content_type,
                    fetch_time=time.time() - start_time
                )

        except ContentTooLargeError as e:
            error_msg = "Content too large"
            self.logger.warning(f"Abandoning {url}: {e}")

        except asyncio.TimeoutError:
            error_msg = "Request timeout"
            self.logger.warning(f"Timeout fetching {url}")

        except ClientError as e:
            error_msg = f"Client error: {e}"
            self.logger.warning(f"Client error fetching {url}: {e}")

        except ValueError as e:
            error_msg = f"Invalid URL: {e}"
            self.logger.warning(f"Could not request {url}: {e}")

        self.stats['failed_requests'] += 1
        return FetchResult(
            url=url,
            status_code=0,
            error=error_msg,
            fetch_time=time.time() - start_time
        )

    async def probe(self, url: str) -> FetchResult:
        """
        Issue a single connectivity check against the crawl origin.

        A 202 answer means the server accepted the request but is under load;
        the result is informational and never stops a crawl.
        """
        result = await self.fetch(url)
        if result.error:
            self.logger.warning(f"Startup probe for {url} failed: {result.error}")
        elif result.under_load:
            self.logger.warning(f"Server under load: {url} answered {result.status_code}")
        else:
            self.logger.info(f"Startup probe for {url}: {result.status_code}")
        return result

    def _is_text_content(self, content_type: str) -> bool:
        """Check if content type is text-based."""
        if not content_type:
            return True

        text_types = [
            'text/html',
            'text/plain',
            'text/xml',
            'application/xml',
            'application/xhtml+xml'
        ]

        return any(text_type in content_type for text_type in text_types)

    async def _read_content(self, response) -> str:
        """
        Read the response body with a size limit.

        Returns:
            Decoded body

        Raises:
            ContentTooLargeError: if the body is larger than max_content_size
        """
        content_length = response.headers.get('content-length')
        if content_length and content_length.isdigit() and int(content_length) > self.max_content_size:
            raise ContentTooLargeError(f"Content-Length {content_length} exceeds {self.max_content_size} bytes")

        content_bytes = bytearray()
        async for chunk in response.content.iter_chunked(8192):
            content_bytes.extend(chunk)
            if len(content_bytes) > self.max_content_size:
                raise ContentTooLargeError(f"Body exceeded {self.max_content_size} bytes while reading")

        encoding = response.charset or 'utf-8'
        try:
            return content_bytes.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            return content_bytes.decode('utf-8', errors='ignore')

    def get_stats(self) -> Dict[str, int]:
        """Get fetcher statistics."""
        return self.stats.copy()
