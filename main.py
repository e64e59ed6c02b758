#!/usr/bin/env python3
"""
Main entry point for the site crawler.
"""

import argparse
import asyncio
import logging
import sys
import time
from typing import Optional

from sitecrawler import __version__
from sitecrawler.crawler.classifier import UrlClassifier
from sitecrawler.crawler.fetcher import WebFetcher
from sitecrawler.crawler.frontier import VisitedRegistry
from sitecrawler.crawler.parser import LinkExtractor
from sitecrawler.crawler.scheduler import CrawlCoordinator
from sitecrawler.storage.results import export_registry_json, format_registry
from sitecrawler.utils.config import Config, load_config
from sitecrawler.utils.logger import log_system_info, setup_logging
from sitecrawler.utils.monitoring import initialize_monitoring


class CrawlerApp:
    """Main application class for the site crawler."""

    def __init__(self, config: Config):
        self.config = config
        self.coordinator: Optional[CrawlCoordinator] = None
        self.logger = logging.getLogger(__name__)

    async def probe(self, fetcher: WebFetcher, origin: str):
        """Report the origin's status before crawling. Never aborts the crawl."""
        result = await fetcher.probe(origin)
        if result.error:
            print(f"Status for {origin}: unreachable ({result.error})")
        else:
            print(f"Status for {origin}: {result.status_code}")
            if result.under_load:
                print("Server under load, results may be incomplete")

    async def run(self, origin: str) -> VisitedRegistry:
        """Probe the origin, then crawl it."""
        crawler_config = self.config.crawler
        monitor = initialize_monitoring(
            enabled=self.config.monitoring.metrics_enabled,
            prometheus_port=self.config.monitoring.prometheus_port
        )

        self.logger.info("=== SITE CRAWLER STARTING ===")
        self.logger.info(f"Origin: {origin}")
        self.logger.info(f"Max concurrent fetches: {crawler_config.max_concurrency}")
        self.logger.info(f"Request timeout: {crawler_config.request_timeout or 'none'}")

        async with WebFetcher(
            user_agent=crawler_config.user_agent,
            request_timeout=crawler_config.request_timeout,
            max_connections=crawler_config.max_concurrency,
            max_content_size=crawler_config.max_content_size
        ) as fetcher:
            if crawler_config.startup_probe:
                await self.probe(fetcher, origin)

            self.coordinator = CrawlCoordinator(
                origin,
                fetcher,
                max_concurrency=crawler_config.max_concurrency,
                extractor=LinkExtractor(crawler_config.html_parser),
                monitor=monitor,
                stats_interval=crawler_config.stats_interval
            )
            registry = await self.coordinator.crawl()

        self.logger.info(f"Monitoring summary: {monitor.get_summary()}")
        self.logger.info("=== SITE CRAWLER FINISHED ===")
        return registry

    def report(self, registry: VisitedRegistry, origin: str, output: Optional[str] = None):
        """Print the registry and export it when an output file is configured."""
        if self.config.output.print_registry:
            print(format_registry(registry))
        print(f"Visited {len(registry)} pages")

        output = output or self.config.output.file
        if output:
            export_registry_json(registry, output, root=origin)


class _ArgumentParser(argparse.ArgumentParser):
    """Argument parser that exits with status 1 on usage errors."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        description="Crawl a single website and map every page to its links",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py https://example.com/                       # Crawl with defaults
  python main.py https://example.com/ --config config.yaml  # Custom config
  python main.py https://example.com/ --output links.json   # Also export JSON
        """
    )

    parser.add_argument(
        'origin',
        help='Root URL of the site to crawl'
    )

    parser.add_argument(
        '--config',
        default=None,
        help='Path to a YAML configuration file (optional)'
    )

    parser.add_argument(
        '--output',
        default=None,
        help='Write the resulting link map to this JSON file'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'Site Crawler {__version__}'
    )

    return parser


def main(argv=None) -> int:
    """Main entry point."""
    started = time.time()
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        UrlClassifier(args.origin)
    except ValueError as e:
        parser.error(str(e))

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError, TypeError) as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 1

    setup_logging(config.logging)
    log_system_info()

    app = CrawlerApp(config)
    try:
        registry = asyncio.run(app.run(args.origin))
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 130
    except Exception as e:
        logging.getLogger(__name__).error(f"Fatal error: {e}", exc_info=True)
        print(f"Fatal error: {e}", file=sys.stderr)
        return 1

    app.report(registry, args.origin, args.output)
    print(f"Elapsed: {time.time() - started:.2f} seconds")
    return 0


if __name__ == '__main__':
    sys.exit(main())
