"""
Web crawler core components.
"""

from .classifier import UrlClassifier, classify
from .parser import LinkExtractor
from .fetcher import WebFetcher, FetchResult, DEFAULT_USER_AGENT
from .frontier import Frontier, VisitedRegistry, CrawlState
from .scheduler import CrawlCoordinator, CrawlPhase, CrawlStats, PageOutcome

__all__ = [
    'UrlClassifier', 'classify',
    'LinkExtractor',
    'WebFetcher', 'FetchResult', 'DEFAULT_USER_AGENT',
    'Frontier', 'VisitedRegistry', 'CrawlState',
    'CrawlCoordinator', 'CrawlPhase', 'CrawlStats', 'PageOutcome'
]
