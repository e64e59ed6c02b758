"""
Site Crawler

Concurrent single-site crawler that maps every page to the links it contains.
"""

__version__ = "1.0.0"
__description__ = "A bounded-concurrency crawler for mapping the link graph of a single website"
