"""
Result output for the site crawler.
"""

from .results import format_registry, export_registry_json

__all__ = ['format_registry', 'export_registry_json']
