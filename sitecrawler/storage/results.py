"""
Rendering and export of crawl results.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ..crawler.frontier import VisitedRegistry


logger = logging.getLogger(__name__)


def format_registry(registry: VisitedRegistry) -> str:
    """Render the registry as one block per page, links indented below it."""
    lines = []
    for url, links in sorted(registry.items()):
        lines.append(f"{url}:")
        for link in links:
            lines.append(f"    {link}")
    return "\n".join(lines)


def export_registry_json(registry: VisitedRegistry, file_path: str,
                         root: Optional[str] = None) -> Path:
    """
    Write the registry to a JSON file.

    Args:
        registry: Crawl result
        file_path: Destination path; parent directories are created
        root: Crawl root recorded alongside the pages

    Returns:
        The path written
    """
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        'root': root,
        'exported_at': datetime.now(timezone.utc).isoformat(),
        'count': len(registry),
        'pages': registry.as_dict()
    }

    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False, indent=2)

    logger.info(f"Registry with {len(registry)} pages exported to {path}")
    return path
