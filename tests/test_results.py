import json

from sitecrawler.crawler.frontier import VisitedRegistry
from sitecrawler.storage.results import export_registry_json, format_registry


def build_registry():
    registry = VisitedRegistry()
    registry.register("https://example.test/")
    registry.append("https://example.test/", "/faq/")
    registry.append("https://example.test/", "/pages/")
    registry.register("https://example.test/faq/")
    return registry


def test_format_registry_lists_each_page_and_its_links():
    text = format_registry(build_registry())

    assert text.splitlines() == [
        "https://example.test/:",
        "    /faq/",
        "    /pages/",
        "https://example.test/faq/:",
    ]


def test_export_registry_json(tmp_path):
    path = export_registry_json(build_registry(), str(tmp_path / "out" / "links.json"),
                                root="https://example.test/")

    data = json.loads(path.read_text())
    assert data['root'] == "https://example.test/"
    assert data['count'] == 2
    assert data['pages']["https://example.test/"] == ["/faq/", "/pages/"]
    assert data['pages']["https://example.test/faq/"] == []
