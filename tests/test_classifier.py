import pytest

from sitecrawler.crawler.classifier import UrlClassifier, classify

ROOT = "https://example.test/"


@pytest.fixture
def classifier():
    return UrlClassifier(ROOT)


def test_root_relative_path_resolves_against_origin(classifier):
    assert classifier.classify("/login/") == "https://example.test/login/"


def test_slash_resolves_to_root(classifier):
    assert classifier.classify("/") == ROOT


@pytest.mark.parametrize("href", [
    "https://example.test",
    "https://example.test/",
    "https://example.test/pages/",
    "https://example.test?q=1",
    "https://example.test/a#section",
])
def test_same_origin_urls_are_used_as_is(classifier, href):
    assert classifier.classify(href) == href


@pytest.mark.parametrize("href", [
    "https://other.test/",
    "http://example.test/",
    "https://example.test.evil.test/",
    "https://example.testing/",
    "mailto:hello@example.test",
    "javascript:void(0)",
    "#top",
    "pages/relative",
    "",
    "   ",
    None,
])
def test_out_of_scope_hrefs(classifier, href):
    assert classifier.classify(href) is None
    assert not classifier.is_in_scope(href)


def test_protocol_relative_href_uses_root_scheme(classifier):
    assert classifier.classify("//example.test/faq/") == "https://example.test/faq/"
    assert classifier.classify("//other.test/faq/") is None


def test_surrounding_whitespace_is_ignored(classifier):
    assert classifier.classify("  /faq/\n") == "https://example.test/faq/"


def test_no_canonicalization_is_applied(classifier):
    # variants of the same resource stay distinct
    assert classifier.classify("/faq") != classifier.classify("/faq/")
    assert classifier.classify("/faq/?a=1") == "https://example.test/faq/?a=1"


@pytest.mark.parametrize("href", [
    "/",
    "/login/",
    "https://example.test/pages/",
    "//example.test/x",
    "https://other.test/",
    "mailto:a@b.test",
])
def test_classification_is_idempotent(classifier, href):
    first = classifier.classify(href)
    assert classifier.classify(href) == first
    if first is not None:
        assert classifier.classify(first) == first


def test_root_without_trailing_slash():
    assert classify("/lessons/", "https://example.test") == "https://example.test/lessons/"


def test_relative_root_is_rejected():
    with pytest.raises(ValueError):
        UrlClassifier("example.test")
