import pytest

from pagelens.domain import PageSignals
from pagelens.services.link_classifier import LinkClassifier

BASE_URL = "https://example.com/docs/index.html"
BASE_HOST = "example.com"


def _classify(*hrefs):
    signals = PageSignals()
    classifier = LinkClassifier()
    for href in hrefs:
        classifier.classify(href, BASE_HOST, BASE_URL, signals)
    return signals


def test_relative_and_external_links():
    signals = _classify("/about", "https://other.com/x")
    assert signals.internal_links == ["https://example.com/about"]
    assert signals.external_links == ["https://other.com/x"]


def test_absolute_same_host_keeps_original_text():
    signals = _classify("https://example.com/a?b=1#frag")
    assert signals.internal_links == ["https://example.com/a?b=1#frag"]
    assert signals.external_links == []


def test_relative_path_resolves_against_page_url():
    signals = _classify("guide.html", "../up", "?page=2")
    assert signals.internal_links == [
        "https://example.com/docs/guide.html",
        "https://example.com/up",
        "https://example.com/docs/index.html?page=2",
    ]


def test_host_comparison_is_exact():
    signals = _classify("https://EXAMPLE.com/a", "https://www.example.com/b", "https://example.com:8443/c")
    assert signals.internal_links == []
    assert signals.external_links == [
        "https://EXAMPLE.com/a",
        "https://www.example.com/b",
        "https://example.com:8443/c",
    ]


def test_userinfo_is_ignored_for_host_match():
    signals = _classify("https://bob@example.com/private")
    assert signals.internal_links == ["https://bob@example.com/private"]


def test_scheme_without_host_is_external():
    signals = _classify("mailto:team@example.com", "javascript:void(0)")
    assert signals.external_links == ["mailto:team@example.com", "javascript:void(0)"]


def test_unparsable_href_is_dropped():
    signals = _classify("http://[::1", "/ok")
    assert signals.internal_links == ["https://example.com/ok"]
    assert signals.external_links == []


def test_duplicates_are_kept_in_order():
    signals = _classify("/a", "/b", "/a")
    assert signals.internal_links == [
        "https://example.com/a",
        "https://example.com/b",
        "https://example.com/a",
    ]


@pytest.mark.parametrize("text", ["About us", ""])
def test_anchor_text_remembered_for_stored_value(text):
    signals = PageSignals()
    LinkClassifier().classify("/about", BASE_HOST, BASE_URL, signals, text=text)
    assert signals.anchor_texts == {"https://example.com/about": text}
