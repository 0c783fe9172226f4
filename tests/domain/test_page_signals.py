from pagelens.domain import BrokenLink, PageSignals


def test_all_links_puts_internal_before_external():
    signals = PageSignals()
    signals.add_external("https://other.com/1")
    signals.add_internal("https://example.com/1")
    signals.add_external("https://other.com/2")
    signals.add_internal("https://example.com/2")

    assert signals.all_links() == [
        "https://example.com/1",
        "https://example.com/2",
        "https://other.com/1",
        "https://other.com/2",
    ]


def test_first_anchor_text_wins():
    signals = PageSignals()
    signals.add_internal("https://example.com/a", "First")
    signals.add_internal("https://example.com/a", "Second")
    assert signals.anchor_texts["https://example.com/a"] == "First"


def test_freeze_defaults():
    meta = PageSignals().freeze()
    assert meta.title == ""
    assert meta.html_version == "HTML5"
    assert meta.internal_links == ()
    assert meta.broken_links == ()
    assert meta.has_login_form is False


def test_freeze_copies_collections():
    signals = PageSignals(title="T")
    signals.add_internal("https://example.com/a")
    signals.heading_counts["h2"] = 3
    meta = signals.freeze([BrokenLink("https://example.com/a", 404, "a")])

    signals.add_internal("https://example.com/b")
    signals.heading_counts["h2"] = 9

    assert meta.internal_links == ("https://example.com/a",)
    assert meta.internal_links_count == 1
    assert meta.heading_counts.h2 == 3
    d = meta.to_dict()
    assert d["brokenLinks"] == [{"url": "https://example.com/a", "statusCode": 404, "text": "a"}]
    assert d["headingCounts"] == {"h1": 0, "h2": 3, "h3": 0, "h4": 0, "h5": 0, "h6": 0}
