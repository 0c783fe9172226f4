import logging
from typing import Callable, Optional
from urllib.parse import urlsplit

from bs4 import BeautifulSoup
from bs4.element import Tag

from pagelens.domain.metadata import HEADING_TAGS
from pagelens.domain.page_signals import DEFAULT_HTML_VERSION, PageSignals
from pagelens.exceptions import ParseError
from pagelens.services.link_classifier import LinkClassifier, url_host
from pagelens.services.login_form_detector import is_login_form

logger = logging.getLogger(__name__)


class HtmlAnalyzer:
    """Extract structural signals from an HTML document in one pre-order pass."""

    def __init__(
        self,
        link_classifier: Optional[LinkClassifier] = None,
        login_form_detector: Callable[[Tag], bool] = is_login_form,
        soup_factory: Optional[Callable[[str], BeautifulSoup]] = None,
    ):
        self.link_classifier = link_classifier or LinkClassifier()
        self.login_form_detector = login_form_detector
        self._soup_factory = soup_factory or (lambda html: BeautifulSoup(html, "html.parser"))

    def parse(self, document: str, url: str = "") -> BeautifulSoup:
        # html.parser is best-effort; only a parser crash is a parse failure.
        try:
            return self._soup_factory(document)
        except Exception as e:
            raise ParseError(url, e) from e

    def traverse(self, tree: BeautifulSoup, base_host: str, base_url: str, signals: PageSignals) -> PageSignals:
        """Visit every element of `tree` once, in document order, filling `signals`."""
        for node in tree.descendants:
            if not isinstance(node, Tag):
                continue
            name = node.name
            if name == "html":
                if signals.html_version is None:
                    version = node.get("version")
                    signals.html_version = f"HTML {version}" if version else DEFAULT_HTML_VERSION
            elif name == "title":
                if signals.title is None:
                    signals.title = _first_text(node)
            elif name in HEADING_TAGS:
                signals.heading_counts[name] += 1
            elif name == "a":
                href = node.get("href")
                if href:
                    self.link_classifier.classify(
                        href, base_host, base_url, signals, text=node.get_text(" ", strip=True)
                    )
            elif name == "form":
                if self.login_form_detector(node):
                    signals.has_login_form = True
            elif name == "input":
                if node.get("type") == "password":
                    signals.has_login_form = True
        return signals

    def analyze(self, document: str, url: str) -> PageSignals:
        """Parse `document` fetched from `url` and return its signals."""
        try:
            base_host = url_host(urlsplit(url))
        except ValueError as e:
            raise ParseError(url, e) from e
        tree = self.parse(document, url)
        signals = self.traverse(tree, base_host, url, PageSignals())
        logger.debug(
            "Analyzed %s: %d internal, %d external links",
            url,
            len(signals.internal_links),
            len(signals.external_links),
        )
        return signals


def _first_text(node: Tag) -> str:
    for text in node.strings:
        stripped = text.strip()
        if stripped:
            return stripped
    return ""
