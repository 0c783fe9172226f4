import logging
from urllib.parse import SplitResult, urljoin, urlsplit

from pagelens.domain.page_signals import PageSignals

logger = logging.getLogger(__name__)


def url_host(parts: SplitResult) -> str:
    """Return the `host[:port]` part of a split URL, userinfo stripped, case preserved."""
    return parts.netloc.rpartition("@")[2]


class LinkClassifier:
    """Sort hyperlinks into internal and external collections of a PageSignals.

    Absolute links keep their original text and are internal only when their
    host matches `base_host` exactly. Relative links are resolved against
    `base_url` and are always internal.
    """

    def classify(self, href: str, base_host: str, base_url: str, signals: PageSignals, text: str = "") -> None:
        try:
            parts = urlsplit(href)
        except ValueError:
            logger.debug("Dropping unparsable link %r on %s", href, base_url)
            return

        if parts.scheme:
            if url_host(parts) == base_host:
                signals.add_internal(href, text)
            else:
                signals.add_external(href, text)
            return

        try:
            resolved = urljoin(base_url, href)
        except ValueError:
            logger.debug("Dropping unresolvable link %r on %s", href, base_url)
            return
        signals.add_internal(resolved, text)
