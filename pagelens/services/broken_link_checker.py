import logging
from typing import Dict, List, Optional, Sequence

from pagelens.domain.metadata import BrokenLink
from pagelens.exceptions import FetchError

logger = logging.getLogger(__name__)

DEFAULT_MAX_SAMPLE = 10
PLACEHOLDER_LINK_TEXT = "Link text"


class BrokenLinkChecker:
    """Probe the first `max_sample` links and report the broken ones.

    A link is broken when its HEAD probe gets no response (reported as status 0)
    or answers with a status >= 400. One probe is made per link.
    """

    def __init__(self, http_service, max_sample: int = DEFAULT_MAX_SAMPLE):
        if max_sample < 0:
            raise ValueError("max_sample must be >= 0")
        self.http_service = http_service
        self.max_sample = max_sample

    def check_sample(self, links: Sequence[str], anchor_texts: Optional[Dict[str, str]] = None) -> List[BrokenLink]:
        anchor_texts = anchor_texts or {}
        broken: List[BrokenLink] = []
        for link in list(links)[: self.max_sample]:
            status = self._probe(link)
            if status == 0 or status >= 400:
                broken.append(
                    BrokenLink(
                        url=link,
                        status_code=status,
                        text=anchor_texts.get(link) or PLACEHOLDER_LINK_TEXT,
                    )
                )
        return broken

    def _probe(self, link: str) -> int:
        try:
            return self.http_service.probe(link)
        except FetchError as e:
            logger.debug("Probe failed for %s: %s", link, e)
            return 0
