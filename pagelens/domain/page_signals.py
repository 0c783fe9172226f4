from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .metadata import HEADING_TAGS, BrokenLink, ExtractedMetadata, HeadingCounts

DEFAULT_HTML_VERSION = "HTML5"


@dataclass
class PageSignals:
    """Mutable collector filled in place while a document is traversed."""

    title: Optional[str] = None
    html_version: Optional[str] = None
    heading_counts: Dict[str, int] = field(default_factory=lambda: {tag: 0 for tag in HEADING_TAGS})
    internal_links: List[str] = field(default_factory=list)
    external_links: List[str] = field(default_factory=list)
    # first anchor text seen for each stored link value
    anchor_texts: Dict[str, str] = field(default_factory=dict)
    has_login_form: bool = False

    def add_internal(self, url: str, text: str = "") -> None:
        self.internal_links.append(url)
        self.anchor_texts.setdefault(url, text)

    def add_external(self, url: str, text: str = "") -> None:
        self.external_links.append(url)
        self.anchor_texts.setdefault(url, text)

    def all_links(self) -> List[str]:
        """Internal links followed by external links, in discovery order."""
        return self.internal_links + self.external_links

    def freeze(self, broken_links: Sequence[BrokenLink] = ()) -> ExtractedMetadata:
        return ExtractedMetadata(
            title=self.title or "",
            html_version=self.html_version or DEFAULT_HTML_VERSION,
            heading_counts=HeadingCounts.from_dict(self.heading_counts),
            internal_links=tuple(self.internal_links),
            external_links=tuple(self.external_links),
            broken_links=tuple(broken_links),
            has_login_form=self.has_login_form,
        )
