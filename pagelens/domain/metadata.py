"""Immutable crawl output attached to a completed job."""
from dataclasses import dataclass, asdict
from typing import Dict, Tuple

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")


@dataclass(frozen=True)
class HeadingCounts:
    h1: int = 0
    h2: int = 0
    h3: int = 0
    h4: int = 0
    h5: int = 0
    h6: int = 0

    @classmethod
    def from_dict(cls, counts: Dict[str, int]) -> "HeadingCounts":
        return cls(**{tag: int(counts.get(tag, 0)) for tag in HEADING_TAGS})


@dataclass(frozen=True)
class BrokenLink:
    url: str
    status_code: int
    text: str


@dataclass(frozen=True)
class ExtractedMetadata:
    title: str
    html_version: str
    heading_counts: HeadingCounts
    internal_links: Tuple[str, ...] = ()
    external_links: Tuple[str, ...] = ()
    broken_links: Tuple[BrokenLink, ...] = ()
    has_login_form: bool = False

    @property
    def internal_links_count(self) -> int:
        return len(self.internal_links)

    @property
    def external_links_count(self) -> int:
        return len(self.external_links)

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "htmlVersion": self.html_version,
            "headingCounts": asdict(self.heading_counts),
            "internalLinks": list(self.internal_links),
            "externalLinks": list(self.external_links),
            "internalLinksCount": self.internal_links_count,
            "externalLinksCount": self.external_links_count,
            "brokenLinks": [
                {"url": b.url, "statusCode": b.status_code, "text": b.text}
                for b in self.broken_links
            ],
            "brokenLinksCount": len(self.broken_links),
            "hasLoginForm": self.has_login_form,
        }
