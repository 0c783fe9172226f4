"""Domain objects for PageLens - explicit re-exports to satisfy linters."""
from .crawl_job import CrawlJob as CrawlJob
from .metadata import BrokenLink as BrokenLink
from .metadata import ExtractedMetadata as ExtractedMetadata
from .metadata import HeadingCounts as HeadingCounts
from .page_signals import PageSignals as PageSignals
from .http_response import HttpResponse as HttpResponse

__all__ = ["CrawlJob", "BrokenLink", "ExtractedMetadata", "HeadingCounts", "PageSignals", "HttpResponse"]
