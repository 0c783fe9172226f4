from .models import ActiveCrawl
from .registry import ActiveCrawlRegistry

__all__ = ["ActiveCrawl", "ActiveCrawlRegistry"]
