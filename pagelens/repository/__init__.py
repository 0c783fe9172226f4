from .crawl_jobs import CrawlJobsRepository

__all__ = ["CrawlJobsRepository"]
