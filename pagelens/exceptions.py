"""Custom exceptions for PageLens services."""
from typing import Optional


class CrawlAdmissionError(Exception):
    """Raised synchronously when a crawl job cannot be admitted."""

    def __init__(self, job_id: str, reason: str):
        self.job_id = job_id
        self.reason = reason
        super().__init__(f"Crawl {job_id} not admitted: {reason}")


class AlreadyActiveError(CrawlAdmissionError):
    def __init__(self, job_id: str):
        super().__init__(job_id, "crawl already in progress")


class CapacityExceededError(CrawlAdmissionError):
    def __init__(self, job_id: str, max_active: int):
        self.max_active = max_active
        super().__init__(job_id, f"maximum concurrent crawls reached ({max_active})")


class CrawlJobNotFoundError(Exception):
    """Raised when a crawl job id has no persisted record."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Crawl job '{job_id}' not found")


class CrawlPipelineError(Exception):
    """Base for failures captured into a job's error message."""


class FetchError(CrawlPipelineError):
    """Raised when a page cannot be retrieved.

    Exactly one of ``status_code`` (non-2xx response), ``timed_out`` or
    ``original`` (transport failure) describes the cause.
    """

    def __init__(
        self,
        url: str,
        *,
        status_code: Optional[int] = None,
        timed_out: bool = False,
        timeout: Optional[float] = None,
        original: Optional[Exception] = None,
    ):
        self.url = url
        self.status_code = status_code
        self.timed_out = timed_out
        self.timeout = timeout
        self.original = original
        if status_code is not None:
            msg = f"HTTP {status_code} fetching {url}"
        elif timed_out:
            msg = f"timed out after {timeout}s fetching {url}"
        else:
            msg = f"failed to fetch {url}: {original}"
        super().__init__(msg)


class ParseError(CrawlPipelineError):
    def __init__(self, url: str, original: Exception):
        self.url = url
        self.original = original
        super().__init__(f"failed to parse HTML from {url}: {original}")


class PersistenceError(CrawlPipelineError):
    """Raised when a crawl job cannot be read or written."""

    def __init__(self, operation: str, job_id: Optional[str], original: Exception):
        self.operation = operation
        self.job_id = job_id
        self.original = original
        super().__init__(f"{operation} failed for crawl job {job_id}: {original}")
