import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from pagelens.domain.metadata import ExtractedMetadata
from pagelens.exceptions import CrawlJobNotFoundError, CrawlPipelineError, PersistenceError
from pagelens.services.crawl_registry import ActiveCrawl

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CrawlExecutor:
    """Runs the single-page pipeline for one crawl job and records the outcome.

    Fetch -> analyze -> broken-link sample, then the job is marked completed
    with its metadata, or marked error with the failure message. The job's
    registry slot is released on every exit path. This class does NOT
    construct dependencies (that stays in the DI layer).
    """

    def __init__(
        self,
        *,
        jobs_repo,
        fetcher,
        html_analyzer,
        broken_link_checker,
        crawl_registry,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.jobs_repo = jobs_repo
        self.fetcher = fetcher
        self.html_analyzer = html_analyzer
        self.broken_link_checker = broken_link_checker
        self.crawl_registry = crawl_registry
        self._clock = clock or _utcnow

    def crawl_url(self, url: str) -> ExtractedMetadata:
        """Fetch and analyze `url`. Raises CrawlPipelineError subclasses on failure."""
        response = self.fetcher.fetch(url)
        signals = self.html_analyzer.analyze(response.text, url)
        broken = self.broken_link_checker.check_sample(signals.all_links(), signals.anchor_texts)
        return signals.freeze(broken)

    def execute(self, job_id: str, admission: Optional[ActiveCrawl] = None) -> None:
        try:
            self._execute(job_id)
        except CrawlJobNotFoundError as e:
            logger.error("Cannot crawl: %s", e)
        except PersistenceError as e:
            logger.error("Storage error for crawl job %s: %s", job_id, e, exc_info=True)
            self._record_error(job_id, str(e))
        except Exception:
            logger.exception("Unhandled error executing crawl job %s", job_id)
        finally:
            self.crawl_registry.release(job_id, admission)

    def _execute(self, job_id: str) -> None:
        job = self.jobs_repo.get_job(job_id)
        if job is None:
            raise CrawlJobNotFoundError(job_id)

        self.jobs_repo.mark_running(job_id)
        logger.info("Crawl started for %s (job %s)", job.target_url, job_id)

        try:
            metadata = self.crawl_url(job.target_url)
        except CrawlPipelineError as e:
            logger.warning("Crawl failed for %s: %s", job.target_url, e)
            self._record_error(job_id, str(e))
            return
        except Exception as e:
            logger.error("Crawl error for %s: %s", job.target_url, e, exc_info=True)
            self._record_error(job_id, f"unexpected error: {e}")
            return

        self.jobs_repo.mark_completed(job_id, metadata, crawled_at=self._clock())
        logger.info(
            "Crawl completed successfully for %s: %d internal, %d external, %d broken links",
            job.target_url,
            metadata.internal_links_count,
            metadata.external_links_count,
            len(metadata.broken_links),
        )

    def _record_error(self, job_id: str, message: str) -> None:
        try:
            self.jobs_repo.mark_error(job_id, message)
        except PersistenceError:
            logger.exception("Could not record error for crawl job %s", job_id)
