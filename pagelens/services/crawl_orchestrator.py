import logging
import threading
from typing import Dict, Iterable, List

from pagelens.exceptions import CrawlAdmissionError

logger = logging.getLogger(__name__)


class CrawlOrchestrator:
    """Admission control and detached execution of crawl jobs.

    Each admitted job runs `crawl_executor.execute` on its own daemon thread;
    the registry is the only state shared between those threads.

    `max_depth` and `max_pages_per_domain` are accepted for configuration
    compatibility but are not consulted: every job crawls exactly one page.
    """

    def __init__(
        self,
        *,
        crawl_registry,
        crawl_executor,
        jobs_repo,
        max_depth: int = 3,
        max_pages_per_domain: int = 100,
        thread_factory=threading.Thread,
    ):
        self.crawl_registry = crawl_registry
        self.crawl_executor = crawl_executor
        self.jobs_repo = jobs_repo
        self.max_depth = max_depth
        self.max_pages_per_domain = max_pages_per_domain
        self._thread_factory = thread_factory

    def admit(self, job_id: str) -> threading.Thread:
        """Register `job_id` and start crawling it in the background.

        Raises AlreadyActiveError or CapacityExceededError without starting
        anything. Returns the started thread.
        """
        admission = self.crawl_registry.register(job_id)
        try:
            thread = self._thread_factory(
                target=self.crawl_executor.execute,
                args=(job_id, admission),
                name=f"crawl-{job_id}",
                daemon=True,
            )
            thread.start()
        except Exception:
            self.crawl_registry.release(job_id, admission)
            raise
        logger.info("Admitted crawl job %s", job_id)
        return thread

    def cancel(self, job_id: str) -> bool:
        """Drop `job_id` from the registry and move its record back to queued.

        An in-flight fetch or probe is not interrupted; the running thread may
        still record a final status afterwards. Unknown ids are a no-op.
        Returns True if the job was active.
        """
        was_active = self.crawl_registry.release(job_id)
        self.jobs_repo.reset_to_queued(job_id)
        if was_active:
            logger.info("Cancelled crawl job %s", job_id)
        else:
            logger.debug("Cancel requested for inactive crawl job %s", job_id)
        return was_active

    def bulk_start(self, job_ids: Iterable[str]) -> Dict[str, str]:
        """Admit each id in order. Returns failed ids mapped to the reason."""
        failures: Dict[str, str] = {}
        for job_id in job_ids:
            try:
                self.admit(job_id)
            except CrawlAdmissionError as e:
                logger.warning("Failed to start crawl for ID %s: %s", job_id, e)
                failures[job_id] = e.reason
        return failures

    def is_active(self, job_id: str) -> bool:
        return self.crawl_registry.is_active(job_id)

    def active_count(self) -> int:
        return self.crawl_registry.size()

    def list_active(self) -> List[Dict]:
        return self.crawl_registry.list_active()
