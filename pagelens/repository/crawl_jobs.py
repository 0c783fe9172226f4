import logging
import uuid
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from pagelens.db.models import BrokenLink as DBBrokenLink
from pagelens.db.models import CrawlJob as DBCrawlJob
from pagelens.domain import BrokenLink, CrawlJob, ExtractedMetadata, HeadingCounts
from pagelens.domain.crawl_job import (
    ALL_STATUSES,
    STATUS_COMPLETED,
    STATUS_ERROR,
    STATUS_QUEUED,
    STATUS_RUNNING,
)
from pagelens.domain.metadata import HEADING_TAGS
from pagelens.exceptions import PersistenceError

logger = logging.getLogger(__name__)


class CrawlJobsRepository:
    """Repository for crawl job records and their extracted metadata.

    Requires an explicit `session_factory` (callable returning a `Session`).
    Every SQLAlchemy failure is re-raised as `PersistenceError`.
    """

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def get_session(self) -> Session:
        return self.session_factory()

    @staticmethod
    def _sanitize_text(val: Optional[str]) -> Optional[str]:
        """Remove NUL (\x00) characters; Postgres TEXT columns reject them."""
        if isinstance(val, str):
            return val.replace("\x00", "")
        return val

    def _to_domain(self, row: DBCrawlJob) -> CrawlJob:
        metadata = None
        if row.status == STATUS_COMPLETED:
            metadata = ExtractedMetadata(
                title=row.title or "",
                html_version=row.html_version or "",
                heading_counts=HeadingCounts(*(getattr(row, f"{tag}_count") or 0 for tag in HEADING_TAGS)),
                internal_links=tuple(row.internal_links or ()),
                external_links=tuple(row.external_links or ()),
                broken_links=tuple(
                    BrokenLink(url=b.url, status_code=b.status_code, text=b.text or "")
                    for b in row.broken_links
                ),
                has_login_form=bool(row.has_login_form),
            )
        return CrawlJob(
            job_id=row.job_id,
            target_url=row.target_url,
            status=row.status,
            error_message=row.error_message,
            metadata=metadata,
            crawled_at=row.crawled_at,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def create_job(self, target_url: str) -> CrawlJob:
        """Persist a new queued job for `target_url` and return it."""
        job_id = str(uuid.uuid4())
        try:
            with self.get_session() as session:
                row = DBCrawlJob(job_id=job_id, target_url=target_url, status=STATUS_QUEUED)
                session.add(row)
                session.commit()
                session.refresh(row)
                return self._to_domain(row)
        except SQLAlchemyError as e:
            raise PersistenceError("create_job", job_id, e) from e

    def get_job(self, job_id: str) -> Optional[CrawlJob]:
        try:
            with self.get_session() as session:
                q = (
                    select(DBCrawlJob)
                    .options(selectinload(DBCrawlJob.broken_links))
                    .where(DBCrawlJob.job_id == job_id)
                )
                row = session.execute(q).scalars().first()
                if not row:
                    return None
                return self._to_domain(row)
        except SQLAlchemyError as e:
            raise PersistenceError("get_job", job_id, e) from e

    def _set_status(self, operation: str, job_id: str, values: dict, only_from: Optional[Iterable[str]] = None) -> bool:
        try:
            with self.get_session() as session:
                stmt = update(DBCrawlJob).where(DBCrawlJob.job_id == job_id)
                if only_from is not None:
                    stmt = stmt.where(DBCrawlJob.status.in_(list(only_from)))
                result = session.execute(stmt.values(**values))
                session.commit()
                return result.rowcount > 0
        except SQLAlchemyError as e:
            raise PersistenceError(operation, job_id, e) from e

    def mark_running(self, job_id: str) -> bool:
        return self._set_status("mark_running", job_id, {"status": STATUS_RUNNING, "error_message": None})

    def mark_error(self, job_id: str, message: str) -> bool:
        return self._set_status(
            "mark_error",
            job_id,
            {"status": STATUS_ERROR, "error_message": self._sanitize_text(message)},
        )

    def reset_to_queued(self, job_id: str) -> bool:
        """Move a queued or running job back to queued.

        Completed and errored jobs are left untouched. Returns True when a row
        was updated.
        """
        return self._set_status(
            "reset_to_queued",
            job_id,
            {"status": STATUS_QUEUED},
            only_from=(STATUS_QUEUED, STATUS_RUNNING),
        )

    def mark_completed(self, job_id: str, metadata: ExtractedMetadata, crawled_at: datetime) -> None:
        """Attach `metadata` and set the job completed in a single transaction."""
        counts = metadata.heading_counts
        try:
            with self.get_session() as session:
                q = select(DBCrawlJob).where(DBCrawlJob.job_id == job_id)
                row = session.execute(q).scalars().first()
                if not row:
                    raise PersistenceError("mark_completed", job_id, LookupError("job row missing"))
                row.status = STATUS_COMPLETED
                row.error_message = None
                row.title = self._sanitize_text(metadata.title)
                row.html_version = metadata.html_version
                for tag in HEADING_TAGS:
                    setattr(row, f"{tag}_count", getattr(counts, tag))
                row.internal_links = list(metadata.internal_links)
                row.external_links = list(metadata.external_links)
                row.has_login_form = metadata.has_login_form
                row.crawled_at = crawled_at
                row.broken_links = [
                    DBBrokenLink(url=b.url, status_code=b.status_code, text=self._sanitize_text(b.text))
                    for b in metadata.broken_links
                ]
                session.add(row)
                session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError("mark_completed", job_id, e) from e

    def list_jobs(self, status: Optional[str] = None, search: Optional[str] = None, limit: int = 10, offset: int = 0) -> List[CrawlJob]:
        """Return jobs newest first, optionally filtered by status and URL/title substring."""
        if status is not None and status not in ALL_STATUSES:
            raise ValueError(f"unknown status: {status}")
        q = select(DBCrawlJob).options(selectinload(DBCrawlJob.broken_links))
        if status:
            q = q.where(DBCrawlJob.status == status)
        if search:
            pattern = f"%{search}%"
            q = q.where(or_(DBCrawlJob.target_url.like(pattern), DBCrawlJob.title.like(pattern)))
        q = q.order_by(DBCrawlJob.created_at.desc(), DBCrawlJob.job_id).offset(offset).limit(limit)
        try:
            with self.get_session() as session:
                rows = session.execute(q).scalars().all()
                return [self._to_domain(r) for r in rows]
        except SQLAlchemyError as e:
            raise PersistenceError("list_jobs", None, e) from e

    def count_by_status(self) -> Dict[str, int]:
        """Return job totals keyed by status plus a "total" entry."""
        counts = {s: 0 for s in ALL_STATUSES}
        try:
            with self.get_session() as session:
                q = select(DBCrawlJob.status, func.count()).group_by(DBCrawlJob.status)
                for status, n in session.execute(q).all():
                    counts[status] = n
        except SQLAlchemyError as e:
            raise PersistenceError("count_by_status", None, e) from e
        counts["total"] = sum(counts[s] for s in ALL_STATUSES)
        return counts

    def delete_jobs(self, job_ids: List[str]) -> int:
        """Delete jobs and their broken links. Returns the number of jobs deleted."""
        if not job_ids:
            return 0
        try:
            with self.get_session() as session:
                session.execute(delete(DBBrokenLink).where(DBBrokenLink.crawl_job_id.in_(job_ids)))
                result = session.execute(delete(DBCrawlJob).where(DBCrawlJob.job_id.in_(job_ids)))
                session.commit()
                logger.info("Deleted %d crawl jobs", result.rowcount)
                return result.rowcount
        except SQLAlchemyError as e:
            raise PersistenceError("delete_jobs", ",".join(job_ids), e) from e
