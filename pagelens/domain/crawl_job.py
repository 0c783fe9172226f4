from typing import Optional
from datetime import datetime

from .metadata import ExtractedMetadata

STATUS_QUEUED = "queued"
STATUS_RUNNING = "running"
STATUS_COMPLETED = "completed"
STATUS_ERROR = "error"

ALL_STATUSES = (STATUS_QUEUED, STATUS_RUNNING, STATUS_COMPLETED, STATUS_ERROR)


class CrawlJob:
    def __init__(self, job_id: str, target_url: str, status: str = STATUS_QUEUED, error_message: Optional[str] = None, metadata: Optional[ExtractedMetadata] = None, crawled_at: Optional[datetime] = None, created_at: Optional[datetime] = None, updated_at: Optional[datetime] = None):
        self.job_id = job_id
        self.target_url = target_url
        self.status = status
        self.error_message = error_message
        self.metadata = metadata
        self.crawled_at = crawled_at
        self.created_at = created_at
        self.updated_at = updated_at

    def to_dict(self) -> dict:
        return {
            "id": self.job_id,
            "url": self.target_url,
            "status": self.status,
            "errorMessage": self.error_message,
            "crawledAt": self.crawled_at.isoformat() if self.crawled_at else None,
            "metadata": self.metadata.to_dict() if self.metadata else None,
        }

    def __repr__(self):
        return f"<CrawlJob id={self.job_id} url={self.target_url} status={self.status}>"
