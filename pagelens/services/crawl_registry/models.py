from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ActiveCrawl:
    job_id: str
    admitted_at: datetime
