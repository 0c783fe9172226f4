from .engine import make_engine, init_orm
from .models import Base, CrawlJob, BrokenLink

__all__ = [
    "make_engine",
    "init_orm",
    "Base",
    "CrawlJob",
    "BrokenLink",
]
