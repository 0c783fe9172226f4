from __future__ import annotations


from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, String, Text, func
from sqlalchemy.orm import declarative_base, relationship


Base = declarative_base()


class CrawlJob(Base):
    __tablename__ = "crawl_jobs"

    job_id = Column(String(36), primary_key=True)
    target_url = Column(Text, nullable=False, index=True)
    status = Column(String(16), nullable=False, default="queued", index=True)
    error_message = Column(Text, nullable=True)
    title = Column(Text, nullable=True)
    html_version = Column(String(32), nullable=True)
    h1_count = Column(Integer, nullable=False, default=0)
    h2_count = Column(Integer, nullable=False, default=0)
    h3_count = Column(Integer, nullable=False, default=0)
    h4_count = Column(Integer, nullable=False, default=0)
    h5_count = Column(Integer, nullable=False, default=0)
    h6_count = Column(Integer, nullable=False, default=0)
    internal_links = Column(JSON, nullable=True)
    external_links = Column(JSON, nullable=True)
    has_login_form = Column(Boolean, nullable=False, default=False)
    crawled_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    broken_links = relationship(
        "BrokenLink",
        back_populates="crawl_job",
        cascade="all, delete-orphan",
        order_by="BrokenLink.broken_link_id",
    )


class BrokenLink(Base):
    __tablename__ = "broken_links"

    broken_link_id = Column(Integer, primary_key=True)
    crawl_job_id = Column(String(36), ForeignKey("crawl_jobs.job_id"), nullable=False, index=True)
    url = Column(Text, nullable=False)
    status_code = Column(Integer, nullable=False)
    text = Column(Text, nullable=True)

    crawl_job = relationship("CrawlJob", back_populates="broken_links")
