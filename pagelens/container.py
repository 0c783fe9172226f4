"""Dependency injection container for the application."""
from dependency_injector import containers, providers
import requests

from pagelens.db.engine import make_engine
from pagelens.repository.crawl_jobs import CrawlJobsRepository
from pagelens.services.http_service import HttpService
from pagelens.services.fetcher import HttpServiceFetcher
from pagelens.services.link_classifier import LinkClassifier
from pagelens.services.html_analyzer import HtmlAnalyzer
from pagelens.services.broken_link_checker import BrokenLinkChecker
from pagelens.services.crawl_registry import ActiveCrawlRegistry
from pagelens.services.crawl_executor import CrawlExecutor
from pagelens.services.crawl_orchestrator import CrawlOrchestrator
from pagelens import config as env
from sqlalchemy.orm import sessionmaker


# Environment variables used by the container (read via `pagelens.config` helpers).
#
# DATABASE_URL (str | optional)
#   SQLAlchemy connection string. `make_engine()` raises if it is unset.
#
# USER_AGENT (str, default: "PageLens/0.1")
#   User-Agent header for page fetches and link probes.
#
# MAX_CONCURRENT_CRAWLS (int, default: 5)
#   Admission cap: number of crawl jobs allowed to execute at once. Must be > 0.
#
# CRAWL_TIMEOUT (float seconds, default: 30)
#   Wall-clock limit for retrieving a page, body included.
#
# LINK_CHECK_TIMEOUT (float seconds, default: 10)
#   Timeout for each broken-link HEAD probe.
#
# BROKEN_LINK_SAMPLE_SIZE (int, default: 10)
#   Number of discovered links probed per page.
#
# MAX_DEPTH (int, default: 3) / MAX_PAGES_PER_DOMAIN (int, default: 100)
#   Accepted for configuration compatibility; the single-page pipeline ignores them.
ENV = {
    "DATABASE_URL": env.DATABASE_URL,
    "USER_AGENT": env.USER_AGENT,
    "MAX_CONCURRENT_CRAWLS": env.get_int_env("MAX_CONCURRENT_CRAWLS", 5),
    "CRAWL_TIMEOUT": env.get_float_env("CRAWL_TIMEOUT", 30.0),
    "LINK_CHECK_TIMEOUT": env.get_float_env("LINK_CHECK_TIMEOUT", 10.0),
    "BROKEN_LINK_SAMPLE_SIZE": env.get_int_env("BROKEN_LINK_SAMPLE_SIZE", 10),
    "MAX_DEPTH": env.get_int_env("MAX_DEPTH", 3),
    "MAX_PAGES_PER_DOMAIN": env.get_int_env("MAX_PAGES_PER_DOMAIN", 100),
}


class Container(containers.DeclarativeContainer):
    """Dependency injection container for PageLens."""

    # Configuration
    config = providers.Configuration(default=ENV)

    # Database engine - Singleton to reuse connection pool
    db_engine = providers.Singleton(
        make_engine,
        database_url=config.DATABASE_URL
    )
    # Session factory bound to the engine
    session_factory = providers.Factory(
        sessionmaker,
        bind=db_engine,
        future=True
    )

    crawl_jobs_repository = providers.Singleton(
        CrawlJobsRepository,
        session_factory=session_factory
    )

    crawl_registry = providers.Singleton(
        ActiveCrawlRegistry,
        max_active=config.MAX_CONCURRENT_CRAWLS.as_(int),
    )

    # Services - Singleton instances
    http_service = providers.Singleton(
        HttpService,
        user_agent=config.USER_AGENT.as_(str),
        http_client=providers.Object(requests.get),
        head_client=providers.Object(requests.head),
        timeout=config.CRAWL_TIMEOUT.as_(float),
        probe_timeout=config.LINK_CHECK_TIMEOUT.as_(float),
    )

    page_fetcher = providers.Singleton(
        HttpServiceFetcher,
        http_service=http_service,
    )

    html_analyzer = providers.Singleton(
        HtmlAnalyzer,
        link_classifier=providers.Singleton(LinkClassifier),
    )

    broken_link_checker = providers.Singleton(
        BrokenLinkChecker,
        http_service=http_service,
        max_sample=config.BROKEN_LINK_SAMPLE_SIZE.as_(int),
    )

    crawl_executor = providers.Singleton(
        CrawlExecutor,
        jobs_repo=crawl_jobs_repository,
        fetcher=page_fetcher,
        html_analyzer=html_analyzer,
        broken_link_checker=broken_link_checker,
        crawl_registry=crawl_registry,
    )

    crawl_orchestrator = providers.Singleton(
        CrawlOrchestrator,
        crawl_registry=crawl_registry,
        crawl_executor=crawl_executor,
        jobs_repo=crawl_jobs_repository,
        max_depth=config.MAX_DEPTH.as_(int),
        max_pages_per_domain=config.MAX_PAGES_PER_DOMAIN.as_(int),
    )
