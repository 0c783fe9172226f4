import argparse
import json
import logging
import sys
import time

from pagelens.container import Container
from pagelens.db.engine import init_orm
from pagelens.domain.crawl_job import STATUS_COMPLETED
from pagelens.exceptions import CapacityExceededError

logger = logging.getLogger("pagelens")

ADMIT_RETRY_SECONDS = 0.2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Crawl URLs and print their extracted page metadata as JSON.")
    parser.add_argument("urls", nargs="+", help="URLs to crawl (one page each)")
    parser.add_argument("--database-url", help="SQLAlchemy database URL (default: $DATABASE_URL)")
    parser.add_argument("--max-concurrent", type=int, help="override MAX_CONCURRENT_CRAWLS")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def main(argv=None, container: Container = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    container = container or Container()
    if args.database_url:
        container.config.DATABASE_URL.from_value(args.database_url)
    if args.max_concurrent:
        container.config.MAX_CONCURRENT_CRAWLS.from_value(args.max_concurrent)

    init_orm(container.db_engine())
    jobs_repo = container.crawl_jobs_repository()
    orchestrator = container.crawl_orchestrator()

    jobs = [jobs_repo.create_job(url) for url in args.urls]
    pending = list(jobs)
    threads = []
    # Submit everything, waiting for a free slot whenever the cap is reached.
    while pending:
        job = pending[0]
        try:
            threads.append(orchestrator.admit(job.job_id))
        except CapacityExceededError:
            time.sleep(ADMIT_RETRY_SECONDS)
            continue
        pending.pop(0)

    for t in threads:
        t.join()

    results = [jobs_repo.get_job(job.job_id) for job in jobs]
    json.dump([r.to_dict() for r in results if r is not None], sys.stdout, indent=2)
    sys.stdout.write("\n")

    failed = [r for r in results if r is None or r.status != STATUS_COMPLETED]
    if failed:
        logger.warning("%d of %d crawls did not complete", len(failed), len(results))
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
