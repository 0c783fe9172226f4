from typing import Dict, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from pagelens import config

# One Engine per database URL so every crawl thread shares a connection pool.
_ENGINES: Dict[str, Engine] = {}


def make_engine(database_url: Optional[str] = None) -> Engine:
    """Create or return the cached SQLAlchemy Engine for `database_url`.

    Falls back to `DATABASE_URL` from the environment when no URL is given.
    """
    database_url = database_url or config.DATABASE_URL
    if not database_url:
        raise RuntimeError("DATABASE_URL not set")
    engine = _ENGINES.get(database_url)
    if engine is None:
        connect_args = {}
        if database_url.startswith("sqlite"):
            # crawl threads share the engine
            connect_args["check_same_thread"] = False
        engine = create_engine(database_url, future=True, connect_args=connect_args)
        _ENGINES[database_url] = engine
    return engine


def init_orm(engine: Engine) -> None:
    """Create tables that do not exist yet."""
    from pagelens.db.models import Base

    Base.metadata.create_all(engine)
