import logging
import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from .utils import resolve_sqlite_url

logger = logging.getLogger(__name__)

load_dotenv()
# Repo root; relative sqlite paths in DB_URL are anchored here
ROOT_DIR = Path(__file__).resolve().parents[2]
DEFAULT_SQLITE_URL = resolve_sqlite_url(
    os.getenv("DB_URL", "sqlite:///./dev.db"), ROOT_DIR
)


def _is_memory_sqlite(url: str) -> bool:
    return url.startswith("sqlite") and (":memory:" in url or url.endswith("://"))


def make_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """Create the engine for ``database_url`` or ``DB_URL``.

    Quiz requests are served from worker threads sharing one engine, so
    SQLite connections are opened with ``check_same_thread=False``. An
    in-memory SQLite database only exists per connection, hence every
    checkout reuses a single connection there.
    """
    url = database_url or DEFAULT_SQLITE_URL
    options: dict[str, Any] = {}
    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        if _is_memory_sqlite(url):
            options["poolclass"] = StaticPool

    engine = create_engine(url, echo=echo, future=True, **options)
    logger.debug(f"Engine ready for {engine.url.render_as_string(hide_password=True)}")
    return engine


def get_sessionmaker(engine: Engine) -> sessionmaker:
    """Session factory used by the workflows and scripts.

    Stores flush inside the caller's transaction and never commit, so
    autoflush stays off and committed objects remain readable.
    """
    return sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
        future=True,
    )
