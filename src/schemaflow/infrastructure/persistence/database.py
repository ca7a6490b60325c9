"""Database engine management using SQLAlchemy 2.0.

The record pipeline dispatches synchronously, so SchemaFlow uses a plain
(sync) engine. SQLite and any SQLAlchemy-supported server database work.
"""

from pathlib import Path
from typing import Optional

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from schemaflow.core.config import Settings, get_settings
from schemaflow.core.logging import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Base class for the system collection models."""

    pass


def create_db_engine(settings: Optional[Settings] = None, url: Optional[str] = None) -> Engine:
    """Create the engine for the configured database.

    In-memory SQLite databases share one connection so that every caller
    sees the same tables.
    """
    settings = settings or get_settings()
    url = url or settings.database_url

    kwargs: dict = {"echo": settings.db_echo}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url or url.rstrip("/") == "sqlite:":
            kwargs["poolclass"] = StaticPool
        else:
            _ensure_sqlite_directory(url)

    engine = create_engine(url, **kwargs)
    logger.info(
        "Database engine created",
        database_url=engine.url.render_as_string(hide_password=True),
        dialect=engine.dialect.name,
    )
    return engine


def _ensure_sqlite_directory(url: str) -> None:
    # sqlite:///./sf_data/schemaflow.db -> ./sf_data
    path = url.split(":///", 1)[-1]
    if path:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
