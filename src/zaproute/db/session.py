"""SQLAlchemy engine and session factory for the tenant database."""

from __future__ import annotations

import logging
from functools import lru_cache

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from ..config import settings
from ..models.tables import Base


def build_engine(url: str | None = None, *, echo: bool | None = None) -> Engine:
    """Create an engine whose pool waits no longer than the import acquire budget."""
    database_url = url or settings.resolved_database_url
    echo = settings.database_echo if echo is None else echo
    if database_url.startswith("sqlite"):
        if ":memory:" not in database_url:
            settings.data_root.mkdir(parents=True, exist_ok=True)
        # sqlite waits on its own file lock instead of a connection pool
        return create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False, "timeout": settings.import_acquire_timeout_seconds},
        )
    return create_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        pool_timeout=settings.import_acquire_timeout_seconds,
    )


@lru_cache()
def get_engine() -> Engine:
    return build_engine()


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    # Imported rows are returned to callers after commit
    return sessionmaker(bind=engine, expire_on_commit=False)


@lru_cache()
def get_session_factory() -> sessionmaker[Session]:
    return make_session_factory(get_engine())


def init_db(engine: Engine | None = None) -> None:
    """Create missing tables. Schema migrations are managed outside this service."""
    target = engine or get_engine()
    Base.metadata.create_all(target)
    logging.info(f"Database schema ready ({target.url.get_backend_name()})")
