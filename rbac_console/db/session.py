"""Database engine, session factory, and dependency injection."""

from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from typing import Generator

from rbac_console.core.config import settings
from rbac_console.core.exceptions import ConflictError


def _engine_options(url: str) -> dict:
    """Pool and driver options for the configured backend."""
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return {
            "pool_size": 20,
            "max_overflow": 40,
            "pool_timeout": 30,
            "pool_recycle": 1800,
            "pool_pre_ping": True,
        }
    options = {"connect_args": {"check_same_thread": False}}
    if parsed.database in (None, "", ":memory:"):
        # One shared connection, otherwise every thread sees an empty database
        options["poolclass"] = StaticPool
    return options


engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    **_engine_options(settings.DATABASE_URL),
)


if engine.dialect.name == "sqlite":
    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency that provides a DB session per request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def unique_or_conflict(db: Session, message: str):
    """Turn a unique-constraint failure inside the block into a 409.

    Covers the window between a service's existence check and its commit,
    where a concurrent request can claim the same name first.
    """
    try:
        yield
    except IntegrityError:
        db.rollback()
        raise ConflictError(message)


def init_db() -> None:
    """Create all tables that do not exist yet."""
    import rbac_console.models  # noqa: F401  registers the mappers
    from rbac_console.db.base import Base

    if engine.dialect.name == "sqlite" and engine.url.database not in (None, "", ":memory:"):
        import os
        os.makedirs(os.path.dirname(os.path.abspath(engine.url.database)), exist_ok=True)

    Base.metadata.create_all(bind=engine)


def drop_db() -> None:
    """Drop every table (used by ``rbacctl db reset`` and the tests)."""
    import rbac_console.models  # noqa: F401
    from rbac_console.db.base import Base

    Base.metadata.drop_all(bind=engine)
