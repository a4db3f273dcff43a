"""Database engine and session factory.

The engine is created once per application lifespan and handed to the
routers through ``app.state``; nothing in the service opens a connection on
its own.
"""

from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from . import config
from .logger import logger


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(database_url: Optional[str] = None, **kwargs) -> Engine:
    """Create the SQLAlchemy engine for ``database_url`` (defaults to DATABASE_URL)."""
    url = database_url or config.DATABASE_URL
    engine_kwargs = {"echo": config.DB_ECHO, "pool_pre_ping": True}

    if url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {
            "check_same_thread": False,  # sessions are used from the threadpool
            "timeout": config.DB_POOL_TIMEOUT,  # lock wait
        }
    else:
        engine_kwargs["pool_size"] = config.DB_POOL_SIZE
        engine_kwargs["pool_timeout"] = config.DB_POOL_TIMEOUT

    engine_kwargs.update(kwargs)
    engine = create_engine(url, **engine_kwargs)

    if url.startswith("sqlite"):
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)

    logger.info("Database engine created for dialect {}", engine.dialect.name)
    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def health_check(engine: Engine) -> bool:
    """Return True if a trivial query succeeds."""
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error("Database health check failed: {}", e)
        return False


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
