"""SQLAlchemy engine and session factory definitions."""

from __future__ import annotations

from collections.abc import Generator

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from minted.core.settings import get_settings


def enable_sqlite_savepoints(engine: Engine) -> None:
    """Let SQLAlchemy own BEGIN so SAVEPOINT works with pysqlite."""

    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record) -> None:  # type: ignore[no-untyped-def]
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(connection) -> None:  # type: ignore[no-untyped-def]
        connection.exec_driver_sql("BEGIN")


def build_engine(database_url: str, **kwargs: object) -> Engine:
    """Create an engine, enabling savepoint support on SQLite."""

    if database_url.startswith("sqlite"):
        engine = create_engine(database_url, **kwargs)
        enable_sqlite_savepoints(engine)
        return engine
    return create_engine(database_url, pool_pre_ping=True, **kwargs)


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        bind=engine,
        class_=Session,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )


settings = get_settings()

engine = build_engine(settings.database_url)

SessionFactory = build_session_factory(engine)


def get_db_session() -> Generator[Session, None, None]:
    """Yield a database session per unit of work."""

    with SessionFactory() as session:
        yield session
