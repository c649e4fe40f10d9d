"""
Database engine and sessions for the SQL pay-period store.

One process-wide engine is created by ``init_engine_from_url()``; stores
take the session factory and open one short session per operation, so
worker threads never share a ``Session``.  ``get_engine()`` is what
``create_tables()`` and ``drop_tables()`` bind to.

``sqlite://`` (in-memory) URLs use ``StaticPool`` so that every session
talks to the same connection and therefore sees the same tables.  Other
URLs get a regular pre-pinged connection pool.
"""

from __future__ import annotations

import atexit

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from payroll_kernel.logging_config import get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def init_engine_from_url(
    database_url: str,
    *,
    echo: bool = False,
    pool_size: int = 10,
    max_overflow: int = 5,
) -> Engine:
    """Create (or replace) the process-wide engine and session factory."""
    global _engine, _session_factory

    reset_engine()
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        options = {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    else:
        options = {
            "pool_size": pool_size,
            "max_overflow": max_overflow,
            "pool_pre_ping": True,
        }

    _engine = create_engine(url, echo=echo, **options)
    _session_factory = sessionmaker(bind=_engine, expire_on_commit=False)
    logger.info("engine_initialized", extra={
        "backend": url.get_backend_name(),
        "database": url.database,
    })
    return _engine


def _not_initialized() -> RuntimeError:
    return RuntimeError("Database engine not initialized; call init_engine_from_url() first")


def get_engine() -> Engine:
    if _engine is None:
        raise _not_initialized()
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    if _session_factory is None:
        raise _not_initialized()
    return _session_factory


def create_tables() -> None:
    """Create the pay-period tables on the current engine."""
    from payroll_kernel.db.base import Base

    # Registers PayPeriodModel and friends on Base.metadata.
    import payroll_modules.contractor_pay.orm  # noqa: F401

    Base.metadata.create_all(get_engine())


def drop_tables() -> None:
    from payroll_kernel.db.base import Base

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose of the engine, if any, and forget the session factory."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


atexit.register(reset_engine)
