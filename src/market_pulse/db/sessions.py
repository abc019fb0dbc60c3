"""Database engine and session management."""
import os
from collections.abc import Generator
from contextlib import contextmanager
from functools import lru_cache

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from market_pulse.db.models import (  # noqa: F401  # pylint: disable=unused-import
    Alert, Anomaly, Instrument, MarketAnomaly, PriceObservation, User)

_DEFAULT_URL = "sqlite:///./market_pulse.db"


@lru_cache
def get_engine() -> Engine:
    """Create the process-wide engine from DATABASE_URL (once)."""
    url = os.getenv("DATABASE_URL", _DEFAULT_URL)
    echo = os.getenv("SQL_ECHO", "0") == "1"
    if url.startswith("sqlite"):
        return create_engine(url, echo=echo, connect_args={"check_same_thread": False})
    return create_engine(
        url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )


@contextmanager
def get_session(engine: Engine | None = None) -> Generator[Session, None, None]:
    """Yield a database session; commits on success, rolls back on error."""
    session = Session(engine or get_engine(), expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(engine: Engine | None = None) -> None:
    """Create all tables. Safe to call on startup (idempotent for existing tables)."""
    SQLModel.metadata.create_all(engine or get_engine())
