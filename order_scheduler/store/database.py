"""
Database engine and session management.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Type, TypeVar

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from order_scheduler.errors import RecordNotFound

logger = logging.getLogger(__name__)

MEMORY_URL = "sqlite://"

# Base class for SQLAlchemy models
Base = declarative_base()

ModelT = TypeVar("ModelT")


def _engine_options(url: str) -> dict:
    parsed = make_url(url)
    if not parsed.drivername.startswith("sqlite"):
        return {"pool_pre_ping": True}

    options = {"connect_args": {"check_same_thread": False}}
    if parsed.database in (None, "", ":memory:"):
        # One shared connection, otherwise every session sees an empty database
        options["poolclass"] = StaticPool
    else:
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
    return options


class Database:
    """Owns the engine and hands out transactional sessions."""

    def __init__(self, url: str = MEMORY_URL):
        """
        Connect to a database and create missing tables.

        Args:
            url: SQLAlchemy database URL. The default is a private in-memory SQLite database.
        """
        self.url = url or MEMORY_URL
        self.engine = create_engine(self.url, echo=False, **_engine_options(self.url))
        self.SessionLocal = sessionmaker(
            bind=self.engine,
            autoflush=False,
            expire_on_commit=False,
        )

        Base.metadata.create_all(self.engine)
        logger.debug(f"Database initialized: {self.engine.url.render_as_string(hide_password=True)}")

    @contextmanager
    def session(self) -> Iterator[Session]:
        """
        Session that commits on success and rolls back on any error.

        Example:
            with database.session() as db:
                db.add(record)
        """
        db = self.SessionLocal()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    @staticmethod
    def get_or_raise(db: Session, model: Type[ModelT], record_id: int) -> ModelT:
        """
        Fetch a row by primary key.

        Raises:
            RecordNotFound: If no row has this id.
        """
        record = db.get(model, record_id)
        if record is None:
            raise RecordNotFound(model.__tablename__, record_id)
        return record

    def close(self) -> None:
        """Close database connections"""
        self.engine.dispose()
