from typing import Optional

from fastapi import Request
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from meridian.config import settings
from meridian.utils.logger import logger


class Database:
    """Owns the engine for one process. Built at startup, disposed at shutdown."""

    def __init__(self, url: str, echo: bool = False):
        connect_args = {}
        engine_kwargs = {}
        if url.startswith("sqlite"):
            logger.info("Using SQLite database.")
            # This prevents 'ProgrammingError: SQLite objects created in a thread can only be used in that same thread'
            connect_args["check_same_thread"] = False
            if url in ("sqlite://", "sqlite:///:memory:"):
                engine_kwargs["poolclass"] = StaticPool
        else:
            logger.info("Using a non-SQLite database (e.g., PostgreSQL).")
            engine_kwargs["pool_pre_ping"] = True

        self.url = url
        self.engine = create_engine(
            url, echo=echo, connect_args=connect_args, **engine_kwargs
        )
        logger.info("Database engine created successfully.")

    @classmethod
    def from_settings(cls) -> "Database":
        return cls(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)

    def session(self) -> Session:
        return Session(self.engine)

    def create_all(self):
        """Create tables directly from the models (tests and local development)."""
        # Import for side effects: registers every table on SQLModel.metadata.
        import meridian.models  # noqa: F401

        SQLModel.metadata.create_all(self.engine)

    def dispose(self):
        self.engine.dispose()


def get_database(request: Request) -> Database:
    database: Optional[Database] = getattr(request.app.state, "database", None)
    if database is None:
        logger.error("Database requested before the application finished starting.")
        raise RuntimeError("Database is not initialized.")
    return database


def get_session(request: Request):
    with get_database(request).session() as session:
        yield session
