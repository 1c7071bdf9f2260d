"""
Database schema and session management for MUN Tracker.

ORM models for the committees, portfolios and events tables, and the
``Database`` handle that owns the engine and hands out scoped sessions.
The handle is constructed explicitly and injected into repositories.
"""

from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional
import logging

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    Session,
    mapped_column,
    relationship,
    sessionmaker,
)
from sqlalchemy.pool import StaticPool

from mun_tracker.models import utcnow

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all ORM models"""
    pass


class CommitteeModel(Base):
    """
    Database model for committees.

    Deleting a committee removes its portfolios and events.
    """

    __tablename__ = "committees"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    password: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    portfolios: Mapped[List["PortfolioModel"]] = relationship(
        back_populates="committee",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    events: Mapped[List["EventModel"]] = relationship(
        back_populates="committee",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_committees_created_at", "created_at"),
    )


class PortfolioModel(Base):
    """Database model for a delegate seat within a committee"""

    __tablename__ = "portfolios"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    committee_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("committees.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    committee: Mapped[CommitteeModel] = relationship(back_populates="portfolios")

    __table_args__ = (
        Index("idx_portfolios_committee_id", "committee_id"),
    )


class EventModel(Base):
    """
    Database model for recorded events.

    ``portfolio`` and ``target_portfolio`` hold names, not foreign keys,
    so events survive roster replacement.
    """

    __tablename__ = "events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    committee_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("committees.id", ondelete="CASCADE"),
        nullable=False,
    )
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    portfolio: Mapped[str] = mapped_column(Text, nullable=False)
    target_portfolio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    duration: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    motion_type: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    motion_status: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    committee: Mapped[CommitteeModel] = relationship(back_populates="events")

    __table_args__ = (
        Index("idx_events_committee_id", "committee_id"),
        Index("idx_events_timestamp", "timestamp"),
        Index("idx_events_type", "type"),
        Index("idx_events_portfolio", "portfolio"),
    )


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Database connection manager.

    Owns the SQLAlchemy engine and session factory.

    Example:
        database = Database("sqlite:///mun-tracker.db")
        database.initialize()

        with database.session() as session:
            session.add(committee)

        database.close()
    """

    def __init__(self, url: str, echo: bool = False):
        """
        Initialize database manager

        Args:
            url: SQLAlchemy connection string
            echo: Log every SQL statement
        """
        self.url = url
        self.echo = echo
        self.engine: Engine | None = None
        self.session_factory: sessionmaker[Session] | None = None

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    def initialize(self) -> None:
        """
        Create the engine, the session factory and any missing tables.
        """
        if self.engine is not None:
            logger.warning("Database already initialized")
            return

        engine_kwargs = {"echo": self.echo}
        if self.is_sqlite:
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if self.url in ("sqlite://", "sqlite:///:memory:"):
                # A single shared connection keeps the in-memory database alive
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs["pool_pre_ping"] = True

        logger.info(f"Initializing database: {self.url.split('://')[0]}")
        self.engine = create_engine(self.url, **engine_kwargs)

        if self.is_sqlite:
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

        self.session_factory = sessionmaker(
            self.engine,
            expire_on_commit=False,
            autoflush=False,
        )
        Base.metadata.create_all(self.engine)
        logger.info("Database initialized successfully")

    @contextmanager
    def session(self) -> Iterator[Session]:
        """
        Create a new database session with automatic cleanup.

        Commits on success, rolls back and re-raises on error.

        Yields:
            Session for database operations
        """
        if self.session_factory is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self) -> None:
        """Dispose of the engine and its connection pool"""
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None
            self.session_factory = None
            logger.info("Database connections closed")
