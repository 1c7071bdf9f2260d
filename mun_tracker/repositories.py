"""
Data Repository Classes for MUN Tracker Application

This module implements the Repository pattern for data access operations.
It provides an abstraction layer between the business logic and data storage,
making it easy to switch between different storage mechanisms.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from typing import Callable, List, Optional
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from mun_tracker.database import CommitteeModel, Database, EventModel, PortfolioModel
from mun_tracker.exceptions import CommitteeNotFoundException, DataAccessException
from mun_tracker.models import (
    Committee,
    Event,
    EventDetails,
    EventType,
    MotionStatus,
    utcnow,
)

logger = logging.getLogger(__name__)


class CommitteeRepository(ABC):
    """
    Abstract base class for committee repositories

    This class defines the interface that all committee data stores
    must implement, following the Repository pattern.
    """

    @abstractmethod
    def create_committee(self, name: str, password: str) -> Committee:
        """
        Create a committee with an empty portfolio roster

        Raises:
            DataAccessException: If the write fails
        """
        pass

    @abstractmethod
    def get_committee(self, committee_id: str) -> Optional[Committee]:
        """
        Get committee with its portfolios

        Returns:
            Committee instance or None if not found
        """
        pass

    @abstractmethod
    def list_committees(self) -> List[Committee]:
        """
        List all committees, newest first
        """
        pass

    @abstractmethod
    def delete_committee(self, committee_id: str, password: str) -> bool:
        """
        Delete committee, its portfolios and its events

        Returns:
            True only if the committee existed and the password matched
        """
        pass

    @abstractmethod
    def verify_access(self, committee_id: str, password: str) -> bool:
        """
        Check a password against a committee

        Returns:
            True if the committee has no password or it matches exactly
        """
        pass

    @abstractmethod
    def replace_portfolios(self, committee_id: str, names: List[str]) -> List[str]:
        """
        Replace the committee's whole portfolio roster

        Returns:
            The roster as stored

        Raises:
            CommitteeNotFoundException: If the committee doesn't exist
        """
        pass

    @abstractmethod
    def list_events(self, committee_id: str) -> List[Event]:
        """
        List the committee's events, newest first
        """
        pass

    @abstractmethod
    def add_event(self, committee_id: str, event_type: EventType,
                  details: EventDetails) -> Event:
        """
        Record a new event

        Raises:
            CommitteeNotFoundException: If the committee doesn't exist
        """
        pass

    @abstractmethod
    def committee_exists(self, committee_id: str) -> bool:
        pass


def _sorted_roster(rows: List[PortfolioModel]) -> List[str]:
    ordered = sorted(rows, key=lambda row: (row.created_at, row.name.casefold(), row.name))
    return [row.name for row in ordered]


def _to_committee(row: CommitteeModel) -> Committee:
    return Committee(
        committee_id=row.id,
        name=row.name,
        created_at=row.created_at,
        portfolios=_sorted_roster(row.portfolios),
        password=row.password,
    )


def _to_event(row: EventModel) -> Event:
    return Event(
        event_id=row.id,
        committee_id=row.committee_id,
        event_type=EventType(row.type),
        portfolio=row.portfolio,
        timestamp=row.timestamp,
        target_portfolio=row.target_portfolio or None,
        duration=row.duration or None,
        description=row.description or None,
        motion_type=row.motion_type or None,
        motion_status=MotionStatus(row.motion_status) if row.motion_status else None,
    )


class SQLCommitteeRepository(CommitteeRepository):
    """
    SQLAlchemy-backed repository implementation

    Every operation runs in its own session taken from the injected
    ``Database`` handle. Portfolio rosters are stored in case-insensitive
    alphabetical order.
    """

    def __init__(self, database: Database, clock: Callable[[], datetime] = utcnow):
        """
        Initialize SQL repository

        Args:
            database: Initialized database handle
            clock: Source of creation timestamps
        """
        self.database = database
        self.clock = clock

    def _fail(self, operation: str, error: SQLAlchemyError) -> DataAccessException:
        logger.exception(f"Database error during {operation}")
        return DataAccessException(operation, str(error))

    def create_committee(self, name: str, password: str) -> Committee:
        row = CommitteeModel(
            id=str(uuid.uuid4()),
            name=name,
            password=password,
            created_at=self.clock(),
        )
        try:
            with self.database.session() as session:
                session.add(row)
        except SQLAlchemyError as e:
            raise self._fail("create_committee", e)

        return Committee(
            committee_id=row.id,
            name=row.name,
            created_at=row.created_at,
            portfolios=[],
            password=row.password,
        )

    def get_committee(self, committee_id: str) -> Optional[Committee]:
        try:
            with self.database.session() as session:
                row = session.scalar(
                    select(CommitteeModel)
                    .options(selectinload(CommitteeModel.portfolios))
                    .where(CommitteeModel.id == committee_id)
                )
                return _to_committee(row) if row else None
        except SQLAlchemyError as e:
            raise self._fail("get_committee", e)

    def list_committees(self) -> List[Committee]:
        try:
            with self.database.session() as session:
                rows = session.scalars(
                    select(CommitteeModel)
                    .options(selectinload(CommitteeModel.portfolios))
                    .order_by(CommitteeModel.created_at.desc())
                ).all()
                return [_to_committee(row) for row in rows]
        except SQLAlchemyError as e:
            raise self._fail("list_committees", e)

    def delete_committee(self, committee_id: str, password: str) -> bool:
        try:
            with self.database.session() as session:
                row = session.get(CommitteeModel, committee_id)
                if row is None or row.password != password:
                    return False
                session.delete(row)
        except SQLAlchemyError as e:
            raise self._fail("delete_committee", e)
        return True

    def verify_access(self, committee_id: str, password: str) -> bool:
        try:
            with self.database.session() as session:
                row = session.get(CommitteeModel, committee_id)
                if row is None:
                    return False
                return _to_committee(row).verify_password(password)
        except SQLAlchemyError as e:
            raise self._fail("verify_access", e)

    def replace_portfolios(self, committee_id: str, names: List[str]) -> List[str]:
        roster = sorted(names, key=lambda name: (name.casefold(), name))
        created_at = self.clock()
        try:
            with self.database.session() as session:
                if session.get(CommitteeModel, committee_id) is None:
                    raise CommitteeNotFoundException(committee_id)
                session.execute(
                    delete(PortfolioModel).where(PortfolioModel.committee_id == committee_id)
                )
                session.add_all([
                    PortfolioModel(
                        id=str(uuid.uuid4()),
                        committee_id=committee_id,
                        name=name,
                        created_at=created_at,
                    )
                    for name in roster
                ])
        except SQLAlchemyError as e:
            raise self._fail("replace_portfolios", e)
        return roster

    def list_events(self, committee_id: str) -> List[Event]:
        try:
            with self.database.session() as session:
                rows = session.scalars(
                    select(EventModel)
                    .where(EventModel.committee_id == committee_id)
                    .order_by(EventModel.timestamp.desc(), EventModel.id.desc())
                ).all()
                return [_to_event(row) for row in rows]
        except SQLAlchemyError as e:
            raise self._fail("list_events", e)

    def add_event(self, committee_id: str, event_type: EventType,
                  details: EventDetails) -> Event:
        try:
            with self.database.session() as session:
                if session.get(CommitteeModel, committee_id) is None:
                    logger.error(f"Committee with ID {committee_id} not found")
                    raise CommitteeNotFoundException(committee_id)
                row = EventModel(
                    id=str(uuid.uuid4()),
                    committee_id=committee_id,
                    type=event_type.value,
                    timestamp=self.clock(),
                    **details.to_columns(),
                )
                session.add(row)
        except SQLAlchemyError as e:
            raise self._fail("add_event", e)
        return _to_event(row)

    def committee_exists(self, committee_id: str) -> bool:
        try:
            with self.database.session() as session:
                return session.get(CommitteeModel, committee_id) is not None
        except SQLAlchemyError as e:
            raise self._fail("committee_exists", e)


class RepositoryFactory:
    """
    Factory class for creating repository instances

    This class provides a centralized way to create repositories
    for a configured database URL.
    """

    @staticmethod
    def create_sql_repository(url: str, echo: bool = False) -> SQLCommitteeRepository:
        """
        Create a repository over a freshly initialized database

        Args:
            url: SQLAlchemy connection string
            echo: Log every SQL statement

        Returns:
            SQLCommitteeRepository instance
        """
        database = Database(url, echo=echo)
        database.initialize()
        return SQLCommitteeRepository(database)

    @staticmethod
    def create_memory_repository() -> SQLCommitteeRepository:
        """
        Create a repository over a private in-memory SQLite database

        Returns:
            SQLCommitteeRepository instance
        """
        return RepositoryFactory.create_sql_repository("sqlite://")
