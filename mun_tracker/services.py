"""
Business Logic Services for MUN Tracker Application

This module contains service classes that implement the core business logic
of the MUN Tracker system. Services handle committee management, event
recording and participation analytics with proper validation and error
handling.
"""

import logging
from typing import Any, List, Optional

from mun_tracker.exceptions import (
    AuthenticationFailedException,
    CommitteeNotFoundException,
    DataValidationException,
)
from mun_tracker.models import Committee, Event, EventDetails, EventType, ParticipationSummary
from mun_tracker.repositories import CommitteeRepository
from mun_tracker.statistics import (
    DEFAULT_SORT_DIRECTION,
    DEFAULT_SORT_FIELD,
    SortDirection,
    SortField,
    summarize_participation,
)

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 4


def _require_password(password: Any) -> str:
    if not password or not isinstance(password, str):
        raise DataValidationException("password", "Password is required")
    return password


class CommitteeService:
    """
    Handles committee lifecycle and access control

    This service manages committee creation and deletion, password
    checks and portfolio roster replacement.
    """

    def __init__(self, repository: CommitteeRepository):
        """
        Initialize committee service

        Args:
            repository: Repository for committee data
        """
        self.repository = repository

    def list_committees(self) -> List[Committee]:
        """
        Get all committees, newest first

        Returns:
            List of committees
        """
        return self.repository.list_committees()

    def create_committee(self, name: Any, password: Any) -> Committee:
        """
        Create a new committee

        Args:
            name: Display name, stored trimmed
            password: Committee password, at least four characters

        Returns:
            The created committee with an empty roster

        Raises:
            DataValidationException: If name or password is invalid
        """
        if not name or not isinstance(name, str) or not name.strip():
            raise DataValidationException("name", "Committee name is required")

        if not password or not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
            raise DataValidationException(
                "password",
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
            )

        committee = self.repository.create_committee(name.strip(), password)
        logger.info(f"Created committee {committee.committee_id} ({committee.name})")
        return committee

    def get_committee(self, committee_id: str) -> Optional[Committee]:
        """
        Get committee by ID

        Returns:
            Committee instance or None if not found
        """
        return self.repository.get_committee(committee_id)

    def get_committee_or_raise(self, committee_id: str) -> Committee:
        """
        Get committee by ID or raise exception if not found

        Raises:
            CommitteeNotFoundException: If committee not found
        """
        committee = self.get_committee(committee_id)
        if not committee:
            raise CommitteeNotFoundException(committee_id)
        return committee

    def delete_committee(self, committee_id: str, password: Any) -> None:
        """
        Delete a committee along with its portfolios and events

        Raises:
            DataValidationException: If password is missing
            AuthenticationFailedException: If password is wrong or the
                committee doesn't exist
        """
        password = _require_password(password)
        if not self.repository.delete_committee(committee_id, password):
            logger.warning(f"Refused to delete committee {committee_id}: invalid password or unknown id")
            raise AuthenticationFailedException(committee_id)
        logger.info(f"Deleted committee {committee_id}")

    def verify_access(self, committee_id: str, password: Any) -> bool:
        """
        Verify a committee password

        Returns:
            True if access is granted

        Raises:
            DataValidationException: If password is missing
            AuthenticationFailedException: If verification fails
        """
        password = _require_password(password)
        if not self.repository.verify_access(committee_id, password):
            logger.warning(f"Failed access attempt for committee {committee_id}")
            raise AuthenticationFailedException(committee_id)
        return True

    def replace_portfolios(self, committee_id: str, portfolios: Any) -> List[str]:
        """
        Replace the committee's portfolio roster

        Args:
            committee_id: Committee ID
            portfolios: Non-empty list of distinct, non-empty names

        Returns:
            The roster as stored, in alphabetical order

        Raises:
            DataValidationException: If the roster is malformed
            CommitteeNotFoundException: If committee not found
        """
        if not isinstance(portfolios, list) or not portfolios:
            raise DataValidationException("portfolios", "Valid portfolios array is required")

        names = []
        for portfolio in portfolios:
            if not isinstance(portfolio, str) or not portfolio.strip():
                raise DataValidationException("portfolios", "All portfolios must be non-empty strings")
            names.append(portfolio.strip())

        if len(set(names)) != len(names):
            raise DataValidationException("portfolios", "Duplicate portfolios found")

        roster = self.repository.replace_portfolios(committee_id, names)
        logger.info(f"Replaced portfolios for committee {committee_id} ({len(roster)} portfolios)")
        return roster


class EventService:
    """
    Handles event recording and retrieval

    Events are immutable once recorded. Their details arrive already
    decoded into one of the event detail variants.
    """

    def __init__(self, repository: CommitteeRepository):
        """
        Initialize event service

        Args:
            repository: Repository for committee data
        """
        self.repository = repository

    def list_events(self, committee_id: str) -> List[Event]:
        """
        Get a committee's events, newest first

        Raises:
            CommitteeNotFoundException: If committee not found
        """
        if not self.repository.committee_exists(committee_id):
            raise CommitteeNotFoundException(committee_id)
        return self.repository.list_events(committee_id)

    def add_event(self, committee_id: str, event_type: EventType, details: EventDetails) -> Event:
        """
        Record an event

        Returns:
            The stored event with its generated ID and timestamp

        Raises:
            CommitteeNotFoundException: If committee not found
        """
        event = self.repository.add_event(committee_id, event_type, details)
        logger.info(f"Recorded {event_type.value} by {details.subject} in committee {committee_id}")
        return event


class AnalyticsService:
    """
    Handles participation analytics for a committee

    Combines the committee's current roster with its event log.
    """

    def __init__(self, repository: CommitteeRepository):
        """
        Initialize analytics service

        Args:
            repository: Repository for committee data
        """
        self.repository = repository

    def get_participation(self, committee_id: str,
                          field: SortField = DEFAULT_SORT_FIELD,
                          direction: SortDirection = DEFAULT_SORT_DIRECTION) -> ParticipationSummary:
        """
        Get sorted per-portfolio statistics for a committee

        Raises:
            CommitteeNotFoundException: If committee not found
        """
        committee = self.repository.get_committee(committee_id)
        if not committee:
            raise CommitteeNotFoundException(committee_id)
        events = self.repository.list_events(committee_id)
        return summarize_participation(events, committee.portfolios, field, direction)
