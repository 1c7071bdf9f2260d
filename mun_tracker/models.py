"""
Data Models for MUN Tracker Application

This module contains all data model classes that represent the core entities
in the MUN Tracker system. These classes use dataclasses for clean,
type-safe data representation.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from mun_tracker.exceptions import DataValidationException


class EventType(Enum):
    """Enumeration for the procedural events recorded in a session"""
    SPEECH = "speech"
    POINT_OF_ORDER = "point_of_order"
    POINT_OF_INFORMATION = "point_of_information"
    MOTION = "motion"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").capitalize()

    @property
    def counts_toward_participation(self) -> bool:
        """Motions are procedural and never credited to a delegate"""
        return self is not EventType.MOTION

    @classmethod
    def parse(cls, value: Any) -> 'EventType':
        """
        Parse an event type tag

        Raises:
            DataValidationException: If the tag is not a recognized kind
        """
        try:
            return cls(value)
        except ValueError:
            raise DataValidationException("type", "Invalid event type")


class MotionStatus(Enum):
    """Enumeration for motion outcome"""
    PENDING = "pending"
    PASSED = "passed"
    FAILED = "failed"


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form stored in the database"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def format_timestamp(value: datetime) -> str:
    """
    Format a stored timestamp as ISO-8601 UTC with a 'Z' suffix

    Args:
        value: Naive UTC or aware datetime

    Returns:
        String such as '2025-03-01T09:30:00.000Z'
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class Committee:
    """
    Data model for a committee session

    A committee owns a roster of portfolios (delegate seats) and an event
    log. The password is compared as plain text.
    """
    committee_id: str
    name: str
    created_at: datetime
    portfolios: List[str] = field(default_factory=list)
    password: Optional[str] = None

    @property
    def portfolio_count(self) -> int:
        return len(self.portfolios)

    @property
    def has_password(self) -> bool:
        return bool(self.password)

    def verify_password(self, password: str) -> bool:
        """
        Verify committee password

        Committees without a password are open to everyone.

        Args:
            password: Password to verify

        Returns:
            True if access is granted
        """
        if not self.password:
            return True
        return self.password == password

    def to_summary_dict(self) -> Dict:
        """
        Convert committee to the listing representation

        Returns:
            Dictionary without the portfolio roster or password
        """
        return {
            "id": self.committee_id,
            "name": self.name,
            "createdAt": format_timestamp(self.created_at),
            "portfolioCount": self.portfolio_count,
            "hasPassword": self.has_password,
        }

    def to_dict(self) -> Dict:
        """
        Convert committee to dictionary for JSON serialization

        Returns:
            Dictionary representation (excluding password for security)
        """
        data = self.to_summary_dict()
        data["portfolios"] = list(self.portfolios)
        return data


@dataclass
class Event:
    """
    Data model for a recorded procedural event

    ``portfolio`` is the acting delegate. Subject and target are free text
    and may name portfolios that are no longer on the roster.
    """
    event_id: str
    committee_id: str
    event_type: EventType
    portfolio: str
    timestamp: datetime
    target_portfolio: Optional[str] = None
    duration: Optional[str] = None
    description: Optional[str] = None
    motion_type: Optional[str] = None
    motion_status: Optional[MotionStatus] = None

    def to_dict(self) -> Dict:
        """
        Convert event to dictionary for JSON serialization

        Returns:
            Dictionary representation; absent optional fields are omitted
        """
        data = {
            "id": self.event_id,
            "committeeId": self.committee_id,
            "type": self.event_type.value,
            "portfolio": self.portfolio,
            "targetPortfolio": self.target_portfolio,
            "duration": self.duration,
            "description": self.description,
            "motionType": self.motion_type,
            "motionStatus": self.motion_status.value if self.motion_status else None,
            "timestamp": format_timestamp(self.timestamp),
        }
        return {key: value for key, value in data.items() if value is not None}


def _text(data: Dict, field_name: str, *keys: str) -> Optional[str]:
    """Return the first non-empty value among ``keys``, as a string"""
    for key in keys:
        value = data.get(key)
        if value is None or isinstance(value, bool):
            continue
        if isinstance(value, (int, float)):
            value = str(value)
        if not isinstance(value, str):
            raise DataValidationException(field_name, f"{field_name} must be a string")
        value = value.strip()
        if value:
            return value
    return None


def _required_text(data: Dict, field_name: str, *keys: str) -> str:
    value = _text(data, field_name, *keys)
    if value is None:
        raise DataValidationException(field_name, f"{field_name} is required")
    return value


@dataclass
class SpeechDetails:
    """Details of a speech given by a delegate"""
    portfolio: str
    duration: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict) -> 'SpeechDetails':
        return cls(
            portfolio=_required_text(data, "portfolio", "portfolio", "raiser"),
            duration=_text(data, "duration", "duration"),
            description=_text(data, "description", "description"),
        )

    @property
    def subject(self) -> str:
        return self.portfolio

    def to_columns(self) -> Dict:
        return {
            "portfolio": self.portfolio,
            "duration": self.duration,
            "description": self.description,
        }


@dataclass
class PointDetails:
    """Details of a point of order or point of information"""
    raiser: str
    target: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict) -> 'PointDetails':
        return cls(
            raiser=_required_text(data, "raiser", "portfolio", "raiser"),
            target=_text(data, "target", "target", "targetPortfolio"),
            description=_text(data, "description", "description"),
        )

    @property
    def subject(self) -> str:
        return self.raiser

    def to_columns(self) -> Dict:
        return {
            "portfolio": self.raiser,
            "target_portfolio": self.target,
            "description": self.description,
        }


@dataclass
class MotionDetails:
    """Details of a motion raised on the floor"""
    raiser: str
    motion_type: Optional[str] = None
    description: Optional[str] = None
    status: Optional[MotionStatus] = None

    @classmethod
    def from_dict(cls, data: Dict) -> 'MotionDetails':
        status = _text(data, "status", "status", "motionStatus")
        if status is not None:
            try:
                status = MotionStatus(status.lower())
            except ValueError:
                raise DataValidationException(
                    "status", "Motion status must be one of pending, passed, failed"
                )
        return cls(
            raiser=_required_text(data, "raiser", "portfolio", "raiser"),
            motion_type=_text(data, "type", "type", "motionType"),
            description=_text(data, "description", "description"),
            status=status,
        )

    @property
    def subject(self) -> str:
        return self.raiser

    def to_columns(self) -> Dict:
        return {
            "portfolio": self.raiser,
            "motion_type": self.motion_type,
            "description": self.description,
            "motion_status": self.status.value if self.status else None,
        }


EventDetails = Union[SpeechDetails, PointDetails, MotionDetails]

_DETAILS_BY_TYPE = {
    EventType.SPEECH: SpeechDetails,
    EventType.POINT_OF_ORDER: PointDetails,
    EventType.POINT_OF_INFORMATION: PointDetails,
    EventType.MOTION: MotionDetails,
}


def parse_event_details(event_type: EventType, data: Any) -> EventDetails:
    """
    Decode a raw ``details`` object into the variant for ``event_type``

    Accepts the alias field names clients send (``raiser`` for ``portfolio``,
    ``targetPortfolio`` for ``target``, ``motionType`` for ``type``,
    ``motionStatus`` for ``status``).

    Args:
        event_type: Parsed event type
        data: Raw details mapping from the request body

    Returns:
        SpeechDetails, PointDetails or MotionDetails

    Raises:
        DataValidationException: If details are missing or malformed
    """
    if not isinstance(data, dict) or not data:
        raise DataValidationException("details", "Type and details are required")
    return _DETAILS_BY_TYPE[event_type].from_dict(data)


@dataclass
class DelegateStats:
    """Participation counters for one portfolio"""
    portfolio: str
    speeches: int = 0
    points_of_order: int = 0
    points_of_information: int = 0
    total_participation: int = 0

    def to_dict(self) -> Dict:
        return {
            "portfolio": self.portfolio,
            "speeches": self.speeches,
            "pointsOfOrder": self.points_of_order,
            "pointsOfInformation": self.points_of_information,
            "totalParticipation": self.total_participation,
        }


@dataclass
class ParticipationTotals:
    """Roster-wide sums of each participation counter"""
    speeches: int = 0
    points_of_order: int = 0
    points_of_information: int = 0
    total_participation: int = 0

    def to_dict(self) -> Dict:
        return {
            "speeches": self.speeches,
            "pointsOfOrder": self.points_of_order,
            "pointsOfInformation": self.points_of_information,
            "totalParticipation": self.total_participation,
        }


@dataclass
class ParticipationSummary:
    """Sorted per-delegate statistics together with roster-wide figures"""
    delegates: List[DelegateStats]
    totals: ParticipationTotals
    active_delegates: int
    sort_field: str
    sort_direction: str

    def to_dict(self) -> Dict:
        return {
            "delegates": [stats.to_dict() for stats in self.delegates],
            "totals": self.totals.to_dict(),
            "activeDelegates": self.active_delegates,
            "sort": self.sort_field,
            "direction": self.sort_direction,
        }
