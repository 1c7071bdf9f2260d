"""
Participation statistics for committee sessions.

Tallies speeches, points of order and points of information per portfolio
and sorts the result for display. Everything here is pure and works on
in-memory data.
"""

from enum import Enum
from typing import Dict, Iterable, List, Tuple

from mun_tracker.exceptions import DataValidationException
from mun_tracker.models import (
    DelegateStats,
    Event,
    EventType,
    ParticipationSummary,
    ParticipationTotals,
)


class SortField(Enum):
    """Columns of the participation table, keyed by their JSON name"""
    PORTFOLIO = "portfolio"
    SPEECHES = "speeches"
    POINTS_OF_ORDER = "pointsOfOrder"
    POINTS_OF_INFORMATION = "pointsOfInformation"
    TOTAL_PARTICIPATION = "totalParticipation"

    @property
    def attribute(self) -> str:
        return _SORT_ATTRIBUTES[self]

    @property
    def is_numeric(self) -> bool:
        return self is not SortField.PORTFOLIO


class SortDirection(Enum):
    ASC = "asc"
    DESC = "desc"

    def toggled(self) -> 'SortDirection':
        return SortDirection.ASC if self is SortDirection.DESC else SortDirection.DESC


_SORT_ATTRIBUTES = {
    SortField.PORTFOLIO: "portfolio",
    SortField.SPEECHES: "speeches",
    SortField.POINTS_OF_ORDER: "points_of_order",
    SortField.POINTS_OF_INFORMATION: "points_of_information",
    SortField.TOTAL_PARTICIPATION: "total_participation",
}

_COUNTERS = {
    EventType.SPEECH: "speeches",
    EventType.POINT_OF_ORDER: "points_of_order",
    EventType.POINT_OF_INFORMATION: "points_of_information",
}

DEFAULT_SORT_FIELD = SortField.TOTAL_PARTICIPATION
DEFAULT_SORT_DIRECTION = SortDirection.DESC


def parse_sort(field: str = None, direction: str = None) -> Tuple[SortField, SortDirection]:
    """
    Parse sort query parameters, falling back to the defaults when absent

    Returns:
        (SortField, SortDirection)

    Raises:
        DataValidationException: If either value is unknown
    """
    try:
        sort_field = SortField(field) if field else DEFAULT_SORT_FIELD
    except ValueError:
        choices = ", ".join(f.value for f in SortField)
        raise DataValidationException("sort", f"Sort field must be one of {choices}")
    try:
        sort_direction = SortDirection(direction) if direction else DEFAULT_SORT_DIRECTION
    except ValueError:
        raise DataValidationException("direction", "Sort direction must be asc or desc")
    return sort_field, sort_direction


def calculate_delegate_stats(events: Iterable[Event], portfolios: Iterable[str]) -> List[DelegateStats]:
    """
    Count each portfolio's participation

    Args:
        events: Committee events, in any order
        portfolios: The current roster

    Returns:
        One record per roster portfolio, in roster order. Events by
        portfolios outside the roster and motions are not counted.
    """
    stats: Dict[str, DelegateStats] = {}
    for portfolio in portfolios:
        stats.setdefault(portfolio, DelegateStats(portfolio=portfolio))

    for event in events:
        if not event.event_type.counts_toward_participation:
            continue
        counter = _COUNTERS[event.event_type]
        record = stats.get(event.portfolio)
        if record is None:
            continue
        setattr(record, counter, getattr(record, counter) + 1)
        record.total_participation += 1

    return list(stats.values())


def sort_delegate_stats(stats: List[DelegateStats],
                        field: SortField = DEFAULT_SORT_FIELD,
                        direction: SortDirection = DEFAULT_SORT_DIRECTION) -> List[DelegateStats]:
    """
    Sort statistics by one column

    Portfolio names compare case-insensitively, counters numerically.
    Equal rows keep their input order in both directions.
    """
    if field.is_numeric:
        key = lambda record: getattr(record, field.attribute)
    else:
        key = lambda record: record.portfolio.casefold()
    return sorted(stats, key=key, reverse=direction is SortDirection.DESC)


def calculate_totals(stats: Iterable[DelegateStats]) -> ParticipationTotals:
    """Sum every counter across the roster"""
    totals = ParticipationTotals()
    for record in stats:
        totals.speeches += record.speeches
        totals.points_of_order += record.points_of_order
        totals.points_of_information += record.points_of_information
        totals.total_participation += record.total_participation
    return totals


def count_active_delegates(stats: Iterable[DelegateStats]) -> int:
    """Number of portfolios with at least one counted event"""
    return sum(1 for record in stats if record.total_participation > 0)


def summarize_participation(events: Iterable[Event], portfolios: Iterable[str],
                            field: SortField = DEFAULT_SORT_FIELD,
                            direction: SortDirection = DEFAULT_SORT_DIRECTION) -> ParticipationSummary:
    """
    Build the sorted participation table with roster-wide figures

    Args:
        events: Committee events
        portfolios: The current roster
        field: Column to sort by
        direction: Sort direction

    Returns:
        ParticipationSummary
    """
    stats = sort_delegate_stats(calculate_delegate_stats(events, portfolios), field, direction)
    return ParticipationSummary(
        delegates=stats,
        totals=calculate_totals(stats),
        active_delegates=count_active_delegates(stats),
        sort_field=field.value,
        sort_direction=direction.value,
    )
