"""
Presentation helpers for the MUN Tracker web pages.

View-only logic used by the page handlers and templates: validating an
uploaded portfolio file, gating event forms on their required fields, the
sortable table's header links and event display text.
"""

import json
from typing import Any, Dict, List, Optional, Tuple

from mun_tracker.exceptions import DataValidationException
from mun_tracker.models import Event, EventType
from mun_tracker.statistics import SortDirection, SortField

# Form fields that must be filled in before an event can be recorded
FORM_REQUIRED_FIELDS = {
    EventType.SPEECH: ("portfolio",),
    EventType.POINT_OF_INFORMATION: ("raiser", "target"),
    EventType.POINT_OF_ORDER: ("raiser", "target"),
    EventType.MOTION: ("raiser", "type"),
}

FORM_FIELD_LABELS = {
    "portfolio": "portfolio",
    "raiser": "raising portfolio",
    "target": "target portfolio",
    "type": "motion type",
}

SORT_COLUMNS = [
    (SortField.PORTFOLIO, "Portfolio"),
    (SortField.SPEECHES, "Speeches"),
    (SortField.POINTS_OF_ORDER, "Points of Order"),
    (SortField.POINTS_OF_INFORMATION, "Points of Information"),
    (SortField.TOTAL_PARTICIPATION, "Total Participation"),
]


def validate_portfolio_data(data: Any) -> List[str]:
    """
    Validate a decoded portfolio file

    Args:
        data: Parsed JSON content

    Returns:
        Trimmed portfolio names, in file order

    Raises:
        DataValidationException: With the message to show the user
    """
    if not isinstance(data, list):
        raise DataValidationException("file", "File must contain a JSON array")

    if not data:
        raise DataValidationException("file", "Portfolio array cannot be empty")

    portfolios = []
    for index, item in enumerate(data):
        if not isinstance(item, str):
            raise DataValidationException("file", f"Item at index {index} must be a string")
        trimmed = item.strip()
        if not trimmed:
            raise DataValidationException("file", f"Item at index {index} cannot be empty")
        portfolios.append(trimmed)

    if len(set(portfolios)) != len(portfolios):
        raise DataValidationException("file", "Duplicate portfolios found")

    return portfolios


def parse_portfolio_file(filename: Optional[str], content: bytes) -> List[str]:
    """
    Read an uploaded portfolio file

    Args:
        filename: Name of the uploaded file
        content: Raw file bytes

    Returns:
        Validated portfolio names

    Raises:
        DataValidationException: If the file is not a valid portfolio list
    """
    if not filename or not filename.endswith(".json"):
        raise DataValidationException("file", "Please upload a JSON file")

    try:
        data = json.loads(content.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        raise DataValidationException("file", "Invalid JSON format")

    return validate_portfolio_data(data)


def check_form_complete(event_type: EventType, form: Dict) -> None:
    """
    Refuse an event form with a required field left blank

    Raises:
        DataValidationException: Naming the first missing field
    """
    for name in FORM_REQUIRED_FIELDS[event_type]:
        value = form.get(name)
        if not value or not str(value).strip():
            label = FORM_FIELD_LABELS[name]
            raise DataValidationException(name, f"Please select a {label}")


def form_to_details(form: Dict) -> Dict:
    """Keep only the non-blank fields of a submitted event form"""
    return {key: value for key, value in form.items() if value and value.strip()}


def next_sort(current_field: SortField, current_direction: SortDirection,
              clicked: SortField) -> Tuple[SortField, SortDirection]:
    """
    Sort state after clicking a column header

    Clicking the active column flips the direction; another column
    starts descending.
    """
    if clicked is current_field:
        return clicked, current_direction.toggled()
    return clicked, SortDirection.DESC


def sort_indicator(current_field: SortField, current_direction: SortDirection,
                   column: SortField) -> str:
    if column is not current_field:
        return "↕"
    return "↑" if current_direction is SortDirection.ASC else "↓"


def describe_event(event: Event) -> str:
    """Headline shown for an event in the history list"""
    if event.event_type is EventType.SPEECH:
        return f"{event.portfolio} spoke"
    if event.event_type is EventType.MOTION:
        motion_type = (event.motion_type or "").replace("_", " ")
        return f"{event.portfolio} - {motion_type}" if motion_type else event.portfolio
    if event.target_portfolio:
        return f"{event.portfolio} → {event.target_portfolio}"
    return event.portfolio


def format_time(event: Event) -> str:
    return event.timestamp.strftime("%H:%M:%S UTC")
