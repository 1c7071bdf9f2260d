from datetime import datetime, timezone

import pytest

from mun_tracker.exceptions import DataValidationException
from mun_tracker.models import (
    Committee,
    Event,
    EventType,
    MotionDetails,
    MotionStatus,
    PointDetails,
    SpeechDetails,
    format_timestamp,
    parse_event_details,
)


class TestParseEventDetails:
    def test_speech(self):
        details = parse_event_details(
            EventType.SPEECH,
            {"portfolio": "USA", "duration": "1:30", "description": "Opening speech"},
        )

        assert details == SpeechDetails(portfolio="USA", duration="1:30", description="Opening speech")
        assert details.subject == "USA"

    def test_point_aliases(self):
        details = parse_event_details(
            EventType.POINT_OF_INFORMATION,
            {"raiser": "France", "targetPortfolio": "USA"},
        )

        assert details == PointDetails(raiser="France", target="USA")
        assert details.to_columns() == {
            "portfolio": "France",
            "target_portfolio": "USA",
            "description": None,
        }

    def test_portfolio_takes_precedence_over_raiser(self):
        details = parse_event_details(EventType.POINT_OF_ORDER, {"portfolio": "China", "raiser": "USA"})

        assert details.subject == "China"

    def test_motion_aliases(self):
        details = parse_event_details(
            EventType.MOTION,
            {"raiser": "Kenya", "motionType": "unmoderated caucus", "motionStatus": "passed"},
        )

        assert details == MotionDetails(raiser="Kenya", motion_type="unmoderated caucus",
                                        status=MotionStatus.PASSED)
        assert details.to_columns()["motion_status"] == "passed"

    def test_motion_short_names(self):
        details = parse_event_details(
            EventType.MOTION,
            {"raiser": "Kenya", "type": "moderated caucus", "status": "failed"},
        )

        assert details.motion_type == "moderated caucus"
        assert details.status is MotionStatus.FAILED

    def test_unknown_motion_status(self):
        with pytest.raises(DataValidationException) as excinfo:
            parse_event_details(EventType.MOTION, {"raiser": "Kenya", "status": "tabled"})
        assert excinfo.value.field_name == "status"

    def test_blank_optionals_become_none(self):
        details = parse_event_details(
            EventType.SPEECH,
            {"portfolio": "USA", "duration": "", "description": None},
        )

        assert details.duration is None
        assert details.description is None

    def test_numeric_duration_is_kept_as_text(self):
        details = parse_event_details(EventType.SPEECH, {"portfolio": "USA", "duration": 90})

        assert details.duration == "90"

    def test_fields_of_other_variants_are_ignored(self):
        details = parse_event_details(
            EventType.SPEECH,
            {"portfolio": "USA", "target": "France", "status": "passed"},
        )

        assert details.to_columns() == {"portfolio": "USA", "duration": None, "description": None}

    @pytest.mark.parametrize("event_type", list(EventType))
    def test_subject_is_required(self, event_type):
        with pytest.raises(DataValidationException):
            parse_event_details(event_type, {"description": "no subject"})

    @pytest.mark.parametrize("details", [None, {}, "USA", ["USA"]])
    def test_details_must_be_an_object(self, details):
        with pytest.raises(DataValidationException) as excinfo:
            parse_event_details(EventType.SPEECH, details)
        assert excinfo.value.field_name == "details"


class TestEventType:
    def test_parse(self):
        assert EventType.parse("point_of_order") is EventType.POINT_OF_ORDER

    def test_parse_rejects_unknown(self):
        with pytest.raises(DataValidationException) as excinfo:
            EventType.parse("right_of_reply")
        assert excinfo.value.validation_error == "Invalid event type"

    def test_only_motions_are_excluded_from_participation(self):
        assert [t for t in EventType if not t.counts_toward_participation] == [EventType.MOTION]


class TestCommittee:
    def test_verify_password_is_exact(self):
        committee = Committee("c-1", "UNSC", datetime(2025, 1, 1), password="Secret")

        assert committee.verify_password("Secret")
        assert not committee.verify_password("secret")
        assert not committee.verify_password("Secret ")

    def test_committee_without_password_is_open(self):
        committee = Committee("c-1", "UNSC", datetime(2025, 1, 1))

        assert not committee.has_password
        assert committee.verify_password("anything")

    def test_to_dict_hides_password(self):
        committee = Committee("c-1", "UNSC", datetime(2025, 1, 1, 12, 0), ["France", "USA"], "secret")

        assert committee.to_dict() == {
            "id": "c-1",
            "name": "UNSC",
            "createdAt": "2025-01-01T12:00:00.000Z",
            "portfolioCount": 2,
            "hasPassword": True,
            "portfolios": ["France", "USA"],
        }
        assert "portfolios" not in committee.to_summary_dict()


def test_event_to_dict_omits_absent_fields() -> None:
    event = Event(
        event_id="e-1",
        committee_id="c-1",
        event_type=EventType.SPEECH,
        portfolio="USA",
        timestamp=datetime(2025, 3, 1, 9, 30, 15, 250000),
        duration="1:00",
    )

    assert event.to_dict() == {
        "id": "e-1",
        "committeeId": "c-1",
        "type": "speech",
        "portfolio": "USA",
        "duration": "1:00",
        "timestamp": "2025-03-01T09:30:15.250Z",
    }


def test_format_timestamp_converts_aware_values_to_utc() -> None:
    value = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)

    assert format_timestamp(value) == "2025-03-01T09:00:00.000Z"
