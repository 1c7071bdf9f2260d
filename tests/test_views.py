import io
from datetime import datetime

import pytest

from mun_tracker.exceptions import DataValidationException
from mun_tracker.models import Event, EventType
from mun_tracker.statistics import SortDirection, SortField
from mun_tracker.views import (
    check_form_complete,
    describe_event,
    form_to_details,
    format_time,
    next_sort,
    parse_portfolio_file,
    sort_indicator,
)


class TestParsePortfolioFile:
    def test_valid_file(self):
        assert parse_portfolio_file("roster.json", b'[" USA ", "France"]') == ["USA", "France"]

    @pytest.mark.parametrize("filename, content, message", [
        ("roster.txt", b'["USA"]', "Please upload a JSON file"),
        (None, b'["USA"]', "Please upload a JSON file"),
        ("roster.json", b"[USA", "Invalid JSON format"),
        ("roster.json", b"\xff\xfe", "Invalid JSON format"),
        ("roster.json", b'{"USA": 1}', "File must contain a JSON array"),
        ("roster.json", b"[]", "Portfolio array cannot be empty"),
        ("roster.json", b'["USA", 3]', "Item at index 1 must be a string"),
        ("roster.json", b'["USA", "   "]', "Item at index 1 cannot be empty"),
        ("roster.json", b'["USA", " USA"]', "Duplicate portfolios found"),
    ])
    def test_rejected_files(self, filename, content, message):
        with pytest.raises(DataValidationException) as excinfo:
            parse_portfolio_file(filename, content)
        assert excinfo.value.validation_error == message

    def test_duplicates_are_case_sensitive(self):
        assert parse_portfolio_file("roster.json", b'["usa", "USA"]') == ["usa", "USA"]


class TestEventForms:
    def test_point_needs_target(self):
        with pytest.raises(DataValidationException) as excinfo:
            check_form_complete(EventType.POINT_OF_ORDER, {"raiser": "USA", "target": ""})
        assert excinfo.value.validation_error == "Please select a target portfolio"

    def test_motion_needs_type(self):
        with pytest.raises(DataValidationException):
            check_form_complete(EventType.MOTION, {"raiser": "USA", "type": "  "})

    def test_complete_speech_form(self):
        check_form_complete(EventType.SPEECH, {"portfolio": "USA"})

    def test_form_to_details_drops_blank_fields(self):
        assert form_to_details({"portfolio": "USA", "duration": "", "description": " "}) == {"portfolio": "USA"}


class TestSorting:
    def test_clicking_active_column_toggles_direction(self):
        assert next_sort(SortField.SPEECHES, SortDirection.DESC, SortField.SPEECHES) == (
            SortField.SPEECHES, SortDirection.ASC)
        assert next_sort(SortField.SPEECHES, SortDirection.ASC, SortField.SPEECHES) == (
            SortField.SPEECHES, SortDirection.DESC)

    def test_clicking_other_column_sorts_descending(self):
        assert next_sort(SortField.SPEECHES, SortDirection.ASC, SortField.PORTFOLIO) == (
            SortField.PORTFOLIO, SortDirection.DESC)

    def test_indicator(self):
        assert sort_indicator(SortField.SPEECHES, SortDirection.ASC, SortField.SPEECHES) == "↑"
        assert sort_indicator(SortField.SPEECHES, SortDirection.DESC, SortField.SPEECHES) == "↓"
        assert sort_indicator(SortField.SPEECHES, SortDirection.DESC, SortField.PORTFOLIO) == "↕"


@pytest.mark.parametrize("event_type, extra, expected", [
    (EventType.SPEECH, {}, "USA spoke"),
    (EventType.POINT_OF_INFORMATION, {"target_portfolio": "France"}, "USA → France"),
    (EventType.MOTION, {"motion_type": "moderated_caucus"}, "USA - moderated caucus"),
])
def test_describe_event(event_type, extra, expected) -> None:
    event = Event("e-1", "c-1", event_type, "USA", datetime(2025, 3, 1, 9, 0), **extra)

    assert describe_event(event) == expected


def test_format_time_marks_utc() -> None:
    event = Event("e-1", "c-1", EventType.SPEECH, "USA", datetime(2025, 3, 1, 9, 5, 7))

    assert format_time(event) == "09:05:07 UTC"


class TestPages:
    @pytest.fixture
    def page_committee(self, client, committee_id):
        client.post(f"/api/committees/{committee_id}/portfolios", json={"portfolios": ["USA", "France"]})
        return committee_id

    def test_home_lists_committees(self, client, committee_id):
        response = client.get("/")

        assert response.status_code == 200
        assert b"UNSC" in response.data

    def test_create_committee_redirects_to_dashboard(self, client):
        response = client.post("/committees", data={"name": "DISEC", "password": "secret"})

        assert response.status_code == 302
        assert "/committees/" in response.headers["Location"]

    def test_create_committee_with_short_password(self, client):
        response = client.post("/committees", data={"name": "DISEC", "password": "abc"},
                               follow_redirects=True)

        assert b"Password must be at least 4 characters long" in response.data

    def test_access_with_wrong_password(self, client, committee_id):
        response = client.post(f"/committees/{committee_id}/access", data={"password": "wrong"},
                               follow_redirects=True)

        assert b"Invalid password" in response.data

    def test_access_with_password(self, client, committee_id):
        response = client.post(f"/committees/{committee_id}/access", data={"password": "secret"})

        assert response.status_code == 302
        assert response.headers["Location"].endswith(f"/committees/{committee_id}")

    def test_dashboard(self, client, page_committee):
        response = client.get(f"/committees/{page_committee}",
                              query_string={"sort": "portfolio", "direction": "asc"})

        assert response.status_code == 200
        page = response.get_data(as_text=True)
        assert "Delegate Participation Analytics" in page
        assert page.index("<td>France</td>") < page.index("<td>USA</td>")

    def test_dashboard_for_unknown_committee(self, client):
        assert client.get("/committees/missing").status_code == 404

    def test_upload_portfolios(self, client, committee_id):
        response = client.post(
            f"/committees/{committee_id}/portfolios",
            data={"file": (io.BytesIO(b'["USA", "France", "China"]'), "roster.json")},
            content_type="multipart/form-data",
            follow_redirects=True,
        )

        assert b"Uploaded 3 portfolios" in response.data
        portfolios = client.get(f"/api/committees/{committee_id}").get_json()["portfolios"]
        assert portfolios == ["China", "France", "USA"]

    def test_upload_invalid_file_keeps_roster(self, client, page_committee):
        response = client.post(
            f"/committees/{page_committee}/portfolios",
            data={"file": (io.BytesIO(b'["Kenya", "Kenya"]'), "roster.json")},
            content_type="multipart/form-data",
            follow_redirects=True,
        )

        assert b"Duplicate portfolios found" in response.data
        portfolios = client.get(f"/api/committees/{page_committee}").get_json()["portfolios"]
        assert portfolios == ["France", "USA"]

    def test_record_event_from_form(self, client, page_committee):
        response = client.post(
            f"/committees/{page_committee}/events/point_of_information",
            data={"raiser": "France", "target": "USA", "description": ""},
            follow_redirects=True,
        )

        assert b"Point of information recorded" in response.data
        (event,) = client.get(f"/api/committees/{page_committee}/events").get_json()
        assert (event["portfolio"], event["targetPortfolio"]) == ("France", "USA")

    def test_incomplete_form_is_refused(self, client, page_committee):
        response = client.post(
            f"/committees/{page_committee}/events/point_of_order",
            data={"raiser": "France", "target": ""},
            follow_redirects=True,
        )

        assert b"Please select a target portfolio" in response.data
        assert client.get(f"/api/committees/{page_committee}/events").get_json() == []

    def test_delete_committee(self, client, committee_id):
        response = client.post(f"/committees/{committee_id}/delete", data={"password": "secret"},
                               follow_redirects=True)

        assert b"Committee deleted successfully" in response.data
        assert client.get(f"/api/committees/{committee_id}").status_code == 404

    def test_delete_committee_with_wrong_password(self, client, committee_id):
        response = client.post(f"/committees/{committee_id}/delete", data={"password": "wrong"},
                               follow_redirects=True)

        assert b"Invalid password or committee not found" in response.data
        assert client.get(f"/api/committees/{committee_id}").status_code == 200
