"""
Main Application Module for MUN Tracker

This module contains the main Flask application class that orchestrates
all services and handles HTTP requests. It serves both the JSON API under
``/api`` and the server-rendered committee pages.
"""

import logging
import os
from typing import Optional

from flask import Flask, flash, jsonify, redirect, render_template, request, url_for
from werkzeug.exceptions import HTTPException

from mun_tracker.database import Database
from mun_tracker.exceptions import (
    AuthenticationFailedException,
    CommitteeNotFoundException,
    DataAccessException,
    DataValidationException,
    MUNTrackerException,
)
from mun_tracker.models import EventType, parse_event_details
from mun_tracker.repositories import SQLCommitteeRepository
from mun_tracker.services import AnalyticsService, CommitteeService, EventService
from mun_tracker.statistics import parse_sort, summarize_participation
from mun_tracker import views

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class MUNTrackerApp:
    """
    Main Flask application class for MUN Tracker

    This class orchestrates all services and handles the web interface
    and JSON API for tracking committee session events.
    """

    def __init__(self, config: Optional[dict] = None):
        """
        Initialize the MUN Tracker application

        Args:
            config: Optional configuration dictionary
        """
        # Initialize Flask app
        self.app = Flask(__name__)
        self._configure_app(config)
        self._configure_logging()

        # Initialize database and repository
        self.database = Database(
            self.app.config["DATABASE_URL"],
            echo=self.app.config["DATABASE_ECHO"]
        )
        self.database.initialize()
        self.repository = SQLCommitteeRepository(self.database)

        # Initialize services
        self.committee_service = CommitteeService(self.repository)
        self.event_service = EventService(self.repository)
        self.analytics_service = AnalyticsService(self.repository)

        # Register routes
        self._register_routes()

        # Register error handlers
        self._register_error_handlers()

    def _configure_app(self, config: Optional[dict] = None) -> None:
        """
        Configure Flask application settings

        Args:
            config: Optional configuration dictionary
        """
        # Default configuration
        default_config = {
            'SECRET_KEY': 'MUN2025',
            'DEBUG': True,
            'TESTING': False,
            'DATABASE_URL': 'sqlite:///mun-tracker.db',
            'DATABASE_ECHO': False,
            'LOG_LEVEL': 'INFO',
        }

        # Update with provided config
        if config:
            default_config.update(config)

        # Apply configuration
        self.app.secret_key = default_config['SECRET_KEY']
        self.app.config.update(default_config)

    def _configure_logging(self) -> None:
        """Configure root logging from LOG_LEVEL"""
        level = str(self.app.config['LOG_LEVEL']).upper()
        logging.basicConfig(level=level, format=LOG_FORMAT)
        logging.getLogger("mun_tracker").setLevel(level)

    def _register_routes(self) -> None:
        """Register all Flask routes"""
        # JSON API
        self.app.add_url_rule("/health", "health", self.health)
        self.app.add_url_rule("/api/committees", "api_list_committees",
                              self.api_list_committees, methods=["GET"])
        self.app.add_url_rule("/api/committees", "api_create_committee",
                              self.api_create_committee, methods=["POST"])
        self.app.add_url_rule("/api/committees/<committee_id>", "api_get_committee",
                              self.api_get_committee, methods=["GET"])
        self.app.add_url_rule("/api/committees/<committee_id>", "api_delete_committee",
                              self.api_delete_committee, methods=["DELETE"])
        self.app.add_url_rule("/api/committees/<committee_id>/verify", "api_verify_committee",
                              self.api_verify_committee, methods=["POST"])
        self.app.add_url_rule("/api/committees/<committee_id>/portfolios", "api_replace_portfolios",
                              self.api_replace_portfolios, methods=["POST"])
        self.app.add_url_rule("/api/committees/<committee_id>/events", "api_list_events",
                              self.api_list_events, methods=["GET"])
        self.app.add_url_rule("/api/committees/<committee_id>/events", "api_add_event",
                              self.api_add_event, methods=["POST"])
        self.app.add_url_rule("/api/committees/<committee_id>/statistics", "api_statistics",
                              self.api_statistics, methods=["GET"])

        # Pages
        self.app.add_url_rule("/", "home", self.home)
        self.app.add_url_rule("/committees", "create_committee",
                              self.create_committee, methods=["POST"])
        self.app.add_url_rule("/committees/<committee_id>", "committee",
                              self.committee)
        self.app.add_url_rule("/committees/<committee_id>/access", "access_committee",
                              self.access_committee, methods=["POST"])
        self.app.add_url_rule("/committees/<committee_id>/portfolios", "upload_portfolios",
                              self.upload_portfolios, methods=["POST"])
        self.app.add_url_rule("/committees/<committee_id>/events/<event_type>", "record_event",
                              self.record_event, methods=["POST"])
        self.app.add_url_rule("/committees/<committee_id>/delete", "delete_committee",
                              self.delete_committee, methods=["POST"])

    def _register_error_handlers(self) -> None:
        """Register error handlers for custom exceptions"""

        @self.app.errorhandler(DataValidationException)
        def handle_validation_error(e):
            return self._error_response(e.validation_error, 400)

        @self.app.errorhandler(AuthenticationFailedException)
        def handle_auth_failed(e):
            return self._error_response("Invalid password", 401)

        @self.app.errorhandler(CommitteeNotFoundException)
        def handle_committee_not_found(e):
            return self._error_response("Committee not found", 404)

        @self.app.errorhandler(DataAccessException)
        def handle_data_access_error(e):
            logger.error(f"Data access failure: {e}")
            return self._error_response(f"Failed to {e.operation.replace('_', ' ')}", 500)

        @self.app.errorhandler(MUNTrackerException)
        def handle_mun_tracker_exception(e):
            logger.error(f"Application error: {e}")
            return self._error_response("Internal server error", 500)

        @self.app.errorhandler(Exception)
        def handle_unexpected_error(e):
            if isinstance(e, HTTPException):
                if self._wants_json():
                    return jsonify({"error": e.description}), e.code
                return e
            logger.exception("Unhandled error")
            return self._error_response("Internal server error", 500)

    def _wants_json(self) -> bool:
        return request.path.startswith("/api") or request.path == "/health"

    def _error_response(self, message: str, status: int):
        """
        Build an error response for the current request

        API requests get ``{"error": message}``; page requests get the
        error page.
        """
        if self._wants_json():
            return jsonify({"error": message}), status
        return render_template("error.html",
                               error_title="Application Error" if status >= 500 else "Request Failed",
                               error_message=message), status

    def _json_body(self) -> dict:
        """
        Get the request body as a JSON object

        Raises:
            DataValidationException: If the body is missing or not an object
        """
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            raise DataValidationException("body", "Request body must be a JSON object")
        return body

    def _password_body(self) -> dict:
        """Get the request body, treating anything but a JSON object as empty"""
        body = request.get_json(silent=True)
        return body if isinstance(body, dict) else {}

    # JSON API

    def health(self):
        return jsonify({"status": "ok"})

    def api_list_committees(self):
        """
        List committees

        Returns:
            JSON array of committee summaries, newest first
        """
        committees = self.committee_service.list_committees()
        return jsonify([committee.to_summary_dict() for committee in committees])

    def api_create_committee(self):
        """
        Create a committee from ``{name, password}``

        Returns:
            JSON of the created committee
        """
        body = self._json_body()
        committee = self.committee_service.create_committee(body.get("name"), body.get("password"))
        return jsonify(committee.to_dict())

    def api_get_committee(self, committee_id: str):
        committee = self.committee_service.get_committee_or_raise(committee_id)
        return jsonify(committee.to_dict())

    def api_delete_committee(self, committee_id: str):
        """
        Delete a committee given ``{password}``

        Returns:
            ``{"success": true}`` or 401 on a wrong password
        """
        body = self._password_body()
        try:
            self.committee_service.delete_committee(committee_id, body.get("password"))
        except AuthenticationFailedException:
            return jsonify({"error": "Invalid password or committee not found"}), 401
        return jsonify({"success": True})

    def api_verify_committee(self, committee_id: str):
        body = self._password_body()
        self.committee_service.verify_access(committee_id, body.get("password"))
        return jsonify({"success": True})

    def api_replace_portfolios(self, committee_id: str):
        """
        Replace the roster from ``{portfolios: [...]}``

        Returns:
            ``{"success": true}``
        """
        body = self._json_body()
        self.committee_service.replace_portfolios(committee_id, body.get("portfolios"))
        return jsonify({"success": True})

    def api_list_events(self, committee_id: str):
        events = self.event_service.list_events(committee_id)
        return jsonify([event.to_dict() for event in events])

    def api_add_event(self, committee_id: str):
        """
        Record an event from ``{type, details}``

        Details are decoded into the variant for the event type before
        they reach the service.

        Returns:
            JSON of the stored event
        """
        body = self._json_body()
        if not body.get("type") or not body.get("details"):
            raise DataValidationException("body", "Type and details are required")

        event_type = EventType.parse(body["type"])
        details = parse_event_details(event_type, body["details"])
        event = self.event_service.add_event(committee_id, event_type, details)
        return jsonify(event.to_dict())

    def api_statistics(self, committee_id: str):
        """
        Per-portfolio participation statistics

        Query parameters ``sort`` and ``direction`` select the ordering.
        """
        field, direction = parse_sort(request.args.get("sort"), request.args.get("direction"))
        summary = self.analytics_service.get_participation(committee_id, field, direction)
        return jsonify(summary.to_dict())

    # Pages

    def home(self):
        """
        Home page route

        Returns:
            Rendered list of committees with the create form
        """
        committees = self.committee_service.list_committees()
        return render_template("index.html", committees=committees)

    def create_committee(self):
        try:
            committee = self.committee_service.create_committee(
                request.form.get("name", ""),
                request.form.get("password", "").strip()
            )
        except DataValidationException as e:
            flash(e.validation_error, "error")
            return redirect(url_for("home"))

        flash(f"Committee '{committee.name}' created", "success")
        return redirect(url_for("committee", committee_id=committee.committee_id))

    def access_committee(self, committee_id: str):
        """
        Password prompt submission

        Returns:
            Redirect to the committee page on success, home otherwise
        """
        try:
            self.committee_service.verify_access(committee_id, request.form.get("password", "").strip())
        except (DataValidationException, AuthenticationFailedException):
            flash("Invalid password", "error")
            return redirect(url_for("home"))

        return redirect(url_for("committee", committee_id=committee_id))

    def committee(self, committee_id: str):
        """
        Committee dashboard route

        Shows the event forms, event history and the participation table
        sorted by the ``sort`` and ``direction`` query parameters.
        """
        committee = self.committee_service.get_committee_or_raise(committee_id)
        events = self.event_service.list_events(committee_id)

        try:
            field, direction = parse_sort(request.args.get("sort"), request.args.get("direction"))
        except DataValidationException as e:
            flash(e.validation_error, "error")
            field, direction = parse_sort()

        summary = summarize_participation(events, committee.portfolios, field, direction)

        sort_links = []
        for column, label in views.SORT_COLUMNS:
            next_field, next_direction = views.next_sort(field, direction, column)
            sort_links.append({
                "label": label,
                "field": column.value,
                "indicator": views.sort_indicator(field, direction, column),
                "url": url_for("committee", committee_id=committee_id,
                               sort=next_field.value, direction=next_direction.value),
            })

        return render_template(
            "committee.html",
            committee=committee,
            events=events,
            summary=summary,
            sort_links=sort_links,
            event_types=EventType,
            required_fields=views.FORM_REQUIRED_FIELDS,
            describe_event=views.describe_event,
            format_time=views.format_time,
        )

    def upload_portfolios(self, committee_id: str):
        """
        Portfolio file upload route

        The file is validated completely before the roster is replaced.
        """
        upload = request.files.get("file")
        try:
            if upload is None:
                raise DataValidationException("file", "Please upload a JSON file")
            portfolios = views.parse_portfolio_file(upload.filename, upload.read())
            self.committee_service.replace_portfolios(committee_id, portfolios)
        except DataValidationException as e:
            flash(e.validation_error, "error")
        else:
            flash(f"Uploaded {len(portfolios)} portfolios", "success")

        return redirect(url_for("committee", committee_id=committee_id))

    def record_event(self, committee_id: str, event_type: str):
        """
        Event form submission route

        Args:
            committee_id: Committee ID
            event_type: One of the event type tags
        """
        try:
            parsed_type = EventType.parse(event_type)
            form = request.form.to_dict()
            views.check_form_complete(parsed_type, form)
            details = parse_event_details(parsed_type, views.form_to_details(form))
            self.event_service.add_event(committee_id, parsed_type, details)
        except DataValidationException as e:
            flash(e.validation_error, "error")
        else:
            flash(f"{parsed_type.label} recorded", "success")

        return redirect(url_for("committee", committee_id=committee_id))

    def delete_committee(self, committee_id: str):
        try:
            self.committee_service.delete_committee(committee_id, request.form.get("password", ""))
        except (DataValidationException, AuthenticationFailedException):
            flash("Invalid password or committee not found", "error")
            return redirect(url_for("committee", committee_id=committee_id))

        flash("Committee deleted successfully", "success")
        return redirect(url_for("home"))

    def run(self, host: str = '127.0.0.1', port: int = 5000, debug: bool = None) -> None:
        """
        Run the Flask application

        Args:
            host: Host address to bind to
            port: Port number to listen on
            debug: Debug mode (overrides config if provided)
        """
        if debug is not None:
            self.app.config['DEBUG'] = debug

        self.app.run(host=host, port=port, debug=self.app.config['DEBUG'])


def create_app(config: Optional[dict] = None) -> MUNTrackerApp:
    """
    Factory function to create and configure the application

    Args:
        config: Optional configuration dictionary

    Returns:
        Configured MUNTrackerApp instance
    """
    return MUNTrackerApp(config)


def create_development_app() -> MUNTrackerApp:
    """
    Create application configured for development

    Returns:
        MUNTrackerApp configured for development
    """
    dev_config = {
        'DEBUG': True,
        'SECRET_KEY': 'dev-secret-key-change-in-production',
        'LOG_LEVEL': 'DEBUG',
    }
    return create_app(dev_config)


def create_production_app() -> MUNTrackerApp:
    """
    Create application configured for production

    Reads MUN_TRACKER_SECRET_KEY, DATABASE_URL and LOG_LEVEL from the
    environment.

    Returns:
        MUNTrackerApp configured for production
    """
    prod_config = {
        'DEBUG': False,
        'SECRET_KEY': os.environ.get('MUN_TRACKER_SECRET_KEY', 'production-secret-key-from-environment'),
        'DATABASE_URL': os.environ.get('DATABASE_URL', 'sqlite:///mun-tracker.db'),
        'LOG_LEVEL': os.environ.get('LOG_LEVEL', 'INFO'),
    }
    return create_app(prod_config)


def create_testing_app() -> MUNTrackerApp:
    """
    Create application backed by a private in-memory database

    Returns:
        MUNTrackerApp configured for tests
    """
    test_config = {
        'DEBUG': False,
        'TESTING': True,
        'SECRET_KEY': 'test-secret-key',
        'DATABASE_URL': 'sqlite://',
        'LOG_LEVEL': 'WARNING',
    }
    return create_app(test_config)


if __name__ == "__main__":
    # Create and run the application
    app = create_development_app()
    app.run(debug=True)
