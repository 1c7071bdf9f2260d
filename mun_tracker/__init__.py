"""
MUN Tracker Package

A Model UN committee session tracker built with Flask. Records speeches,
points of order, points of information and motions per committee, and
derives per-delegate participation statistics.

Main Components:
- models: Data models for committees, events and participation statistics
- database: SQLAlchemy schema and the injectable database handle
- repositories: Data access layer with repository pattern
- statistics: Participation counting and sorting
- services: Business logic layer for committees, events and analytics
- views: Presentation helpers for the web pages
- exceptions: Custom exception classes for error handling
- app: Main Flask application class

Usage:
    from mun_tracker import create_app

    app = create_app()
    app.run()
"""

__version__ = "1.0.0"
__author__ = "MUN Tracker Team"

# Import main components for easy access
from .app import create_app, create_development_app, create_production_app, create_testing_app
from .models import Committee, Event, EventType, MotionStatus, DelegateStats
from .services import CommitteeService, EventService, AnalyticsService
from .repositories import RepositoryFactory
from .statistics import SortField, SortDirection, summarize_participation
from .exceptions import (
    MUNTrackerException,
    CommitteeNotFoundException,
    AuthenticationFailedException,
    DataValidationException,
    DataAccessException
)

__all__ = [
    # App factory functions
    'create_app',
    'create_development_app',
    'create_production_app',
    'create_testing_app',

    # Data models
    'Committee',
    'Event',
    'EventType',
    'MotionStatus',
    'DelegateStats',

    # Services
    'CommitteeService',
    'EventService',
    'AnalyticsService',

    # Repository factory
    'RepositoryFactory',

    # Statistics
    'SortField',
    'SortDirection',
    'summarize_participation',

    # Exceptions
    'MUNTrackerException',
    'CommitteeNotFoundException',
    'AuthenticationFailedException',
    'DataValidationException',
    'DataAccessException'
]
