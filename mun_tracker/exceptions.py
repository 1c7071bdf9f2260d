"""
Custom Exceptions for MUN Tracker Application

This module defines custom exception classes that provide specific
error handling for different failure scenarios in the MUN Tracker system.
"""


class MUNTrackerException(Exception):
    """
    Base exception for MUN Tracker application

    All custom exceptions in the MUN Tracker system should inherit
    from this base class for consistent error handling.
    """

    def __init__(self, message: str, error_code: str = None):
        """
        Initialize MUN Tracker exception

        Args:
            message: Human-readable error message
            error_code: Optional error code for programmatic handling
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code

    def __str__(self) -> str:
        """String representation of the exception"""
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


class CommitteeNotFoundException(MUNTrackerException):
    """
    Raised when a committee is not found in the system

    This exception is thrown when attempting to read, update or record
    events against a committee id that doesn't exist.
    """

    def __init__(self, committee_id: str):
        """
        Initialize committee not found exception

        Args:
            committee_id: The ID of the committee that was not found
        """
        message = f"Committee with ID '{committee_id}' not found"
        super().__init__(message, "COMMITTEE_NOT_FOUND")
        self.committee_id = committee_id


class AuthenticationFailedException(MUNTrackerException):
    """
    Raised when a committee password check fails

    Unknown committees fail the same way as wrong passwords so that
    callers cannot probe for committee ids.
    """

    def __init__(self, committee_id: str = None):
        """
        Initialize authentication failed exception

        Args:
            committee_id: Optional committee ID that failed authentication
        """
        if committee_id:
            message = f"Authentication failed for committee '{committee_id}'"
        else:
            message = "Authentication failed - invalid credentials"
        super().__init__(message, "AUTH_FAILED")
        self.committee_id = committee_id


class DataValidationException(MUNTrackerException):
    """
    Raised when data validation fails

    This exception is thrown when input data doesn't meet
    the required validation criteria. ``validation_error`` is
    the message shown to the user.
    """

    def __init__(self, field_name: str, validation_error: str):
        """
        Initialize data validation exception

        Args:
            field_name: Name of the field that failed validation
            validation_error: Description of the validation error
        """
        message = f"Validation error in field '{field_name}': {validation_error}"
        super().__init__(message, "VALIDATION_ERROR")
        self.field_name = field_name
        self.validation_error = validation_error


class DataAccessException(MUNTrackerException):
    """
    Raised when data access operations fail

    This exception is thrown when there are issues reading from
    or writing to the committee database.
    """

    def __init__(self, operation: str, details: str):
        """
        Initialize data access exception

        Args:
            operation: The operation that failed (e.g., 'create_committee')
            details: Detailed error information
        """
        message = f"Data access error during {operation}: {details}"
        super().__init__(message, "DATA_ACCESS_ERROR")
        self.operation = operation
        self.details = details
