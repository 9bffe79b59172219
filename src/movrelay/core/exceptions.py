"""
Custom exceptions for Movie Relay.

Validation failures subclass AssertionError so that pytest reports them as
plain test failures rather than errors.
"""


class MovieRelayError(Exception):
    """Base exception for all Movie Relay errors."""

    pass


class ConfigurationError(MovieRelayError):
    """Raised when required configuration (e.g. the TMDb API key) is missing."""

    pass


class MockServerError(MovieRelayError):
    """Raised when the mock HTTP server cannot be started."""

    pass


class ValidationFailure(MovieRelayError, AssertionError):
    """Raised when a response does not match what the workflow expects."""

    pass


class UnexpectedStatusError(ValidationFailure):
    """Raised when a response carries an unexpected HTTP status code."""

    def __init__(self, status_code: int, expected: tuple[int, ...], message: str = ""):
        self.status_code = status_code
        self.expected = expected
        wanted = " or ".join(str(code) for code in expected)
        detail = f"expected status {wanted}, got {status_code}"
        super().__init__(f"{message}: {detail}" if message else detail)


class MissingFieldError(ValidationFailure):
    """Raised when an expected JSON field is absent or null."""

    pass


class EmptyResultsError(ValidationFailure):
    """Raised when a results list is missing or empty."""

    pass
