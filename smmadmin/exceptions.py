"""Custom exceptions for smmadmin.

This module defines a hierarchy of exceptions used throughout the application.
All exceptions inherit from the base SmmAdminException so callers can catch
every application-specific error in one place.

When raising exceptions, prefer using the most specific exception type
that matches the error condition.
"""


class SmmAdminException(Exception):
    """Base exception for all smmadmin errors."""
    pass


class ConfigurationError(SmmAdminException):
    """Raised for configuration-related errors."""
    pass


class ValidationError(SmmAdminException):
    """Raised for invalid input data (bad JSON, missing records, empty names)."""
    pass


class DatabaseError(SmmAdminException):
    """Raised for database operation errors."""
    pass


class TokenExchangeError(SmmAdminException):
    """Raised when the Graph API token exchange fails."""
    pass


class WebhookError(SmmAdminException):
    """Raised when an n8n webhook call fails."""
    pass


class DeliveryError(SmmAdminException):
    """Raised when a post could not be handed to the publishing webhook."""
    pass
