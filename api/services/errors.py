"""
api/services/errors.py — typed failures raised by the access broker.

Each error carries the HTTP status it maps to; the router turns it into
a `{"error": message}` body. Nothing here is retried.
"""


class BrokerError(Exception):
    """Base for every failure the broker reports to the caller."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInput(BrokerError):
    """Malformed request shape or unknown bucket."""
    status_code = 400


class PathMismatch(BrokerError):
    """Supplied filePath differs from the path stored on the record."""
    status_code = 400


class NotFound(BrokerError):
    status_code = 404


class Forbidden(BrokerError):
    """Record is neither approved nor owned by the caller."""
    status_code = 403


class UpstreamFailure(BrokerError):
    """Object store or record store call failed."""
    status_code = 500
