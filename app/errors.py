# app/errors.py
"""
Error kinds raised by the service layer. Each carries the HTTP status the
API answers with; the app factory registers a single handler for them.
"""


class ServiceError(Exception):
    status_code = 500

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class DataSourceUnavailable(ServiceError):
    """The entity store failed or timed out. Transient; retry or fall back."""
    status_code = 503


class NotFound(ServiceError):
    status_code = 404


class ValidationFailure(ServiceError):
    status_code = 422


class CacheUnavailable(ServiceError):
    """Raised by cache backends only. The cache store never lets it escape."""
    status_code = 503
