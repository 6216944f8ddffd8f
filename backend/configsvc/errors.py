"""Error taxonomy for configuration operations.

Every error carries the HTTP status and machine-readable code used by the
exception handlers in ``configsvc.middleware.exceptions``.  Errors raised by
a failed mutation also carry the all-false ``ConfigurationStatus`` so a
caller can tell "definitely did not happen" apart from "unknown state".
"""

from fastapi import status as http_status

from configsvc.schemas.configuration import ConfigurationStatus


class ConfigurationServiceError(Exception):
    """Base exception for configuration service errors."""

    def __init__(
        self,
        message: str,
        status_code: int = http_status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str = "INTERNAL_ERROR",
        status: ConfigurationStatus | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.status = status
        super().__init__(self.message)


class NotFoundError(ConfigurationServiceError):
    """A read or mutation matched zero records."""

    def __init__(
        self,
        resource: str,
        identifier: object,
        status: ConfigurationStatus | None = None,
    ):
        self.resource = resource
        self.identifier = identifier
        super().__init__(
            message=f"{resource} not found: {identifier}",
            status_code=http_status.HTTP_404_NOT_FOUND,
            error_code="RESOURCE_NOT_FOUND",
            status=status,
        )


class NoDefaultAvailableError(ConfigurationServiceError):
    """Neither an active nor a fallback global configuration exists."""

    def __init__(self, message: str = "Cannot set default configuration global"):
        super().__init__(
            message=message,
            status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE,
            error_code="NO_DEFAULT_CONFIGURATION",
        )


class StoreError(ConfigurationServiceError):
    """Connectivity, constraint or decoding failure from the store.

    The originating SQLAlchemy exception is kept as ``__cause__``.
    """

    def __init__(self, message: str, status: ConfigurationStatus | None = None):
        super().__init__(
            message=message,
            status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE,
            error_code="STORE_ERROR",
            status=status,
        )


class StoreTimeoutError(ConfigurationServiceError):
    """The operation deadline elapsed before the store answered."""

    def __init__(self, operation: str, timeout: float, status: ConfigurationStatus | None = None):
        self.operation = operation
        self.timeout = timeout
        super().__init__(
            message=f"{operation} timed out after {timeout:g}s",
            status_code=http_status.HTTP_504_GATEWAY_TIMEOUT,
            error_code="STORE_TIMEOUT",
            status=status,
        )
