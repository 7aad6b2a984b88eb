"""Custom application exceptions."""


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class BadRequestException(AppException):
    """Bad request exception."""

    def __init__(self, message: str = "Bad request"):
        """Initialize with 400 status code."""
        super().__init__(message, status_code=400)


class NoUpdateDataException(BadRequestException):
    """Raised when an update request carries no fields."""

    def __init__(self, message: str = "No update data provided"):
        super().__init__(message)


class InvalidTimeFormatException(BadRequestException):
    """Raised when a time value is neither a timestamp nor an HH:MM clock time."""

    def __init__(self, field: str, value: object):
        self.field = field
        self.value = value
        super().__init__(f"Invalid time format for {field}: {value!r}")


class BaseDateUnavailableException(BadRequestException):
    """Raised when a clock time has no calendar date to be combined with."""

    def __init__(self, message: str = "Cannot determine base date for time value"):
        super().__init__(message)


class LookupFailedException(AppException):
    """Record store failed while reading a record a required step depends on."""

    def __init__(self, message: str = "Failed to look up record"):
        """Initialize with 500 status code."""
        super().__init__(message, status_code=500)


class StatusUpdateFailedException(AppException):
    """Record store failed while writing a required status transition."""

    def __init__(self, message: str = "Failed to update status"):
        """Initialize with 500 status code."""
        super().__init__(message, status_code=500)


class RecordStoreError(AppException):
    """Record store operation failed (connection, constraint, unknown column...)."""

    def __init__(self, message: str = "Record store operation failed"):
        super().__init__(message, status_code=500)


class BlobStoreError(AppException):
    """Blob store upload or lookup failed."""

    def __init__(self, message: str = "Blob store operation failed"):
        super().__init__(message, status_code=502)
