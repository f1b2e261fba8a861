"""Custom exception classes for the drop server."""


class DropServerError(Exception):
    """
    Base exception class for all drop server errors.
    """
    pass


class UnauthorizedError(DropServerError):
    """
    Raised when the access gate rejects the caller.
    """
    pass


class ArchiveNotFoundError(DropServerError):
    """
    Raised when an archive key is unknown or its retention window has passed.
    """
    pass


class BadRequestError(DropServerError):
    """
    Raised when an upload or update request is malformed.
    """
    pass


class StorageFailureError(DropServerError):
    """
    Raised when blob storage fails to write or read archive bytes.
    """
    pass
