"""Pydantic schemas for API requests and responses."""

from dropserver.schemas.archives import (
    ArchiveResponse,
    ListArchivesResponse,
    UpdateArchiveRequest
)
from dropserver.schemas.common import ErrorResponse, StatusResponse

__all__ = [
    "ArchiveResponse",
    "ListArchivesResponse",
    "UpdateArchiveRequest",
    "ErrorResponse",
    "StatusResponse"
]
