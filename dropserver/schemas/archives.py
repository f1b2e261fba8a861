"""Pydantic schemas for archive endpoints."""

from typing import List, Optional
from pydantic import BaseModel

from dropserver.types import ArchiveSummary


class ArchiveResponse(BaseModel):
    """Client-visible archive metadata. Expire is in Unix seconds."""
    Name: str
    Key: str
    Expire: int

    @classmethod
    def from_summary(cls, summary: ArchiveSummary) -> "ArchiveResponse":
        return cls(Name=summary.display_name, Key=summary.key, Expire=summary.expires_at)


class ListArchivesResponse(BaseModel):
    """Response model for archive listing."""
    archives: List[ArchiveResponse]


class UpdateArchiveRequest(BaseModel):
    """Request model for changing an archive's name or expiry."""
    Name: Optional[str] = None
    Expire: Optional[int] = None
