"""Common schemas used across multiple endpoints."""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Response model for errors."""
    detail: str
    code: str


class StatusResponse(BaseModel):
    """Response model for delete and update acknowledgements."""
    status: str
