"""Service layer for archive lifecycle operations."""

from dropserver.services.transfer_service import TransferService, build_transfer_service

__all__ = [
    "TransferService",
    "build_transfer_service",
]
