"""Transfer service: ingest, fetch, enumerate, evict and revise archives."""

import logging
import time
from typing import BinaryIO, Callable, List, Optional, Tuple

from common.constants import RETENTION_SECONDS
from dropserver.blob_storage import BlobReader, BlobStorage
from dropserver.exceptions import ArchiveNotFoundError, BadRequestError
from dropserver.registry import ArchiveRegistry
from dropserver.types import Archive, ArchiveSummary
from dropserver.utils import generate_key, sanitize_filename

logger = logging.getLogger(__name__)


class TransferService:
    def __init__(
        self,
        registry: ArchiveRegistry,
        storage: BlobStorage,
        retention_seconds: int = RETENTION_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.registry = registry
        self.storage = storage
        self.retention_seconds = retention_seconds
        self._clock = clock

    def ingest(self, stream: BinaryIO, display_name: Optional[str]) -> ArchiveSummary:
        """
        Store an upload and register it under a fresh key.

        The registry entry is created only after the bytes are fully written,
        so the archive is never visible while its blob is incomplete.

        Args:
            stream: Upload body
            display_name: Client-supplied filename

        Returns:
            Summary of the new archive

        Raises:
            BadRequestError: If no filename was supplied
            StorageFailureError: If the bytes could not be stored
        """
        if not display_name:
            raise BadRequestError("Upload is missing a filename")

        key = generate_key()
        expires_at = int(self._clock()) + self.retention_seconds

        storage_path = self.storage.write(key, stream)

        archive = Archive(
            key=key,
            display_name=display_name,
            storage_path=storage_path,
            expires_at=expires_at,
        )
        self.registry.put(archive)

        logger.info(f"Ingested archive {key} ({display_name!r}), expires at {expires_at}")
        return ArchiveSummary.from_archive(archive)

    def fetch(self, key: str) -> Tuple[ArchiveSummary, BlobReader]:
        """
        Open an archive for download. Possession of the key is the credential.

        Args:
            key: Archive key

        Returns:
            Tuple of (summary with sanitized display name, blob reader)

        Raises:
            ArchiveNotFoundError: If the key is unknown, expired, or its blob is gone
            StorageFailureError: If the blob cannot be read
        """
        archive = self.registry.get(key)
        if archive is None:
            raise ArchiveNotFoundError(f"Archive {key} not found")

        try:
            pieces = self.storage.open(archive.storage_path)
        except FileNotFoundError:
            logger.error(f"Blob for archive {key} is missing from storage")
            raise ArchiveNotFoundError(f"Archive {key} not found")

        summary = ArchiveSummary(
            key=archive.key,
            display_name=sanitize_filename(archive.display_name),
            expires_at=archive.expires_at,
        )
        logger.info(f"Serving archive {key}")
        return summary, pieces

    def enumerate(self) -> List[ArchiveSummary]:
        """
        List all live archives.

        Returns:
            Summaries of non-expired archives
        """
        return [ArchiveSummary.from_archive(archive) for archive in self.registry.list()]

    def evict(self, key: str) -> None:
        """
        Delete an archive and its bytes.

        Blob deletion failures are logged by storage and do not change the
        outcome: the registry entry is gone regardless.

        Raises:
            ArchiveNotFoundError: If no entry existed for the key
        """
        if not self.registry.delete(key):
            raise ArchiveNotFoundError(f"Archive {key} not found")

    def revise(
        self,
        key: str,
        display_name: Optional[str] = None,
        expires_at: Optional[int] = None,
    ) -> None:
        """
        Change the display name and/or expiry of a live archive.

        Raises:
            BadRequestError: If display_name is given but empty
            ArchiveNotFoundError: If the key is unknown or expired
        """
        if display_name is not None and not display_name.strip():
            raise BadRequestError("Archive name must not be empty")

        if not self.registry.update(key, display_name=display_name, expires_at=expires_at):
            raise ArchiveNotFoundError(f"Archive {key} not found")

        logger.info(f"Updated archive {key}")


def build_transfer_service(
    storage: BlobStorage,
    retention_seconds: int = RETENTION_SECONDS,
    clock: Callable[[], float] = time.time,
) -> TransferService:
    """
    Wire a registry whose evictions delete blobs from the given storage.

    Args:
        storage: Blob storage for archive bytes
        retention_seconds: Retention window applied at ingest
        clock: Returns the current Unix time in seconds

    Returns:
        TransferService backed by a fresh registry
    """
    registry = ArchiveRegistry(on_evict=lambda archive: storage.discard(archive.storage_path), clock=clock)
    return TransferService(registry, storage, retention_seconds=retention_seconds, clock=clock)
