"""Archive record types shared by the registry and the transfer service."""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Archive:
    """
    Metadata for one uploaded file. The bytes live in blob storage.
    """
    key: str
    display_name: str
    storage_path: Path
    expires_at: int

    def is_expired(self, now: float) -> bool:
        """
        Check whether the archive's retention window has passed.

        Args:
            now: Current Unix time in seconds

        Returns:
            True once now is strictly past expires_at
        """
        return self.expires_at < int(now)


@dataclass(frozen=True)
class ArchiveSummary:
    """
    Client-visible projection of an archive. Never carries the storage path.
    """
    key: str
    display_name: str
    expires_at: int

    @classmethod
    def from_archive(cls, archive: Archive) -> "ArchiveSummary":
        return cls(
            key=archive.key,
            display_name=archive.display_name,
            expires_at=archive.expires_at,
        )
