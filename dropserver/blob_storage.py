"""Manages archive bytes on disk: write-once, streaming read, delete."""

import logging
import os
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator, List

from common.constants import BLOB_SUFFIX, PARTIAL_SUFFIX, STREAM_PIECE_SIZE
from dropserver.exceptions import StorageFailureError

logger = logging.getLogger(__name__)


class BlobReader:
    """
    Open blob handle, iterated in pieces.

    Iterating to the end closes the handle. A reader that is never consumed
    must be closed explicitly.
    """

    def __init__(self, f: BinaryIO, piece_size: int = STREAM_PIECE_SIZE):
        self._file = f
        self.piece_size = piece_size

    @property
    def closed(self) -> bool:
        return self._file.closed

    def __iter__(self) -> Iterator[bytes]:
        with self._file:
            while True:
                piece = self._file.read(self.piece_size)
                if not piece:
                    break
                yield piece

    def close(self) -> None:
        self._file.close()


class BlobStorage:
    """
    Byte storage rooted at a single directory, one file per archive key.

    Blobs are written to a temporary ".part" file and renamed into place once
    the whole stream has been copied, so a reader never sees partial bytes.
    """

    def __init__(self, root: Path, piece_size: int = STREAM_PIECE_SIZE):
        """
        Initialize blob storage.

        Args:
            root: Directory holding archive blobs (created on demand)
            piece_size: Size of each piece for streamed copies
        """
        self.root = Path(root)
        self.piece_size = piece_size

    def ensure_root(self) -> None:
        """Ensure the storage directory exists."""
        self.root.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        """
        Get the blob path for an archive key.

        Args:
            key: Archive key

        Returns:
            Path object for the blob file
        """
        return self.root / f"{key}{BLOB_SUFFIX}"

    def write(self, key: str, stream: BinaryIO) -> Path:
        """
        Copy a stream into a new blob.

        Args:
            key: Archive key
            stream: Readable binary stream with the upload body

        Returns:
            Path to the written blob

        Raises:
            StorageFailureError: If the blob exists already or the copy fails
        """
        final_path = self.path_for(key)
        partial_path = final_path.with_name(final_path.name + PARTIAL_SUFFIX)

        try:
            self.ensure_root()
            if final_path.exists():
                raise StorageFailureError(f"Blob for archive {key} already exists")

            written = 0
            with open(partial_path, 'xb') as f:
                while True:
                    piece = stream.read(self.piece_size)
                    if not piece:
                        break
                    f.write(piece)
                    written += len(piece)
                f.flush()
                os.fsync(f.fileno())

            os.replace(partial_path, final_path)
        except StorageFailureError:
            self._remove_quietly(partial_path)
            raise
        except Exception as e:
            self._remove_quietly(partial_path)
            logger.error(f"Failed to write blob for archive {key}: {e}")
            raise StorageFailureError(f"Failed to store archive {key}") from e

        logger.debug(f"Wrote {written} bytes to {final_path}")
        return final_path

    def open(self, path: Path) -> BlobReader:
        """
        Open a blob and stream it in pieces.

        The file handle is opened before this returns, so a blob deleted
        afterwards can still be read to the end.

        Args:
            path: Blob path

        Returns:
            BlobReader streaming the blob's bytes; close it to release the handle

        Raises:
            FileNotFoundError: If the blob does not exist
            StorageFailureError: If the blob cannot be opened
        """
        try:
            f = open(path, 'rb')
        except FileNotFoundError:
            raise
        except OSError as e:
            logger.error(f"Failed to open blob {path}: {e}")
            raise StorageFailureError(f"Failed to read blob {path.name}") from e

        return BlobReader(f, self.piece_size)

    def discard(self, path: Path) -> bool:
        """
        Delete a blob from disk.

        Args:
            path: Blob path

        Returns:
            True if the file was deleted, False if it was missing or could not be removed
        """
        try:
            Path(path).unlink()
            return True
        except FileNotFoundError:
            logger.warning(f"Blob {path} was already gone")
            return False
        except OSError as e:
            logger.error(f"Failed to delete blob {path}: {e}")
            return False

    def list_keys(self) -> List[str]:
        """
        List the archive keys of all blobs in the storage directory.

        Returns:
            List of keys (file names without the blob suffix)
        """
        if not self.root.exists():
            return []
        return [path.name[:-len(BLOB_SUFFIX)] for path in self.root.glob(f"*{BLOB_SUFFIX}")]

    def reclaim_orphans(self, live_keys: Iterable[str]) -> int:
        """
        Delete blobs with no registry entry and leftover partial uploads.

        Args:
            live_keys: Keys currently held by the registry

        Returns:
            Number of files removed
        """
        if not self.root.exists():
            return 0

        live = set(live_keys)
        removed = 0

        for key in self.list_keys():
            if key not in live and self.discard(self.path_for(key)):
                removed += 1

        for partial in self.root.glob(f"*{BLOB_SUFFIX}{PARTIAL_SUFFIX}"):
            if self.discard(partial):
                removed += 1

        if removed:
            logger.info(f"Reclaimed {removed} orphaned blob(s) from {self.root}")
        return removed

    @staticmethod
    def _remove_quietly(path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove partial blob {path}: {e}")
