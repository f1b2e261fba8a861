"""
In-memory archive registry: key -> Archive, with lazy TTL expiration.

Every read path re-checks expires_at against the clock and evicts entries it
finds stale. Eviction removes the entry under the lock, then hands the
archive to the eviction callback (normally blob deletion) after the lock is
released.
"""

import logging
import threading
import time
from dataclasses import replace
from typing import Callable, Dict, List, Optional

from dropserver.types import Archive

logger = logging.getLogger(__name__)

EvictionCallback = Callable[[Archive], None]


class ArchiveRegistry:
    """
    Thread-safe mapping of archive keys to archive metadata.

    Safe for concurrent access from request worker threads and the expiry
    sweeper. Misses are results, not errors: no operation raises for an
    unknown or expired key.
    """

    def __init__(
        self,
        on_evict: Optional[EvictionCallback] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize an empty registry.

        Args:
            on_evict: Called once for every archive removed from the registry
            clock: Returns the current Unix time in seconds
        """
        self._archives: Dict[str, Archive] = {}
        self._lock = threading.Lock()
        self._on_evict = on_evict
        self._clock = clock

    def put(self, archive: Archive) -> None:
        """
        Insert or replace the entry for archive.key.

        Args:
            archive: Archive to register
        """
        with self._lock:
            self._archives[archive.key] = archive
        logger.debug(f"Registered archive {archive.key} (expires {archive.expires_at})")

    def get(self, key: str) -> Optional[Archive]:
        """
        Look up a live archive.

        Args:
            key: Archive key

        Returns:
            The archive if present and not expired, None otherwise
        """
        now = self._clock()
        with self._lock:
            archive = self._archives.get(key)
            if archive is None:
                return None
            if not archive.is_expired(now):
                return archive
            del self._archives[key]

        logger.info(f"Archive {key} expired at {archive.expires_at}, evicting on read")
        self._evict([archive])
        return None

    def list(self) -> List[Archive]:
        """
        Snapshot all live archives, evicting the expired ones found.

        Returns:
            Non-expired archives in no particular order
        """
        now = self._clock()
        live = []
        expired = []
        with self._lock:
            for key, archive in list(self._archives.items()):
                if archive.is_expired(now):
                    del self._archives[key]
                    expired.append(archive)
                else:
                    live.append(archive)

        if expired:
            logger.info(f"Evicting {len(expired)} expired archive(s) found during listing")
            self._evict(expired)
        return live

    def delete(self, key: str) -> bool:
        """
        Remove an archive whether or not it has expired.

        Args:
            key: Archive key

        Returns:
            True if an entry existed and was removed, False otherwise
        """
        with self._lock:
            archive = self._archives.pop(key, None)

        if archive is None:
            return False

        logger.info(f"Deleted archive {key}")
        self._evict([archive])
        return True

    def update(
        self,
        key: str,
        display_name: Optional[str] = None,
        expires_at: Optional[int] = None,
    ) -> bool:
        """
        Apply field changes to a live archive.

        Args:
            key: Archive key
            display_name: New display name, or None to keep the current one
            expires_at: New expiry as Unix seconds, or None to keep the current one

        Returns:
            True if a live entry was updated, False if absent or expired
        """
        changes = {}
        if display_name is not None:
            changes['display_name'] = display_name
        if expires_at is not None:
            changes['expires_at'] = int(expires_at)

        now = self._clock()
        with self._lock:
            archive = self._archives.get(key)
            if archive is None:
                return False
            if not archive.is_expired(now):
                self._archives[key] = replace(archive, **changes)
                logger.debug(f"Updated archive {key}: {sorted(changes)}")
                return True
            del self._archives[key]

        logger.info(f"Archive {key} expired at {archive.expires_at}, evicting on update")
        self._evict([archive])
        return False

    def purge_expired(self) -> int:
        """
        Evict every expired archive.

        Returns:
            Number of archives evicted
        """
        now = self._clock()
        with self._lock:
            expired = [archive for archive in self._archives.values() if archive.is_expired(now)]
            for archive in expired:
                del self._archives[archive.key]

        if expired:
            self._evict(expired)
        return len(expired)

    def keys(self) -> List[str]:
        """
        Snapshot the keys physically held, expired or not.

        Returns:
            List of archive keys
        """
        with self._lock:
            return list(self._archives)

    def __len__(self) -> int:
        with self._lock:
            return len(self._archives)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._archives

    def _evict(self, archives: List[Archive]) -> None:
        if self._on_evict is None:
            return

        for archive in archives:
            try:
                self._on_evict(archive)
            except Exception as e:
                logger.error(f"Eviction callback failed for archive {archive.key}: {e}", exc_info=True)
