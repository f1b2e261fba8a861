"""Configuration settings for the drop server."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict

from common.constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_SAVE_DIR,
    RETENTION_SECONDS,
    SWEEP_INTERVAL_SECONDS,
)
from dropserver.utils import parse_api_keys


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class DropServerConfig:
    """
    Resolved server settings, passed explicitly to create_app.
    """
    save_dir: Path = Path(DEFAULT_SAVE_DIR)
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    retention_seconds: int = RETENTION_SECONDS
    sweep_interval_seconds: int = SWEEP_INTERVAL_SECONDS
    api_keys: Dict[str, str] = field(default_factory=dict)
    reclaim_orphans: bool = True

    @classmethod
    def from_env(cls) -> "DropServerConfig":
        """
        Build configuration from DROP_* environment variables.

        Returns:
            DropServerConfig instance
        """
        return cls(
            save_dir=Path(os.environ.get("DROP_SAVE_DIR", DEFAULT_SAVE_DIR)),
            host=os.environ.get("DROP_HOST", DEFAULT_HOST),
            port=int(os.environ.get("DROP_PORT", str(DEFAULT_PORT))),
            retention_seconds=int(os.environ.get("DROP_RETENTION_SECONDS", str(RETENTION_SECONDS))),
            sweep_interval_seconds=int(
                os.environ.get("DROP_SWEEP_INTERVAL_SECONDS", str(SWEEP_INTERVAL_SECONDS))
            ),
            api_keys=parse_api_keys(os.environ.get("DROP_API_KEYS", "")),
            reclaim_orphans=_env_flag("DROP_RECLAIM_ORPHANS", True),
        )
