"""Project-wide constants (retention window, blob layout, default ports)."""

RETENTION_SECONDS: int = 24 * 60 * 60  # 24 hours
SWEEP_INTERVAL_SECONDS: int = 60 * 60

BLOB_SUFFIX: str = ".blob"
PARTIAL_SUFFIX: str = ".part"
STREAM_PIECE_SIZE: int = 64 * 1024

DEFAULT_SAVE_DIR: str = "./data/archives"
DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_PORT: int = 8000

API_KEY_PREFIX: str = "drop_"
DEFAULT_DOWNLOAD_NAME: str = "download"
