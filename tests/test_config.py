"""Tests for configuration loading and helpers."""

from pathlib import Path

from common.constants import RETENTION_SECONDS
from dropserver.config import DropServerConfig
from dropserver.utils import content_disposition, parse_api_keys, sanitize_filename


class TestDropServerConfig:

    def test_defaults(self, monkeypatch):
        for name in ("DROP_SAVE_DIR", "DROP_PORT", "DROP_RETENTION_SECONDS",
                     "DROP_SWEEP_INTERVAL_SECONDS", "DROP_API_KEYS", "DROP_RECLAIM_ORPHANS"):
            monkeypatch.delenv(name, raising=False)

        config = DropServerConfig.from_env()

        assert config.save_dir == Path("./data/archives")
        assert config.port == 8000
        assert config.retention_seconds == RETENTION_SECONDS == 86400
        assert config.api_keys == {}
        assert config.reclaim_orphans is True

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DROP_SAVE_DIR", str(tmp_path))
        monkeypatch.setenv("DROP_PORT", "9100")
        monkeypatch.setenv("DROP_RETENTION_SECONDS", "600")
        monkeypatch.setenv("DROP_SWEEP_INTERVAL_SECONDS", "0")
        monkeypatch.setenv("DROP_API_KEYS", "ops=drop_a, drop_b")
        monkeypatch.setenv("DROP_RECLAIM_ORPHANS", "false")

        config = DropServerConfig.from_env()

        assert config.save_dir == tmp_path
        assert config.port == 9100
        assert config.retention_seconds == 600
        assert config.sweep_interval_seconds == 0
        assert config.api_keys == {"ops": "drop_a", "client-1": "drop_b"}
        assert config.reclaim_orphans is False


class TestHelpers:

    def test_parse_api_keys_empty(self):
        assert parse_api_keys("") == {}
        assert parse_api_keys(" , ") == {}

    def test_parse_api_keys_labels(self):
        assert parse_api_keys("a=k1,b=k2") == {"a": "k1", "b": "k2"}

    def test_sanitize_filename_strips_directories(self):
        assert sanitize_filename("../../etc/passwd") == "passwd"
        assert sanitize_filename("C:\\Users\\me\\notes.txt") == "notes.txt"

    def test_sanitize_filename_fallback(self):
        assert sanitize_filename("") == "download"
        assert sanitize_filename("..") == "download"
        assert sanitize_filename("dir/") == "download"

    def test_sanitize_filename_drops_control_characters(self):
        assert sanitize_filename("evil\r\nname.txt") == "evilname.txt"

    def test_content_disposition_is_form_encoded(self):
        assert content_disposition("a b&c.txt") == "attachment; filename=a+b%26c.txt"
