"""Utility helper functions for the drop server."""

import re
import uuid
from typing import Dict
from urllib.parse import quote_plus

from common.constants import DEFAULT_DOWNLOAD_NAME


def generate_key() -> str:
    """
    Generate a new archive key.

    Returns:
        UUID4 string (36 characters)
    """
    return str(uuid.uuid4())


def sanitize_filename(name: str) -> str:
    """
    Strip directory components and control characters from a client filename.

    Args:
        name: Filename as supplied by the uploading client

    Returns:
        Bare filename, or a generic name if nothing usable remains
    """
    base = re.split(r'[/\\]', name or "")[-1]
    base = re.sub(r'[\x00-\x1f\x7f]', '', base).strip()
    if base in ('', '.', '..'):
        return DEFAULT_DOWNLOAD_NAME
    return base


def content_disposition(name: str) -> str:
    """
    Build an attachment Content-Disposition header value.

    Args:
        name: Display name of the archive

    Returns:
        Header value with the form-encoded, sanitized filename
    """
    return f"attachment; filename={quote_plus(sanitize_filename(name))}"


def parse_api_keys(raw: str) -> Dict[str, str]:
    """
    Parse a comma-separated list of API keys into identity -> key.

    Entries are either "label=key" or a bare key, which is labelled by position.

    Args:
        raw: Value of the DROP_API_KEYS setting

    Returns:
        Mapping of identity label to plain API key
    """
    keys = {}
    entries = [entry.strip() for entry in raw.split(',') if entry.strip()]
    for index, entry in enumerate(entries):
        label, sep, key = entry.partition('=')
        if sep and label.strip() and key.strip():
            keys[label.strip()] = key.strip()
        else:
            keys[f"client-{index}"] = entry
    return keys
