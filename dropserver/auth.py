"""Access gate: API key verification for upload, list, update and delete."""

import logging
import uuid
from typing import Dict, Mapping, Optional, Tuple

import bcrypt
from fastapi import Header, Request

from common.constants import API_KEY_PREFIX
from dropserver.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)

DEFAULT_BCRYPT_ROUNDS = 12

# bcrypt only looks at the first 72 bytes of a password
MAX_API_KEY_BYTES = 72


def hash_api_key(api_key: str, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """
    Hash an API key using bcrypt.

    Args:
        api_key: Plain API key
        rounds: bcrypt cost factor

    Returns:
        Bcrypt hash of the key

    Raises:
        ValueError: If the key is longer than bcrypt accepts
    """
    if len(api_key.encode('utf-8')) > MAX_API_KEY_BYTES:
        raise ValueError(f"API key must be at most {MAX_API_KEY_BYTES} bytes")
    hashed = bcrypt.hashpw(api_key.encode('utf-8'), bcrypt.gensalt(rounds=rounds))
    return hashed.decode('utf-8')


def verify_api_key(api_key: str, key_hash: str) -> bool:
    """
    Verify an API key against a bcrypt hash.

    Args:
        api_key: Plain API key presented by the caller
        key_hash: Bcrypt hash to verify against

    Returns:
        True if the key matches the hash, False otherwise
    """
    encoded = api_key.encode('utf-8')
    if len(encoded) > MAX_API_KEY_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, key_hash.encode('utf-8'))
    except ValueError as e:
        logger.warning(f"Rejected API key check against malformed hash: {e}")
        return False


def generate_api_key() -> str:
    """
    Generate a new API key with the configured prefix.

    Returns:
        API key string in format: {prefix}{uuid4}
    """
    return f"{API_KEY_PREFIX}{uuid.uuid4()}"


class AccessGate:
    """
    Yes/no authorization decision for a presented API key.

    Keys are held only as bcrypt hashes, labelled with the identity they grant.
    """

    def __init__(self, credentials: Mapping[str, str]):
        """
        Args:
            credentials: Mapping of identity label to bcrypt hash of that identity's key
        """
        self._credentials: Dict[str, str] = dict(credentials)

    @classmethod
    def from_keys(cls, keys: Mapping[str, str], rounds: int = DEFAULT_BCRYPT_ROUNDS) -> "AccessGate":
        """
        Build a gate from plain API keys.

        Args:
            keys: Mapping of identity label to plain API key
            rounds: bcrypt cost factor used for hashing

        Returns:
            AccessGate holding only the hashed keys

        Raises:
            ValueError: If a key is empty or longer than bcrypt accepts
        """
        for label, key in keys.items():
            if not key:
                raise ValueError(f"API key for {label!r} is empty")
            if len(key.encode('utf-8')) > MAX_API_KEY_BYTES:
                raise ValueError(f"API key for {label!r} is longer than {MAX_API_KEY_BYTES} bytes")
        return cls({label: hash_api_key(key, rounds=rounds) for label, key in keys.items()})

    def check(self, api_key: str) -> Optional[str]:
        """
        Find the identity owning an API key.

        Args:
            api_key: Plain API key

        Returns:
            Identity label, or None if no configured key matches
        """
        if not api_key:
            return None
        for identity, key_hash in self._credentials.items():
            if verify_api_key(api_key, key_hash):
                return identity
        return None

    def check_request(self, authorization: Optional[str]) -> Tuple[Optional[str], bool]:
        """
        Authorize a request from its Authorization header.

        Args:
            authorization: Authorization header value (format: "Bearer <api_key>")

        Returns:
            Tuple of (identity, ok)
        """
        if not authorization or not authorization.startswith("Bearer "):
            return None, False

        identity = self.check(authorization[len("Bearer "):].strip())
        return identity, identity is not None

    def __len__(self) -> int:
        return len(self._credentials)


def require_caller(request: Request, authorization: Optional[str] = Header(None)) -> str:
    """
    FastAPI dependency that consults the access gate and returns the caller identity.

    Raises:
        UnauthorizedError: If the header is missing, malformed or carries an unknown key
    """
    gate: AccessGate = request.app.state.access_gate
    identity, ok = gate.check_request(authorization)
    if not ok:
        raise UnauthorizedError("Unauthorized")

    request.state.user_id = identity
    return identity
