"""
Durable secret storage for Spotify credentials.

The auth layer only needs get/set/delete by key. Two stores are provided:
an in-memory one for tests and throwaway sessions, and a file-backed one
that encrypts every value with Fernet using a key derived from the app's
SECRET_KEY via PBKDF2.
"""

import base64
import json
import logging
import os
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol, Union

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

logger = logging.getLogger(__name__)

# Secret keys used by the token lifecycle manager.
ACCESS_TOKEN_KEY = "spotify_access_token"
REFRESH_TOKEN_KEY = "spotify_refresh_token"
EXPIRES_AT_KEY = "spotify_expires_at"
CODE_VERIFIER_KEY = "spotify_code_verifier"

CREDENTIAL_KEYS = (ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY, EXPIRES_AT_KEY)

# Fixed salt for key derivation. Changing this invalidates stored secrets.
_SALT = b"songquiz-credential-store-v1"


class CredentialStoreError(Exception):
    """Raised when a secret cannot be read or written."""

    pass


class CredentialStore(Protocol):
    """Key/value secret storage."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryCredentialStore:
    """Process-local store. Nothing survives a restart."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._data


def derive_fernet(secret_key: str) -> Fernet:
    """
    Build a Fernet cipher from an application secret.

    Args:
        secret_key: The SECRET_KEY string.

    Raises:
        CredentialStoreError: If the secret is empty.
    """
    if not secret_key:
        raise CredentialStoreError(
            "SECRET_KEY is required for credential encryption"
        )
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=_SALT,
        iterations=480_000,
    )
    key = base64.urlsafe_b64encode(kdf.derive(secret_key.encode("utf-8")))
    return Fernet(key)


class EncryptedFileCredentialStore:
    """
    JSON file of Fernet-encrypted values.

    Writes go to a temporary file that replaces the original, so a crash
    mid-write never leaves a truncated store behind.
    """

    def __init__(self, path: Union[str, Path], secret_key: str):
        self._path = Path(path)
        self._fernet = derive_fernet(secret_key)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, ValueError) as e:
            logger.warning("Unreadable credential store %s: %s", self._path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Credential store %s is not a mapping", self._path)
            return {}
        return data

    def _save(self, data: Dict[str, str]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(".tmp")
            with tmp_path.open("w", encoding="utf-8") as handle:
                json.dump(data, handle, indent=2, sort_keys=True)
            os.replace(tmp_path, self._path)
        except OSError as e:
            logger.error("Failed to write credential store: %s", e)
            raise CredentialStoreError(f"Failed to write credentials: {e}")

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            encrypted = self._load().get(key)
        if not encrypted:
            return None
        try:
            return self._fernet.decrypt(encrypted.encode("utf-8")).decode("utf-8")
        except InvalidToken:
            logger.error(
                "Secret %s could not be decrypted: corrupted or SECRET_KEY changed",
                key,
            )
            return None

    def set(self, key: str, value: str) -> None:
        encrypted = self._fernet.encrypt(value.encode("utf-8")).decode("utf-8")
        with self._lock:
            data = self._load()
            data[key] = encrypted
            self._save(data)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._load()
            if key in data:
                del data[key]
                self._save(data)
