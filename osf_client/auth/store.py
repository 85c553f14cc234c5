"""Encrypted on-disk storage for OSF token sets.

Host applications may persist their TokenSet however they like; this store
is a ready-made option that keeps sessions under a profile name using:
- Fernet symmetric encryption (AES-128-CBC + HMAC)
- OS keyring for encryption key storage (Keychain, libsecret, DPAPI)
- Owner-only file permissions
- File locking to prevent concurrent writers from clobbering each other
"""

import base64
import hashlib
import json
import logging
import os
import stat
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator

import keyring
from cryptography.fernet import Fernet, InvalidToken

from ..errors import OsfError
from .tokens import TokenSet

logger = logging.getLogger(__name__)

if sys.platform != "win32":
    import fcntl

    @contextmanager
    def _file_lock(filepath: Path, exclusive: bool = True) -> Generator[None, None, None]:
        """Acquire a file lock (Unix implementation using fcntl)."""
        lock_path = filepath.with_suffix(filepath.suffix + ".lock")
        lock_path.touch(exist_ok=True)

        with open(lock_path, "r") as lock_file:
            try:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH)
                yield
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)
else:
    import msvcrt

    @contextmanager
    def _file_lock(filepath: Path, exclusive: bool = True) -> Generator[None, None, None]:
        """Acquire a file lock (Windows implementation using msvcrt).

        msvcrt has no shared locks, so readers lock exclusively too.
        """
        lock_path = filepath.with_suffix(filepath.suffix + ".lock")
        lock_path.touch(exist_ok=True)

        with open(lock_path, "r+") as lock_file:
            msvcrt.locking(lock_file.fileno(), msvcrt.LK_LOCK, 1)
            try:
                yield
            finally:
                msvcrt.locking(lock_file.fileno(), msvcrt.LK_UNLCK, 1)


KEYRING_SERVICE = "osf-client"
KEYRING_USERNAME = "token-encryption-key"

DEFAULT_STORE_DIR = Path.home() / ".cache" / "osf-client"
DEFAULT_PROFILE = "default"

TOKENS_FILE = "tokens.json"


class TokenStoreError(OsfError):
    """Error in token storage operations."""

    pass


class TokenDecryptionError(TokenStoreError):
    """Failed to decrypt the token file.

    The encryption key has changed (keyring cleared, different machine) or
    the file is corrupted. Re-authenticate, or call clear_all() first.
    """

    pass


def _derive_fallback_key() -> bytes:
    """Derive an encryption key from machine-specific data.

    Used when no keyring backend is available.

    Returns:
        32-byte key, base64-encoded as Fernet expects
    """
    components = []

    machine_id_path = Path("/etc/machine-id")
    if machine_id_path.exists():
        components.append(machine_id_path.read_text().strip())

    components.append(str(Path.home()))
    components.append(os.environ.get("USER", os.environ.get("USERNAME", "osf")))

    key_bytes = hashlib.sha256(":".join(components).encode()).digest()
    return base64.urlsafe_b64encode(key_bytes)


class TokenStore:
    """Encrypted storage for TokenSets keyed by profile name.

    Usage:
        store = TokenStore()
        store.set_token("work", client.get_token_set())
        ...
        client.set_token_set(store.get_token("work"))
    """

    def __init__(self, store_dir: Path | None = None):
        """Initialize token store.

        Args:
            store_dir: Optional custom storage directory
        """
        self.store_dir = store_dir or DEFAULT_STORE_DIR
        self._cipher: Fernet | None = None
        self._using_keyring = False

        self._init_storage()
        self._init_encryption()

    def _init_storage(self) -> None:
        """Create the storage directory with owner-only permissions."""
        self.store_dir.mkdir(parents=True, exist_ok=True)

        try:
            self.store_dir.chmod(stat.S_IRWXU)
        except OSError as e:
            logger.warning(f"Could not set directory permissions: {e}")

    def _init_encryption(self) -> None:
        """Load the encryption key from the keyring, or derive a fallback key."""
        try:
            key = keyring.get_password(KEYRING_SERVICE, KEYRING_USERNAME)

            if key is None:
                key = Fernet.generate_key().decode("ascii")
                keyring.set_password(KEYRING_SERVICE, KEYRING_USERNAME, key)
                logger.debug("Generated new encryption key in keyring")

            self._cipher = Fernet(key.encode("ascii"))
            self._using_keyring = True

        except Exception as e:
            # Any keyring backend failure degrades to the derived key
            logger.warning(
                f"Keyring not available: {type(e).__name__}: {e}. "
                f"Using fallback encryption (machine-derived key)."
            )
            self._cipher = Fernet(_derive_fallback_key())
            self._using_keyring = False

    def _encrypt(self, data: str) -> str:
        if self._cipher is None:
            raise TokenStoreError("Encryption not initialized")
        return self._cipher.encrypt(data.encode("utf-8")).decode("ascii")

    def _decrypt(self, data: str) -> str:
        if self._cipher is None:
            raise TokenStoreError("Encryption not initialized")
        try:
            return self._cipher.decrypt(data.encode("ascii")).decode("utf-8")
        except InvalidToken as e:
            raise TokenStoreError(
                "Failed to decrypt token data. The encryption key may have changed."
            ) from e

    def _read(self) -> dict[str, Any]:
        """Read and decrypt the token file under a shared lock.

        Raises:
            TokenDecryptionError: If decryption fails or the content is not JSON
        """
        filepath = self.store_dir / TOKENS_FILE

        if not filepath.exists():
            return {}

        try:
            with _file_lock(filepath, exclusive=False):
                result: dict[str, Any] = json.loads(self._decrypt(filepath.read_text()))
                return result
        except TokenStoreError as e:
            raise TokenDecryptionError(
                f"Cannot decrypt {TOKENS_FILE}. The encryption key may have changed."
            ) from e
        except json.JSONDecodeError as e:
            raise TokenDecryptionError(f"Token file {TOKENS_FILE} is corrupted.") from e

    def _write(self, data: dict[str, Any]) -> None:
        """Encrypt and write the token file under an exclusive lock."""
        filepath = self.store_dir / TOKENS_FILE
        encrypted = self._encrypt(json.dumps(data, indent=2))

        with _file_lock(filepath, exclusive=True):
            filepath.write_text(encrypted)
            try:
                filepath.chmod(stat.S_IRUSR | stat.S_IWUSR)
            except OSError as e:
                logger.warning(f"Could not set file permissions: {e}")

    @staticmethod
    def _normalize_profile(profile: str) -> str:
        return profile.strip().lower()

    def get_token(self, profile: str = DEFAULT_PROFILE) -> TokenSet | None:
        """Get the stored token set for a profile.

        Returns:
            TokenSet if found and valid, None otherwise
        """
        tokens = self._read()
        data = tokens.get(self._normalize_profile(profile))
        if data is None:
            return None

        try:
            return TokenSet.from_dict(data)
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"Invalid token data for profile {profile}: {e}")
            return None

    def set_token(self, profile: str, token: TokenSet) -> None:
        """Store the token set for a profile, replacing any previous one."""
        tokens = self._read()
        tokens[self._normalize_profile(profile)] = token.to_dict()
        self._write(tokens)

        logger.debug(f"Stored token set for profile {profile}")

    def delete_token(self, profile: str = DEFAULT_PROFILE) -> bool:
        """Delete the token set for a profile.

        Returns:
            True if deleted, False if not found
        """
        key = self._normalize_profile(profile)
        tokens = self._read()

        if key not in tokens:
            return False

        del tokens[key]
        self._write(tokens)

        logger.debug(f"Deleted token set for profile {profile}")
        return True

    def list_profiles(self) -> list[str]:
        """List profiles with stored token sets."""
        return list(self._read().keys())

    def get_token_info(self, profile: str = DEFAULT_PROFILE) -> dict[str, Any] | None:
        """Get non-sensitive token metadata for display.

        Returns:
            Dictionary without any token values, or None
        """
        token = self.get_token(profile)
        if token is None:
            return None

        return {
            "profile": profile,
            "has_refresh_token": token.has_refresh_token(),
            "expires_at": token.expires_at,
            "is_expired": token.is_expired(),
            "scope": token.scope,
        }

    def clear_all(self) -> None:
        """Delete all stored token sets."""
        tokens_file = self.store_dir / TOKENS_FILE
        if tokens_file.exists():
            tokens_file.unlink()

        logger.info("Cleared all stored token sets")

    def is_using_keyring(self) -> bool:
        """Check if the OS keyring holds the encryption key."""
        return self._using_keyring
