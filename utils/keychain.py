"""Secrets storage backed by the OS keychain"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from utils.errors import CredentialStorageError

logger = logging.getLogger(__name__)


class SecretStore(ABC):
    """Abstract secrets storage scoped to one app namespace"""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored secret, or None if absent."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a secret, replacing any previous value."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a secret. Deleting a missing key is not an error."""
        pass


class KeyringSecretStore(SecretStore):
    """Secret store using the platform keyring (Keychain, Secret Service, Credential Locker)"""

    def __init__(self, namespace: str):
        """
        Args:
            namespace: Keyring service name, e.g. 'com.CloudStash.app'
        """
        self.namespace = namespace

    def get(self, key: str) -> Optional[str]:
        try:
            return keyring.get_password(self.namespace, key)
        except KeyringError as e:
            logger.error(f"Failed to read '{key}' from keyring: {e}")
            return None

    def set(self, key: str, value: str) -> None:
        # An empty value means "no secret"
        if not value:
            self.delete(key)
            return
        try:
            keyring.set_password(self.namespace, key, value)
        except KeyringError as e:
            logger.error(f"Failed to write '{key}' to keyring: {e}")
            raise CredentialStorageError(f"Could not save '{key}' to the system keychain: {e}") from e

    def delete(self, key: str) -> None:
        try:
            keyring.delete_password(self.namespace, key)
        except PasswordDeleteError:
            pass
        except KeyringError as e:
            logger.error(f"Failed to remove '{key}' from keyring: {e}")
            raise CredentialStorageError(f"Could not remove '{key}' from the system keychain: {e}") from e
