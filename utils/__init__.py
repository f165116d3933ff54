"""Shared utilities package for CloudStash"""

from .keychain import KeyringSecretStore, SecretStore
from .preferences import JsonPreferencesStore, PreferencesStore
from .storage import AppTheme, CredentialStore, Credentials, PendingAuthState

__all__ = [
    "SecretStore",
    "KeyringSecretStore",
    "PreferencesStore",
    "JsonPreferencesStore",
    "AppTheme",
    "CredentialStore",
    "Credentials",
    "PendingAuthState",
]
