"""Credential storage for the Google Drive session

Tokens are kept in a SecretStore (the OS keychain by default). Token expiry,
profile strings, the app theme and transient PKCE state are kept in a
PreferencesStore, because the PKCE state must survive the process being
relaunched by the OAuth redirect.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from .keychain import SecretStore
from .preferences import PreferencesStore

logger = logging.getLogger(__name__)

AuthStateListener = Callable[[bool], None]


class Keys:
    """Storage keys (shared with the desktop apps)"""

    # Google OAuth, keychain
    ACCESS_TOKEN = "google_access_token"
    REFRESH_TOKEN = "google_refresh_token"

    # Google OAuth, preferences
    TOKEN_EXPIRY = "google_token_expiry"
    USER_EMAIL = "google_user_email"
    USER_NAME = "google_user_name"
    USER_PICTURE = "google_user_picture"

    # OAuth flow state (persisted temporarily during auth flow)
    OAUTH_CODE_VERIFIER = "oauth_code_verifier"
    OAUTH_STATE = "oauth_state"

    # App settings
    APP_THEME = "app_theme"


class AppTheme(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


@dataclass(frozen=True)
class Credentials:
    """Point-in-time view of the stored session

    Attributes:
        access_token: Bearer token for API requests
        refresh_token: Token for obtaining new access tokens
        token_expiry: Access token expiry as a UNIX timestamp (0 when unknown)
        user_email: Signed-in account email
        user_name: Display name
        user_picture_url: Avatar URL
    """
    access_token: str = ""
    refresh_token: str = ""
    token_expiry: float = 0.0
    user_email: str = ""
    user_name: str = ""
    user_picture_url: str = ""

    @property
    def is_signed_in(self) -> bool:
        return bool(self.access_token) and bool(self.refresh_token)


@dataclass(frozen=True)
class PendingAuthState:
    """PKCE verifier and state nonce of the sign-in flow in progress"""
    code_verifier: str
    state: str


class CredentialStore:
    """Serialized access to the stored session

    Every read and write goes through one re-entrant lock. Listeners are told
    whenever the signed-in state flips, after the lock has been released.
    """

    def __init__(self, secrets: SecretStore, preferences: PreferencesStore):
        self.secrets = secrets
        self.preferences = preferences
        self._lock = threading.RLock()
        self._listeners: List[AuthStateListener] = []

        self._access_token = secrets.get(Keys.ACCESS_TOKEN) or ""
        self._refresh_token = secrets.get(Keys.REFRESH_TOKEN) or ""
        self._token_expiry = self._parse_expiry(preferences.get(Keys.TOKEN_EXPIRY))
        self._user_email = preferences.get(Keys.USER_EMAIL) or ""
        self._user_name = preferences.get(Keys.USER_NAME) or ""
        self._user_picture_url = preferences.get(Keys.USER_PICTURE) or ""

    @staticmethod
    def _parse_expiry(value) -> float:
        try:
            return float(value) if value is not None else 0.0
        except (TypeError, ValueError):
            logger.warning(f"Ignoring malformed token expiry: {value!r}")
            return 0.0

    # Listeners

    def add_listener(self, listener: AuthStateListener) -> None:
        """Register a callback invoked with the new signed-in state"""
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: AuthStateListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _notify(self, signed_in: bool) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(signed_in)
            except Exception:
                logger.exception("Auth state listener failed")

    def notify_sign_in_complete(self) -> None:
        """Tell listeners a sign-in finished (profile included)"""
        self._notify(self.is_signed_in)

    def _mutate(self, apply: Callable[[], None]) -> None:
        # apply() persists before it updates the cached fields, so a failed
        # write leaves the in-memory session as it was
        with self._lock:
            was_signed_in = self._signed_in_locked()
            apply()
            now_signed_in = self._signed_in_locked()
        if was_signed_in != now_signed_in:
            logger.info(f"Sign-in state changed: signed_in={now_signed_in}")
            self._notify(now_signed_in)

    def _signed_in_locked(self) -> bool:
        return bool(self._access_token) and bool(self._refresh_token)

    # Reads

    def snapshot(self) -> Credentials:
        """Read every credential field at once"""
        with self._lock:
            return Credentials(
                access_token=self._access_token,
                refresh_token=self._refresh_token,
                token_expiry=self._token_expiry,
                user_email=self._user_email,
                user_name=self._user_name,
                user_picture_url=self._user_picture_url,
            )

    @property
    def is_signed_in(self) -> bool:
        with self._lock:
            return self._signed_in_locked()

    # Per-field accessors

    @property
    def access_token(self) -> str:
        with self._lock:
            return self._access_token

    @access_token.setter
    def access_token(self, value: str) -> None:
        def apply():
            self.secrets.set(Keys.ACCESS_TOKEN, value or "")
            self._access_token = value or ""
        self._mutate(apply)

    @property
    def refresh_token(self) -> str:
        with self._lock:
            return self._refresh_token

    @refresh_token.setter
    def refresh_token(self, value: str) -> None:
        def apply():
            self.secrets.set(Keys.REFRESH_TOKEN, value or "")
            self._refresh_token = value or ""
        self._mutate(apply)

    @property
    def token_expiry(self) -> float:
        with self._lock:
            return self._token_expiry

    @token_expiry.setter
    def token_expiry(self, value: float) -> None:
        with self._lock:
            self.preferences.set(Keys.TOKEN_EXPIRY, float(value))
            self._token_expiry = float(value)

    @property
    def user_email(self) -> str:
        with self._lock:
            return self._user_email

    @user_email.setter
    def user_email(self, value: str) -> None:
        with self._lock:
            self.preferences.set(Keys.USER_EMAIL, value or "")
            self._user_email = value or ""

    @property
    def user_name(self) -> str:
        with self._lock:
            return self._user_name

    @user_name.setter
    def user_name(self, value: str) -> None:
        with self._lock:
            self.preferences.set(Keys.USER_NAME, value or "")
            self._user_name = value or ""

    @property
    def user_picture_url(self) -> str:
        with self._lock:
            return self._user_picture_url

    @user_picture_url.setter
    def user_picture_url(self, value: str) -> None:
        with self._lock:
            self.preferences.set(Keys.USER_PICTURE, value or "")
            self._user_picture_url = value or ""

    # Grouped writes

    def save_tokens(self, access_token: str, refresh_token: str, expires_at: float) -> None:
        """Store a fresh token set in one step"""
        access_token = access_token or ""
        refresh_token = refresh_token or ""
        expires_at = float(expires_at)

        def apply():
            self.secrets.set(Keys.ACCESS_TOKEN, access_token)
            self.secrets.set(Keys.REFRESH_TOKEN, refresh_token)
            self.preferences.set(Keys.TOKEN_EXPIRY, expires_at)
            self._access_token = access_token
            self._refresh_token = refresh_token
            self._token_expiry = expires_at
        self._mutate(apply)

    def save_profile(self, email: str, name: str, picture_url: str) -> None:
        with self._lock:
            self.user_email = email
            self.user_name = name
            self.user_picture_url = picture_url

    def clear_all(self) -> None:
        """Remove every credential field (sign-out)"""
        def apply():
            self.secrets.delete(Keys.ACCESS_TOKEN)
            self.secrets.delete(Keys.REFRESH_TOKEN)
            for key in (Keys.TOKEN_EXPIRY, Keys.USER_EMAIL, Keys.USER_NAME, Keys.USER_PICTURE):
                self.preferences.delete(key)
            self._access_token = ""
            self._refresh_token = ""
            self._token_expiry = 0.0
            self._user_email = ""
            self._user_name = ""
            self._user_picture_url = ""
        self._mutate(apply)
        logger.info("Cleared stored credentials")

    # Transient PKCE state

    def save_pending_auth(self, pending: PendingAuthState) -> None:
        """Persist the flow in progress, replacing any earlier one"""
        with self._lock:
            self.preferences.set(Keys.OAUTH_CODE_VERIFIER, pending.code_verifier)
            self.preferences.set(Keys.OAUTH_STATE, pending.state)

    def load_pending_auth(self) -> Optional[PendingAuthState]:
        with self._lock:
            verifier = self.preferences.get(Keys.OAUTH_CODE_VERIFIER)
            state = self.preferences.get(Keys.OAUTH_STATE)
        if not verifier or not state:
            return None
        return PendingAuthState(code_verifier=verifier, state=state)

    def clear_pending_auth(self) -> None:
        with self._lock:
            self.preferences.delete(Keys.OAUTH_CODE_VERIFIER)
            self.preferences.delete(Keys.OAUTH_STATE)

    # App settings

    @property
    def app_theme(self) -> AppTheme:
        with self._lock:
            value = self.preferences.get(Keys.APP_THEME)
        try:
            return AppTheme(value) if value else AppTheme.LIGHT
        except ValueError:
            return AppTheme.LIGHT

    @app_theme.setter
    def app_theme(self, value: AppTheme) -> None:
        with self._lock:
            self.preferences.set(Keys.APP_THEME, AppTheme(value).value)
