"""CloudStash session: the operations the UI layer calls"""

import logging
import webbrowser
from pathlib import Path
from typing import Callable, Optional, Union

import httpx

import settings
from auth_flow import AuthFlowCoordinator
from config.profiles import AppProfile, load_app_profile
from drive_api import DriveClient, DriveFile, ProgressCallback, UploadResult
from drive_oauth import AuthState, TokenManager, UserInfo
from utils.keychain import KeyringSecretStore
from utils.preferences import JsonPreferencesStore
from utils.storage import AppTheme, AuthStateListener, CredentialStore

logger = logging.getLogger(__name__)


class CloudStash:
    """One app's Drive session, wired from its profile"""

    def __init__(
        self,
        profile: AppProfile,
        store: CredentialStore,
        http_client: Optional[httpx.AsyncClient] = None,
        open_url: Callable[[str], object] = webbrowser.open,
    ):
        self.profile = profile
        self.store = store
        self.tokens = TokenManager(profile, store, http_client=http_client)
        self.drive = DriveClient(self.tokens, http_client=http_client)
        self.auth_flow = AuthFlowCoordinator(profile, self.tokens, self.drive, open_url=open_url)

    @classmethod
    def from_profile(
        cls,
        profile: Union[AppProfile, str, None] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "CloudStash":
        """Build a session using the OS keyring and the preferences file

        Args:
            profile: AppProfile, built-in profile name, or None for the configured default
            http_client: Shared HTTP client
        """
        if not isinstance(profile, AppProfile):
            profile = load_app_profile(profile)

        preferences_file = Path(settings.DATA_DIR).expanduser() / f"{profile.storage_namespace}.json"
        store = CredentialStore(
            secrets=KeyringSecretStore(profile.storage_namespace),
            preferences=JsonPreferencesStore(preferences_file),
        )
        logger.debug(f"Using profile '{profile.name}' with preferences at {preferences_file}")
        return cls(profile, store, http_client=http_client)

    # Session

    def sign_in(self) -> str:
        return self.auth_flow.sign_in()

    async def handle_redirect(self, url: str) -> UserInfo:
        return await self.auth_flow.handle_redirect(url)

    def sign_out(self) -> None:
        self.tokens.sign_out()

    @property
    def is_signed_in(self) -> bool:
        return self.tokens.is_signed_in

    @property
    def current_user(self) -> Optional[UserInfo]:
        return self.tokens.current_user

    @property
    def auth_state(self) -> AuthState:
        return self.tokens.state

    def add_listener(self, listener: AuthStateListener) -> None:
        self.store.add_listener(listener)

    def remove_listener(self, listener: AuthStateListener) -> None:
        self.store.remove_listener(listener)

    # Files

    async def list_files(self) -> list[DriveFile]:
        return await self.drive.list_files()

    async def upload(
        self,
        data: bytes,
        filename: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> UploadResult:
        return await self.drive.upload(data, filename, on_progress)

    async def upload_file(
        self,
        path: Union[str, Path],
        on_progress: Optional[ProgressCallback] = None,
    ) -> UploadResult:
        return await self.drive.upload_file(path, on_progress)

    async def download(
        self,
        file_id: str,
        destination: Union[str, Path],
        on_progress: Optional[ProgressCallback] = None,
    ) -> Path:
        return await self.drive.download(file_id, destination, on_progress)

    async def delete(self, file_id: str) -> None:
        await self.drive.delete_file(file_id)

    # Settings

    @property
    def theme(self) -> AppTheme:
        return self.store.app_theme

    @theme.setter
    def theme(self, value: Union[AppTheme, str]) -> None:
        self.store.app_theme = AppTheme(value)
