"""Sign-in orchestration: browser hand-off and redirect handling"""

import logging
import webbrowser
from typing import Callable

from config.profiles import AppProfile
from drive_api import DriveClient
from drive_oauth import TokenManager, UserInfo, is_oauth_callback
from utils.errors import InvalidCallbackError
from utils.logging_utils import redact_url

logger = logging.getLogger(__name__)


class AuthFlowCoordinator:
    """Drive the OAuth flow between the browser and the TokenManager

    Holds no state of its own; the pending flow lives in the CredentialStore
    so a redirect that relaunches the process can still be completed.
    """

    def __init__(
        self,
        profile: AppProfile,
        tokens: TokenManager,
        drive: DriveClient,
        open_url: Callable[[str], object] = webbrowser.open,
    ):
        self.profile = profile
        self.tokens = tokens
        self.drive = drive
        self.open_url = open_url

    def sign_in(self) -> str:
        """Start a new flow and open the authorization page

        A flow that is already pending is superseded.

        Returns:
            The authorization URL, for display when no browser could be opened
        """
        auth_url = self.tokens.start_authorization()
        logger.debug(f"Opening authorization URL: {redact_url(auth_url)}")
        self.open_url(auth_url)
        return auth_url

    def is_callback_url(self, url: str) -> bool:
        return is_oauth_callback(url, self.profile)

    async def handle_redirect(self, url: str) -> UserInfo:
        """Complete the flow from a redirect URL

        Raises:
            InvalidCallbackError: The URL is not this app's OAuth callback
        """
        logger.info(f"OAuth callback received: {redact_url(url)}")
        if not self.is_callback_url(url):
            raise InvalidCallbackError(
                f"Unrecognized callback URL - expected scheme: {self.profile.redirect_scheme}"
            )
        return await self.tokens.complete_authorization(url.strip(), self.drive.fetch_user_info)
