"""OAuth token manager for the Google Drive session"""

import asyncio
import datetime
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

import settings
from config.profiles import AppProfile
from utils.errors import (
    AuthorizationDeniedError,
    MissingCodeError,
    SessionExpiredError,
    StateMismatchError,
    TokenExchangeError,
)
from utils.http import open_client
from utils.logging_utils import mask_token
from utils.storage import CredentialStore, PendingAuthState
from .authorization import AuthorizationURLBuilder, parse_callback
from .models import AuthState, UserInfo
from .pkce import generate_pkce, generate_state
from .token_exchange import exchange_code_for_tokens
from .token_refresh import refresh_access_token, should_refresh_access_token

logger = logging.getLogger(__name__)

UserInfoFetcher = Callable[[], Awaitable[UserInfo]]


class TokenManager:
    """Manages Google OAuth tokens with automatic refresh

    Refreshes are single-flight: concurrent callers that find the token
    near expiry wait on one lock, and all but the first see the new token
    when they recheck.
    """

    def __init__(
        self,
        profile: AppProfile,
        store: CredentialStore,
        http_client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.time,
        token_url: str = settings.TOKEN_URL,
    ):
        """Initialize token manager

        Args:
            profile: App profile (client ID, redirect URI, scopes)
            store: Credential store holding tokens and PKCE state
            http_client: Shared HTTP client (a short-lived one is used if None)
            clock: Returns the current UNIX time
            token_url: Token endpoint
        """
        self.profile = profile
        self.store = store
        self.http_client = http_client
        self.clock = clock
        self.token_url = token_url
        self.auth_builder = AuthorizationURLBuilder(profile)
        self._refresh_lock: Optional[asyncio.Lock] = None
        self._lock_loop: Optional[asyncio.AbstractEventLoop] = None
        self._refreshing = False

    def _get_refresh_lock(self) -> asyncio.Lock:
        # One lock per event loop; a session can outlive several asyncio.run calls
        loop = asyncio.get_running_loop()
        if self._refresh_lock is None or self._lock_loop is not loop:
            self._refresh_lock = asyncio.Lock()
            self._lock_loop = loop
        return self._refresh_lock

    # State

    @property
    def is_signed_in(self) -> bool:
        return self.store.is_signed_in

    @property
    def current_user(self) -> Optional[UserInfo]:
        creds = self.store.snapshot()
        if not creds.is_signed_in:
            return None
        return UserInfo(
            email=creds.user_email,
            name=creds.user_name,
            picture_url=creds.user_picture_url,
        )

    @property
    def state(self) -> AuthState:
        if self._refreshing:
            return AuthState.REFRESHING
        if self.store.is_signed_in:
            return AuthState.SIGNED_IN
        if self.store.load_pending_auth() is not None:
            return AuthState.AUTHORIZING
        return AuthState.SIGNED_OUT

    # Authorization

    def start_authorization(self) -> str:
        """Begin a sign-in flow

        Any earlier pending flow is replaced; its redirect will fail the
        state check.

        Returns:
            Authorization URL to open in the browser
        """
        pkce = generate_pkce()
        state = generate_state()

        # Persist before handing out the URL: the redirect may relaunch the process
        self.store.save_pending_auth(PendingAuthState(code_verifier=pkce.code_verifier, state=state))

        logger.info("Started OAuth authorization flow")
        return self.auth_builder.get_authorize_url(state=state, code_challenge=pkce.code_challenge)

    async def complete_authorization(
        self,
        callback_url: str,
        fetch_user_info: UserInfoFetcher,
    ) -> UserInfo:
        """Finish a sign-in flow from the redirect URL

        Args:
            callback_url: Redirect URL delivered by the OS
            fetch_user_info: Coroutine function returning the signed-in profile

        Returns:
            The signed-in user's profile

        Raises:
            StateMismatchError: State does not match the pending flow
            AuthorizationDeniedError: Provider returned an error
            MissingCodeError: No authorization code in the redirect
            TokenExchangeError: Code exchange failed
        """
        pending = self.store.load_pending_auth()
        params = parse_callback(callback_url)

        try:
            if pending is None or params.state != pending.state:
                logger.warning("OAuth state mismatch; rejecting callback")
                raise StateMismatchError("OAuth state mismatch")

            if params.error:
                detail = f": {params.error_description}" if params.error_description else ""
                raise AuthorizationDeniedError(f"OAuth error: {params.error}{detail}")

            if not params.code:
                raise MissingCodeError("No authorization code received")

            async with open_client(self.http_client) as client:
                tokens = await exchange_code_for_tokens(
                    client,
                    self.profile,
                    params.code,
                    pending.code_verifier,
                    token_url=self.token_url,
                )
        finally:
            self.store.clear_pending_auth()

        self.store.save_tokens(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token or self.store.refresh_token,
            expires_at=tokens.expires_at(self.clock()),
        )
        logger.info(f"Stored OAuth tokens (access token {mask_token(tokens.access_token)})")

        user = await fetch_user_info()
        self.store.save_profile(user.email, user.name, user.picture_url)
        self.store.notify_sign_in_complete()
        logger.info(f"Signed in as {user.email}")
        return user

    # Tokens

    async def valid_access_token(self) -> str:
        """Get an access token valid for at least the safety margin

        Returns:
            Access token, refreshed if it was about to expire

        Raises:
            SessionExpiredError: The session could not be refreshed and has
                been cleared
            TokenExchangeError: The token endpoint could not be reached
        """
        creds = self.store.snapshot()
        if not should_refresh_access_token(creds.access_token, creds.token_expiry, self.clock()):
            return creds.access_token

        async with self._get_refresh_lock():
            # Another caller may have refreshed while we waited
            creds = self.store.snapshot()
            if not should_refresh_access_token(creds.access_token, creds.token_expiry, self.clock()):
                return creds.access_token

            logger.info("Access token expires soon, refreshing...")
            return await self._refresh_locked(creds.refresh_token)

    async def refresh(self) -> str:
        """Refresh the access token now, regardless of expiry"""
        async with self._get_refresh_lock():
            return await self._refresh_locked(self.store.refresh_token)

    async def _refresh_locked(self, refresh_token: str) -> str:
        if not refresh_token:
            logger.warning("No refresh token available for refresh")
            self.sign_out()
            raise SessionExpiredError("Session expired. Please sign in again.")

        self._refreshing = True
        try:
            async with open_client(self.http_client) as client:
                tokens = await refresh_access_token(
                    client,
                    self.profile,
                    refresh_token,
                    token_url=self.token_url,
                )
        except TokenExchangeError as e:
            if e.status_code is None:
                # No answer from the provider; the refresh token may still be good
                raise
            self.sign_out()
            raise SessionExpiredError(
                "Session expired. Please sign in again.",
                status_code=e.status_code,
                body=e.body,
            ) from e
        finally:
            self._refreshing = False

        self.store.save_tokens(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token or refresh_token,
            expires_at=tokens.expires_at(self.clock()),
        )
        return tokens.access_token

    def sign_out(self) -> None:
        """Forget every stored credential"""
        self.store.clear_all()
        logger.info("Signed out")

    def get_status(self) -> Dict[str, Any]:
        """Get token status without exposing secrets"""
        creds = self.store.snapshot()
        if not creds.is_signed_in:
            return {
                "has_tokens": False,
                "is_expired": True,
                "expires_at": None,
                "time_until_expiry": "No tokens",
                "user_email": None,
            }

        now = self.clock()
        expires_str = datetime.datetime.fromtimestamp(creds.token_expiry).isoformat()
        remaining = int(creds.token_expiry - now)

        if remaining <= 0:
            time_str = "expired"
        else:
            hours = remaining // 3600
            minutes = (remaining % 3600) // 60
            time_str = f"{hours}h {minutes}m" if hours > 0 else f"{minutes}m"

        return {
            "has_tokens": True,
            "is_expired": remaining <= 0,
            "expires_at": expires_str,
            "time_until_expiry": time_str,
            "user_email": creds.user_email or None,
        }
