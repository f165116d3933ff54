"""OAuth authorization URL construction and callback parsing"""

from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qs, urlencode, urlsplit

import settings
from config.profiles import CALLBACK_TOKEN, AppProfile


@dataclass(frozen=True)
class CallbackParams:
    """Query parameters of an OAuth redirect"""
    code: Optional[str] = None
    state: Optional[str] = None
    error: Optional[str] = None
    error_description: Optional[str] = None


class AuthorizationURLBuilder:
    """Builds Google authorization URLs with PKCE"""

    def __init__(self, profile: AppProfile, auth_url: str = settings.AUTH_URL):
        self.profile = profile
        self.auth_url = auth_url

    def get_authorize_url(self, state: str, code_challenge: str) -> str:
        """Construct the authorization URL for one flow

        Args:
            state: Anti-CSRF nonce echoed back on the redirect
            code_challenge: S256 PKCE challenge

        Returns:
            Full authorization URL
        """
        params = {
            "client_id": self.profile.client_id,
            "redirect_uri": self.profile.redirect_uri,
            "response_type": "code",
            "scope": self.profile.scope_string,
            "state": state,
            "code_challenge": code_challenge,
            "code_challenge_method": "S256",
            # Needed to receive a refresh token, and to receive it again on re-consent
            "access_type": "offline",
            "prompt": "consent",
        }
        return f"{self.auth_url}?{urlencode(params)}"


def parse_callback(url: str) -> CallbackParams:
    """Extract the OAuth parameters from a redirect URL"""
    params = parse_qs(urlsplit(url).query)

    def first(name: str) -> Optional[str]:
        values = params.get(name)
        return values[0] if values else None

    return CallbackParams(
        code=first("code"),
        state=first("state"),
        error=first("error"),
        error_description=first("error_description"),
    )


def is_oauth_callback(url: str, profile: AppProfile) -> bool:
    """Check that a URL is this app's OAuth redirect

    With custom schemes the callback token may be parsed as the host
    (scheme://oauth2callback) or as the path (scheme:/oauth2callback),
    so both are accepted.
    """
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return False

    # URL schemes are case-insensitive; urlsplit lowercases the parsed one
    if parts.scheme != profile.redirect_scheme.lower():
        return False
    return parts.netloc == CALLBACK_TOKEN or CALLBACK_TOKEN in parts.path
