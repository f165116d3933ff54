"""Data models for Google OAuth authentication"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

DEFAULT_EXPIRES_IN = 3600


class AuthState(str, Enum):
    """Lifecycle of one credential set"""
    SIGNED_OUT = "signed_out"
    AUTHORIZING = "authorizing"
    SIGNED_IN = "signed_in"
    REFRESHING = "refreshing"


@dataclass(frozen=True)
class PkceCodes:
    """PKCE (Proof Key for Code Exchange) codes for OAuth flow

    Attributes:
        code_verifier: Random string kept locally until the code exchange
        code_challenge: SHA256 hash of code_verifier, sent in auth request
    """
    code_verifier: str
    code_challenge: str


@dataclass(frozen=True)
class TokenData:
    """Token endpoint response

    Attributes:
        access_token: Bearer token for API authentication
        refresh_token: Present on code exchange; usually absent on refresh
        expires_in: Access token lifetime in seconds, relative to receipt
    """
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: int = DEFAULT_EXPIRES_IN

    @classmethod
    def from_response(cls, payload: Dict[str, Any]) -> "TokenData":
        """Parse a token endpoint JSON payload

        Raises:
            ValueError: If the payload has no access token
        """
        access_token = payload.get("access_token")
        if not access_token:
            raise ValueError("Token response missing access_token")

        try:
            expires_in = int(payload.get("expires_in", DEFAULT_EXPIRES_IN))
        except (TypeError, ValueError):
            expires_in = DEFAULT_EXPIRES_IN

        return cls(
            access_token=access_token,
            refresh_token=payload.get("refresh_token") or None,
            expires_in=expires_in,
        )

    def expires_at(self, now: float) -> float:
        """Absolute expiry for a response received at `now`"""
        return now + self.expires_in


@dataclass(frozen=True)
class UserInfo:
    """Google account profile"""
    email: str
    name: str
    picture_url: str = ""

    @classmethod
    def from_response(cls, payload: Dict[str, Any]) -> "UserInfo":
        email = payload.get("email") or ""
        return cls(
            email=email,
            name=payload.get("name") or email,
            picture_url=payload.get("picture") or "",
        )
