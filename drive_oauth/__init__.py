"""Google OAuth authentication module

PKCE authorization-code flow for installed apps, with token persistence
through CredentialStore and single-flight refresh.
"""

from .models import AuthState, PkceCodes, TokenData, UserInfo
from .authorization import AuthorizationURLBuilder, CallbackParams, is_oauth_callback, parse_callback
from .pkce import derive_code_challenge, generate_code_verifier, generate_pkce, generate_state
from .token_exchange import exchange_code_for_tokens
from .token_refresh import refresh_access_token, should_refresh_access_token
from .token_manager import TokenManager

__all__ = [
    "AuthState",
    "PkceCodes",
    "TokenData",
    "UserInfo",
    "AuthorizationURLBuilder",
    "CallbackParams",
    "is_oauth_callback",
    "parse_callback",
    "derive_code_challenge",
    "generate_code_verifier",
    "generate_pkce",
    "generate_state",
    "exchange_code_for_tokens",
    "refresh_access_token",
    "should_refresh_access_token",
    "TokenManager",
]
