"""OAuth token refresh"""

import logging

import httpx

import settings
from config.profiles import AppProfile
from utils.errors import TokenExchangeError
from .models import TokenData
from .token_exchange import FORM_HEADERS, parse_token_response

logger = logging.getLogger(__name__)


async def refresh_access_token(
    client: httpx.AsyncClient,
    profile: AppProfile,
    refresh_token: str,
    token_url: str = settings.TOKEN_URL,
) -> TokenData:
    """Obtain a new access token with a refresh token

    Args:
        client: HTTP client to send the request with
        profile: App profile (client ID)
        refresh_token: Stored refresh token

    Returns:
        TokenData; refresh_token is None unless the provider rotated it

    Raises:
        TokenExchangeError: With status_code set when the provider rejected
            the refresh, or without one when no response was received
    """
    data = {
        "client_id": profile.client_id,
        "refresh_token": refresh_token,
        "grant_type": "refresh_token",
    }

    logger.info("Attempting to refresh OAuth tokens...")
    try:
        response = await client.post(token_url, data=data, headers=FORM_HEADERS)
    except httpx.RequestError as e:
        logger.error(f"Token refresh request failed: {e}")
        raise TokenExchangeError(f"Token refresh request failed: {e}") from e

    tokens = parse_token_response(response, "Token refresh")
    logger.info("Successfully refreshed OAuth tokens")
    return tokens


def should_refresh_access_token(
    access_token: str,
    token_expiry: float,
    now: float,
    margin: float = settings.REFRESH_MARGIN_SECONDS,
) -> bool:
    """Check if access token should be refreshed

    Args:
        access_token: Current access token
        token_expiry: Expiry as a UNIX timestamp
        now: Current UNIX time
        margin: Refresh when fewer than this many seconds remain

    Returns:
        True if token should be refreshed
    """
    if not access_token:
        return True
    return token_expiry - now < margin
