"""OAuth authorization code exchange"""

import json
import logging

import httpx

import settings
from config.profiles import AppProfile
from utils.errors import TokenExchangeError
from .models import TokenData

logger = logging.getLogger(__name__)

FORM_HEADERS = {"Content-Type": "application/x-www-form-urlencoded"}


def parse_token_response(response: httpx.Response, action: str) -> TokenData:
    """Turn a token endpoint response into TokenData

    Args:
        response: Token endpoint response
        action: 'Token exchange' or 'Token refresh', used in error messages

    Raises:
        TokenExchangeError: On a non-200 status or an unusable payload
    """
    if response.status_code != 200:
        logger.error(f"{action} failed with status {response.status_code}: {response.text}")
        raise TokenExchangeError(
            f"{action} failed",
            status_code=response.status_code,
            body=response.text,
        )

    try:
        return TokenData.from_response(response.json())
    except (json.JSONDecodeError, ValueError, AttributeError) as e:
        logger.error(f"Failed to parse {action.lower()} response: {e}")
        raise TokenExchangeError(f"{action} returned an invalid response: {e}") from e


async def exchange_code_for_tokens(
    client: httpx.AsyncClient,
    profile: AppProfile,
    code: str,
    code_verifier: str,
    token_url: str = settings.TOKEN_URL,
) -> TokenData:
    """Exchange authorization code for OAuth tokens

    Args:
        client: HTTP client to send the request with
        profile: App profile (client ID and redirect URI)
        code: Authorization code from OAuth callback
        code_verifier: PKCE verifier stored when the flow started

    Returns:
        TokenData from the token endpoint

    Raises:
        TokenExchangeError: If the request fails or is rejected
    """
    data = {
        "client_id": profile.client_id,
        "code": code,
        "code_verifier": code_verifier,
        "grant_type": "authorization_code",
        "redirect_uri": profile.redirect_uri,
    }

    logger.info(f"Exchanging authorization code for tokens at {token_url}")

    try:
        response = await client.post(token_url, data=data, headers=FORM_HEADERS)
    except httpx.RequestError as e:
        logger.error(f"Token exchange request failed: {e}")
        raise TokenExchangeError(f"Token exchange request failed: {e}") from e

    logger.debug(f"Token exchange response status: {response.status_code}")
    tokens = parse_token_response(response, "Token exchange")
    logger.info("Successfully exchanged authorization code for tokens")
    return tokens
