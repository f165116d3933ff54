"""PKCE (Proof Key for Code Exchange) generation"""

import base64
import hashlib
import secrets
import uuid

from .models import PkceCodes

# 32 random bytes encode to a 43 character verifier
VERIFIER_BYTES = 32


def _base64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def generate_code_verifier() -> str:
    """Generate a high-entropy code verifier (43 unreserved characters)"""
    return _base64url(secrets.token_bytes(VERIFIER_BYTES))


def derive_code_challenge(code_verifier: str) -> str:
    """S256 code challenge: base64url(SHA-256(verifier)) without padding"""
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return _base64url(digest)


def generate_state() -> str:
    """Single-use anti-CSRF state nonce"""
    return str(uuid.uuid4())


def generate_pkce() -> PkceCodes:
    """Generate PKCE code verifier and challenge

    Returns:
        PkceCodes with a fresh verifier and its S256 challenge
    """
    code_verifier = generate_code_verifier()
    return PkceCodes(
        code_verifier=code_verifier,
        code_challenge=derive_code_challenge(code_verifier),
    )
