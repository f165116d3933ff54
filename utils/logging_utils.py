"""
Logging helpers that keep secrets out of log files.
"""
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

SENSITIVE_PARAMS = {"code", "state", "access_token", "refresh_token", "code_verifier"}


def mask_token(token: Optional[str]) -> str:
    """Show only the first few characters of a token"""
    if not token:
        return "<none>"
    if len(token) <= 8:
        return "[REDACTED]"
    return f"{token[:6]}...[REDACTED]"


def redact_url(url: str) -> str:
    """Replace sensitive query parameter values with [REDACTED]"""
    parts = urlsplit(url)
    if not parts.query:
        return url
    query = [
        (key, "[REDACTED]" if key in SENSITIVE_PARAMS else value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
    ]
    return urlunsplit(parts._replace(query=urlencode(query, safe="[]")))
