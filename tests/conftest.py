"""Shared fixtures: in-memory stores, a fixed clock and a mock Google backend."""

import json
from typing import Any, Dict, Optional
from urllib.parse import parse_qs

import httpx
import pytest

from config.profiles import PROFILES
from utils.keychain import SecretStore
from utils.preferences import PreferencesStore
from utils.storage import CredentialStore

NOW = 1_700_000_000.0


class MemorySecretStore(SecretStore):
    """Secret store kept in a dict."""

    def __init__(self):
        self.values: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        if not value:
            self.delete(key)
            return
        self.values[key] = value

    def delete(self, key: str) -> None:
        self.values.pop(key, None)


class MemoryPreferencesStore(PreferencesStore):
    """Preferences kept in a dict."""

    def __init__(self):
        self.values: Dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.values[key] = value

    def delete(self, key: str) -> None:
        self.values.pop(key, None)


class FakeGoogle:
    """Routes requests to canned responses and records what was sent."""

    def __init__(self):
        self.requests = []
        self.routes = {}

    def on(self, method: str, path: str, response):
        """Register a response (or a callable taking the request) for a path."""
        self.routes[(method, path)] = response

    def calls(self, method: str, path: str):
        return [r for r in self.requests if r.method == method and r.url.path == path]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"error": "not found"})
        if callable(route):
            result = route(request)
            if hasattr(result, "__await__"):
                result = await result
            return result
        return route


def form_of(request: httpx.Request) -> Dict[str, str]:
    """Decode a form-encoded request body."""
    return {key: values[0] for key, values in parse_qs(request.content.decode()).items()}


def json_of(request: httpx.Request) -> Dict[str, Any]:
    return json.loads(request.content)


@pytest.fixture
def profile():
    return PROFILES["cloudstash"]


@pytest.fixture
def secrets():
    return MemorySecretStore()


@pytest.fixture
def preferences():
    return MemoryPreferencesStore()


@pytest.fixture
def store(secrets, preferences):
    return CredentialStore(secrets, preferences)


@pytest.fixture
def signed_in_store(store):
    """Store holding a session whose access token is valid for an hour."""
    store.save_tokens("access-1", "refresh-1", NOW + 3600)
    store.save_profile("ada@example.com", "Ada", "https://example.com/ada.png")
    return store


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def google():
    return FakeGoogle()


@pytest.fixture
def http_client(google):
    """Client whose requests are answered by the FakeGoogle backend."""
    return httpx.AsyncClient(transport=httpx.MockTransport(google))
