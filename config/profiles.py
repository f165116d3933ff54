"""Per-app OAuth profiles

Both desktop apps share the same OAuth and Drive logic and differ only in
client ID, redirect scheme and the namespace used for stored credentials.
"""

import logging
from dataclasses import dataclass, replace
from typing import Dict, Optional, Tuple

from .loader import get_config_loader

logger = logging.getLogger(__name__)

# Path/host token Google appends to custom-scheme redirect URIs
CALLBACK_TOKEN = "oauth2callback"

DEFAULT_SCOPES: Tuple[str, ...] = (
    "https://www.googleapis.com/auth/drive.file",
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
)


@dataclass(frozen=True)
class AppProfile:
    """OAuth client configuration for one app

    Attributes:
        name: Profile name used on the command line
        client_id: Google OAuth client ID (installed-app type)
        redirect_scheme: Reversed-domain custom URL scheme registered with the OS
        storage_namespace: Keychain service name and preferences file stem
        scopes: OAuth scopes requested at sign-in
    """
    name: str
    client_id: str
    redirect_scheme: str
    storage_namespace: str
    scopes: Tuple[str, ...] = DEFAULT_SCOPES

    @property
    def redirect_uri(self) -> str:
        return f"{self.redirect_scheme}:/{CALLBACK_TOKEN}"

    @property
    def scope_string(self) -> str:
        return " ".join(self.scopes)


PROFILES: Dict[str, AppProfile] = {
    "cloudstash": AppProfile(
        name="cloudstash",
        client_id="446555451602-urjojbh2ln1uokl3alfnvll65v5973lk.apps.googleusercontent.com",
        redirect_scheme="com.googleusercontent.apps.446555451602-urjojbh2ln1uokl3alfnvll65v5973lk",
        storage_namespace="com.CloudStash.app",
    ),
    "dropover": AppProfile(
        name="dropover",
        client_id="446555451602-1r29ev9fccp7ghnlblajsjiji153r6p8.apps.googleusercontent.com",
        redirect_scheme="com.dropover.app",
        storage_namespace="com.dropover.app",
    ),
}


def load_app_profile(name: Optional[str] = None) -> AppProfile:
    """Resolve an app profile and apply environment overrides

    Args:
        name: Built-in profile name (defaults to CLOUDSTASH_PROFILE or 'cloudstash')

    Returns:
        The resolved AppProfile

    Raises:
        ValueError: If the profile name is unknown
    """
    config = get_config_loader()
    name = name or config.get("CLOUDSTASH_PROFILE", "cloudstash")

    try:
        profile = PROFILES[name]
    except KeyError:
        raise ValueError(f"Unknown app profile '{name}'. Available: {', '.join(sorted(PROFILES))}") from None

    overrides = {
        "client_id": config.get("CLOUDSTASH_CLIENT_ID", profile.client_id),
        "redirect_scheme": config.get("CLOUDSTASH_REDIRECT_SCHEME", profile.redirect_scheme),
        "storage_namespace": config.get("CLOUDSTASH_STORAGE_NAMESPACE", profile.storage_namespace),
    }
    changed = {key: value for key, value in overrides.items() if value != getattr(profile, key)}
    if changed:
        logger.debug(f"Applying environment overrides to profile '{name}': {sorted(changed)}")
        profile = replace(profile, **changed)

    return profile
