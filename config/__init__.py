"""Configuration management package for CloudStash"""

from .loader import ConfigLoader, get_config_loader
from .profiles import AppProfile, PROFILES, load_app_profile

__all__ = [
    "ConfigLoader",
    "get_config_loader",
    "AppProfile",
    "PROFILES",
    "load_app_profile",
]
