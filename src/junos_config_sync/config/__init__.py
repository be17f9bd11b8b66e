"""Provider settings and device inventory.

The inventory lives in ``config.inventory``; it builds device clients and
is imported from there.
"""
from .settings import ProviderConfig, ConfigError, ENV_VARS

__all__ = ["ProviderConfig", "ConfigError", "ENV_VARS"]
