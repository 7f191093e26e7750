"""External embedding/generation provider client and its configuration."""

from smaraa.provider.client import ProviderClient
from smaraa.provider.config import ProviderConfig

__all__ = ["ProviderClient", "ProviderConfig"]
