"""Authentication for the Search Ads client.

Signs the client assertion and manages the cached bearer token and
organization context derived from it.

:var __all__: List of public exports from this module
:type __all__: List[str]
"""

from .signing import load_private_key, make_client_secret, normalize_private_key
from .token_manager import AuthContext, TokenManager

__all__ = [
    "AuthContext",
    "TokenManager",
    "load_private_key",
    "make_client_secret",
    "normalize_private_key",
]
