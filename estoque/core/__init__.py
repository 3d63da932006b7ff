from .config import settings, get_settings
from .security import (
    get_password_hash,
    create_access_token,
    verify_access_token,
    local_token_verification_enabled,
)

__all__ = [
    "settings",
    "get_settings",
    "get_password_hash",
    "create_access_token",
    "verify_access_token",
    "local_token_verification_enabled",
]
