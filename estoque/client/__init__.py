from .identity import IdentityClient, is_refresh_token_error
from .session import AuthSessionSync, SessionState
from .http import ApiClient, ApiError
from .query_cache import QueryClient, QueryClientConfig, clear_all_cache, force_refresh
from .realtime import RealtimeBridge, RealtimeSubscription, REALTIME_INVALIDATIONS
from .devtools import dev_logout_and_clear_cache, trigger_dev_reset

__all__ = [
    "IdentityClient",
    "is_refresh_token_error",
    "AuthSessionSync",
    "SessionState",
    "ApiClient",
    "ApiError",
    "QueryClient",
    "QueryClientConfig",
    "clear_all_cache",
    "force_refresh",
    "RealtimeBridge",
    "RealtimeSubscription",
    "REALTIME_INVALIDATIONS",
    "dev_logout_and_clear_cache",
    "trigger_dev_reset"
]
