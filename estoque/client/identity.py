"""
Estoque - Identity client
Adaptador fino sobre o Supabase Auth (lado do cliente)
"""
import logging
from typing import Any, Callable, Dict, Optional

from supabase import AsyncClient, AuthError, acreate_client

from estoque.core.config import settings
from estoque.schemas.identity import (
    AuthEvent,
    ExternalSession,
    ExternalUser,
    to_external_session,
    to_external_user,
)

logger = logging.getLogger(__name__)

AuthCallback = Callable[[AuthEvent, Optional[ExternalSession]], None]

REFRESH_TOKEN_ERROR_CODES = {"refresh_token_not_found", "refresh_token_already_used"}


def is_refresh_token_error(error: Exception) -> bool:
    """Refresh token ausente, expirado ou já usado"""
    if not isinstance(error, AuthError):
        return False
    if getattr(error, "code", None) in REFRESH_TOKEN_ERROR_CODES:
        return True
    return "refresh token" in str(error).lower()


class IdentityClient:
    """
    Proxy para o SDK: nenhuma chamada é repetida e nenhum estado local é mantido.
    Erros do SDK (AuthError) sobem para quem chamou.
    """

    def __init__(self, sdk: AsyncClient):
        self._sdk = sdk

    @classmethod
    async def from_settings(cls) -> "IdentityClient":
        sdk = await acreate_client(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY)
        return cls(sdk)

    @property
    def sdk(self) -> AsyncClient:
        return self._sdk

    async def sign_in(self, email: str, password: str) -> Optional[ExternalSession]:
        response = await self._sdk.auth.sign_in_with_password({"email": email, "password": password})
        return to_external_session(response.session)

    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Optional[ExternalUser]:
        credentials: Dict[str, Any] = {"email": email, "password": password}
        if metadata is not None:
            credentials["options"] = {"data": metadata}
        response = await self._sdk.auth.sign_up(credentials)
        return to_external_user(response.user)

    async def sign_out(self):
        await self._sdk.auth.sign_out()

    async def get_session(self) -> Optional[ExternalSession]:
        return to_external_session(await self._sdk.auth.get_session())

    async def get_user(self) -> Optional[ExternalUser]:
        response = await self._sdk.auth.get_user()
        if not response:
            return None
        return to_external_user(response.user)

    def on_auth_state_change(self, callback: AuthCallback):
        """Assina os eventos de autenticação; retorna a subscription do SDK (unsubscribe())"""
        def relay(event: str, session: Any):
            try:
                auth_event = AuthEvent(event)
            except ValueError:
                logger.debug(f"Evento de autenticação ignorado: {event}")
                return
            callback(auth_event, to_external_session(session))

        return self._sdk.auth.on_auth_state_change(relay)
