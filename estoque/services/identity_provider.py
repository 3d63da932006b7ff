"""
Estoque - Identity provider (server side)
Acesso administrativo ao Supabase Auth: validar tokens e criar contas
"""
import logging
from typing import Any, Dict, Optional

from supabase import AsyncClient, AuthError, acreate_client

from estoque.core.config import settings
from estoque.schemas.identity import ExternalUser, to_external_user

logger = logging.getLogger(__name__)


class IdentityProviderError(Exception):
    """Falha ao falar com o provedor de identidade"""


class IdentityProvider:
    """Cliente Supabase com a service role key (ou anon key como fallback)"""

    def __init__(self, sdk: Optional[AsyncClient] = None):
        self._sdk = sdk

    async def _client(self) -> AsyncClient:
        if self._sdk is None:
            key = settings.SUPABASE_SERVICE_ROLE_KEY or settings.SUPABASE_ANON_KEY
            self._sdk = await acreate_client(settings.SUPABASE_URL, key)
        return self._sdk

    async def get_user(self, token: str) -> Optional[ExternalUser]:
        """Valida o access token no Supabase. None se inválido."""
        sdk = await self._client()
        try:
            response = await sdk.auth.get_user(token)
        except AuthError as e:
            logger.info(f"Token rejeitado pelo Supabase: {e}")
            return None

        if not response or not response.user:
            return None
        return to_external_user(response.user)

    async def create_user(self, email: str, password: str, metadata: Dict[str, Any]) -> ExternalUser:
        sdk = await self._client()
        try:
            if settings.SUPABASE_SERVICE_ROLE_KEY:
                response = await sdk.auth.admin.create_user({
                    "email": email,
                    "password": password,
                    "email_confirm": True,
                    "user_metadata": metadata,
                })
            else:
                response = await sdk.auth.sign_up({
                    "email": email,
                    "password": password,
                    "options": {"data": metadata},
                })
        except AuthError as e:
            raise IdentityProviderError(f"Erro ao criar usuário no Supabase Auth: {e}") from e

        if not response or not response.user:
            raise IdentityProviderError("Usuário não foi criado no Supabase Auth")
        return to_external_user(response.user)

    async def delete_user(self, user_id: str):
        if not settings.SUPABASE_SERVICE_ROLE_KEY:
            logger.warning(f"Sem service role key: usuário {user_id} não removido do Supabase")
            return
        sdk = await self._client()
        try:
            await sdk.auth.admin.delete_user(user_id)
        except AuthError as e:
            logger.warning(f"Erro ao remover usuário {user_id} do Supabase Auth: {e}")


_provider: Optional[IdentityProvider] = None


def get_identity_provider() -> IdentityProvider:
    """Dependency FastAPI (sobrescrita nos testes)"""
    global _provider
    if _provider is None:
        _provider = IdentityProvider()
    return _provider
