"""
Estoque - Dev tools
Reset de desenvolvimento: limpa cache, sessão e armazenamentos locais
"""
import logging
from typing import Iterable, MutableMapping

from supabase import AuthError

from estoque.core.config import settings
from estoque.client.identity import IdentityClient
from estoque.client.query_cache import QueryClient

logger = logging.getLogger(__name__)


async def dev_logout_and_clear_cache(
    query_client: QueryClient,
    identity: IdentityClient,
    storages: Iterable[MutableMapping] = ()
):
    logger.info("[DEV] Logout automático e limpeza de cache")

    query_client.clear()
    logger.info("[DEV] Cache de queries limpo")

    try:
        await identity.sign_out()
        logger.info("[DEV] Logout do Supabase executado")
    except AuthError as e:
        logger.error(f"[DEV] Erro no logout, seguindo com a limpeza: {e}")

    for storage in storages:
        storage.clear()
    logger.info("[DEV] Armazenamento local limpo")


async def trigger_dev_reset(
    query_client: QueryClient,
    identity: IdentityClient,
    storages: Iterable[MutableMapping] = ()
) -> bool:
    """Só roda em ENVIRONMENT=development; retorna se o reset aconteceu"""
    if settings.ENVIRONMENT != "development":
        return False
    logger.info("[DEV] Mudança detectada no sistema, acionando reset")
    await dev_logout_and_clear_cache(query_client, identity, storages)
    return True
