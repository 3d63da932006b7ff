"""
Estoque - Realtime invalidation
Mudanças nas tabelas (Supabase Realtime) invalidam as rotas correspondentes no cache
"""
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from supabase import AsyncClient

from estoque.client.query_cache import QueryClient

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[Dict[str, Any]], None]

# tabela -> chaves de cache afetadas
REALTIME_INVALIDATIONS: Dict[str, Tuple[str, ...]] = {
    "users": ("/api/users", "/api/master/users"),
    "companies": ("/api/master/companies",),
    "products": ("/api/products", "/api/products/low-stock", "/api/dashboard/stats"),
    "stock_movements": (
        "/api/movements",
        "/api/products",
        "/api/products/low-stock",
        "/api/dashboard/stats",
    ),
}


class RealtimeSubscription:
    """Canal aberto para uma tabela; unsubscribe() fecha uma única vez"""

    def __init__(self, sdk: AsyncClient, channel, table: str):
        self._sdk = sdk
        self._channel = channel
        self.table = table
        self.closed = False

    async def unsubscribe(self):
        if self.closed:
            return
        self.closed = True
        await self._sdk.remove_channel(self._channel)
        logger.debug(f"Canal de {self.table} removido")


class RealtimeBridge:
    def __init__(self, sdk: AsyncClient, query_client: QueryClient):
        self._sdk = sdk
        self._query_client = query_client

    async def subscribe(
        self,
        table: str,
        callback: ChangeCallback,
        filter: Optional[str] = None
    ) -> RealtimeSubscription:
        """INSERT/UPDATE/DELETE em public.<table>; o callback recebe o payload cru"""
        channel = self._sdk.channel(f"{table}-changes")
        channel.on_postgres_changes(
            "*",
            schema="public",
            table=table,
            filter=filter,
            callback=callback
        )
        await channel.subscribe()
        logger.info(f"Realtime: inscrito em public.{table}")
        return RealtimeSubscription(self._sdk, channel, table)

    def invalidation_callback(self, table: str) -> ChangeCallback:
        keys = REALTIME_INVALIDATIONS[table]

        def on_change(payload: Dict[str, Any]):
            logger.debug(f"Realtime: mudança em {table}, invalidando {keys}")
            for key in keys:
                self._query_client.invalidate_queries(key)

        return on_change

    async def setup_realtime_invalidation(self) -> Callable[[], Awaitable[None]]:
        """Abre os quatro canais; retorna o teardown (chamadas repetidas não fazem nada)"""
        subscriptions: List[RealtimeSubscription] = []
        for table in REALTIME_INVALIDATIONS:
            subscriptions.append(await self.subscribe(table, self.invalidation_callback(table)))

        async def teardown():
            while subscriptions:
                await subscriptions.pop().unsubscribe()

        return teardown
