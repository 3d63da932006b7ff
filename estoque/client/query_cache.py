"""
Estoque - Query cache
Cache de respostas da API por chave, com janela de frescor e coleta de entradas sem uso
"""
import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict

from estoque.core.config import settings

logger = logging.getLogger(__name__)

QueryKey = Union[str, Tuple[Any, ...]]
QueryFn = Callable[[QueryKey], Awaitable[Any]]

# Tentativas quando retry está ligado
RETRY_ATTEMPTS = 3


def normalize_key(key: QueryKey) -> Tuple[Any, ...]:
    return (key,) if isinstance(key, str) else tuple(key)


def key_matches(entry_key: Tuple[Any, ...], query_key: Optional[QueryKey]) -> bool:
    """Casa por prefixo: ("/api/products",) cobre ("/api/products", 3)"""
    if query_key is None:
        return True
    prefix = normalize_key(query_key)
    return entry_key[:len(prefix)] == prefix


class QueryClientConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    stale_time: float = 30.0
    gc_time: float = 60.0
    refetch_on_window_focus: bool = True
    retry: bool = False
    mutation_retry: bool = False

    @classmethod
    def from_settings(cls) -> "QueryClientConfig":
        return cls(
            stale_time=settings.QUERY_STALE_TIME_SECONDS,
            gc_time=settings.QUERY_GC_TIME_SECONDS,
            refetch_on_window_focus=settings.QUERY_REFETCH_ON_WINDOW_FOCUS,
        )


class QueryEntry:
    def __init__(self, key: QueryKey):
        self.key = key
        self.data: Any = None
        self.error: Optional[BaseException] = None
        self.updated_at: Optional[float] = None
        self.invalidated = False
        self.observers = 0
        self.fetching: Optional[asyncio.Task] = None
        self.gc_handle: Optional[asyncio.TimerHandle] = None

    def is_stale(self, stale_time: float, now: float) -> bool:
        if self.invalidated or self.updated_at is None:
            return True
        return now - self.updated_at >= stale_time


class QueryObserver:
    """Mantém a entrada viva enquanto aberto"""

    def __init__(self, client: "QueryClient", key: QueryKey):
        self._client = client
        self.key = key
        self.closed = False

    @property
    def data(self) -> Any:
        return self._client.get_query_data(self.key)

    def close(self):
        if self.closed:
            return
        self.closed = True
        self._client._release(self.key)


class QueryClient:
    """
    Instância explícita do cache; cada aplicação (ou teste) cria a sua.
    Falhas de busca e de mutação não são repetidas a menos que a configuração peça.
    """

    def __init__(
        self,
        config: Optional[QueryClientConfig] = None,
        query_fn: Optional[QueryFn] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self.config = config or QueryClientConfig.from_settings()
        self._query_fn = query_fn
        self._clock = clock
        self._entries: Dict[Tuple[Any, ...], QueryEntry] = {}
        self._background: set = set()

    def _entry(self, key: QueryKey) -> QueryEntry:
        normalized = normalize_key(key)
        entry = self._entries.get(normalized)
        if entry is None:
            entry = QueryEntry(key)
            self._entries[normalized] = entry
        return entry

    def _matching(self, key: Optional[QueryKey]) -> List[QueryEntry]:
        return [entry for k, entry in self._entries.items() if key_matches(k, key)]

    def keys(self) -> List[QueryKey]:
        return [entry.key for entry in self._entries.values()]

    # ============================================
    # LEITURA
    # ============================================
    def get_query_data(self, key: QueryKey) -> Any:
        entry = self._entries.get(normalize_key(key))
        return entry.data if entry else None

    def set_query_data(self, key: QueryKey, data: Any):
        entry = self._entry(key)
        entry.data = data
        entry.error = None
        entry.updated_at = self._clock()
        entry.invalidated = False
        self._schedule_gc(entry)

    def is_stale(self, key: QueryKey) -> bool:
        entry = self._entries.get(normalize_key(key))
        return entry is None or entry.is_stale(self.config.stale_time, self._clock())

    async def fetch_query(self, key: QueryKey, query_fn: Optional[QueryFn] = None, force: bool = False) -> Any:
        """Dado fresco do cache ou uma busca (buscas simultâneas da mesma chave são unificadas)"""
        entry = self._entry(key)
        if not force and entry.updated_at is not None and not entry.is_stale(self.config.stale_time, self._clock()):
            return entry.data

        if entry.fetching is None or entry.fetching.done():
            fn = query_fn or self._query_fn
            if fn is None:
                raise RuntimeError(f"No query function for {key!r}")
            entry.fetching = asyncio.ensure_future(self._run_fetch(entry, fn))
        return await entry.fetching

    async def _run_fetch(self, entry: QueryEntry, fn: QueryFn) -> Any:
        attempts = RETRY_ATTEMPTS if self.config.retry else 1
        for attempt in range(1, attempts + 1):
            try:
                data = await fn(entry.key)
            except Exception as e:
                if attempt < attempts:
                    logger.debug(f"Busca de {entry.key!r} falhou (tentativa {attempt}): {e}")
                    continue
                entry.error = e
                self._schedule_gc(entry)
                raise
            entry.data = data
            entry.error = None
            entry.updated_at = self._clock()
            entry.invalidated = False
            self._schedule_gc(entry)
            return data

    # ============================================
    # OBSERVADORES / COLETA
    # ============================================
    def observe(self, key: QueryKey) -> QueryObserver:
        entry = self._entry(key)
        entry.observers += 1
        if entry.gc_handle is not None:
            entry.gc_handle.cancel()
            entry.gc_handle = None
        return QueryObserver(self, key)

    def is_observed(self, key: QueryKey) -> bool:
        entry = self._entries.get(normalize_key(key))
        return bool(entry and entry.observers)

    def _release(self, key: QueryKey):
        entry = self._entries.get(normalize_key(key))
        if entry is None:
            return
        entry.observers = max(entry.observers - 1, 0)
        self._schedule_gc(entry)

    def _schedule_gc(self, entry: QueryEntry):
        if entry.observers or entry.gc_handle is not None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        entry.gc_handle = loop.call_later(self.config.gc_time, self._collect, normalize_key(entry.key))

    def _collect(self, normalized: Tuple[Any, ...]):
        entry = self._entries.get(normalized)
        if entry is None:
            return
        entry.gc_handle = None
        if entry.observers:
            return
        if entry.fetching is not None and not entry.fetching.done():
            self._schedule_gc(entry)
            return
        del self._entries[normalized]
        logger.debug(f"Entrada {entry.key!r} removida do cache")

    # ============================================
    # INVALIDAÇÃO / REBUSCA
    # ============================================
    def invalidate_queries(self, key: Optional[QueryKey] = None, refetch_active: bool = True) -> List[QueryKey]:
        """
        Marca as entradas como velhas. As observadas são rebuscadas em segundo plano
        quando há um event loop rodando.
        """
        invalidated = []
        for entry in self._matching(key):
            entry.invalidated = True
            invalidated.append(entry.key)
            if refetch_active and entry.observers:
                self._refetch_in_background(entry)
        return invalidated

    def _refetch_in_background(self, entry: QueryEntry):
        if self._query_fn is None:
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return
        task = asyncio.ensure_future(self._safe_fetch(entry.key))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _safe_fetch(self, key: QueryKey):
        try:
            await self.fetch_query(key, force=True)
        except Exception as e:
            # o erro fica na entrada para quem observa
            logger.warning(f"Rebusca de {key!r} falhou: {e}")

    async def refetch_queries(self, key: Optional[QueryKey] = None):
        entries = self._matching(key)
        await asyncio.gather(*(self._safe_fetch(entry.key) for entry in entries))

    async def on_window_focus(self):
        """Rebusca as entradas observadas e velhas quando a janela volta ao foco"""
        if not self.config.refetch_on_window_focus:
            return
        now = self._clock()
        stale = [
            entry for entry in self._entries.values()
            if entry.observers and entry.is_stale(self.config.stale_time, now)
        ]
        await asyncio.gather(*(self._safe_fetch(entry.key) for entry in stale))

    async def wait_background(self):
        if self._background:
            await asyncio.gather(*list(self._background))

    def clear(self):
        for entry in self._entries.values():
            if entry.gc_handle is not None:
                entry.gc_handle.cancel()
        self._entries.clear()

    # ============================================
    # MUTAÇÕES
    # ============================================
    async def mutate(self, fn: Callable[..., Awaitable[Any]], *args, invalidates: Iterable[QueryKey] = (), **kwargs) -> Any:
        """Executa a mutação (sem retry por padrão) e invalida as chaves informadas"""
        attempts = RETRY_ATTEMPTS if self.config.mutation_retry else 1
        for attempt in range(1, attempts + 1):
            try:
                result = await fn(*args, **kwargs)
            except Exception as e:
                if attempt < attempts:
                    logger.debug(f"Mutação falhou (tentativa {attempt}): {e}")
                    continue
                raise
            for key in invalidates:
                self.invalidate_queries(key)
            return result


def clear_all_cache(client: QueryClient):
    """Invalida e descarta todo o cache"""
    client.invalidate_queries(refetch_active=False)
    client.clear()


async def force_refresh(client: QueryClient, keys: Iterable[QueryKey]):
    """Invalida e rebusca imediatamente cada chave"""
    for key in keys:
        client.invalidate_queries(key, refetch_active=False)
        await client.refetch_queries(key)
