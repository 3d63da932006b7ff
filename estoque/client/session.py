"""
Estoque - Session synchronization
Reconcilia a identidade Supabase com o usuário local via POST /api/auth/sync-user
"""
import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set

import httpx
from pydantic import ValidationError
from supabase import AuthError

from estoque.core.config import settings
from estoque.schemas.identity import (
    AuthEvent,
    ExternalSession,
    ExternalUser,
    SyncUserResponse,
)
from estoque.client.identity import IdentityClient, is_refresh_token_error

logger = logging.getLogger(__name__)

# Eventos que trazem uma sessão válida e disparam nova sincronização
SYNC_EVENTS = {
    AuthEvent.INITIAL_SESSION,
    AuthEvent.SIGNED_IN,
    AuthEvent.TOKEN_REFRESHED,
    AuthEvent.USER_UPDATED,
}


class SessionState(str, Enum):
    INITIALIZING = "initializing"
    SYNCING = "syncing"
    READY = "ready"


class AuthSessionSync:
    """
    Estado de autenticação da aplicação.

    initializing -> syncing -> ready(user) | ready(anônimo). Erros de identidade
    forçam sign-out e terminam em ready(anônimo); nada escapa de mount().
    Depois de unmount() ou de um sign-out os resultados pendentes são descartados.
    """

    def __init__(
        self,
        identity: IdentityClient,
        http_client: httpx.AsyncClient,
        sync_url: Optional[str] = None
    ):
        self._identity = identity
        self._http = http_client
        self._sync_url = sync_url or settings.SYNC_USER_PATH

        self.user: Optional[Dict[str, Any]] = None
        self.state = SessionState.INITIALIZING

        self._mounted = False
        self._subscription = None
        self._inflight: Dict[str, asyncio.Task] = {}
        self._tasks: Set[asyncio.Task] = set()
        # incrementada a cada sign-out; sincronizações de gerações anteriores são descartadas
        self._generation = 0
        self._listeners: List[Callable[["AuthSessionSync"], None]] = []

    @property
    def loading(self) -> bool:
        return self.state != SessionState.READY

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def mounted(self) -> bool:
        return self._mounted

    def add_listener(self, listener: Callable[["AuthSessionSync"], None]):
        self._listeners.append(listener)

    def _update(self, state: SessionState, user: Optional[Dict[str, Any]] = None, keep_user: bool = False):
        if not self._mounted:
            logger.debug(f"Atualização descartada após unmount: {state.value}")
            return
        self.state = state
        if not keep_user:
            self.user = user
        for listener in list(self._listeners):
            listener(self)

    def _set_anonymous(self):
        self._generation += 1
        self._inflight.clear()
        self._update(SessionState.READY, None)

    def _is_stale(self, generation: int) -> bool:
        if generation != self._generation:
            logger.debug("Resultado de sincronização descartado após sign-out")
            return True
        return False

    async def _force_sign_out(self):
        try:
            await self._identity.sign_out()
        except AuthError as e:
            logger.warning(f"Falha no sign-out forçado: {e}")

    # ============================================
    # CICLO DE VIDA
    # ============================================
    async def mount(self):
        """Assina os eventos de auth e resolve o usuário atual"""
        self._mounted = True
        self._subscription = self._identity.on_auth_state_change(self._on_auth_event)

        try:
            external = await self._identity.get_user()
        except AuthError as e:
            if is_refresh_token_error(e):
                logger.warning(f"Refresh token inválido, encerrando sessão: {e}")
                await self._force_sign_out()
            else:
                logger.error(f"Erro ao obter usuário do provedor: {e}")
            self._set_anonymous()
            return

        if external is None:
            self._set_anonymous()
            return

        await self.sync(external)

    def unmount(self):
        self._mounted = False
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    async def wait_idle(self):
        """Aguarda todas as sincronizações em andamento"""
        while True:
            pending = [task for task in self._tasks if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending)

    async def sign_out(self):
        """Sign-out remoto; a falha é repassada a quem chamou"""
        await self._identity.sign_out()
        self._set_anonymous()

    # ============================================
    # SINCRONIZAÇÃO
    # ============================================
    def sync(self, external: ExternalUser) -> "asyncio.Future":
        """Uma única sincronização em voo por usuário externo"""
        task = self._inflight.get(external.id)
        if task is None or task.done():
            task = asyncio.ensure_future(self._sync(external))
            self._inflight[external.id] = task
            self._tasks.add(task)

            def _release(done: asyncio.Task, key: str = external.id):
                self._tasks.discard(done)
                if self._inflight.get(key) is done:
                    del self._inflight[key]

            task.add_done_callback(_release)
        return task

    async def _sync(self, external: ExternalUser):
        generation = self._generation
        self._update(SessionState.SYNCING, keep_user=True)

        try:
            session = await self._identity.get_session()
        except AuthError as e:
            logger.warning(f"Erro ao obter sessão: {e}")
            session = None

        if self._is_stale(generation):
            return

        if session is None or not session.access_token:
            await self._force_sign_out()
            self._set_anonymous()
            return

        try:
            response = await self._http.post(
                self._sync_url,
                json={"user": external.model_dump(mode="json")},
                headers={"Authorization": f"Bearer {session.access_token}"}
            )
        except httpx.HTTPError as e:
            logger.error(f"Erro de rede ao sincronizar usuário {external.id}: {e}")
            if not self._is_stale(generation):
                self._set_anonymous()
            return

        if self._is_stale(generation):
            return

        if response.status_code == 401:
            logger.warning(f"Sync recusado (401) para {external.id}, encerrando sessão")
            await self._force_sign_out()
            self._set_anonymous()
            return

        if not response.is_success:
            logger.error(f"Falha ao sincronizar usuário {external.id}: {response.status_code} {response.text}")
            self._set_anonymous()
            return

        try:
            payload = SyncUserResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error(f"Resposta inválida do sync-user: {e}")
            self._set_anonymous()
            return

        self._update(SessionState.READY, payload.user)

    def _on_auth_event(self, event: AuthEvent, session: Optional[ExternalSession]):
        if not self._mounted:
            return

        if event == AuthEvent.SIGNED_OUT or session is None or session.user is None:
            self._set_anonymous()
            return

        if event in SYNC_EVENTS:
            self.sync(session.user)
