"""
Fixtures compartilhadas: banco SQLite em memória, provedor de identidade falso
e fakes do SDK Supabase para o lado do cliente.
"""
from contextlib import asynccontextmanager
from typing import Dict, List, Optional

import httpx
import pytest

from estoque.api.auth import limiter
from estoque.database import build_engine, build_session_factory, create_tables, get_db, session_dependency
from estoque.main import app
from estoque.models import Company, User, UserRole
from estoque.schemas import AuthEvent, ExternalSession, ExternalUser
from estoque.services.identity_provider import get_identity_provider

limiter.enabled = False


# ============================================
# SERVIDOR
# ============================================
class FakeIdentityProvider:
    """Token -> usuário externo, sem rede"""

    def __init__(self):
        self.tokens: Dict[str, ExternalUser] = {}
        self.created: List[ExternalUser] = []
        self.deleted: List[str] = []

    def register(self, token: str, external: ExternalUser):
        self.tokens[token] = external

    async def get_user(self, token: str) -> Optional[ExternalUser]:
        return self.tokens.get(token)

    async def create_user(self, email: str, password: str, metadata: dict) -> ExternalUser:
        external = ExternalUser(id=f"ext-new-{len(self.created) + 1}", email=email, user_metadata=metadata)
        self.created.append(external)
        return external

    async def delete_user(self, user_id: str):
        self.deleted.append(user_id)


class ApiHarness:
    def __init__(self, session_factory, provider: FakeIdentityProvider, client: httpx.AsyncClient):
        self.session_factory = session_factory
        self.provider = provider
        self.client = client
        self._seq = 0

    def _next(self) -> int:
        self._seq += 1
        return self._seq

    async def seed_company(self, **overrides) -> Company:
        n = self._next()
        data = {"name": f"Restaurante {n}", "email": f"empresa{n}@teste.com"}
        data.update(overrides)
        async with self.session_factory() as db:
            company = Company(**data)
            db.add(company)
            await db.commit()
            return company

    async def seed_user(self, company: Optional[Company], role: UserRole = UserRole.ADMIN, **overrides):
        """Cria o usuário local já vinculado e devolve (user, headers)"""
        n = self._next()
        token = f"token-{n}"
        data = {
            "email": f"usuario{n}@teste.com",
            "name": f"Usuário {n}",
            "role": role,
            "company_id": company.id if company else None,
            "supabase_user_id": f"ext-{n}",
        }
        data.update(overrides)
        async with self.session_factory() as db:
            user = User(**data)
            db.add(user)
            await db.commit()

        if user.supabase_user_id:
            self.provider.register(token, ExternalUser(id=user.supabase_user_id, email=user.email))
        return user, {"Authorization": f"Bearer {token}"}


@asynccontextmanager
async def api_harness():
    engine = build_engine("sqlite+aiosqlite://", echo=False)
    await create_tables(engine)
    factory = build_session_factory(engine)

    provider = FakeIdentityProvider()
    app.dependency_overrides[get_db] = session_dependency(factory)
    app.dependency_overrides[get_identity_provider] = lambda: provider

    try:
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            yield ApiHarness(factory, provider, client)
    finally:
        app.dependency_overrides.clear()
        await engine.dispose()


@pytest.fixture
def harness():
    return api_harness


# ============================================
# CLIENTE
# ============================================
class FakeSubscription:
    def __init__(self, identity: "FakeIdentity", callback):
        self._identity = identity
        self._callback = callback

    def unsubscribe(self):
        if self._callback in self._identity.callbacks:
            self._identity.callbacks.remove(self._callback)


class FakeIdentity:
    """Mesma interface do IdentityClient, com falhas configuráveis"""

    def __init__(self, user: Optional[ExternalUser] = None, token: Optional[str] = "T1"):
        self.user = user
        self.token = token
        self.get_user_error: Optional[Exception] = None
        self.get_session_error: Optional[Exception] = None
        self.sign_out_error: Optional[Exception] = None
        self.sign_out_calls = 0
        self.callbacks = []

    async def get_user(self) -> Optional[ExternalUser]:
        if self.get_user_error:
            raise self.get_user_error
        return self.user

    async def get_session(self) -> Optional[ExternalSession]:
        if self.get_session_error:
            raise self.get_session_error
        if self.token is None:
            return None
        return ExternalSession(access_token=self.token, user=self.user)

    async def sign_out(self):
        self.sign_out_calls += 1
        if self.sign_out_error:
            raise self.sign_out_error
        self.emit(AuthEvent.SIGNED_OUT, None)

    def on_auth_state_change(self, callback):
        self.callbacks.append(callback)
        return FakeSubscription(self, callback)

    def emit(self, event: AuthEvent, session: Optional[ExternalSession]):
        for callback in list(self.callbacks):
            callback(event, session)


@pytest.fixture
def external_user():
    return ExternalUser(id="ext-1", email="ana@restaurante.com", user_metadata={"name": "Ana"})


@pytest.fixture
def identity(external_user):
    return FakeIdentity(user=external_user)
