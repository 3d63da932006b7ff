import asyncio

from estoque.core import settings
from estoque.models import User, UserRole
from estoque.schemas import ExternalUser


def sync_body(external: ExternalUser):
    return {"user": external.model_dump(mode="json")}


def test_sync_requires_token(harness):
    async def scenario():
        async with harness() as api:
            return await api.client.post("/api/auth/sync-user", json={"user": {"id": "x"}})

    response = asyncio.run(scenario())

    assert response.status_code == 401
    assert response.json()["detail"] == "No authorization token provided"


def test_sync_rejects_unknown_token(harness):
    async def scenario():
        async with harness() as api:
            return await api.client.post(
                "/api/auth/sync-user",
                json={"user": {"id": "x"}},
                headers={"Authorization": "Bearer nope"},
            )

    response = asyncio.run(scenario())

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid token"


def test_sync_rejects_token_of_another_user(harness):
    async def scenario():
        async with harness() as api:
            api.provider.register("t-ana", ExternalUser(id="ext-ana", email="ana@teste.com"))
            other = ExternalUser(id="ext-bia", email="bia@teste.com")
            return await api.client.post(
                "/api/auth/sync-user", json=sync_body(other), headers={"Authorization": "Bearer t-ana"}
            )

    response = asyncio.run(scenario())

    assert response.status_code == 401
    assert response.json()["detail"] == "Token does not match user"


def test_sync_creates_operator_in_assigned_company_and_is_idempotent(harness):
    async def scenario():
        async with harness() as api:
            company = await api.seed_company()
            external = ExternalUser(
                id="ext-ana",
                email="ana@teste.com",
                user_metadata={"name": "Ana", "company_id": 999},
                app_metadata={"company_id": company.id},
            )
            api.provider.register("t-ana", external)
            headers = {"Authorization": "Bearer t-ana"}

            first = await api.client.post("/api/auth/sync-user", json=sync_body(external), headers=headers)
            second = await api.client.post("/api/auth/sync-user", json=sync_body(external), headers=headers)
            me = await api.client.get("/api/auth/me", headers=headers)
            return company, first, second, me

    company, first, second, me = asyncio.run(scenario())

    assert first.status_code == 200
    user = first.json()["user"]
    assert user["companyId"] == company.id
    assert user["role"] == "operador"
    assert user["name"] == "Ana"
    assert user["supabaseUserId"] == "ext-ana"
    assert "password" not in user
    assert second.json()["user"]["id"] == user["id"]
    assert me.json()["company"]["id"] == company.id


def test_sync_master_email_has_no_company(harness):
    async def scenario():
        async with harness() as api:
            external = ExternalUser(id="ext-master", email=settings.MASTER_EMAIL.upper())
            api.provider.register("t-master", external)
            return await api.client.post(
                "/api/auth/sync-user", json=sync_body(external), headers={"Authorization": "Bearer t-master"}
            )

    response = asyncio.run(scenario())

    assert response.status_code == 200
    assert response.json()["user"]["role"] == "MASTER"
    assert response.json()["user"]["companyId"] is None


def test_sync_links_existing_user_by_email(harness):
    async def scenario():
        async with harness() as api:
            company = await api.seed_company()
            user, _ = await api.seed_user(company, UserRole.GERENTE, email="gerente@teste.com", supabase_user_id=None)
            external = ExternalUser(id="ext-gerente", email="Gerente@teste.com")
            api.provider.register("t-g", external)
            response = await api.client.post(
                "/api/auth/sync-user", json=sync_body(external), headers={"Authorization": "Bearer t-g"}
            )
            return user, response

    user, response = asyncio.run(scenario())

    assert response.status_code == 200
    assert response.json()["user"]["id"] == user.id
    assert response.json()["user"]["role"] == "gerente"
    assert response.json()["user"]["supabaseUserId"] == "ext-gerente"


def test_sync_ignores_email_and_metadata_sent_in_body(harness):
    async def scenario():
        async with harness() as api:
            victim = await api.seed_company()
            manager, _ = await api.seed_user(victim, UserRole.GERENTE, email="gerente@teste.com", supabase_user_id=None)
            api.provider.register("t-eve", ExternalUser(id="ext-eve", email="eve@evil.com"))
            headers = {"Authorization": "Bearer t-eve"}

            forged = [
                ExternalUser(id="ext-eve", email=settings.MASTER_EMAIL),
                ExternalUser(id="ext-eve", email="eve@evil.com", app_metadata={"company_id": victim.id}),
                ExternalUser(id="ext-eve", email="gerente@teste.com"),
            ]
            responses = [
                await api.client.post("/api/auth/sync-user", json=sync_body(external), headers=headers)
                for external in forged
            ]
            products = await api.client.get("/api/products", headers=headers)
            async with api.session_factory() as db:
                stored = await db.get(User, manager.id)
            return responses, products, stored

    responses, products, stored = asyncio.run(scenario())

    for response in responses:
        assert response.status_code == 400
        assert response.json()["detail"] == "No company assigned to user"
    assert products.status_code == 401
    assert stored.supabase_user_id is None


def test_sync_uses_company_from_verified_identity(harness):
    async def scenario():
        async with harness() as api:
            company = await api.seed_company()
            other = await api.seed_company()
            api.provider.register(
                "t-ana", ExternalUser(id="ext-ana", email="ana@teste.com", app_metadata={"company_id": company.id})
            )
            body = ExternalUser(id="ext-ana", email="ana@teste.com", app_metadata={"company_id": other.id})
            response = await api.client.post(
                "/api/auth/sync-user", json=sync_body(body), headers={"Authorization": "Bearer t-ana"}
            )
            return company, response

    company, response = asyncio.run(scenario())

    assert response.status_code == 200
    assert response.json()["user"]["companyId"] == company.id


def test_sync_without_company_fails(harness):
    async def scenario():
        async with harness() as api:
            external = ExternalUser(id="ext-x", email="x@teste.com")
            api.provider.register("t-x", external)
            return await api.client.post(
                "/api/auth/sync-user", json=sync_body(external), headers={"Authorization": "Bearer t-x"}
            )

    response = asyncio.run(scenario())

    assert response.status_code == 400
    assert response.json()["detail"] == "No company assigned to user"


def test_sync_respects_company_user_limit(harness):
    async def scenario():
        async with harness() as api:
            company = await api.seed_company(max_users=1)
            await api.seed_user(company)
            external = ExternalUser(id="ext-y", email="y@teste.com", app_metadata={"company_id": company.id})
            api.provider.register("t-y", external)
            return await api.client.post(
                "/api/auth/sync-user", json=sync_body(external), headers={"Authorization": "Bearer t-y"}
            )

    response = asyncio.run(scenario())

    assert response.status_code == 400
    assert "limit" in response.json()["detail"]


def test_disabled_account_is_forbidden(harness):
    async def scenario():
        async with harness() as api:
            company = await api.seed_company()
            _, headers = await api.seed_user(company, is_active=False)
            return await api.client.get("/api/auth/me", headers=headers)

    response = asyncio.run(scenario())

    assert response.status_code == 403


def test_signup_creates_company_and_admin(harness):
    payload = {
        "email": "dono@bistro.com",
        "password": "segredo123",
        "name": "Dono do Bistrô",
        "companyData": {"name": "Bistrô", "email": "contato@bistro.com", "cnpj": "12.345.678/0001-90"},
    }

    async def scenario():
        async with harness() as api:
            first = await api.client.post("/api/auth/signup", json=payload)
            again = await api.client.post("/api/auth/signup", json=payload)
            return api.provider, first, again

    provider, first, again = asyncio.run(scenario())

    assert first.status_code == 201
    body = first.json()
    assert body["user"]["role"] == "admin"
    assert body["user"]["companyId"] == body["company"]["id"]
    assert body["company"]["cnpj"] == "12.345.678/0001-90"
    assert body["user"]["supabaseUserId"] == provider.created[0].id
    assert again.status_code == 400
    assert len(provider.created) == 1
