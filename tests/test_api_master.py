import asyncio

import bcrypt

from estoque.models import User, UserRole


def test_master_routes_require_master(harness):
    async def scenario():
        async with harness() as api:
            company = await api.seed_company()
            _, admin = await api.seed_user(company, UserRole.ADMIN)
            return await api.client.get("/api/master/companies", headers=admin)

    assert asyncio.run(scenario()).status_code == 403


def test_master_manages_companies(harness):
    async def scenario():
        async with harness() as api:
            _, master = await api.seed_user(None, UserRole.MASTER)
            created = await api.client.post(
                "/api/master/companies",
                json={"name": "Pizzaria", "email": "pizza@teste.com", "plan": "premium", "maxUsers": 5},
                headers=master,
            )
            duplicate = await api.client.post(
                "/api/master/companies", json={"name": "Outra", "email": "pizza@teste.com"}, headers=master
            )
            updated = await api.client.put(
                f"/api/master/companies/{created.json()['id']}", json={"isActive": False}, headers=master
            )
            missing = await api.client.put("/api/master/companies/999", json={"name": "X"}, headers=master)
            listing = await api.client.get("/api/master/companies", headers=master)
            return created, duplicate, updated, missing, listing

    created, duplicate, updated, missing, listing = asyncio.run(scenario())

    assert created.status_code == 201
    assert created.json()["plan"] == "premium"
    assert duplicate.status_code == 400
    assert updated.json()["isActive"] is False
    assert missing.status_code == 404
    assert listing.json()[0]["userCount"] == 0


def test_master_assigns_user_to_company(harness):
    async def scenario():
        async with harness() as api:
            _, master = await api.seed_user(None, UserRole.MASTER)
            a = await api.seed_company()
            b = await api.seed_company()
            user, _ = await api.seed_user(a, UserRole.OPERADOR)

            moved = await api.client.put(
                f"/api/master/users/{user.id}/assign-company",
                json={"companyId": b.id, "role": "gerente"},
                headers=master,
            )
            as_master = await api.client.put(
                f"/api/master/users/{user.id}/assign-company",
                json={"companyId": b.id, "role": "MASTER"},
                headers=master,
            )
            unknown = await api.client.put(
                "/api/master/users/999/assign-company", json={"companyId": b.id}, headers=master
            )
            users = await api.client.get("/api/master/users", headers=master)
            return b, moved, as_master, unknown, users

    b, moved, as_master, unknown, users = asyncio.run(scenario())

    assert moved.status_code == 200
    assert moved.json()["companyId"] == b.id
    assert moved.json()["role"] == "gerente"
    assert as_master.status_code == 400
    assert unknown.status_code == 404
    assert len(users.json()) == 2


def test_admin_creates_company_users(harness):
    async def scenario():
        async with harness() as api:
            company = await api.seed_company()
            _, admin = await api.seed_user(company, UserRole.ADMIN)
            created = await api.client.post(
                "/api/users",
                json={"email": "novo@teste.com", "name": "Novo", "password": "segredo123", "role": "gerente", "companyId": 42},
                headers=admin,
            )
            listing = await api.client.get("/api/users", headers=admin)
            async with api.session_factory() as db:
                stored = await db.get(User, created.json()["id"])
            return company, created, listing, stored

    company, created, listing, stored = asyncio.run(scenario())

    assert created.status_code == 201
    assert created.json()["companyId"] == company.id
    assert created.json()["role"] == "gerente"
    assert "password" not in created.json()
    assert bcrypt.checkpw(b"segredo123", stored.password.encode())
    assert len(listing.json()) == 2


def test_user_creation_rules(harness):
    async def scenario():
        async with harness() as api:
            company = await api.seed_company(max_users=2)
            _, admin = await api.seed_user(company, UserRole.ADMIN)
            _, manager = await api.seed_user(company, UserRole.GERENTE)
            _, operator = await api.seed_user(company, UserRole.OPERADOR, is_active=False)

            by_operator_role = await api.client.post(
                "/api/users", json={"email": "a@teste.com", "name": "Ana"}, headers=operator
            )
            master = await api.client.post(
                "/api/users", json={"email": "m@teste.com", "name": "Mestre", "role": "MASTER"}, headers=admin
            )
            manager_admin = await api.client.post(
                "/api/users", json={"email": "b@teste.com", "name": "Bia", "role": "admin"}, headers=manager
            )
            over_limit = await api.client.post(
                "/api/users", json={"email": "c@teste.com", "name": "Caio"}, headers=admin
            )
            return by_operator_role, master, manager_admin, over_limit

    by_operator_role, master, manager_admin, over_limit = asyncio.run(scenario())

    assert by_operator_role.status_code == 403
    assert master.status_code == 403
    assert manager_admin.status_code == 403
    assert over_limit.status_code == 400
