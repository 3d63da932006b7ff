"""
Estoque - Master API
Administração da plataforma: empresas e usuários de todos os tenants
"""
import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from estoque.database import get_db
from estoque.models import User, UserRole
from estoque.schemas import InsertCompany, UpdateCompany, AssignCompanyRequest
from estoque.services import storage
from estoque.api.deps import get_master_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/master", tags=["Master"])


@router.get("/companies")
async def list_companies(
    db: AsyncSession = Depends(get_db),
    master: User = Depends(get_master_user)
):
    companies = await storage.list_companies(db)
    result = []
    for company in companies:
        data = company.to_dict()
        data["userCount"] = await storage.count_active_users(db, company.id)
        result.append(data)
    return result


@router.post("/companies", status_code=status.HTTP_201_CREATED)
async def create_company(
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    master: User = Depends(get_master_user)
):
    data = InsertCompany.model_validate(payload)
    company = await storage.create_company(db, data.model_dump(exclude_unset=True))
    logger.info(f"Empresa {company.id} criada por {master.email}")
    return company.to_dict()


@router.put("/companies/{company_id}")
async def update_company(
    company_id: int,
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    master: User = Depends(get_master_user)
):
    data = UpdateCompany.model_validate(payload)
    company = await storage.update_company(db, company_id, data.model_dump(exclude_unset=True))
    return company.to_dict()


@router.get("/users")
async def list_users(
    db: AsyncSession = Depends(get_db),
    master: User = Depends(get_master_user)
):
    users = await storage.list_all_users(db)
    return [u.to_dict() for u in users]


@router.put("/users/{user_id}/assign-company")
async def assign_user_to_company(
    user_id: int,
    body: AssignCompanyRequest,
    db: AsyncSession = Depends(get_db),
    master: User = Depends(get_master_user)
):
    """Move o usuário para uma empresa com o papel informado"""
    if body.role == UserRole.MASTER:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="MASTER users are not linked to companies"
        )

    user = await storage.get_user(db, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    company = await storage.get_company(db, body.company_id)
    if not company:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Company not found"
        )

    if user.company_id != company.id:
        await storage.ensure_user_capacity(db, company)

    user.company_id = company.id
    user.role = body.role
    await db.flush()

    logger.info(f"Usuário {user.email} atribuído à empresa {company.id} como {body.role.value}")
    return user.to_dict()
