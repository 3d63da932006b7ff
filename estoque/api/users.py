"""
Estoque - Users API
Usuários da própria empresa
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from estoque.core import get_password_hash
from estoque.database import get_db
from estoque.models import User, UserRole
from estoque.schemas import InsertUser, UserCreateRequest
from estoque.services import storage
from estoque.api.deps import get_company_user, get_company_manager

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("")
async def list_users(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_company_user)
):
    users = await storage.list_users_by_company(db, user.company_id)
    return [u.to_dict() for u in users]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    body: UserCreateRequest,
    db: AsyncSession = Depends(get_db),
    manager: User = Depends(get_company_manager)
):
    """
    Cria usuário na empresa do admin/gerente.
    Gerentes só criam operadores; ninguém cria MASTER por aqui.
    """
    if body.role == UserRole.MASTER:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="MASTER users cannot be created by companies"
        )

    if manager.role == UserRole.GERENTE and body.role != UserRole.OPERADOR:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Managers can only create operators"
        )

    company = await storage.get_company(db, manager.company_id)
    await storage.ensure_user_capacity(db, company)

    data = InsertUser.model_validate({
        "email": body.email,
        "name": body.name,
        "password": get_password_hash(body.password) if body.password else None,
        "companyId": company.id,
        "role": body.role,
        "permissions": body.permissions,
    })
    user = await storage.create_user(db, data.model_dump(exclude_unset=True))
    return user.to_dict()
