"""
Estoque - Suppliers & Categories API
"""
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from estoque.database import get_db
from estoque.models import User
from estoque.schemas import InsertSupplier, UpdateSupplier, InsertCategory, UpdateCategory
from estoque.services import storage
from estoque.api.deps import get_company_user, with_company

suppliers_router = APIRouter(prefix="/suppliers", tags=["Suppliers"])
categories_router = APIRouter(prefix="/categories", tags=["Categories"])


# ============================================
# FORNECEDORES
# ============================================
@suppliers_router.get("")
async def list_suppliers(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_company_user)
):
    suppliers = await storage.list_suppliers(db, user.company_id)
    return [s.to_dict() for s in suppliers]


@suppliers_router.post("", status_code=status.HTTP_201_CREATED)
async def create_supplier(
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_company_user)
):
    data = InsertSupplier.model_validate(with_company(payload, user.company_id))
    supplier = await storage.create_supplier(db, data.model_dump(exclude_unset=True))
    return supplier.to_dict()


@suppliers_router.put("/{supplier_id}")
async def update_supplier(
    supplier_id: int,
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_company_user)
):
    data = UpdateSupplier.model_validate(payload)
    supplier = await storage.update_supplier(db, supplier_id, data.model_dump(exclude_unset=True), user.company_id)
    return supplier.to_dict()


@suppliers_router.delete("/{supplier_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_supplier(
    supplier_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_company_user)
):
    await storage.delete_supplier(db, supplier_id, user.company_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================
# CATEGORIAS
# ============================================
@categories_router.get("")
async def list_categories(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_company_user)
):
    categories = await storage.list_categories(db, user.company_id)
    return [c.to_dict() for c in categories]


@categories_router.post("", status_code=status.HTTP_201_CREATED)
async def create_category(
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_company_user)
):
    data = InsertCategory.model_validate(with_company(payload, user.company_id))
    category = await storage.create_category(db, data.model_dump(exclude_unset=True))
    return category.to_dict()


@categories_router.put("/{category_id}")
async def update_category(
    category_id: int,
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_company_user)
):
    data = UpdateCategory.model_validate(payload)
    category = await storage.update_category(db, category_id, data.model_dump(exclude_unset=True), user.company_id)
    return category.to_dict()


@categories_router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_company_user)
):
    await storage.delete_category(db, category_id, user.company_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
