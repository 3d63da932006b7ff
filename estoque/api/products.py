"""
Estoque - Products API
"""
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from estoque.database import get_db
from estoque.models import User
from estoque.schemas import InsertProduct, UpdateProduct
from estoque.services import storage
from estoque.api.deps import get_company_user, with_company

router = APIRouter(prefix="/products", tags=["Products"])


@router.get("")
async def list_products(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_company_user)
):
    """Produtos ativos da empresa com fornecedor e categoria"""
    products = await storage.list_products(db, user.company_id)
    return [p.to_dict(include_details=True) for p in products]


@router.get("/low-stock")
async def list_low_stock(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_company_user)
):
    """Produtos com estoque atual <= mínimo"""
    products = await storage.list_low_stock_products(db, user.company_id)
    return [p.to_dict(include_details=True) for p in products]


@router.get("/{product_id}")
async def get_product(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_company_user)
):
    product = await storage.get_product(db, product_id, user.company_id)
    return product.to_dict(include_details=True)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_company_user)
):
    data = InsertProduct.model_validate(with_company(payload, user.company_id))
    product = await storage.create_product(db, data.model_dump(exclude_unset=True))
    return product.to_dict()


@router.put("/{product_id}")
async def update_product(
    product_id: int,
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_company_user)
):
    data = UpdateProduct.model_validate(payload)
    product = await storage.update_product(db, product_id, data.model_dump(exclude_unset=True), user.company_id)
    return product.to_dict()


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_company_user)
):
    """Desativa o produto (soft delete)"""
    await storage.deactivate_product(db, product_id, user.company_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
