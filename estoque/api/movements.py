"""
Estoque - Stock Movements API
Razão de estoque: apenas leitura e inserção
"""
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from estoque.database import get_db
from estoque.models import User
from estoque.schemas import InsertStockMovement
from estoque.services import storage
from estoque.api.deps import get_company_user, with_company

router = APIRouter(prefix="/movements", tags=["Stock Movements"])


@router.get("")
async def list_movements(
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_company_user)
):
    movements = await storage.list_stock_movements(db, user.company_id, limit)
    return [m.to_dict(include_details=True) for m in movements]


@router.get("/product/{product_id}")
async def list_product_movements(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_company_user)
):
    movements = await storage.list_stock_movements_by_product(db, product_id, user.company_id)
    return [m.to_dict(include_details=True) for m in movements]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_movement(
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_company_user)
):
    """Registra a movimentação e aplica no estoque do produto"""
    data = InsertStockMovement.model_validate(with_company(payload, user.company_id, userId=user.id))
    movement = await storage.create_stock_movement(db, data.model_dump(exclude_unset=True))
    return movement.to_dict()
