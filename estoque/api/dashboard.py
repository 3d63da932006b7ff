"""
Estoque - Dashboard API
Estatísticas da empresa e lista de compras
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from estoque.database import get_db
from estoque.models import User
from estoque.services import storage
from estoque.services.shopping_list import build_shopping_list
from estoque.api.deps import get_company_user

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])
whatsapp_router = APIRouter(prefix="/whatsapp", tags=["WhatsApp"])


@router.get("/stats")
async def get_dashboard_stats(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_company_user)
):
    """Contadores do painel da empresa"""
    return await storage.get_dashboard_stats(db, user.company_id)


@whatsapp_router.get("/shopping-list")
async def get_shopping_list(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_company_user)
):
    """Produtos com estoque baixo agrupados por fornecedor, prontos para envio"""
    products = await storage.list_low_stock_products(db, user.company_id)
    return build_shopping_list(products)
