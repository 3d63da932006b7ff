from .auth import router as auth_router
from .products import router as products_router
from .movements import router as movements_router
from .catalog import suppliers_router, categories_router
from .checklists import router as checklists_router
from .dashboard import router as dashboard_router, whatsapp_router
from .users import router as users_router
from .master import router as master_router

__all__ = [
    "auth_router",
    "products_router",
    "movements_router",
    "suppliers_router",
    "categories_router",
    "checklists_router",
    "dashboard_router",
    "whatsapp_router",
    "users_router",
    "master_router"
]
