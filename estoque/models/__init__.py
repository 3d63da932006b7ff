from .company import Company, CompanyPlan
from .user import User, SuperAdmin, UserRole, COMPANY_MANAGER_ROLES
from .catalog import Supplier, Category
from .product import Product, StockMovement, MovementType, WeekDay
from .checklist import (
    ChecklistType,
    ChecklistTemplate,
    ChecklistItem,
    ChecklistExecution,
    ChecklistExecutionItem,
)

__all__ = [
    "Company",
    "CompanyPlan",
    "User",
    "SuperAdmin",
    "UserRole",
    "COMPANY_MANAGER_ROLES",
    "Supplier",
    "Category",
    "Product",
    "StockMovement",
    "MovementType",
    "WeekDay",
    "ChecklistType",
    "ChecklistTemplate",
    "ChecklistItem",
    "ChecklistExecution",
    "ChecklistExecutionItem",
]
