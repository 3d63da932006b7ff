"""
Estoque - Insert/Update validators
Um validador por tabela, sem os campos atribuídos pelo servidor
"""
from estoque.models import (
    Company,
    SuperAdmin,
    User,
    Supplier,
    Category,
    Product,
    StockMovement,
    ChecklistTemplate,
    ChecklistItem,
    ChecklistExecution,
    ChecklistExecutionItem,
)
from .base import build_insert_schema, build_update_schema

InsertCompany = build_insert_schema(Company)
InsertSuperAdmin = build_insert_schema(SuperAdmin)
InsertUser = build_insert_schema(User)
InsertSupplier = build_insert_schema(Supplier)
InsertCategory = build_insert_schema(Category)
InsertProduct = build_insert_schema(Product, omit=("id", "created_at", "updated_at"))
InsertStockMovement = build_insert_schema(StockMovement)
InsertChecklistTemplate = build_insert_schema(ChecklistTemplate)
InsertChecklistItem = build_insert_schema(ChecklistItem, omit=("id",))
InsertChecklistExecution = build_insert_schema(ChecklistExecution, omit=("id", "started_at"))
InsertChecklistExecutionItem = build_insert_schema(ChecklistExecutionItem, omit=("id",))

# Updates parciais; company_id nunca muda pela API
UpdateCompany = build_update_schema(Company)
UpdateSupplier = build_update_schema(Supplier, omit=("id", "created_at", "company_id"))
UpdateCategory = build_update_schema(Category, omit=("id", "created_at", "company_id"))
UpdateProduct = build_update_schema(Product, omit=("id", "created_at", "updated_at", "company_id"))
UpdateChecklistItem = build_update_schema(ChecklistItem, omit=("id", "template_id"))
