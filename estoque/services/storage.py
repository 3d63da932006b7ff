"""
Estoque - Storage
Acesso a dados isolado por empresa (company_id em toda consulta)
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional, Type

from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from estoque.models import (
    Company,
    User,
    Supplier,
    Category,
    Product,
    StockMovement,
    MovementType,
    ChecklistTemplate,
    ChecklistItem,
    ChecklistExecution,
    ChecklistExecutionItem,
)

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Regra de negócio violada na camada de dados"""


class NotFoundError(StorageError):
    """Registro inexistente ou de outra empresa"""


async def _get_scoped(db: AsyncSession, model: Type, entity_id: int, company_id: int, label: str):
    result = await db.execute(
        select(model).where(model.id == entity_id, model.company_id == company_id)
    )
    entity = result.scalar_one_or_none()
    if not entity:
        raise NotFoundError(f"{label} not found")
    return entity


async def _save(db: AsyncSession, entity):
    db.add(entity)
    await db.flush()
    await db.refresh(entity)
    return entity


def _apply(entity, data: dict):
    for field, value in data.items():
        setattr(entity, field, value)


# ============================================
# EMPRESAS
# ============================================
async def get_company(db: AsyncSession, company_id: int) -> Optional[Company]:
    result = await db.execute(select(Company).where(Company.id == company_id))
    return result.scalar_one_or_none()


async def get_company_by_email(db: AsyncSession, email: str) -> Optional[Company]:
    result = await db.execute(select(Company).where(Company.email == email))
    return result.scalar_one_or_none()


async def list_companies(db: AsyncSession) -> List[Company]:
    result = await db.execute(select(Company).order_by(Company.name))
    return list(result.scalars().all())


async def create_company(db: AsyncSession, data: dict) -> Company:
    if await get_company_by_email(db, data["email"]):
        raise StorageError("Email already registered")
    return await _save(db, Company(**data))


async def update_company(db: AsyncSession, company_id: int, data: dict) -> Company:
    company = await get_company(db, company_id)
    if not company:
        raise NotFoundError("Company not found")

    if "email" in data and data["email"] != company.email:
        if await get_company_by_email(db, data["email"]):
            raise StorageError("Email already in use")

    _apply(company, data)
    await db.flush()
    return company


# ============================================
# USUÁRIOS
# ============================================
async def get_user(db: AsyncSession, user_id: int) -> Optional[User]:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()


async def get_user_by_supabase_id(db: AsyncSession, supabase_user_id: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.supabase_user_id == supabase_user_id))
    return result.scalar_one_or_none()


async def create_user(db: AsyncSession, data: dict) -> User:
    if await get_user_by_email(db, data["email"]):
        raise StorageError("Email already registered")
    return await _save(db, User(**data))


async def list_users_by_company(db: AsyncSession, company_id: int) -> List[User]:
    result = await db.execute(
        select(User).where(User.company_id == company_id).order_by(User.name)
    )
    return list(result.scalars().all())


async def list_all_users(db: AsyncSession) -> List[User]:
    result = await db.execute(select(User).order_by(User.name))
    return list(result.scalars().all())


async def count_active_users(db: AsyncSession, company_id: int) -> int:
    result = await db.execute(
        select(func.count(User.id)).where(User.company_id == company_id, User.is_active == True)  # noqa: E712
    )
    return result.scalar() or 0


async def ensure_user_capacity(db: AsyncSession, company: Company):
    """Respeita o teto de usuários do plano da empresa"""
    if company.max_users is None:
        return
    if await count_active_users(db, company.id) >= company.max_users:
        raise StorageError(f"Company user limit reached ({company.max_users})")


# ============================================
# FORNECEDORES / CATEGORIAS
# ============================================
async def list_suppliers(db: AsyncSession, company_id: int) -> List[Supplier]:
    result = await db.execute(
        select(Supplier).where(Supplier.company_id == company_id).order_by(Supplier.name)
    )
    return list(result.scalars().all())


async def get_supplier(db: AsyncSession, supplier_id: int, company_id: int) -> Supplier:
    return await _get_scoped(db, Supplier, supplier_id, company_id, "Supplier")


async def create_supplier(db: AsyncSession, data: dict) -> Supplier:
    return await _save(db, Supplier(**data))


async def update_supplier(db: AsyncSession, supplier_id: int, data: dict, company_id: int) -> Supplier:
    supplier = await get_supplier(db, supplier_id, company_id)
    _apply(supplier, data)
    await db.flush()
    return supplier


async def delete_supplier(db: AsyncSession, supplier_id: int, company_id: int):
    supplier = await get_supplier(db, supplier_id, company_id)
    # Produtos ficam sem fornecedor
    await db.execute(
        update(Product)
        .where(Product.supplier_id == supplier.id, Product.company_id == company_id)
        .values(supplier_id=None)
    )
    await db.delete(supplier)
    await db.flush()


async def list_categories(db: AsyncSession, company_id: int) -> List[Category]:
    result = await db.execute(
        select(Category).where(Category.company_id == company_id).order_by(Category.name)
    )
    return list(result.scalars().all())


async def get_category(db: AsyncSession, category_id: int, company_id: int) -> Category:
    return await _get_scoped(db, Category, category_id, company_id, "Category")


async def create_category(db: AsyncSession, data: dict) -> Category:
    return await _save(db, Category(**data))


async def update_category(db: AsyncSession, category_id: int, data: dict, company_id: int) -> Category:
    category = await get_category(db, category_id, company_id)
    _apply(category, data)
    await db.flush()
    return category


async def delete_category(db: AsyncSession, category_id: int, company_id: int):
    category = await get_category(db, category_id, company_id)
    await db.execute(
        update(Product)
        .where(Product.category_id == category.id, Product.company_id == company_id)
        .values(category_id=None)
    )
    await db.delete(category)
    await db.flush()


# ============================================
# PRODUTOS
# ============================================
async def _check_references(db: AsyncSession, data: dict, company_id: int):
    """Fornecedor e categoria precisam ser da mesma empresa do produto"""
    if data.get("supplier_id") is not None:
        await get_supplier(db, data["supplier_id"], company_id)
    if data.get("category_id") is not None:
        await get_category(db, data["category_id"], company_id)


def _check_stock_levels(current: int, minimum: int, maximum: Optional[int]):
    if current is not None and current < 0:
        raise StorageError("Stock cannot be negative")
    if minimum is not None and minimum < 0:
        raise StorageError("Minimum stock cannot be negative")
    if maximum is not None and minimum is not None and maximum < minimum:
        raise StorageError("Maximum stock must be greater than minimum stock")


async def list_products(db: AsyncSession, company_id: int) -> List[Product]:
    result = await db.execute(
        select(Product)
        .where(Product.company_id == company_id, Product.is_active == True)  # noqa: E712
        .order_by(Product.name)
    )
    return list(result.scalars().all())


async def get_product(db: AsyncSession, product_id: int, company_id: int) -> Product:
    return await _get_scoped(db, Product, product_id, company_id, "Product")


async def create_product(db: AsyncSession, data: dict) -> Product:
    await _check_references(db, data, data["company_id"])
    _check_stock_levels(data.get("current_stock"), data.get("min_stock"), data.get("max_stock"))
    return await _save(db, Product(**data))


async def update_product(db: AsyncSession, product_id: int, data: dict, company_id: int) -> Product:
    product = await get_product(db, product_id, company_id)
    await _check_references(db, data, company_id)
    _check_stock_levels(
        data.get("current_stock", product.current_stock),
        data.get("min_stock", product.min_stock),
        data.get("max_stock", product.max_stock),
    )
    _apply(product, data)
    product.updated_at = datetime.utcnow()
    await db.flush()
    await db.refresh(product)
    return product


async def deactivate_product(db: AsyncSession, product_id: int, company_id: int):
    """Produtos não são apagados: o razão de movimentações aponta para eles"""
    product = await get_product(db, product_id, company_id)
    product.is_active = False
    product.updated_at = datetime.utcnow()
    await db.flush()


async def list_low_stock_products(db: AsyncSession, company_id: int) -> List[Product]:
    result = await db.execute(
        select(Product)
        .where(
            Product.company_id == company_id,
            Product.is_active == True,  # noqa: E712
            Product.current_stock <= Product.min_stock,
        )
        .order_by(Product.current_stock)
    )
    return list(result.scalars().all())


# ============================================
# MOVIMENTAÇÕES (somente inserção)
# ============================================
def next_stock_level(current: int, movement_type: MovementType, quantity: int) -> int:
    """
    Estoque resultante de uma movimentação.

    entrada soma, saida subtrai (nunca abaixo de zero), ajuste define o
    valor contado.
    """
    if movement_type == MovementType.AJUSTE:
        if quantity < 0:
            raise StorageError("Adjusted stock cannot be negative")
        return quantity

    if quantity <= 0:
        raise StorageError("Quantity must be greater than zero")

    if movement_type == MovementType.ENTRADA:
        return current + quantity

    if quantity > current:
        raise StorageError(f"Insufficient stock: {current} available, {quantity} requested")
    return current - quantity


async def list_stock_movements(db: AsyncSession, company_id: int, limit: int = 50) -> List[StockMovement]:
    result = await db.execute(
        select(StockMovement)
        .where(StockMovement.company_id == company_id)
        .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def list_stock_movements_by_product(db: AsyncSession, product_id: int, company_id: int) -> List[StockMovement]:
    result = await db.execute(
        select(StockMovement)
        .where(StockMovement.product_id == product_id, StockMovement.company_id == company_id)
        .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
    )
    return list(result.scalars().all())


async def create_stock_movement(db: AsyncSession, data: dict) -> StockMovement:
    """Registra a movimentação e atualiza o estoque do produto na mesma transação"""
    product = await get_product(db, data["product_id"], data["company_id"])
    if not product.is_active:
        raise StorageError("Product is inactive")

    new_stock = next_stock_level(product.current_stock, data["type"], data["quantity"])

    if data.get("total_price") is None and data.get("unit_price") is not None:
        data["total_price"] = data["unit_price"] * data["quantity"]

    movement = await _save(db, StockMovement(**data))

    logger.info(
        f"Movimentação {movement.type.value} produto={product.id} "
        f"estoque {product.current_stock} -> {new_stock}"
    )
    product.current_stock = new_stock
    product.updated_at = datetime.utcnow()
    await db.flush()

    return movement


# ============================================
# CHECKLISTS
# ============================================
async def list_checklist_templates(db: AsyncSession, company_id: int) -> List[ChecklistTemplate]:
    result = await db.execute(
        select(ChecklistTemplate)
        .where(ChecklistTemplate.company_id == company_id, ChecklistTemplate.is_active == True)  # noqa: E712
        .order_by(ChecklistTemplate.name)
    )
    return list(result.scalars().all())


async def get_checklist_template(db: AsyncSession, template_id: int, company_id: int) -> ChecklistTemplate:
    return await _get_scoped(db, ChecklistTemplate, template_id, company_id, "Checklist template")


async def create_checklist_template(db: AsyncSession, data: dict) -> ChecklistTemplate:
    return await _save(db, ChecklistTemplate(**data))


async def list_checklist_items(db: AsyncSession, template_id: int, company_id: int) -> List[ChecklistItem]:
    await get_checklist_template(db, template_id, company_id)
    result = await db.execute(
        select(ChecklistItem)
        .where(ChecklistItem.template_id == template_id)
        .order_by(ChecklistItem.order, ChecklistItem.id)
    )
    return list(result.scalars().all())


async def get_checklist_item(db: AsyncSession, item_id: int, company_id: int) -> ChecklistItem:
    result = await db.execute(
        select(ChecklistItem)
        .join(ChecklistTemplate, ChecklistItem.template_id == ChecklistTemplate.id)
        .where(ChecklistItem.id == item_id, ChecklistTemplate.company_id == company_id)
    )
    item = result.scalar_one_or_none()
    if not item:
        raise NotFoundError("Checklist item not found")
    return item


async def create_checklist_item(db: AsyncSession, data: dict, company_id: int) -> ChecklistItem:
    await get_checklist_template(db, data["template_id"], company_id)
    return await _save(db, ChecklistItem(**data))


async def update_checklist_item(db: AsyncSession, item_id: int, data: dict, company_id: int) -> ChecklistItem:
    item = await get_checklist_item(db, item_id, company_id)
    _apply(item, data)
    await db.flush()
    return item


async def delete_checklist_item(db: AsyncSession, item_id: int, company_id: int):
    item = await get_checklist_item(db, item_id, company_id)
    result = await db.execute(
        select(func.count(ChecklistExecutionItem.id)).where(ChecklistExecutionItem.item_id == item.id)
    )
    if result.scalar():
        raise StorageError("Checklist item already used in executions")
    await db.delete(item)
    await db.flush()


async def list_checklist_executions(db: AsyncSession, company_id: int, limit: int = 20) -> List[ChecklistExecution]:
    result = await db.execute(
        select(ChecklistExecution)
        .where(ChecklistExecution.company_id == company_id)
        .order_by(ChecklistExecution.started_at.desc(), ChecklistExecution.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def get_checklist_execution(db: AsyncSession, execution_id: int, company_id: int) -> ChecklistExecution:
    result = await db.execute(
        select(ChecklistExecution)
        .where(ChecklistExecution.id == execution_id, ChecklistExecution.company_id == company_id)
        .execution_options(populate_existing=True)
    )
    execution = result.scalar_one_or_none()
    if not execution:
        raise NotFoundError("Checklist execution not found")
    return execution


async def create_checklist_execution_item(db: AsyncSession, execution: ChecklistExecution, item_id: int) -> ChecklistExecutionItem:
    """O item precisa pertencer ao mesmo template da execução"""
    result = await db.execute(select(ChecklistItem).where(ChecklistItem.id == item_id))
    item = result.scalar_one_or_none()
    if not item or item.template_id != execution.template_id:
        raise StorageError("Checklist item does not belong to the execution template")

    return await _save(db, ChecklistExecutionItem(execution_id=execution.id, item_id=item.id, is_completed=False))


async def create_checklist_execution(db: AsyncSession, data: dict) -> ChecklistExecution:
    """Cria a execução com um registro por item do template"""
    template = await get_checklist_template(db, data["template_id"], data["company_id"])
    if not template.is_active:
        raise StorageError("Checklist template is inactive")

    execution = await _save(db, ChecklistExecution(**data))
    for item in await list_checklist_items(db, template.id, data["company_id"]):
        await create_checklist_execution_item(db, execution, item.id)

    return await get_checklist_execution(db, execution.id, data["company_id"])


async def update_checklist_execution_item(
    db: AsyncSession,
    execution_id: int,
    item_id: int,
    is_completed: bool,
    notes: Optional[str],
    company_id: int
) -> ChecklistExecutionItem:
    execution = await get_checklist_execution(db, execution_id, company_id)
    if execution.is_completed:
        raise StorageError("Checklist execution already completed")

    result = await db.execute(
        select(ChecklistExecutionItem).where(
            ChecklistExecutionItem.execution_id == execution.id,
            ChecklistExecutionItem.item_id == item_id,
        )
    )
    record = result.scalar_one_or_none()
    if not record:
        # Item do template que ainda não tinha registro
        record = await create_checklist_execution_item(db, execution, item_id)

    record.is_completed = is_completed
    record.completed_at = datetime.utcnow() if is_completed else None
    record.notes = notes
    await db.flush()
    return record


async def complete_checklist_execution(db: AsyncSession, execution_id: int, notes: Optional[str], company_id: int) -> ChecklistExecution:
    execution = await get_checklist_execution(db, execution_id, company_id)
    if execution.is_completed:
        raise StorageError("Checklist execution already completed")

    pending = [
        e for e in execution.items
        if not e.is_completed and e.item is not None and e.item.is_required
    ]
    if pending:
        raise StorageError(f"{len(pending)} required item(s) not completed")

    execution.is_completed = True
    execution.completed_at = datetime.utcnow()
    if notes is not None:
        execution.notes = notes
    await db.flush()
    return execution


# ============================================
# DASHBOARD
# ============================================
async def get_dashboard_stats(db: AsyncSession, company_id: int) -> Dict[str, int]:
    today = datetime.utcnow().replace(hour=0, minute=0, second=0, microsecond=0)

    result = await db.execute(
        select(func.count(Product.id)).where(
            Product.company_id == company_id,
            Product.is_active == True  # noqa: E712
        )
    )
    total_products = result.scalar() or 0

    result = await db.execute(
        select(func.count(Product.id)).where(
            Product.company_id == company_id,
            Product.is_active == True,  # noqa: E712
            Product.current_stock <= Product.min_stock,
        )
    )
    low_stock_count = result.scalar() or 0

    result = await db.execute(
        select(func.count(StockMovement.id)).where(
            StockMovement.company_id == company_id,
            StockMovement.created_at >= today,
        )
    )
    today_movements = result.scalar() or 0

    result = await db.execute(
        select(func.count(Supplier.id)).where(Supplier.company_id == company_id)
    )
    suppliers_count = result.scalar() or 0

    return {
        "totalProducts": total_products,
        "lowStockCount": low_stock_count,
        "todayMovements": today_movements,
        "suppliersCount": suppliers_count,
    }
