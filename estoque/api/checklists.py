"""
Estoque - Checklists API
Templates, itens e execuções das rotinas operacionais
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from estoque.database import get_db
from estoque.models import User
from estoque.schemas import (
    InsertChecklistTemplate,
    InsertChecklistItem,
    UpdateChecklistItem,
    InsertChecklistExecution,
    ExecutionItemUpdate,
    ExecutionComplete,
)
from estoque.services import storage
from estoque.api.deps import get_company_user, get_company_manager, with_company

router = APIRouter(prefix="/checklists", tags=["Checklists"])


# ============================================
# TEMPLATES E ITENS
# ============================================
@router.get("/templates")
async def list_templates(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_company_user)
):
    templates = await storage.list_checklist_templates(db, user.company_id)
    return [t.to_dict(include_items=True) for t in templates]


@router.post("/templates", status_code=status.HTTP_201_CREATED)
async def create_template(
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_company_manager)
):
    data = InsertChecklistTemplate.model_validate(with_company(payload, user.company_id))
    template = await storage.create_checklist_template(db, data.model_dump(exclude_unset=True))
    return template.to_dict()


@router.get("/templates/{template_id}/items")
async def list_template_items(
    template_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_company_user)
):
    items = await storage.list_checklist_items(db, template_id, user.company_id)
    return [i.to_dict() for i in items]


@router.post("/items", status_code=status.HTTP_201_CREATED)
async def create_item(
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_company_manager)
):
    data = InsertChecklistItem.model_validate(payload)
    item = await storage.create_checklist_item(db, data.model_dump(exclude_unset=True), user.company_id)
    return item.to_dict()


@router.put("/items/{item_id}")
async def update_item(
    item_id: int,
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_company_manager)
):
    data = UpdateChecklistItem.model_validate(payload)
    item = await storage.update_checklist_item(db, item_id, data.model_dump(exclude_unset=True), user.company_id)
    return item.to_dict()


@router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(
    item_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_company_manager)
):
    await storage.delete_checklist_item(db, item_id, user.company_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================
# EXECUÇÕES
# ============================================
@router.get("/executions")
async def list_executions(
    limit: int = Query(20, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_company_user)
):
    executions = await storage.list_checklist_executions(db, user.company_id, limit)
    return [e.to_dict(include_details=True) for e in executions]


@router.post("/executions", status_code=status.HTTP_201_CREATED)
async def start_execution(
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_company_user)
):
    """Inicia uma execução com um registro pendente por item do template"""
    data = InsertChecklistExecution.model_validate(with_company(payload, user.company_id, userId=user.id))
    execution = await storage.create_checklist_execution(db, data.model_dump(exclude_unset=True))
    return execution.to_dict(include_details=True)


@router.put("/executions/{execution_id}/items/{item_id}")
async def update_execution_item(
    execution_id: int,
    item_id: int,
    body: ExecutionItemUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_company_user)
):
    record = await storage.update_checklist_execution_item(
        db, execution_id, item_id, body.is_completed, body.notes, user.company_id
    )
    return record.to_dict()


@router.put("/executions/{execution_id}/complete")
async def complete_execution(
    execution_id: int,
    body: Optional[ExecutionComplete] = None,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_company_user)
):
    """Conclui a execução; itens obrigatórios precisam estar marcados"""
    notes = body.notes if body else None
    execution = await storage.complete_checklist_execution(db, execution_id, notes, user.company_id)
    return execution.to_dict()
