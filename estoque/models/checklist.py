"""
Estoque - Checklist Models
Rotinas operacionais (abertura, fechamento, limpeza) e suas execuções
"""
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, String, Boolean, DateTime, Integer, Text, ForeignKey
from sqlalchemy.orm import relationship

from estoque.models.base import Base, CompanyMixin, CreatedAtMixin, enum_column_type, isoformat


class ChecklistType(str, Enum):
    ABERTURA = "abertura"
    FECHAMENTO = "fechamento"
    LIMPEZA = "limpeza"


class ChecklistTemplate(CompanyMixin, CreatedAtMixin, Base):
    """Rotina nomeada de um tipo fixo"""
    __tablename__ = "checklist_templates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    type = Column(enum_column_type(ChecklistType, "checklist_type"), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    items = relationship(
        "ChecklistItem",
        back_populates="template",
        order_by="ChecklistItem.order",
        lazy="selectin",
    )

    def to_dict(self, include_items: bool = False):
        data = {
            "id": self.id,
            "name": self.name,
            "type": self.type.value if self.type else None,
            "companyId": self.company_id,
            "isActive": self.is_active,
            "createdAt": isoformat(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class ChecklistItem(Base):
    """Passo ordenado dentro de um template"""
    __tablename__ = "checklist_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    template_id = Column(Integer, ForeignKey("checklist_templates.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    category = Column(String(100))  # Equipamentos, Cozinha, Estoque, etc
    estimated_minutes = Column(Integer, default=5)
    order = Column(Integer, nullable=False, default=0)
    is_required = Column(Boolean, nullable=False, default=True)

    template = relationship("ChecklistTemplate", back_populates="items")

    def to_dict(self):
        return {
            "id": self.id,
            "templateId": self.template_id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "estimatedMinutes": self.estimated_minutes,
            "order": self.order,
            "isRequired": self.is_required,
        }


class ChecklistExecution(CompanyMixin, Base):
    """Execução de um template por um usuário"""
    __tablename__ = "checklist_executions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    template_id = Column(Integer, ForeignKey("checklist_templates.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    started_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    completed_at = Column(DateTime)
    is_completed = Column(Boolean, nullable=False, default=False)
    notes = Column(Text)

    template = relationship("ChecklistTemplate", lazy="selectin")
    user = relationship("User", lazy="selectin")
    items = relationship("ChecklistExecutionItem", back_populates="execution", lazy="selectin")

    def to_dict(self, include_details: bool = False):
        data = {
            "id": self.id,
            "templateId": self.template_id,
            "userId": self.user_id,
            "companyId": self.company_id,
            "startedAt": isoformat(self.started_at),
            "completedAt": isoformat(self.completed_at),
            "isCompleted": self.is_completed,
            "notes": self.notes,
        }

        if include_details:
            data["template"] = self.template.to_dict() if self.template else None
            data["user"] = self.user.to_dict() if self.user else None
            items = sorted(self.items, key=lambda e: e.item.order if e.item else 0)
            data["items"] = [e.to_dict(include_item=True) for e in items]

        return data


class ChecklistExecutionItem(Base):
    """Registro de conclusão de um item dentro da execução"""
    __tablename__ = "checklist_execution_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    execution_id = Column(Integer, ForeignKey("checklist_executions.id"), nullable=False, index=True)
    item_id = Column(Integer, ForeignKey("checklist_items.id"), nullable=False)
    is_completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime)
    notes = Column(Text)

    execution = relationship("ChecklistExecution", back_populates="items")
    item = relationship("ChecklistItem", lazy="selectin")

    def to_dict(self, include_item: bool = False):
        data = {
            "id": self.id,
            "executionId": self.execution_id,
            "itemId": self.item_id,
            "isCompleted": self.is_completed,
            "completedAt": isoformat(self.completed_at),
            "notes": self.notes,
        }
        if include_item:
            data["item"] = self.item.to_dict() if self.item else None
        return data
