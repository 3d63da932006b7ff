"""
Estoque - Product Models
Produtos em estoque e o livro-razão de movimentações
"""
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, String, Boolean, DateTime, Integer, Numeric, Text, ForeignKey
from sqlalchemy.orm import relationship

from estoque.models.base import (
    Base,
    CompanyMixin,
    CreatedAtMixin,
    enum_column_type,
    isoformat,
    decimal_str,
)


class MovementType(str, Enum):
    """Tipo de movimentação de estoque"""
    ENTRADA = "entrada"
    SAIDA = "saida"
    AJUSTE = "ajuste"


class WeekDay(str, Enum):
    """Melhor dia da semana para compra"""
    SEGUNDA = "segunda"
    TERCA = "terca"
    QUARTA = "quarta"
    QUINTA = "quinta"
    SEXTA = "sexta"
    SABADO = "sabado"
    DOMINGO = "domingo"


class Product(CompanyMixin, CreatedAtMixin, Base):
    """Item de estoque da empresa"""
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)

    name = Column(String(255), nullable=False)
    description = Column(Text)
    unit = Column(String(20), nullable=False)  # kg, unidade, litro, etc

    # Níveis de estoque
    current_stock = Column(Integer, nullable=False, default=0)
    min_stock = Column(Integer, nullable=False, default=1)
    max_stock = Column(Integer)

    cost_price = Column(Numeric(10, 2))

    supplier_id = Column(Integer, ForeignKey("suppliers.id"))
    category_id = Column(Integer, ForeignKey("categories.id"))
    best_purchase_day = Column(enum_column_type(WeekDay, "week_day"))

    is_active = Column(Boolean, nullable=False, default=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relacionamentos
    supplier = relationship("Supplier", lazy="selectin")
    category = relationship("Category", lazy="selectin")

    @property
    def is_low_stock(self) -> bool:
        return self.current_stock <= self.min_stock

    def to_dict(self, include_details: bool = False):
        data = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "unit": self.unit,
            "currentStock": self.current_stock,
            "minStock": self.min_stock,
            "maxStock": self.max_stock,
            "costPrice": decimal_str(self.cost_price),
            "supplierId": self.supplier_id,
            "categoryId": self.category_id,
            "bestPurchaseDay": self.best_purchase_day.value if self.best_purchase_day else None,
            "companyId": self.company_id,
            "isActive": self.is_active,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }

        if include_details:
            data["supplier"] = self.supplier.to_dict() if self.supplier else None
            data["category"] = self.category.to_dict() if self.category else None

        return data


class StockMovement(CompanyMixin, CreatedAtMixin, Base):
    """
    Lançamento imutável no razão de estoque.
    Não existe caminho de update/delete para esta tabela.
    """
    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True, autoincrement=True)

    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    type = Column(enum_column_type(MovementType, "movement_type"), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2))
    total_price = Column(Numeric(10, 2))
    notes = Column(Text)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    product = relationship("Product", lazy="selectin")
    user = relationship("User", lazy="selectin")

    def to_dict(self, include_details: bool = False):
        data = {
            "id": self.id,
            "productId": self.product_id,
            "type": self.type.value if self.type else None,
            "quantity": self.quantity,
            "unitPrice": decimal_str(self.unit_price),
            "totalPrice": decimal_str(self.total_price),
            "notes": self.notes,
            "userId": self.user_id,
            "companyId": self.company_id,
            "createdAt": isoformat(self.created_at),
        }

        if include_details:
            data["product"] = self.product.to_dict() if self.product else None
            data["user"] = self.user.to_dict() if self.user else None

        return data
