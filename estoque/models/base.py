"""
Estoque - Model base
Mixins compartilhados pelas tabelas do sistema
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import declared_attr

from estoque.database import Base


def enum_column_type(enum_cls, name: str) -> SQLEnum:
    """Enum persistido pelo valor ('entrada'), não pelo nome do membro"""
    return SQLEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


def isoformat(value: datetime):
    return value.isoformat() if value else None


def decimal_str(value: Decimal):
    """Decimais trafegam como string no JSON (ex: "12.50")"""
    return str(value) if value is not None else None


class CompanyMixin:
    """
    Mixin para tabelas isoladas por empresa (tenant).
    company_id é obrigatório em toda linha.
    """

    @declared_attr
    def company_id(cls):
        return Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)


class CreatedAtMixin:
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


__all__ = ["Base", "CompanyMixin", "CreatedAtMixin", "enum_column_type", "isoformat", "decimal_str"]
