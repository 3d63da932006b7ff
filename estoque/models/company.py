"""
Estoque - Company Model
Empresa (tenant): raiz do isolamento multi-tenant
"""
from enum import Enum
from sqlalchemy import Column, String, Boolean, Integer, Text

from estoque.models.base import Base, CreatedAtMixin, enum_column_type, isoformat


class CompanyPlan(str, Enum):
    """Plano contratado pela empresa"""
    BASIC = "basic"
    PREMIUM = "premium"
    ENTERPRISE = "enterprise"


class Company(CreatedAtMixin, Base):
    """Empresa cliente da plataforma"""
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, autoincrement=True)

    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    phone = Column(String(20))
    address = Column(Text)
    cnpj = Column("CNPJ", String(20))

    plan = Column(enum_column_type(CompanyPlan, "company_plan"), nullable=False, default=CompanyPlan.BASIC)
    is_active = Column(Boolean, nullable=False, default=True)
    max_users = Column(Integer, default=10)  # Teto de usuários da empresa

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "cnpj": self.cnpj,
            "plan": self.plan.value if self.plan else None,
            "isActive": self.is_active,
            "maxUsers": self.max_users,
            "createdAt": isoformat(self.created_at),
        }
