"""
Estoque - User Models
Usuários da aplicação e super admins da plataforma
"""
from enum import Enum
from typing import List
from sqlalchemy import Column, String, Boolean, Integer, ForeignKey, JSON

from estoque.models.base import Base, CreatedAtMixin, enum_column_type, isoformat


class UserRole(str, Enum):
    """Hierarquia de papéis (do maior para o menor)"""
    MASTER = "MASTER"       # Operador da plataforma, sem empresa
    ADMIN = "admin"
    GERENTE = "gerente"
    OPERADOR = "operador"


# Papéis que administram usuários da própria empresa
COMPANY_MANAGER_ROLES = (UserRole.ADMIN, UserRole.GERENTE)


class SuperAdmin(CreatedAtMixin, Base):
    """Operador da plataforma SaaS, independente de empresa"""
    __tablename__ = "super_admins"

    id = Column(Integer, primary_key=True, autoincrement=True)
    supabase_user_id = Column(String(64), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    is_active = Column(Boolean, nullable=False, default=True)

    def to_dict(self):
        return {
            "id": self.id,
            "supabaseUserId": self.supabase_user_id,
            "name": self.name,
            "email": self.email,
            "isActive": self.is_active,
            "createdAt": isoformat(self.created_at),
        }


class User(CreatedAtMixin, Base):
    """Conta da aplicação, vinculada (ou não) a uma identidade externa"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)

    email = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(255))  # Ausente para usuários do Supabase
    name = Column(String(255), nullable=False)

    # Nulo apenas para MASTER
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True, index=True)

    role = Column(enum_column_type(UserRole, "user_role"), nullable=False, default=UserRole.OPERADOR)
    supabase_user_id = Column(String(64), unique=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    permissions = Column(JSON, info={"python_type": List[str]})

    @property
    def is_master(self) -> bool:
        return self.role == UserRole.MASTER

    def to_dict(self):
        # Nunca expõe o hash da senha
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "companyId": self.company_id,
            "role": self.role.value if self.role else None,
            "supabaseUserId": self.supabase_user_id,
            "isActive": self.is_active,
            "permissions": self.permissions,
            "createdAt": isoformat(self.created_at),
        }
