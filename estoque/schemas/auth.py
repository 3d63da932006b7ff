"""
Estoque - Auth Schemas
"""
from pydantic import EmailStr, Field
from typing import List, Optional

from estoque.models import UserRole
from .base import ApiModel


class SignUpCompanyData(ApiModel):
    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    cnpj: Optional[str] = Field(None, max_length=20)
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = None


class SignUpRequest(ApiModel):
    """Cadastro completo: empresa + identidade externa + usuário admin"""
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=2, max_length=255)
    company_data: SignUpCompanyData


class UserCreateRequest(ApiModel):
    """Usuário criado por um admin/gerente dentro da própria empresa"""
    email: EmailStr
    name: str = Field(..., min_length=2, max_length=255)
    password: Optional[str] = Field(None, min_length=6)
    role: UserRole = UserRole.OPERADOR
    permissions: Optional[List[str]] = None


class AssignCompanyRequest(ApiModel):
    company_id: int
    role: UserRole = UserRole.OPERADOR
