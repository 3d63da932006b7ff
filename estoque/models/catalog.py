"""
Estoque - Catalog Models
Dados de referência dos produtos: fornecedores e categorias
"""
from sqlalchemy import Column, String, Integer, Text

from estoque.models.base import Base, CompanyMixin, CreatedAtMixin, isoformat


class Supplier(CompanyMixin, CreatedAtMixin, Base):
    """Fornecedor da empresa"""
    __tablename__ = "suppliers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(20))
    email = Column(String(255))
    address = Column(Text)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "address": self.address,
            "companyId": self.company_id,
            "createdAt": isoformat(self.created_at),
        }


class Category(CompanyMixin, CreatedAtMixin, Base):
    """Categoria de produto"""
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "companyId": self.company_id,
            "createdAt": isoformat(self.created_at),
        }
