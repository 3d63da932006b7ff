"""
Estoque - Schema generation
Gera validadores pydantic a partir das colunas das tabelas SQLAlchemy
"""
from typing import Any, Dict, Iterable, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, create_model
from pydantic.alias_generators import to_camel
from sqlalchemy import Column, inspect as sa_inspect


class ApiModel(BaseModel):
    """
    Base dos payloads da API: aceita camelCase (companyId) e snake_case
    (company_id); chaves desconhecidas são descartadas.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def _python_type(column: Column) -> Any:
    override = column.info.get("python_type")
    if override is not None:
        return override
    try:
        return column.type.python_type
    except NotImplementedError:
        return Any


def _is_required(column: Column) -> bool:
    return (
        not column.nullable
        and column.default is None
        and column.server_default is None
    )


def _build(model: Type, name: str, omit: Iterable[str], partial: bool) -> Type[ApiModel]:
    omitted = set(omit)
    fields: Dict[str, Tuple[Any, Any]] = {}

    for attr in sa_inspect(model).column_attrs:
        if attr.key in omitted:
            continue

        column = attr.columns[0]
        py_type = _python_type(column)

        if _is_required(column) and not partial:
            fields[attr.key] = (py_type, ...)
        elif column.nullable:
            fields[attr.key] = (Optional[py_type], None)
        else:
            # Tem default no banco: pode faltar, mas não pode ser null
            fields[attr.key] = (py_type, None)

    return create_model(name, __base__=ApiModel, **fields)


def build_insert_schema(model: Type, omit: Iterable[str] = ("id", "created_at"), name: Optional[str] = None) -> Type[ApiModel]:
    """
    Validador de inserção derivado da tabela.

    Campos obrigatórios = colunas NOT NULL sem default. Campos atribuídos pelo
    servidor (omit) não fazem parte do schema e são descartados do payload.
    """
    return _build(model, name or f"Insert{model.__name__}", omit, partial=False)


def build_update_schema(model: Type, omit: Iterable[str] = ("id", "created_at"), name: Optional[str] = None) -> Type[ApiModel]:
    """Variante parcial para updates (todos os campos opcionais)"""
    return _build(model, name or f"Update{model.__name__}", omit, partial=True)
