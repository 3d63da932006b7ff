"""
Estoque - Shopping list
Lista de compras para WhatsApp a partir dos produtos com estoque baixo
"""
from datetime import date
from typing import Dict, List, Optional

from estoque.models import Product

NO_SUPPLIER = "Sem Fornecedor"
# Quantidade sugerida = N x estoque mínimo
SUGGESTED_MULTIPLIER = 3


def group_by_supplier(products: List[Product]) -> Dict[str, List[Product]]:
    grouped: Dict[str, List[Product]] = {}
    for product in products:
        name = product.supplier.name if product.supplier else NO_SUPPLIER
        grouped.setdefault(name, []).append(product)
    return grouped


def suggested_quantity(product: Product) -> int:
    return product.min_stock * SUGGESTED_MULTIPLIER


def build_shopping_list(products: List[Product], today: Optional[date] = None) -> dict:
    today = today or date.today()
    grouped = group_by_supplier(products)

    lines = [
        "🛒 LISTA DE COMPRAS",
        f"📅 Data: {today.strftime('%d/%m/%Y')}",
        "",
    ]
    for supplier_name, items in grouped.items():
        lines.append(f"🏪 FORNECEDOR: {supplier_name.upper()}")
        for product in items:
            lines.append(
                f"• {product.name} - Qtd: {suggested_quantity(product)} "
                f"(Estoque atual: {product.current_stock})"
            )
        lines.append("")
    lines.append(f"* Quantidades calculadas como {SUGGESTED_MULTIPLIER}x o mínimo configurado")

    return {
        "text": "\n".join(lines),
        "groupedProducts": {
            name: [p.to_dict(include_details=True) for p in items]
            for name, items in grouped.items()
        },
    }
