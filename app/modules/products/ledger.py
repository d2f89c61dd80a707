# app/modules/products/ledger.py
"""
Ledger de stock de productos.

Subconjunto de campos del documento de producto (`stock`, `price`, `name`)
que lee y muta la transacción de venta. Toda mutación de stock pasa por
`compare_and_swap_stock`, que sólo escribe si la revisión no cambió.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

from app.config.settings import settings
from app.core.exceptions import InsufficientStock, ProductNotFound, StockConflict
from app.shared.database.document_store import Collection, DocumentNotFound, RevisionConflict
from app.shared.money import to_money

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockSnapshot:
    product_id: str
    name: str
    price: Decimal
    stock: int
    revision: str


def _stock_of(doc: Dict[str, Any]) -> int:
    try:
        return int(doc.get("stock") or 0)
    except (TypeError, ValueError):
        return 0


class ProductStockLedger:

    def __init__(self, products: Collection, max_attempts: Optional[int] = None):
        self.products = products
        self.max_attempts = max_attempts or settings.stock_update_max_retries

    def get(self, product_id: str) -> StockSnapshot:
        try:
            doc = self.products.get(product_id)
        except DocumentNotFound:
            raise ProductNotFound(f"Producto no encontrado: {product_id}", product_id=product_id)
        return StockSnapshot(
            product_id=product_id,
            name=doc.get("name") or product_id,
            price=to_money(doc.get("price")),
            stock=_stock_of(doc),
            revision=doc["_rev"]
        )

    def compare_and_swap_stock(self, product_id: str, revision: str, new_stock: int) -> str:
        """
        Escribir `stock = new_stock` sólo si el producto sigue en `revision`.

        Retorna la nueva revisión. Lanza RevisionConflict o DocumentNotFound.
        """
        if new_stock < 0:
            raise ValueError("El stock no puede ser negativo")

        doc = self.products.get(product_id)
        if doc["_rev"] != revision:
            raise RevisionConflict(self.products.name, product_id)
        doc["stock"] = new_stock
        return self.products.insert(doc)["rev"]

    def adjust_stock(self, product_id: str, delta: int) -> int:
        """
        Sumar `delta` al stock con reintento acotado sobre conflicto de revisión.

        Cada intento relee y revalida, así que un decremento que pierde la
        carrera termina en InsufficientStock y no en un error de escritura.
        """
        for attempt in range(1, self.max_attempts + 1):
            snapshot = self.get(product_id)
            new_stock = snapshot.stock + delta
            if new_stock < 0:
                raise InsufficientStock(snapshot.name, requested=-delta, available=snapshot.stock)
            try:
                self.compare_and_swap_stock(product_id, snapshot.revision, new_stock)
            except RevisionConflict:
                logger.info(f"Conflicto de revisión en {product_id}, reintento {attempt}/{self.max_attempts}")
                continue
            except DocumentNotFound:
                raise ProductNotFound(f"Producto no encontrado: {product_id}", product_id=product_id)
            return new_stock

        logger.warning(f"⚠️ Reintentos agotados ajustando stock de {product_id}")
        raise StockConflict(product_id=product_id)
