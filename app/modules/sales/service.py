# app/modules/sales/service.py
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.exceptions import (
    CustomerNotFound, InsufficientStock, InvalidQuantity, SaleNotFound, ValidationError
)
from app.modules.products.ledger import ProductStockLedger, StockSnapshot
from app.shared.database.document_store import new_doc_id
from app.shared.money import money_context, money_str, to_money
from .repository import SalesRepository
from .schemas import SaleCreateRequest, SaleItemRequest, SaleResponse, SaleItemResponse

logger = logging.getLogger(__name__)

GUEST_CUSTOMER_ID = "guest"
GUEST_CUSTOMER_NAME = "Guest"


class SalesService:
    """
    Coordinador de transacciones de venta.

    El almacén sólo ofrece escrituras condicionales sobre un documento, así
    que una venta se ejecuta en dos fases:

    1. Validar: leer cada producto, acumular la cantidad pedida por producto,
       verificar stock y calcular totales. Un fallo aquí no muta nada.
    2. Confirmar: descontar el stock de cada producto con compare-and-swap y
       reintento acotado, y guardar el documento de venta. Si algo falla, los
       descuentos ya aplicados se revierten con incrementos inversos.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repository = SalesRepository(db)
        self.ledger = ProductStockLedger(self.repository.products)

    # ==================== REGISTRO DE VENTAS ====================

    def create_sale(self, sale_data: SaleCreateRequest) -> Dict[str, Any]:
        lines = self._validate_lines(sale_data.items)
        customer_id, customer_name = self._resolve_customer(
            sale_data.customer_id, sale_data.customer_name
        )

        # 1. Validar stock y calcular totales sin mutar
        snapshots: Dict[str, StockSnapshot] = {}
        demand: Dict[str, int] = {}
        sale_items: List[Dict[str, Any]] = []
        total = Decimal("0.00")

        for product_id, quantity in lines:
            snapshot = snapshots.get(product_id)
            if snapshot is None:
                snapshot = self.ledger.get(product_id)
                snapshots[product_id] = snapshot

            demand[product_id] = demand.get(product_id, 0) + quantity
            if snapshot.stock < demand[product_id]:
                raise InsufficientStock(snapshot.name, demand[product_id], snapshot.stock)

            with money_context():
                line_total = snapshot.price * quantity
                total += line_total
            sale_items.append({
                "product_id": product_id,
                "product_name": snapshot.name,
                "quantity": quantity,
                "unit_price": money_str(snapshot.price),
                "total": money_str(line_total)
            })

        # 2. Aplicar descuentos y persistir la venta
        applied: List[Tuple[str, int]] = []
        try:
            for product_id, quantity in demand.items():
                self.ledger.adjust_stock(product_id, -quantity)
                applied.append((product_id, quantity))

            sale_doc = {
                "_id": new_doc_id("sale"),
                "customer_id": customer_id,
                "customer_name": customer_name,
                "items": sale_items,
                "total": money_str(total),
                "created_at": datetime.now(timezone.utc).isoformat()
            }
            sale_id = self.repository.create_sale(sale_doc)
        except Exception:
            self._compensate(applied)
            raise

        logger.info(f"🧾 Venta {sale_id} registrada: {len(sale_items)} items, total {money_str(total)}")
        return {
            "message": "Venta realizada",
            "sale_id": sale_id,
            "total": to_money(total)
        }

    def _validate_lines(self, items: List[SaleItemRequest]) -> List[Tuple[str, int]]:
        """Validación de forma, previa a cualquier acceso a documentos"""
        if not items:
            raise ValidationError("Items son requeridos")

        lines = []
        for item in items:
            product_id = (item.product_id or "").strip()
            if not product_id:
                raise ValidationError("product_id es requerido")
            lines.append((product_id, self._parse_quantity(item.quantity)))
        return lines

    @staticmethod
    def _parse_quantity(value: Any) -> int:
        if isinstance(value, bool) or value is None:
            raise InvalidQuantity()
        if isinstance(value, float):
            if not value.is_integer():
                raise InvalidQuantity()
            value = int(value)
        elif isinstance(value, str):
            try:
                value = int(value.strip())
            except ValueError:
                raise InvalidQuantity()
        elif not isinstance(value, int):
            raise InvalidQuantity()

        if value <= 0:
            raise InvalidQuantity()
        return value

    def _resolve_customer(
        self,
        customer_id: Optional[str],
        customer_name: Optional[str]
    ) -> Tuple[str, str]:
        name = (customer_name or "").strip()
        if not customer_id or customer_id == GUEST_CUSTOMER_ID:
            return GUEST_CUSTOMER_ID, name or GUEST_CUSTOMER_NAME

        customer = self.repository.get_customer(customer_id)
        if not customer:
            raise CustomerNotFound(f"Cliente no encontrado: {customer_id}")
        return customer_id, name or customer.get("name") or GUEST_CUSTOMER_NAME

    def _compensate(self, applied: List[Tuple[str, int]]):
        """Revertir descuentos ya persistidos; los fallos se registran sin ocultar el error original"""
        for product_id, quantity in reversed(applied):
            try:
                self.ledger.adjust_stock(product_id, quantity)
                logger.info(f"↩️ Revertido descuento de {quantity} unidades en {product_id}")
            except Exception:
                logger.exception(
                    f"❌ No se pudo revertir el descuento de {quantity} unidades en {product_id}"
                )

    # ==================== CONSULTAS ====================

    def list_sales(self) -> List[SaleResponse]:
        return [self._to_response(doc) for doc in self.repository.list_sales()]

    def get_sale(self, sale_id: str) -> SaleResponse:
        doc = self.repository.get_sale(sale_id)
        if not doc:
            raise SaleNotFound()
        return self._to_response(doc)

    @staticmethod
    def _to_response(doc: Dict[str, Any]) -> SaleResponse:
        return SaleResponse(
            id=doc["_id"],
            customer_id=doc.get("customer_id") or GUEST_CUSTOMER_ID,
            customer_name=doc.get("customer_name") or GUEST_CUSTOMER_NAME,
            items=[
                SaleItemResponse(
                    product_id=item.get("product_id", ""),
                    product_name=item.get("product_name", ""),
                    quantity=int(item.get("quantity") or 0),
                    unit_price=to_money(item.get("unit_price")),
                    total=to_money(item.get("total"))
                )
                for item in doc.get("items", [])
            ],
            total=to_money(doc.get("total")),
            created_at=doc.get("created_at")
        )
