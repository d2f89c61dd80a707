# app/modules/reports/service.py
"""
Adaptadores de reportes: lectura y agregación sobre ventas, productos y
clientes. Nunca escriben. Si un documento referenciado por una venta ya no
existe (producto o cliente eliminado) se usan los nombres desnormalizados
guardados en la venta.
"""
import base64
import binascii
import logging
import re
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.config.settings import settings
from app.core.exceptions import SaleNotFound
from app.shared.database.document_store import DocumentNotFound, DocumentStore
from app.shared.money import money_context, to_money
from .schemas import (
    CustomerPurchaseRow, CustomerPurchasesReport, InventoryEntry, InventoryReport,
    Invoice, InvoiceLine, SalesTotalReport, SalesTotalRow, StockReport, StockRow
)

logger = logging.getLogger(__name__)

DEFAULT_CUSTOMER_LABEL = "Cliente"


def decode_image(doc: Dict[str, Any]) -> Optional[bytes]:
    raw = doc.get("photo_base64")
    if not raw:
        return None
    try:
        return base64.b64decode(raw)
    except (binascii.Error, ValueError):
        logger.warning(f"Imagen base64 inválida en {doc.get('_id')}")
        return None


class ReportService:

    def __init__(self, db: Session):
        self.db = db
        self.store = DocumentStore(db)
        self.limit = settings.report_find_limit

    # ==================== REPORTES XLSX ====================

    def sales_total(self) -> SalesTotalReport:
        """Todas las ventas con su total y el total general"""
        sales = self.store.sales.find({}, limit=self.limit, sort_by="created_at")
        rows = []
        grand_total = Decimal("0.00")
        for sale in sales:
            total = to_money(sale.get("total"))
            rows.append(SalesTotalRow(
                sale_id=sale["_id"],
                customer_name=sale.get("customer_name") or "",
                created_at=sale.get("created_at"),
                total=total
            ))
            with money_context():
                grand_total += total
        return SalesTotalReport(rows=rows, grand_total=grand_total)

    def stock_summary(self) -> StockReport:
        """Stock disponible y valor del stock por producto"""
        products = self.store.products.find({}, limit=self.limit, sort_by="created_at")
        rows = []
        total_units = 0
        total_value = Decimal("0.00")
        for product in products:
            stock = int(product.get("stock") or 0)
            price = to_money(product.get("price"))
            with money_context():
                value = price * stock
            rows.append(StockRow(
                product_id=product["_id"],
                name=product.get("name") or "",
                price=price,
                stock=stock,
                stock_value=value
            ))
            total_units += stock
            with money_context():
                total_value += value
        return StockReport(rows=rows, total_units=total_units, total_value=total_value)

    def customer_purchases(self, customer_ref: str) -> CustomerPurchasesReport:
        """
        Compras de un cliente. `customer_ref` es un ID de cliente o parte de
        su nombre (sin distinguir mayúsculas).
        """
        pattern = f"(?i){re.escape(customer_ref)}"
        customer_name = self._resolve_customer_name(customer_ref, pattern)

        sales = self.store.sales.find(
            {
                "$or": [
                    {"customer_id": customer_ref},
                    {"customer_name": {"$regex": pattern}}
                ]
            },
            limit=self.limit,
            sort_by="created_at"
        )

        rows = []
        total_quantity = 0
        total_purchases = Decimal("0.00")
        for sale in sales:
            items = sale.get("items") or []
            quantity = sum(int(item.get("quantity") or 0) for item in items)
            total = to_money(sale.get("total"))
            rows.append(CustomerPurchaseRow(
                sale_id=sale["_id"],
                created_at=sale.get("created_at"),
                products=", ".join(
                    f"{item.get('product_name', '')} (x{item.get('quantity', 0)})" for item in items
                ),
                quantity=quantity,
                total=total
            ))
            total_quantity += quantity
            with money_context():
                total_purchases += total

        return CustomerPurchasesReport(
            customer_ref=customer_ref,
            customer_name=customer_name,
            rows=rows,
            total_quantity=total_quantity,
            total_purchases=total_purchases
        )

    def _resolve_customer_name(self, customer_ref: str, pattern: str) -> str:
        try:
            return self.store.customers.get(customer_ref).get("name") or DEFAULT_CUSTOMER_LABEL
        except DocumentNotFound:
            pass
        matches = self.store.customers.find({"name": {"$regex": pattern}}, limit=1)
        if matches:
            return matches[0].get("name") or DEFAULT_CUSTOMER_LABEL
        return DEFAULT_CUSTOMER_LABEL

    # ==================== DOCUMENTOS PDF ====================

    def invoice(self, sale_id: str) -> Invoice:
        try:
            sale = self.store.sales.get(sale_id)
        except DocumentNotFound:
            raise SaleNotFound()

        lines = []
        for item in sale.get("items") or []:
            lines.append(InvoiceLine(
                product_id=item.get("product_id", ""),
                product_name=item.get("product_name", ""),
                quantity=int(item.get("quantity") or 0),
                unit_price=to_money(item.get("unit_price")),
                total=to_money(item.get("total")),
                image=self._product_image(item.get("product_id"))
            ))

        return Invoice(
            sale_id=sale["_id"],
            customer_id=sale.get("customer_id") or "guest",
            customer_name=sale.get("customer_name") or "",
            created_at=sale.get("created_at"),
            lines=lines,
            total=to_money(sale.get("total"))
        )

    def _product_image(self, product_id: Optional[str]) -> Optional[bytes]:
        if not product_id:
            return None
        try:
            product = self.store.products.get(product_id)
        except DocumentNotFound:
            # Producto eliminado después de la venta
            return None
        return decode_image(product)

    def inventory(self) -> InventoryReport:
        products = self.store.products.find({}, limit=self.limit, sort_by="created_at")
        return InventoryReport(products=[
            InventoryEntry(
                product_id=product["_id"],
                name=product.get("name") or "",
                description=product.get("description") or "",
                price=to_money(product.get("price")),
                stock=int(product.get("stock") or 0),
                image=decode_image(product)
            )
            for product in products
        ])
