# app/modules/sales/repository.py
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session

from app.shared.database.document_store import DocumentNotFound, DocumentStore

class SalesRepository:
    """
    Repositorio para las operaciones de datos relacionadas con ventas
    """

    def __init__(self, db: Session):
        self.db = db
        store = DocumentStore(db)
        self.sales = store.sales
        self.products = store.products
        self.customers = store.customers

    # ==================== VENTAS ====================

    def create_sale(self, doc: Dict[str, Any]) -> str:
        return self.sales.insert(doc)["id"]

    def get_sale(self, sale_id: str) -> Optional[Dict[str, Any]]:
        try:
            return self.sales.get(sale_id)
        except DocumentNotFound:
            return None

    def list_sales(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Ventas más recientes primero"""
        return self.sales.find({}, limit=limit, sort_by="created_at", descending=True)

    # ==================== CLIENTES ====================

    def get_customer(self, customer_id: str) -> Optional[Dict[str, Any]]:
        try:
            return self.customers.get(customer_id)
        except DocumentNotFound:
            return None
