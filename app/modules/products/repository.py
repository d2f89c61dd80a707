# app/modules/products/repository.py
from typing import Any, Callable, Dict, List, Optional
from sqlalchemy.orm import Session

from app.shared.database.document_store import DocumentNotFound, DocumentStore

class ProductRepository:
    """
    Repositorio de documentos de producto
    """

    def __init__(self, db: Session):
        self.db = db
        self.products = DocumentStore(db).products

    def list_products(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        return self.products.find({}, limit=limit, sort_by="created_at")

    def get_product(self, product_id: str) -> Optional[Dict[str, Any]]:
        try:
            return self.products.get(product_id)
        except DocumentNotFound:
            return None

    def create_product(self, doc: Dict[str, Any]) -> str:
        return self.products.insert(doc)["id"]

    def update_product(
        self,
        product_id: str,
        mutate: Callable[[Dict[str, Any]], None]
    ) -> Dict[str, Any]:
        """Escritura condicional con reintento (misma primitiva que el ledger de stock)"""
        return self.products.update(product_id, mutate)

    def delete_product(self, product_id: str, rev: str):
        self.products.destroy(product_id, rev)
