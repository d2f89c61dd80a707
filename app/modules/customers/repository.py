# app/modules/customers/repository.py
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session

from app.shared.database.document_store import DocumentNotFound, DocumentStore

class CustomerRepository:
    """
    Repositorio de documentos de cliente
    """

    def __init__(self, db: Session):
        self.db = db
        self.customers = DocumentStore(db).customers

    def create_customer(self, doc: Dict[str, Any]) -> str:
        return self.customers.insert(doc)["id"]

    def list_customers(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        return self.customers.find({}, limit=limit, sort_by="created_at")

    def get_customer(self, customer_id: str) -> Optional[Dict[str, Any]]:
        try:
            return self.customers.get(customer_id)
        except DocumentNotFound:
            return None
