# app/modules/customers/service.py
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from app.core.exceptions import CustomerNotFound, ValidationError
from app.shared.database.document_store import new_doc_id
from .repository import CustomerRepository
from .schemas import CustomerCreateRequest, CustomerResponse

logger = logging.getLogger(__name__)


class CustomerService:
    """
    Registro de clientes. Un cliente se crea una vez y sólo se consulta después.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repository = CustomerRepository(db)

    def create_customer(self, data: CustomerCreateRequest) -> Dict[str, Any]:
        name = (data.name or "").strip()
        if not name:
            raise ValidationError("Nombre es requerido")

        doc = {
            "_id": new_doc_id("customer"),
            "name": name,
            "email": (data.email or "").strip(),
            "phone": (data.phone or "").strip(),
            "address": (data.address or "").strip(),
            "created_at": datetime.now(timezone.utc).isoformat()
        }
        customer_id = self.repository.create_customer(doc)
        logger.info(f"Cliente creado {customer_id}")

        return {
            "message": "Cliente creado",
            "id": customer_id,
            "customer": self._to_response(doc)
        }

    def list_customers(self) -> List[CustomerResponse]:
        return [self._to_response(doc) for doc in self.repository.list_customers()]

    def get_customer(self, customer_id: str) -> CustomerResponse:
        doc = self.repository.get_customer(customer_id)
        if not doc:
            raise CustomerNotFound()
        return self._to_response(doc)

    @staticmethod
    def _to_response(doc: Dict[str, Any]) -> CustomerResponse:
        return CustomerResponse(
            id=doc["_id"],
            name=doc.get("name", ""),
            email=doc.get("email") or "",
            phone=doc.get("phone") or "",
            address=doc.get("address") or "",
            created_at=doc.get("created_at")
        )
