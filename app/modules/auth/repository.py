# app/modules/auth/repository.py
from typing import Any, Callable, Dict, Optional
from sqlalchemy.orm import Session

from app.shared.database.document_store import DocumentStore

class UserRepository:
    """
    Repositorio de documentos de usuario
    """

    def __init__(self, db: Session):
        self.db = db
        self.users = DocumentStore(db).users

    def find_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        result = self.users.find({"email": email}, limit=1)
        return result[0] if result else None

    def create_user(self, doc: Dict[str, Any]) -> str:
        return self.users.insert(doc)["id"]

    def update_user(self, user_id: str, mutate: Callable[[Dict[str, Any]], None]) -> Dict[str, Any]:
        return self.users.update(user_id, mutate)
