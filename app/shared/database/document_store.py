# app/shared/database/document_store.py
"""
Cliente del almacén de documentos.

Cada colección guarda documentos JSON sin esquema identificados por `_id`
y versionados por `_rev`. Toda escritura sobre un documento existente
debe presentar la revisión leída; si el documento cambió entretanto la
escritura se rechaza con `RevisionConflict` (concurrencia optimista).
La comprobación se ejecuta atómicamente en la base de datos como
`UPDATE ... WHERE rev = :rev`.
"""
import logging
import re
import uuid
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config.settings import settings
from .models import Document

logger = logging.getLogger(__name__)


class DocumentStoreError(Exception):
    """Error base del almacén de documentos"""


class DocumentNotFound(DocumentStoreError):
    def __init__(self, collection: str, doc_id: str):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"{collection}/{doc_id} no existe")


class RevisionConflict(DocumentStoreError):
    def __init__(self, collection: str, doc_id: str):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"{collection}/{doc_id}: conflicto de revisión")


def new_doc_id(prefix: str) -> str:
    return f"{prefix}:{uuid.uuid4()}"


def _next_rev(rev: Optional[str]) -> str:
    generation = int(rev.split("-", 1)[0]) if rev else 0
    return f"{generation + 1}-{uuid.uuid4().hex}"


# ==================== SELECTORES ====================

def _match_condition(value: Any, condition: Any, present: bool) -> bool:
    if not isinstance(condition, dict) or not any(k.startswith("$") for k in condition):
        return present and value == condition

    for op, operand in condition.items():
        if op == "$exists":
            if present != bool(operand):
                return False
            continue
        if op == "$ne":
            if present and value == operand:
                return False
            continue
        if op == "$nin":
            if present and value in operand:
                return False
            continue
        if not present:
            return False
        if op == "$eq":
            ok = value == operand
        elif op == "$in":
            ok = value in operand
        elif op == "$regex":
            ok = isinstance(value, str) and _search(operand, value)
        elif op in ("$gt", "$gte", "$lt", "$lte"):
            try:
                ok = {
                    "$gt": lambda: value > operand,
                    "$gte": lambda: value >= operand,
                    "$lt": lambda: value < operand,
                    "$lte": lambda: value <= operand,
                }[op]()
            except TypeError:
                ok = False
        else:
            raise ValueError(f"Operador de selector no soportado: {op}")
        if not ok:
            return False
    return True


def _search(pattern: str, value: str) -> bool:
    flags = 0
    # Sintaxis de bandera en línea al estilo Mango: (?i)patrón
    if pattern.startswith("(?i)"):
        pattern, flags = pattern[4:], re.IGNORECASE
    return re.search(pattern, value, flags) is not None


def matches_selector(doc: Dict[str, Any], selector: Dict[str, Any]) -> bool:
    """Evaluar un selector estilo Mango contra un documento"""
    for key, condition in selector.items():
        if key == "$or":
            if not any(matches_selector(doc, sub) for sub in condition):
                return False
        elif key == "$and":
            if not all(matches_selector(doc, sub) for sub in condition):
                return False
        elif not _match_condition(doc.get(key), condition, key in doc):
            return False
    return True


def _string_equalities(selector: Dict[str, Any]) -> Dict[str, str]:
    """Condiciones `campo: "valor"` de primer nivel, traducibles a SQL"""
    return {
        key: condition
        for key, condition in selector.items()
        if not key.startswith("$") and isinstance(condition, str)
    }


# ==================== COLECCIÓN ====================

class Collection:
    """
    Acceso CRUD a una colección.

    Las escrituras hacen commit inmediato: cada documento es la unidad de
    atomicidad, no existen transacciones entre documentos.
    """

    def __init__(self, db: Session, name: str):
        self.db = db
        self.name = name

    def get(self, doc_id: str) -> Dict[str, Any]:
        row = self.db.execute(
            select(Document.rev, Document.body).where(
                Document.collection == self.name,
                Document.id == doc_id
            )
        ).one_or_none()
        if row is None:
            raise DocumentNotFound(self.name, doc_id)
        return self._to_doc(doc_id, row.rev, row.body)

    def insert(self, doc: Dict[str, Any]) -> Dict[str, str]:
        """
        Crear el documento, o actualizarlo si trae `_rev`.

        Retorna {"id", "rev"} con la nueva revisión.
        """
        doc_id = doc.get("_id") or uuid.uuid4().hex
        current_rev = doc.get("_rev")
        body = {k: v for k, v in doc.items() if k not in ("_id", "_rev")}
        new_rev = _next_rev(current_rev)

        if current_rev is None:
            try:
                self.db.execute(
                    insert(Document).values(
                        collection=self.name, id=doc_id, rev=new_rev, body=body
                    )
                )
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                raise RevisionConflict(self.name, doc_id)
        else:
            result = self.db.execute(
                update(Document)
                .where(
                    Document.collection == self.name,
                    Document.id == doc_id,
                    Document.rev == current_rev
                )
                .values(rev=new_rev, body=body)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                self.db.rollback()
                self._raise_write_failure(doc_id)
            self.db.commit()

        return {"id": doc_id, "rev": new_rev}

    def update(
        self,
        doc_id: str,
        mutate: Callable[[Dict[str, Any]], None],
        max_attempts: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Leer, aplicar `mutate` y escribir con la revisión leída,
        reintentando sobre conflicto. Retorna el documento guardado.
        """
        attempts = max_attempts or settings.stock_update_max_retries
        for attempt in range(1, attempts + 1):
            doc = self.get(doc_id)
            mutate(doc)
            try:
                saved = self.insert(doc)
            except RevisionConflict:
                logger.debug(f"Conflicto actualizando {self.name}/{doc_id} (intento {attempt})")
                continue
            doc["_rev"] = saved["rev"]
            return doc
        raise RevisionConflict(self.name, doc_id)

    def destroy(self, doc_id: str, rev: str):
        result = self.db.execute(
            delete(Document)
            .where(
                Document.collection == self.name,
                Document.id == doc_id,
                Document.rev == rev
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            self._raise_write_failure(doc_id)
        self.db.commit()

    def find(
        self,
        selector: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None,
        sort_by: Optional[str] = None,
        descending: bool = False
    ) -> List[Dict[str, Any]]:
        """
        Documentos que cumplen el selector, por fecha de alta salvo `sort_by`.

        Las igualdades de primer nivel contra strings se filtran en la base de
        datos por ruta JSON; el resto del selector se evalúa en Python. Si todo
        el selector se resolvió en SQL y no hay `sort_by`, el límite también.
        """
        selector = selector or {}
        limit = limit or settings.find_default_limit

        query = (
            select(Document.id, Document.rev, Document.body)
            .where(Document.collection == self.name)
            .order_by(Document.created_at, Document.id)
        )
        pushed = _string_equalities(selector)
        for key, value in pushed.items():
            query = query.where(Document.body[key].as_string() == value)
        if len(pushed) == len(selector) and not sort_by:
            query = query.limit(limit)

        docs = [
            self._to_doc(row.id, row.rev, row.body)
            for row in self.db.execute(query).all()
            if matches_selector(row.body, selector)
        ]
        if sort_by:
            docs.sort(key=lambda d: (d.get(sort_by) is None, d.get(sort_by) or ""), reverse=descending)
        return docs[:limit]

    def _raise_write_failure(self, doc_id: str):
        exists = self.db.execute(
            select(Document.id).where(
                Document.collection == self.name,
                Document.id == doc_id
            )
        ).first()
        if exists is None:
            raise DocumentNotFound(self.name, doc_id)
        raise RevisionConflict(self.name, doc_id)

    @staticmethod
    def _to_doc(doc_id: str, rev: str, body: Dict[str, Any]) -> Dict[str, Any]:
        doc = dict(body)
        doc["_id"] = doc_id
        doc["_rev"] = rev
        return doc


class DocumentStore:
    """Las cuatro colecciones del sistema sobre una misma sesión"""

    def __init__(self, db: Session):
        self.db = db
        self.users = Collection(db, settings.users_collection)
        self.products = Collection(db, settings.products_collection)
        self.customers = Collection(db, settings.customers_collection)
        self.sales = Collection(db, settings.sales_collection)
