# app/modules/products/service.py
import base64
import binascii
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from fastapi import UploadFile
from sqlalchemy.orm import Session

from app.config.settings import settings
from app.core.exceptions import ConflictError, ProductNotFound, ValidationError
from app.shared.database.document_store import DocumentNotFound, RevisionConflict, new_doc_id
from app.shared.money import money_str, to_money
from .repository import ProductRepository
from .schemas import ProductResponse

logger = logging.getLogger(__name__)

DEFAULT_PHOTO_MIME = "image/jpeg"


class ProductService:
    """
    Servicio de gestión de inventario (CRUD de productos con imagen)
    """

    def __init__(self, db: Session):
        self.db = db
        self.repository = ProductRepository(db)

    # ==================== CONSULTAS ====================

    def list_products(self) -> List[ProductResponse]:
        return [self._to_response(doc) for doc in self.repository.list_products()]

    def get_product(self, product_id: str) -> ProductResponse:
        doc = self.repository.get_product(product_id)
        if not doc:
            raise ProductNotFound()
        return self._to_response(doc)

    # ==================== ALTA / MODIFICACIÓN / BAJA ====================

    def create_product(
        self,
        name: Optional[str],
        description: Optional[str],
        price: Any,
        stock: Any,
        photo: Optional[UploadFile] = None,
        photo_base64: Optional[str] = None,
        photo_mime: Optional[str] = None
    ) -> Dict[str, Any]:
        fields = self._sanitize_input(name, description, price, stock)
        image = self._resolve_photo(photo, photo_base64, photo_mime)

        now = datetime.now(timezone.utc).isoformat()
        doc = {
            "_id": new_doc_id("product"),
            **fields,
            "created_at": now,
            "updated_at": now
        }
        if image:
            doc["photo_base64"], doc["photo_mime"] = image

        product_id = self.repository.create_product(doc)
        logger.info(f"Producto creado {product_id} ({fields['name']}, stock {fields['stock']})")
        return {"message": "Producto creado", "id": product_id}

    def update_product(
        self,
        product_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        price: Any = None,
        stock: Any = None,
        photo: Optional[UploadFile] = None,
        photo_base64: Optional[str] = None,
        photo_mime: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Actualización parcial: sólo se modifican los campos enviados.
        Se escribe con la revisión leída, igual que el descuento de stock
        de una venta, para no perder actualizaciones concurrentes.
        """
        changes: Dict[str, Any] = {}
        if name is not None:
            if not name.strip():
                raise ValidationError("Nombre es requerido")
            changes["name"] = name.strip()
        if description is not None:
            changes["description"] = description.strip()
        if price is not None:
            changes["price"] = self._parse_price(price)
        if stock is not None:
            changes["stock"] = self._parse_stock(stock)

        image = self._resolve_photo(photo, photo_base64, photo_mime)
        if image:
            changes["photo_base64"], changes["photo_mime"] = image

        def apply_changes(doc: Dict[str, Any]):
            doc.update(changes)
            doc["updated_at"] = datetime.now(timezone.utc).isoformat()

        try:
            self.repository.update_product(product_id, apply_changes)
        except DocumentNotFound:
            raise ProductNotFound()
        except RevisionConflict:
            raise ConflictError("El producto fue modificado por otra operación, intente de nuevo")

        logger.info(f"Producto actualizado {product_id}: {sorted(changes)}")
        return {"message": "Producto actualizado", "id": product_id}

    def delete_product(self, product_id: str) -> Dict[str, Any]:
        doc = self.repository.get_product(product_id)
        if not doc:
            raise ProductNotFound()
        try:
            self.repository.delete_product(product_id, doc["_rev"])
        except DocumentNotFound:
            raise ProductNotFound()
        except RevisionConflict:
            raise ConflictError("El producto fue modificado por otra operación, intente de nuevo")

        logger.info(f"Producto eliminado {product_id}")
        return {"message": "Producto eliminado", "id": product_id}

    # ==================== VALIDACIONES ====================

    def _sanitize_input(self, name, description, price, stock) -> Dict[str, Any]:
        clean_name = (name or "").strip()
        if not clean_name:
            raise ValidationError("Nombre es requerido")
        return {
            "name": clean_name,
            "description": (description or "").strip(),
            "price": self._parse_price(price if price not in (None, "") else 0),
            "stock": self._parse_stock(stock if stock not in (None, "") else 0)
        }

    @staticmethod
    def _parse_price(value: Any) -> str:
        try:
            price = to_money(value)
        except ValueError:
            raise ValidationError("Precio inválido")
        if price < 0:
            raise ValidationError("Precio inválido")
        if price > settings.max_product_price:
            raise ValidationError(f"Precio fuera de rango (máximo {settings.max_product_price})")
        return money_str(price)

    @staticmethod
    def _parse_stock(value: Any) -> int:
        if isinstance(value, bool):
            raise ValidationError("Stock inválido")
        try:
            stock = int(str(value).strip())
        except ValueError:
            raise ValidationError("Stock inválido")
        if stock < 0:
            raise ValidationError("Stock inválido")
        if stock > settings.max_product_stock:
            raise ValidationError(f"Stock fuera de rango (máximo {settings.max_product_stock})")
        return stock

    # ==================== IMÁGENES ====================

    def _resolve_photo(
        self,
        photo: Optional[UploadFile],
        photo_base64: Optional[str],
        photo_mime: Optional[str]
    ) -> Optional[Tuple[str, str]]:
        """
        Foto como archivo multipart o como base64 (con o sin prefijo data URI).
        Retorna (base64, mime) o None si no se envió imagen.
        """
        if photo is not None and photo.filename:
            content_type = photo.content_type or DEFAULT_PHOTO_MIME
            if content_type not in settings.allowed_image_formats:
                raise ValidationError(f"Formato de imagen no permitido: {content_type}")
            data = photo.file.read()
            if not data:
                return None
            self._check_image_size(len(data))
            return base64.b64encode(data).decode("ascii"), content_type

        if photo_base64:
            raw = photo_base64
            mime = photo_mime
            if raw.startswith("data:") and "," in raw:
                header, raw = raw.split(",", 1)
                if not mime:
                    mime = header[5:].split(";", 1)[0] or None
            elif "," in raw:
                raw = raw.split(",", 1)[1]
            mime = mime or DEFAULT_PHOTO_MIME
            if mime not in settings.allowed_image_formats:
                raise ValidationError(f"Formato de imagen no permitido: {mime}")
            try:
                decoded = base64.b64decode(raw, validate=True)
            except (binascii.Error, ValueError):
                raise ValidationError("Imagen base64 inválida")
            self._check_image_size(len(decoded))
            return raw, mime

        return None

    @staticmethod
    def _check_image_size(size: int):
        if size > settings.max_image_size:
            raise ValidationError(
                f"Imagen demasiado grande ({size} bytes, máximo {settings.max_image_size})"
            )

    # ==================== SERIALIZACIÓN ====================

    @staticmethod
    def _to_response(doc: Dict[str, Any]) -> ProductResponse:
        photo = doc.get("photo_base64")
        return ProductResponse(
            id=doc["_id"],
            name=doc.get("name", ""),
            description=doc.get("description") or "",
            price=to_money(doc.get("price")),
            stock=int(doc.get("stock") or 0),
            created_at=doc.get("created_at"),
            updated_at=doc.get("updated_at"),
            has_photo=bool(photo),
            photo_base64=f"data:{doc.get('photo_mime') or DEFAULT_PHOTO_MIME};base64,{photo}" if photo else None
        )
