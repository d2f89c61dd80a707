from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal

# ==================== CLASE BASE PARA RESPUESTAS (Pydantic v2) ====================

class ProductsBaseModel(BaseModel):
    """
    Clase base para los esquemas de respuesta de productos,
    con configuración de Pydantic v2.
    """
    model_config = ConfigDict(
        json_encoders={
            Decimal: float,
            datetime: lambda v: v.isoformat(),
        }
    )

# ==================== RESPONSE SCHEMAS ====================

class ProductResponse(ProductsBaseModel):
    id: str
    name: str
    description: str = ""
    price: Decimal
    stock: int
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    has_photo: bool = False
    photo_base64: Optional[str] = Field(None, description="Data URI de la imagen del producto")

class ProductMessageResponse(BaseModel):
    message: str
    id: str
