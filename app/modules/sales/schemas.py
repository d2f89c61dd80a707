from pydantic import BaseModel, Field, ConfigDict
from typing import Any, List, Optional
from datetime import datetime
from decimal import Decimal

# ==================== CLASE BASE PARA RESPUESTAS (Pydantic v2) ====================

class SalesBaseModel(BaseModel):
    """
    Clase base para todos los esquemas de respuesta,
    con configuración de Pydantic v2.
    """
    model_config = ConfigDict(
        from_attributes=True,
        json_encoders={
            Decimal: float,
            datetime: lambda v: v.isoformat(),
        }
    )

# ==================== REQUEST SCHEMAS ====================

class SaleItemRequest(BaseModel):
    product_id: str = Field(..., description="ID del producto")
    # Se valida en el servicio para responder InvalidQuantity antes de leer documentos
    quantity: Any = Field(1, description="Cantidad (entero positivo)")

class SaleCreateRequest(BaseModel):
    customer_id: Optional[str] = Field(None, description="ID del cliente; vacío para venta a invitado")
    customer_name: Optional[str] = Field(None, description="Nombre a mostrar del cliente")
    items: List[SaleItemRequest] = Field(default_factory=list, description="Items de la venta")

# ==================== RESPONSE SCHEMAS ====================

class SaleItemResponse(SalesBaseModel):
    product_id: str
    product_name: str
    quantity: int
    unit_price: Decimal
    total: Decimal

class SaleResponse(SalesBaseModel):
    id: str
    customer_id: str
    customer_name: str
    items: List[SaleItemResponse]
    total: Decimal
    created_at: Optional[str] = None

class SaleCreatedResponse(SalesBaseModel):
    message: str
    sale_id: str
    total: Decimal
