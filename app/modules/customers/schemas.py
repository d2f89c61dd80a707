from pydantic import BaseModel, Field
from typing import Optional

# ==================== REQUEST SCHEMAS ====================

class CustomerCreateRequest(BaseModel):
    name: Optional[str] = Field(None, description="Nombre del cliente (requerido)")
    email: Optional[str] = Field(None, description="Email de contacto")
    phone: Optional[str] = Field(None, description="Teléfono")
    address: Optional[str] = Field(None, description="Dirección")

# ==================== RESPONSE SCHEMAS ====================

class CustomerResponse(BaseModel):
    id: str
    name: str
    email: str = ""
    phone: str = ""
    address: str = ""
    created_at: Optional[str] = None

class CustomerCreatedResponse(BaseModel):
    message: str
    id: str
    customer: CustomerResponse
