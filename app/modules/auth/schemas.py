from pydantic import AliasChoices, BaseModel, Field
from typing import Optional

from app.core.auth.schemas import UserResponse

# ==================== REQUEST SCHEMAS ====================

class RegisterRequest(BaseModel):
    email: Optional[str] = Field(None, description="Email (único)")
    password: Optional[str] = Field(None, description="Contraseña")
    name: Optional[str] = Field("", description="Nombre a mostrar")

class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None

class PasswordResetRequest(BaseModel):
    email: Optional[str] = None

class PasswordResetConfirm(BaseModel):
    email: Optional[str] = None
    token: Optional[str] = None
    new_password: Optional[str] = Field(
        None, validation_alias=AliasChoices("new_password", "newPassword")
    )

# ==================== RESPONSE SCHEMAS ====================

class MessageResponse(BaseModel):
    message: str

class RegisterResponse(BaseModel):
    message: str
    id: str

class TokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserResponse

class PasswordResetResponse(BaseModel):
    message: str
    token: Optional[str] = Field(None, description="Sólo en modo debug sin SMTP configurado")
