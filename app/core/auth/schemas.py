from pydantic import BaseModel

class UserResponse(BaseModel):
    """Identidad del usuario autenticado (contenido del token)"""
    id: str
    email: str
    name: str = ""
