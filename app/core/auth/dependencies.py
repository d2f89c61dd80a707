# app/core/auth/dependencies.py
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.exceptions import UnauthorizedError
from .schemas import UserResponse
from .security import TokenError, decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> UserResponse:
    """
    Dependencia para rutas protegidas: exige `Authorization: Bearer <token>`.
    Token ausente, mal formado o expirado -> 401.
    """
    if credentials is None:
        raise UnauthorizedError("No autorizado")
    if credentials.scheme.lower() != "bearer":
        raise UnauthorizedError("Formato de token inválido")

    try:
        payload = decode_access_token(credentials.credentials)
    except TokenError:
        raise UnauthorizedError("Token inválido")

    return UserResponse(
        id=payload["sub"],
        email=payload.get("email", ""),
        name=payload.get("name") or ""
    )
