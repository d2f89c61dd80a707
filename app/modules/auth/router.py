# app/modules/auth/router.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.config.database import get_db
from .service import AuthService
from .schemas import (
    LoginRequest, MessageResponse, PasswordResetConfirm, PasswordResetRequest,
    PasswordResetResponse, RegisterRequest, RegisterResponse, TokenResponse
)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    """Registrar usuario; el email no puede estar registrado"""
    return AuthService(db).register(data)


@router.post("/login", response_model=TokenResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    """
    Login con email y contraseña. Devuelve un token bearer válido por 8 horas.
    """
    return AuthService(db).authenticate(data)


@router.post("/request-reset", response_model=PasswordResetResponse, response_model_exclude_none=True)
def request_reset(data: PasswordResetRequest, db: Session = Depends(get_db)):
    """Generar token de restablecimiento (válido 1 hora) y enviarlo por correo"""
    return AuthService(db).request_password_reset(data.email)


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(data: PasswordResetConfirm, db: Session = Depends(get_db)):
    return AuthService(db).consume_reset_token(data)
