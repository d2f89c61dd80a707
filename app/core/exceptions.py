# app/core/exceptions.py
"""
Errores de dominio de la API.

Cada error conoce su código HTTP y un código de máquina estable; los
handlers registrados en `register_exception_handlers` los convierten en
respuestas JSON `{"message": ..., "code": ...}`.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "internal_error"
    default_message: str = "Error interno del servidor"

    def __init__(self, message: Optional[str] = None, **extra: Any):
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        payload = {"message": self.message, "code": self.code}
        payload.update(self.extra)
        return payload


# ==================== 400 ====================

class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"
    default_message = "Datos inválidos"


class InvalidQuantity(ValidationError):
    code = "invalid_quantity"
    default_message = "Cantidad inválida"


class InvalidCredentials(ValidationError):
    """Mismo error para email desconocido y contraseña incorrecta."""
    code = "invalid_credentials"
    default_message = "Credenciales inválidas"


class InvalidResetToken(ValidationError):
    code = "invalid_reset_token"
    default_message = "Token inválido"


class ResetTokenExpired(ValidationError):
    code = "reset_token_expired"
    default_message = "Token expirado"


class InsufficientStock(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "insufficient_stock"

    def __init__(self, product_name: str, requested: int, available: int):
        self.product_name = product_name
        self.requested = requested
        self.available = available
        super().__init__(
            f"Stock insuficiente para producto {product_name}",
            product=product_name,
            requested=requested,
            available=available
        )


# ==================== 401 ====================

class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthorized"
    default_message = "No autorizado"


# ==================== 404 ====================

class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_message = "Recurso no encontrado"


class ProductNotFound(NotFoundError):
    code = "product_not_found"
    default_message = "Producto no encontrado"


class CustomerNotFound(NotFoundError):
    code = "customer_not_found"
    default_message = "Cliente no encontrado"


class SaleNotFound(NotFoundError):
    code = "sale_not_found"
    default_message = "Venta no encontrada"


class UserNotFound(NotFoundError):
    code = "user_not_found"
    default_message = "Usuario no encontrado"


# ==================== 409 ====================

class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"
    default_message = "El documento fue modificado por otra operación"


class EmailAlreadyRegistered(ConflictError):
    code = "email_already_registered"
    default_message = "Usuario ya existe"


class StockConflict(ConflictError):
    """Reintentos de compare-and-swap agotados; el cliente puede reintentar."""
    code = "stock_conflict"
    default_message = "Conflicto de concurrencia actualizando stock, intente de nuevo"


# ==================== 500 ====================

class InternalError(AppError):
    pass


class MailTransportUnavailable(InternalError):
    code = "mail_transport_unavailable"
    default_message = "Transporte de correo no configurado"


# ==================== HANDLERS ====================

def register_exception_handlers(app: FastAPI):
    """Convertir todos los errores en mensajes JSON en el borde de la petición"""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} - {exc.code}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail), "code": "http_error"},
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}"
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": "Datos inválidos", "code": ValidationError.code, "errors": errors}
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"❌ Error no controlado en {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": InternalError.default_message, "code": InternalError.code}
        )
