from .router import router as auth_router
from .service import AuthService
from .repository import UserRepository

__all__ = [
    "auth_router",
    "AuthService",
    "UserRepository"
]
