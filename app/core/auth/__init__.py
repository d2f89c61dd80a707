from .dependencies import get_current_user
from .schemas import UserResponse

__all__ = [
    "get_current_user",
    "UserResponse"
]
