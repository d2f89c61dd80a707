# app/modules/auth/service.py
import logging
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from html import escape
from typing import Any, Dict, Optional
from urllib.parse import quote

from sqlalchemy.orm import Session

from app.config.settings import settings
from app.core.auth.schemas import UserResponse
from app.core.auth.security import create_access_token, hash_password, verify_password
from app.core.exceptions import (
    EmailAlreadyRegistered, InvalidCredentials, InvalidResetToken,
    MailTransportUnavailable, ResetTokenExpired, UserNotFound, ValidationError
)
from app.shared.database.document_store import RevisionConflict
from app.shared.services.mailer import Mailer
from .repository import UserRepository
from .schemas import LoginRequest, PasswordResetConfirm, RegisterRequest

logger = logging.getLogger(__name__)


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def user_doc_id(email: str) -> str:
    """ID derivado del email: la clave primaria garantiza la unicidad del registro"""
    return f"user:{uuid.uuid5(uuid.NAMESPACE_URL, 'mailto:' + email)}"


class AuthService:
    """
    Registro, login y restablecimiento de contraseña
    """

    def __init__(self, db: Session, mailer: Optional[Mailer] = None):
        self.db = db
        self.repository = UserRepository(db)
        self.mailer = mailer or Mailer()

    # ==================== REGISTRO Y LOGIN ====================

    def register(self, data: RegisterRequest) -> Dict[str, Any]:
        email = normalize_email(data.email)
        if not email or not data.password:
            raise ValidationError("email y password son requeridos")

        if self.repository.find_by_email(email):
            raise EmailAlreadyRegistered()

        doc = {
            "_id": user_doc_id(email),
            "email": email,
            "name": (data.name or "").strip(),
            "password_hash": hash_password(data.password),
            "created_at": datetime.now(timezone.utc).isoformat()
        }
        try:
            user_id = self.repository.create_user(doc)
        except RevisionConflict:
            # Registro concurrente del mismo email
            raise EmailAlreadyRegistered()

        logger.info(f"👤 Usuario registrado {user_id}")
        return {"message": "Usuario creado", "id": user_id}

    def authenticate(self, data: LoginRequest) -> Dict[str, Any]:
        """
        Email desconocido y contraseña incorrecta producen exactamente el
        mismo error.
        """
        email = normalize_email(data.email)
        user = self.repository.find_by_email(email) if email else None
        password_hash = user.get("password_hash") if user else None

        if not verify_password(data.password or "", password_hash) or user is None:
            raise InvalidCredentials()

        user_info = UserResponse(id=user["_id"], email=user["email"], name=user.get("name") or "")
        token = create_access_token(user_info.id, user_info.email, user_info.name)
        return {"token": token, "user": user_info}

    # ==================== RESTABLECER CONTRASEÑA ====================

    def issue_reset_token(self, email: str) -> str:
        """Token de un solo uso que expira `reset_token_expire_minutes` después de emitido"""
        email = normalize_email(email)
        user = self.repository.find_by_email(email) if email else None
        if not user:
            raise UserNotFound()

        token = str(uuid.uuid4())
        expires = datetime.now(timezone.utc) + timedelta(minutes=settings.reset_token_expire_minutes)

        def set_token(doc: Dict[str, Any]):
            doc["reset_token"] = token
            doc["reset_expires"] = expires.isoformat()

        self.repository.update_user(user["_id"], set_token)
        return token

    def request_password_reset(self, email: Optional[str]) -> Dict[str, Any]:
        if not normalize_email(email):
            raise ValidationError("Email requerido")

        if not self.mailer.configured and not settings.debug:
            raise MailTransportUnavailable()

        token = self.issue_reset_token(email)

        if not self.mailer.configured:
            logger.warning("SMTP no configurado - devolviendo token en la respuesta (modo debug)")
            return {"message": "Token generado (SMTP no configurado)", "token": token}

        normalized = normalize_email(email)
        reset_link = (
            f"{settings.app_base_url}/reset-password.html"
            f"?token={token}&email={quote(normalized)}"
        )
        link = escape(reset_link)
        self.mailer.send(
            to=normalized,
            subject="Solicitud de restablecimiento de contraseña",
            body=(
                "Se solicitó restablecer la contraseña. Si fue usted, abra este enlace "
                f"y ponga su nueva contraseña:\n\n{reset_link}\n\n"
                "Si no solicitó este cambio, ignore este correo."
            ),
            html=(
                "<p>Se solicitó restablecer la contraseña. Si fue usted, abra este enlace "
                "y ponga su nueva contraseña:</p>"
                f'<p><a href="{link}">{link}</a></p>'
                "<p>Si no solicitó este cambio, ignore este correo.</p>"
            )
        )
        return {"message": "Correo de restablecimiento enviado"}

    def consume_reset_token(self, data: PasswordResetConfirm) -> Dict[str, Any]:
        email = normalize_email(data.email)
        if not email or not data.token or not data.new_password:
            raise ValidationError("email, token y new_password son requeridos")

        user = self.repository.find_by_email(email)
        if not user:
            raise UserNotFound()
        self._check_reset_token(user, data.token)

        new_hash = hash_password(data.new_password)

        def apply_reset(doc: Dict[str, Any]):
            # Revalidar sobre la versión releída: el token se usa una sola vez
            self._check_reset_token(doc, data.token)
            doc["password_hash"] = new_hash
            doc.pop("reset_token", None)
            doc.pop("reset_expires", None)

        self.repository.update_user(user["_id"], apply_reset)
        logger.info(f"🔑 Contraseña restablecida para {user['_id']}")
        return {"message": "Contraseña actualizada"}

    @staticmethod
    def _check_reset_token(user: Dict[str, Any], token: str):
        stored = user.get("reset_token")
        if not stored or not secrets.compare_digest(stored.encode(), token.encode()):
            raise InvalidResetToken()

        expires = user.get("reset_expires")
        try:
            expires_at = datetime.fromisoformat(expires) if expires else None
        except ValueError:
            expires_at = None
        if expires_at is None or datetime.now(timezone.utc) > expires_at:
            raise ResetTokenExpired()
