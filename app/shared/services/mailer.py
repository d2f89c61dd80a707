# app/shared/services/mailer.py
import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

from app.config.settings import settings
from app.core.exceptions import MailTransportUnavailable

logger = logging.getLogger(__name__)


class Mailer:
    """
    Envío de correos por SMTP (STARTTLS), bloqueante: se invoca desde el
    threadpool de la petición. Sin SMTP_HOST/SMTP_USER/SMTP_PASSWORD
    el transporte queda deshabilitado.
    """

    def __init__(self):
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.user = settings.smtp_user
        self.password = settings.smtp_password
        self.sender = settings.smtp_from or settings.smtp_user

    @property
    def configured(self) -> bool:
        return settings.smtp_configured

    def send(self, to: str, subject: str, body: str, html: Optional[str] = None):
        if not self.configured:
            raise MailTransportUnavailable()

        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)
        if html:
            message.add_alternative(html, subtype="html")

        self._deliver(message)
        logger.info(f"📧 Correo enviado a {to}: {subject}")

    def _deliver(self, message: EmailMessage):
        with smtplib.SMTP(self.host, self.port, timeout=30) as smtp:
            smtp.starttls()
            smtp.login(self.user, self.password)
            smtp.send_message(message)
