"""
Outgoing mail for account activation and password reset
"""

import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from fastapi import Request

from scolitrack.config import Settings
from scolitrack.core.exceptions import MailDeliveryFailed

logger = logging.getLogger(__name__)


class Mailer:
    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        app_url: str,
        user: Optional[str] = None,
        password: Optional[str] = None,
        use_ssl: bool = True,
        activation_ttl_hours: int = 72,
        reset_ttl_minutes: int = 60,
        timeout: int = 10,
    ):
        self.host = host
        self.port = port
        self.sender = sender
        self.app_url = app_url.rstrip("/")
        self.user = user
        self.password = password
        self.use_ssl = use_ssl
        self.activation_ttl_hours = activation_ttl_hours
        self.reset_ttl_minutes = reset_ttl_minutes
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "Mailer":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            sender=settings.smtp_from,
            app_url=settings.app_url,
            user=settings.smtp_user,
            password=settings.smtp_password,
            use_ssl=settings.smtp_use_ssl,
            activation_ttl_hours=settings.activation_token_ttl_hours,
            reset_ttl_minutes=settings.reset_token_ttl_minutes,
        )

    def _connect(self) -> smtplib.SMTP:
        if self.use_ssl:
            return smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
        server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        server.starttls()
        return server

    def send(self, to_email: str, subject: str, body_html: str) -> None:
        msg = MIMEMultipart()
        msg["From"] = self.sender
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.attach(MIMEText(body_html, "html", "utf-8"))

        try:
            with self._connect() as server:
                if self.user and self.password:
                    server.login(self.user, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send '{subject}' email: {e}")
            raise MailDeliveryFailed() from e
        logger.info(f"Sent '{subject}' email")

    def send_activation_email(self, email: str, name: str, token: str) -> None:
        url = f"{self.app_url}/activate-account?token={token}"
        body = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
          <h1>Bienvenue sur Scolitrack</h1>
          <p>Bonjour {html.escape(name)},</p>
          <p>Un compte a été créé pour vous. Activez-le et choisissez votre mot de passe :</p>
          <p><a href="{url}">Activer mon compte</a></p>
          <p>Ce lien expire dans {self.activation_ttl_hours} heures.</p>
          <p style="word-break: break-all;">{url}</p>
        </div>
        """
        self.send(email, "Activation de votre compte Scolitrack", body)

    def send_reset_password_email(self, email: str, token: str) -> None:
        url = f"{self.app_url}/reset-password?token={token}"
        body = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
          <h1>Réinitialisation de votre mot de passe</h1>
          <p>Une demande de réinitialisation a été faite pour votre compte.</p>
          <p><a href="{url}">Choisir un nouveau mot de passe</a></p>
          <p>Ce lien expire dans {self.reset_ttl_minutes} minutes. Si vous n'êtes pas à
          l'origine de cette demande, ignorez cet email.</p>
          <p style="word-break: break-all;">{url}</p>
        </div>
        """
        self.send(email, "Réinitialisation de votre mot de passe Scolitrack", body)


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer
