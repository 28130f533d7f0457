import asyncio
import logging
import smtplib
from email.mime.text import MIMEText
from typing import Optional

from suivicolis.core.exceptions import ExternalServiceFailure

logger = logging.getLogger(__name__)

DEFAULT_SUBJECT = "Votre commande est prête pour le retrait"


class SmtpEmailSender:
    """Envoi d'emails texte via SMTP standard (STARTTLS)."""

    def __init__(
        self,
        smtp_host: str,
        smtp_port: int,
        smtp_user: str,
        smtp_password: str,
        default_sender: Optional[str] = None,
        use_tls: bool = True,
    ):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.default_sender = default_sender or smtp_user
        self.use_tls = use_tls
        logger.info(f"[SmtpEmailSender] Initialisé pour {smtp_host}:{smtp_port}")

    async def send_email(self, recipient_email: str, body: str, subject: str = DEFAULT_SUBJECT) -> bool:
        # smtplib est bloquant
        return await asyncio.to_thread(self._send, recipient_email, body, subject)

    def _send(self, recipient_email: str, body: str, subject: str) -> bool:
        msg = MIMEText(body, "plain", "utf-8")
        msg["From"] = self.default_sender
        msg["To"] = recipient_email
        msg["Subject"] = subject

        try:
            logger.debug(f"[SmtpEmailSender] Connexion à {self.smtp_host}:{self.smtp_port}")
            with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                if self.use_tls:
                    server.starttls()
                server.login(self.smtp_user, self.smtp_password)
                server.sendmail(self.default_sender, [recipient_email], msg.as_string())
            logger.info(f"[SmtpEmailSender] Email envoyé avec succès à {recipient_email}")
            return True
        except smtplib.SMTPRecipientsRefused as e:
            logger.error(f"[SmtpEmailSender] Destinataire refusé: {recipient_email}. Détails: {e.recipients}")
            return False
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"[SmtpEmailSender] Erreur SMTP lors de l'envoi à {recipient_email}: {e}", exc_info=True)
            raise ExternalServiceFailure("Erreur SMTP", original_exception=e)
