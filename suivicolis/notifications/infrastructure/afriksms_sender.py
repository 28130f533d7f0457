"""Envoi des notifications via la passerelle HTTP AfrikSMS.

Le canal WhatsApp n'est pas proposé par AfrikSMS: ces messages partent en SMS
vers le numéro WhatsApp du client.
"""
import json
import logging
import re
from dataclasses import dataclass
from typing import Optional

import httpx

from suivicolis.core.exceptions import ExternalServiceFailure
from suivicolis.notifications.domain.sender import AbstractNotificationSender
from suivicolis.notifications.infrastructure.smtp_sender import SmtpEmailSender
from suivicolis.notifications.models import NotificationChannel

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 459
SUCCESS_CODE = 100

ERROR_MESSAGES = {
    40: "Credentials manquants ou incorrects",
    45: "Numéro de téléphone invalide",
    101: "Erreur lors de l'envoi à certains numéros",
}

SENEGAL_PREFIX = "221"
SENEGAL_MOBILE_PREFIXES = ("77", "78", "76", "70")


@dataclass
class SmsResult:
    success: bool
    error: Optional[str] = None
    message_id: Optional[str] = None


def format_phone_number(phone: str) -> Optional[str]:
    """Normalise un numéro au format international sans '+' (ex: 221771234567).

    Retourne None si le numéro n'est pas exploitable.
    """
    cleaned = re.sub(r"[^\d+]", "", re.sub(r"\s+", "", phone or ""))
    formatted: Optional[str] = None

    if cleaned.startswith("+"):
        formatted = cleaned[1:]
    elif cleaned.startswith("00"):
        formatted = cleaned[2:]
    elif cleaned.startswith("0") and len(cleaned) in (9, 10):
        formatted = SENEGAL_PREFIX + cleaned[1:]
    elif cleaned.startswith(SENEGAL_MOBILE_PREFIXES) and len(cleaned) == 9:
        formatted = SENEGAL_PREFIX + cleaned
    elif cleaned.startswith(SENEGAL_PREFIX) and len(cleaned) == 12:
        formatted = cleaned
    elif len(cleaned) == 9 and cleaned[0] in "5678":
        formatted = SENEGAL_PREFIX + cleaned

    if not formatted or not formatted.isdigit():
        logger.debug(f"Numéro invalide pour AfrikSMS: '{phone}'")
        return None
    return formatted


def parse_response(text: str) -> SmsResult:
    cleaned = text.strip()
    try:
        payload = json.loads(cleaned)
    except ValueError:
        return SmsResult(success=False, error=f"Réponse invalide: {cleaned[:100]}...")
    if not isinstance(payload, dict):
        return SmsResult(success=False, error=f"Réponse invalide: {cleaned[:100]}...")

    code = payload.get("code")
    if code == SUCCESS_CODE:
        resource_id = payload.get("resourceId")
        return SmsResult(success=True, message_id=str(resource_id) if resource_id is not None else None)
    error = ERROR_MESSAGES.get(code) or payload.get("message") or f"Erreur code {code}"
    return SmsResult(success=False, error=error)


class AfrikSmsNotificationSender(AbstractNotificationSender):

    def __init__(
        self,
        client_id: str,
        api_key: str,
        sender_id: str,
        base_url: str,
        http_client: Optional[httpx.AsyncClient] = None,
        email_sender: Optional[SmtpEmailSender] = None,
        timeout: float = 10.0,
    ):
        self.client_id = client_id
        self.api_key = api_key
        self.sender_id = sender_id
        self.base_url = base_url
        self.http_client = http_client
        self.timeout = timeout
        self.email_sender = email_sender
        logger.debug(
            f"[AfrikSmsNotificationSender] Initialisé (expéditeur={sender_id}, "
            f"email={'smtp' if email_sender else 'aucun'})."
        )

    async def send(self, channel: NotificationChannel, destination: str, message: str) -> bool:
        if channel == NotificationChannel.EMAIL:
            if self.email_sender is None:
                logger.warning("[AfrikSmsNotificationSender] Aucun fournisseur email configuré, message non envoyé.")
                return False
            return await self.email_sender.send_email(destination, message)

        if channel == NotificationChannel.WHATSAPP:
            logger.info("[AfrikSmsNotificationSender] WhatsApp indisponible chez AfrikSMS, envoi en SMS.")
        result = await self.send_sms(destination, message)
        return result.success

    async def send_sms(self, to: str, message: str) -> SmsResult:
        formatted_to = format_phone_number(to)
        if not formatted_to:
            return SmsResult(success=False, error="Numéro de téléphone invalide")
        if not message or len(message) > MAX_MESSAGE_LENGTH:
            logger.warning(f"[AfrikSmsNotificationSender] Message vide ou trop long ({len(message or '')} caractères).")
            return SmsResult(success=False, error=f"Message vide ou trop long (max {MAX_MESSAGE_LENGTH} caractères)")

        params = {
            "ClientId": self.client_id,
            "ApiKey": self.api_key,
            "SenderId": self.sender_id,
            "Message": message,
            "MobileNumbers": formatted_to,
        }
        logger.debug(f"[AfrikSmsNotificationSender] Envoi SMS vers {formatted_to}.")
        try:
            if self.http_client is not None:
                response = await self.http_client.get(self.base_url, params=params)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(self.base_url, params=params)
        except httpx.HTTPError as e:
            logger.error(f"[AfrikSmsNotificationSender] Erreur réseau AfrikSMS: {e}")
            raise ExternalServiceFailure("Erreur de connexion au service SMS", original_exception=e)

        result = parse_response(response.text)
        if result.success:
            logger.info(f"[AfrikSmsNotificationSender] SMS envoyé vers {formatted_to} (id={result.message_id}).")
        else:
            logger.error(f"[AfrikSmsNotificationSender] Échec envoi SMS vers {formatted_to}: {result.error}")
        return result
