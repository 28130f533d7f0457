import logging
from typing import Annotated, Optional

from fastapi import Depends

from suivicolis.auth.dependencies import SessionDep
from suivicolis.config import settings
from suivicolis.notifications.application.services import NotificationDispatcher
from suivicolis.notifications.domain.sender import AbstractNotificationSender
from suivicolis.notifications.infrastructure.afriksms_sender import AfrikSmsNotificationSender
from suivicolis.notifications.infrastructure.mock_sender import MockNotificationSender
from suivicolis.notifications.infrastructure.persistence import SQLAlchemyNotificationRepository
from suivicolis.notifications.infrastructure.smtp_sender import SmtpEmailSender

logger = logging.getLogger(__name__)


def get_notification_sender() -> AbstractNotificationSender:
    """Fournit l'implémentation d'envoi selon la configuration (mock tant que AfrikSMS n'est pas configuré)."""
    if settings.notifications_mocked:
        return MockNotificationSender()

    email_sender: Optional[SmtpEmailSender] = None
    if settings.smtp_configured:
        email_sender = SmtpEmailSender(
            smtp_host=settings.SMTP_HOST,
            smtp_port=settings.SMTP_PORT,
            smtp_user=settings.SENDER_EMAIL,
            smtp_password=settings.SENDER_PASSWORD,
        )
    return AfrikSmsNotificationSender(
        client_id=settings.AFRIKSMS_CLIENT_ID or "",
        api_key=settings.AFRIKSMS_API_KEY,
        sender_id=settings.AFRIKSMS_SENDER_ID or "",
        base_url=settings.AFRIKSMS_BASE_URL,
        email_sender=email_sender,
        timeout=settings.AFRIKSMS_TIMEOUT_SECONDS,
    )


NotificationSenderDep = Annotated[AbstractNotificationSender, Depends(get_notification_sender)]


def get_notification_dispatcher(session: SessionDep, sender: NotificationSenderDep) -> NotificationDispatcher:
    return NotificationDispatcher(
        SQLAlchemyNotificationRepository(session),
        sender,
        public_base_url=settings.APP_PUBLIC_URL,
        currency=settings.CURRENCY,
    )


NotificationDispatcherDep = Annotated[NotificationDispatcher, Depends(get_notification_dispatcher)]
