import logging
from typing import List, Tuple

from suivicolis.notifications.domain.sender import AbstractNotificationSender
from suivicolis.notifications.models import NotificationChannel

logger = logging.getLogger(__name__)


class MockNotificationSender(AbstractNotificationSender):
    """Simulation: journalise le message et répond toujours True."""

    def __init__(self):
        self.sent: List[Tuple[NotificationChannel, str, str]] = []

    async def send(self, channel: NotificationChannel, destination: str, message: str) -> bool:
        logger.info(f"[MockNotificationSender] {channel.value.upper()} simulé vers {destination}: {message}")
        self.sent.append((channel, destination, message))
        return True
