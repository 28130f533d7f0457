from abc import ABC, abstractmethod

from suivicolis.notifications.models import NotificationChannel


class AbstractNotificationSender(ABC):
    """Interface abstraite de la capacité d'envoi externe (SMS, WhatsApp, email)."""

    @abstractmethod
    async def send(self, channel: NotificationChannel, destination: str, message: str) -> bool:
        """Envoie un message sur un canal.

        Returns:
            True si le fournisseur a accepté le message, False sinon.

        Raises:
            ExternalServiceFailure: si le fournisseur est injoignable.
        """
        raise NotImplementedError
