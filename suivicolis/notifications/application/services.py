import logging
from typing import List, Optional, Tuple

from suivicolis.clients.models import Client
from suivicolis.core.exceptions import ExternalServiceFailure
from suivicolis.notifications.application.messages import compose_ready_message
from suivicolis.notifications.domain.repositories import AbstractNotificationRepository
from suivicolis.notifications.domain.sender import AbstractNotificationSender
from suivicolis.notifications.models import Notification, NotificationChannel, NotificationStatus
from suivicolis.orders.models import Commande

logger = logging.getLogger(__name__)


def destination_for(client: Client, channel: NotificationChannel) -> Optional[str]:
    if channel == NotificationChannel.WHATSAPP:
        return client.whatsapp
    if channel == NotificationChannel.EMAIL:
        return client.email
    return client.telephone


class NotificationDispatcher:
    """Compose les messages de mise à disposition et enregistre chaque tentative d'envoi.

    Un échec d'envoi n'est jamais propagé: il devient une Notification 'failed'.
    """

    def __init__(
        self,
        notification_repo: AbstractNotificationRepository,
        sender: AbstractNotificationSender,
        public_base_url: str,
        currency: str = "XOF",
    ):
        self.notification_repo = notification_repo
        self.sender = sender
        self.public_base_url = public_base_url
        self.currency = currency

    def compose(self, commande: Commande) -> str:
        return compose_ready_message(commande, self.public_base_url, self.currency)

    async def notify(self, commande: Commande, client: Client, channel: NotificationChannel) -> Tuple[bool, Notification]:
        """Envoi manuel sur exactement ce canal."""
        message = self.compose(commande)
        notification = await self._attempt(commande, channel, destination_for(client, channel), message)
        return notification.status == NotificationStatus.SENT, notification

    async def notify_ready(self, commande: Commande, client: Client) -> List[Notification]:
        """Envoi automatique après passage à 'disponible': WhatsApp d'abord, puis SMS au téléphone."""
        attempts: List[Notification] = []
        try:
            message = self.compose(commande)
            if client.whatsapp:
                notification = await self._attempt(commande, NotificationChannel.WHATSAPP, client.whatsapp, message)
                attempts.append(notification)
                if notification.status == NotificationStatus.SENT:
                    return attempts
            if client.telephone or not attempts:
                attempts.append(
                    await self._attempt(commande, NotificationChannel.SMS, client.telephone, message)
                )
        except Exception as e:
            logger.error(
                f"[NotificationDispatcher] Erreur inattendue lors de la notification de la commande {commande.id}: {e}",
                exc_info=True,
            )
        return attempts

    async def list_for_order(self, commande_id: str, organization_id: str) -> List[Notification]:
        return await self.notification_repo.list_for_order(commande_id, organization_id)

    async def _attempt(
        self,
        commande: Commande,
        channel: NotificationChannel,
        destination: Optional[str],
        message: str,
    ) -> Notification:
        sent = False
        error: Optional[str] = None
        if not destination:
            error = f"Aucune destination {channel.value} pour ce client"
            logger.warning(f"[NotificationDispatcher] {error} (commande {commande.id}).")
        else:
            try:
                sent = await self.sender.send(channel, destination, message)
                if not sent:
                    error = "Envoi refusé par le fournisseur"
            except ExternalServiceFailure as e:
                logger.warning(f"[NotificationDispatcher] Échec du service d'envoi ({channel.value}): {e.message}")
                error = e.message
            except Exception as e:
                logger.error(f"[NotificationDispatcher] Erreur inattendue du sender ({channel.value}): {e}", exc_info=True)
                error = str(e)

        notification = Notification(
            commande_id=commande.id,
            organization_id=commande.organization_id,
            type=channel,
            status=NotificationStatus.SENT if sent else NotificationStatus.FAILED,
            destination=destination,
            message=message,
            error=error[:500] if error else None,
        )
        recorded = await self.notification_repo.add(notification)
        logger.info(
            f"[NotificationDispatcher] Notification {channel.value} {recorded.status.value} "
            f"pour la commande {commande.numero_commande}."
        )
        return recorded
