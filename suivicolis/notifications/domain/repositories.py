from abc import ABC, abstractmethod
from typing import List

from suivicolis.notifications.models import Notification


class AbstractNotificationRepository(ABC):

    @abstractmethod
    async def add(self, notification: Notification) -> Notification:
        """Enregistre une tentative et la valide immédiatement."""
        raise NotImplementedError

    @abstractmethod
    async def list_for_order(self, commande_id: str, organization_id: str) -> List[Notification]:
        """Tentatives d'une commande, de la plus récente à la plus ancienne."""
        raise NotImplementedError
