import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from suivicolis.notifications.domain.repositories import AbstractNotificationRepository
from suivicolis.notifications.models import Notification

logger = logging.getLogger(__name__)


class SQLAlchemyNotificationRepository(AbstractNotificationRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, notification: Notification) -> Notification:
        self.session.add(notification)
        await self.session.commit()
        await self.session.refresh(notification)
        logger.debug(
            f"Notification {notification.id} ({notification.type.value}, {notification.status.value}) "
            f"enregistrée pour la commande {notification.commande_id}."
        )
        return notification

    async def list_for_order(self, commande_id: str, organization_id: str) -> List[Notification]:
        stmt = (
            select(Notification)
            .where(Notification.commande_id == commande_id, Notification.organization_id == organization_id)
            .order_by(Notification.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
