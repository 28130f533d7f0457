import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from suivicolis.clients.models import Client
from suivicolis.orders.models import Commande

logger = logging.getLogger(__name__)


class AbstractClientRepository(ABC):
    """Interface abstraite pour le repository des Clients (toujours filtré par organisation)."""

    @abstractmethod
    async def get(self, client_id: str, organization_id: str) -> Optional[Client]:
        raise NotImplementedError

    @abstractmethod
    async def get_unscoped(self, client_id: str) -> Optional[Client]:
        """Lecture sans filtre, réservée à la distinction NotFound / Forbidden."""
        raise NotImplementedError

    @abstractmethod
    async def list(self, organization_id: str, search: Optional[str], limit: int, offset: int) -> Tuple[List[Client], int]:
        raise NotImplementedError

    @abstractmethod
    async def add(self, organization_id: str, data: Dict[str, Any]) -> Client:
        raise NotImplementedError

    @abstractmethod
    async def update(self, client: Client, data: Dict[str, Any]) -> Client:
        raise NotImplementedError

    @abstractmethod
    async def delete(self, client: Client) -> None:
        raise NotImplementedError

    @abstractmethod
    async def count_orders(self, client_id: str) -> int:
        raise NotImplementedError


class SQLAlchemyClientRepository(AbstractClientRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, client_id: str, organization_id: str) -> Optional[Client]:
        stmt = select(Client).where(Client.id == client_id, Client.organization_id == organization_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_unscoped(self, client_id: str) -> Optional[Client]:
        return await self.session.get(Client, client_id)

    async def list(self, organization_id: str, search: Optional[str], limit: int, offset: int) -> Tuple[List[Client], int]:
        conditions = [Client.organization_id == organization_id]
        if search:
            pattern = f"%{search.lower()}%"
            conditions.append(or_(func.lower(Client.nom).like(pattern), Client.telephone.like(f"%{search}%")))

        total = await self.session.scalar(select(func.count()).select_from(Client).where(*conditions))
        stmt = select(Client).where(*conditions).order_by(Client.nom).limit(limit).offset(offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total or 0

    async def add(self, organization_id: str, data: Dict[str, Any]) -> Client:
        client = Client(organization_id=organization_id, **data)
        self.session.add(client)
        await self.session.commit()
        await self.session.refresh(client)
        logger.info(f"Client {client.id} ajouté pour l'organisation {organization_id}.")
        return client

    async def update(self, client: Client, data: Dict[str, Any]) -> Client:
        for key, value in data.items():
            setattr(client, key, value)
        self.session.add(client)
        await self.session.commit()
        await self.session.refresh(client)
        return client

    async def delete(self, client: Client) -> None:
        await self.session.delete(client)
        await self.session.commit()

    async def count_orders(self, client_id: str) -> int:
        stmt = select(func.count()).select_from(Commande).where(Commande.client_id == client_id)
        return (await self.session.scalar(stmt)) or 0
