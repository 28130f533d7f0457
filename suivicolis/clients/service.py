import logging
from typing import List, Optional, Tuple

from suivicolis.auth.models import Actor
from suivicolis.clients.models import Client, ClientCreate, ClientRead, ClientUpdate
from suivicolis.clients.repositories import AbstractClientRepository
from suivicolis.core.exceptions import ForbiddenException, InvalidStateException, NotFoundException
from suivicolis.organizations.repositories import OrganizationRepository

logger = logging.getLogger(__name__)


class ClientService:
    """Gestion des clients d'une organisation."""

    def __init__(self, client_repo: AbstractClientRepository, organization_repo: OrganizationRepository):
        self.client_repo = client_repo
        self.organization_repo = organization_repo

    async def resolve_client(self, client_id: str, actor: Actor) -> Client:
        """Charge un client de l'organisation de l'acteur, Forbidden s'il appartient à une autre."""
        client = await self.client_repo.get(client_id, actor.organization_id)
        if client is not None:
            return client
        if await self.client_repo.get_unscoped(client_id) is not None:
            logger.warning(f"[ClientService] Accès refusé au client {client_id} pour l'organisation {actor.organization_id}.")
            raise ForbiddenException("Ce client ne vous appartient pas")
        raise NotFoundException("Client", client_id)

    async def create_client(self, data: ClientCreate, actor: Actor) -> ClientRead:
        await self.organization_repo.get_active(actor.organization_id)
        client = await self.client_repo.add(actor.organization_id, data.model_dump())
        return ClientRead.model_validate(client)

    async def get_client(self, client_id: str, actor: Actor) -> ClientRead:
        return ClientRead.model_validate(await self.resolve_client(client_id, actor))

    async def list_clients(self, actor: Actor, search: Optional[str], limit: int, offset: int) -> Tuple[List[ClientRead], int]:
        clients, total = await self.client_repo.list(actor.organization_id, search, limit, offset)
        return [ClientRead.model_validate(c) for c in clients], total

    async def update_client(self, client_id: str, data: ClientUpdate, actor: Actor) -> ClientRead:
        client = await self.resolve_client(client_id, actor)
        updated = await self.client_repo.update(client, data.model_dump(exclude_unset=True))
        logger.info(f"[ClientService] Client {client_id} mis à jour.")
        return ClientRead.model_validate(updated)

    async def delete_client(self, client_id: str, actor: Actor) -> None:
        client = await self.resolve_client(client_id, actor)
        if await self.client_repo.count_orders(client_id) > 0:
            raise InvalidStateException("Impossible de supprimer un client qui possède des commandes")
        await self.client_repo.delete(client)
        logger.info(f"[ClientService] Client {client_id} supprimé.")
