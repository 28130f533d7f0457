import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from suivicolis.auth.dependencies import CurrentActor, OrganizationRepositoryDep, SessionDep
from suivicolis.clients.models import ClientCreate, ClientRead, ClientUpdate
from suivicolis.clients.repositories import SQLAlchemyClientRepository
from suivicolis.clients.service import ClientService
from suivicolis.config import settings
from suivicolis.core.schemas import ActionResult, PaginatedResponse

logger = logging.getLogger(__name__)


def get_client_service(session: SessionDep, organizations: OrganizationRepositoryDep) -> ClientService:
    return ClientService(SQLAlchemyClientRepository(session), organizations)


ClientServiceDep = Annotated[ClientService, Depends(get_client_service)]

client_router = APIRouter()


@client_router.post("/", response_model=ActionResult[ClientRead], status_code=status.HTTP_201_CREATED)
async def create_client_endpoint(payload: ClientCreate, service: ClientServiceDep, actor: CurrentActor):
    return ActionResult.ok(await service.create_client(payload, actor))


@client_router.get("/", response_model=ActionResult[PaginatedResponse[ClientRead]])
async def list_clients_endpoint(
    service: ClientServiceDep,
    actor: CurrentActor,
    response: Response,
    search: Optional[str] = None,
    limit: int = Query(default=settings.DEFAULT_PAGE_SIZE, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
):
    clients, total = await service.list_clients(actor, search, limit, offset)
    end_range = offset + len(clients) - 1 if clients else offset
    response.headers["Content-Range"] = f"clients {offset}-{end_range}/{total}"
    return ActionResult.ok(PaginatedResponse(items=clients, total=total))


@client_router.get("/{client_id}", response_model=ActionResult[ClientRead])
async def get_client_endpoint(client_id: str, service: ClientServiceDep, actor: CurrentActor):
    return ActionResult.ok(await service.get_client(client_id, actor))


@client_router.patch("/{client_id}", response_model=ActionResult[ClientRead])
async def update_client_endpoint(client_id: str, payload: ClientUpdate, service: ClientServiceDep, actor: CurrentActor):
    return ActionResult.ok(await service.update_client(client_id, payload, actor))


@client_router.delete("/{client_id}", response_model=ActionResult)
async def delete_client_endpoint(client_id: str, service: ClientServiceDep, actor: CurrentActor):
    await service.delete_client(client_id, actor)
    return ActionResult.ok()
