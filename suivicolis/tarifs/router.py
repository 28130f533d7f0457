from typing import Annotated, List

from fastapi import APIRouter, Depends, status

from suivicolis.auth.dependencies import CurrentActor, SessionDep
from suivicolis.core.schemas import ActionResult
from suivicolis.tarifs.models import TarifCreate, TarifRead
from suivicolis.tarifs.service import TarifService


def get_tarif_service(session: SessionDep) -> TarifService:
    return TarifService(session)


TarifServiceDep = Annotated[TarifService, Depends(get_tarif_service)]

tarif_router = APIRouter()


@tarif_router.get("/", response_model=ActionResult[List[TarifRead]])
async def list_tarifs_endpoint(service: TarifServiceDep, actor: CurrentActor):
    return ActionResult.ok(await service.list_tarifs(actor))


@tarif_router.post("/", response_model=ActionResult[TarifRead], status_code=status.HTTP_201_CREATED)
async def create_tarif_endpoint(payload: TarifCreate, service: TarifServiceDep, actor: CurrentActor):
    return ActionResult.ok(await service.create_tarif(payload, actor))


@tarif_router.post("/{tarif_id}/default", response_model=ActionResult[TarifRead])
async def set_default_tarif_endpoint(tarif_id: str, service: TarifServiceDep, actor: CurrentActor):
    return ActionResult.ok(await service.set_default(tarif_id, actor))


@tarif_router.delete("/{tarif_id}", response_model=ActionResult)
async def delete_tarif_endpoint(tarif_id: str, service: TarifServiceDep, actor: CurrentActor):
    await service.delete_tarif(tarif_id, actor)
    return ActionResult.ok()
