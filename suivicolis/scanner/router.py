from typing import Annotated

from fastapi import APIRouter, Depends

from suivicolis.auth.dependencies import CurrentActor
from suivicolis.config import settings
from suivicolis.core.schemas import ActionResult
from suivicolis.orders.application.schemas import CommandeResponse
from suivicolis.orders.dependencies import OrderRepositoryDep
from suivicolis.scanner.application.services import PickupVerifier
from suivicolis.scanner.schemas import ScanRequest


def get_pickup_verifier(order_repo: OrderRepositoryDep) -> PickupVerifier:
    return PickupVerifier(order_repo, currency=settings.CURRENCY)


PickupVerifierDep = Annotated[PickupVerifier, Depends(get_pickup_verifier)]

scanner_router = APIRouter()


@scanner_router.post("/validate", response_model=ActionResult[CommandeResponse])
async def validate_scan_endpoint(payload: ScanRequest, verifier: PickupVerifierDep, actor: CurrentActor):
    return ActionResult.ok(await verifier.validate(payload.qr_data, actor))


@scanner_router.post("/preview", response_model=ActionResult[CommandeResponse])
async def preview_scan_endpoint(payload: ScanRequest, verifier: PickupVerifierDep, actor: CurrentActor):
    return ActionResult.ok(await verifier.preview(payload.qr_data, actor))
