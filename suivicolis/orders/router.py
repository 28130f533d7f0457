import logging
from typing import List, Optional

from fastapi import APIRouter, Query, Response, status

from suivicolis.auth.dependencies import CurrentActor
from suivicolis.config import settings
from suivicolis.core.schemas import ActionResult, PaginatedResponse
from suivicolis.notifications.models import DispatchResult, NotificationRead, NotificationRequest
from suivicolis.orders.application.schemas import (
    CommandeBulkCreate,
    CommandeCreate,
    CommandeDetailsUpdate,
    CommandeResponse,
    OrderStatistics,
    PublicCommandeView,
    StatusUpdate,
)
from suivicolis.orders.dependencies import OrderServiceDep
from suivicolis.orders.domain.entities import StatutCommande

logger = logging.getLogger(__name__)

order_router = APIRouter()
public_router = APIRouter()


@order_router.post("/", response_model=ActionResult[CommandeResponse], status_code=status.HTTP_201_CREATED)
async def create_order_endpoint(payload: CommandeCreate, service: OrderServiceDep, actor: CurrentActor):
    return ActionResult.ok(await service.create_order(payload, actor))


@order_router.post("/bulk", response_model=ActionResult[List[CommandeResponse]], status_code=status.HTTP_201_CREATED)
async def create_multiple_orders_endpoint(payload: CommandeBulkCreate, service: OrderServiceDep, actor: CurrentActor):
    return ActionResult.ok(await service.create_multiple_orders(payload, actor))


@order_router.get("/", response_model=ActionResult[PaginatedResponse[CommandeResponse]])
async def list_orders_endpoint(
    service: OrderServiceDep,
    actor: CurrentActor,
    response: Response,
    statut: Optional[StatutCommande] = None,
    client_id: Optional[str] = None,
    limit: int = Query(default=settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
):
    commandes, total = await service.list_orders(actor, statut, client_id, limit, offset)
    end_range = offset + len(commandes) - 1 if commandes else offset
    response.headers["Content-Range"] = f"commandes {offset}-{end_range}/{total}"
    return ActionResult.ok(PaginatedResponse(items=commandes, total=total))


# Déclarée avant /{order_id} pour ne pas être capturée par le paramètre
@order_router.get("/statistics", response_model=ActionResult[OrderStatistics])
async def order_statistics_endpoint(service: OrderServiceDep, actor: CurrentActor):
    return ActionResult.ok(await service.order_statistics(actor))


@order_router.get("/{order_id}", response_model=ActionResult[CommandeResponse])
async def get_order_endpoint(order_id: str, service: OrderServiceDep, actor: CurrentActor):
    return ActionResult.ok(await service.get_order(order_id, actor))


@order_router.patch("/{order_id}", response_model=ActionResult[CommandeResponse])
async def update_order_details_endpoint(
    order_id: str, payload: CommandeDetailsUpdate, service: OrderServiceDep, actor: CurrentActor
):
    return ActionResult.ok(await service.update_order_details(order_id, payload, actor))


@order_router.patch("/{order_id}/status", response_model=ActionResult[CommandeResponse])
async def update_status_endpoint(order_id: str, payload: StatusUpdate, service: OrderServiceDep, actor: CurrentActor):
    return ActionResult.ok(
        await service.update_status(
            order_id, payload.statut, actor, poids=payload.poids, quantite=payload.quantite, price=payload.prix_kg
        )
    )


@order_router.delete("/{order_id}", response_model=ActionResult)
async def delete_order_endpoint(order_id: str, service: OrderServiceDep, actor: CurrentActor):
    await service.delete_order(order_id, actor)
    return ActionResult.ok()


@order_router.post("/{order_id}/qr", response_model=ActionResult[CommandeResponse])
async def reissue_qr_code_endpoint(order_id: str, service: OrderServiceDep, actor: CurrentActor):
    return ActionResult.ok(await service.reissue_qr_code(order_id, actor))


@order_router.get("/{order_id}/qr.png", response_class=Response)
async def get_qr_png_endpoint(order_id: str, service: OrderServiceDep, actor: CurrentActor):
    png = await service.get_qr_png(order_id, actor)
    return Response(content=png, media_type="image/png")


@order_router.post("/{order_id}/notifications", response_model=ActionResult[DispatchResult])
async def send_notification_endpoint(
    order_id: str, payload: NotificationRequest, service: OrderServiceDep, actor: CurrentActor
):
    sent, notification = await service.send_notification(order_id, payload.channel, actor)
    return ActionResult.ok(DispatchResult(sent=sent, notification=NotificationRead.model_validate(notification)))


@order_router.get("/{order_id}/notifications", response_model=ActionResult[List[NotificationRead]])
async def list_notifications_endpoint(order_id: str, service: OrderServiceDep, actor: CurrentActor):
    notifications = await service.list_notifications(order_id, actor)
    return ActionResult.ok([NotificationRead.model_validate(n) for n in notifications])


@public_router.get("/public/{commande_id}", response_model=ActionResult[PublicCommandeView])
async def public_order_view_endpoint(commande_id: str, service: OrderServiceDep):
    """Lien de retrait public (sans authentification)."""
    return ActionResult.ok(await service.get_public_view(commande_id))
