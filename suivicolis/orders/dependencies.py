from typing import Annotated

from fastapi import Depends

from suivicolis.auth.dependencies import OrganizationRepositoryDep, SessionDep
from suivicolis.clients.router import ClientServiceDep
from suivicolis.config import settings
from suivicolis.notifications.dependencies import NotificationDispatcherDep
from suivicolis.orders.application.services import OrderService
from suivicolis.orders.domain.repositories import AbstractOrderRepository
from suivicolis.orders.infrastructure.persistence import SQLAlchemyOrderRepository
from suivicolis.qrcodes.domain.issuer import AbstractQRCodeIssuer
from suivicolis.qrcodes.infrastructure.qrcode_issuer import QRCodeLibIssuer
from suivicolis.tarifs.router import TarifServiceDep


def get_order_repository(session: SessionDep) -> AbstractOrderRepository:
    return SQLAlchemyOrderRepository(session)


OrderRepositoryDep = Annotated[AbstractOrderRepository, Depends(get_order_repository)]


def get_qr_issuer() -> AbstractQRCodeIssuer:
    return QRCodeLibIssuer(settings.APP_PUBLIC_URL)


QRIssuerDep = Annotated[AbstractQRCodeIssuer, Depends(get_qr_issuer)]


def get_order_service(
    order_repo: OrderRepositoryDep,
    client_service: ClientServiceDep,
    organizations: OrganizationRepositoryDep,
    tarif_service: TarifServiceDep,
    qr_issuer: QRIssuerDep,
    dispatcher: NotificationDispatcherDep,
) -> OrderService:
    return OrderService(
        order_repo,
        client_service,
        organizations,
        tarif_service,
        qr_issuer,
        dispatcher,
        max_number_attempts=settings.ORDER_NUMBER_MAX_ATTEMPTS,
        currency=settings.CURRENCY,
    )


OrderServiceDep = Annotated[OrderService, Depends(get_order_service)]
