"""
Tests du service applicatif des commandes sur une base SQLite en mémoire.
"""
import re
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from suivicolis.core.exceptions import (
    ForbiddenException,
    InvalidStateException,
    NotFoundException,
    OrderNumberGenerationError,
    SubscriptionInactiveException,
    ValidationException,
)
from suivicolis.notifications.models import Notification, NotificationStatus
from suivicolis.orders.application.schemas import CommandeBulkCreate, CommandeCreate, CommandeDetailsUpdate
from suivicolis.orders.domain.entities import StatutCommande, TypeCommande
from suivicolis.orders.domain.repositories import DuplicateOrderNumberError
from suivicolis.organizations.models import SubscriptionStatus
from suivicolis.tarifs.models import Tarif

pytestmark = pytest.mark.asyncio

PRIMARY_PATTERN = re.compile(r"^SN-\d{6}-\d{6}-[A-Z0-9]{4}$")
CLIENT_PATTERN = re.compile(r"^SN-[A-Z]{3}-\d{4}-\d{4}$")


async def _notifications(db_session: AsyncSession, commande_id: str):
    stmt = select(Notification).where(Notification.commande_id == commande_id)
    return list((await db_session.execute(stmt)).scalars().all())


# --- Création ---


async def test_create_order_assigns_number_qr_and_kind(order_service, actor_a, client_a):
    commande = await order_service.create_order(
        CommandeCreate(client_id=client_a.id, description="Livraison Dakar", prix_kg=Decimal("10000")), actor_a
    )
    assert commande.statut == StatutCommande.EN_COURS
    assert commande.type_commande == TypeCommande.SERVICE
    assert PRIMARY_PATTERN.match(commande.numero_commande)
    assert commande.qr_code.startswith("data:image/png;base64,")
    assert commande.montant_total == Decimal("0")
    assert commande.prix_label == "10000 XOF (service)"


async def test_create_order_explicit_kind_wins(order_service, actor_a, client_a):
    commande = await order_service.create_order(
        CommandeCreate(
            client_id=client_a.id,
            description="Livraison de ciment",
            type_commande=TypeCommande.PRODUIT,
            prix_kg=Decimal("500"),
            poids=Decimal("4"),
        ),
        actor_a,
    )
    assert commande.type_commande == TypeCommande.PRODUIT
    assert commande.montant_total == Decimal("2000")


async def test_create_order_uses_default_tarif(db_session, order_service, actor_a, client_a):
    db_session.add(Tarif(organization_id=actor_a.organization_id, nom="Standard", prix=Decimal("1500"), is_default=True))
    await db_session.commit()

    commande = await order_service.create_order(CommandeCreate(client_id=client_a.id, description="Sac de mil"), actor_a)
    assert commande.prix_kg == Decimal("1500")


async def test_create_order_without_any_price_fails(order_service, actor_a, client_a):
    with pytest.raises(ValidationException) as exc_info:
        await order_service.create_order(CommandeCreate(client_id=client_a.id, description="Sac de mil"), actor_a)
    assert exc_info.value.message == "Le prix est obligatoire"


async def test_create_order_with_foreign_client_is_forbidden(order_service, actor_a, client_b):
    with pytest.raises(ForbiddenException):
        await order_service.create_order(CommandeCreate(client_id=client_b.id, prix_kg=Decimal("100")), actor_a)


async def test_create_order_requires_active_subscription(db_session, order_service, actor_a, client_a, organization_a):
    organization_a.subscription_status = SubscriptionStatus.EXPIRED
    db_session.add(organization_a)
    await db_session.commit()

    with pytest.raises(SubscriptionInactiveException):
        await order_service.create_order(CommandeCreate(client_id=client_a.id, prix_kg=Decimal("100")), actor_a)


async def test_duplicate_number_rejected_by_constraint_then_retried(order_service, actor_a, client_a):
    first = await order_service.create_order(CommandeCreate(client_id=client_a.id, prix_kg=Decimal("100")), actor_a)

    # Le pré-contrôle ne voit pas la collision: seule la contrainte d'unicité l'arrête
    order_service.number_generator.exists = AsyncMock(return_value=False)
    order_service.number_generator.primary_candidate = lambda: first.numero_commande
    with pytest.raises(OrderNumberGenerationError):
        await order_service.create_order(CommandeCreate(client_id=client_a.id, prix_kg=Decimal("100")), actor_a)

    orders, total = await order_service.list_orders(actor_a)
    assert total == 1


async def test_repository_raises_duplicate_error(db_session, order_service, actor_a, client_a):
    first = await order_service.create_order(CommandeCreate(client_id=client_a.id, prix_kg=Decimal("100")), actor_a)
    with pytest.raises(DuplicateOrderNumberError):
        await order_service.order_repo.add(
            {
                "organization_id": actor_a.organization_id,
                "client_id": client_a.id,
                "numero_commande": first.numero_commande,
            }
        )


async def test_create_multiple_orders_same_client_uses_client_numbering(order_service, actor_a, client_a):
    payload = CommandeBulkCreate(
        commandes=[
            CommandeCreate(client_id=client_a.id, description="Sac de mil", prix_kg=Decimal("100")),
            CommandeCreate(client_id=client_a.id, description="Sac de riz", prix_kg=Decimal("100")),
            CommandeCreate(client_id=client_a.id, description="Huile", prix_kg=Decimal("100")),
        ]
    )
    created = await order_service.create_multiple_orders(payload, actor_a)

    numbers = [c.numero_commande for c in created]
    assert len(set(numbers)) == 3
    assert all(CLIENT_PATTERN.match(n) for n in numbers)
    assert all(n.startswith("SN-ANX-4567-") for n in numbers)
    assert all(c.qr_code for c in created)


async def test_create_multiple_orders_is_all_or_nothing(order_service, actor_a, client_a, client_b):
    payload = CommandeBulkCreate(
        commandes=[
            CommandeCreate(client_id=client_a.id, prix_kg=Decimal("100")),
            CommandeCreate(client_id=client_b.id, prix_kg=Decimal("100")),
        ]
    )
    with pytest.raises(ForbiddenException):
        await order_service.create_multiple_orders(payload, actor_a)
    _, total = await order_service.list_orders(actor_a)
    assert total == 0


# --- Cycle de vie ---


async def test_update_status_to_disponible_computes_total_and_notifies(db_session, order_service, actor_a, client_a, mock_sender):
    commande = await order_service.create_order(
        CommandeCreate(client_id=client_a.id, description="Livraison Dakar", prix_kg=Decimal("10000")), actor_a
    )
    updated = await order_service.update_status(
        commande.id, StatutCommande.DISPONIBLE, actor_a, quantite=2, price=Decimal("10000")
    )

    assert updated.statut == StatutCommande.DISPONIBLE
    assert updated.quantite == 2
    assert updated.montant_total == Decimal("20000")
    assert updated.date_retrait is None
    notifications = await _notifications(db_session, commande.id)
    assert len(notifications) == 1
    assert notifications[0].status == NotificationStatus.SENT
    assert "Total: 20000 XOF" in mock_sender.sent[0][2]


async def test_update_status_uses_stored_weight_and_price(order_service, actor_a, client_a):
    commande = await order_service.create_order(
        CommandeCreate(client_id=client_a.id, description="Sac de mil", prix_kg=Decimal("1000"), poids=Decimal("2.5")),
        actor_a,
    )
    updated = await order_service.update_status(commande.id, StatutCommande.DISPONIBLE, actor_a)
    assert updated.montant_total == Decimal("2500")


async def test_update_status_missing_weight_is_validation_error(order_service, actor_a, client_a):
    commande = await order_service.create_order(
        CommandeCreate(client_id=client_a.id, description="Sac de mil", prix_kg=Decimal("1000")), actor_a
    )
    with pytest.raises(ValidationException) as exc_info:
        await order_service.update_status(commande.id, StatutCommande.DISPONIBLE, actor_a)
    assert "poids" in exc_info.value.message

    unchanged = await order_service.get_order(commande.id, actor_a)
    assert unchanged.statut == StatutCommande.EN_COURS


async def test_update_status_rejects_non_integral_service_quantity(order_service, actor_a, client_a):
    commande = await order_service.create_order(
        CommandeCreate(client_id=client_a.id, description="Livraison Dakar", prix_kg=Decimal("1000")), actor_a
    )
    with pytest.raises(ValidationException):
        await order_service.update_status(commande.id, StatutCommande.DISPONIBLE, actor_a, quantite=Decimal("1.5"))


async def test_update_status_product_ignores_stray_quantity(order_service, actor_a, client_a):
    commande = await order_service.create_order(
        CommandeCreate(client_id=client_a.id, description="Sac de mil", prix_kg=Decimal("1000")), actor_a
    )
    updated = await order_service.update_status(
        commande.id, StatutCommande.DISPONIBLE, actor_a, poids=Decimal("2.5"), quantite=3, price=Decimal("1000")
    )
    assert updated.poids == Decimal("2.5")
    assert updated.montant_total == Decimal("2500")


async def test_update_status_service_ignores_stray_weight(order_service, actor_a, client_a):
    commande = await order_service.create_order(
        CommandeCreate(client_id=client_a.id, description="Livraison Dakar", prix_kg=Decimal("5000")), actor_a
    )
    updated = await order_service.update_status(
        commande.id, StatutCommande.DISPONIBLE, actor_a, poids=Decimal("7.5"), quantite=2
    )
    assert updated.quantite == 2
    assert updated.montant_total == Decimal("10000")


async def test_update_status_rejects_measure_of_the_other_kind(order_service, actor_a, client_a):
    produit = await order_service.create_order(
        CommandeCreate(client_id=client_a.id, description="Sac de mil", prix_kg=Decimal("1000")), actor_a
    )
    with pytest.raises(ValidationException) as exc_info:
        await order_service.update_status(produit.id, StatutCommande.DISPONIBLE, actor_a, quantite=3)
    assert "poids" in exc_info.value.message

    service = await order_service.create_order(
        CommandeCreate(client_id=client_a.id, description="Livraison Dakar", prix_kg=Decimal("1000")), actor_a
    )
    with pytest.raises(ValidationException) as exc_info:
        await order_service.update_status(service.id, StatutCommande.DISPONIBLE, actor_a, poids=Decimal("2"))
    assert "quantité" in exc_info.value.message

    unchanged = await order_service.get_order(produit.id, actor_a)
    assert unchanged.statut == StatutCommande.EN_COURS


async def test_staff_cannot_mark_remis(order_service, actor_a, client_a):
    commande = await order_service.create_order(
        CommandeCreate(client_id=client_a.id, description="Sac de mil", prix_kg=Decimal("1000"), poids=Decimal("1")),
        actor_a,
    )
    with pytest.raises(InvalidStateException):
        await order_service.update_status(commande.id, StatutCommande.REMIS, actor_a)
    await order_service.update_status(commande.id, StatutCommande.DISPONIBLE, actor_a)
    with pytest.raises(InvalidStateException):
        await order_service.update_status(commande.id, StatutCommande.REMIS, actor_a)


async def test_notification_failure_does_not_roll_back_transition(db_session, order_service, actor_a, client_a):
    order_service.dispatcher.sender = AsyncMock()
    order_service.dispatcher.sender.send.return_value = False

    commande = await order_service.create_order(
        CommandeCreate(client_id=client_a.id, description="Sac de mil", prix_kg=Decimal("1000"), poids=Decimal("1")),
        actor_a,
    )
    updated = await order_service.update_status(commande.id, StatutCommande.DISPONIBLE, actor_a)

    assert updated.statut == StatutCommande.DISPONIBLE
    notifications = await _notifications(db_session, commande.id)
    # WhatsApp puis repli SMS, tous deux en échec
    assert [n.status for n in notifications] == [NotificationStatus.FAILED, NotificationStatus.FAILED]


async def test_concurrent_transition_only_one_wins(order_service, actor_a, client_a):
    commande = await order_service.create_order(
        CommandeCreate(client_id=client_a.id, description="Sac de mil", prix_kg=Decimal("1000"), poids=Decimal("1")),
        actor_a,
    )
    repo = order_service.order_repo
    first = await repo.transition_status(
        commande.id, actor_a.organization_id, StatutCommande.EN_COURS, StatutCommande.DISPONIBLE
    )
    second = await repo.transition_status(
        commande.id, actor_a.organization_id, StatutCommande.EN_COURS, StatutCommande.DISPONIBLE
    )
    assert first is not None
    assert second is None


# --- Isolation et édition ---


async def test_tenant_isolation(order_service, actor_a, actor_b, client_a):
    commande = await order_service.create_order(CommandeCreate(client_id=client_a.id, prix_kg=Decimal("100")), actor_a)

    with pytest.raises(ForbiddenException):
        await order_service.get_order(commande.id, actor_b)
    with pytest.raises(ForbiddenException):
        await order_service.update_status(commande.id, StatutCommande.DISPONIBLE, actor_b, quantite=1)
    with pytest.raises(ForbiddenException):
        await order_service.delete_order(commande.id, actor_b)
    _, total = await order_service.list_orders(actor_b)
    assert total == 0


async def test_unknown_order_is_not_found(order_service, actor_a):
    with pytest.raises(NotFoundException):
        await order_service.get_order("00000000-0000-4000-8000-000000000000", actor_a)


async def test_update_details_recomputes_total(order_service, actor_a, client_a):
    commande = await order_service.create_order(
        CommandeCreate(client_id=client_a.id, description="Sac de mil", prix_kg=Decimal("1000"), poids=Decimal("1")),
        actor_a,
    )
    updated = await order_service.update_order_details(
        commande.id, CommandeDetailsUpdate(poids=Decimal("3.5")), actor_a
    )
    assert updated.montant_total == Decimal("3500")


async def test_remis_order_is_immutable(db_session, order_service, pickup_verifier, actor_a, client_a):
    commande = await order_service.create_order(
        CommandeCreate(client_id=client_a.id, description="Sac de mil", prix_kg=Decimal("1000"), poids=Decimal("1")),
        actor_a,
    )
    await order_service.update_status(commande.id, StatutCommande.DISPONIBLE, actor_a)
    await pickup_verifier.validate(commande.id, actor_a)

    with pytest.raises(InvalidStateException):
        await order_service.update_order_details(commande.id, CommandeDetailsUpdate(poids=Decimal("9")), actor_a)
    with pytest.raises(InvalidStateException):
        await order_service.delete_order(commande.id, actor_a)
    with pytest.raises(InvalidStateException):
        await order_service.update_status(commande.id, StatutCommande.DISPONIBLE, actor_a)

    final = await order_service.get_order(commande.id, actor_a)
    assert final.statut == StatutCommande.REMIS
    assert final.poids == Decimal("1")


async def test_delete_order_removes_notifications(db_session, order_service, actor_a, client_a):
    commande = await order_service.create_order(
        CommandeCreate(client_id=client_a.id, description="Sac de mil", prix_kg=Decimal("1000"), poids=Decimal("1")),
        actor_a,
    )
    await order_service.update_status(commande.id, StatutCommande.DISPONIBLE, actor_a)
    await order_service.delete_order(commande.id, actor_a)

    assert await _notifications(db_session, commande.id) == []
    with pytest.raises(NotFoundException):
        await order_service.get_order(commande.id, actor_a)


async def test_order_statistics(order_service, pickup_verifier, actor_a, client_a):
    for poids in ("1", "2"):
        commande = await order_service.create_order(
            CommandeCreate(client_id=client_a.id, description="Sac de mil", prix_kg=Decimal("1000"), poids=Decimal(poids)),
            actor_a,
        )
    await order_service.update_status(commande.id, StatutCommande.DISPONIBLE, actor_a)
    await pickup_verifier.validate(commande.id, actor_a)

    stats = await order_service.order_statistics(actor_a)
    assert stats.counts[StatutCommande.EN_COURS] == 1
    assert stats.counts[StatutCommande.REMIS] == 1
    assert stats.total == 2
    assert stats.revenue_total == Decimal("2000")
    assert stats.revenue_today == Decimal("2000")
