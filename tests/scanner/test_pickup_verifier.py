from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from suivicolis.core.exceptions import (
    ForbiddenException,
    InvalidCredentialException,
    InvalidStateException,
    NotFoundException,
)
from suivicolis.orders.application.schemas import CommandeCreate
from suivicolis.orders.domain.entities import StatutCommande
from suivicolis.orders.models import Commande

pytestmark = pytest.mark.asyncio


@pytest_asyncio.fixture
async def ready_order(order_service, actor_a, client_a):
    commande = await order_service.create_order(
        CommandeCreate(client_id=client_a.id, description="Sac de mil", prix_kg=Decimal("1000"), poids=Decimal("2")),
        actor_a,
    )
    return await order_service.update_status(commande.id, StatutCommande.DISPONIBLE, actor_a)


async def test_validate_marks_order_remis(pickup_verifier, qr_issuer, ready_order, actor_a):
    payload = qr_issuer.credential_content(ready_order.id)
    result = await pickup_verifier.validate(payload, actor_a)

    assert result.id == ready_order.id
    assert result.statut == StatutCommande.REMIS
    assert result.date_retrait is not None
    assert result.scanned_by == actor_a.user_id
    assert result.scanned_at is not None


async def test_second_scan_fails_and_keeps_first_pickup_date(pickup_verifier, order_service, ready_order, actor_a):
    first = await pickup_verifier.validate(ready_order.id, actor_a)

    with pytest.raises(InvalidStateException) as exc_info:
        await pickup_verifier.validate(ready_order.id, actor_a)
    assert exc_info.value.message == "Commande déjà remise"

    after = await order_service.get_order(ready_order.id, actor_a)
    assert after.date_retrait == first.date_retrait


async def test_scan_losing_the_race_to_a_concurrent_scan(pickup_verifier, order_service, ready_order, actor_a):
    repo = pickup_verifier.order_repo
    # Lecture faite avant que l'autre scan ne soit écrit
    snapshot = await repo.get_unscoped(ready_order.id)
    stale = Commande(**snapshot.model_dump())
    assert stale.statut == StatutCommande.DISPONIBLE

    first = await pickup_verifier.validate(ready_order.id, actor_a)
    repo.get_unscoped = AsyncMock(return_value=stale)

    with pytest.raises(InvalidStateException) as exc_info:
        await pickup_verifier.validate(ready_order.id, actor_a)
    assert exc_info.value.message == "Commande déjà remise"
    assert exc_info.value.current_state == StatutCommande.REMIS.value
    repo.get_unscoped.assert_awaited_once_with(ready_order.id)

    after = await order_service.get_order(ready_order.id, actor_a)
    assert after.statut == StatutCommande.REMIS
    assert after.date_retrait == first.date_retrait


async def test_scan_of_order_still_en_cours_names_current_state(pickup_verifier, order_service, actor_a, client_a):
    commande = await order_service.create_order(CommandeCreate(client_id=client_a.id, prix_kg=Decimal("100")), actor_a)
    with pytest.raises(InvalidStateException) as exc_info:
        await pickup_verifier.validate(commande.id, actor_a)
    assert "En Cours" in exc_info.value.message


async def test_scan_from_other_organization_is_forbidden(pickup_verifier, order_service, ready_order, actor_a, actor_b):
    with pytest.raises(ForbiddenException):
        await pickup_verifier.validate(ready_order.id, actor_b)
    unchanged = await order_service.get_order(ready_order.id, actor_a)
    assert unchanged.statut == StatutCommande.DISPONIBLE


async def test_scan_unknown_or_malformed_payload(pickup_verifier, actor_a):
    with pytest.raises(NotFoundException):
        await pickup_verifier.validate("00000000-0000-4000-8000-000000000000", actor_a)
    with pytest.raises(InvalidCredentialException):
        await pickup_verifier.validate("SN-260314-123456-ABCD", actor_a)


async def test_preview_does_not_modify_order(pickup_verifier, ready_order, actor_a):
    preview = await pickup_verifier.preview(ready_order.id, actor_a)
    assert preview.statut == StatutCommande.DISPONIBLE
    assert preview.montant_total == Decimal("2000")
