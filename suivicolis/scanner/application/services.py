import logging
from datetime import datetime, timezone

from suivicolis.auth.models import Actor
from suivicolis.core.exceptions import ForbiddenException, InvalidStateException, NotFoundException
from suivicolis.orders.application.schemas import CommandeResponse
from suivicolis.orders.domain.entities import StatutCommande, TransitionPath
from suivicolis.orders.domain.repositories import AbstractOrderRepository
from suivicolis.orders.domain.state_machine import ensure_transition
from suivicolis.orders.models import Commande
from suivicolis.qrcodes.domain.credentials import extract_commande_id

logger = logging.getLogger(__name__)


class PickupVerifier:
    """Validation d'un QR code au comptoir: seul chemin vers le statut 'remis'.

    L'état terminal sert de garde anti-rejeu: un second scan échoue en InvalidState.
    """

    def __init__(self, order_repo: AbstractOrderRepository, currency: str = "XOF"):
        self.order_repo = order_repo
        self.currency = currency

    async def _resolve(self, payload: str, actor: Actor) -> Commande:
        order_id = extract_commande_id(payload)
        commande = await self.order_repo.get_unscoped(order_id)
        if commande is None:
            logger.warning(f"[PickupVerifier] QR code scanné pour une commande inconnue: {order_id}")
            raise NotFoundException("Commande", order_id)
        if commande.organization_id != actor.organization_id:
            logger.warning(
                f"[PickupVerifier] Scan refusé: commande {order_id} hors de l'organisation {actor.organization_id}."
            )
            raise ForbiddenException("Commande ne vous appartient pas")
        return commande

    async def preview(self, payload: str, actor: Actor) -> CommandeResponse:
        """Affiche la commande scannée sans la modifier."""
        return CommandeResponse.from_commande(await self._resolve(payload, actor), self.currency)

    async def validate(self, payload: str, actor: Actor) -> CommandeResponse:
        commande = await self._resolve(payload, actor)
        current = StatutCommande(commande.statut)
        ensure_transition(current, StatutCommande.REMIS, TransitionPath.SCANNER)

        now = datetime.now(timezone.utc)
        updated = await self.order_repo.transition_status(
            commande.id,
            actor.organization_id,
            expected=StatutCommande.DISPONIBLE,
            target=StatutCommande.REMIS,
            values={"date_retrait": now, "scanned_by": actor.user_id, "scanned_at": now},
        )
        if updated is None:
            # Un autre scan est passé entre la lecture et l'écriture
            await self.order_repo.rollback()
            logger.warning(f"[PickupVerifier] Double scan concurrent de la commande {commande.id}.")
            raise InvalidStateException("Commande déjà remise", current_state=StatutCommande.REMIS.value)

        await self.order_repo.commit()
        logger.info(f"[PickupVerifier] Commande {updated.numero_commande} remise (scan par {actor.user_id}).")
        return CommandeResponse.from_commande(updated, self.currency)
