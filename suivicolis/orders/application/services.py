import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar, Union

from suivicolis.auth.models import Actor
from suivicolis.clients.service import ClientService
from suivicolis.core.exceptions import (
    ForbiddenException,
    InvalidStateException,
    NotFoundException,
    OrderNumberGenerationError,
    ValidationException,
)
from suivicolis.notifications.application.services import NotificationDispatcher
from suivicolis.notifications.models import Notification, NotificationChannel
from suivicolis.orders.application.schemas import (
    CommandeBulkCreate,
    CommandeCreate,
    CommandeDetailsUpdate,
    CommandeResponse,
    OrderStatistics,
    PublicCommandeView,
)
from suivicolis.orders.domain.entities import StatutCommande, TransitionPath, TypeCommande
from suivicolis.orders.domain.numbering import OrderNumberGenerator
from suivicolis.orders.domain.pricing import choose_kind_at_creation, compute_total, resolve_kind
from suivicolis.orders.domain.repositories import AbstractOrderRepository, DuplicateOrderNumberError
from suivicolis.orders.domain.state_machine import ensure_ready, ensure_transition
from suivicolis.orders.models import Commande
from suivicolis.organizations.repositories import OrganizationRepository
from suivicolis.qrcodes.domain.credentials import extract_commande_id
from suivicolis.qrcodes.domain.issuer import AbstractQRCodeIssuer
from suivicolis.tarifs.service import TarifService

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OrderService:
    """Service applicatif du cycle de vie des commandes (création, statut, édition)."""

    def __init__(
        self,
        order_repo: AbstractOrderRepository,
        client_service: ClientService,
        organization_repo: OrganizationRepository,
        tarif_service: TarifService,
        qr_issuer: AbstractQRCodeIssuer,
        dispatcher: NotificationDispatcher,
        max_number_attempts: int = 5,
        currency: str = "XOF",
    ):
        self.order_repo = order_repo
        self.client_service = client_service
        self.organization_repo = organization_repo
        self.tarif_service = tarif_service
        self.qr_issuer = qr_issuer
        self.dispatcher = dispatcher
        self.max_number_attempts = max_number_attempts
        self.currency = currency
        self.number_generator = OrderNumberGenerator(order_repo.numero_exists, max_attempts=max_number_attempts)

    def _response(self, commande: Commande) -> CommandeResponse:
        return CommandeResponse.from_commande(commande, self.currency)

    async def resolve_order(self, order_id: str, actor: Actor) -> Commande:
        """Commande de l'organisation de l'acteur. Forbidden si elle appartient à une autre organisation."""
        commande = await self.order_repo.get(order_id, actor.organization_id)
        if commande is not None:
            return commande
        if await self.order_repo.get_unscoped(order_id) is not None:
            logger.warning(f"[OrderService] Accès refusé à la commande {order_id} pour l'organisation {actor.organization_id}.")
            raise ForbiddenException("Commande ne vous appartient pas")
        raise NotFoundException("Commande", order_id)

    # --- Création ---

    async def _with_unique_numbers(self, unit: Callable[[], Awaitable[T]]) -> T:
        """Rejoue toute l'unité de création si la contrainte d'unicité rejette un numéro."""
        for attempt in range(1, self.max_number_attempts + 1):
            try:
                return await unit()
            except DuplicateOrderNumberError as e:
                # La transaction a déjà été annulée par le repository
                logger.warning(
                    f"[OrderService] Numéro {e.numero_commande} pris entre la vérification et l'insertion "
                    f"(essai {attempt}/{self.max_number_attempts})."
                )
        raise OrderNumberGenerationError(self.max_number_attempts)

    async def _creation_values(self, data: CommandeCreate, actor: Actor) -> Dict[str, Any]:
        await self.client_service.resolve_client(data.client_id, actor)

        prix_kg = data.prix_kg
        if prix_kg is None:
            prix_kg = await self.tarif_service.get_default_price(actor.organization_id)
            if prix_kg is None:
                raise ValidationException("Le prix est obligatoire")

        kind = choose_kind_at_creation(data.type_commande, data.description)
        return {
            "organization_id": actor.organization_id,
            "client_id": data.client_id,
            "description": data.description,
            "type_commande": kind,
            "statut": StatutCommande.EN_COURS,
            "poids": data.poids,
            "quantite": data.quantite,
            "prix_kg": prix_kg,
            "montant_total": compute_total(kind, prix_kg, poids=data.poids, quantite=data.quantite),
            "date_reception": data.date_reception or datetime.now(timezone.utc),
            "date_livraison_prevue": data.date_livraison_prevue,
            "created_by": actor.user_id,
        }

    async def _insert(self, values: Dict[str, Any], numero_commande: str) -> Commande:
        commande = await self.order_repo.add({**values, "numero_commande": numero_commande})
        qr_code = self.qr_issuer.issue(commande.id)
        return await self.order_repo.set_qr_code(commande.id, commande.organization_id, qr_code)

    async def create_order(self, data: CommandeCreate, actor: Actor) -> CommandeResponse:
        logger.info(f"[OrderService] Création de commande pour le client {data.client_id} (organisation {actor.organization_id}).")
        await self.organization_repo.get_active(actor.organization_id)
        values = await self._creation_values(data, actor)

        async def unit() -> Commande:
            numero = await self.number_generator.generate()
            commande = await self._insert(values, numero)
            await self.order_repo.commit()
            return commande

        commande = await self._with_unique_numbers(unit)
        logger.info(f"[OrderService] Commande {commande.numero_commande} créée ({commande.id}).")
        return self._response(commande)

    async def create_multiple_orders(self, payload: CommandeBulkCreate, actor: Actor) -> List[CommandeResponse]:
        """Crée toutes les commandes dans une seule transaction, un numéro distinct par commande."""
        logger.info(f"[OrderService] Création groupée de {len(payload.commandes)} commande(s).")
        await self.organization_repo.get_active(actor.organization_id)
        batch = [await self._creation_values(data, actor) for data in payload.commandes]

        # Même client pour tout le lot: numérotation dérivée du client
        client_ids = {values["client_id"] for values in batch}
        client_identity: Optional[Tuple[str, str]] = None
        if len(client_ids) == 1:
            client = await self.client_service.resolve_client(client_ids.pop(), actor)
            client_identity = (client.nom, client.telephone)

        async def unit() -> List[Commande]:
            created = []
            for values in batch:
                if client_identity is not None:
                    numero = await self.number_generator.generate_for_client(*client_identity)
                else:
                    numero = await self.number_generator.generate()
                created.append(await self._insert(values, numero))
            await self.order_repo.commit()
            return created

        created = await self._with_unique_numbers(unit)
        logger.info(f"[OrderService] {len(created)} commande(s) créée(s) en lot.")
        return [self._response(c) for c in created]

    # --- Lecture ---

    async def get_order(self, order_id: str, actor: Actor) -> CommandeResponse:
        return self._response(await self.resolve_order(order_id, actor))

    async def list_orders(
        self,
        actor: Actor,
        statut: Optional[StatutCommande] = None,
        client_id: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[CommandeResponse], int]:
        commandes, total = await self.order_repo.list(actor.organization_id, statut, client_id, limit, offset)
        return [self._response(c) for c in commandes], total

    async def get_public_view(self, commande_id: str) -> PublicCommandeView:
        """Vue sans authentification du lien de retrait."""
        order_id = extract_commande_id(commande_id)
        commande = await self.order_repo.get_unscoped(order_id)
        if commande is None:
            raise NotFoundException("Commande", order_id)
        return PublicCommandeView.from_commande(commande)

    async def order_statistics(self, actor: Actor) -> OrderStatistics:
        start_of_day = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
        stats = await self.order_repo.statistics(actor.organization_id, start_of_day)
        return OrderStatistics(
            counts=stats["counts"],
            total=sum(stats["counts"].values()),
            revenue_total=stats["revenue_total"],
            revenue_today=stats["revenue_since"],
        )

    # --- Cycle de vie ---

    async def update_status(
        self,
        order_id: str,
        new_status: StatutCommande,
        actor: Actor,
        poids: Optional[Decimal] = None,
        quantite: Optional[Union[int, Decimal]] = None,
        price: Optional[Decimal] = None,
    ) -> CommandeResponse:
        """Transition demandée par le personnel.

        Seule la mesure du type de la commande compte: `quantite` pour un
        service, `poids` pour un produit. Fournir uniquement l'autre mesure est
        une erreur de validation. Les valeurs absentes reprennent celles déjà
        enregistrées. La notification part une fois la transition validée; son
        échec ne l'annule pas.
        """
        logger.info(f"[OrderService] Demande de statut '{new_status.value}' pour la commande {order_id}.")
        commande = await self.resolve_order(order_id, actor)
        current = StatutCommande(commande.statut)
        ensure_transition(current, new_status, TransitionPath.STAFF)

        kind = resolve_kind(commande.type_commande, commande.description)
        prix_kg = price if price is not None else commande.prix_kg
        if kind == TypeCommande.SERVICE:
            if quantite is None and poids is not None:
                raise ValidationException("La quantité est attendue pour un service, pas le poids")
            measure = quantite if quantite is not None else commande.quantite
        else:
            if poids is None and quantite is not None:
                raise ValidationException("Le poids est attendu pour un produit, pas la quantité")
            measure = poids if poids is not None else commande.poids
        ensure_ready(kind, measure, prix_kg)

        values: Dict[str, Any] = {"prix_kg": prix_kg}
        if kind == TypeCommande.SERVICE:
            values["quantite"] = int(measure)
            values["montant_total"] = compute_total(kind, prix_kg, quantite=values["quantite"])
        else:
            values["poids"] = Decimal(str(measure))
            values["montant_total"] = compute_total(kind, prix_kg, poids=values["poids"])

        updated = await self.order_repo.transition_status(order_id, actor.organization_id, current, new_status, values)
        if updated is None:
            await self.order_repo.rollback()
            await self._raise_lost_race(order_id, actor, new_status, TransitionPath.STAFF)
        await self.order_repo.commit()
        logger.info(
            f"[OrderService] Commande {updated.numero_commande}: {current.value} -> {new_status.value} "
            f"(total {updated.montant_total})."
        )

        if new_status == StatutCommande.DISPONIBLE:
            client = await self.client_service.resolve_client(updated.client_id, actor)
            await self.dispatcher.notify_ready(updated, client)
        return self._response(updated)

    async def _raise_lost_race(
        self, order_id: str, actor: Actor, target: StatutCommande, path: TransitionPath
    ) -> None:
        fresh = await self.order_repo.get(order_id, actor.organization_id)
        if fresh is None:
            raise NotFoundException("Commande", order_id)
        ensure_transition(StatutCommande(fresh.statut), target, path)
        raise InvalidStateException("Commande modifiée entre-temps, veuillez réessayer", current_state=fresh.statut)

    async def update_order_details(self, order_id: str, data: CommandeDetailsUpdate, actor: Actor) -> CommandeResponse:
        """Édition par le personnel. Le montant total est toujours recalculé."""
        commande = await self.resolve_order(order_id, actor)
        if commande.statut == StatutCommande.REMIS:
            raise InvalidStateException(
                "Commande déjà remise: aucune modification possible", current_state=StatutCommande.REMIS.value
            )

        changes = data.model_dump(exclude_unset=True)
        merged = {
            "description": changes.get("description", commande.description),
            "poids": changes.get("poids", commande.poids),
            "quantite": changes.get("quantite", commande.quantite),
            "prix_kg": changes.get("prix_kg", commande.prix_kg),
        }
        kind = resolve_kind(commande.type_commande, merged["description"])
        if commande.statut == StatutCommande.DISPONIBLE:
            measure = merged["quantite"] if kind == TypeCommande.SERVICE else merged["poids"]
            ensure_ready(kind, measure, merged["prix_kg"])

        changes["montant_total"] = compute_total(
            kind, merged["prix_kg"], poids=merged["poids"], quantite=merged["quantite"]
        )
        updated = await self.order_repo.update_unless_remis(order_id, actor.organization_id, changes)
        if updated is None:
            await self.order_repo.rollback()
            raise InvalidStateException("Commande déjà remise: aucune modification possible", current_state=StatutCommande.REMIS.value)
        await self.order_repo.commit()
        logger.info(f"[OrderService] Commande {order_id} modifiée: {sorted(changes)}.")
        return self._response(updated)

    async def delete_order(self, order_id: str, actor: Actor) -> None:
        commande = await self.resolve_order(order_id, actor)
        if commande.statut == StatutCommande.REMIS:
            raise InvalidStateException("Impossible de supprimer une commande déjà remise", current_state=StatutCommande.REMIS.value)
        if not await self.order_repo.delete_unless_remis(order_id, actor.organization_id):
            await self.order_repo.rollback()
            raise InvalidStateException("Impossible de supprimer une commande déjà remise", current_state=StatutCommande.REMIS.value)
        await self.order_repo.commit()
        logger.info(f"[OrderService] Commande {order_id} supprimée.")

    # --- QR code ---

    async def reissue_qr_code(self, order_id: str, actor: Actor) -> CommandeResponse:
        commande = await self.resolve_order(order_id, actor)
        qr_code = self.qr_issuer.issue(commande.id)
        updated = await self.order_repo.set_qr_code(commande.id, actor.organization_id, qr_code)
        await self.order_repo.commit()
        logger.info(f"[OrderService] QR code réémis pour la commande {commande.numero_commande}.")
        return self._response(updated)

    async def get_qr_png(self, order_id: str, actor: Actor) -> bytes:
        commande = await self.resolve_order(order_id, actor)
        return self.qr_issuer.render_png(self.qr_issuer.credential_content(commande.id))

    # --- Notifications ---

    async def send_notification(
        self, order_id: str, channel: NotificationChannel, actor: Actor
    ) -> Tuple[bool, Notification]:
        commande = await self.resolve_order(order_id, actor)
        client = await self.client_service.resolve_client(commande.client_id, actor)
        return await self.dispatcher.notify(commande, client, channel)

    async def list_notifications(self, order_id: str, actor: Actor) -> List[Notification]:
        commande = await self.resolve_order(order_id, actor)
        return await self.dispatcher.list_for_order(commande.id, actor.organization_id)
