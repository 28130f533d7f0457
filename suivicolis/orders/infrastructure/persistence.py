import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from suivicolis.notifications.models import Notification
from suivicolis.orders.domain.entities import StatutCommande
from suivicolis.orders.domain.repositories import AbstractOrderRepository, DuplicateOrderNumberError
from suivicolis.orders.models import Commande

logger = logging.getLogger(__name__)


class SQLAlchemyOrderRepository(AbstractOrderRepository):
    """Implémentation SQLAlchemy du repository de Commandes."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, order_id: str, organization_id: str) -> Optional[Commande]:
        stmt = select(Commande).where(Commande.id == order_id, Commande.organization_id == organization_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_unscoped(self, order_id: str) -> Optional[Commande]:
        result = await self.session.execute(select(Commande).where(Commande.id == order_id))
        return result.scalar_one_or_none()

    async def list(
        self,
        organization_id: str,
        statut: Optional[StatutCommande],
        client_id: Optional[str],
        limit: int,
        offset: int,
    ) -> Tuple[List[Commande], int]:
        conditions = [Commande.organization_id == organization_id]
        if statut is not None:
            conditions.append(Commande.statut == statut)
        if client_id is not None:
            conditions.append(Commande.client_id == client_id)

        total = await self.session.scalar(select(func.count()).select_from(Commande).where(*conditions))
        stmt = (
            select(Commande)
            .where(*conditions)
            .order_by(Commande.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total or 0

    async def numero_exists(self, numero_commande: str) -> bool:
        stmt = select(Commande.id).where(Commande.numero_commande == numero_commande)
        return (await self.session.execute(stmt)).first() is not None

    async def add(self, data: Dict[str, Any]) -> Commande:
        commande = Commande(**data)
        self.session.add(commande)
        try:
            await self.session.flush()
        except IntegrityError as e:
            await self.session.rollback()
            if "numero_commande" in str(e.orig):
                logger.warning(f"Numéro de commande '{data.get('numero_commande')}' rejeté par la contrainte d'unicité.")
                raise DuplicateOrderNumberError(data.get("numero_commande")) from e
            logger.error(f"Erreur intégrité ajout commande: {e}", exc_info=True)
            raise
        logger.info(f"Commande {commande.id} ({commande.numero_commande}) ajoutée pour l'organisation {commande.organization_id}.")
        return commande

    async def set_qr_code(self, order_id: str, organization_id: str, qr_code: str) -> Optional[Commande]:
        await self.session.execute(
            update(Commande)
            .where(Commande.id == order_id, Commande.organization_id == organization_id)
            .values(qr_code=qr_code, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        return await self._reload(order_id)

    async def transition_status(
        self,
        order_id: str,
        organization_id: str,
        expected: StatutCommande,
        target: StatutCommande,
        values: Optional[Dict[str, Any]] = None,
    ) -> Optional[Commande]:
        new_values = dict(values or {})
        new_values["statut"] = target
        if target == StatutCommande.REMIS:
            new_values.setdefault("date_retrait", datetime.now(timezone.utc))
        new_values["updated_at"] = datetime.now(timezone.utc)

        stmt = (
            update(Commande)
            .where(
                Commande.id == order_id,
                Commande.organization_id == organization_id,
                Commande.statut == expected,
            )
            .values(**new_values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            logger.warning(
                f"Transition {expected.value} -> {target.value} de la commande {order_id} non appliquée "
                f"(statut modifié entre-temps)."
            )
            return None
        return await self._reload(order_id)

    async def update_unless_remis(self, order_id: str, organization_id: str, values: Dict[str, Any]) -> Optional[Commande]:
        new_values = dict(values)
        new_values["updated_at"] = datetime.now(timezone.utc)
        stmt = (
            update(Commande)
            .where(
                Commande.id == order_id,
                Commande.organization_id == organization_id,
                Commande.statut != StatutCommande.REMIS,
            )
            .values(**new_values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            return None
        return await self._reload(order_id)

    async def delete_unless_remis(self, order_id: str, organization_id: str) -> bool:
        owned = select(Commande.id).where(
            Commande.id == order_id,
            Commande.organization_id == organization_id,
            Commande.statut != StatutCommande.REMIS,
        )
        await self.session.execute(
            delete(Notification)
            .where(Notification.commande_id.in_(owned))
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(
            delete(Commande)
            .where(
                Commande.id == order_id,
                Commande.organization_id == organization_id,
                Commande.statut != StatutCommande.REMIS,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def statistics(self, organization_id: str, since: datetime) -> Dict[str, Any]:
        counts_stmt = (
            select(Commande.statut, func.count())
            .where(Commande.organization_id == organization_id)
            .group_by(Commande.statut)
        )
        counts = {statut: count for statut, count in (await self.session.execute(counts_stmt)).all()}

        collected = select(func.coalesce(func.sum(Commande.montant_total), 0)).where(
            Commande.organization_id == organization_id,
            Commande.statut == StatutCommande.REMIS,
        )
        revenue_total = await self.session.scalar(collected)
        revenue_since = await self.session.scalar(collected.where(Commande.date_retrait >= since))

        return {
            "counts": {s: counts.get(s, 0) for s in StatutCommande},
            "revenue_total": Decimal(str(revenue_total or 0)),
            "revenue_since": Decimal(str(revenue_since or 0)),
        }

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()

    async def _reload(self, order_id: str) -> Optional[Commande]:
        # populate_existing: l'UPDATE ci-dessus a contourné l'identity map
        return await self.session.get(Commande, order_id, populate_existing=True)
