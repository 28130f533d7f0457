import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from suivicolis.auth.models import Actor
from suivicolis.core.exceptions import NotFoundException
from suivicolis.tarifs.models import Tarif, TarifCreate, TarifRead

logger = logging.getLogger(__name__)


class TarifService:
    """Prix prédéfinis par organisation. Un seul tarif par défaut à la fois."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_tarifs(self, actor: Actor) -> List[TarifRead]:
        stmt = (
            select(Tarif)
            .where(Tarif.organization_id == actor.organization_id)
            .order_by(Tarif.is_default.desc(), Tarif.nom)
        )
        result = await self.session.execute(stmt)
        return [TarifRead.model_validate(t) for t in result.scalars().all()]

    async def get_default_price(self, organization_id: str) -> Optional[Decimal]:
        stmt = select(Tarif.prix).where(Tarif.organization_id == organization_id, Tarif.is_default.is_(True))
        return (await self.session.execute(stmt)).scalars().first()

    async def create_tarif(self, data: TarifCreate, actor: Actor) -> TarifRead:
        if data.is_default:
            await self._clear_default(actor.organization_id)
        tarif = Tarif(organization_id=actor.organization_id, **data.model_dump())
        self.session.add(tarif)
        await self.session.commit()
        await self.session.refresh(tarif)
        logger.info(f"Tarif '{tarif.nom}' ({tarif.prix}) créé pour l'organisation {actor.organization_id}.")
        return TarifRead.model_validate(tarif)

    async def set_default(self, tarif_id: str, actor: Actor) -> TarifRead:
        tarif = await self._get(tarif_id, actor)
        await self._clear_default(actor.organization_id)
        tarif.is_default = True
        self.session.add(tarif)
        await self.session.commit()
        await self.session.refresh(tarif)
        return TarifRead.model_validate(tarif)

    async def delete_tarif(self, tarif_id: str, actor: Actor) -> None:
        tarif = await self._get(tarif_id, actor)
        await self.session.delete(tarif)
        await self.session.commit()

    async def _get(self, tarif_id: str, actor: Actor) -> Tarif:
        stmt = select(Tarif).where(Tarif.id == tarif_id, Tarif.organization_id == actor.organization_id)
        tarif = (await self.session.execute(stmt)).scalar_one_or_none()
        if tarif is None:
            raise NotFoundException("Tarif", tarif_id)
        return tarif

    async def _clear_default(self, organization_id: str) -> None:
        await self.session.execute(
            update(Tarif)
            .where(Tarif.organization_id == organization_id, Tarif.is_default.is_(True))
            .values(is_default=False)
        )
