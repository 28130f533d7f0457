import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from suivicolis.core.exceptions import NotFoundException, SubscriptionInactiveException
from suivicolis.organizations.models import Organization, SubscriptionStatus, User, UserRole

logger = logging.getLogger(__name__)


class OrganizationRepository:
    """Accès aux organisations et aux utilisateurs (lookup de confiance pour l'identité)."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, organization_id: str) -> Optional[Organization]:
        return await self.session.get(Organization, organization_id)

    async def get_user(self, user_id: str) -> Optional[User]:
        return await self.session.get(User, user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def create_with_owner(
        self,
        name: str,
        email: str,
        password_hash: str,
        trial_days: int,
        phone: Optional[str] = None,
        address: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> User:
        """Crée une organisation active (période d'essai) et son propriétaire."""
        organization = Organization(
            name=name,
            phone=phone,
            address=address,
            subscription_status=SubscriptionStatus.ACTIVE,
            subscription_end_date=datetime.now(timezone.utc) + timedelta(days=trial_days),
        )
        self.session.add(organization)
        await self.session.flush()

        owner = User(
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            role=UserRole.OWNER,
            organization_id=organization.id,
        )
        self.session.add(owner)
        await self.session.flush()
        await self.session.commit()
        logger.info(f"Organisation {organization.id} créée avec le propriétaire {owner.id}.")
        return owner

    async def get_active(self, organization_id: str) -> Organization:
        """Retourne l'organisation si son abonnement autorise les mutations."""
        organization = await self.get(organization_id)
        if organization is None:
            raise NotFoundException("Organisation", organization_id)
        ensure_active_subscription(organization)
        return organization


def ensure_active_subscription(organization: Organization) -> None:
    if organization.subscription_status != SubscriptionStatus.ACTIVE:
        logger.warning(
            f"Organisation {organization.id} bloquée: abonnement '{organization.subscription_status}'."
        )
        raise SubscriptionInactiveException()
