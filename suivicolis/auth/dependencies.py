"""
Dépendances FastAPI pour l'authentification.

`get_current_actor` est le fournisseur d'identité du domaine : il ne fait
confiance qu'au 'sub' du token et relit l'organisation dans la table users.
"""
import logging
from typing import Annotated, Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from suivicolis.auth.models import Actor
from suivicolis.auth.security import decode_access_token
from suivicolis.config import settings
from suivicolis.core.exceptions import NotFoundException, UnauthorizedException
from suivicolis.database import get_db_session
from suivicolis.organizations.repositories import OrganizationRepository

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_PREFIX}/auth/token", auto_error=False)

SessionDep = Annotated[AsyncSession, Depends(get_db_session)]


def get_organization_repository(session: SessionDep) -> OrganizationRepository:
    return OrganizationRepository(session)


OrganizationRepositoryDep = Annotated[OrganizationRepository, Depends(get_organization_repository)]


async def get_current_actor(
    token: Annotated[Optional[str], Depends(oauth2_scheme)],
    organizations: OrganizationRepositoryDep,
) -> Actor:
    if token is None:
        logger.warning("Token manquant dans la requête.")
        raise UnauthorizedException()

    user_id = decode_access_token(token)
    if user_id is None:
        raise UnauthorizedException("Token d'authentification invalide")

    user = await organizations.get_user(user_id)
    if user is None:
        logger.warning(f"Token valide mais utilisateur {user_id} introuvable.")
        raise NotFoundException("Utilisateur", user_id)

    return Actor(user_id=user.id, organization_id=user.organization_id)


CurrentActor = Annotated[Actor, Depends(get_current_actor)]
