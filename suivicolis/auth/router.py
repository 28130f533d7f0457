import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm

from suivicolis.auth.dependencies import CurrentActor, OrganizationRepositoryDep
from suivicolis.auth.models import Actor, RegisterRequest, Token
from suivicolis.auth.security import create_access_token, get_password_hash, verify_password
from suivicolis.config import settings
from suivicolis.core.exceptions import UnauthorizedException, ValidationException
from suivicolis.core.schemas import ActionResult

logger = logging.getLogger(__name__)

auth_router = APIRouter()


@auth_router.post("/token", response_model=Token)
async def login_for_access_token(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    organizations: OrganizationRepositoryDep,
):
    """Échange email + mot de passe contre un token d'accès."""
    user = await organizations.get_user_by_email(form_data.username)
    if user is None or not verify_password(form_data.password, user.password_hash):
        logger.warning(f"Échec de connexion pour {form_data.username}.")
        raise UnauthorizedException("Email ou mot de passe incorrect")
    return Token(access_token=create_access_token(user.id))


@auth_router.post("/register", response_model=ActionResult[Token], status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, organizations: OrganizationRepositoryDep):
    """Crée une organisation (abonnement d'essai actif) et son propriétaire."""
    if await organizations.get_user_by_email(payload.email):
        raise ValidationException("Un compte existe déjà avec cet email")

    owner = await organizations.create_with_owner(
        name=payload.organization_name,
        phone=payload.organization_phone,
        address=payload.organization_address,
        email=payload.email,
        password_hash=get_password_hash(payload.password),
        first_name=payload.first_name,
        last_name=payload.last_name,
        trial_days=settings.TRIAL_DURATION_DAYS,
    )
    return ActionResult.ok(Token(access_token=create_access_token(owner.id)))


@auth_router.get("/me", response_model=ActionResult[Actor])
async def read_current_actor(actor: CurrentActor):
    return ActionResult.ok(actor)
