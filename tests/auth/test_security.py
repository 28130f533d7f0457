from datetime import timedelta

import pytest
from jose import jwt

from suivicolis.auth.dependencies import get_current_actor
from suivicolis.auth.security import (
    create_access_token,
    decode_access_token,
    get_password_hash,
    verify_password,
)
from suivicolis.config import settings
from suivicolis.core.exceptions import NotFoundException, UnauthorizedException
from suivicolis.organizations.repositories import OrganizationRepository


def test_password_hash_roundtrip():
    hashed = get_password_hash("motdepasse123")
    assert hashed != "motdepasse123"
    assert verify_password("motdepasse123", hashed)
    assert not verify_password("autre", hashed)


def test_verify_password_with_unreadable_hash():
    assert verify_password("motdepasse123", "pas-un-hash") is False


def test_token_carries_subject_only():
    token = create_access_token("user-1", extra_claims={"organization_id": "ignoree"})
    assert decode_access_token(token) == "user-1"


def test_expired_or_tampered_token_is_rejected():
    expired = create_access_token("user-1", expires_delta=timedelta(minutes=-1))
    assert decode_access_token(expired) is None
    assert decode_access_token("abc.def.ghi") is None
    assert decode_access_token(jwt.encode({"role": "owner"}, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)) is None


@pytest.mark.asyncio
async def test_current_actor_is_rederived_from_database(db_session, user_a):
    token = create_access_token(user_a.id, extra_claims={"organization_id": "autre-organisation"})
    actor = await get_current_actor(token, OrganizationRepository(db_session))
    assert actor.user_id == user_a.id
    assert actor.organization_id == user_a.organization_id


@pytest.mark.asyncio
async def test_current_actor_requires_known_user(db_session):
    organizations = OrganizationRepository(db_session)
    with pytest.raises(UnauthorizedException):
        await get_current_actor(None, organizations)
    with pytest.raises(NotFoundException):
        await get_current_actor(create_access_token("inconnu"), organizations)
