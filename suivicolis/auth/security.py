"""
Hachage des mots de passe du personnel et tokens d'accès JWT.

Le token ne transporte que l'identifiant de l'utilisateur ('sub').
L'organisation est toujours relue en base par `get_current_actor`.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from suivicolis.config import settings

logger = logging.getLogger(__name__)

PASSWORD_ENCODING = "utf-8"


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode(PASSWORD_ENCODING), bcrypt.gensalt()).decode(PASSWORD_ENCODING)


def verify_password(plain_password: str, password_hash: str) -> bool:
    """False aussi bien pour un mauvais mot de passe que pour un hash illisible."""
    try:
        return bcrypt.checkpw(plain_password.encode(PASSWORD_ENCODING), password_hash.encode(PASSWORD_ENCODING))
    except ValueError as e:
        logger.error(f"Hash de mot de passe illisible en base: {e}")
        return False


def create_access_token(
    user_id: str,
    expires_delta: Optional[timedelta] = None,
    extra_claims: Optional[Dict[str, Any]] = None,
) -> str:
    lifetime = expires_delta if expires_delta is not None else timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims: Dict[str, Any] = dict(extra_claims or {})
    claims["sub"] = user_id
    claims["exp"] = datetime.now(timezone.utc) + lifetime
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[str]:
    """Identifiant utilisateur du token, ou None si le token est expiré, altéré ou sans 'sub'."""
    try:
        claims = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        logger.info("Token d'accès expiré.")
        return None
    except JWTError as e:
        logger.warning(f"Token d'accès rejeté: {e}")
        return None

    user_id = claims.get("sub")
    if not user_id:
        logger.warning("Token d'accès sans identifiant utilisateur.")
        return None
    return user_id
