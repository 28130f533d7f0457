# suivicolis/organizations/models.py
"""
Modèles SQLModel pour les organisations (locataires) et leurs utilisateurs.

- Organization : frontière de locataire, porte le statut d'abonnement.
- User : membre du personnel rattaché à exactement une organisation.
"""
import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import EmailStr
from sqlmodel import Field, SQLModel

from suivicolis.core.columns import timestamp_column, utcnow


def _uuid() -> str:
    return str(uuid.uuid4())


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    EXPIRED = "expired"
    SUSPENDED = "suspended"


class UserRole(str, Enum):
    OWNER = "owner"
    STAFF = "staff"


class OrganizationBase(SQLModel):
    name: str = Field(max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = Field(default=None, max_length=255)


class Organization(OrganizationBase, table=True):
    __tablename__ = "organizations"

    id: str = Field(default_factory=_uuid, primary_key=True, max_length=36)
    subscription_status: SubscriptionStatus = Field(default=SubscriptionStatus.ACTIVE, index=True)
    subscription_end_date: Optional[datetime] = Field(default=None, sa_column=timestamp_column())
    created_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column(nullable=False))


class OrganizationRead(OrganizationBase):
    id: str
    subscription_status: SubscriptionStatus
    subscription_end_date: Optional[datetime] = None


class UserBase(SQLModel):
    email: EmailStr = Field(unique=True, index=True, max_length=255)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)


class User(UserBase, table=True):
    __tablename__ = "users"

    id: str = Field(default_factory=_uuid, primary_key=True, max_length=36)
    password_hash: str = Field(max_length=255)
    role: UserRole = Field(default=UserRole.STAFF)
    organization_id: str = Field(foreign_key="organizations.id", index=True, max_length=36)
    created_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column(nullable=False))


class UserRead(UserBase):
    id: str
    role: UserRole
    organization_id: str
