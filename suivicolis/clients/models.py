import uuid
from datetime import datetime
from typing import Optional

from pydantic import EmailStr
from sqlmodel import Field, SQLModel

from suivicolis.core.columns import timestamp_column, utcnow


class ClientBase(SQLModel):
    """Champs communs d'un client d'une organisation."""
    nom: str = Field(..., min_length=1, max_length=255, index=True)
    telephone: str = Field(..., min_length=1, max_length=50)
    whatsapp: Optional[str] = Field(default=None, max_length=50)
    email: Optional[EmailStr] = Field(default=None, max_length=255)
    adresse: Optional[str] = Field(default=None, max_length=255)


class Client(ClientBase, table=True):
    __tablename__ = "clients"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True, max_length=36)
    organization_id: str = Field(foreign_key="organizations.id", index=True, max_length=36)
    created_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column(nullable=False))


class ClientCreate(ClientBase):
    pass


class ClientUpdate(SQLModel):
    nom: Optional[str] = Field(default=None, min_length=1, max_length=255)
    telephone: Optional[str] = Field(default=None, min_length=1, max_length=50)
    whatsapp: Optional[str] = None
    email: Optional[EmailStr] = None
    adresse: Optional[str] = None


class ClientRead(ClientBase):
    id: str
    organization_id: str
    created_at: Optional[datetime] = None
