import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlmodel import Field, SQLModel

from suivicolis.core.columns import timestamp_column, utcnow


class TarifBase(SQLModel):
    """Prix nommé d'une organisation (prix au kg ou prix unitaire de service)."""
    nom: str = Field(..., min_length=1, max_length=100)
    prix: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    description: Optional[str] = Field(default=None, max_length=255)
    is_default: bool = Field(default=False)


class Tarif(TarifBase, table=True):
    __tablename__ = "prix_kg"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True, max_length=36)
    organization_id: str = Field(foreign_key="organizations.id", index=True, max_length=36)
    created_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column(nullable=False))


class TarifCreate(TarifBase):
    pass


class TarifRead(TarifBase):
    id: str
    organization_id: str
