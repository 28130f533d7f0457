import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from suivicolis.core.columns import timestamp_column, utcnow
from suivicolis.orders.domain.entities import StatutCommande, TypeCommande


def _enum_column(enum_cls, name: str, nullable: bool, index: bool = False) -> sa.Column:
    """Colonne Enum stockant la valeur ('en_cours') plutôt que le nom du membre."""
    return sa.Column(
        sa.Enum(enum_cls, name=name, values_callable=lambda members: [m.value for m in members]),
        nullable=nullable,
        index=index,
    )


class Commande(SQLModel, table=True):
    """Modèle de table pour les commandes."""
    __tablename__ = "commandes"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True, max_length=36)
    organization_id: str = Field(foreign_key="organizations.id", index=True, max_length=36)
    client_id: str = Field(foreign_key="clients.id", index=True, max_length=36)
    numero_commande: str = Field(unique=True, index=True, max_length=40)
    description: Optional[str] = Field(default=None, max_length=1000)
    type_commande: Optional[TypeCommande] = Field(
        default=None, sa_column=_enum_column(TypeCommande, "type_commande", nullable=True)
    )
    statut: StatutCommande = Field(
        default=StatutCommande.EN_COURS,
        sa_column=_enum_column(StatutCommande, "statut_commande", nullable=False, index=True),
    )

    # Produit: poids x prix_kg. Service: quantite x prix_kg (prix unitaire fixe).
    poids: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=3)
    quantite: Optional[int] = Field(default=None)
    prix_kg: Optional[Decimal] = Field(default=None, max_digits=12, decimal_places=2)
    # Toujours recalculé à partir des champs ci-dessus, jamais saisi directement
    montant_total: Decimal = Field(default=Decimal(0), max_digits=14, decimal_places=2)

    qr_code: Optional[str] = Field(default=None, sa_column=sa.Column(sa.Text, nullable=True))

    date_reception: Optional[datetime] = Field(default=None, sa_column=timestamp_column())
    date_livraison_prevue: Optional[datetime] = Field(default=None, sa_column=timestamp_column())
    date_retrait: Optional[datetime] = Field(default=None, sa_column=timestamp_column())
    scanned_by: Optional[str] = Field(default=None, foreign_key="users.id", max_length=36)
    scanned_at: Optional[datetime] = Field(default=None, sa_column=timestamp_column())

    created_by: Optional[str] = Field(default=None, foreign_key="users.id", max_length=36)
    created_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column(nullable=False))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column(nullable=False))
