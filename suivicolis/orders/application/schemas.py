from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from suivicolis.orders.config import MAX_BULK_ORDERS, STATUT_DISPLAY, TYPE_DISPLAY
from suivicolis.orders.domain.entities import StatutCommande, TypeCommande
from suivicolis.orders.domain.pricing import compute_total, price_label, resolve_kind
from suivicolis.orders.models import Commande

# --- Entrées ---


class CommandeCreate(BaseModel):
    """Création minimale: client, description et prix. Poids/quantité peuvent attendre."""
    client_id: str
    description: Optional[str] = Field(default=None, max_length=1000)
    type_commande: Optional[TypeCommande] = None
    prix_kg: Optional[Decimal] = Field(default=None, gt=0, max_digits=12, decimal_places=2)
    poids: Optional[Decimal] = Field(default=None, gt=0, max_digits=10, decimal_places=3)
    quantite: Optional[int] = Field(default=None, gt=0)
    date_reception: Optional[datetime] = None
    date_livraison_prevue: Optional[datetime] = None


class CommandeBulkCreate(BaseModel):
    commandes: List[CommandeCreate] = Field(..., min_length=1, max_length=MAX_BULK_ORDERS)


class StatusUpdate(BaseModel):
    statut: StatutCommande
    poids: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=3)
    # Décimal accepté ici pour renvoyer un message métier si la quantité n'est pas entière
    quantite: Optional[Decimal] = None
    prix_kg: Optional[Decimal] = Field(default=None, max_digits=12, decimal_places=2)


class CommandeDetailsUpdate(BaseModel):
    description: Optional[str] = Field(default=None, max_length=1000)
    poids: Optional[Decimal] = Field(default=None, gt=0, max_digits=10, decimal_places=3)
    quantite: Optional[int] = Field(default=None, gt=0)
    prix_kg: Optional[Decimal] = Field(default=None, gt=0, max_digits=12, decimal_places=2)
    date_livraison_prevue: Optional[datetime] = None


# --- Sorties ---


class CommandeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    organization_id: str
    client_id: str
    numero_commande: str
    description: Optional[str] = None
    type_commande: TypeCommande
    type_label: str
    statut: StatutCommande
    statut_label: str
    poids: Optional[Decimal] = None
    quantite: Optional[int] = None
    prix_kg: Optional[Decimal] = None
    prix_label: Optional[str] = None
    montant_total: Decimal
    qr_code: Optional[str] = None
    date_reception: Optional[datetime] = None
    date_livraison_prevue: Optional[datetime] = None
    date_retrait: Optional[datetime] = None
    scanned_by: Optional[str] = None
    scanned_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_commande(cls, commande: Commande, currency: str = "XOF") -> "CommandeResponse":
        kind = resolve_kind(commande.type_commande, commande.description)
        statut = StatutCommande(commande.statut)
        return cls(
            id=commande.id,
            organization_id=commande.organization_id,
            client_id=commande.client_id,
            numero_commande=commande.numero_commande,
            description=commande.description,
            type_commande=kind,
            type_label=TYPE_DISPLAY[kind],
            statut=statut,
            statut_label=STATUT_DISPLAY[statut],
            poids=commande.poids,
            quantite=commande.quantite,
            prix_kg=commande.prix_kg,
            prix_label=price_label(kind, commande.prix_kg, currency) if commande.prix_kg is not None else None,
            montant_total=compute_total(kind, commande.prix_kg, poids=commande.poids, quantite=commande.quantite),
            qr_code=commande.qr_code,
            date_reception=commande.date_reception,
            date_livraison_prevue=commande.date_livraison_prevue,
            date_retrait=commande.date_retrait,
            scanned_by=commande.scanned_by,
            scanned_at=commande.scanned_at,
            created_at=commande.created_at,
            updated_at=commande.updated_at,
        )


class PublicCommandeView(BaseModel):
    """Vue publique du lien de retrait: aucune donnée client."""
    numero_commande: str
    statut: StatutCommande
    statut_label: str
    type_commande: TypeCommande
    type_label: str
    description: Optional[str] = None
    montant_total: Decimal

    @classmethod
    def from_commande(cls, commande: Commande) -> "PublicCommandeView":
        kind = resolve_kind(commande.type_commande, commande.description)
        statut = StatutCommande(commande.statut)
        return cls(
            numero_commande=commande.numero_commande,
            statut=statut,
            statut_label=STATUT_DISPLAY[statut],
            type_commande=kind,
            type_label=TYPE_DISPLAY[kind],
            description=commande.description,
            montant_total=compute_total(kind, commande.prix_kg, poids=commande.poids, quantite=commande.quantite),
        )


class OrderStatistics(BaseModel):
    counts: Dict[StatutCommande, int]
    total: int
    revenue_total: Decimal
    revenue_today: Decimal
