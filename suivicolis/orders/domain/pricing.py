"""Classification produit/service et calcul du montant total d'une commande.

Le type persisté (`type_commande`) fait foi. La classification par mots-clés
ne sert que pour les commandes anciennes sans type, et pour signaler les
incohérences entre le type choisi et la description.
"""
import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from suivicolis.orders.config import SERVICE_KEYWORDS
from suivicolis.orders.domain.entities import TypeCommande

logger = logging.getLogger(__name__)

Number = Union[int, float, Decimal]

CENT = Decimal("0.01")


def classify(description: Optional[str]) -> TypeCommande:
    """Service si la description contient un mot-clé de service, Produit sinon."""
    if not description:
        return TypeCommande.PRODUIT
    description_lower = description.lower()
    if any(keyword in description_lower for keyword in SERVICE_KEYWORDS):
        return TypeCommande.SERVICE
    return TypeCommande.PRODUIT


def resolve_kind(type_commande: Optional[TypeCommande], description: Optional[str]) -> TypeCommande:
    """Type effectif: le type persisté, sinon la classification de la description."""
    if type_commande is not None:
        return TypeCommande(type_commande)
    return classify(description)


def choose_kind_at_creation(requested: Optional[TypeCommande], description: Optional[str]) -> TypeCommande:
    classified = classify(description)
    if requested is None:
        return classified
    if requested != classified:
        logger.warning(
            f"Type de commande '{requested.value}' en désaccord avec la description "
            f"('{description}' classée '{classified.value}'). Le type choisi est conservé."
        )
    return requested


def _as_decimal(value: Optional[Number]) -> Decimal:
    if value is None:
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def compute_total(
    kind: TypeCommande,
    prix_kg: Optional[Number],
    poids: Optional[Number] = None,
    quantite: Optional[int] = None,
) -> Decimal:
    """quantite x prix pour un service, poids x prix pour un produit. Un facteur absent donne 0."""
    factor = quantite if kind == TypeCommande.SERVICE else poids
    total = _as_decimal(factor) * _as_decimal(prix_kg)
    return total.quantize(CENT, rounding=ROUND_HALF_UP)


def compute_order_total(commande) -> Decimal:
    kind = resolve_kind(commande.type_commande, commande.description)
    return compute_total(kind, commande.prix_kg, poids=commande.poids, quantite=commande.quantite)


def format_amount(value: Optional[Number]) -> str:
    """Montant en XOF sans décimales (la devise n'a pas de sous-unité)."""
    return str(_as_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_quantity(value: Optional[Number]) -> str:
    """2.500 -> '2.5', 3 -> '3'."""
    normalized = _as_decimal(value).normalize()
    return format(normalized, "f")


def price_label(kind: TypeCommande, prix_kg: Optional[Number], currency: str = "XOF") -> str:
    if kind == TypeCommande.SERVICE:
        return f"{format_amount(prix_kg)} {currency} (service)"
    return f"{format_amount(prix_kg)} {currency}/kg"
