"""Composition des messages de mise à disposition (rendu Jinja2)."""
import logging
from pathlib import Path

import jinja2

from suivicolis.orders.domain.entities import TypeCommande
from suivicolis.orders.domain.pricing import compute_total, format_amount, format_quantity, resolve_kind
from suivicolis.orders.models import Commande

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

env = jinja2.Environment(
    loader=jinja2.FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=jinja2.select_autoescape(["html", "xml"]),
    undefined=jinja2.StrictUndefined,
)

TEMPLATES = {
    TypeCommande.SERVICE: "commande_service.txt",
    TypeCommande.PRODUIT: "commande_produit.txt",
}


def pickup_url(public_base_url: str, commande_id: str) -> str:
    return f"{public_base_url.rstrip('/')}/qr/public/{commande_id}"


def compose_ready_message(commande: Commande, public_base_url: str, currency: str = "XOF") -> str:
    """Message adapté au type: quantité x prix fixe pour un service, poids x prix/kg pour un produit."""
    kind = resolve_kind(commande.type_commande, commande.description)
    total = compute_total(kind, commande.prix_kg, poids=commande.poids, quantite=commande.quantite)
    context = {
        "numero_commande": commande.numero_commande,
        "description": commande.description or "",
        "quantite": commande.quantite if commande.quantite is not None else 0,
        "poids": format_quantity(commande.poids),
        "prix": format_amount(commande.prix_kg),
        "total": format_amount(total),
        "currency": currency,
        "pickup_url": pickup_url(public_base_url, commande.id),
    }
    return env.get_template(TEMPLATES[kind]).render(context).strip()
