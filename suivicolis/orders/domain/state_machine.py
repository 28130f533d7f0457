"""Machine à états des commandes: en_cours -> disponible -> remis."""
import logging
from decimal import Decimal
from typing import Dict, List, Optional, Tuple, Union

from suivicolis.core.exceptions import InvalidStateException, ValidationException
from suivicolis.orders.config import STATUT_DISPLAY
from suivicolis.orders.domain.entities import StatutCommande, TransitionPath, TypeCommande

logger = logging.getLogger(__name__)

# (depuis, vers) -> seul chemin autorisé pour cette transition
ALLOWED_TRANSITIONS: Dict[Tuple[StatutCommande, StatutCommande], TransitionPath] = {
    (StatutCommande.EN_COURS, StatutCommande.DISPONIBLE): TransitionPath.STAFF,
    (StatutCommande.DISPONIBLE, StatutCommande.REMIS): TransitionPath.SCANNER,
}


def is_allowed(current: StatutCommande, target: StatutCommande, path: TransitionPath) -> bool:
    return ALLOWED_TRANSITIONS.get((StatutCommande(current), StatutCommande(target))) == path


def _state_message(current: StatutCommande, target: StatutCommande, path: TransitionPath) -> str:
    if path == TransitionPath.SCANNER:
        if current == StatutCommande.REMIS:
            return "Commande déjà remise"
        return f"Commande encore en cours (statut actuel: {STATUT_DISPLAY[current]})"
    if target == StatutCommande.REMIS:
        return 'Le statut "Remis" ne peut être défini que via le scan QR code'
    if current == StatutCommande.REMIS:
        return "Commande déjà remise: aucune modification de statut possible"
    return (
        f"Transition impossible de '{STATUT_DISPLAY[current]}' vers '{STATUT_DISPLAY[target]}' "
        f"(statut actuel: {STATUT_DISPLAY[current]})"
    )


def ensure_transition(current: StatutCommande, target: StatutCommande, path: TransitionPath) -> None:
    """Lève InvalidStateException si la transition n'est pas autorisée par ce chemin."""
    current = StatutCommande(current)
    target = StatutCommande(target)
    if not is_allowed(current, target, path):
        logger.warning(f"Transition refusée {current.value} -> {target.value} via {path.value}.")
        raise InvalidStateException(_state_message(current, target, path), current_state=current.value)


def readiness_errors(
    kind: TypeCommande,
    measure: Optional[Union[int, Decimal]],
    prix_kg: Optional[Decimal],
) -> List[str]:
    """Contrôles requis avant le passage à 'disponible'.

    `measure` est la quantité pour un service, le poids pour un produit.
    """
    errors: List[str] = []
    if kind == TypeCommande.SERVICE:
        if measure is None:
            errors.append("La quantité est obligatoire pour les services")
        elif measure <= 0:
            errors.append("La quantité doit être supérieure à 0")
        elif Decimal(measure) != Decimal(measure).to_integral_value():
            errors.append("La quantité doit être un nombre entier")
    else:
        if measure is None:
            errors.append("Le poids est obligatoire pour les produits")
        elif measure <= 0:
            errors.append("Le poids doit être supérieur à 0")

    if prix_kg is None:
        errors.append("Le prix est obligatoire")
    elif prix_kg <= 0:
        errors.append("Le prix doit être supérieur à 0")
    return errors


def ensure_ready(kind: TypeCommande, measure, prix_kg) -> None:
    errors = readiness_errors(kind, measure, prix_kg)
    if errors:
        raise ValidationException("; ".join(errors), errors=errors)
