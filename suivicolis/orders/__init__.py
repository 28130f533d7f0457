"""
Module Commandes - cycle de vie en_cours -> disponible -> remis
"""

from suivicolis.orders.domain.entities import StatutCommande, TypeCommande
from suivicolis.orders.models import Commande

__all__ = ["Commande", "StatutCommande", "TypeCommande"]
