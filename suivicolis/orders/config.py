"""
Configuration spécifique au module Commandes.
Contient les constantes utilisées par la classification, l'affichage et la numérotation.
"""
from typing import Dict, List

from suivicolis.orders.domain.entities import StatutCommande, TypeCommande

# Mots-clés désignant un service (comparaison insensible à la casse, par inclusion)
SERVICE_KEYWORDS: List[str] = [
    # Technologie et électronique
    'iphone', 'samsung', 'technologie', 'électronique', 'mobile', 'telephone', 'smartphone',
    'tablette', 'ordinateur', 'laptop', 'pc', 'macbook', 'ipad', 'android',
    'apple', 'huawei', 'xiaomi', 'oppo', 'vivo', 'oneplus', 'google pixel',

    # Services généraux
    'livraison', 'service', 'transport', 'shipping', 'expédition', 'acheminement',
    'express', 'logistique', 'installation', 'réparation', 'maintenance', 'dépannage',
    'nettoyage', 'lavage', 'entretien', 'sav', 'après-vente',

    # Services spécifiques
    'coursier', 'messagerie', 'colis', 'packaging', 'emballage', 'manutention',
    'montage', 'assemblage', 'configuration', 'paramétrage', 'formation',

    # Autres services
    'consultation', 'conseil', 'audit', 'expertise', 'diagnostic', 'devis',
]

# Libellés des statuts pour l'affichage
STATUT_DISPLAY: Dict[StatutCommande, str] = {
    StatutCommande.EN_COURS: "En Cours",
    StatutCommande.DISPONIBLE: "Disponible",
    StatutCommande.REMIS: "Remis",
}

TYPE_DISPLAY: Dict[TypeCommande, str] = {
    TypeCommande.PRODUIT: "Produit",
    TypeCommande.SERVICE: "Service",
}

# Numérotation
ORDER_NUMBER_PREFIX: str = "SN"
RANDOM_SUFFIX_ALPHABET: str = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
RANDOM_SUFFIX_LENGTH: int = 4

# Limite par création groupée
MAX_BULK_ORDERS: int = 50
