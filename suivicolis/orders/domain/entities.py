from enum import Enum

# Entités du Domaine "Commandes"


class StatutCommande(str, Enum):
    EN_COURS = "en_cours"      # Commande en traitement
    DISPONIBLE = "disponible"  # Prête au retrait
    REMIS = "remis"            # Retirée par le client (terminal)


class TypeCommande(str, Enum):
    PRODUIT = "produit"  # Facturé au poids (poids x prix_kg)
    SERVICE = "service"  # Facturé à l'unité (quantite x prix_kg)


class TransitionPath(str, Enum):
    """Chemin par lequel une transition est demandée."""
    STAFF = "staff"      # Mise à jour depuis l'interface du personnel
    SCANNER = "scanner"  # Scan du QR code au comptoir
