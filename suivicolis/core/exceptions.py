"""Exceptions du domaine SuiviColis.

Chaque exception porte un `kind` stable (utilisé dans les réponses API) et le
code HTTP vers lequel le gestionnaire global de `main.py` la traduit.
"""
from typing import Optional


class SuiviColisException(Exception):
    """Classe de base pour les exceptions du domaine."""
    kind: str = "Error"
    status_code: int = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class UnauthorizedException(SuiviColisException):
    """Aucun acteur authentifié."""
    kind = "Unauthorized"
    status_code = 401

    def __init__(self, message: str = "Non autorisé"):
        super().__init__(message)


class ForbiddenException(SuiviColisException):
    """Acteur authentifié mais la ressource appartient à une autre organisation."""
    kind = "Forbidden"
    status_code = 403


class NotFoundException(SuiviColisException):
    kind = "NotFound"
    status_code = 404

    def __init__(self, entity: str, entity_id: Optional[object] = None):
        if entity_id is None:
            message = f"{entity} non trouvé(e)"
        else:
            message = f"{entity} avec ID {entity_id} non trouvé(e)"
        super().__init__(message)
        self.entity = entity
        self.entity_id = entity_id


class ValidationException(SuiviColisException):
    """Les données fournies ne respectent pas une précondition."""
    kind = "ValidationError"
    status_code = 422

    def __init__(self, message: str, errors: Optional[list] = None):
        super().__init__(message)
        self.errors = errors or [message]


class InvalidCredentialException(ValidationException):
    """Le contenu scanné ne correspond à aucun format de QR code accepté."""
    kind = "InvalidCredential"

    def __init__(self, message: str = "QR code invalide"):
        super().__init__(message)


class InvalidStateException(SuiviColisException):
    """Transition interdite depuis l'état courant."""
    kind = "InvalidState"
    status_code = 409

    def __init__(self, message: str, current_state: Optional[str] = None):
        super().__init__(message)
        self.current_state = current_state


class SubscriptionInactiveException(SuiviColisException):
    kind = "SubscriptionInactive"
    status_code = 402

    def __init__(self, message: str = "Abonnement de l'organisation non actif"):
        super().__init__(message)


class ExternalServiceFailure(SuiviColisException):
    """Échec du service d'envoi externe. Toujours enregistré, jamais propagé au-delà du dispatcher."""
    kind = "ExternalServiceFailure"
    status_code = 502

    def __init__(self, message: str, original_exception: Optional[Exception] = None):
        full_message = message
        if original_exception:
            full_message += f" (Erreur originale: {original_exception})"
        super().__init__(full_message)
        self.original_exception = original_exception


class OrderNumberGenerationError(SuiviColisException):
    """Impossible d'obtenir un numéro de commande unique après le nombre maximal d'essais."""
    kind = "OrderNumberGenerationError"
    status_code = 500

    def __init__(self, attempts: int):
        super().__init__(f"Impossible de générer un numéro de commande unique après {attempts} tentatives.")
        self.attempts = attempts
