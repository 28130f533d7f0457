"""Lecture des contenus de QR code scannés.

Deux formes acceptées: l'identifiant nu de la commande, ou une URL contenant
`/qr/<id>` ou `/qr/public/<id>` (suivi éventuellement d'une query string).
"""
import re

from suivicolis.core.exceptions import InvalidCredentialException

_UUID = r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}"

BARE_ID_PATTERN = re.compile(rf"^{_UUID}$", re.IGNORECASE)
URL_ID_PATTERN = re.compile(rf"/qr/(?:public/)?({_UUID})(?![0-9a-f-])", re.IGNORECASE)


def extract_commande_id(payload: str) -> str:
    """Retourne l'identifiant (en minuscules) ou lève InvalidCredentialException."""
    content = (payload or "").strip()
    if BARE_ID_PATTERN.match(content):
        return content.lower()
    match = URL_ID_PATTERN.search(content)
    if match:
        return match.group(1).lower()
    raise InvalidCredentialException()
