from abc import ABC, abstractmethod


class AbstractQRCodeIssuer(ABC):
    """Interface abstraite pour l'émission des QR codes de retrait.

    Le QR code n'est qu'une clé de recherche: son autorité vient entièrement
    de la revalidation côté serveur au moment du scan.
    """

    @abstractmethod
    def credential_content(self, order_id: str) -> str:
        """Texte encodé dans le QR code pour cette commande."""
        raise NotImplementedError

    @abstractmethod
    def render_png(self, content: str) -> bytes:
        raise NotImplementedError

    @abstractmethod
    def issue(self, order_id: str) -> str:
        """Retourne l'image du QR code sous forme de data URL (PNG base64)."""
        raise NotImplementedError
