import base64
import io
import logging

import qrcode
from qrcode.image.pil import PilImage

from suivicolis.qrcodes.domain.issuer import AbstractQRCodeIssuer

logger = logging.getLogger(__name__)

DATA_URL_PREFIX = "data:image/png;base64,"


class QRCodeLibIssuer(AbstractQRCodeIssuer):
    """Émet les QR codes avec la librairie `qrcode` (rendu Pillow)."""

    def __init__(self, public_base_url: str, box_size: int = 10, border: int = 2):
        self.public_base_url = public_base_url.rstrip("/")
        self.box_size = box_size
        self.border = border

    def credential_content(self, order_id: str) -> str:
        # Lien public, lisible par n'importe quel appareil photo
        return f"{self.public_base_url}/qr/public/{order_id}"

    def render_png(self, content: str) -> bytes:
        qr = qrcode.QRCode(
            version=None,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=self.box_size,
            border=self.border,
            image_factory=PilImage,
        )
        qr.add_data(content)
        qr.make(fit=True)
        img = qr.make_image(fill_color="black", back_color="white")
        buffer = io.BytesIO()
        img.save(buffer, format="PNG")
        return buffer.getvalue()

    def issue(self, order_id: str) -> str:
        content = self.credential_content(order_id)
        png = self.render_png(content)
        logger.debug(f"QR code émis pour la commande {order_id} ({len(png)} octets).")
        return DATA_URL_PREFIX + base64.b64encode(png).decode("ascii")
