from pydantic import BaseModel, Field


class ScanRequest(BaseModel):
    """Contenu brut lu par la caméra: identifiant nu ou URL du lien de retrait."""
    qr_data: str = Field(..., min_length=1, max_length=2048)
