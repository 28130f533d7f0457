from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class Actor(BaseModel):
    """Identité résolue de l'utilisateur courant et de son organisation."""
    user_id: str
    organization_id: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class RegisterRequest(BaseModel):
    organization_name: str = Field(..., min_length=1, max_length=255)
    organization_phone: str = Field(..., min_length=1, max_length=50)
    organization_address: Optional[str] = None
    email: EmailStr
    password: str = Field(..., min_length=8)
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
