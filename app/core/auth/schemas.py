from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from enum import Enum

class UserRole(str, Enum):
    """Roles del sistema B2B"""
    ADMIN = "ADMIN"
    OWNER = "OWNER"
    VENDEDOR = "VENDEDOR"
    EMPACADOR = "EMPACADOR"
    CLIENTE = "CLIENTE"

    @classmethod
    def parse(cls, value: str) -> "UserRole":
        """Acepta tanto 'OWNER' como 'ROLE_OWNER' (formato del servicio de autenticación)"""
        normalized = value.upper()
        if normalized.startswith("ROLE_"):
            normalized = normalized[len("ROLE_"):]
        return cls(normalized)

class Actor(BaseModel):
    """Usuario que ejecuta una operación del motor"""
    id: int
    role: UserRole
    email: Optional[str] = None

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "id": 7,
                "role": "OWNER",
                "email": "owner@pedidos.com"
            }
        }

class TokenPayload(BaseModel):
    """Schema para payload del token"""
    user_id: int
    role: str
    email: Optional[str] = None
    exp: Optional[datetime] = None
