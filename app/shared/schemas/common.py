# app/shared/schemas/common.py
from pydantic import BaseModel, Field, PlainSerializer
from typing import Annotated, Any, Dict, Optional
from datetime import datetime
from decimal import Decimal

from app.shared.services.pricing import to_money

# Montos: Decimal internamente, número con 2 decimales en JSON
Money = Annotated[
    Decimal,
    PlainSerializer(lambda v: float(to_money(v)), return_type=float, when_used="json")
]

# Porcentajes: Decimal internamente, número en JSON
Percentage = Annotated[
    Decimal,
    PlainSerializer(lambda v: float(v), return_type=float, when_used="json")
]

class BaseResponse(BaseModel):
    success: bool
    message: str = ""
    timestamp: datetime = Field(default_factory=datetime.now)

class ErrorResponse(BaseResponse):
    success: bool = False
    error_code: Optional[str] = None
    details: Optional[Dict[str, Any]] = None

