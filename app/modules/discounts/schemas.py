# app/modules/discounts/schemas.py
from pydantic import BaseModel, Field, validator
from typing import Optional, List
from decimal import Decimal
from datetime import datetime

from app.shared.schemas.common import BaseResponse, Money, Percentage
from app.shared.schemas.enums import DiscountType, DiscountStatus

# El rango del porcentaje lo valida el servicio (InvalidPercentageError)

class CustomDiscountCreate(BaseModel):
    order_id: int = Field(..., gt=0)
    percentage: Decimal = Field(..., description="Porcentaje del descuento (0, 100]")

class OwnerDiscountCreate(BaseModel):
    order_id: int = Field(..., gt=0)
    percentage: Decimal = Field(..., description="Porcentaje del descuento (0, 100]")
    reason: str = Field(..., max_length=500, description="Razón del descuento (obligatoria)")

    @validator('reason')
    def validate_reason(cls, v):
        if not v.strip():
            raise ValueError('La razón no puede estar vacía')
        return v.strip()

class DiscountResponse(BaseModel):
    id: int
    order_id: int
    percentage: Percentage
    type: DiscountType
    status: DiscountStatus
    reason: Optional[str]
    applied_by: int
    applied_at: datetime
    revoked_by: Optional[int] = None
    revoked_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class OrderDiscountsResponse(BaseResponse):
    """Libro de descuentos del pedido con su total efectivo"""
    order_id: int
    revision: int
    original_total: Money
    discount_percentage: Percentage
    discounted_total: Money
    discounts: List[DiscountResponse]
