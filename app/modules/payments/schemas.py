# app/modules/payments/schemas.py
from pydantic import BaseModel, Field, validator
from typing import List, Optional
from decimal import Decimal
from datetime import datetime

from app.shared.schemas.common import BaseResponse, Money, Percentage

# Montos y porcentajes se validan en el servicio (InvalidAmountError)

class PaymentCreate(BaseModel):
    order_id: int = Field(..., gt=0)
    amount: Decimal = Field(..., description="Monto abonado")
    within_deadline: bool = Field(True, description="Pago dentro del plazo acordado")
    discount_applied: Optional[Decimal] = Field(None, description="Descuento por pronto pago [0, 100]")
    notes: Optional[str] = Field(None, max_length=500)

    @validator('notes')
    def strip_notes(cls, v):
        return v.strip() if v else v

    class Config:
        json_schema_extra = {
            "example": {
                "order_id": 1,
                "amount": 100.00,
                "within_deadline": True,
                "discount_applied": 5,
                "notes": "Transferencia bancaria"
            }
        }

class PaymentResponse(BaseModel):
    id: int
    order_id: int
    amount: Money
    payment_date: datetime
    within_deadline: bool
    discount_applied: Optional[Percentage]
    notes: Optional[str]
    registered_by: int

    # Efecto del abono en el saldo, recalculado desde el libro
    pending_before: Money
    discount_amount: Money
    pending_after: Money

class OrderPaymentsResponse(BaseResponse):
    order_id: int
    revision: int
    discounted_total: Money
    total_paid: Money
    total_payment_discounts: Money
    pending_balance: Money
    payments: List[PaymentResponse]
