# app/modules/orders/schemas.py
from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import date, datetime

from app.shared.schemas.common import BaseResponse, Money, Percentage
from app.shared.schemas.enums import OrderStatus
from app.shared.services.pricing import applied_percentage, settle_order

# ===== REQUEST SCHEMAS =====

class OrderLineCreate(BaseModel):
    product_id: int = Field(..., gt=0, description="ID del producto")
    quantity: int = Field(..., gt=0, description="Cantidad pedida")

class OrderCreate(BaseModel):
    client_id: int = Field(..., gt=0, description="Cliente que realiza el pedido")
    items: List[OrderLineCreate] = Field(..., min_length=1, description="Líneas del carrito")
    notes: Optional[str] = Field(None, max_length=1000)

    class Config:
        json_schema_extra = {
            "example": {
                "client_id": 1,
                "items": [
                    {"product_id": 10, "quantity": 12},
                    {"product_id": 11, "quantity": 3}
                ],
                "notes": "Entregar en bodega principal"
            }
        }

class ItemArrivalUpdate(BaseModel):
    """Fecha estimada de llegada de un producto agotado"""
    estimated_arrival_date: date
    note: Optional[str] = Field(None, max_length=500)

    @validator('note')
    def strip_note(cls, v):
        return v.strip() if v else v

# ===== RESPONSE SCHEMAS =====

class OrderItemResponse(BaseModel):
    id: int
    position: int
    product_id: Optional[int]
    product_name: str
    quantity: int
    unit_price: Money
    subtotal: Money
    out_of_stock: bool
    is_promotion_item: bool
    is_free_item: bool
    assortment_completed: bool
    promotion_id: Optional[int]
    estimated_arrival_date: Optional[date] = None
    estimated_arrival_note: Optional[str] = None

    class Config:
        from_attributes = True

class OrderResponse(BaseModel):
    id: int
    client_id: int
    vendor_id: Optional[int]
    order_date: datetime
    status: OrderStatus
    notes: Optional[str]
    revision: int

    # Totales derivados de los libros
    total: Money
    discount_percentage: Percentage
    discounted_total: Money
    total_paid: Money
    total_payment_discounts: Money
    pending_balance: Money

    items: List[OrderItemResponse]
    pending_promotion_ids: List[int] = []

class OrderDetailResponse(BaseResponse):
    order: OrderResponse

class OrderListResponse(BaseResponse):
    orders: List[OrderResponse]
    total: int

def build_order_response(order) -> OrderResponse:
    """Vista del pedido con los totales plegados desde sus libros"""
    snapshot = settle_order(order)
    return OrderResponse(
        id=order.id,
        client_id=order.client_id,
        vendor_id=order.vendor_id,
        order_date=order.order_date,
        status=order.status,
        notes=order.notes,
        revision=order.revision,
        total=order.total,
        discount_percentage=applied_percentage(order.discounts),
        discounted_total=snapshot.effective_total,
        total_paid=snapshot.total_paid,
        total_payment_discounts=snapshot.total_payment_discounts,
        pending_balance=snapshot.pending_balance,
        items=[OrderItemResponse.model_validate(item) for item in order.items],
        pending_promotion_ids=sorted({
            item.promotion_id for item in order.items if item.is_pending_assortment
        })
    )
