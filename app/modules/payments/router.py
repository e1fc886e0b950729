# app/modules/payments/router.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.dependencies import get_current_actor
from app.core.auth.schemas import Actor
from .service import PaymentsService
from .schemas import PaymentCreate, OrderPaymentsResponse

router = APIRouter()

@router.post("", response_model=OrderPaymentsResponse, status_code=201)
async def record_payment(
    payment_data: PaymentCreate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """
    Registrar abono (solo owner)

    - `discount_applied` se calcula sobre el saldo pendiente al momento del pago
    - El saldo pendiente nunca queda negativo
    """
    service = PaymentsService(db)
    return service.record_payment(payment_data, actor)

@router.get("/health")
async def payments_health():
    return {
        "service": "payments",
        "status": "healthy",
        "features": ["Registro de abonos", "Descuento por pronto pago", "Anulación de pagos"]
    }

@router.get("/order/{order_id}", response_model=OrderPaymentsResponse)
async def list_order_payments(
    order_id: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    service = PaymentsService(db)
    return service.list_order_payments(order_id, actor)

@router.delete("/{payment_id}", response_model=OrderPaymentsResponse)
async def cancel_payment(
    payment_id: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """Anular pago; el saldo del pedido se recalcula desde el libro"""
    service = PaymentsService(db)
    return service.cancel_payment(payment_id, actor)
