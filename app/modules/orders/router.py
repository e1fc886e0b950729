# app/modules/orders/router.py
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.dependencies import get_current_actor
from app.core.auth.schemas import Actor
from app.shared.schemas.enums import OrderStatus
from .service import OrdersService
from .schemas import OrderCreate, ItemArrivalUpdate, OrderDetailResponse, OrderListResponse

router = APIRouter()

@router.post("", response_model=OrderDetailResponse, status_code=201)
async def create_order(
    order_data: OrderCreate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """
    Crear pedido

    **Proceso:**
    - Valida productos activos y acceso al cliente
    - Aplica automáticamente las promociones vigentes
    - PACK agrega los regalos de inmediato
    - BUY_GET_FREE deja el pedido en PENDING_PROMOTION_COMPLETION
    - Verifica el cupo de crédito del cliente
    """
    service = OrdersService(db)
    return service.create_order(order_data, actor)

@router.get("", response_model=OrderListResponse)
async def list_orders(
    client_id: Optional[int] = Query(None, alias="clientId", description="Filtrar por cliente"),
    status: Optional[OrderStatus] = Query(None, description="Filtrar por estado"),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """Listar pedidos visibles para el usuario"""
    service = OrdersService(db)
    return service.list_orders(actor, client_id=client_id, status=status)

@router.get("/health")
async def orders_health():
    return {
        "service": "orders",
        "status": "healthy",
        "features": [
            "Creación de pedidos con promociones",
            "Confirmación, completado y cancelación",
            "Fechas estimadas de llegada"
        ]
    }

@router.get("/{order_id}", response_model=OrderDetailResponse)
async def get_order(
    order_id: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    service = OrdersService(db)
    return service.get_order(order_id, actor)

@router.post("/{order_id}/confirm", response_model=OrderDetailResponse)
async def confirm_order(
    order_id: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """PENDIENTE → CONFIRMADO"""
    service = OrdersService(db)
    return service.confirm_order(order_id, actor)

@router.post("/{order_id}/complete", response_model=OrderDetailResponse)
async def complete_order(
    order_id: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """CONFIRMADO → COMPLETADO"""
    service = OrdersService(db)
    return service.complete_order(order_id, actor)

@router.post("/{order_id}/cancel", response_model=OrderDetailResponse)
async def cancel_order(
    order_id: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    service = OrdersService(db)
    return service.cancel_order(order_id, actor)

@router.put("/{order_id}/items/{item_id}/arrival", response_model=OrderDetailResponse)
async def set_item_arrival(
    order_id: int,
    item_id: int,
    arrival: ItemArrivalUpdate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """Registrar fecha estimada de llegada de un producto agotado"""
    service = OrdersService(db)
    return service.set_item_arrival(order_id, item_id, arrival, actor)
