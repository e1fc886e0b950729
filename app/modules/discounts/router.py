# app/modules/discounts/router.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.dependencies import get_current_actor
from app.core.auth.schemas import Actor
from .service import DiscountsService
from .schemas import CustomDiscountCreate, OwnerDiscountCreate, OrderDiscountsResponse

router = APIRouter()
owner_router = APIRouter()

@router.post("/order/{order_id}/apply-{percentage}", response_model=OrderDiscountsResponse)
async def apply_preset_discount(
    order_id: int,
    percentage: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """
    Aplicar descuento predefinido (apply-10, apply-12, apply-15)

    **Reglas:**
    - Solo un descuento activo por pedido
    - No se acumula con promociones que lo prohíban
    """
    service = DiscountsService(db)
    return service.apply_preset(order_id, percentage, actor)

@router.post("/custom", response_model=OrderDiscountsResponse)
async def apply_custom_discount(
    discount_data: CustomDiscountCreate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    service = DiscountsService(db)
    return service.apply_custom(discount_data.order_id, discount_data.percentage, actor)

@router.put("/{discount_id}/revoke", response_model=OrderDiscountsResponse)
async def revoke_discount(
    discount_id: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """Revocar un descuento activo; el registro se conserva como REVOKED"""
    service = DiscountsService(db)
    return service.revoke(discount_id, actor)

@router.get("/order/{order_id}", response_model=OrderDiscountsResponse)
async def list_order_discounts(
    order_id: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    service = DiscountsService(db)
    return service.list_order_discounts(order_id, actor)

@router.get("/health")
async def discounts_health():
    return {
        "service": "discounts",
        "status": "healthy",
        "features": [
            "Descuentos predefinidos 10/12/15%",
            "Descuentos personalizados",
            "Descuentos del owner con razón",
            "Revocación"
        ]
    }

@owner_router.post("", response_model=OrderDiscountsResponse)
async def add_owner_discount(
    discount_data: OwnerDiscountCreate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """Descuento agregado por el owner (razón obligatoria)"""
    service = DiscountsService(db)
    return service.add_owner_discount(
        discount_data.order_id, discount_data.percentage, discount_data.reason, actor
    )
