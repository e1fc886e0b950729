# app/modules/promotions/router.py
from fastapi import APIRouter, Depends, Query, Body
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.dependencies import get_current_actor
from app.core.auth.schemas import Actor
from app.shared.schemas.common import BaseResponse
from app.modules.orders.schemas import OrderDetailResponse, build_order_response
from .service import PromotionsService
from .schemas import (
    PromotionCreate, PromotionResponse, PromotionListResponse, AssortmentRequest
)

router = APIRouter()

@router.get("", response_model=PromotionListResponse)
async def list_promotions(
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """Listar todas las promociones (activas e inactivas)"""
    service = PromotionsService(db)
    return service.list_promotions(actor)

@router.post("", response_model=PromotionResponse, status_code=201)
async def create_promotion(
    promotion_data: PromotionCreate = Body(...),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """
    Crear promoción

    **Tipos:**
    - PACK: requiere `gift_items`; los regalos se agregan al crear el pedido
    - BUY_GET_FREE: requiere `free_quantity`; el surtido se elige después
    """
    service = PromotionsService(db)
    return service.create_promotion(promotion_data, actor)

@router.get("/valid", response_model=PromotionListResponse)
async def list_valid_promotions(
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """Promociones vigentes (catálogo para vendedores y clientes)"""
    service = PromotionsService(db)
    return service.list_valid_promotions(actor)

@router.get("/health")
async def promotions_health():
    return {
        "service": "promotions",
        "status": "healthy",
        "promotion_types": ["PACK", "BUY_GET_FREE"]
    }

@router.get("/{promotion_id}", response_model=PromotionResponse)
async def get_promotion(
    promotion_id: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    service = PromotionsService(db)
    return service.get_promotion(promotion_id, actor)

@router.put("/{promotion_id}", response_model=PromotionResponse)
async def update_promotion(
    promotion_id: int,
    promotion_data: PromotionCreate = Body(...),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    service = PromotionsService(db)
    return service.update_promotion(promotion_id, promotion_data, actor)

@router.patch("/{promotion_id}/status", response_model=PromotionResponse)
async def set_promotion_status(
    promotion_id: int,
    active: bool = Query(..., description="Nuevo estado de la promoción"),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    service = PromotionsService(db)
    return service.set_promotion_status(promotion_id, active, actor)

@router.delete("/{promotion_id}", response_model=BaseResponse)
async def delete_promotion(
    promotion_id: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """Eliminar promoción que no se haya usado en ningún pedido"""
    service = PromotionsService(db)
    service.delete_promotion(promotion_id, actor)
    return BaseResponse(success=True, message=f"Promoción {promotion_id} eliminada")

@router.post("/{promotion_id}/orders/{order_id}/assortment", response_model=OrderDetailResponse)
async def complete_assortment(
    promotion_id: int,
    order_id: int,
    request: AssortmentRequest,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """
    Completar el surtido de una promoción BUY_GET_FREE

    La suma de cantidades debe ser exactamente la cantidad libre de la
    promoción y cada producto debe tener stock suficiente.
    """
    service = PromotionsService(db)
    order = service.complete_assortment(order_id, promotion_id, request.selections, actor)
    return OrderDetailResponse(
        success=True,
        message="Surtido completado",
        order=build_order_response(order)
    )
