# app/modules/balances/router.py
from typing import Optional
from decimal import Decimal
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.dependencies import get_current_actor
from app.core.auth.schemas import Actor
from .service import BalancesService
from .schemas import BalanceListResponse, ClientBalanceDetailResponse

router = APIRouter()

@router.get("", response_model=BalanceListResponse)
async def list_balances(
    vendor_id: Optional[int] = Query(None, alias="vendorId", description="Filtrar por vendedor"),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """Saldos de la cartera (un vendedor solo ve sus clientes)"""
    service = BalancesService(db)
    return service.list_balances(actor, vendor_id=vendor_id)

@router.get("/health")
async def balances_health():
    return {
        "service": "balances",
        "status": "healthy",
        "features": ["Saldo por cliente", "Cupo de crédito", "Saldo inicial"]
    }

@router.get("/client/{client_id}", response_model=ClientBalanceDetailResponse)
async def get_client_balance(
    client_id: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """
    Saldo del cliente

    - total_owed: pedidos no cancelados con descuento + saldo inicial
    - total_paid: abonos registrados
    - pending_balance: nunca negativo
    """
    service = BalancesService(db)
    return service.get_client_balance(client_id, actor)

@router.put("/client/{client_id}/credit-limit", response_model=ClientBalanceDetailResponse)
async def set_credit_limit(
    client_id: int,
    amount: Decimal = Query(..., description="Cupo de crédito"),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    service = BalancesService(db)
    return service.set_credit_limit(client_id, amount, actor)

@router.delete("/client/{client_id}/credit-limit", response_model=ClientBalanceDetailResponse)
async def remove_credit_limit(
    client_id: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    service = BalancesService(db)
    return service.remove_credit_limit(client_id, actor)

@router.put("/client/{client_id}/initial-balance", response_model=ClientBalanceDetailResponse)
async def set_initial_balance(
    client_id: int,
    amount: Decimal = Query(..., description="Saldo inicial (solo una vez)"),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """Registrar saldo inicial; no se puede modificar una vez fijado"""
    service = BalancesService(db)
    return service.set_initial_balance(client_id, amount, actor)
