# app/modules/balances/schemas.py
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime

from app.shared.schemas.common import BaseResponse, Money
from app.shared.schemas.enums import OrderStatus

class PendingOrderSummary(BaseModel):
    """Pedido con saldo por cobrar"""
    order_id: int
    order_date: datetime
    status: OrderStatus
    discounted_total: Money
    total_paid: Money
    pending_balance: Money

class ClientBalanceResponse(BaseModel):
    client_id: int
    client_name: str
    vendor_id: Optional[int]

    total_owed: Money
    total_paid: Money
    total_payment_discounts: Money
    pending_balance: Money

    credit_limit: Optional[Money]
    available_credit: Optional[Money]
    initial_balance: Money
    initial_balance_set: bool
    initial_balance_set_at: Optional[datetime] = None

    pending_orders: List[PendingOrderSummary] = []

class ClientBalanceDetailResponse(BaseResponse):
    balance: ClientBalanceResponse

class BalanceListResponse(BaseResponse):
    balances: List[ClientBalanceResponse]
    total: int
    total_pending: Money
