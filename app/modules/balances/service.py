from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from sqlalchemy.orm import Session
import logging

from app.core.auth.schemas import Actor, UserRole
from app.core.auth.permissions import ensure_role, ensure_client_access
from app.core.errors import (
    EngineError, NotFoundError, AlreadySetError, InvalidAmountError,
    CreditLimitExceededError
)
from app.shared.database.models import Client, ClientBalance
from app.shared.schemas.enums import OrderStatus
from app.shared.services.pricing import settle_order, to_money, ZERO
from .repository import BalancesRepository
from .schemas import (
    ClientBalanceResponse, ClientBalanceDetailResponse, BalanceListResponse,
    PendingOrderSummary
)

logger = logging.getLogger(__name__)

BALANCE_READER_ROLES = (UserRole.ADMIN, UserRole.OWNER, UserRole.VENDEDOR)

class BalancesService:
    """
    Saldo del cliente agregado desde sus pedidos.

    - total_owed: suma de totales con descuento de pedidos no cancelados
      más el saldo inicial
    - total_paid: suma de abonos de todos los pedidos
    - pending_balance: max(0, total_owed - total_paid - descuentos por pago)

    Sólo `credit_limit` y el saldo inicial se persisten; el resto se recalcula
    en cada lectura.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repository = BalancesRepository(db)

    # ===== CONSULTAS =====

    def get_client_balance(self, client_id: int, actor: Actor) -> ClientBalanceDetailResponse:
        ensure_role(actor, BALANCE_READER_ROLES, "consultar saldos")
        client = self._get_client_or_404(client_id)
        ensure_client_access(actor, client, "consultar el saldo")

        return ClientBalanceDetailResponse(
            success=True,
            message="Saldo obtenido",
            balance=self.compute_balance(client)
        )

    def list_balances(self, actor: Actor, vendor_id: Optional[int] = None) -> BalanceListResponse:
        """Saldos de la cartera; un vendedor sólo ve sus propios clientes"""
        ensure_role(actor, BALANCE_READER_ROLES, "listar saldos")
        if actor.role == UserRole.VENDEDOR:
            vendor_id = actor.id

        balances = [self.compute_balance(client) for client in self.repository.get_clients(vendor_id)]
        total_pending = to_money(sum((b.pending_balance for b in balances), ZERO))

        return BalanceListResponse(
            success=True,
            message=f"{len(balances)} clientes",
            balances=balances,
            total=len(balances),
            total_pending=total_pending
        )

    def compute_balance(self, client: Client) -> ClientBalanceResponse:
        record = self.repository.get_balance(client.id)
        initial_balance = to_money(record.initial_balance) if record else to_money(ZERO)

        total_owed = initial_balance
        total_paid = ZERO
        total_payment_discounts = ZERO
        pending_orders: List[PendingOrderSummary] = []

        for order in self.repository.get_client_orders(client.id):
            snapshot = settle_order(order)
            # Los abonos de pedidos cancelados siguen contando como pagados
            total_paid += snapshot.total_paid
            if order.status == OrderStatus.CANCELADO.value:
                continue

            total_owed += snapshot.effective_total
            total_payment_discounts += snapshot.total_payment_discounts
            if snapshot.pending_balance > ZERO:
                pending_orders.append(PendingOrderSummary(
                    order_id=order.id,
                    order_date=order.order_date,
                    status=order.status,
                    discounted_total=snapshot.effective_total,
                    total_paid=snapshot.total_paid,
                    pending_balance=snapshot.pending_balance
                ))

        pending_balance = max(ZERO, total_owed - total_paid - total_payment_discounts)

        credit_limit = None
        available_credit = None
        if record and record.credit_limit is not None:
            credit_limit = to_money(record.credit_limit)
            available_credit = to_money(max(ZERO, credit_limit - pending_balance))

        return ClientBalanceResponse(
            client_id=client.id,
            client_name=client.name,
            vendor_id=client.vendor_id,
            total_owed=to_money(total_owed),
            total_paid=to_money(total_paid),
            total_payment_discounts=to_money(total_payment_discounts),
            pending_balance=to_money(pending_balance),
            credit_limit=credit_limit,
            available_credit=available_credit,
            initial_balance=initial_balance,
            initial_balance_set=bool(record and record.initial_balance_set),
            initial_balance_set_at=record.initial_balance_set_at if record else None,
            pending_orders=pending_orders
        )

    def check_credit(self, client_id: int, new_order_total) -> None:
        """
        Verificar que un pedido nuevo cabe en el cupo del cliente.

        Raises:
            CreditLimitExceededError: si saldo pendiente + pedido supera el cupo
        """
        client = self._get_client_or_404(client_id)
        balance = self.compute_balance(client)
        if balance.credit_limit is None:
            return

        new_order_total = to_money(new_order_total)
        projected = balance.pending_balance + new_order_total
        if projected > balance.credit_limit:
            logger.warning(
                f"💳 Cupo excedido cliente {client_id}: pendiente ${balance.pending_balance} "
                f"+ pedido ${new_order_total} > cupo ${balance.credit_limit}"
            )
            raise CreditLimitExceededError(
                f"El pedido excede el cupo de crédito del cliente {client_id}",
                {
                    "client_id": client_id,
                    "credit_limit": str(balance.credit_limit),
                    "pending_balance": str(balance.pending_balance),
                    "order_total": str(new_order_total)
                }
            )

    # ===== MUTACIONES (OWNER) =====

    def set_credit_limit(self, client_id: int, amount: Decimal, actor: Actor) -> ClientBalanceDetailResponse:
        ensure_role(actor, [UserRole.OWNER], "fijar cupos de crédito")
        amount = self._validate_amount(amount, "cupo de crédito")

        def apply(record: ClientBalance):
            record.credit_limit = amount

        self._mutate(client_id, apply, f"💳 Cupo de cliente {client_id} fijado en ${amount}")
        return self._detail(client_id, "Cupo de crédito actualizado")

    def remove_credit_limit(self, client_id: int, actor: Actor) -> ClientBalanceDetailResponse:
        ensure_role(actor, [UserRole.OWNER], "quitar cupos de crédito")

        def apply(record: ClientBalance):
            record.credit_limit = None

        self._mutate(client_id, apply, f"💳 Cupo de cliente {client_id} eliminado")
        return self._detail(client_id, "Cupo de crédito eliminado")

    def set_initial_balance(self, client_id: int, amount: Decimal, actor: Actor) -> ClientBalanceDetailResponse:
        """El saldo inicial sólo puede fijarse una vez"""
        ensure_role(actor, [UserRole.OWNER], "fijar saldos iniciales")
        amount = self._validate_amount(amount, "saldo inicial")

        def apply(record: ClientBalance):
            if record.initial_balance_set:
                raise AlreadySetError(
                    f"El saldo inicial del cliente {client_id} ya fue fijado",
                    {
                        "client_id": client_id,
                        "initial_balance": str(to_money(record.initial_balance)),
                        "set_at": record.initial_balance_set_at.isoformat() if record.initial_balance_set_at else None
                    }
                )
            record.initial_balance = amount
            record.initial_balance_set = True
            record.initial_balance_set_by = actor.id
            record.initial_balance_set_at = datetime.now()

        self._mutate(client_id, apply, f"📒 Saldo inicial de cliente {client_id} fijado en ${amount}")
        return self._detail(client_id, "Saldo inicial registrado")

    # ===== HELPERS =====

    def _mutate(self, client_id: int, apply, log_message: str) -> None:
        try:
            self._get_client_or_404(client_id)
            record = self.repository.get_balance_for_update(client_id)
            apply(record)
            self.db.commit()
            logger.info(log_message)
        except EngineError as e:
            self.db.rollback()
            logger.warning(f"Operación de saldo rechazada para cliente {client_id}: {e.message}")
            raise
        except Exception:
            self.db.rollback()
            logger.exception(f"❌ Error actualizando saldo del cliente {client_id}")
            raise

    def _detail(self, client_id: int, message: str) -> ClientBalanceDetailResponse:
        client = self._get_client_or_404(client_id)
        return ClientBalanceDetailResponse(success=True, message=message, balance=self.compute_balance(client))

    def _get_client_or_404(self, client_id: int) -> Client:
        client = self.repository.get_client(client_id)
        if not client:
            raise NotFoundError("Cliente", client_id)
        return client

    @staticmethod
    def _validate_amount(amount, label: str) -> Decimal:
        value = to_money(amount)
        if value < ZERO:
            raise InvalidAmountError(
                f"El {label} no puede ser negativo",
                {"amount": str(amount)}
            )
        return value
