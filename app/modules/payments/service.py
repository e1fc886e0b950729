from typing import Optional
from decimal import Decimal
from sqlalchemy.orm import Session
import logging

from app.config.settings import settings
from app.core.auth.schemas import Actor, UserRole
from app.core.auth.permissions import ensure_role, ADMIN_ROLES
from app.core.errors import (
    EngineError, NotFoundError, InvalidStateError, InvalidAmountError,
    InvalidPercentageError
)
from app.shared.database.models import Order
from app.shared.schemas.enums import OrderStatus
from app.shared.services.pricing import settle_order, settle_payment, to_money, to_percentage, ZERO, HUNDRED
from app.modules.orders.repository import OrdersRepository
from .repository import PaymentsRepository
from .schemas import PaymentCreate, PaymentResponse, OrderPaymentsResponse

logger = logging.getLogger(__name__)

class PaymentsService:
    def __init__(self, db: Session):
        self.db = db
        self.repository = PaymentsRepository(db)
        self.orders_repository = OrdersRepository(db)

    def record_payment(self, payment_data: PaymentCreate, actor: Actor) -> OrderPaymentsResponse:
        """
        Registrar abono contra un pedido.

        El descuento por pago se calcula sobre el saldo pendiente en el
        momento del abono y el saldo resultante nunca baja de cero.
        """
        ensure_role(actor, [UserRole.OWNER], "registrar pagos")

        # Se valida el valor ya redondeado, que es el que se persiste
        amount = to_money(payment_data.amount)
        if amount <= ZERO:
            raise InvalidAmountError(
                "El monto del pago debe ser mayor a $0",
                {"amount": str(payment_data.amount)}
            )

        discount_applied = payment_data.discount_applied
        if discount_applied is not None:
            discount_applied = to_percentage(discount_applied)
            if discount_applied < ZERO or discount_applied > HUNDRED:
                raise InvalidPercentageError(
                    "El descuento del pago debe estar entre 0 y 100",
                    {"discount_applied": str(discount_applied)}
                )

        order_id = payment_data.order_id
        try:
            order = self.orders_repository.get_order_for_update(order_id)
            if not order:
                raise NotFoundError("Pedido", order_id)

            if order.status == OrderStatus.CANCELADO.value:
                raise InvalidStateError(
                    f"No se pueden registrar pagos en el pedido cancelado #{order_id}",
                    {"order_id": order_id, "status": order.status}
                )

            if not settings.allow_overpayment:
                self._ensure_not_overpaid(order, amount, discount_applied)

            payment = self.repository.create_payment(
                order,
                {
                    "amount": amount,
                    "within_deadline": payment_data.within_deadline,
                    "discount_applied": discount_applied,
                    "notes": payment_data.notes
                },
                registered_by=actor.id
            )
            self.orders_repository.touch(order)
            self.db.commit()
            logger.info(
                f"💰 Pago {payment.id} de ${amount} registrado en pedido #{order_id} "
                f"(descuento {discount_applied or 0}%) por usuario {actor.id}"
            )

        except EngineError as e:
            self.db.rollback()
            logger.warning(f"Pago rechazado para pedido {order_id}: {e.message}")
            raise
        except Exception:
            self.db.rollback()
            logger.exception(f"❌ Error registrando pago en pedido {order_id}")
            raise

        return self._order_payments(order, "Pago registrado")

    def cancel_payment(self, payment_id: int, actor: Actor) -> OrderPaymentsResponse:
        """Anular un pago eliminándolo del libro; el saldo se recalcula"""
        ensure_role(actor, [UserRole.OWNER], "anular pagos")

        payment = self.repository.get_payment_by_id(payment_id)
        if not payment:
            raise NotFoundError("Pago", payment_id)

        try:
            order = self.orders_repository.get_order_for_update(payment.order_id)
            payment = next(p for p in order.payments if p.id == payment_id)
            self.repository.delete_payment(order, payment)
            self.orders_repository.touch(order)
            self.db.commit()
            logger.info(f"🗑️ Pago {payment_id} anulado en pedido #{order.id} por usuario {actor.id}")

        except Exception:
            self.db.rollback()
            logger.exception(f"❌ Error anulando pago {payment_id}")
            raise

        return self._order_payments(order, "Pago anulado")

    def list_order_payments(self, order_id: int, actor: Actor) -> OrderPaymentsResponse:
        ensure_role(actor, ADMIN_ROLES, "consultar pagos")
        order = self.orders_repository.get_order_by_id(order_id)
        if not order:
            raise NotFoundError("Pedido", order_id)
        return self._order_payments(order, "Pagos del pedido")

    # ===== HELPERS =====

    @staticmethod
    def _ensure_not_overpaid(order: Order, amount: Decimal, discount_applied: Optional[Decimal]) -> None:
        pending = settle_order(order).pending_balance
        line = settle_payment(pending, amount, discount_applied)
        payable = pending - line.discount_amount
        if line.amount > payable:
            raise InvalidAmountError(
                f"El pago de ${line.amount} excede el saldo pendiente de ${payable}",
                {"amount": str(line.amount), "pending_balance": str(payable)}
            )

    @staticmethod
    def _order_payments(order: Order, message: str) -> OrderPaymentsResponse:
        snapshot = settle_order(order)
        lines = {line.payment_id: line for line in snapshot.payments}

        return OrderPaymentsResponse(
            success=True,
            message=message,
            order_id=order.id,
            revision=order.revision,
            discounted_total=snapshot.effective_total,
            total_paid=snapshot.total_paid,
            total_payment_discounts=snapshot.total_payment_discounts,
            pending_balance=snapshot.pending_balance,
            payments=[
                PaymentResponse(
                    id=payment.id,
                    order_id=payment.order_id,
                    amount=payment.amount,
                    payment_date=payment.payment_date,
                    within_deadline=payment.within_deadline,
                    discount_applied=payment.discount_applied,
                    notes=payment.notes,
                    registered_by=payment.registered_by,
                    pending_before=lines[payment.id].pending_before,
                    discount_amount=lines[payment.id].discount_amount,
                    pending_after=lines[payment.id].pending_after
                )
                for payment in order.payments
            ]
        )
