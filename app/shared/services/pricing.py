# app/shared/services/pricing.py
"""
Cálculos de totales derivados de los libros de descuentos y pagos.

Nada de lo que se calcula aquí se persiste: los totales siempre se
recalculan plegando los registros completos, así que añadir o revocar un
descuento, o anular un pago, deja el saldo consistente sin contadores que
sincronizar.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional

CENTS = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")

DISCOUNT_APPLIED = "APPLIED"


def to_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_money(value) -> Decimal:
    """Redondear a centavos (half-up)"""
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def to_percentage(value) -> Decimal:
    """Porcentaje a la escala de la columna Numeric(5,2)"""
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def line_subtotal(quantity: int, unit_price, is_free: bool = False) -> Decimal:
    if is_free:
        return to_money(ZERO)
    return to_money(Decimal(quantity) * to_decimal(unit_price))


def applied_percentage(discounts: Iterable) -> Decimal:
    """Suma de porcentajes de todos los descuentos APPLIED"""
    return sum(
        (to_decimal(d.percentage) for d in discounts if d.status == DISCOUNT_APPLIED),
        ZERO
    )


def effective_total(original_total, discounts: Iterable) -> Decimal:
    """
    Total del pedido tras los descuentos activos.

    Se escribe como suma sobre todos los descuentos APPLIED aunque la regla
    de negocio garantice que como mucho hay uno.
    """
    total = to_decimal(original_total)
    reduction = total * applied_percentage(discounts) / HUNDRED
    return to_money(max(ZERO, total - reduction))


@dataclass
class PaymentSettlement:
    """Efecto de un abono sobre el saldo pendiente"""
    payment_id: Optional[int]
    amount: Decimal
    discount_applied: Decimal
    pending_before: Decimal
    discount_amount: Decimal
    pending_after: Decimal


@dataclass
class SettlementSnapshot:
    effective_total: Decimal
    total_paid: Decimal = ZERO
    total_payment_discounts: Decimal = ZERO
    pending_balance: Decimal = ZERO
    payments: List[PaymentSettlement] = field(default_factory=list)


def settle_payment(pending_before, amount, discount_applied=None, payment_id=None) -> PaymentSettlement:
    """
    Aplicar un abono: el descuento local se calcula sobre el saldo pendiente
    en el momento del pago y el saldo resultante nunca es negativo.
    """
    pending_before = to_money(pending_before)
    amount = to_money(amount)
    percentage = to_decimal(discount_applied)
    discount_amount = to_money(pending_before * percentage / HUNDRED)
    pending_after = max(ZERO, pending_before - discount_amount - amount)

    return PaymentSettlement(
        payment_id=payment_id,
        amount=amount,
        discount_applied=percentage,
        pending_before=pending_before,
        discount_amount=discount_amount,
        pending_after=to_money(pending_after)
    )


def _payment_sort_key(payment):
    return (payment.payment_date or datetime.min, payment.id or 0)


def settle(effective: Decimal, payments: Iterable) -> SettlementSnapshot:
    """Plegar los abonos en orden cronológico sobre el total efectivo"""
    snapshot = SettlementSnapshot(effective_total=to_money(effective))
    pending = snapshot.effective_total

    for payment in sorted(payments, key=_payment_sort_key):
        line = settle_payment(pending, payment.amount, payment.discount_applied, payment.id)
        snapshot.payments.append(line)
        snapshot.total_paid += line.amount
        snapshot.total_payment_discounts += line.discount_amount
        pending = line.pending_after

    snapshot.total_paid = to_money(snapshot.total_paid)
    snapshot.total_payment_discounts = to_money(snapshot.total_payment_discounts)
    snapshot.pending_balance = pending
    return snapshot


def settle_order(order) -> SettlementSnapshot:
    """Snapshot de liquidación de un pedido a partir de sus libros"""
    return settle(effective_total(order.total, order.discounts), order.payments)
