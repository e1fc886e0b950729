# app/modules/discounts/service.py
"""
Libro de descuentos por pedido.

Un pedido tiene como mucho un descuento APPLIED a la vez. Revocar no borra
el registro: lo marca REVOKED y deja libre el pedido para un nuevo
descuento. El total efectivo siempre se recalcula desde el libro.
"""

from typing import Optional
from decimal import Decimal
from sqlalchemy.orm import Session
import logging

from app.config.settings import settings
from app.core.auth.schemas import Actor, UserRole
from app.core.auth.permissions import ensure_role, ADMIN_ROLES
from app.core.errors import (
    EngineError, NotFoundError, InvalidStateError, InvalidPercentageError,
    ValidationError, DiscountAlreadyAppliedError, PromotionStackingViolationError,
    DiscountNotFoundError
)
from app.shared.database.models import Order
from app.shared.schemas.enums import DiscountType, DiscountStatus, OrderStatus, CLOSED_ORDER_STATUSES
from app.shared.services.pricing import applied_percentage, effective_total, to_percentage, ZERO
from app.modules.orders.repository import OrdersRepository
from .repository import DiscountsRepository
from .schemas import DiscountResponse, OrderDiscountsResponse

logger = logging.getLogger(__name__)

class DiscountsService:
    def __init__(self, db: Session):
        self.db = db
        self.repository = DiscountsRepository(db)
        self.orders_repository = OrdersRepository(db)

    # ===== APLICACIÓN =====

    def apply_preset(self, order_id: int, percentage: int, actor: Actor) -> OrderDiscountsResponse:
        """Aplicar descuento predefinido (10, 12 o 15%)"""
        ensure_role(actor, [UserRole.ADMIN], "aplicar descuentos predefinidos")

        # Sólo los presets configurados que además tienen tipo propio
        allowed = [p for p in settings.preset_discounts if p in DiscountType.preset_percentages()]
        if percentage not in allowed:
            raise InvalidPercentageError(
                f"Descuento predefinido no válido: {percentage}%",
                {"percentage": percentage, "allowed": allowed}
            )

        return self._apply(
            order_id,
            Decimal(percentage),
            DiscountType.preset(percentage),
            actor
        )

    def apply_custom(self, order_id: int, percentage, actor: Actor) -> OrderDiscountsResponse:
        ensure_role(actor, [UserRole.ADMIN], "aplicar descuentos personalizados")
        return self._apply(order_id, self._validate_percentage(percentage), DiscountType.CUSTOM, actor)

    def add_owner_discount(self, order_id: int, percentage, reason: Optional[str], actor: Actor) -> OrderDiscountsResponse:
        """Descuento del owner; la razón es obligatoria"""
        ensure_role(actor, [UserRole.OWNER], "agregar descuentos de owner")

        if not reason or not reason.strip():
            raise ValidationError("La razón del descuento es obligatoria", {"field": "reason"})

        return self._apply(
            order_id,
            self._validate_percentage(percentage),
            DiscountType.OWNER_ADDED,
            actor,
            reason=reason.strip()
        )

    # ===== REVOCACIÓN =====

    def revoke(self, discount_id: int, actor: Actor) -> OrderDiscountsResponse:
        ensure_role(actor, ADMIN_ROLES, "revocar descuentos")

        discount = self.repository.get_discount_by_id(discount_id)
        if not discount:
            raise DiscountNotFoundError(discount_id)

        try:
            order = self.orders_repository.get_order_for_update(discount.order_id)
            discount = next(d for d in order.discounts if d.id == discount_id)

            if discount.status != DiscountStatus.APPLIED.value:
                raise InvalidStateError(
                    f"El descuento {discount_id} ya fue revocado",
                    {"discount_id": discount_id, "status": discount.status}
                )

            self.repository.revoke_discount(discount, actor.id)
            self.orders_repository.touch(order)
            self.db.commit()
            logger.info(
                f"↩️ Descuento {discount_id} ({discount.percentage}%) revocado en pedido "
                f"#{order.id} por usuario {actor.id}"
            )

        except EngineError as e:
            self.db.rollback()
            logger.warning(f"Revocación rechazada para descuento {discount_id}: {e.message}")
            raise
        except Exception:
            self.db.rollback()
            logger.exception(f"❌ Error revocando descuento {discount_id}")
            raise

        return self._order_discounts(order, "Descuento revocado")

    # ===== CONSULTAS =====

    def list_order_discounts(self, order_id: int, actor: Actor) -> OrderDiscountsResponse:
        ensure_role(actor, ADMIN_ROLES, "consultar descuentos")
        order = self.orders_repository.get_order_by_id(order_id)
        if not order:
            raise NotFoundError("Pedido", order_id)
        return self._order_discounts(order, "Descuentos del pedido")

    # ===== HELPERS =====

    def _apply(
        self,
        order_id: int,
        percentage: Decimal,
        discount_type: DiscountType,
        actor: Actor,
        reason: Optional[str] = None
    ) -> OrderDiscountsResponse:
        """
        Aplicar un descuento bajo el bloqueo del pedido.

        Precondiciones (todas antes de escribir):
        - el pedido existe y no está cerrado
        - no hay otro descuento APPLIED
        - ninguna promoción del pedido prohíbe acumular descuentos
        """
        try:
            order = self.orders_repository.get_order_for_update(order_id)
            if not order:
                raise NotFoundError("Pedido", order_id)

            if OrderStatus(order.status) in CLOSED_ORDER_STATUSES:
                raise InvalidStateError(
                    f"No se pueden aplicar descuentos a un pedido {order.status}",
                    {"order_id": order_id, "status": order.status}
                )

            active = [d for d in order.discounts if d.status == DiscountStatus.APPLIED.value]
            if active:
                raise DiscountAlreadyAppliedError(
                    f"El pedido #{order_id} ya tiene un descuento activo de {active[0].percentage}%",
                    {"order_id": order_id, "discount_id": active[0].id}
                )

            self._ensure_stackable(order)

            discount = self.repository.create_discount(
                order, percentage, discount_type.value, actor.id, reason
            )
            self.orders_repository.touch(order)
            self.db.commit()
            logger.info(
                f"🏷️ Descuento {discount_type.value} de {percentage}% aplicado a pedido "
                f"#{order_id} por usuario {actor.id} (id {discount.id})"
            )

        except EngineError as e:
            self.db.rollback()
            logger.warning(f"Descuento rechazado para pedido {order_id}: {e.message}")
            raise
        except Exception:
            self.db.rollback()
            logger.exception(f"❌ Error aplicando descuento al pedido {order_id}")
            raise

        return self._order_discounts(order, "Descuento aplicado")

    @staticmethod
    def _ensure_stackable(order: Order) -> None:
        blocking = sorted({
            item.promotion_id
            for item in order.items
            if item.promotion is not None and not item.promotion.allow_stack_with_discounts
        })
        if blocking:
            raise PromotionStackingViolationError(
                f"El pedido #{order.id} tiene promociones que no permiten descuentos adicionales",
                {"order_id": order.id, "promotion_ids": blocking}
            )

    @staticmethod
    def _validate_percentage(percentage) -> Decimal:
        value = to_percentage(percentage)
        if value <= ZERO or value > Decimal(settings.max_discount_percentage):
            raise InvalidPercentageError(
                f"El porcentaje debe estar entre 0 (exclusivo) y {settings.max_discount_percentage}",
                {"percentage": str(percentage)}
            )
        return value

    @staticmethod
    def _order_discounts(order: Order, message: str) -> OrderDiscountsResponse:
        return OrderDiscountsResponse(
            success=True,
            message=message,
            order_id=order.id,
            revision=order.revision,
            original_total=order.total,
            discount_percentage=applied_percentage(order.discounts),
            discounted_total=effective_total(order.total, order.discounts),
            discounts=[DiscountResponse.model_validate(d) for d in order.discounts]
        )
