from typing import List, Optional
from datetime import datetime
from sqlalchemy.orm import Session
import logging

from app.core.auth.schemas import Actor, UserRole
from app.core.auth.permissions import ensure_role, ADMIN_ROLES, ALL_ROLES
from app.core.errors import (
    EngineError, NotFoundError, ConflictError, InvalidStateError,
    AssortmentQuantityMismatchError, ValidationError
)
from app.shared.database.models import Order, Promotion
from app.shared.schemas.enums import OrderStatus, PromotionType
from app.shared.services.inventory_service import InventoryService
from app.modules.orders.repository import OrdersRepository
from .repository import PromotionsRepository
from .resolver import free_item, is_promotion_valid
from .schemas import (
    PromotionCreate, PackPromotionCreate, AssortmentSelection,
    PromotionResponse, PromotionListResponse, GiftItemResponse, ProductSummary
)

logger = logging.getLogger(__name__)

class PromotionsService:
    def __init__(self, db: Session):
        self.db = db
        self.repository = PromotionsRepository(db)
        self.orders_repository = OrdersRepository(db)

    # ===== ADMINISTRACIÓN DE PROMOCIONES =====

    def create_promotion(self, promotion_data: PromotionCreate, actor: Actor) -> PromotionResponse:
        """Crear promoción PACK o BUY_GET_FREE"""
        ensure_role(actor, ADMIN_ROLES, "crear promociones")

        try:
            values, gifts = self._validated_values(promotion_data)
            values['created_by_user_id'] = actor.id
            promotion = self.repository.create_promotion(values, gifts)
            self.db.commit()
            logger.info(f"✅ Promoción {promotion.id} '{promotion.name}' creada por usuario {actor.id}")
        except EngineError:
            self.db.rollback()
            raise
        except Exception:
            self.db.rollback()
            logger.exception("❌ Error creando promoción")
            raise

        return self._to_response(self.repository.get_promotion_by_id(promotion.id))

    def update_promotion(self, promotion_id: int, promotion_data: PromotionCreate, actor: Actor) -> PromotionResponse:
        """Reemplazar la definición completa de una promoción"""
        ensure_role(actor, ADMIN_ROLES, "actualizar promociones")

        try:
            promotion = self._get_or_404(promotion_id)
            values, gifts = self._validated_values(promotion_data)
            if self.repository.is_promotion_in_use(promotion_id):
                self._ensure_entitlement_unchanged(promotion, values, gifts)
            self.repository.replace_promotion(promotion, values, gifts)
            self.db.commit()
            logger.info(f"✏️ Promoción {promotion_id} actualizada por usuario {actor.id}")
        except EngineError:
            self.db.rollback()
            raise
        except Exception:
            self.db.rollback()
            logger.exception(f"❌ Error actualizando promoción {promotion_id}")
            raise

        self.db.expire_all()
        return self._to_response(self.repository.get_promotion_by_id(promotion_id))

    def set_promotion_status(self, promotion_id: int, active: bool, actor: Actor) -> PromotionResponse:
        ensure_role(actor, ADMIN_ROLES, "activar/desactivar promociones")

        promotion = self._get_or_404(promotion_id)
        promotion.active = active
        self.db.commit()
        logger.info(f"Promoción {promotion_id} {'activada' if active else 'desactivada'} por usuario {actor.id}")
        return self._to_response(promotion)

    def delete_promotion(self, promotion_id: int, actor: Actor) -> None:
        ensure_role(actor, ADMIN_ROLES, "eliminar promociones")

        promotion = self._get_or_404(promotion_id)
        if self.repository.is_promotion_in_use(promotion_id):
            raise ConflictError(
                "La promoción ya está aplicada en pedidos; desactívela en lugar de eliminarla",
                {"promotion_id": promotion_id}
            )
        self.repository.delete_promotion(promotion)
        self.db.commit()
        logger.info(f"🗑️ Promoción {promotion_id} eliminada por usuario {actor.id}")

    def get_promotion(self, promotion_id: int, actor: Actor) -> PromotionResponse:
        ensure_role(actor, ADMIN_ROLES, "consultar promociones")
        return self._to_response(self._get_or_404(promotion_id))

    def list_promotions(self, actor: Actor) -> PromotionListResponse:
        ensure_role(actor, ADMIN_ROLES, "listar promociones")
        promotions = [self._to_response(p) for p in self.repository.get_all_promotions()]
        return PromotionListResponse(
            success=True,
            message="Promociones obtenidas",
            promotions=promotions,
            total=len(promotions)
        )

    def list_valid_promotions(self, actor: Actor, now: Optional[datetime] = None) -> PromotionListResponse:
        """Catálogo de promociones vigentes (vendedores y clientes)"""
        ensure_role(actor, ALL_ROLES, "consultar promociones vigentes")
        now = now or datetime.now()
        promotions = [self._to_response(p, now) for p in self.repository.get_valid_promotions(now)]
        return PromotionListResponse(
            success=True,
            message="Promociones vigentes",
            promotions=promotions,
            total=len(promotions)
        )

    # ===== SURTIDO (BUY_GET_FREE) =====

    def complete_assortment(
        self,
        order_id: int,
        promotion_id: int,
        selections: List[AssortmentSelection],
        actor: Actor
    ) -> Order:
        """
        Reemplazar el marcador de surtido pendiente por los productos elegidos.

        La suma de cantidades debe ser exactamente la cantidad del marcador
        (el `free_quantity` vigente al crear el pedido) y cada
        producto debe tener stock suficiente. Toda la validación ocurre antes
        de escribir. Si no quedan surtidos pendientes el pedido pasa a
        CONFIRMADO.
        """
        ensure_role(actor, [UserRole.ADMIN], "completar surtidos de promoción")

        try:
            order = self.orders_repository.get_order_for_update(order_id)
            if not order:
                raise NotFoundError("Pedido", order_id)

            promotion = self._get_or_404(promotion_id)
            placeholder = next(
                (item for item in order.items
                 if item.promotion_id == promotion_id and item.is_pending_assortment),
                None
            )
            if placeholder is None:
                if promotion.type != PromotionType.BUY_GET_FREE.value:
                    raise ValidationError(
                        f"La promoción {promotion_id} no requiere selección de surtido",
                        {"promotion_id": promotion_id, "type": promotion.type}
                    )
                raise InvalidStateError(
                    f"El pedido {order_id} no tiene surtido pendiente para la promoción {promotion_id}",
                    {"order_id": order_id, "promotion_id": promotion_id, "status": order.status}
                )
            if order.status != OrderStatus.PENDING_PROMOTION_COMPLETION.value:
                raise InvalidStateError(
                    f"El pedido {order_id} está en estado {order.status}",
                    {"order_id": order_id, "status": order.status}
                )

            # El derecho quedó fijado en el marcador al crear el pedido
            expected = placeholder.quantity
            if not selections:
                raise AssortmentQuantityMismatchError(
                    f"Debe seleccionar exactamente {expected} productos",
                    {"expected": expected, "selected": 0}
                )

            selected_total = sum(selection.quantity for selection in selections)
            if selected_total != expected:
                raise AssortmentQuantityMismatchError(
                    f"Debe seleccionar exactamente {expected} productos "
                    f"(seleccionados: {selected_total})",
                    {"expected": expected, "selected": selected_total}
                )

            products = InventoryService.require_active_products(
                self.db, [selection.product_id for selection in selections]
            )
            InventoryService.validate_stock(
                products, [(s.product_id, s.quantity) for s in selections]
            )

            # ===== ESCRITURA =====
            new_items = [
                free_item(products[selection.product_id], selection.quantity, promotion)
                for selection in selections
            ]
            # Los ítems elegidos ocupan el lugar del marcador
            ordered = []
            for item in order.items:
                ordered.extend(new_items if item is placeholder else [item])
            order.items.remove(placeholder)
            order.items.extend(new_items)
            for position, item in enumerate(ordered):
                item.position = position

            if not any(item.is_pending_assortment for item in order.items):
                order.status = OrderStatus.CONFIRMADO.value

            self.orders_repository.touch(order)
            self.db.commit()
            logger.info(
                f"✅ Surtido completado - Pedido #{order_id}, promoción {promotion_id}, "
                f"{len(selections)} productos, estado {order.status}"
            )
            return order

        except EngineError as e:
            self.db.rollback()
            logger.warning(f"Surtido rechazado para pedido {order_id}: {e.message}")
            raise
        except Exception:
            self.db.rollback()
            logger.exception(f"❌ Error completando surtido del pedido {order_id}")
            raise

    # ===== HELPERS =====

    def _get_or_404(self, promotion_id: int) -> Promotion:
        promotion = self.repository.get_promotion_by_id(promotion_id)
        if not promotion:
            raise NotFoundError("Promoción", promotion_id)
        return promotion

    @staticmethod
    def _ensure_entitlement_unchanged(promotion: Promotion, values: dict, gifts: List[dict]) -> None:
        """Con pedidos ya emitidos no se puede cambiar lo que la promoción otorga"""
        current_gifts = [(g.product_id, g.quantity) for g in promotion.gift_items]
        new_gifts = [(g['product_id'], g['quantity']) for g in gifts]
        changed = [
            field for field, differs in (
                ('type', values['type'] != promotion.type),
                ('free_quantity', values['free_quantity'] != (promotion.free_quantity or 0)),
                ('gift_items', new_gifts != current_gifts),
            ) if differs
        ]
        if changed:
            raise ConflictError(
                "La promoción ya está aplicada en pedidos; cree una nueva en lugar de cambiar lo que otorga",
                {"promotion_id": promotion.id, "fields": changed}
            )

    def _validated_values(self, promotion_data: PromotionCreate):
        """Separar columnas y regalos validando los productos referenciados"""
        is_pack = isinstance(promotion_data, PackPromotionCreate)
        gifts = [gift.dict() for gift in promotion_data.gift_items] if is_pack else []

        InventoryService.require_active_products(
            self.db, [promotion_data.main_product_id] + [gift['product_id'] for gift in gifts]
        )

        values = {
            'name': promotion_data.name,
            'description': promotion_data.description,
            'type': promotion_data.type,
            'buy_quantity': promotion_data.buy_quantity,
            'main_product_id': promotion_data.main_product_id,
            'free_quantity': 0 if is_pack else promotion_data.free_quantity,
            'pack_price': promotion_data.pack_price,
            'allow_stack_with_discounts': promotion_data.allow_stack_with_discounts,
            'active': promotion_data.active,
            'valid_from': promotion_data.valid_from,
            'valid_until': promotion_data.valid_until,
        }
        return values, gifts

    def _to_response(self, promotion: Promotion, now: Optional[datetime] = None) -> PromotionResponse:
        return PromotionResponse(
            id=promotion.id,
            name=promotion.name,
            description=promotion.description,
            type=promotion.type,
            buy_quantity=promotion.buy_quantity,
            main_product=ProductSummary.model_validate(promotion.main_product),
            free_quantity=promotion.free_quantity or 0,
            gift_items=[
                GiftItemResponse(
                    product_id=gift.product_id,
                    product_name=gift.product.name if gift.product else None,
                    quantity=gift.quantity
                )
                for gift in promotion.gift_items
            ],
            pack_price=promotion.pack_price,
            allow_stack_with_discounts=promotion.allow_stack_with_discounts,
            requires_assortment_selection=promotion.requires_assortment_selection,
            active=promotion.active,
            valid_from=promotion.valid_from,
            valid_until=promotion.valid_until,
            is_valid=is_promotion_valid(promotion, now),
            created_at=promotion.created_at
        )
