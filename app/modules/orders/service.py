from typing import Iterable, List, Optional
from datetime import datetime
from sqlalchemy.orm import Session
import logging

from app.core.auth.schemas import Actor, UserRole
from app.core.auth.permissions import ensure_role, ensure_client_access, ADMIN_ROLES
from app.core.errors import EngineError, NotFoundError, InvalidStateError
from app.shared.database.models import Order
from app.shared.schemas.enums import OrderStatus
from app.shared.services.inventory_service import InventoryService
from app.modules.promotions.repository import PromotionsRepository
from app.modules.promotions.resolver import CartLine, PromotionResolver
from app.modules.balances.service import BalancesService
from .repository import OrdersRepository
from .schemas import (
    OrderCreate, ItemArrivalUpdate, build_order_response,
    OrderDetailResponse, OrderListResponse
)

logger = logging.getLogger(__name__)

ORDER_CREATOR_ROLES = (UserRole.ADMIN, UserRole.OWNER, UserRole.VENDEDOR, UserRole.CLIENTE)


class OrdersService:
    def __init__(self, db: Session):
        self.db = db
        self.repository = OrdersRepository(db)
        self.promotions_repository = PromotionsRepository(db)
        self.balances_service = BalancesService(db)

    def create_order(self, order_data: OrderCreate, actor: Actor) -> OrderDetailResponse:
        """
        Crear pedido aplicando las promociones vigentes.

        Proceso:
        1. Validar cliente, acceso y productos
        2. Resolver promociones sobre el carrito
        3. Verificar el cupo de crédito con el total resultante
        4. Persistir pedido e ítems en una sola transacción
        """
        ensure_role(actor, ORDER_CREATOR_ROLES, "crear pedidos")

        try:
            client = self.repository.get_client(order_data.client_id)
            if not client or not client.active:
                raise NotFoundError("Cliente", order_data.client_id)
            ensure_client_access(actor, client, "crear pedidos")

            lines = [CartLine(line.product_id, line.quantity) for line in order_data.items]
            products = InventoryService.require_active_products(
                self.db, [line.product_id for line in lines]
            )

            now = datetime.now()
            promotions = self.promotions_repository.get_valid_promotions(now)
            gift_ids = {gift.product_id for promotion in promotions for gift in promotion.gift_items}
            missing_gifts = gift_ids - set(products)
            if missing_gifts:
                products.update(InventoryService.get_products(self.db, missing_gifts))

            resolution = PromotionResolver(products).resolve(lines, promotions)

            self.balances_service.check_credit(client.id, resolution.total)

            order = Order(
                client_id=client.id,
                vendor_id=client.vendor_id,
                order_date=now,
                status=resolution.status.value,
                total=resolution.total,
                notes=order_data.notes,
                revision=0
            )
            order.items.extend(resolution.items)
            self.repository.create_order(order)
            self.db.commit()

            logger.info(
                f"✅ Pedido #{order.id} creado - Cliente {client.id}, total ${resolution.total}, "
                f"estado {order.status}, promociones {resolution.applied_promotion_ids}"
            )

        except EngineError as e:
            self.db.rollback()
            logger.warning(f"Pedido rechazado para cliente {order_data.client_id}: {e.message}")
            raise
        except Exception:
            self.db.rollback()
            logger.exception(f"❌ Error creando pedido para cliente {order_data.client_id}")
            raise

        order = self.repository.get_order_by_id(order.id)
        message = "Pedido creado"
        if resolution.pending_promotion_ids:
            message = "Pedido creado - pendiente de selección de surtido"
        return OrderDetailResponse(success=True, message=message, order=build_order_response(order))

    def get_order(self, order_id: int, actor: Actor) -> OrderDetailResponse:
        order = self.repository.get_order_by_id(order_id)
        if not order:
            raise NotFoundError("Pedido", order_id)
        self._ensure_order_visible(actor, order)
        return OrderDetailResponse(success=True, message="Pedido obtenido", order=build_order_response(order))

    def list_orders(
        self,
        actor: Actor,
        client_id: Optional[int] = None,
        status: Optional[OrderStatus] = None
    ) -> OrderListResponse:
        client_ids = self._visible_client_ids(actor)
        if client_id is not None:
            client_ids = [client_id] if client_ids is None or client_id in client_ids else []

        orders = self.repository.list_orders(
            client_ids=client_ids,
            status=status.value if status else None
        )
        return OrderListResponse(
            success=True,
            message=f"{len(orders)} pedidos encontrados",
            orders=[build_order_response(order) for order in orders],
            total=len(orders)
        )

    # ===== TRANSICIONES DE ESTADO =====

    def confirm_order(self, order_id: int, actor: Actor) -> OrderDetailResponse:
        return self._transition(
            order_id, actor, ADMIN_ROLES,
            allowed_from=[OrderStatus.PENDIENTE],
            target=OrderStatus.CONFIRMADO,
            action="confirmar pedidos"
        )

    def complete_order(self, order_id: int, actor: Actor) -> OrderDetailResponse:
        return self._transition(
            order_id, actor, ADMIN_ROLES + (UserRole.EMPACADOR,),
            allowed_from=[OrderStatus.CONFIRMADO],
            target=OrderStatus.COMPLETADO,
            action="completar pedidos"
        )

    def cancel_order(self, order_id: int, actor: Actor) -> OrderDetailResponse:
        return self._transition(
            order_id, actor, ADMIN_ROLES,
            allowed_from=[
                OrderStatus.PENDIENTE,
                OrderStatus.PENDING_PROMOTION_COMPLETION,
                OrderStatus.CONFIRMADO
            ],
            target=OrderStatus.CANCELADO,
            action="cancelar pedidos"
        )

    def set_item_arrival(
        self,
        order_id: int,
        item_id: int,
        arrival: ItemArrivalUpdate,
        actor: Actor
    ) -> OrderDetailResponse:
        """Registrar fecha estimada de llegada de un ítem agotado"""
        ensure_role(actor, [UserRole.ADMIN], "registrar fechas de llegada")

        try:
            order = self.repository.get_order_for_update(order_id)
            if not order:
                raise NotFoundError("Pedido", order_id)

            item = next((i for i in order.items if i.id == item_id), None)
            if item is None:
                raise NotFoundError("Ítem de pedido", item_id)
            if not item.out_of_stock:
                raise InvalidStateError(
                    f"El ítem {item_id} no está marcado como agotado",
                    {"order_id": order_id, "item_id": item_id}
                )

            item.estimated_arrival_date = arrival.estimated_arrival_date
            item.estimated_arrival_note = arrival.note
            self.repository.touch(order)
            self.db.commit()
            logger.info(f"📦 Llegada estimada {arrival.estimated_arrival_date} para ítem {item_id} del pedido #{order_id}")

        except EngineError:
            self.db.rollback()
            raise
        except Exception:
            self.db.rollback()
            logger.exception(f"❌ Error registrando llegada del ítem {item_id}")
            raise

        return OrderDetailResponse(success=True, message="Fecha de llegada registrada", order=build_order_response(order))

    # ===== HELPERS =====

    def _transition(
        self,
        order_id: int,
        actor: Actor,
        roles: Iterable[UserRole],
        allowed_from: List[OrderStatus],
        target: OrderStatus,
        action: str
    ) -> OrderDetailResponse:
        ensure_role(actor, roles, action)

        try:
            order = self.repository.get_order_for_update(order_id)
            if not order:
                raise NotFoundError("Pedido", order_id)

            current = OrderStatus(order.status)
            if current not in allowed_from:
                raise InvalidStateError(
                    f"No se puede pasar el pedido #{order_id} de {current.value} a {target.value}",
                    {"order_id": order_id, "status": current.value, "target": target.value}
                )

            order.status = target.value
            self.repository.touch(order)
            self.db.commit()
            logger.info(f"🔄 Pedido #{order_id}: {current.value} → {target.value} (usuario {actor.id})")

        except EngineError:
            self.db.rollback()
            raise
        except Exception:
            self.db.rollback()
            logger.exception(f"❌ Error cambiando estado del pedido #{order_id}")
            raise

        return OrderDetailResponse(
            success=True,
            message=f"Pedido {target.value.lower()}",
            order=build_order_response(order)
        )

    def _visible_client_ids(self, actor: Actor) -> Optional[List[int]]:
        """None significa sin restricción de cartera"""
        if actor.role == UserRole.VENDEDOR:
            return self.repository.get_client_ids_for_actor(vendor_id=actor.id)
        if actor.role == UserRole.CLIENTE:
            return self.repository.get_client_ids_for_actor(user_id=actor.id)
        return None

    def _ensure_order_visible(self, actor: Actor, order: Order) -> None:
        if actor.role in (UserRole.VENDEDOR, UserRole.CLIENTE):
            ensure_client_access(actor, order.client, "consultar pedidos")
