# app/modules/promotions/resolver.py
"""
Resolución de promociones sobre un carrito.

Para cada promoción vigente cuyo producto principal alcanza `buy_quantity`
en el carrito:

- PACK: se agregan todos los regalos como ítems gratis en la misma pasada.
- BUY_GET_FREE: se agrega un marcador de surtido pendiente y el pedido
  queda en PENDING_PROMOTION_COMPLETION hasta que un administrador elija
  los productos.

Cada promoción se aplica una vez por pedido y de forma independiente; no
hay precedencia entre promociones.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional
import logging

from app.shared.database.models import OrderItem, Product, Promotion
from app.shared.schemas.enums import OrderStatus, PromotionType
from app.shared.services.pricing import line_subtotal, to_decimal, to_money, ZERO

logger = logging.getLogger(__name__)


@dataclass
class CartLine:
    product_id: int
    quantity: int


@dataclass
class Resolution:
    items: List[OrderItem]
    total: Decimal
    status: OrderStatus
    applied_promotion_ids: List[int] = field(default_factory=list)
    pending_promotion_ids: List[int] = field(default_factory=list)


def is_promotion_valid(promotion: Promotion, now: Optional[datetime] = None) -> bool:
    """Activa y con `now` dentro de [valid_from, valid_until]; límites ausentes son abiertos"""
    if not promotion.active:
        return False
    now = now or datetime.now()
    if promotion.valid_from and now < promotion.valid_from:
        return False
    if promotion.valid_until and now > promotion.valid_until:
        return False
    return True


def assortment_placeholder_name(promotion: Promotion) -> str:
    return f"Surtido pendiente - {promotion.name} ({promotion.free_quantity} uds)"


def consolidate_lines(lines: List[CartLine]) -> List[CartLine]:
    """Unificar líneas del mismo producto conservando el orden de aparición"""
    merged: Dict[int, CartLine] = {}
    for line in lines:
        if line.product_id in merged:
            merged[line.product_id].quantity += line.quantity
        else:
            merged[line.product_id] = CartLine(line.product_id, line.quantity)
    return list(merged.values())


class PromotionResolver:
    def __init__(self, products: Dict[int, Product]):
        # Debe contener los productos del carrito y los regalos de las promociones
        self.products = products
        self._handlers = {
            PromotionType.PACK: self._apply_pack,
            PromotionType.BUY_GET_FREE: self._apply_buy_get_free,
        }

    def resolve(self, lines: List[CartLine], promotions: List[Promotion]) -> Resolution:
        cart = consolidate_lines(lines)
        items = [self._cart_item(line) for line in cart]
        items_by_product = {item.product_id: item for item in items}

        resolution = Resolution(items=items, total=ZERO, status=OrderStatus.PENDIENTE)

        for promotion in sorted(promotions, key=lambda p: p.id):
            main_item = items_by_product.get(promotion.main_product_id)
            if main_item is None or main_item.quantity < promotion.buy_quantity:
                continue

            logger.info(
                f"🎁 Promoción {promotion.id} ({promotion.type}) aplica: "
                f"{main_item.quantity} >= {promotion.buy_quantity} de {main_item.product_name}"
            )
            self._mark_main_item(main_item, promotion)
            self._dispatch(promotion)(promotion, resolution)
            resolution.applied_promotion_ids.append(promotion.id)

        for position, item in enumerate(resolution.items):
            item.position = position

        resolution.total = to_money(sum((to_decimal(i.subtotal) for i in resolution.items), ZERO))
        if resolution.pending_promotion_ids:
            resolution.status = OrderStatus.PENDING_PROMOTION_COMPLETION
        return resolution

    def _dispatch(self, promotion: Promotion):
        try:
            return self._handlers[PromotionType(promotion.type)]
        except (KeyError, ValueError):
            raise ValueError(f"Tipo de promoción no soportado: {promotion.type}")

    # ===== CONSTRUCCIÓN DE ÍTEMS =====

    def _cart_item(self, line: CartLine) -> OrderItem:
        product = self.products[line.product_id]
        return OrderItem(
            product_id=product.id,
            product_name=product.name,
            quantity=line.quantity,
            unit_price=to_money(product.price),
            subtotal=line_subtotal(line.quantity, product.price),
            out_of_stock=line.quantity > (product.stock or 0),
            is_promotion_item=False,
            is_free_item=False,
            assortment_completed=True
        )

    def _mark_main_item(self, item: OrderItem, promotion: Promotion) -> None:
        # Un ítem principal conserva la primera promoción que lo reclamó
        if item.promotion_id is not None:
            return
        item.is_promotion_item = True
        item.promotion_id = promotion.id
        if promotion.pack_price is not None:
            remaining_units = item.quantity - promotion.buy_quantity
            item.subtotal = to_money(
                to_decimal(promotion.pack_price) + remaining_units * to_decimal(item.unit_price)
            )

    def _apply_pack(self, promotion: Promotion, resolution: Resolution) -> None:
        for gift in promotion.gift_items:
            product = self.products.get(gift.product_id) or gift.product
            resolution.items.append(free_item(product, gift.quantity, promotion))

    def _apply_buy_get_free(self, promotion: Promotion, resolution: Resolution) -> None:
        resolution.items.append(OrderItem(
            product_id=None,
            product_name=assortment_placeholder_name(promotion),
            quantity=promotion.free_quantity,
            unit_price=to_money(ZERO),
            subtotal=to_money(ZERO),
            out_of_stock=False,
            is_promotion_item=True,
            is_free_item=True,
            assortment_completed=False,
            promotion_id=promotion.id
        ))
        resolution.pending_promotion_ids.append(promotion.id)


def free_item(product: Product, quantity: int, promotion: Promotion) -> OrderItem:
    """Ítem gratis resuelto (regalo PACK o línea de surtido elegida)"""
    return OrderItem(
        product_id=product.id,
        product_name=product.name,
        quantity=quantity,
        unit_price=to_money(ZERO),
        subtotal=line_subtotal(quantity, ZERO, is_free=True),
        out_of_stock=quantity > (product.stock or 0),
        is_promotion_item=True,
        is_free_item=True,
        assortment_completed=True,
        promotion_id=promotion.id
    )
