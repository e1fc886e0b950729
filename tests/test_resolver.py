from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from app.shared.database.models import Product, Promotion, PromotionGiftItem
from app.shared.schemas.enums import OrderStatus
from app.modules.promotions.resolver import (
    CartLine, PromotionResolver, consolidate_lines, is_promotion_valid
)


def product(product_id, price="10.00", stock=100, name=None):
    return Product(
        id=product_id,
        name=name or f"Producto {product_id}",
        price=Decimal(price),
        stock=stock,
        active=True
    )


def pack(promotion_id, main_product_id, buy_quantity, gifts, pack_price=None):
    promotion = Promotion(
        id=promotion_id,
        name=f"Pack {promotion_id}",
        type="PACK",
        buy_quantity=buy_quantity,
        main_product_id=main_product_id,
        free_quantity=0,
        pack_price=Decimal(pack_price) if pack_price else None,
        allow_stack_with_discounts=False,
        active=True
    )
    for position, (product_id, quantity) in enumerate(gifts):
        promotion.gift_items.append(
            PromotionGiftItem(product_id=product_id, quantity=quantity, position=position)
        )
    return promotion


def buy_get_free(promotion_id, main_product_id, buy_quantity, free_quantity):
    return Promotion(
        id=promotion_id,
        name=f"Surtido {promotion_id}",
        type="BUY_GET_FREE",
        buy_quantity=buy_quantity,
        main_product_id=main_product_id,
        free_quantity=free_quantity,
        allow_stack_with_discounts=False,
        active=True
    )


@pytest.fixture
def catalog():
    return {p.id: p for p in [product(1, "10.00"), product(2, "3.50"), product(3, "7.00", stock=2)]}


def test_pack_gifts_are_attached_immediately(catalog):
    resolution = PromotionResolver(catalog).resolve(
        [CartLine(1, 10)], [pack(1, main_product_id=1, buy_quantity=10, gifts=[(2, 2)])]
    )

    assert resolution.status == OrderStatus.PENDIENTE
    assert len(resolution.items) == 2
    main, gift = resolution.items
    assert main.is_promotion_item and main.promotion_id == 1
    assert gift.product_id == 2
    assert gift.quantity == 2
    assert gift.is_free_item and gift.assortment_completed
    assert gift.subtotal == Decimal("0.00")
    assert resolution.total == Decimal("100.00")


def test_promotion_not_applied_below_buy_quantity(catalog):
    resolution = PromotionResolver(catalog).resolve(
        [CartLine(1, 9)], [pack(1, main_product_id=1, buy_quantity=10, gifts=[(2, 2)])]
    )

    assert len(resolution.items) == 1
    assert not resolution.items[0].is_promotion_item
    assert resolution.applied_promotion_ids == []


def test_buy_get_free_adds_pending_placeholder(catalog):
    resolution = PromotionResolver(catalog).resolve(
        [CartLine(1, 12)], [buy_get_free(5, main_product_id=1, buy_quantity=12, free_quantity=5)]
    )

    assert resolution.status == OrderStatus.PENDING_PROMOTION_COMPLETION
    placeholder = resolution.items[-1]
    assert placeholder.product_id is None
    assert placeholder.quantity == 5
    assert placeholder.is_pending_assortment
    assert resolution.pending_promotion_ids == [5]


def test_pack_price_prices_one_bundle(catalog):
    resolution = PromotionResolver(catalog).resolve(
        [CartLine(1, 12)],
        [pack(1, main_product_id=1, buy_quantity=10, gifts=[(2, 1)], pack_price="80.00")]
    )

    # 80 por el paquete + 2 unidades a precio de lista
    assert resolution.items[0].subtotal == Decimal("100.00")
    assert resolution.total == Decimal("100.00")


def test_lines_of_same_product_are_merged_before_qualifying(catalog):
    resolution = PromotionResolver(catalog).resolve(
        [CartLine(1, 6), CartLine(2, 1), CartLine(1, 6)],
        [buy_get_free(5, main_product_id=1, buy_quantity=12, free_quantity=5)]
    )

    assert resolution.items[0].quantity == 12
    assert resolution.status == OrderStatus.PENDING_PROMOTION_COMPLETION


def test_multiple_buy_get_free_promotions_resolve_independently(catalog):
    promotions = [
        buy_get_free(7, main_product_id=2, buy_quantity=4, free_quantity=1),
        buy_get_free(5, main_product_id=1, buy_quantity=12, free_quantity=5),
    ]
    resolution = PromotionResolver(catalog).resolve([CartLine(1, 12), CartLine(2, 4)], promotions)

    placeholders = [item for item in resolution.items if item.is_pending_assortment]
    assert [p.promotion_id for p in placeholders] == [5, 7]
    assert resolution.pending_promotion_ids == [5, 7]


def test_out_of_stock_lines_are_kept_and_flagged(catalog):
    resolution = PromotionResolver(catalog).resolve([CartLine(3, 5)], [])

    assert resolution.items[0].out_of_stock
    assert resolution.total == Decimal("35.00")


def test_unknown_promotion_type_is_rejected(catalog):
    promotion = buy_get_free(9, main_product_id=1, buy_quantity=1, free_quantity=1)
    promotion.type = "BUNDLE"

    with pytest.raises(ValueError):
        PromotionResolver(catalog).resolve([CartLine(1, 1)], [promotion])


def test_positions_follow_resolution_order(catalog):
    resolution = PromotionResolver(catalog).resolve(
        [CartLine(1, 10), CartLine(2, 1)],
        [pack(1, main_product_id=1, buy_quantity=10, gifts=[(3, 1)])]
    )

    assert [item.position for item in resolution.items] == [0, 1, 2]


def test_consolidate_lines_keeps_first_appearance_order():
    merged = consolidate_lines([CartLine(2, 1), CartLine(1, 2), CartLine(2, 3)])
    assert [(line.product_id, line.quantity) for line in merged] == [(2, 4), (1, 2)]


def test_validity_window_is_inclusive():
    now = datetime(2026, 5, 1, 12, 0)
    promotion = buy_get_free(1, 1, 1, 1)
    promotion.valid_from = now
    promotion.valid_until = now

    assert is_promotion_valid(promotion, now)
    assert not is_promotion_valid(promotion, now + timedelta(seconds=1))

    promotion.active = False
    assert not is_promotion_valid(promotion, now)
