from decimal import Decimal

import pytest
from pydantic import TypeAdapter

from app.config.settings import settings
from app.core.errors import (
    AuthorizationError, DiscountAlreadyAppliedError, DiscountNotFoundError,
    InvalidPercentageError, InvalidStateError, PromotionStackingViolationError,
    ValidationError
)
from app.modules.discounts.service import DiscountsService
from app.modules.orders.service import OrdersService
from app.modules.promotions.schemas import PromotionCreate
from app.modules.promotions.service import PromotionsService


@pytest.fixture
def order(shop_client, make_product, place_order):
    widget = make_product("Tornillo", "10.00", stock=100)
    return place_order(shop_client, [(widget, 10)])


def test_preset_discount_reduces_effective_total(db, admin, order):
    response = DiscountsService(db).apply_preset(order.id, 15, admin)

    assert response.original_total == Decimal("100.00")
    assert response.discounted_total == Decimal("85.00")
    assert response.discounts[0].type == "PRESET_15"
    assert response.revision == 1


def test_only_one_active_discount_per_order(db, admin, owner, order):
    service = DiscountsService(db)
    service.apply_preset(order.id, 10, admin)

    with pytest.raises(DiscountAlreadyAppliedError):
        service.apply_custom(order.id, Decimal("5"), admin)
    with pytest.raises(DiscountAlreadyAppliedError):
        service.add_owner_discount(order.id, Decimal("3"), "Cliente frecuente", owner)

    listed = service.list_order_discounts(order.id, owner)
    assert len([d for d in listed.discounts if d.status == "APPLIED"]) == 1


def test_revoke_then_apply_new_discount(db, admin, owner, order):
    service = DiscountsService(db)
    first = service.apply_preset(order.id, 10, admin).discounts[0]

    revoked = service.revoke(first.id, owner)
    assert revoked.discounts[0].status == "REVOKED"
    assert revoked.discounts[0].revoked_by == owner.id
    assert revoked.discounted_total == Decimal("100.00")

    response = service.apply_custom(order.id, Decimal("7.5"), admin)
    assert response.discounted_total == Decimal("92.50")
    assert [d.status for d in response.discounts] == ["REVOKED", "APPLIED"]


def test_revoke_twice_is_invalid(db, admin, owner, order):
    service = DiscountsService(db)
    discount = service.apply_preset(order.id, 12, admin).discounts[0]
    service.revoke(discount.id, owner)

    with pytest.raises(InvalidStateError):
        service.revoke(discount.id, owner)


def test_revoke_unknown_discount(db, owner):
    with pytest.raises(DiscountNotFoundError):
        DiscountsService(db).revoke(404, owner)


@pytest.mark.parametrize("percentage", [20, 0])
def test_preset_only_accepts_configured_values(db, admin, order, percentage):
    with pytest.raises(InvalidPercentageError):
        DiscountsService(db).apply_preset(order.id, percentage, admin)


@pytest.mark.parametrize("percentage", ["0", "-1", "100.01"])
def test_custom_percentage_range(db, admin, order, percentage):
    with pytest.raises(InvalidPercentageError):
        DiscountsService(db).apply_custom(order.id, Decimal(percentage), admin)


def test_owner_discount_requires_reason(db, owner, order):
    with pytest.raises(ValidationError):
        DiscountsService(db).add_owner_discount(order.id, Decimal("5"), "  ", owner)


def test_owner_discount_is_owner_only(db, admin, order):
    with pytest.raises(AuthorizationError):
        DiscountsService(db).add_owner_discount(order.id, Decimal("5"), "Ajuste", admin)


def test_owner_discount_keeps_reason(db, owner, order):
    response = DiscountsService(db).add_owner_discount(order.id, Decimal("5"), " Ajuste ", owner)

    assert response.discounts[0].type == "OWNER_ADDED"
    assert response.discounts[0].reason == "Ajuste"
    assert response.discounted_total == Decimal("95.00")


def test_vendor_cannot_apply_discounts(db, vendor, order):
    with pytest.raises(AuthorizationError):
        DiscountsService(db).apply_preset(order.id, 10, vendor)


def test_cancelled_order_rejects_discounts(db, admin, order):
    OrdersService(db).cancel_order(order.id, admin)

    with pytest.raises(InvalidStateError):
        DiscountsService(db).apply_preset(order.id, 10, admin)


def test_promotion_without_stacking_blocks_discounts(db, admin, shop_client, make_product, place_order):
    main = make_product("Pintura", "30.00")
    gift = make_product("Brocha", "4.00")
    PromotionsService(db).create_promotion(TypeAdapter(PromotionCreate).validate_python({
        "name": "Pack pintor",
        "type": "PACK",
        "buy_quantity": 4,
        "main_product_id": main.id,
        "gift_items": [{"product_id": gift.id, "quantity": 1}],
        "allow_stack_with_discounts": False
    }), admin)
    promo_order = place_order(shop_client, [(main, 4)])

    with pytest.raises(PromotionStackingViolationError):
        DiscountsService(db).apply_preset(promo_order.id, 10, admin)


def test_promotion_allowing_stacking_accepts_discounts(db, admin, shop_client, make_product, place_order):
    main = make_product("Pintura", "30.00")
    gift = make_product("Brocha", "4.00")
    PromotionsService(db).create_promotion(TypeAdapter(PromotionCreate).validate_python({
        "name": "Pack pintor",
        "type": "PACK",
        "buy_quantity": 4,
        "main_product_id": main.id,
        "gift_items": [{"product_id": gift.id, "quantity": 1}],
        "allow_stack_with_discounts": True
    }), admin)
    promo_order = place_order(shop_client, [(main, 4)])

    response = DiscountsService(db).apply_preset(promo_order.id, 10, admin)
    assert response.discounted_total == Decimal("108.00")


def test_percentage_below_column_scale_is_rejected(db, admin, order):
    service = DiscountsService(db)
    with pytest.raises(InvalidPercentageError):
        service.apply_custom(order.id, Decimal("0.001"), admin)

    # El pedido sigue libre para un descuento real
    response = service.apply_custom(order.id, Decimal("4.999"), admin)
    assert response.discounts[0].percentage == Decimal("5.00")
    assert response.discounted_total == Decimal("95.00")


def test_preset_outside_discount_types_is_rejected(db, admin, order, monkeypatch):
    monkeypatch.setattr(settings, "preset_discounts", [10, 12, 15, 20])

    with pytest.raises(InvalidPercentageError):
        DiscountsService(db).apply_preset(order.id, 20, admin)
