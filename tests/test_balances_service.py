from decimal import Decimal

import pytest

from app.core.errors import (
    AlreadySetError, AuthorizationError, CreditLimitExceededError,
    InvalidAmountError, NotFoundError
)
from app.modules.balances.service import BalancesService
from app.modules.discounts.service import DiscountsService
from app.modules.orders.service import OrdersService
from app.modules.payments.schemas import PaymentCreate
from app.modules.payments.service import PaymentsService


@pytest.fixture
def pipe(make_product):
    return make_product("Tubo", "10.00", stock=1000)


def test_initial_balance_is_write_once(db, owner, shop_client):
    service = BalancesService(db)
    response = service.set_initial_balance(shop_client.id, Decimal("250"), owner)

    assert response.balance.initial_balance == Decimal("250.00")
    assert response.balance.initial_balance_set is True

    with pytest.raises(AlreadySetError):
        service.set_initial_balance(shop_client.id, Decimal("300"), owner)

    balance = service.get_client_balance(shop_client.id, owner).balance
    assert balance.initial_balance == Decimal("250.00")


def test_initial_balance_rejects_negative(db, owner, shop_client):
    with pytest.raises(InvalidAmountError):
        BalancesService(db).set_initial_balance(shop_client.id, Decimal("-1"), owner)


def test_balance_aggregates_orders_payments_and_initial_balance(db, admin, owner, shop_client, pipe, place_order):
    balances = BalancesService(db)
    balances.set_initial_balance(shop_client.id, Decimal("50"), owner)

    first = place_order(shop_client, [(pipe, 10)])
    DiscountsService(db).apply_preset(first.id, 10, admin)
    PaymentsService(db).record_payment(PaymentCreate(
        order_id=first.id, amount=Decimal("40"), discount_applied=Decimal("5")
    ), owner)
    cancelled = place_order(shop_client, [(pipe, 3)])
    OrdersService(db).cancel_order(cancelled.id, admin)

    balance = balances.get_client_balance(shop_client.id, owner).balance

    # 90 del pedido con descuento + 50 iniciales; el cancelado no suma
    assert balance.total_owed == Decimal("140.00")
    assert balance.total_paid == Decimal("40.00")
    assert balance.total_payment_discounts == Decimal("4.50")
    assert balance.pending_balance == Decimal("95.50")
    assert [o.order_id for o in balance.pending_orders] == [first.id]
    assert balance.pending_orders[0].pending_balance == Decimal("45.50")


def test_client_pending_balance_never_negative(db, owner, shop_client, pipe, place_order):
    order = place_order(shop_client, [(pipe, 1)])
    PaymentsService(db).record_payment(PaymentCreate(order_id=order.id, amount=Decimal("500")), owner)

    balance = BalancesService(db).get_client_balance(shop_client.id, owner).balance
    assert balance.pending_balance == Decimal("0.00")


def test_credit_limit_blocks_new_orders(db, owner, shop_client, pipe, place_order):
    BalancesService(db).set_credit_limit(shop_client.id, Decimal("150"), owner)
    place_order(shop_client, [(pipe, 10)])

    with pytest.raises(CreditLimitExceededError):
        place_order(shop_client, [(pipe, 6)])

    # Exactamente en el cupo se acepta
    order = place_order(shop_client, [(pipe, 5)])
    assert order.total == Decimal("50.00")


def test_remove_credit_limit(db, owner, shop_client, pipe, place_order):
    service = BalancesService(db)
    service.set_credit_limit(shop_client.id, Decimal("10"), owner)
    response = service.remove_credit_limit(shop_client.id, owner)

    assert response.balance.credit_limit is None
    assert response.balance.available_credit is None
    place_order(shop_client, [(pipe, 50)])


def test_available_credit(db, owner, shop_client, pipe, place_order):
    service = BalancesService(db)
    service.set_credit_limit(shop_client.id, Decimal("300"), owner)
    place_order(shop_client, [(pipe, 12)])

    balance = service.get_client_balance(shop_client.id, owner).balance
    assert balance.available_credit == Decimal("180.00")


def test_credit_limit_is_owner_only(db, admin, shop_client):
    with pytest.raises(AuthorizationError):
        BalancesService(db).set_credit_limit(shop_client.id, Decimal("100"), admin)


def test_vendor_sees_only_own_clients(db, vendor, shop_client, other_client):
    service = BalancesService(db)

    listed = service.list_balances(vendor, vendor_id=other_client.vendor_id)
    assert [b.client_id for b in listed.balances] == [shop_client.id]

    with pytest.raises(AuthorizationError):
        service.get_client_balance(other_client.id, vendor)


def test_owner_lists_all_balances(db, owner, shop_client, other_client):
    listed = BalancesService(db).list_balances(owner)
    assert {b.client_id for b in listed.balances} == {shop_client.id, other_client.id}


def test_unknown_client(db, owner):
    with pytest.raises(NotFoundError):
        BalancesService(db).get_client_balance(999, owner)
