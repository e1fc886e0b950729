from tests.conftest import auth_headers


def create_order(client, actor, client_id, product_id, quantity):
    return client.post(
        "/api/v1/orders",
        json={"client_id": client_id, "items": [{"product_id": product_id, "quantity": quantity}]},
        headers=auth_headers(actor)
    )


def test_health_endpoints(client):
    assert client.get("/health").json()["status"] == "healthy"
    assert client.get("/api/v1/health").status_code == 200
    assert client.get("/api/v1/orders/health").json()["service"] == "orders"


def test_missing_token_is_rejected(client):
    response = client.get("/api/v1/orders")
    assert response.status_code in (401, 403)


def test_invalid_token_is_rejected(client):
    response = client.get("/api/v1/orders", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_discount_and_payment_flow(client, admin, owner, shop_client, make_product):
    product = make_product("Ladrillo", "20.00")

    created = create_order(client, admin, shop_client.id, product.id, 10)
    assert created.status_code == 201
    order_id = created.json()["order"]["id"]
    assert created.json()["order"]["total"] == 200.0

    discounted = client.post(
        f"/api/v1/discounts/order/{order_id}/apply-10", headers=auth_headers(admin)
    )
    assert discounted.status_code == 200
    body = discounted.json()
    assert body["discounted_total"] == 180.0
    assert body["discounts"][0]["percentage"] == 10.0

    paid = client.post(
        "/api/v1/payments",
        json={"order_id": order_id, "amount": 100, "discount_applied": 5},
        headers=auth_headers(owner)
    )
    assert paid.status_code == 201
    assert paid.json()["pending_balance"] == 71.0

    order = client.get(f"/api/v1/orders/{order_id}", headers=auth_headers(admin)).json()["order"]
    assert order["discounted_total"] == 180.0
    assert order["total_paid"] == 100.0
    assert order["pending_balance"] == 71.0
    assert order["revision"] == 2


def test_second_discount_returns_conflict(client, admin, owner, shop_client, make_product):
    product = make_product("Ladrillo", "20.00")
    order_id = create_order(client, admin, shop_client.id, product.id, 5).json()["order"]["id"]
    client.post(f"/api/v1/discounts/order/{order_id}/apply-12", headers=auth_headers(admin))

    response = client.post(
        "/api/v1/owner/discounts",
        json={"order_id": order_id, "percentage": 5, "reason": "Cliente frecuente"},
        headers=auth_headers(owner)
    )

    assert response.status_code == 409
    body = response.json()
    assert body["success"] is False
    assert body["error_code"] == "discount_already_applied"


def test_invalid_preset_is_bad_request(client, admin, shop_client, make_product):
    product = make_product()
    order_id = create_order(client, admin, shop_client.id, product.id, 1).json()["order"]["id"]

    response = client.post(f"/api/v1/discounts/order/{order_id}/apply-20", headers=auth_headers(admin))

    assert response.status_code == 400
    assert response.json()["error_code"] == "invalid_percentage"


def test_role_gate_returns_forbidden(client, vendor, shop_client, make_product):
    product = make_product()
    order_id = create_order(client, vendor, shop_client.id, product.id, 1).json()["order"]["id"]

    response = client.post(f"/api/v1/discounts/order/{order_id}/apply-10", headers=auth_headers(vendor))

    assert response.status_code == 403
    assert response.json()["error_code"] == "forbidden"


def test_unknown_order_is_not_found(client, admin):
    response = client.get("/api/v1/orders/4242", headers=auth_headers(admin))

    assert response.status_code == 404
    assert response.json()["details"] == {"entity": "Pedido", "id": 4242}


def test_assortment_flow(client, admin, shop_client, make_product):
    cement = make_product("Cemento", "20.00")
    lime = make_product("Cal", "4.00", stock=50)

    promotion = client.post("/api/v1/promotions", json={
        "name": "12 + 5",
        "type": "BUY_GET_FREE",
        "buy_quantity": 12,
        "main_product_id": cement.id,
        "free_quantity": 5
    }, headers=auth_headers(admin))
    assert promotion.status_code == 201
    promotion_id = promotion.json()["id"]

    order = create_order(client, admin, shop_client.id, cement.id, 12).json()["order"]
    assert order["status"] == "PENDING_PROMOTION_COMPLETION"

    url = f"/api/v1/promotions/{promotion_id}/orders/{order['id']}/assortment"
    short = client.post(url, json={"selections": [{"product_id": lime.id, "quantity": 4}]},
                        headers=auth_headers(admin))
    assert short.status_code == 400
    assert short.json()["error_code"] == "assortment_quantity_mismatch"

    done = client.post(url, json={"selections": [{"product_id": lime.id, "quantity": 5}]},
                       headers=auth_headers(admin))
    assert done.status_code == 200
    assert done.json()["order"]["status"] == "CONFIRMADO"


def test_promotion_type_is_discriminated(client, admin, make_product):
    product = make_product()
    response = client.post("/api/v1/promotions", json={
        "name": "Sin tipo válido",
        "type": "BUNDLE",
        "buy_quantity": 1,
        "main_product_id": product.id
    }, headers=auth_headers(admin))

    assert response.status_code == 422


def test_initial_balance_endpoint_is_write_once(client, owner, shop_client):
    url = f"/api/v1/balances/client/{shop_client.id}/initial-balance"

    first = client.put(url, params={"amount": "120.50"}, headers=auth_headers(owner))
    assert first.status_code == 200
    assert first.json()["balance"]["initial_balance"] == 120.5

    second = client.put(url, params={"amount": "10"}, headers=auth_headers(owner))
    assert second.status_code == 409
    assert second.json()["error_code"] == "already_set"


def test_role_prefix_in_token_is_accepted(client, shop_client):
    from app.core.auth.service import AuthService

    token = AuthService.create_access_token({"user_id": 2, "role": "ROLE_OWNER"})
    response = client.get(
        f"/api/v1/balances/client/{shop_client.id}",
        headers={"Authorization": f"Bearer {token}"}
    )

    assert response.status_code == 200
    assert response.json()["balance"]["pending_balance"] == 0.0
