from decimal import Decimal

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlmodel import select

from storefront.database import get_session
from storefront.models.order import Order
from storefront.models.user import Role, User
from storefront.utils.google_auth import FederatedAssertion
from storefront.utils.token import TrustTier


def register(client, email="ana@example.com", password="correct horse"):
    return client.post(
        "/auth/register",
        json={"name": "Ana", "email": email, "password": password},
    )


# -------- AUTH --------

def test_register_login_and_verify(client):
    response = register(client)
    assert response.status_code == 201
    assert response.json()["user"]["role"] == "customer"

    response = client.post(
        "/auth/login", json={"email": "ana@example.com", "password": "correct horse"}
    )
    assert response.status_code == 200
    token = response.json()["access_token"]

    response = client.get("/auth/verify", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["user"]["email"] == "ana@example.com"

    response = client.get("/auth/user", headers={"Authorization": f"Bearer {token}"})
    assert response.json()["last_login"] is not None


def test_duplicate_registration_is_409(client, session):
    register(client)
    response = register(client)

    assert response.status_code == 409
    assert len(session.exec(select(User)).all()) == 1


def test_login_wrong_password_is_401(client):
    register(client)

    response = client.post(
        "/auth/login", json={"email": "ana@example.com", "password": "nope-nope"}
    )

    assert response.status_code == 401
    assert "nope-nope" not in response.text


def test_malformed_register_body_is_400(client):
    response = client.post("/auth/register", json={"email": "not-an-email"})
    assert response.status_code == 400


def test_overlong_password_is_400(client, session):
    response = register(client, password="x" * 80)

    assert response.status_code == 400
    assert session.exec(select(User)).all() == []


def test_google_login_uses_federated_tier(client, monkeypatch, tokens):
    monkeypatch.setattr(
        "storefront.routes.auth.verify_google_token",
        lambda token: FederatedAssertion(external_id="g-1", email="g@example.com", name="G"),
    )

    response = client.post("/auth/google", json={"token": "id-token"})

    assert response.status_code == 200
    claims = tokens.verify(response.json()["access_token"])
    assert claims.email == "g@example.com"
    assert claims.role == Role.CUSTOMER


def test_google_login_with_bad_token_is_401(client, monkeypatch):
    monkeypatch.setattr("storefront.routes.auth.verify_google_token", lambda token: None)

    response = client.post("/auth/google", json={"token": "bad"})

    assert response.status_code == 401


# -------- GATE --------

def test_missing_token_is_401(client):
    response = client.get("/cart/")
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


def test_invalid_token_is_401(client):
    response = client.get("/cart/", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401


def test_customer_cannot_create_products(client, make_user, auth_headers):
    customer = make_user()

    response = client.post(
        "/products/", json={"name": "Mug", "price": "5.00"}, headers=auth_headers(customer)
    )

    assert response.status_code == 403


def test_admin_manages_catalog(client, make_user, auth_headers):
    admin = auth_headers(make_user(role=Role.ADMIN))

    category = client.post("/categories/", json={"name": "Kitchen"}, headers=admin)
    assert category.status_code == 201

    product = client.post(
        "/products/",
        json={"name": "Mug", "price": "5.00", "category_id": category.json()["id"]},
        headers=admin,
    )
    assert product.status_code == 201
    product_id = product.json()["id"]

    assert client.get(f"/products/{product_id}").status_code == 200

    assert client.delete(f"/products/{product_id}", headers=admin).status_code == 200
    assert client.get(f"/products/{product_id}").status_code == 404
    assert client.get("/products/").json() == []


def test_category_products(client, make_user, make_product, auth_headers):
    admin = auth_headers(make_user(role=Role.ADMIN))
    category = client.post("/categories/", json={"name": "Kitchen"}, headers=admin).json()
    mug = client.post(
        "/products/",
        json={"name": "Mug", "price": "5.00", "category_id": category["id"]},
        headers=admin,
    ).json()
    make_product("Loose")
    retired = client.post(
        "/products/",
        json={"name": "Old Mug", "price": "4.00", "category_id": category["id"]},
        headers=admin,
    ).json()
    client.delete(f"/products/{retired['id']}", headers=admin)

    response = client.get(f"/categories/{category['id']}/products")

    assert response.status_code == 200
    assert [p["id"] for p in response.json()] == [mug["id"]]

    assert client.get("/categories/999/products").status_code == 404


# -------- CART & ORDERS --------

def test_cart_upsert_over_http(client, make_user, make_product, auth_headers):
    headers = auth_headers(make_user())
    product = make_product()

    client.post("/cart/items", json={"product_id": product.id, "quantity": 2}, headers=headers)
    client.post("/cart/items", json={"product_id": product.id, "quantity": 3}, headers=headers)

    cart = client.get("/cart/", headers=headers).json()
    assert len(cart["items"]) == 1
    assert cart["items"][0]["quantity"] == 5
    assert Decimal(cart["subtotal"]) == Decimal("50.00")


def test_cart_rejects_zero_quantity(client, make_user, make_product, auth_headers):
    response = client.post(
        "/cart/items",
        json={"product_id": make_product().id, "quantity": 0},
        headers=auth_headers(make_user()),
    )
    assert response.status_code == 400


def test_foreign_cart_item_is_404(client, make_user, make_product, auth_headers):
    owner = auth_headers(make_user())
    intruder = auth_headers(make_user())
    item = client.post(
        "/cart/items", json={"product_id": make_product().id, "quantity": 1}, headers=owner
    ).json()

    update = client.put(f"/cart/items/{item['id']}", json={"quantity": 3}, headers=intruder)
    delete = client.delete(f"/cart/items/{item['id']}", headers=intruder)

    assert update.status_code == 404
    assert delete.status_code == 404


def test_create_and_read_order(client, make_user, make_product, auth_headers):
    headers = auth_headers(make_user())
    p1 = make_product("Alpha", price="10.00")
    p2 = make_product("Beta", price="5.00")

    response = client.post(
        "/orders/",
        json={"items": [
            {"product_id": p1.id, "quantity": 2},
            {"product_id": p2.id, "quantity": 1},
        ]},
        headers=headers,
    )

    assert response.status_code == 201
    order = response.json()
    assert Decimal(order["total_amount"]) == Decimal("25.00")
    assert order["status"] == "pending"
    assert len(order["items"]) == 2

    listed = client.get("/orders/", headers=headers).json()
    assert [o["id"] for o in listed] == [order["id"]]


def test_order_with_unknown_product_is_404_and_persists_nothing(
    client, session, make_user, auth_headers
):
    response = client.post(
        "/orders/",
        json={"items": [{"product_id": 999, "quantity": 1}]},
        headers=auth_headers(make_user()),
    )

    assert response.status_code == 404
    assert session.exec(select(Order)).all() == []


def test_empty_order_is_400(client, make_user, auth_headers):
    response = client.post("/orders/", json={"items": []}, headers=auth_headers(make_user()))
    assert response.status_code == 400


def test_status_update_and_refund(client, make_user, make_product, auth_headers, gateway):
    headers = auth_headers(make_user(), TrustTier.FEDERATED)
    admin = auth_headers(make_user(role=Role.ADMIN))
    order = client.post(
        "/orders/",
        json={"items": [{"product_id": make_product().id, "quantity": 1}]},
        headers=headers,
    ).json()

    bad = client.put(f"/orders/{order['id']}/status", json={"status": "lost"}, headers=headers)
    assert bad.status_code == 400

    # a reference sent along with the status is not stored
    done = client.put(
        f"/orders/{order['id']}/status",
        json={"status": "completed", "payment_reference": "pay_mine"},
        headers=headers,
    )
    assert done.json()["status"] == "completed"
    assert done.json()["payment_reference"] is None

    refund = client.post("/refunds/", json={"order_id": order["id"]}, headers=headers)
    assert refund.status_code == 400

    forbidden = client.post(
        f"/orders/{order['id']}/payment", json={"payment_reference": "pay_mine"}, headers=headers
    )
    assert forbidden.status_code == 403

    paid = client.post(
        f"/orders/{order['id']}/payment", json={"payment_reference": "pay_42"}, headers=admin
    )
    assert paid.status_code == 200
    assert paid.json()["payment_reference"] == "pay_42"

    changed = client.post(
        f"/orders/{order['id']}/payment", json={"payment_reference": "pay_other"}, headers=admin
    )
    assert changed.status_code == 409

    refund = client.post("/refunds/", json={"order_id": order["id"]}, headers=headers)
    assert refund.status_code == 200
    assert refund.json()["refund_id"] == "rfnd_1"
    assert refund.json()["order"]["status"] == "refunded"
    assert gateway.calls == ["pay_42"]

    again = client.post("/refunds/", json={"order_id": order["id"]}, headers=headers)
    assert again.status_code == 400
    assert gateway.calls == ["pay_42"]


# -------- ADDRESSES --------

def test_address_crud(client, make_user, auth_headers):
    headers = auth_headers(make_user())
    body = {
        "address_line1": "Calle Mayor 1",
        "city": "Madrid",
        "postal_code": "28013",
        "country": "ES",
    }

    created = client.post("/addresses/", json=body, headers=headers)
    assert created.status_code == 201
    address_id = created.json()["id"]

    updated = client.put(f"/addresses/{address_id}", json={"city": "Toledo"}, headers=headers)
    assert updated.json()["city"] == "Toledo"

    assert client.delete(f"/addresses/{address_id}", headers=headers).status_code == 200
    assert client.get(f"/addresses/{address_id}", headers=headers).status_code == 404


def test_health(client):
    response = client.get("/health/check")

    assert response.status_code == 200
    assert response.json()["database"] == "ok"


def test_health_reports_unreachable_database(app):
    class UnreachableSession:
        def exec(self, statement):
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    app.dependency_overrides[get_session] = lambda: UnreachableSession()

    with TestClient(app) as client:
        response = client.get("/health/check")

    assert response.status_code == 500
    assert response.json() == {"detail": "Database unavailable"}
