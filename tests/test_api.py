"""Tests for the FastAPI API."""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from offkulture.config import DEFAULT_ADMIN_EMAIL, DEFAULT_ADMIN_PASSWORD

SHIPPING = {
    "full_name": "Thandi Nkosi",
    "email": "thandi@example.com",
    "phone": "+27 82 555 0101",
    "address": "12 Long Street",
    "city": "Cape Town",
    "province": "Western Cape",
    "postal_code": "8001",
}


@pytest.fixture
def api_client():
    """Test client against the temp data dir set by the isolated_env fixture."""
    from offkulture.api import app

    return TestClient(app)


@pytest.fixture
def customer_client(api_client):
    response = api_client.post(
        "/api/auth/signup",
        json={"name": "Thandi Nkosi", "email": "thandi@example.com", "password": "secret123"},
    )
    assert response.status_code == 201
    return api_client


def login_admin(client):
    response = client.post(
        "/api/auth/login",
        json={"email": DEFAULT_ADMIN_EMAIL, "password": DEFAULT_ADMIN_PASSWORD},
    )
    assert response.status_code == 200


def place_order(client, product_id="M001", quantity=2):
    client.post("/api/cart/items", json={"product_id": product_id, "quantity": quantity})
    response = client.post("/api/checkout", json={"shipping": SHIPPING, "cvv": "123"})
    assert response.status_code == 201
    return response.json()


class TestHealthCheck:
    def test_health(self, api_client):
        response = api_client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["product_count"] == 24
        assert data["order_count"] == 0
        assert data["logged_in"] is False


class TestProducts:
    def test_list_all(self, api_client):
        data = api_client.get("/api/products").json()
        assert data["count"] == 24

    def test_filter_by_category(self, api_client):
        data = api_client.get("/api/products", params={"category": "baby"}).json()
        assert data["count"] == 6
        assert all(p["category"] == "baby" for p in data["products"])

    def test_search_and_sort(self, api_client):
        data = api_client.get("/api/products", params={"q": "springbok"}).json()
        assert {p["id"] for p in data["products"]} == {"M004", "B002"}

        data = api_client.get(
            "/api/products", params={"sort_by": "price", "order": "desc"}
        ).json()
        assert data["products"][0]["id"] == "M002"

    def test_bad_sort_key(self, api_client):
        response = api_client.get("/api/products", params={"sort_by": "colour"})
        assert response.status_code == 400
        assert response.json()["error_type"] == "ValidationError"

    def test_get_product(self, api_client):
        data = api_client.get("/api/products/M001").json()
        assert data["name"] == "Heritage Cotton Casual Shirt"
        assert Decimal(str(data["price"])) == Decimal("449.99")
        assert data["in_stock"] is True

    def test_get_unknown_product(self, api_client):
        response = api_client.get("/api/products/X999")
        assert response.status_code == 404
        assert response.json()["error_type"] == "ProductNotFoundError"

    def test_view_records_recently_viewed(self, api_client):
        api_client.post("/api/products/W004/view")
        api_client.post("/api/products/A003/view")
        data = api_client.get("/api/recently-viewed").json()
        assert [p["id"] for p in data["products"]] == ["A003", "W004"]

    def test_comparison(self, api_client):
        for product_id in ("M001", "M002", "M003"):
            assert api_client.post(
                "/api/comparison", json={"product_id": product_id}
            ).status_code == 200
        response = api_client.post("/api/comparison", json={"product_id": "M004"})
        assert response.status_code == 400

        data = api_client.delete("/api/comparison/M002").json()
        assert [p["id"] for p in data["products"]] == ["M001", "M003"]


class TestAuth:
    def test_signup_and_me(self, customer_client):
        data = customer_client.get("/api/auth/me").json()
        assert data["email"] == "thandi@example.com"
        assert data["role"] == "customer"
        assert "password_hash" not in data
        assert data["payment_methods"][0]["name"] == "Visa ending in 1234"

    def test_me_when_logged_out(self, api_client):
        response = api_client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json()["error_type"] == "NotAuthenticatedError"

    def test_duplicate_signup(self, customer_client):
        response = customer_client.post(
            "/api/auth/signup",
            json={"name": "Other", "email": "THANDI@example.com", "password": "secret456"},
        )
        assert response.status_code == 409

    def test_bad_login(self, api_client):
        response = api_client.post(
            "/api/auth/login", json={"email": DEFAULT_ADMIN_EMAIL, "password": "nope-nope"}
        )
        assert response.status_code == 401
        assert response.json()["error_type"] == "AuthenticationError"

    def test_logout(self, customer_client):
        assert customer_client.post("/api/auth/logout").status_code == 200
        assert customer_client.get("/api/auth/me").status_code == 401

    def test_customer_cannot_create_admin(self, customer_client):
        response = customer_client.post(
            "/api/auth/signup",
            json={
                "name": "Ops",
                "email": "ops@offkulture.com",
                "password": "admin456",
                "role": "admin",
            },
        )
        assert response.status_code == 403

    def test_update_profile(self, customer_client):
        data = customer_client.patch("/api/account", json={"phone": "+27 82 000 1111"}).json()
        assert data["phone"] == "+27 82 000 1111"


class TestCart:
    def test_add_reserves_stock(self, api_client):
        response = api_client.post(
            "/api/cart/items",
            json={"product_id": "M001", "quantity": 2, "size": "M", "color": "Navy"},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["item_count"] == 2
        assert Decimal(str(data["subtotal"])) == Decimal("899.98")
        assert Decimal(str(data["shipping"])) == Decimal("0")
        assert Decimal(str(data["total"])) == Decimal("1034.98")

        product = api_client.get("/api/products/M001").json()
        assert product["stock_quantity"] == 23

    def test_add_beyond_stock(self, api_client):
        response = api_client.post(
            "/api/cart/items", json={"product_id": "W006", "quantity": 13}
        )
        assert response.status_code == 409
        assert response.json()["error_type"] == "InsufficientStockError"
        assert api_client.get("/api/cart").json()["lines"] == []

    def test_add_zero(self, api_client):
        response = api_client.post("/api/cart/items", json={"product_id": "M001", "quantity": 0})
        assert response.status_code == 400
        assert response.json()["error_type"] == "InvalidQuantityError"

    def test_update_and_remove(self, api_client):
        api_client.post("/api/cart/items", json={"product_id": "M001", "quantity": 2})
        data = api_client.patch("/api/cart/items/M001", json={"quantity": 4}).json()
        assert data["lines"][0]["quantity"] == 4
        assert api_client.get("/api/products/M001").json()["stock_quantity"] == 21

        data = api_client.delete("/api/cart/items/M001").json()
        assert data["lines"] == []
        assert api_client.get("/api/products/M001").json()["stock_quantity"] == 25

    def test_remove_missing_line(self, api_client):
        response = api_client.delete("/api/cart/items/M001", params={"size": "M"})
        assert response.status_code == 404

    def test_free_shipping_gap(self, api_client):
        data = api_client.post(
            "/api/cart/items", json={"product_id": "M001", "quantity": 1}
        ).json()
        assert Decimal(str(data["shipping"])) == Decimal("99.99")
        assert Decimal(str(data["free_shipping_gap"])) == Decimal("50.01")


class TestWishlist:
    def test_toggle(self, api_client):
        data = api_client.post("/api/wishlist/W004/toggle").json()
        assert data["added"] is True
        assert [p["id"] for p in data["products"]] == ["W004"]

        data = api_client.post("/api/wishlist/W004/toggle").json()
        assert data["added"] is False
        assert api_client.get("/api/wishlist").json()["count"] == 0

    def test_toggle_unknown(self, api_client):
        assert api_client.post("/api/wishlist/X999/toggle").status_code == 404


class TestCheckout:
    def test_checkout(self, customer_client):
        order = place_order(customer_client)
        assert order["status"] == "Processing"
        assert Decimal(str(order["total"])) == Decimal("1034.98")
        assert order["tracking_number"].startswith("TRK")
        assert customer_client.get("/api/cart").json()["lines"] == []

        orders = customer_client.get("/api/orders").json()
        assert orders["count"] == 1
        tracked = customer_client.get(f"/api/orders/track/{order['tracking_number']}").json()
        assert tracked["id"] == order["id"]

    def test_checkout_needs_login(self, api_client):
        api_client.post("/api/cart/items", json={"product_id": "M001", "quantity": 1})
        response = api_client.post("/api/checkout", json={"shipping": SHIPPING, "cvv": "123"})
        assert response.status_code == 401

    def test_empty_cart(self, customer_client):
        response = customer_client.post(
            "/api/checkout", json={"shipping": SHIPPING, "cvv": "123"}
        )
        assert response.status_code == 400
        assert response.json()["error_type"] == "EmptyCartError"

    def test_bad_postal_code(self, customer_client):
        customer_client.post("/api/cart/items", json={"product_id": "M001", "quantity": 1})
        response = customer_client.post(
            "/api/checkout",
            json={"shipping": {**SHIPPING, "postal_code": "80"}, "cvv": "123"},
        )
        assert response.status_code == 400

    def test_track_unknown(self, api_client):
        assert api_client.get("/api/orders/track/TRK0000").status_code == 404

    def test_eft_payment_method(self, customer_client):
        method = customer_client.post(
            "/api/account/payment-methods", json={"type": "EFT", "name": "Bank transfer"}
        ).json()
        customer_client.post("/api/cart/items", json={"product_id": "B004", "quantity": 1})
        response = customer_client.post(
            "/api/checkout", json={"shipping": SHIPPING, "payment_method_id": method["id"]}
        )
        assert response.status_code == 201
        assert response.json()["payment_method"] == "Bank transfer"

        methods = customer_client.get("/api/account/payment-methods").json()
        assert len(methods) == 2


class TestReviews:
    def test_add_review(self, customer_client):
        response = customer_client.post(
            "/api/products/W001/reviews", json={"rating": 5, "comment": "Gorgeous"}
        )
        assert response.status_code == 201
        assert customer_client.get("/api/products/W001").json()["rating"] == 5.0
        assert customer_client.get("/api/products/W001/reviews").json()["count"] == 1

    def test_rating_out_of_range(self, customer_client):
        response = customer_client.post(
            "/api/products/W001/reviews", json={"rating": 6, "comment": "Wow"}
        )
        assert response.status_code == 422


class TestAdmin:
    def test_status_updates(self, customer_client):
        order = place_order(customer_client)
        login_admin(customer_client)

        response = customer_client.patch(
            f"/api/admin/orders/{order['id']}", json={"status": "Shipped"}
        )
        assert response.status_code == 200
        assert response.json()["status"] == "Shipped"

        response = customer_client.patch(
            f"/api/admin/orders/{order['id']}", json={"status": "Processing"}
        )
        assert response.status_code == 409
        assert response.json()["error_type"] == "InvalidStatusTransitionError"

        shipped = customer_client.get("/api/admin/orders", params={"status": "Shipped"}).json()
        assert shipped["count"] == 1

    def test_customer_forbidden(self, customer_client):
        response = customer_client.get("/api/admin/dashboard")
        assert response.status_code == 403
        assert response.json()["error_type"] == "PermissionDeniedError"

    def test_product_lifecycle(self, api_client):
        login_admin(api_client)
        response = api_client.post(
            "/api/admin/products",
            json={"name": "Karoo Wool Scarf", "price": "349.00", "category": "accessories",
                  "stock_quantity": 4},
        )
        assert response.status_code == 201
        product_id = response.json()["id"]

        data = api_client.patch(
            f"/api/admin/products/{product_id}", json={"is_sale": True}
        ).json()
        assert data["is_sale"] is True

        alerts = api_client.get("/api/admin/alerts").json()["alerts"]
        assert alerts == ["1 products are running low on stock"]

        data = api_client.put(
            f"/api/admin/products/{product_id}/stock", json={"stock_quantity": 0}
        ).json()
        assert data["in_stock"] is False

        data = api_client.delete(f"/api/admin/products/{product_id}").json()
        assert data["discontinued"] is True
        assert api_client.get("/api/products").json()["count"] == 24

    def test_edit_fabric_details(self, api_client):
        login_admin(api_client)
        data = api_client.patch(
            "/api/admin/products/M001",
            json={"brand": "OffKulture Studio", "material": "Organic Cotton",
                  "care_instructions": "Hand wash only"},
        ).json()
        assert data["brand"] == "OffKulture Studio"
        assert data["material"] == "Organic Cotton"
        assert data["care_instructions"] == "Hand wash only"

        product = api_client.get("/api/products/M001").json()
        assert product["material"] == "Organic Cotton"

    def test_negative_stock(self, api_client):
        login_admin(api_client)
        response = api_client.put("/api/admin/products/M001/stock", json={"stock_quantity": -3})
        assert response.status_code == 400

    def test_dashboard(self, customer_client):
        place_order(customer_client)
        login_admin(customer_client)
        data = customer_client.get("/api/admin/dashboard").json()
        assert Decimal(str(data["total_revenue"])) == Decimal("1034.98")
        assert data["order_count"] == 1
        assert data["customer_count"] == 1
        assert data["orders_by_status"]["Processing"] == 1

    def test_accounts(self, customer_client):
        login_admin(customer_client)
        data = customer_client.get("/api/admin/accounts", params={"role": "customer"}).json()
        assert [a["email"] for a in data["accounts"]] == ["thandi@example.com"]

    def test_reset(self, customer_client):
        place_order(customer_client)
        login_admin(customer_client)
        assert customer_client.post("/api/admin/reset").status_code == 200
        assert customer_client.get("/api/health").json()["order_count"] == 0
        assert customer_client.get("/api/auth/me").status_code == 401

    def test_reset_needs_admin(self, customer_client):
        assert customer_client.post("/api/admin/reset").status_code == 403
