"""Integration tests for discount, cart, address and product endpoints via TestClient."""


class TestDiscountAPI:
    def _create(self, client, admin_headers, **overrides):
        body = {
            "code": "save10",
            "percentage": 10,
            "minimum_order_amount": 500,
            "expiry_date": "2099-12-31T23:59:59Z",
        }
        body.update(overrides)
        return client.post("/api/v1/discounts", json=body, headers=admin_headers)

    def test_create_requires_admin(self, client, customer_headers):
        response = self._create(client, customer_headers)
        assert response.status_code == 403

    def test_crud(self, client, admin_headers):
        response = self._create(client, admin_headers)
        assert response.status_code == 201
        discount = response.json()
        assert discount["code"] == "SAVE10"
        assert discount["created_by"] == "admin-001"
        assert discount["is_expired"] is False

        discount_id = discount["discount_id"]
        updated = client.put(
            f"/api/v1/discounts/{discount_id}", json={"percentage": 15, "is_active": False}, headers=admin_headers
        )
        assert updated.json()["percentage"] == 15.0
        assert updated.json()["is_active"] is False

        listing = client.get("/api/v1/discounts?status=inactive", headers=admin_headers).json()
        assert [d["code"] for d in listing["discounts"]] == ["SAVE10"]

        assert client.delete(f"/api/v1/discounts/{discount_id}", headers=admin_headers).status_code == 200
        assert client.get(f"/api/v1/discounts/{discount_id}", headers=admin_headers).status_code == 404

    def test_duplicate_code_is_400(self, client, admin_headers):
        self._create(client, admin_headers)
        response = self._create(client, admin_headers, code="SAVE10")
        assert response.status_code == 400
        assert response.json()["message"] == "A discount with this code already exists"

    def test_bad_status_filter(self, client, admin_headers):
        assert client.get("/api/v1/discounts?status=bogus", headers=admin_headers).status_code == 422

    def test_validate_against_cart(self, client, admin_headers, customer_headers, make_product):
        self._create(client, admin_headers)
        product = make_product(price=300.0)
        client.post("/api/v1/cart", json={"product_id": product.id, "quantity": 1}, headers=customer_headers)

        response = client.get("/api/v1/discounts/validate/save10", headers=customer_headers)
        assert response.status_code == 200
        assert response.json()["valid"] is False
        assert response.json()["message"] == "Minimum order amount of Rs. 500 required"

        client.post("/api/v1/cart", json={"product_id": product.id, "quantity": 1}, headers=customer_headers)
        data = client.post("/api/v1/discounts/apply", json={"code": "SAVE10"}, headers=customer_headers).json()
        assert data["valid"] is True
        assert data["subtotal"] == 600.0
        assert data["discount_amount"] == 60.0
        assert data["total"] == 540.0

    def test_unknown_code_is_not_an_error(self, client, customer_headers, make_product):
        product = make_product()
        client.post("/api/v1/cart", json={"product_id": product.id}, headers=customer_headers)
        response = client.post("/api/v1/discounts/apply", json={"code": "NOPE"}, headers=customer_headers)
        assert response.status_code == 200
        assert response.json()["reason"] == "not_found"

    def test_apply_with_empty_cart_is_400(self, client, customer_headers):
        response = client.post("/api/v1/discounts/apply", json={"code": "SAVE10"}, headers=customer_headers)
        assert response.status_code == 400


class TestCartAPI:
    def test_cart_lifecycle(self, client, customer_headers, make_product):
        product = make_product(price=250.0, stock=5)
        cart = client.post(
            "/api/v1/cart",
            json={"product_id": product.id, "quantity": 2, "variant": {"size": "M"}},
            headers=customer_headers,
        ).json()
        assert cart["total_items"] == 2
        assert cart["subtotal"] == 500.0
        item_id = cart["items"][0]["item_id"]

        cart = client.patch(f"/api/v1/cart/items/{item_id}", json={"quantity": 3}, headers=customer_headers).json()
        assert cart["items"][0]["line_total"] == 750.0

        cart = client.delete(f"/api/v1/cart/items/{item_id}", headers=customer_headers).json()
        assert cart["items"] == []

    def test_over_stock_is_409(self, client, customer_headers, make_product):
        product = make_product(stock=1)
        response = client.post(
            "/api/v1/cart", json={"product_id": product.id, "quantity": 2}, headers=customer_headers
        )
        assert response.status_code == 409

    def test_clear(self, client, customer_headers, make_product):
        product = make_product()
        client.post("/api/v1/cart", json={"product_id": product.id}, headers=customer_headers)
        assert client.delete("/api/v1/cart", headers=customer_headers).json()["total_items"] == 0

    def test_requires_principal(self, client):
        assert client.get("/api/v1/cart").status_code == 401


class TestAddressAPI:
    def test_add_list_remove(self, client, customer_headers, shipping_address):
        created = client.post("/api/v1/addresses", json=shipping_address, headers=customer_headers)
        assert created.status_code == 201
        assert created.json()["is_default"] is True
        address_id = created.json()["address_id"]

        listing = client.get("/api/v1/addresses", headers=customer_headers).json()
        assert [a["address_id"] for a in listing["addresses"]] == [address_id]

        assert client.delete(f"/api/v1/addresses/{address_id}", headers=customer_headers).status_code == 200
        assert client.get("/api/v1/addresses", headers=customer_headers).json()["addresses"] == []

    def test_remove_unknown_is_404(self, client, customer_headers):
        assert client.delete("/api/v1/addresses/missing", headers=customer_headers).status_code == 404


class TestProductAPI:
    def test_create_and_manage(self, client, admin_headers):
        response = client.post(
            "/api/v1/products",
            json={"name": "Teal Kurta", "price": 1500, "stock": 3, "images": [{"url": "a.jpg"}]},
            headers=admin_headers,
        )
        assert response.status_code == 201
        product_id = response.json()["id"]

        product = client.get(f"/api/v1/products/{product_id}").json()
        assert product["images"] == [{"url": "a.jpg", "is_primary": True}]

        stocked = client.post(f"/api/v1/products/{product_id}/stock", json={"delta": 2}, headers=admin_headers)
        assert stocked.json()["stock"] == 5

        priced = client.put(f"/api/v1/products/{product_id}/price", json={"price": 1200}, headers=admin_headers)
        assert priced.json()["price"] == 1200.0

    def test_negative_adjustment_is_400(self, client, admin_headers, make_product):
        product = make_product(stock=1)
        response = client.post(f"/api/v1/products/{product.id}/stock", json={"delta": -5}, headers=admin_headers)
        assert response.status_code == 400

    def test_unknown_product_is_404(self, client):
        assert client.get("/api/v1/products/missing").status_code == 404
