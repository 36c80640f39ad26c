"""End-to-end tests through the FastAPI app with in-memory collaborators."""
from solemarket.guest_cart import guest_cart_key

GUEST = {"X-Guest-Id": "guest-123"}


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


class TestCatalog:
    def test_search_brand(self, client, nike):
        resp = client.post("/catalog/search", json={"filters": {"brands": ["Nike"]}})
        assert resp.status_code == 200
        body = resp.json()
        assert [item["id"] for item in body["items"]] == [nike.id]
        assert body["count"] == 1
        assert body["activeFilters"] == 1
        assert body["error"] is None

    def test_search_sort_and_price(self, client, vans, nike):
        resp = client.post("/catalog/search", json={"filters": {"priceRange": {"min": 0, "max": 100}}})
        assert [item["id"] for item in resp.json()["items"]] == [vans.id]
        resp = client.post("/catalog/search", json={"sort": "priceLow"})
        assert [item["id"] for item in resp.json()["items"]] == [vans.id, nike.id]

    def test_unknown_sort_is_rejected(self, client):
        assert client.post("/catalog/search", json={"sort": "cheapest"}).status_code == 422

    def test_facets(self, client):
        resp = client.get("/catalog/facets")
        assert resp.json()["brands"] == ["Nike", "Vans"]

    def test_listings_feed(self, client, nike, vans):
        resp = client.get("/listings")
        assert [item["id"] for item in resp.json()] == [nike.id, vans.id]

    def test_missing_listing(self, client):
        assert client.get("/listings/nope").status_code == 404


class TestGuestCart:
    def test_cart_requires_identity(self, client):
        assert client.get("/cart").status_code == 400

    def test_add_increment_and_remove(self, client, kv_store, nike):
        resp = client.post("/cart/items", json={"shoeId": nike.id, "size": 9}, headers=GUEST)
        assert resp.status_code == 200
        resp = client.post("/cart/items", json={"shoeId": nike.id, "size": "9"}, headers=GUEST)
        body = resp.json()
        assert len(body["items"]) == 1
        assert body["items"][0]["quantity"] == 2
        assert body["items"][0]["shoe"]["name"] == "Air Max"
        assert body["itemCount"] == 2
        assert body["subtotal"] == 300
        assert guest_cart_key("guest-123") in kv_store

        resp = client.patch("/cart/items", json={"shoeId": nike.id, "size": "9", "quantity": 0}, headers=GUEST)
        assert resp.json()["items"] == []

    def test_unavailable_size(self, client, nike):
        resp = client.post("/cart/items", json={"shoeId": nike.id, "size": "12"}, headers=GUEST)
        assert resp.status_code == 400

    def test_delete_line_and_clear(self, client, nike, vans):
        client.post("/cart/items", json={"shoeId": nike.id, "size": "10"}, headers=GUEST)
        client.post("/cart/items", json={"shoeId": vans.id, "size": "8"}, headers=GUEST)
        resp = client.delete(f"/cart/items/{nike.id}/10", headers=GUEST)
        assert [item["shoeId"] for item in resp.json()["items"]] == [vans.id]
        client.delete("/cart", headers=GUEST)
        assert client.get("/cart", headers=GUEST).json()["items"] == []

    def test_guest_checkout(self, client, order_store, nike):
        client.post("/cart/items", json={"shoeId": nike.id, "size": "9"}, headers=GUEST)
        quote = client.post("/checkout/quote", headers=GUEST).json()
        assert quote["subtotal"] == 150
        assert quote["shipping"] == 0
        resp = client.post(
            "/checkout",
            headers=GUEST,
            json={
                "shippingInfo": {
                    "fullName": "Sam Doe",
                    "email": "sam@example.com",
                    "phone": "555-0100",
                    "address": "1 Main St",
                    "city": "Springfield",
                    "state": "IL",
                    "zipCode": "62701",
                },
                "paymentMethod": "paypal",
            },
        )
        assert resp.status_code == 201, resp.text
        assert resp.json()["customerType"] == "guest"
        assert len(order_store.orders) == 1
        assert client.get("/cart", headers=GUEST).json()["items"] == []

    def test_checkout_with_empty_cart(self, client):
        resp = client.post("/checkout", headers=GUEST, json={"shippingInfo": {}, "paymentMethod": "paypal"})
        assert resp.status_code == 400

    def test_checkout_validation_errors(self, client, nike):
        client.post("/cart/items", json={"shoeId": nike.id, "size": "9"}, headers=GUEST)
        resp = client.post("/checkout", headers=GUEST, json={"shippingInfo": {"fullName": "Sam"}})
        assert resp.status_code == 422
        assert resp.json()["detail"][0].startswith("Missing shipping information")


class TestAccount:
    def test_register_login_and_session(self, client, signed_in):
        resp = client.get("/auth/session", headers=signed_in)
        assert resp.json()["email"] == "sam@example.com"
        resp = client.post("/auth/login", json={"email": "sam@example.com", "password": "secret1"})
        assert resp.status_code == 200
        assert resp.json()["user"]["name"] == "Sam"

    def test_bad_login(self, client, signed_in):
        resp = client.post("/auth/login", json={"email": "sam@example.com", "password": "wrong"})
        assert resp.status_code == 401

    def test_duplicate_registration(self, client, signed_in):
        resp = client.post(
            "/auth/register",
            json={"name": "Sam", "email": "sam@example.com", "password": "secret1", "phone": "555-0100"},
        )
        assert resp.status_code == 400

    def test_protected_routes_need_token(self, client):
        assert client.get("/profile/me").status_code == 401
        assert client.get("/profile/me", headers={"Authorization": "Bearer bogus"}).status_code == 401

    def test_profile_cart_is_separate_from_guest_cart(self, client, signed_in, profile_store, nike, vans):
        client.post("/cart/items", json={"shoeId": vans.id, "size": "8"}, headers=GUEST)
        resp = client.post("/cart/items", json={"shoeId": nike.id, "size": "9"}, headers={**signed_in, **GUEST})
        assert [item["shoeId"] for item in resp.json()["items"]] == [nike.id]
        assert [item["shoeId"] for item in client.get("/cart", headers=GUEST).json()["items"]] == [vans.id]
        me = client.get("/profile/me", headers=signed_in).json()
        assert me["cart"] == [{"shoeId": nike.id, "size": "9", "quantity": 1, "shoe": None}]
        assert me["cartVersion"] == 1

    def test_registered_checkout(self, client, signed_in, nike):
        client.post("/cart/items", json={"shoeId": nike.id, "size": "9"}, headers=signed_in)
        shipping = client.get("/checkout/shipping", headers=signed_in).json()
        assert shipping["fullName"] == "Sam"
        shipping.update({"address": "1 Main St", "city": "Springfield", "state": "IL", "zipCode": "62701"})
        resp = client.post(
            "/checkout",
            headers=signed_in,
            json={
                "shippingInfo": shipping,
                "paymentMethod": "card",
                "cardInfo": {
                    "cardNumber": "4242424242424242",
                    "expiryDate": "12/30",
                    "cvv": "123",
                    "cardholderName": "Sam",
                },
            },
        )
        assert resp.status_code == 201, resp.text
        assert resp.json()["customerType"] == "registered"
        assert client.get("/cart", headers=signed_in).json()["items"] == []

    def test_rename(self, client, signed_in):
        assert client.patch("/profile/me", json={"name": "Sammy"}, headers=signed_in).json()["name"] == "Sammy"
        assert client.patch("/profile/me", json={"name": " "}, headers=signed_in).status_code == 422

    def test_wishlist_toggle(self, client, signed_in, nike):
        resp = client.post(f"/wishlist/{nike.id}", headers=signed_in)
        assert resp.json() == {"wishlist": [nike.id], "liked": True}
        assert [item["id"] for item in client.get("/wishlist", headers=signed_in).json()] == [nike.id]
        resp = client.post(f"/wishlist/{nike.id}", headers=signed_in)
        assert resp.json()["liked"] is False
        assert client.post("/wishlist/missing", headers=signed_in).status_code == 404


class TestSelling:
    DRAFT = {
        "name": "Gel-Kayano",
        "brand": "Asics",
        "price": 140,
        "image": "https://img.example.com/kayano.png",
        "sizes": [9, 10],
        "tags": "running,stability",
    }

    def test_create_edit_delete(self, client, signed_in):
        resp = client.post("/listings", json=self.DRAFT, headers=signed_in)
        assert resp.status_code == 201, resp.text
        listing_id = resp.json()["id"]

        found = client.post("/catalog/search", json={"filters": {"search": "kayano"}}).json()
        assert [item["id"] for item in found["items"]] == [listing_id]

        resp = client.patch(f"/listings/{listing_id}", json={"price": 120}, headers=signed_in)
        assert resp.json()["price"] == 120

        mine = client.get("/profile/me/listings", headers=signed_in).json()
        assert mine["stats"] == {"total": 1, "active": 1, "total_value": 120}

        assert client.delete(f"/listings/{listing_id}", headers=signed_in).status_code == 204
        assert client.get(f"/listings/{listing_id}").status_code == 404

    def test_invalid_draft(self, client, signed_in):
        resp = client.post("/listings", json={"name": "x"}, headers=signed_in)
        assert resp.status_code == 422
        assert "Select at least one size" in resp.json()["detail"]

    def test_cannot_edit_someone_elses_listing(self, client, signed_in, nike):
        resp = client.patch(f"/listings/{nike.id}", json={"price": 1}, headers=signed_in)
        assert resp.status_code == 403


def test_finder_round_trip(client):
    questions = client.get("/finder/questions", params={"count": 3}).json()
    assert len(questions) == 3
    spec = client.post("/finder/filters", json={"answers": {"gender": "kids"}}).json()
    assert spec["genders"] == ["kids"]
    assert spec["ageGroups"] == ["child", "youth"]
