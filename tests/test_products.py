import uuid
from decimal import Decimal

import pytest
from postgrest.exceptions import APIError

PRODUCTS = "/api/v1/products"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"0" * 64


@pytest.fixture
def admin_headers(fake_supabase, auth_headers):
    admin_id = uuid.uuid4()
    fake_supabase.seed("profiles", id=admin_id, email="admin@cafe.test", name="admin", role="admin")
    return auth_headers(admin_id)


@pytest.fixture
def customer_headers(fake_supabase, auth_headers):
    user_id = uuid.uuid4()
    fake_supabase.seed("profiles", id=user_id, email="ana@example.com", name="Ana", role="user")
    return auth_headers(user_id)


class TestPublicMenu:
    def test_lists_newest_first(self, api_client, seed_product):
        seed_product("Espresso")
        seed_product("Cortado")

        names = [p["name"] for p in api_client.get(PRODUCTS).json()]

        assert names == ["Cortado", "Espresso"]

    def test_get_one(self, api_client, seed_product):
        product = seed_product("Espresso", price=2.0)

        body = api_client.get(f"{PRODUCTS}/{product['id']}").json()

        assert body["name"] == "Espresso"
        assert Decimal(str(body["price"])) == Decimal("2")

    def test_missing_product(self, api_client):
        assert api_client.get(f"{PRODUCTS}/{uuid.uuid4()}").status_code == 404

    def test_store_failure_is_generic(self, api_client, fake_supabase):
        fake_supabase.fail("products", APIError({"message": "JWT expired", "code": "PGRST301"}))

        resp = api_client.get(PRODUCTS)

        assert resp.status_code == 502
        assert resp.json()["detail"] == "Could not load the menu"


class TestAdminProducts:
    def test_customer_cannot_create(self, api_client, customer_headers):
        resp = api_client.post(PRODUCTS, json={"name": "Tea", "price": 2}, headers=customer_headers)
        assert resp.status_code == 403

    def test_guest_cannot_create(self, api_client):
        assert api_client.post(PRODUCTS, json={"name": "Tea", "price": 2}).status_code == 401

    def test_create(self, api_client, admin_headers, fake_supabase):
        resp = api_client.post(
            PRODUCTS,
            json={"name": "  Chai latte ", "description": "Spiced", "price": "4.50"},
            headers=admin_headers,
        )

        assert resp.status_code == 201
        assert resp.json()["name"] == "Chai latte"
        assert len(fake_supabase.rows("products")) == 1

    @pytest.mark.parametrize(
        "payload",
        [
            {"name": "Tea", "price": "abc"},
            {"name": "Tea", "price": -1},
            {"name": "   ", "price": 2},
            {"price": 2},
        ],
    )
    def test_create_validation(self, api_client, admin_headers, fake_supabase, payload):
        resp = api_client.post(PRODUCTS, json=payload, headers=admin_headers)

        assert resp.status_code == 422
        assert fake_supabase.rows("products") == []

    def test_partial_update(self, api_client, admin_headers, seed_product):
        product = seed_product("Tea", price=2.0)

        resp = api_client.patch(f"{PRODUCTS}/{product['id']}", json={"price": 2.75}, headers=admin_headers)

        assert resp.status_code == 200
        assert resp.json()["name"] == "Tea"
        assert Decimal(str(resp.json()["price"])) == Decimal("2.75")

    def test_update_missing(self, api_client, admin_headers):
        resp = api_client.patch(f"{PRODUCTS}/{uuid.uuid4()}", json={"name": "X"}, headers=admin_headers)
        assert resp.status_code == 404

    def test_delete_removes_row_and_image(self, api_client, admin_headers, fake_supabase, seed_product):
        fake_supabase.objects[("product-images", "old.png")] = PNG_BYTES
        product = seed_product(
            "Tea",
            image_url=f"{fake_supabase.url}/storage/v1/object/public/product-images/old.png",
        )

        resp = api_client.delete(f"{PRODUCTS}/{product['id']}", headers=admin_headers)

        assert resp.status_code == 204
        assert fake_supabase.rows("products") == []
        assert fake_supabase.objects == {}

    def test_upload_image(self, api_client, admin_headers, fake_supabase, seed_product):
        product = seed_product("Tea")

        resp = api_client.post(
            f"{PRODUCTS}/{product['id']}/image",
            files={"file": ("tea.png", PNG_BYTES, "image/png")},
            headers=admin_headers,
        )

        assert resp.status_code == 200
        assert "/storage/v1/object/public/product-images/" in resp.json()["image_url"]
        assert list(fake_supabase.objects.values()) == [PNG_BYTES]

    def test_upload_is_removed_when_product_update_fails(
        self, api_client, admin_headers, fake_supabase, seed_product
    ):
        product = seed_product("Tea")
        fake_supabase.fail(
            "products:update",
            APIError({"message": "permission denied for table products", "code": "42501"}),
        )

        resp = api_client.post(
            f"{PRODUCTS}/{product['id']}/image",
            files={"file": ("tea.png", PNG_BYTES, "image/png")},
            headers=admin_headers,
        )

        assert resp.status_code == 502
        assert "permission denied" not in resp.text
        assert fake_supabase.objects == {}
        assert fake_supabase.rows("products")[0]["image_url"] is None

    def test_upload_rejects_other_types(self, api_client, admin_headers, seed_product):
        product = seed_product("Tea")

        resp = api_client.post(
            f"{PRODUCTS}/{product['id']}/image",
            files={"file": ("tea.gif", b"GIF89a", "image/gif")},
            headers=admin_headers,
        )

        assert resp.status_code == 400


class TestComments:
    def test_guest_cannot_comment(self, api_client, seed_product):
        product = seed_product()
        resp = api_client.post(f"{PRODUCTS}/{product['id']}/comments", json={"content": "Nice"})
        assert resp.status_code == 401

    def test_post_and_list(self, api_client, customer_headers, seed_product):
        product = seed_product()
        url = f"{PRODUCTS}/{product['id']}/comments"

        first = api_client.post(url, json={"content": "  Lovely crema "}, headers=customer_headers)
        api_client.post(url, json={"content": "Too hot"}, headers=customer_headers)

        assert first.status_code == 201
        assert first.json()["content"] == "Lovely crema"
        comments = api_client.get(url).json()
        assert [c["content"] for c in comments] == ["Too hot", "Lovely crema"]
        assert comments[0]["author_name"] == "Ana"

    def test_listing_reads_author_names_without_profile_rows(
        self, api_client, customer_headers, fake_supabase, seed_product
    ):
        product = seed_product()
        url = f"{PRODUCTS}/{product['id']}/comments"
        api_client.post(url, json={"content": "Great beans"}, headers=customer_headers)
        fake_supabase.fail("profiles", APIError({"message": "permission denied", "code": "42501"}))

        resp = api_client.get(url)

        assert resp.status_code == 200
        assert resp.json()[0]["author_name"] == "Ana"
        assert "ana@example.com" not in resp.text
        assert not any(c.get("table") == "profiles" for c in fake_supabase.calls)

    def test_blank_comment_rejected(self, api_client, customer_headers, seed_product):
        product = seed_product()
        resp = api_client.post(
            f"{PRODUCTS}/{product['id']}/comments",
            json={"content": "   "},
            headers=customer_headers,
        )
        assert resp.status_code == 422
