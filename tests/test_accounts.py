"""
Tests for sessions, store profiles and account cleanup.
"""
from sqlmodel import select

from models import ItemRequest, Store, User, VendorResponse


class TestAuth:
    def test_me_after_register(self, buyer_client):
        resp = buyer_client.get("/me")

        assert resp.status_code == 200
        assert resp.json()["role"] == "buyer"
        assert resp.json()["email"] == "buyer@example.com"

    def test_me_requires_login(self, client):
        assert client.get("/me").status_code == 401

    def test_register_requires_role(self, client):
        resp = client.post(
            "/register",
            json={"email": "x@example.com", "name": "X", "password": "pw"},
        )

        assert resp.status_code == 400

    def test_duplicate_email_rejected(self, buyer_client, make_client):
        other = make_client()
        resp = other.post(
            "/register",
            json={"email": "buyer@example.com", "name": "Again", "password": "pw", "is_buyer": True},
        )

        assert resp.status_code == 400

    def test_login_with_role(self, buyer_client, make_client):
        other = make_client()
        resp = other.post(
            "/login",
            json={"email": "buyer@example.com", "password": "secret-pass", "role": "buyer"},
        )

        assert resp.status_code == 200
        assert other.get("/me").json()["role"] == "buyer"

    def test_login_wrong_role(self, buyer_client, make_client):
        resp = make_client().post(
            "/login",
            json={"email": "buyer@example.com", "password": "secret-pass", "role": "vendor"},
        )

        assert resp.status_code == 400

    def test_login_bad_password(self, buyer_client, make_client):
        resp = make_client().post(
            "/login",
            json={"email": "buyer@example.com", "password": "nope", "role": "buyer"},
        )

        assert resp.status_code == 400

    def test_tampered_cookie_is_anonymous(self, client):
        client.cookies.set("session", "not-a-real-token")

        assert client.get("/me").status_code == 401


class TestPages:
    def test_vendor_dashboard(self, vendor_client):
        resp = vendor_client.get("/vendor")

        assert resp.status_code == 200
        assert "Vendor Dashboard" in resp.text
        assert "response-sent from:body" in resp.text

    def test_buyer_redirected_from_vendor_dashboard(self, buyer_client):
        resp = buyer_client.get("/vendor", follow_redirects=False)

        assert resp.status_code == 303
        assert resp.headers["location"] == "/"

    def test_login_page(self, client):
        assert client.get("/login").status_code == 200

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}


class TestStores:
    def test_vendor_upserts_store(self, vendor_client):
        created = vendor_client.post("/stores/", json={"store_name": "Hill Farm", "address": "1 Lane"})
        assert created.status_code == 200
        assert created.json()["vendor_id"] == vendor_client.user_id

        updated = vendor_client.post("/stores/", json={"store_name": "Hill Farm Co", "address": "2 Lane"})
        assert updated.json()["id"] == created.json()["id"]

        fetched = vendor_client.get(f"/stores/{vendor_client.user_id}")
        assert fetched.json()["store_name"] == "Hill Farm Co"
        assert len(vendor_client.get("/stores/").json()) == 1

    def test_buyer_cannot_create_store(self, buyer_client):
        resp = buyer_client.post("/stores/", json={"store_name": "X", "address": "Y"})

        assert resp.status_code == 403

    def test_unknown_store(self, client):
        assert client.get("/stores/12345").status_code == 404


class TestAccountDeletion:
    def test_vendor_account_cleanup(self, vendor_client, test_db, open_request):
        vendor_client.post("/stores/", json={"store_name": "Hill Farm", "address": "1 Lane"})
        vendor_client.post("/responses/", json={"request_id": open_request.id, "message": "Have it"})

        resp = vendor_client.delete("/users/me")

        assert resp.status_code == 204
        assert test_db.exec(select(VendorResponse)).all() == []
        assert test_db.exec(select(Store)).all() == []
        assert test_db.get(User, vendor_client.user_id) is None
        assert test_db.exec(select(ItemRequest)).all() != []

    def test_buyer_account_cleanup(self, buyer_client, vendor_client, test_db):
        created = buyer_client.post("/requests/", json={"description": "Plums"}).json()
        vendor_client.post("/responses/", json={"request_id": created["id"], "message": "Got plums"})

        assert buyer_client.delete("/users/me").status_code == 204
        assert test_db.exec(select(ItemRequest)).all() == []
        assert test_db.exec(select(VendorResponse)).all() == []
