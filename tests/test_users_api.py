"""
Auth dependency and user endpoints: profile provisioning from token
claims, role checks, and admin account management.
"""
import uuid
from datetime import datetime, timedelta, timezone

from jose import jwt

from conftest import auth_headers, make_token
from storefront.models.user import Role
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.user_repo import UserRepository

ME = "/api/v1/users/me"
USERS = "/api/v1/users"
CART = "/api/v1/cart"


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class TestAuthentication:
    def test_guest_cannot_read_profile(self, client):
        response = client.get(ME)
        assert response.status_code == 401
        assert response.json()["detail"] == "Unauthorized. Please log in."

    def test_first_request_provisions_client_profile(self, client, db):
        sub = uuid.uuid4()
        token = make_token(
            str(sub),
            "Jane.Doe@Example.com",
            user_metadata={"full_name": "Jane Doe", "avatar_url": "https://cdn/x.png"},
        )

        response = client.get(ME, headers=bearer(token))

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == str(sub)
        assert body["email"] == "jane.doe@example.com"
        assert body["name"] == "Jane Doe"
        assert body["avatar_url"] == "https://cdn/x.png"
        assert body["role"] == "client"
        assert UserRepository().get_by_id(db, sub) is not None

    def test_name_defaults_to_email_local_part(self, client):
        token = make_token(str(uuid.uuid4()), "shopper@example.com")
        assert client.get(ME, headers=bearer(token)).json()["name"] == "shopper"

    def test_expired_token(self, client, client_user):
        token = jwt.encode(
            {
                "sub": str(client_user.id),
                "email": client_user.email,
                "exp": datetime.now(timezone.utc) - timedelta(minutes=1),
            },
            "test-jwt-secret",
            algorithm="HS256",
        )
        response = client.get(ME, headers=bearer(token))
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired token"

    def test_wrong_signature(self, client, client_user):
        token = jwt.encode(
            {"sub": str(client_user.id), "email": client_user.email},
            "another-secret",
            algorithm="HS256",
        )
        assert client.get(ME, headers=bearer(token)).status_code == 401

    def test_missing_email_claim(self, client):
        token = jwt.encode({"sub": str(uuid.uuid4())}, "test-jwt-secret", algorithm="HS256")
        assert client.get(ME, headers=bearer(token)).status_code == 401

    def test_non_uuid_subject(self, client):
        token = make_token("not-a-uuid", "a@example.com")
        assert client.get(ME, headers=bearer(token)).json()["detail"] == "Invalid sub in token"

    def test_deactivated_account(self, client, make_user):
        user = make_user(Role.CLIENT, is_active=False)
        response = client.get(CART, headers=auth_headers(user))
        assert response.status_code == 403


class TestProfile:
    def test_update_me(self, client, client_user):
        headers = auth_headers(client_user)

        body = client.patch(
            ME,
            json={"name": "  New Name ", "mailing_address": "1 Main St", "newsletter": True},
            headers=headers,
        ).json()
        assert body["name"] == "New Name"
        assert body["mailing_address"] == "1 Main St"
        assert body["newsletter"] is True

        cleared = client.patch(ME, json={"mailing_address": None}, headers=headers).json()
        assert cleared["mailing_address"] is None
        assert cleared["name"] == "New Name"

    def test_role_cannot_be_set_through_me(self, client, client_user):
        response = client.patch(ME, json={"role": "admin"}, headers=auth_headers(client_user))
        assert response.status_code == 422


class TestAdministration:
    def test_only_admins_list_users(self, client, client_user, admin_user):
        assert client.get(USERS, headers=auth_headers(client_user)).status_code == 403

        everyone = client.get(USERS, headers=auth_headers(admin_user)).json()
        admins = client.get(USERS, params={"role": "admin"}, headers=auth_headers(admin_user)).json()

        assert {u["id"] for u in everyone} == {str(client_user.id), str(admin_user.id)}
        assert [u["id"] for u in admins] == [str(admin_user.id)]

    def test_promote_to_sales_agent(self, client, client_user, admin_user):
        response = client.patch(
            f"{USERS}/{client_user.id}/role",
            json={"role": "sales_agent"},
            headers=auth_headers(admin_user),
        )

        assert response.status_code == 200
        assert response.json()["role"] == "sales_agent"
        # staff lose access to the cart
        assert client.get(CART, headers=auth_headers(client_user)).status_code == 403

    def test_admin_cannot_change_own_role(self, client, admin_user):
        response = client.patch(
            f"{USERS}/{admin_user.id}/role",
            json={"role": "client"},
            headers=auth_headers(admin_user),
        )
        assert response.status_code == 400

    def test_unknown_role_rejected(self, client, client_user, admin_user):
        response = client.patch(
            f"{USERS}/{client_user.id}/role",
            json={"role": "superuser"},
            headers=auth_headers(admin_user),
        )
        assert response.status_code == 422

    def test_deactivate_and_reactivate(self, client, client_user, admin_user):
        url = f"{USERS}/{client_user.id}/active"

        client.patch(url, json={"is_active": False}, headers=auth_headers(admin_user))
        assert client.get(ME, headers=auth_headers(client_user)).status_code == 403

        client.patch(url, json={"is_active": True}, headers=auth_headers(admin_user))
        assert client.get(ME, headers=auth_headers(client_user)).status_code == 200

    def test_delete_user_removes_cart(self, client, client_user, admin_user, make_product, db):
        user_id = client_user.id
        product = make_product()
        client.post(CART, json={"product_id": product.id}, headers=auth_headers(client_user))

        response = client.delete(f"{USERS}/{user_id}", headers=auth_headers(admin_user))

        assert response.status_code == 204
        assert CartRepository().get_for_user(db, user_id) is None
        assert client.get(f"{USERS}/{user_id}", headers=auth_headers(admin_user)).status_code == 404

    def test_admin_cannot_delete_self(self, client, admin_user):
        response = client.delete(f"{USERS}/{admin_user.id}", headers=auth_headers(admin_user))
        assert response.status_code == 400
