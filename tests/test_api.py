"""
Tests for the HTTP layer.

The services are covered directly elsewhere; these tests check that routes
are wired to the right operations, that domain errors map to the right
status codes, and that money goes over the wire as two-place strings.
"""

import uuid


async def _create_account(client, balance: str | None = None) -> dict:
    body = {"mercado_pago_account_id": "mp-http"}
    if balance is not None:
        body["initial_balance"] = balance
    response = await client.post("/api/accounts", json=body)
    assert response.status_code == 201, response.text
    return response.json()


async def _create_user(client, email: str = "http@example.com") -> dict:
    response = await client.post(
        "/api/accounts/users",
        json={
            "email": email,
            "hashed_password": "$2a$10$hash",
            "first_name": "Http",
            "last_name": "Rider",
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestHealth:

    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestAccountEndpoints:

    async def test_create_and_get(self, client):
        created = await _create_account(client, "100.00")
        assert created["balance"] == "100.00"
        assert created["status"] == "ACTIVE"
        assert created["is_active"] is True
        assert created["cancelled_at"] is None

        response = await client.get(f"/api/accounts/{created['id']}")
        assert response.status_code == 200
        assert response.json()["mercado_pago_account_id"] == "mp-http"

    async def test_create_rejects_negative_balance(self, client):
        response = await client.post(
            "/api/accounts",
            json={"mercado_pago_account_id": "mp-x", "initial_balance": "-5"},
        )
        assert response.status_code == 422

    async def test_oversized_amounts_rejected(self, client):
        response = await client.post(
            "/api/accounts",
            json={"mercado_pago_account_id": "mp-x", "initial_balance": "100000000000000000000"},
        )
        assert response.status_code == 422

        account = await _create_account(client, "10.00")
        response = await client.put(
            f"/api/accounts/{account['id']}/balance",
            json={"amount": "100000000000000000000"},
        )
        assert response.status_code == 422
        response = await client.put(
            f"/api/accounts/{account['id']}/balance/deduct",
            params={"amount": "100000000000000000000"},
        )
        assert response.status_code == 422

    async def test_balance_scenario(self, client):
        account_id = (await _create_account(client, "100.00"))["id"]

        response = await client.put(f"/api/accounts/{account_id}/balance", json={"amount": "50.00"})
        assert response.status_code == 200
        assert response.json()["balance"] == "150.00"

        response = await client.put(
            f"/api/accounts/{account_id}/balance/deduct", params={"amount": "200.00"}
        )
        assert response.status_code == 422
        body = response.json()
        assert body["error_type"] == "insufficient_funds"
        assert body["requested"] == "200.00"
        assert body["available"] == "150.00"

        response = await client.put(
            f"/api/accounts/{account_id}/balance/deduct", params={"amount": "150.00"}
        )
        assert response.status_code == 200
        assert response.json()["balance"] == "0.00"

        response = await client.get(f"/api/accounts/{account_id}/balance")
        assert response.json() == {"account_id": account_id, "balance": "0.00"}

    async def test_cancel_blocks_balance_use(self, client):
        account_id = (await _create_account(client, "10.00"))["id"]

        response = await client.put(f"/api/accounts/{account_id}/cancel")
        assert response.status_code == 200
        assert response.json()["status"] == "CANCELLED"
        assert response.json()["cancelled_at"] is not None

        active = await client.get(f"/api/accounts/{account_id}/active")
        assert active.json() is False

        response = await client.put(f"/api/accounts/{account_id}/balance", json={"amount": "1.00"})
        assert response.status_code == 409
        assert response.json()["error_type"] == "account_cancelled"

        listing = await client.get("/api/accounts/active")
        assert listing.json() == []
        assert len((await client.get("/api/accounts")).json()) == 1

    async def test_update_and_delete(self, client):
        account_id = (await _create_account(client))["id"]

        response = await client.put(
            f"/api/accounts/{account_id}",
            json={"mercado_pago_account_id": "mp-updated"},
        )
        assert response.status_code == 200
        assert response.json()["mercado_pago_account_id"] == "mp-updated"

        assert (await client.delete(f"/api/accounts/{account_id}")).status_code == 204
        response = await client.get(f"/api/accounts/{account_id}")
        assert response.status_code == 404
        assert response.json()["error_type"] == "not_found"

    async def test_unknown_account_is_404(self, client):
        response = await client.get(f"/api/accounts/{uuid.uuid4()}/balance")
        assert response.status_code == 404


class TestUserEndpoints:

    async def test_create_and_lookup(self, client):
        created = await _create_user(client)
        assert created["roles"] == ["ROLE_USER"]
        assert "hashed_password" not in created

        by_id = await client.get(f"/api/accounts/users/{created['id']}")
        by_email = await client.get("/api/accounts/users", params={"email": "http@example.com"})
        assert by_id.json() == by_email.json()

        everyone = await client.get("/api/accounts/users/all")
        assert [u["id"] for u in everyone.json()] == [created["id"]]

    async def test_duplicate_email_is_409(self, client):
        await _create_user(client)
        response = await client.post(
            "/api/accounts/users",
            json={
                "email": "http@example.com",
                "hashed_password": "x",
                "first_name": "Dup",
                "last_name": "User",
            },
        )
        assert response.status_code == 409
        assert response.json()["error_type"] == "duplicate_email"

    async def test_update_and_delete(self, client):
        user_id = (await _create_user(client))["id"]

        response = await client.put(f"/api/accounts/users/{user_id}", json={"last_name": "Renamed"})
        assert response.status_code == 200
        assert response.json()["last_name"] == "Renamed"
        assert response.json()["first_name"] == "Http"

        assert (await client.delete(f"/api/accounts/users/{user_id}")).status_code == 204
        assert (await client.get(f"/api/accounts/users/{user_id}")).status_code == 404


class TestAssociationEndpoints:

    async def test_associate_list_disassociate(self, client):
        account_id = (await _create_account(client))["id"]
        user_id = (await _create_user(client))["id"]

        response = await client.post(f"/api/accounts/{account_id}/users/{user_id}")
        assert response.status_code == 201
        assert response.json()["account_id"] == account_id

        # Idempotent
        again = await client.post(f"/api/accounts/{account_id}/users/{user_id}")
        assert again.json()["id"] == response.json()["id"]

        users = await client.get(f"/api/accounts/{account_id}/users")
        assert [u["id"] for u in users.json()["users"]] == [user_id]

        accounts = await client.get(f"/api/accounts/users/{user_id}/accounts")
        assert accounts.json()["user_id"] == user_id
        assert [a["id"] for a in accounts.json()["accounts"]] == [account_id]

        removed = await client.delete(f"/api/accounts/{account_id}/users/{user_id}")
        assert removed.status_code == 200

        repeat = await client.delete(f"/api/accounts/{account_id}/users/{user_id}")
        assert repeat.status_code == 404

    async def test_cancelled_account_cannot_be_shared(self, client):
        account_id = (await _create_account(client))["id"]
        user_id = (await _create_user(client))["id"]
        await client.put(f"/api/accounts/{account_id}/cancel")

        response = await client.post(f"/api/accounts/{account_id}/users/{user_id}")
        assert response.status_code == 409
