"""Tests for FastAPI endpoints."""

import pytest
from httpx import Client
from starlette.testclient import TestClient

from household_ledger.api.app import create_app
from household_ledger.api.dependencies import get_app_container
from household_ledger.container import Container


@pytest.fixture
def test_client(container: Container) -> Client:
    """Create a test client bound to the test container."""
    app = create_app(use_lifespan=False)
    app.dependency_overrides[get_app_container] = lambda: container
    return TestClient(app)


def _register_and_login(client: Client, email: str, name: str) -> dict[str, str]:
    """Register a user through the API and return bearer auth headers."""
    response = client.post(
        "/auth/register",
        json={"email": email, "password": "correct-horse-battery", "name": name},
    )
    assert response.status_code == 201
    response = client.post(
        "/mobile/login", json={"email": email, "password": "correct-horse-battery"}
    )
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def owner_headers(test_client: Client) -> dict[str, str]:
    return _register_and_login(test_client, "olivia@example.com", "Olivia")


@pytest.fixture
def member_headers(test_client: Client) -> dict[str, str]:
    return _register_and_login(test_client, "marcus@example.com", "Marcus")


@pytest.fixture
def household_id(
    test_client: Client, owner_headers: dict[str, str], member_headers: dict[str, str]
) -> str:
    """A household owned by Olivia that Marcus has joined."""
    response = test_client.post("/households", json={"name": "Home"}, headers=owner_headers)
    assert response.status_code == 201
    household_id = response.json()["id"]

    response = test_client.post(
        "/invitations",
        json={"email": "marcus@example.com", "householdId": household_id},
        headers=owner_headers,
    )
    assert response.status_code == 201
    response = test_client.post(
        "/invitations/accept",
        json={"token": response.json()["token"]},
        headers=member_headers,
    )
    assert response.status_code == 200
    return household_id


@pytest.fixture
def owner(owner_headers: dict[str, str], household_id: str) -> dict[str, str]:
    return {**owner_headers, "X-Household-ID": household_id}


@pytest.fixture
def member(member_headers: dict[str, str], household_id: str) -> dict[str, str]:
    return {**member_headers, "X-Household-ID": household_id}


class TestHealthEndpoint:
    def test_health_check_returns_ok(self, test_client: Client) -> None:
        response = test_client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestAuthEndpoints:
    def test_register_returns_201_without_password(self, test_client: Client) -> None:
        response = test_client.post(
            "/auth/register",
            json={"email": "New@Example.com", "password": "long-enough", "name": "New"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "new@example.com"
        assert "password" not in data
        assert "passwordHash" not in data
        assert "createdAt" in data

    def test_duplicate_registration_returns_409(
        self, test_client: Client, owner_headers: dict[str, str]
    ) -> None:
        response = test_client.post(
            "/auth/register",
            json={"email": "olivia@example.com", "password": "long-enough"},
        )
        assert response.status_code == 409
        assert response.json()["error"] == "CONFLICT"

    def test_cookie_login_then_me(
        self, test_client: Client, owner_headers: dict[str, str], household_id: str
    ) -> None:
        response = test_client.post(
            "/auth/login",
            json={"email": "olivia@example.com", "password": "correct-horse-battery"},
        )

        assert response.status_code == 200
        assert "hl_session" in response.cookies
        set_cookie = response.headers["set-cookie"].lower()
        assert "httponly" in set_cookie
        assert "samesite=lax" in set_cookie

        me = test_client.get("/auth/me")
        assert me.status_code == 200
        assert me.json()["user"]["email"] == "olivia@example.com"
        assert me.json()["memberships"] == [
            {"householdId": household_id, "householdName": "Home", "role": "OWNER"}
        ]

    def test_logout_clears_cookie(
        self, test_client: Client, owner_headers: dict[str, str]
    ) -> None:
        test_client.post(
            "/auth/login",
            json={"email": "olivia@example.com", "password": "correct-horse-battery"},
        )

        response = test_client.post("/auth/logout")

        assert response.status_code == 200
        assert test_client.get("/auth/me").status_code == 401

    def test_bad_password_returns_401(
        self, test_client: Client, owner_headers: dict[str, str]
    ) -> None:
        response = test_client.post(
            "/mobile/login", json={"email": "olivia@example.com", "password": "nope-nope"}
        )
        assert response.status_code == 401
        assert response.json()["error"] == "INVALID_CREDENTIALS"

    def test_mobile_profile_with_bearer(
        self, test_client: Client, owner_headers: dict[str, str]
    ) -> None:
        response = test_client.get("/mobile/profile", headers=owner_headers)

        assert response.status_code == 200
        assert response.json()["user"]["name"] == "Olivia"

    def test_change_password_with_bearer(
        self, test_client: Client, owner_headers: dict[str, str]
    ) -> None:
        response = test_client.post(
            "/mobile/password/change",
            json={"oldPassword": "correct-horse-battery", "newPassword": "another-horse-42"},
            headers=owner_headers,
        )
        assert response.status_code == 200
        assert response.json() == {"message": "Password has changed"}

        login = test_client.post(
            "/mobile/login", json={"email": "olivia@example.com", "password": "another-horse-42"}
        )
        assert login.status_code == 200

    def test_change_password_with_wrong_old_password_returns_400(
        self, test_client: Client, owner_headers: dict[str, str]
    ) -> None:
        response = test_client.post(
            "/mobile/password/change",
            json={"oldPassword": "wrong-password", "newPassword": "another-horse-42"},
            headers=owner_headers,
        )
        assert response.status_code == 400

    def test_change_password_requires_authentication(self, test_client: Client) -> None:
        response = test_client.post(
            "/mobile/password/change",
            json={"oldPassword": "a", "newPassword": "another-horse-42"},
        )
        assert response.status_code == 401

    def test_unauthenticated_request_returns_401(self, test_client: Client) -> None:
        response = test_client.get("/households")
        assert response.status_code == 401
        assert response.json() == {
            "error": "UNAUTHENTICATED",
            "message": "Authentication required",
            "context": {},
        }


class TestTenancyHeader:
    def test_missing_header_returns_400(
        self, test_client: Client, owner_headers: dict[str, str], household_id: str
    ) -> None:
        response = test_client.get("/accounts", headers=owner_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "MISSING_TENANT"

    def test_no_credentials_wins_over_missing_header(self, test_client: Client) -> None:
        assert test_client.get("/accounts").status_code == 401

    def test_non_member_returns_403(
        self, test_client: Client, household_id: str
    ) -> None:
        stranger = _register_and_login(test_client, "stranger@example.com", "Stranger")

        response = test_client.get(
            "/accounts", headers={**stranger, "X-Household-ID": household_id}
        )

        assert response.status_code == 403
        assert response.json()["error"] == "NOT_A_MEMBER"


class TestHouseholdEndpoints:
    def test_household_detail_lists_members(
        self, test_client: Client, owner_headers: dict[str, str], household_id: str
    ) -> None:
        response = test_client.get(f"/households/{household_id}", headers=owner_headers)

        assert response.status_code == 200
        roles = {m["email"]: m["role"] for m in response.json()["members"]}
        assert roles == {"olivia@example.com": "OWNER", "marcus@example.com": "MEMBER"}

    def test_member_cannot_rename(
        self, test_client: Client, member_headers: dict[str, str], household_id: str
    ) -> None:
        response = test_client.patch(
            f"/households/{household_id}", json={"name": "Mine"}, headers=member_headers
        )
        assert response.status_code == 403
        assert response.json()["error"] == "OWNER_REQUIRED"

    def test_invitation_preview_is_public(
        self, test_client: Client, owner_headers: dict[str, str], household_id: str
    ) -> None:
        token = test_client.post(
            "/invitations",
            json={"email": "guest@example.com", "householdId": household_id},
            headers=owner_headers,
        ).json()["token"]

        response = test_client.get("/invitations/accept", params={"token": token})

        assert response.status_code == 200
        data = response.json()
        assert data["email"] == "guest@example.com"
        assert data["household"]["name"] == "Home"
        assert data["invitedBy"] == {"name": "Olivia", "email": "olivia@example.com"}

    def test_pending_invitations(
        self, test_client: Client, owner_headers: dict[str, str], household_id: str
    ) -> None:
        test_client.post(
            "/invitations",
            json={"email": "guest@example.com", "householdId": household_id},
            headers=owner_headers,
        )
        guest = _register_and_login(test_client, "guest@example.com", "Guest")

        response = test_client.get("/invitations/pending", headers=guest)

        assert response.status_code == 200
        assert [i["household"]["name"] for i in response.json()] == ["Home"]


class TestLedgerScenario:
    """Owner, member, a shared account and the owner's personal wallet."""

    @pytest.fixture
    def accounts(self, test_client: Client, owner: dict[str, str]) -> dict[str, str]:
        group = test_client.post("/account-groups", json={"name": "Bank"}, headers=owner)
        assert group.status_code == 201
        group_id = group.json()["id"]

        joint = test_client.post(
            "/accounts",
            json={"name": "Joint", "groupId": group_id, "startingBalance": "0"},
            headers=owner,
        )
        wallet = test_client.post(
            "/accounts",
            json={"name": "O-Wallet", "groupId": group_id, "scope": "PERSONAL"},
            headers=owner,
        )
        assert joint.status_code == wallet.status_code == 201
        return {"group": group_id, "joint": joint.json()["id"], "wallet": wallet.json()["id"]}

    def test_member_cannot_read_personal_wallet(
        self, test_client: Client, member: dict[str, str], accounts: dict[str, str]
    ) -> None:
        response = test_client.get(f"/accounts/{accounts['wallet']}", headers=member)

        assert response.status_code == 403
        assert response.json()["error"] == "PERSONAL_ACCOUNT"

        listed = test_client.get("/accounts", headers=member).json()
        assert [a["name"] for a in listed] == ["Joint"]

    def test_transfer_moves_balances(
        self, test_client: Client, owner: dict[str, str], accounts: dict[str, str]
    ) -> None:
        response = test_client.post(
            "/transfers",
            json={
                "fromAccountId": accounts["joint"],
                "toAccountId": accounts["wallet"],
                "amount": "50000",
            },
            headers=owner,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["outTxn"]["amount"] == "-50000"
        assert data["inTxn"]["amount"] == "50000"
        assert data["outTxn"]["transferGroupId"] == data["transferGroupId"]

        joint = test_client.get(f"/accounts/{accounts['joint']}", headers=owner).json()
        wallet = test_client.get(f"/accounts/{accounts['wallet']}", headers=owner).json()
        assert joint["balance"] == "-50000"
        assert wallet["balance"] == "50000"

        transfer = test_client.get(
            f"/transfers/{data['transferGroupId']}", headers=owner
        ).json()
        assert transfer["summary"]["fromPocketId"] == accounts["joint"]
        assert transfer["summary"]["toAccountId"] == accounts["wallet"]

    def test_legacy_transfer_payload(
        self, test_client: Client, owner: dict[str, str], accounts: dict[str, str]
    ) -> None:
        response = test_client.post(
            "/transfers",
            json={
                "fromPocketId": accounts["wallet"],
                "toPocketId": accounts["joint"],
                "amount": 10,
                "mustBeSameBank": True,
            },
            headers=owner,
        )
        assert response.status_code == 201

    def test_member_transfer_into_personal_wallet_is_forbidden(
        self, test_client: Client, member: dict[str, str], accounts: dict[str, str]
    ) -> None:
        response = test_client.post(
            "/transfers",
            json={
                "fromAccountId": accounts["joint"],
                "toAccountId": accounts["wallet"],
                "amount": "1",
            },
            headers=member,
        )
        assert response.status_code == 403
        assert test_client.get("/transactions", headers=member).json() == []

    def test_transaction_lifecycle(
        self, test_client: Client, owner: dict[str, str], accounts: dict[str, str]
    ) -> None:
        category = test_client.post(
            "/categories", json={"name": "Groceries"}, headers=owner
        ).json()

        created = test_client.post(
            "/transactions",
            json={
                "pocketId": accounts["joint"],
                "categoryId": category["id"],
                "amount": "-50000",
                "type": "EXPENSE",
                "date": "2025-04-01T10:00:00Z",
            },
            headers=owner,
        )
        assert created.status_code == 201
        txn = created.json()
        assert txn["amount"] == "-50000"
        assert txn["date"] == "2025-04-01"

        for _ in range(2):
            updated = test_client.patch(
                f"/transactions/{txn['id']}", json={"type": "INCOME"}, headers=owner
            )
            assert updated.json()["amount"] == "50000"

        listed = test_client.get(
            "/transactions", params={"accountId": accounts["joint"]}, headers=owner
        ).json()
        assert [t["id"] for t in listed] == [txn["id"]]

        response = test_client.delete(f"/transactions/{txn['id']}", headers=owner)
        assert response.json() == {"ok": True}
        assert test_client.get("/transactions", headers=owner).json() == []

    def test_invalid_amount_returns_400(
        self, test_client: Client, owner: dict[str, str], accounts: dict[str, str]
    ) -> None:
        category = test_client.post(
            "/categories", json={"name": "Misc"}, headers=owner
        ).json()

        response = test_client.post(
            "/transactions",
            json={
                "accountId": accounts["joint"],
                "categoryId": category["id"],
                "amount": "lots",
                "type": "EXPENSE",
            },
            headers=owner,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_AMOUNT"

    def test_account_groups_nest_visible_accounts(
        self,
        test_client: Client,
        owner: dict[str, str],
        member: dict[str, str],
        accounts: dict[str, str],
    ) -> None:
        owner_view = test_client.get("/account-groups", headers=owner).json()
        member_view = test_client.get("/account-groups", headers=member).json()

        assert {a["name"] for a in owner_view[0]["accounts"]} == {"Joint", "O-Wallet"}
        assert [a["name"] for a in member_view[0]["accounts"]] == ["Joint"]


class TestTenantIsolation:
    def test_other_household_cannot_see_or_touch_resources(
        self,
        test_client: Client,
        owner: dict[str, str],
    ) -> None:
        group_id = test_client.post(
            "/account-groups", json={"name": "Bank"}, headers=owner
        ).json()["id"]
        account_id = test_client.post(
            "/accounts", json={"name": "Joint", "groupId": group_id}, headers=owner
        ).json()["id"]

        stranger = _register_and_login(test_client, "stranger@example.com", "Stranger")
        other_id = test_client.post(
            "/households", json={"name": "Elsewhere"}, headers=stranger
        ).json()["id"]
        elsewhere = {**stranger, "X-Household-ID": other_id}

        assert test_client.get("/accounts", headers=elsewhere).json() == []
        assert test_client.get("/account-groups", headers=elsewhere).json() == []
        assert test_client.get(f"/accounts/{account_id}", headers=elsewhere).status_code == 404
        assert (
            test_client.delete(f"/account-groups/{group_id}", headers=elsewhere).status_code
            == 404
        )
        assert test_client.get(f"/accounts/{account_id}", headers=owner).status_code == 200


class TestUserEndpoints:
    def test_signup_creates_owned_household(self, test_client: Client) -> None:
        response = test_client.post(
            "/users",
            json={
                "email": "nina@example.com",
                "password": "correct-horse-battery",
                "name": "Nina",
                "householdName": "Nina's Home",
            },
        )

        assert response.status_code == 201
        body = response.json()
        assert body["user"]["email"] == "nina@example.com"
        assert body["household"]["name"] == "Nina's Home"

        token = test_client.post(
            "/mobile/login",
            json={"email": "nina@example.com", "password": "correct-horse-battery"},
        ).json()["token"]
        profile = test_client.get(
            "/mobile/profile", headers={"Authorization": f"Bearer {token}"}
        ).json()
        assert profile["memberships"] == [
            {
                "householdId": body["household"]["id"],
                "householdName": "Nina's Home",
                "role": "OWNER",
            }
        ]

    def test_signup_without_household_name_is_rejected(self, test_client: Client) -> None:
        response = test_client.post(
            "/users",
            json={"email": "nina@example.com", "password": "correct-horse-battery"},
        )
        assert response.status_code == 422

    def test_list_users_for_invitation(
        self,
        test_client: Client,
        owner_headers: dict[str, str],
        household_id: str,
    ) -> None:
        _register_and_login(test_client, "oscar@example.com", "Oscar")

        everyone = test_client.get("/users", headers=owner_headers).json()
        candidates = test_client.get(
            "/users", params={"excludeHouseholdId": household_id}, headers=owner_headers
        ).json()

        assert {u["email"] for u in everyone} == {"marcus@example.com", "oscar@example.com"}
        assert [u["email"] for u in candidates] == ["oscar@example.com"]

    def test_list_users_requires_authentication(self, test_client: Client) -> None:
        assert test_client.get("/users").status_code == 401
