from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from taskpay.accounts.models import UserAccount
from taskpay.api.main import app
from taskpay.api.rate_limit import user_or_address
from taskpay.storage.db import db


@pytest.fixture()
def client(wide_catalog):
    with TestClient(app) as test_client:
        yield test_client


def _register(client, username, referral_code=None):
    response = client.post(
        "/api/v1/auth/register",
        json={
            "username": username,
            "email": f"{username}@example.com",
            "password": "secret123",
            "referral_code": referral_code,
        },
    )
    assert response.status_code == 201, response.text
    body = response.json()
    return body, {"Authorization": f"Bearer {body['access_token']}"}


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.headers["X-Frame-Options"] == "DENY"


def test_endpoints_require_a_token(client):
    assert client.get("/api/v1/tasks").status_code == 401
    assert client.get("/api/v1/tasks", headers={"Authorization": "Bearer garbage"}).status_code == 401


def test_register_validates_input(client):
    response = client.post(
        "/api/v1/auth/register",
        json={"username": "ab", "email": "not-an-email", "password": "123"},
    )
    assert response.status_code == 422


def test_login(client):
    _register(client, "alice")

    ok = client.post("/api/v1/auth/login", json={"email": "alice@example.com", "password": "secret123"})
    bad = client.post("/api/v1/auth/login", json={"email": "alice@example.com", "password": "wrong"})

    assert ok.status_code == 200
    assert ok.json()["user"]["username"] == "alice"
    assert bad.status_code == 401
    assert bad.json() == {"error": "Invalid credentials", "code": "invalid_credentials"}


def test_task_flow(client):
    _, headers = _register(client, "worker")

    today = client.get("/api/v1/tasks", headers=headers).json()
    assert len(today["tasks"]) == 10
    assert today["remaining"] == 10

    task_id = today["tasks"][0]["id"]
    done = client.post(f"/api/v1/tasks/{task_id}/complete", json={"answer": "my answer"}, headers=headers)
    assert done.status_code == 200
    assert done.json()["balance"] == 15
    assert done.json()["remaining"] == 9

    again = client.post(f"/api/v1/tasks/{task_id}/complete", json={"answer": "my answer"}, headers=headers)
    assert again.status_code == 409
    assert again.json()["code"] == "already_completed"

    short = client.post(
        f"/api/v1/tasks/{today['tasks'][1]['id']}/complete", json={"answer": ""}, headers=headers
    )
    assert short.status_code == 400
    assert short.json()["code"] == "invalid_answer"

    history = client.get("/api/v1/tasks/history", headers=headers).json()["history"]
    assert [entry["task_id"] for entry in history] == [task_id]

    # Same list, same order on reload
    assert [t["id"] for t in client.get("/api/v1/tasks", headers=headers).json()["tasks"]] == [
        t["id"] for t in today["tasks"]
    ]


def test_referral_flow(client):
    alice, alice_headers = _register(client, "alice")
    _register(client, "bob", referral_code=alice["user"]["referral_code"])

    stats = client.get("/api/v1/referral/stats", headers=alice_headers).json()
    assert stats["referrals_count"] == 1
    assert stats["bonus"] == 100

    redeem = client.post("/api/v1/referral/redeem", headers=alice_headers)
    assert redeem.status_code == 400
    assert redeem.json()["code"] == "threshold_not_met"

    referrals = client.get("/api/v1/referral/list", headers=alice_headers).json()["referrals"]
    assert [r["referred_username"] for r in referrals] == ["bob"]


def test_bad_referral_code(client):
    response = client.post(
        "/api/v1/auth/register",
        json={
            "username": "carol",
            "email": "carol@example.com",
            "password": "secret123",
            "referral_code": "ZZZZ9999",
        },
    )
    assert response.status_code == 400
    assert response.json()["code"] == "invalid_referral_code"


def test_account_profile(client):
    _, headers = _register(client, "dana")

    updated = client.put(
        "/api/v1/account",
        json={"full_name": "Dana W", "payment_number": "0712345678"},
        headers=headers,
    )

    assert updated.status_code == 200
    body = updated.json()
    assert body["full_name"] == "Dana W"
    assert body["activation_status"] == "unpaid"
    assert body["activation_fee"] == 100


def test_password_change_and_account_deletion(client):
    _, headers = _register(client, "fran")

    wrong = client.post(
        "/api/v1/account/password",
        json={"current_password": "nope", "new_password": "another-secret"},
        headers=headers,
    )
    assert wrong.status_code == 400
    assert wrong.json()["code"] == "wrong_password"

    changed = client.post(
        "/api/v1/account/password",
        json={"current_password": "secret123", "new_password": "another-secret"},
        headers=headers,
    )
    assert changed.json() == {"ok": True}
    login = client.post("/api/v1/auth/login", json={"email": "fran@example.com", "password": "another-secret"})
    assert login.status_code == 200

    assert client.delete("/api/v1/account", headers=headers).json() == {"ok": True}
    assert client.get("/api/v1/account", headers=headers).status_code == 401


def test_withdrawal_needs_activation(client):
    _, headers = _register(client, "erin")

    response = client.post(
        "/api/v1/withdrawals",
        json={"amount": 300, "phone_number": "0712345678"},
        headers=headers,
    )

    assert response.status_code == 402
    assert response.json()["code"] == "activation_required"


def test_admin_routes(client):
    user, user_headers = _register(client, "plain")
    boss, _ = _register(client, "boss")
    with db.session() as session:
        session.get(UserAccount, boss["user"]["id"]).is_admin = True
    login = client.post("/api/v1/auth/login", json={"email": "boss@example.com", "password": "secret123"})
    admin_headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

    assert client.get("/api/v1/admin/dashboard", headers=user_headers).status_code == 403

    user_id = user["user"]["id"]
    assert client.put(
        f"/api/v1/admin/users/{user_id}/balance", json={"amount": 800}, headers=admin_headers
    ).json()["balance"] == 800
    assert client.put(
        f"/api/v1/admin/users/{user_id}/activation", json={"status": "paid"}, headers=admin_headers
    ).status_code == 200

    withdrawal = client.post(
        "/api/v1/withdrawals",
        json={"amount": 300, "phone_number": "0712345678"},
        headers=user_headers,
    )
    assert withdrawal.status_code == 201
    assert withdrawal.json()["balance"] == 500

    settings = client.put("/api/v1/admin/settings", json={"tasks_per_day": 6}, headers=admin_headers)
    assert settings.json()["settings"]["tasks_per_day"] == 6

    actions = [e["action"] for e in client.get("/api/v1/admin/audit", headers=admin_headers).json()["entries"]]
    assert actions == ["update", "set_activation", "set_balance"]


def test_rate_limit_key_prefers_the_account():
    anonymous = SimpleNamespace(state=SimpleNamespace(), client=SimpleNamespace(host="10.0.0.7"))
    signed_in = SimpleNamespace(state=SimpleNamespace(user=SimpleNamespace(id=12)), client=anonymous.client)

    assert user_or_address(anonymous) == "10.0.0.7"
    assert user_or_address(signed_in) == "user:12"
