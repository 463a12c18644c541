"""Account endpoint tests: provider calls paired with profile rows."""

from __future__ import annotations

import uuid

from sqlalchemy.exc import IntegrityError, OperationalError


def _create(client, email="jane@example.com", role="user", **fields):
    resp = client.post("/api/accounts/create", json={"email": email, "role": role, **fields})
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_create_account_returns_recovery_link(client, env):
    body = _create(client, full_name="  Jane Doe ", username="jane")
    account = body["account"]
    assert account["email"] == "jane@example.com"
    assert account["full_name"] == "Jane Doe"
    assert account["role"] == "user"
    assert body["recovery_link"] == "https://id.example.test/recover?email=jane@example.com"
    assert account["id"] in env.identity_admin.users
    assert env.accounts.commits == 1


def test_create_account_with_invite(client, env):
    body = _create(client, send_invite=True)
    assert body["recovery_link"] is None
    assert [c[0] for c in env.identity_admin.calls] == ["invite_user"]


def test_create_account_recovery_link_failure_is_not_fatal(client, env):
    env.identity_admin.fail_recovery = True
    body = _create(client)
    assert body["recovery_link"] is None
    assert len(env.accounts.rows) == 1


def test_create_account_validation(client, env):
    resp = client.post("/api/accounts/create", json={"email": "not-an-email", "role": "owner"})
    assert resp.status_code == 400
    message = resp.json()["error"]
    assert message.startswith("email: ")
    assert "role: " in message
    assert env.identity_admin.calls == []


def test_create_account_rolls_back_identity_when_profile_fails(client, env):
    env.accounts.fail_on_create = IntegrityError("INSERT INTO profiles", {}, Exception("duplicate key value"))
    resp = client.post("/api/accounts/create", json={"email": "jane@example.com", "role": "admin"})
    assert resp.status_code == 409
    assert resp.json() == {"error": "Resource already exists"}
    assert env.identity_admin.users == {}
    assert [c[0] for c in env.identity_admin.calls] == ["create_user", "delete_user"]
    assert env.accounts.rollbacks == 1


def test_list_and_search_accounts(client):
    _create(client, email="jane@example.com", username="jdoe")
    _create(client, email="bob@example.com", full_name="Bob Stone")
    everyone = client.get("/api/accounts/list").json()["accounts"]
    found = client.get("/api/accounts/list", params={"q": "STONE"}).json()["accounts"]
    assert [a["email"] for a in everyone] == ["bob@example.com", "jane@example.com"]
    assert [a["email"] for a in found] == ["bob@example.com"]


def test_get_account(client):
    account = _create(client)["account"]
    resp = client.get(f"/api/accounts/{account['id']}/get")
    assert resp.status_code == 200
    assert resp.json()["account"]["id"] == account["id"]


def test_get_account_invalid_id(client):
    resp = client.get("/api/accounts/42/get")
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid account ID"}


def test_get_account_not_found(client):
    resp = client.get(f"/api/accounts/{uuid.uuid4()}/get")
    assert resp.status_code == 404


def test_update_account_syncs_role(client, env):
    account = _create(client)["account"]
    resp = client.patch(f"/api/accounts/{account['id']}/update", json={"role": "admin"})
    assert resp.status_code == 200
    assert resp.json()["account"]["role"] == "admin"
    assert env.identity_admin.users[account["id"]].role == "admin"
    assert env.accounts.commits == 2


def test_update_account_profile_only(client, env):
    account = _create(client)["account"]
    resp = client.patch(f"/api/accounts/{account['id']}/update", json={"full_name": "Jane D."})
    assert resp.status_code == 200
    assert ("update_role", account["id"]) not in env.identity_admin.calls


def test_update_account_rolls_back_on_provider_failure(client, env):
    account = _create(client)["account"]
    env.identity_admin.fail_update_role = True
    resp = client.patch(f"/api/accounts/{account['id']}/update", json={"role": "admin"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Identity provider unavailable"}
    assert env.accounts.rollbacks == 1
    assert env.accounts.commits == 1


def test_update_missing_account(client):
    resp = client.patch(f"/api/accounts/{uuid.uuid4()}/update", json={"role": "admin"})
    assert resp.status_code == 404


def test_delete_account_twice(client, env):
    account = _create(client)["account"]
    first = client.delete(f"/api/accounts/{account['id']}/delete")
    second = client.delete(f"/api/accounts/{account['id']}/delete")
    assert first.status_code == 204
    assert second.status_code == 404
    assert second.json() == {"error": "Account not found"}
    assert env.accounts.rows == {}


def _db_down() -> OperationalError:
    return OperationalError("COMMIT", {}, Exception("server closed the connection"))


def test_update_account_restores_role_when_commit_fails(client, env):
    account = _create(client)["account"]
    env.accounts.fail_on_commit = _db_down()
    resp = client.patch(f"/api/accounts/{account['id']}/update", json={"role": "admin"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Database error"}
    assert env.identity_admin.users[account["id"]].role == "user"
    assert env.identity_admin.calls[-2:] == [
        ("update_role", account["id"]),
        ("update_role", account["id"]),
    ]
    assert env.accounts.rollbacks == 1


def test_delete_profile_without_identity(client, env):
    orphan = env.accounts.seed(id=uuid.uuid4(), email="ghost@example.com")
    resp = client.delete(f"/api/accounts/{orphan.id}/delete")
    assert resp.status_code == 204
    assert env.accounts.rows == {}
    assert env.accounts.commits == 1


def test_delete_account_keeps_identity_when_profile_delete_fails(client, env):
    account = _create(client)["account"]
    env.accounts.fail_on_delete = _db_down()
    resp = client.delete(f"/api/accounts/{account['id']}/delete")
    assert resp.status_code == 500
    assert account["id"] in env.identity_admin.users
    assert ("delete_user", account["id"]) not in env.identity_admin.calls
    assert env.accounts.rollbacks == 1


def test_delete_account_keeps_profile_when_provider_fails(client, env):
    account = _create(client)["account"]
    env.identity_admin.fail_delete = True
    resp = client.delete(f"/api/accounts/{account['id']}/delete")
    assert resp.status_code == 500
    assert resp.json() == {"error": "Identity provider unavailable"}
    assert account["id"] in env.identity_admin.users
    assert len(env.accounts.rows) == 1
    assert env.accounts.rollbacks == 1


def test_delete_account_retry_after_commit_failure(client, env):
    account = _create(client)["account"]
    env.accounts.fail_on_commit = _db_down()
    first = client.delete(f"/api/accounts/{account['id']}/delete")
    assert first.status_code == 500
    assert account["id"] not in env.identity_admin.users
    assert len(env.accounts.rows) == 1

    env.accounts.fail_on_commit = None
    retry = client.delete(f"/api/accounts/{account['id']}/delete")
    assert retry.status_code == 204
    assert env.accounts.rows == {}
