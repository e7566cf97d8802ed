"""Tests for administrator allow-list endpoints."""

from fastapi import status
from fastapi.testclient import TestClient

from tests.conftest import auth_headers, sign_in
from tickety.models import AdminWallet

PROMOTED = "0x" + "9f" * 20


def test_requires_session(client: TestClient) -> None:
    r = client.get("/api/v1/admins")
    assert r.status_code == status.HTTP_401_UNAUTHORIZED


def test_customer_is_forbidden(client: TestClient, customer_headers) -> None:
    r = client.get("/api/v1/admins", headers=customer_headers)
    assert r.status_code == status.HTTP_403_FORBIDDEN
    assert r.json()["detail"] == "Forbidden: admin only"

    r = client.post("/api/v1/admins", json={"address": PROMOTED}, headers=customer_headers)
    assert r.status_code == status.HTTP_403_FORBIDDEN


def test_asserted_header_does_not_grant_admin(client: TestClient, admin_wallet) -> None:
    r = client.get("/api/v1/admins", headers={"x-wallet-address": admin_wallet.address})
    assert r.status_code == status.HTTP_401_UNAUTHORIZED


def test_list_admins(client: TestClient, admin_wallet, admin_headers) -> None:
    r = client.get("/api/v1/admins", headers=admin_headers)
    assert r.status_code == status.HTTP_200_OK
    assert r.json() == {
        "items": [
            {"address": admin_wallet.address.lower(), "note": "test admin", "source": "database"}
        ]
    }


def test_add_admin(client: TestClient, admin_headers, db_session) -> None:
    r = client.post(
        "/api/v1/admins",
        json={"address": PROMOTED.upper().replace("0X", "0x"), "note": "door staff"},
        headers=admin_headers,
    )
    assert r.status_code == status.HTTP_200_OK
    assert r.json() == {"ok": True, "address": PROMOTED}

    row = db_session.get(AdminWallet, PROMOTED)
    assert row is not None
    assert row.note == "door staff"


def test_add_admin_rejects_bad_address(client: TestClient, admin_headers) -> None:
    r = client.post("/api/v1/admins", json={"address": "0xnope"}, headers=admin_headers)
    assert r.status_code == status.HTTP_400_BAD_REQUEST


def test_remove_admin(client: TestClient, admin_headers, admin_registry, db_session) -> None:
    admin_registry.add(db_session, PROMOTED)

    r = client.delete(f"/api/v1/admins/{PROMOTED}", headers=admin_headers)
    assert r.status_code == status.HTTP_200_OK
    assert r.json() == {"ok": True, "address": PROMOTED}

    r = client.delete(f"/api/v1/admins/{PROMOTED}", headers=admin_headers)
    assert r.status_code == status.HTTP_404_NOT_FOUND
    assert r.json()["detail"] == "Admin not found"

    r = client.delete("/api/v1/admins/not-an-address", headers=admin_headers)
    assert r.status_code == status.HTTP_400_BAD_REQUEST


def test_revocation_applies_to_existing_sessions(
    client: TestClient, admin_wallet, admin_registry, db_session
) -> None:
    token = str(sign_in(client, admin_wallet)["token"])
    client.cookies.clear()
    assert client.get("/api/v1/admins", headers=auth_headers(token)).status_code == 200

    admin_registry.remove(db_session, admin_wallet.address)

    r = client.get("/api/v1/admins", headers=auth_headers(token))
    assert r.status_code == status.HTTP_403_FORBIDDEN


def test_promoted_wallet_signs_in_as_admin(client: TestClient, admin_headers, wallet) -> None:
    r = client.post("/api/v1/admins", json={"address": wallet.address}, headers=admin_headers)
    assert r.status_code == status.HTTP_200_OK

    assert sign_in(client, wallet)["roles"] == ["admin"]
