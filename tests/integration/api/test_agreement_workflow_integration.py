from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from src.api.config import AppSettings
from src.api.main import create_app
from tests.factories import ADMIN_EMAIL, ADMIN_PASSWORD, SIGNATURE_PNG, signup_admin


@pytest.fixture
def sqlite_settings(tmp_path) -> AppSettings:
    return AppSettings(
        store_backend="SQLITE",
        sqlite_path=str(tmp_path / "agreements.sqlite"),
        session_secret="integration-session-secret",
    )


def test_agreement_is_drafted_shared_adjusted_and_signed(sqlite_settings) -> None:
    with TestClient(create_app(sqlite_settings)) as admin:
        signup_admin(admin)
        created = admin.post(
            "/api/proposals",
            json={
                "client_name": "JHL",
                "total_development_fee": "900",
                "items": [
                    {"title": "Product Modules"},
                    {"title": "Intelligence"},
                    {"title": "Admin Panel"},
                ],
            },
        )
        assert created.status_code == 201
        proposal_id = created.json()["id"]
        items = created.json()["items"]

        edited = admin.put(
            f"/api/proposals/{proposal_id}",
            json={
                "items": [
                    {"id": items[2]["id"], "title": "Admin Panel"},
                    {"id": items[0]["id"], "title": "Product Modules v2"},
                    {"title": "Donation Gateway"},
                ]
            },
        )
        assert edited.status_code == 200
        assert [(entry["title"], entry["order"]) for entry in edited.json()["items"]] == [
            ("Admin Panel", 0),
            ("Product Modules v2", 1),
            ("Donation Gateway", 2),
        ]
        assert admin.post(f"/api/proposals/{proposal_id}/send").json()["status"] == "sent"

        with TestClient(admin.app) as client:
            url = f"/api/public/proposals/{proposal_id}"
            adjusted = client.put(
                url,
                json={
                    "payment_option": "custom",
                    "payment_terms": {"upfront_percent": "25", "installments": 5},
                    "domain_package_fee": "100",
                },
            )
            assert adjusted.status_code == 200

            schedule = client.get(f"{url}/schedule").json()["schedule"]
            assert Decimal(schedule["grand_total"]) == Decimal("1000.00")
            assert Decimal(schedule["upfront"]) == Decimal("250.00")
            assert Decimal(schedule["monthly"]) == Decimal("150.00")

            signed = client.post(
                f"{url}/sign", json={"role": "licensee", "signature": SIGNATURE_PNG}
            )
            assert signed.json()["locked"] is True
            assert client.put(url, json={"payment_option": "milestone"}).status_code == 423

        countersigned = admin.post(
            f"/api/proposals/{proposal_id}/sign",
            json={"role": "noviq", "signature": SIGNATURE_PNG},
        )
        assert countersigned.json()["status"] == "signed"

    # A fresh process over the same database sees the signed agreement and the account.
    with TestClient(create_app(sqlite_settings)) as restarted:
        login = restarted.post(
            "/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
        )
        assert login.status_code == 200

        reloaded = restarted.get(f"/api/proposals/{proposal_id}").json()
        assert reloaded["status"] == "signed"
        assert reloaded["payment_option"] == "custom"
        assert Decimal(reloaded["domain_package_fee"]) == Decimal("100")
        assert [entry["title"] for entry in reloaded["items"]] == [
            "Admin Panel",
            "Product Modules v2",
            "Donation Gateway",
        ]

        assert restarted.delete(f"/api/proposals/{proposal_id}").status_code == 204
        assert restarted.get(f"/api/public/proposals/{proposal_id}").status_code == 404


def test_sessions_do_not_survive_a_restart(sqlite_settings) -> None:
    with TestClient(create_app(sqlite_settings)) as first:
        signup_admin(first)
        cookies = dict(first.cookies)

    with TestClient(create_app(sqlite_settings), cookies=cookies) as second:
        assert second.get("/api/auth/me").status_code == 401
