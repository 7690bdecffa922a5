"""Tests for the Flask REST API: envelopes, auth guards and key flows."""
from __future__ import annotations

import json

import pytest

from talenthive import __version__
from talenthive.api import create_app
from talenthive.workflows.auth import INVALID_CREDENTIALS

from conftest import PASSWORD, PROJECT_BUDGET, TIMELINE


@pytest.fixture
def app(settings, gateway):
    app = create_app(settings, gateway=gateway)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def api(app):
    return app.test_client()


@pytest.fixture
def auth(platform):
    """Authorization header for a user."""
    def _auth(user):
        token = platform.tokens.create_access_token(user.id, user.role.value)
        return {"Authorization": f"Bearer {token}"}

    return _auth


class TestEnvelope:
    def test_health(self, api):
        response = api.get("/health")
        assert response.status_code == 200
        assert response.get_json() == {"status": "healthy", "version": __version__}

    def test_unknown_route(self, api):
        response = api.get("/api/v1/nothing-here")
        assert response.status_code == 404
        assert response.get_json()["status"] == "fail"

    def test_missing_resource(self, api):
        response = api.get("/api/v1/projects/does-not-exist")
        assert response.status_code == 404
        assert response.get_json() == {"status": "fail", "message": "Project not found"}

    def test_body_validation(self, api):
        response = api.post("/api/v1/auth/register", json={"email": "a@example.com", "password": "short"})
        body = response.get_json()
        assert response.status_code == 400
        assert body["status"] == "fail"
        assert "password" in body["message"]
        assert "first_name" in body["message"]


class TestAuthEndpoints:
    def test_register_and_me(self, api):
        response = api.post("/api/v1/auth/register", json={
            "email": "new@example.com",
            "password": PASSWORD,
            "first_name": "New",
            "last_name": "Person",
            "role": "client",
            "company_name": "Startup",
        })
        body = response.get_json()
        assert response.status_code == 201
        assert body["status"] == "success"
        assert body["message"] == "Registration successful"
        assert body["data"]["user"]["role"] == "client"

        token = body["data"]["access_token"]
        me = api.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.get_json()["data"]["email"] == "new@example.com"

    def test_duplicate_registration(self, api, freelancer):
        response = api.post("/api/v1/auth/register", json={
            "email": freelancer.email, "password": PASSWORD, "first_name": "A", "last_name": "B",
        })
        assert response.status_code == 409
        assert response.get_json()["status"] == "fail"

    def test_login(self, api, freelancer):
        ok = api.post("/api/v1/auth/login", json={"email": freelancer.email, "password": PASSWORD})
        assert ok.status_code == 200
        assert ok.get_json()["data"]["token_type"] == "bearer"

        bad = api.post("/api/v1/auth/login", json={"email": freelancer.email, "password": "nope-nope"})
        assert bad.status_code == 401
        assert bad.get_json()["message"] == INVALID_CREDENTIALS

    def test_requires_token(self, api):
        response = api.get("/api/v1/auth/me")
        assert response.status_code == 401
        assert response.get_json() == {"status": "fail", "message": "Authentication required"}

    def test_garbage_token(self, api):
        response = api.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_forgot_password_does_not_reveal_accounts(self, api, freelancer):
        known = api.post("/api/v1/auth/forgot-password", json={"email": freelancer.email})
        unknown = api.post("/api/v1/auth/forgot-password", json={"email": "ghost@example.com"})
        assert known.status_code == unknown.status_code == 200
        assert known.get_json() == unknown.get_json()


class TestProjectEndpoints:
    def test_wrong_role(self, api, auth, freelancer):
        response = api.post("/api/v1/projects", headers=auth(freelancer), json={
            "title": "x", "description": "y", "category": "z", "budget": PROJECT_BUDGET, "timeline": TIMELINE,
        })
        assert response.status_code == 403
        assert response.get_json()["status"] == "fail"

    def test_create_list_and_view(self, api, auth, client_user, freelancer):
        created = api.post("/api/v1/projects", headers=auth(client_user), json={
            "title": "Mobile app",
            "description": "iOS and Android",
            "category": "Mobile",
            "budget": PROJECT_BUDGET,
            "timeline": TIMELINE,
            "skills": ["swift", "kotlin"],
        })
        assert created.status_code == 201
        project = created.get_json()["data"]
        assert project["status"] == "open"
        assert project["budget"]["type"] == "fixed"

        listed = api.get("/api/v1/projects?skills=swift&budget_min=100").get_json()["data"]
        assert [p["id"] for p in listed["items"]] == [project["id"]]
        assert listed["items"][0]["proposal_count"] == 0

        api.get(f"/api/v1/projects/{project['id']}", headers=auth(freelancer))
        api.get(f"/api/v1/projects/{project['id']}", headers=auth(client_user))
        viewed = api.get(f"/api/v1/projects/{project['id']}").get_json()["data"]
        assert viewed["view_count"] == 1

    def test_invalid_status_filter(self, api):
        response = api.get("/api/v1/projects?status=bogus")
        assert response.status_code == 400

    def test_invalid_budget_body(self, api, auth, client_user):
        response = api.post("/api/v1/projects", headers=auth(client_user), json={
            "title": "x", "description": "y", "category": "z",
            "budget": {"type": "fixed", "min": 10, "max": 0}, "timeline": TIMELINE,
        })
        assert response.status_code == 400


class TestPaymentEndpoints:
    def test_fund_and_confirm(self, api, auth, active_contract, approve, client_user, freelancer, make_user):
        approve(active_contract, 0)

        created = api.post("/api/v1/payments/create-intent", headers=auth(client_user), json={
            "contract_id": active_contract.id, "milestone_id": active_contract.milestones[0].id,
        })
        assert created.status_code == 201
        data = created.get_json()["data"]
        assert data["transaction"]["amount"] == 60_000
        intent_id = data["transaction"]["stripe_payment_intent_id"]
        assert data["client_secret"] == f"{intent_id}_secret"

        confirmed = api.post("/api/v1/payments/confirm", headers=auth(client_user), json={"payment_intent_id": intent_id})
        assert confirmed.status_code == 200
        txn = confirmed.get_json()["data"]
        assert txn["status"] == "held_in_escrow"

        outsider = api.get(f"/api/v1/payments/transactions/{txn['id']}", headers=auth(make_user("client")))
        assert outsider.status_code == 403

        balance = api.get("/api/v1/payments/balance", headers=auth(freelancer)).get_json()["data"]
        assert balance["pending"] == 52_260

    def test_freelancer_cannot_fund(self, api, auth, active_contract, freelancer):
        response = api.post("/api/v1/payments/create-intent", headers=auth(freelancer), json={
            "contract_id": active_contract.id, "milestone_id": active_contract.milestones[0].id,
        })
        assert response.status_code == 403

    def test_refund_is_admin_only(self, api, auth, active_contract, fund, client_user, admin):
        txn = fund(active_contract, 0)
        denied = api.post(f"/api/v1/payments/{txn.id}/refund", headers=auth(client_user), json={})
        assert denied.status_code == 403

        refunded = api.post(f"/api/v1/payments/{txn.id}/refund", headers=auth(admin), json={"reason": "Duplicate"})
        assert refunded.get_json()["data"]["status"] == "refunded"

    def test_public_fees(self, api):
        data = api.get("/api/v1/payments/fees").get_json()["data"]
        assert data["commission_rate"] == 10.0
        assert data["currency"] == "USD"

    def test_webhook_signature(self, api):
        payload = json.dumps({"type": "customer.created", "data": {"object": {"id": "cus_1"}}})

        rejected = api.post("/api/v1/payments/webhook", data=payload, headers={"Stripe-Signature": "forged"})
        assert rejected.status_code == 400

        accepted = api.post("/api/v1/payments/webhook", data=payload, headers={"Stripe-Signature": "valid-signature"})
        assert accepted.status_code == 200
        assert accepted.get_json()["data"] == {"received": True, "type": "customer.created"}


class TestAdminEndpoints:
    def test_non_admin_blocked(self, api, auth, client_user):
        response = api.get("/api/v1/admin/settings", headers=auth(client_user))
        assert response.status_code == 403

    def test_update_settings(self, api, auth, admin):
        response = api.put("/api/v1/admin/settings", headers=auth(admin), json={"commission_rate": 12.5})
        assert response.status_code == 200
        assert response.get_json()["data"]["commission_rate"] == 12.5

        history = api.get("/api/v1/admin/settings/history", headers=auth(admin)).get_json()["data"]
        assert history[0]["commission_rate"] == 10.0

    def test_settings_reject_unknown_fields(self, api, auth, admin):
        response = api.put("/api/v1/admin/settings", headers=auth(admin), json={"jwt_secret": "x"})
        assert response.status_code == 400

    def test_settings_reject_bad_values(self, api, auth, admin):
        response = api.put("/api/v1/admin/settings", headers=auth(admin), json={"commission_rate": 250})
        assert response.status_code == 400

    def test_suspend_user(self, api, auth, admin, freelancer):
        response = api.put(
            f"/api/v1/admin/users/{freelancer.id}/status", headers=auth(admin), json={"status": "suspended"},
        )
        assert response.get_json()["data"]["account_status"] == "suspended"

        login = api.post("/api/v1/auth/login", json={"email": freelancer.email, "password": PASSWORD})
        assert login.status_code == 403

    def test_escrow_sweep(self, api, auth, admin):
        response = api.post("/api/v1/admin/escrow/release", headers=auth(admin))
        assert response.get_json()["data"] == {"released": 0, "failed": 0, "processed": [], "errors": []}

    def test_transactions_by_offset_dates(self, api, auth, admin, active_contract, fund):
        txn = fund(active_contract, 0)

        since = api.get(
            "/api/v1/admin/transactions", headers=auth(admin),
            query_string={"start_date": "2020-01-01T00:00:00+00:00"},
        )
        assert since.status_code == 200
        assert [t["id"] for t in since.get_json()["data"]["items"]] == [txn.id]

        future = api.get(
            "/api/v1/admin/transactions", headers=auth(admin),
            query_string={"start_date": "2999-01-01T00:00:00Z"},
        )
        assert future.get_json()["data"]["items"] == []

        bad = api.get("/api/v1/admin/transactions", headers=auth(admin), query_string={"end_date": "yesterday"})
        assert bad.status_code == 400

    def test_contracts_by_status(self, api, auth, admin, active_contract, client_user):
        listed = api.get("/api/v1/admin/contracts", headers=auth(admin)).get_json()["data"]
        assert [c["id"] for c in listed] == [active_contract.id]

        drafts = api.get("/api/v1/admin/contracts?status=draft", headers=auth(admin)).get_json()["data"]
        assert drafts == []

        assert api.get("/api/v1/admin/contracts", headers=auth(client_user)).status_code == 403

    def test_stats_include(self, api, auth, admin):
        data = api.get("/api/v1/admin/stats?include=users,transactions", headers=auth(admin)).get_json()["data"]
        assert set(data) == {"users", "transactions"}
        assert data["users"]["total"] == 1


class TestPayoutEndpoints:
    def test_connect_then_withdraw(self, api, auth, platform, completed_contract, freelancer, admin):
        connected = api.post("/api/v1/payouts/connect", headers=auth(freelancer))
        assert connected.status_code == 200
        assert connected.get_json()["data"]["account_id"] == "acct_new_1"

        status = api.get("/api/v1/payouts/connect/status", headers=auth(freelancer)).get_json()["data"]
        assert status["is_connected"]

        for txn in platform.payments.get_transactions(freelancer.id)["items"]:
            platform.payments.release_payment(txn["id"], admin)
        earnings = api.get("/api/v1/payouts/earnings", headers=auth(freelancer)).get_json()["data"]
        assert earnings["available"] == 87_100

        payout = api.post("/api/v1/payouts/request", headers=auth(freelancer))
        assert payout.status_code == 201
        assert payout.get_json()["data"]["amount"] == 87_100
        assert payout.get_json()["message"] == "Payout requested"

        again = api.post("/api/v1/payouts/request", headers=auth(freelancer))
        assert again.status_code == 400

    def test_clients_blocked(self, api, auth, client_user):
        assert api.post("/api/v1/payouts/connect", headers=auth(client_user)).status_code == 403
        assert api.get("/api/v1/payouts/earnings", headers=auth(client_user)).status_code == 403


class TestMaintenanceMode:
    @pytest.fixture(autouse=True)
    def maintenance(self, platform, admin):
        platform.settings.update_settings({"maintenance_mode": True}, admin.id)

    def test_regular_routes_unavailable(self, api):
        response = api.get("/api/v1/projects")
        assert response.status_code == 503
        assert response.get_json()["status"] == "error"

    def test_exempt_routes(self, api, auth, admin):
        assert api.get("/health").status_code == 200
        assert api.post("/api/v1/auth/login", json={"email": admin.email, "password": PASSWORD}).status_code == 200
        assert api.get("/api/v1/admin/settings", headers=auth(admin)).status_code == 200

    def test_admin_can_turn_it_off(self, api, auth, admin):
        api.put("/api/v1/admin/settings", headers=auth(admin), json={"maintenance_mode": False})
        assert api.get("/api/v1/projects").status_code == 200
