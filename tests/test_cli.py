"""Tests for the operator CLI."""
from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from talenthive.cli import cli
from talenthive.models import User, UserRole

from conftest import PASSWORD


@pytest.fixture
def run(platform):
    """Invoke the CLI against the test platform."""
    runner = CliRunner()

    def _run(*args):
        return runner.invoke(cli, list(args), obj={"platform": platform})

    return _run


class TestSettingsCommands:
    def test_show_json(self, run):
        result = run("settings", "show", "--json")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["commission_rate"] == 10.0
        assert data["escrow_hold_days"] == 7

    def test_set_keeps_types(self, run, platform):
        assert run("settings", "set", "commission_rate", "12").exit_code == 0
        assert run("settings", "set", "maintenance_mode", "true").exit_code == 0

        current = platform.settings.get_settings()
        assert current.commission_rate == 12
        assert current.maintenance_mode is True
        assert current.updated_by == "cli"

    def test_set_invalid_value(self, run, platform):
        result = run("settings", "set", "commission_rate", "250")
        assert result.exit_code == 1
        assert platform.settings.get_settings().commission_rate == 10.0

    def test_set_unknown_key(self, run):
        assert run("settings", "set", "jwt_secret", "abc").exit_code == 1


class TestCreateAdmin:
    def test_creates_admin(self, run, platform):
        result = run("create-admin", "--email", "ops@example.com", "--password", PASSWORD)
        assert result.exit_code == 0
        assert "Admin created" in result.output

        admin = platform.store.find("users", User, email="ops@example.com")[0]
        assert admin.role == UserRole.ADMIN

    def test_works_with_registration_disabled(self, run, platform, admin):
        platform.settings.update_settings({"registration_enabled": False}, admin.id)
        result = run("create-admin", "--email", "ops@example.com", "--password", PASSWORD)
        assert result.exit_code == 0

    def test_duplicate_email(self, run, admin):
        result = run("create-admin", "--email", admin.email, "--password", PASSWORD)
        assert result.exit_code == 1


class TestReleaseEscrow:
    @pytest.fixture(autouse=True)
    def immediate_release(self, platform, admin):
        platform.settings.update_settings({"escrow_hold_days": 0}, admin.id)

    def test_nothing_due(self, run):
        assert run("release-escrow").exit_code == 0

    def test_releases_due_payments(self, run, platform, active_contract, fund):
        txn = fund(active_contract, 0)
        assert run("release-escrow").exit_code == 0
        assert platform.payments.get_transaction(txn.id).status.value == "released"

    def test_failure_sets_exit_code(self, run, platform, active_contract, fund, freelancer, gateway):
        platform.profiles.update_profile(freelancer.id, {"stripe_connected_account_id": "acct_123"})
        txn = fund(active_contract, 0)
        gateway.failing_transfers = 1

        assert run("release-escrow").exit_code == 1
        assert platform.payments.get_transaction(txn.id).status.value == "held_in_escrow"


class TestReporting:
    def test_stats(self, run, completed_contract):
        assert run("stats").exit_code == 0

    def test_transactions_empty(self, run):
        result = run("transactions")
        assert result.exit_code == 0
        assert "No transactions found." in result.output

    def test_transactions_listing(self, run, active_contract, fund):
        fund(active_contract, 0)
        assert run("transactions", "--status", "held_in_escrow", "--limit", "5").exit_code == 0

    def test_rejects_unknown_status(self, run):
        assert run("transactions", "--status", "lost").exit_code == 2
