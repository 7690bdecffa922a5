"""Shared fixtures: an isolated data directory, a fake payment gateway and
ready-made marketplace states."""
from __future__ import annotations

import itertools
import json

import pytest

from talenthive.config import Settings
from talenthive.errors import PaymentGatewayError, ValidationError
from talenthive.platform import Platform

PASSWORD = "correct-horse-battery"

PROJECT_BUDGET = {"type": "fixed", "min": 500, "max": 2000}
TIMELINE = {"duration": 2, "unit": "weeks"}
MILESTONES = [
    {"title": "Design", "description": "Wireframes and mockups", "amount": 600},
    {"title": "Build", "description": "Implementation", "amount": 400},
]


class FakeGateway:
    """In-memory stand-in for StripeGateway."""

    def __init__(self):
        self.intents: dict[str, dict] = {}
        self.transfers: list[dict] = []
        self.refunds: list[dict] = []
        self.cancelled_intents: list[str] = []
        self.accounts: dict[str, dict] = {}
        self.payouts: list[dict] = []
        self.intent_status = "succeeded"
        self.failing_transfers = 0
        self.webhook_signature = "valid-signature"

    def create_payment_intent(self, amount, currency, metadata, description=""):
        intent_id = f"pi_{len(self.intents) + 1}"
        self.intents[intent_id] = {
            "id": intent_id,
            "amount": amount,
            "currency": currency,
            "metadata": metadata,
        }
        return {"id": intent_id, "client_secret": f"{intent_id}_secret"}

    def retrieve_payment_intent(self, payment_intent_id):
        return {"id": payment_intent_id, "status": self.intent_status, "latest_charge": f"ch_{payment_intent_id}"}

    def create_transfer(self, amount, currency, destination, metadata):
        if self.failing_transfers:
            self.failing_transfers -= 1
            raise PaymentGatewayError("Transfer failed: destination account is restricted")
        transfer = {
            "id": f"tr_{len(self.transfers) + 1}",
            "amount": amount,
            "destination": destination,
            "metadata": metadata,
        }
        self.transfers.append(transfer)
        return transfer

    def create_refund(self, payment_intent_id, metadata):
        refund = {"id": f"re_{len(self.refunds) + 1}", "payment_intent": payment_intent_id}
        self.refunds.append(refund)
        return refund

    def cancel_payment_intent(self, payment_intent_id):
        self.cancelled_intents.append(payment_intent_id)
        return {"id": payment_intent_id, "status": "canceled"}

    def create_connect_account(self, email, metadata):
        account_id = f"acct_new_{len(self.accounts) + 1}"
        self.accounts[account_id] = {"id": account_id, "email": email, "metadata": metadata}
        return self.accounts[account_id]

    def create_account_link(self, account_id, refresh_url, return_url):
        return {"url": f"https://connect.stripe.test/setup/{account_id}?return={return_url}"}

    def retrieve_account(self, account_id):
        return {
            "id": account_id,
            "charges_enabled": True,
            "payouts_enabled": True,
            "details_submitted": True,
            "requirements": {"currently_due": []},
        }

    def create_payout(self, amount, currency, account_id, metadata):
        payout = {"id": f"po_{len(self.payouts) + 1}", "amount": amount, "account": account_id}
        self.payouts.append(payout)
        return payout

    def construct_event(self, payload, signature):
        if signature != self.webhook_signature:
            raise ValidationError("Invalid webhook signature")
        return json.loads(payload)


@pytest.fixture
def settings(tmp_path):
    return Settings(data_dir=tmp_path / "data", jwt_secret="test-secret-0123456789")


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def platform(settings, gateway):
    return Platform(settings, gateway=gateway)


@pytest.fixture
def make_user(platform):
    """Register a user through the auth service."""
    counter = itertools.count(1)

    def _make(role="freelancer", first_name=None, last_name="Tester", **kwargs):
        n = next(counter)
        email = kwargs.pop("email", f"{role}{n}@example.com")
        user, _ = platform.auth.register(
            email=email,
            password=PASSWORD,
            first_name=first_name or f"{role.capitalize()}{n}",
            last_name=last_name,
            role=role,
            enforce_registration_switch=False,
            **kwargs,
        )
        return user

    return _make


@pytest.fixture
def client_user(make_user):
    return make_user("client", company_name="Acme")


@pytest.fixture
def freelancer(make_user):
    return make_user("freelancer", title="Python developer")


@pytest.fixture
def admin(make_user):
    return make_user("admin")


@pytest.fixture
def project(platform, client_user):
    return platform.projects.create_project(
        client=client_user,
        title="Build a booking site",
        description="A small site for booking appointments",
        category="Web Development",
        budget=PROJECT_BUDGET,
        timeline=TIMELINE,
        skills=["python", "flask"],
    )


@pytest.fixture
def proposal(platform, project, freelancer):
    return platform.proposals.submit_proposal(
        freelancer=freelancer,
        project_id=project.id,
        cover_letter="I have built several booking systems.",
        bid_amount=1000,
        timeline=TIMELINE,
        milestones=MILESTONES,
    )


@pytest.fixture
def active_contract(platform, client_user, freelancer, proposal):
    """A signed two-milestone contract worth 1000."""
    platform.proposals.accept_proposal(proposal.id, client_user)
    contract = platform.contracts.create_contract(proposal.id, client_user)
    platform.contracts.sign_contract(contract.id, client_user)
    return platform.contracts.sign_contract(contract.id, freelancer)


@pytest.fixture
def approve(platform, client_user, freelancer):
    """Deliver and approve one milestone of a contract."""
    def _approve(contract, index):
        milestone_id = contract.milestones[index].id
        platform.contracts.submit_milestone(contract.id, milestone_id, freelancer, notes="Done")
        return platform.contracts.approve_milestone(contract.id, milestone_id, client_user)

    return _approve


@pytest.fixture
def fund(platform, client_user, approve):
    """Approve a milestone and pay it into escrow. Returns the transaction."""
    def _fund(contract, index):
        approve(contract, index)
        intent = platform.payments.create_payment_intent(contract.id, contract.milestones[index].id, client_user)
        return platform.payments.confirm_payment(intent["transaction"].stripe_payment_intent_id, client_user)

    return _fund


@pytest.fixture
def completed_contract(platform, active_contract, fund):
    fund(active_contract, 0)
    fund(active_contract, 1)
    return platform.contracts.get_contract(active_contract.id)
