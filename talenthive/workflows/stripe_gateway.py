"""Thin wrapper over the Stripe SDK.

PaymentProcessor talks to any object with these methods, which keeps the
SDK at the edge and lets tests substitute an in-memory gateway.
"""

import logging
from typing import Optional

import stripe

from ..errors import PaymentGatewayError, ValidationError

logger = logging.getLogger(__name__)


class StripeGateway:
    """Payment intents, Connect accounts, transfers, payouts, refunds and webhooks."""

    def __init__(self, api_key: Optional[str], webhook_secret: Optional[str] = None):
        self.api_key = api_key
        self.webhook_secret = webhook_secret

    def _require_key(self) -> None:
        if not self.api_key:
            raise PaymentGatewayError("Stripe is not configured", 503)

    def create_payment_intent(self, amount: int, currency: str, metadata: dict, description: str = ""):
        self._require_key()
        try:
            return stripe.PaymentIntent.create(
                api_key=self.api_key,
                amount=amount,
                currency=currency.lower(),
                metadata=metadata,
                description=description,
                automatic_payment_methods={"enabled": True},
            )
        except stripe.StripeError as e:
            logger.error("Stripe PaymentIntent.create failed: %s", e)
            raise PaymentGatewayError(f"Payment provider error: {e.user_message or e}") from e

    def retrieve_payment_intent(self, payment_intent_id: str):
        self._require_key()
        try:
            return stripe.PaymentIntent.retrieve(payment_intent_id, api_key=self.api_key)
        except stripe.StripeError as e:
            logger.error("Stripe PaymentIntent.retrieve failed: %s", e)
            raise PaymentGatewayError(f"Payment provider error: {e.user_message or e}") from e

    def cancel_payment_intent(self, payment_intent_id: str):
        """Void an intent that was never charged."""
        self._require_key()
        try:
            return stripe.PaymentIntent.cancel(
                payment_intent_id,
                api_key=self.api_key,
                cancellation_reason="requested_by_customer",
            )
        except stripe.StripeError as e:
            logger.error("Stripe PaymentIntent.cancel failed: %s", e)
            raise PaymentGatewayError(f"Payment provider error: {e.user_message or e}") from e

    def create_transfer(self, amount: int, currency: str, destination: str, metadata: dict):
        self._require_key()
        try:
            return stripe.Transfer.create(
                api_key=self.api_key,
                amount=amount,
                currency=currency.lower(),
                destination=destination,
                metadata=metadata,
            )
        except stripe.StripeError as e:
            logger.error("Stripe Transfer.create failed: %s", e)
            raise PaymentGatewayError(f"Transfer failed: {e.user_message or e}") from e

    def create_refund(self, payment_intent_id: str, metadata: dict):
        self._require_key()
        try:
            return stripe.Refund.create(
                api_key=self.api_key,
                payment_intent=payment_intent_id,
                reason="requested_by_customer",
                metadata=metadata,
            )
        except stripe.StripeError as e:
            logger.error("Stripe Refund.create failed: %s", e)
            raise PaymentGatewayError(f"Refund failed: {e.user_message or e}") from e

    def construct_event(self, payload: bytes, signature: str):
        """Verify a webhook signature and parse the event."""
        if not self.webhook_secret:
            raise PaymentGatewayError("Stripe webhooks are not configured", 503)
        try:
            return stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except ValueError as e:
            raise ValidationError("Invalid webhook payload") from e
        except stripe.SignatureVerificationError as e:
            raise ValidationError("Invalid webhook signature") from e

    # === Connect accounts and payouts ===

    def create_connect_account(self, email: str, metadata: dict):
        self._require_key()
        try:
            return stripe.Account.create(
                api_key=self.api_key,
                type="express",
                country="US",
                email=email,
                capabilities={"card_payments": {"requested": True}, "transfers": {"requested": True}},
                business_type="individual",
                metadata=metadata,
            )
        except stripe.StripeError as e:
            logger.error("Stripe Account.create failed: %s", e)
            raise PaymentGatewayError(f"Failed to create payment account: {e.user_message or e}") from e

    def create_account_link(self, account_id: str, refresh_url: str, return_url: str):
        """Hosted onboarding page for a connected account."""
        self._require_key()
        try:
            return stripe.AccountLink.create(
                api_key=self.api_key,
                account=account_id,
                refresh_url=refresh_url,
                return_url=return_url,
                type="account_onboarding",
            )
        except stripe.StripeError as e:
            logger.error("Stripe AccountLink.create failed: %s", e)
            raise PaymentGatewayError(f"Failed to create onboarding link: {e.user_message or e}") from e

    def retrieve_account(self, account_id: str):
        self._require_key()
        try:
            return stripe.Account.retrieve(account_id, api_key=self.api_key)
        except stripe.StripeError as e:
            logger.error("Stripe Account.retrieve failed: %s", e)
            raise PaymentGatewayError(f"Failed to get account status: {e.user_message or e}") from e

    def create_payout(self, amount: int, currency: str, account_id: str, metadata: dict):
        """Pay out from a connected account's balance to its bank."""
        self._require_key()
        try:
            return stripe.Payout.create(
                api_key=self.api_key,
                amount=amount,
                currency=currency.lower(),
                metadata=metadata,
                stripe_account=account_id,
            )
        except stripe.StripeError as e:
            logger.error("Stripe Payout.create failed: %s", e)
            raise PaymentGatewayError(f"Payout failed: {e.user_message or e}") from e
