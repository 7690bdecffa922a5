"""Wires the store, gateway and workflow managers together.

The API and the CLI both build one ``Platform`` and reach every manager
through it.
"""

from typing import Optional

from .config import Settings
from .security import TokenService
from .storage import JsonStore
from .workflows import (
    AuthService,
    ContractManager,
    DisputeManager,
    HireNowManager,
    MessagingService,
    NotificationCenter,
    OnboardingManager,
    PaymentProcessor,
    PayoutManager,
    ProfileManager,
    ProjectManager,
    ProposalManager,
    ReviewManager,
    SettingsManager,
    StripeGateway,
    SupportManager,
)


class Platform:
    """All marketplace services sharing one data directory."""

    def __init__(self, settings: Settings, gateway=None):
        self.config = settings
        self.store = JsonStore(settings.data_dir)
        self.gateway = gateway or StripeGateway(settings.stripe_secret_key, settings.stripe_webhook_secret)
        self.tokens = TokenService(
            settings.jwt_secret,
            access_minutes=settings.access_token_minutes,
            refresh_days=settings.refresh_token_days,
        )

        self.notifications = NotificationCenter(self.store)
        self.settings = SettingsManager(self.store, defaults=settings.platform_defaults)
        self.profiles = ProfileManager(self.store)
        self.auth = AuthService(self.store, self.tokens, self.profiles, self.settings)
        self.onboarding = OnboardingManager(self.store)
        self.projects = ProjectManager(self.store)
        self.proposals = ProposalManager(self.store, self.notifications)
        self.contracts = ContractManager(self.store, self.notifications, self.projects)
        self.payments = PaymentProcessor(
            self.store, self.gateway, self.contracts, self.settings, self.notifications,
        )
        self.payouts = PayoutManager(
            self.store, self.gateway, self.settings, self.notifications, client_url=settings.client_url,
        )
        self.reviews = ReviewManager(self.store, self.notifications)
        self.disputes = DisputeManager(self.store, self.notifications, self.contracts)
        self.messaging = MessagingService(self.store, self.notifications)
        self.hire_now = HireNowManager(self.store, self.notifications)
        self.support = SupportManager(self.store, self.notifications)

    def get_statistics(self, include: Optional[list[str]] = None) -> dict:
        """Dashboard numbers across every area."""
        stats = {
            "users": self.profiles.get_user_statistics(),
            "projects": self.projects.get_statistics(),
            "proposals": self.proposals.get_statistics(),
            "transactions": self.payments.get_transaction_stats(),
            "disputes": self.disputes.get_statistics(),
            "support": self.support.get_statistics(),
        }
        if include:
            stats = {k: v for k, v in stats.items() if k in include}
        return stats
