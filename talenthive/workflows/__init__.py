"""Workflow management for the marketplace."""

from .auth import AuthService
from .contract_manager import ContractManager
from .disputes import DisputeManager
from .hire_now import HireNowManager
from .messaging import MessagingService
from .notifications import NotificationCenter
from .onboarding import OnboardingManager
from .payment_processor import PaymentProcessor, calculate_fees
from .payouts import PayoutManager
from .profiles import ProfileManager, generate_slug, validate_slug
from .project_manager import ProjectManager
from .proposal_manager import ProposalManager
from .reviews import ReviewManager
from .settings import SettingsManager
from .stripe_gateway import StripeGateway
from .support import SupportManager

__all__ = [
    "AuthService",
    "ContractManager",
    "DisputeManager",
    "HireNowManager",
    "MessagingService",
    "NotificationCenter",
    "OnboardingManager",
    "PaymentProcessor",
    "calculate_fees",
    "PayoutManager",
    "ProfileManager",
    "generate_slug",
    "validate_slug",
    "ProjectManager",
    "ProposalManager",
    "ReviewManager",
    "SettingsManager",
    "StripeGateway",
    "SupportManager",
]
