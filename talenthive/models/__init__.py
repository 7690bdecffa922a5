"""Marketplace data models."""

from .user import User, UserRole, AccountStatus
from .project import (
    Project, ProjectStatus, ProjectVisibility, Budget, BudgetType, Timeline, TimelineUnit,
)
from .proposal import Proposal, ProposalStatus
from .contract import (
    Contract, ContractStatus, ContractSource, Milestone, MilestoneStatus, Amendment, AmendmentStatus,
)
from .transaction import Transaction, TransactionStatus
from .review import Review
from .dispute import Dispute, DisputeType, DisputeStatus, DisputePriority
from .notification import Notification, NotificationType, NotificationPriority
from .message import Conversation, Message
from .hire_now import HireNowRequest, HireNowStatus
from .support_ticket import SupportTicket, TicketStatus, TicketCategory, TicketPriority
from .settings import PlatformSettings

__all__ = [
    # Users
    "User",
    "UserRole",
    "AccountStatus",
    # Projects & proposals
    "Project",
    "ProjectStatus",
    "ProjectVisibility",
    "Budget",
    "BudgetType",
    "Timeline",
    "TimelineUnit",
    "Proposal",
    "ProposalStatus",
    # Contracts
    "Contract",
    "ContractStatus",
    "ContractSource",
    "Milestone",
    "MilestoneStatus",
    "Amendment",
    "AmendmentStatus",
    # Payments
    "Transaction",
    "TransactionStatus",
    "PlatformSettings",
    # Feedback & support
    "Review",
    "Dispute",
    "DisputeType",
    "DisputeStatus",
    "DisputePriority",
    "SupportTicket",
    "TicketStatus",
    "TicketCategory",
    "TicketPriority",
    # Communication
    "Notification",
    "NotificationType",
    "NotificationPriority",
    "Conversation",
    "Message",
    "HireNowRequest",
    "HireNowStatus",
]
