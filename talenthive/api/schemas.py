"""Request body schemas for the REST API."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from ..models.dispute import DisputePriority, DisputeStatus, DisputeType
from ..models.project import BudgetType, ProjectVisibility, TimelineUnit
from ..models.support_ticket import TicketCategory, TicketPriority, TicketStatus
from ..models.user import AccountStatus, UserRole


def to_naive_utc(value: datetime) -> datetime:
    """Stored timestamps are naive UTC."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


UTCDateTime = Annotated[datetime, AfterValidator(to_naive_utc)]


# === Auth ===

class RegisterRequest(BaseModel):
    email: str
    password: str = Field(min_length=8)
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    role: UserRole = UserRole.FREELANCER
    company_name: Optional[str] = None
    title: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenRequest(BaseModel):
    token: str


class ForgotPasswordRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    token: str
    password: str = Field(min_length=8)


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=8)


# === Profiles & onboarding ===

class ProfileUpdateRequest(BaseModel):
    profile: dict = Field(default_factory=dict)
    freelancer_profile: dict = Field(default_factory=dict)
    client_profile: dict = Field(default_factory=dict)
    stripe_connected_account_id: Optional[str] = None


class SlugRequest(BaseModel):
    slug: str


class OnboardingStepRequest(BaseModel):
    step: int = Field(ge=0)


# === Projects & proposals ===

class BudgetInput(BaseModel):
    type: BudgetType = BudgetType.FIXED
    min: float = Field(ge=0)
    max: float = Field(gt=0)


class TimelineInput(BaseModel):
    duration: int = Field(ge=1)
    unit: TimelineUnit = TimelineUnit.WEEKS


class MilestoneInput(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""
    amount: float = Field(gt=0)
    due_date: Optional[UTCDateTime] = None


class ProjectCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    category: str = Field(min_length=1)
    budget: BudgetInput
    timeline: TimelineInput
    skills: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    visibility: ProjectVisibility = ProjectVisibility.PUBLIC
    is_urgent: bool = False
    application_deadline: Optional[UTCDateTime] = None
    publish: bool = True
    attachments: list[dict] = Field(default_factory=list)


class ProjectUpdateRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    budget: Optional[BudgetInput] = None
    timeline: Optional[TimelineInput] = None
    skills: Optional[list[str]] = None
    tags: Optional[list[str]] = None
    visibility: Optional[ProjectVisibility] = None
    is_urgent: Optional[bool] = None
    application_deadline: Optional[UTCDateTime] = None
    publish: bool = False


class ProposalCreateRequest(BaseModel):
    project_id: str
    cover_letter: str = Field(min_length=1)
    bid_amount: float = Field(gt=0)
    timeline: TimelineInput
    milestones: list[MilestoneInput] = Field(default_factory=list)
    attachments: list[dict] = Field(default_factory=list)


class ProposalUpdateRequest(BaseModel):
    cover_letter: Optional[str] = None
    bid_amount: Optional[float] = Field(default=None, gt=0)
    timeline: Optional[TimelineInput] = None
    milestones: Optional[list[MilestoneInput]] = None


class FeedbackRequest(BaseModel):
    feedback: str = ""


# === Contracts ===

class ContractCreateRequest(BaseModel):
    proposal_id: str
    title: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[UTCDateTime] = None
    end_date: Optional[UTCDateTime] = None
    milestones: list[MilestoneInput] = Field(default_factory=list)
    terms: Optional[str] = None


class MilestoneSubmitRequest(BaseModel):
    notes: str = ""
    deliverables: list[dict] = Field(default_factory=list)


class AmendmentRequest(BaseModel):
    description: str = Field(min_length=1)
    changes: dict


class AmendmentResponseRequest(BaseModel):
    accept: bool


class CancelRequest(BaseModel):
    reason: str = ""


# === Payments ===

class PaymentIntentRequest(BaseModel):
    contract_id: str
    milestone_id: str


class ConfirmPaymentRequest(BaseModel):
    payment_intent_id: str


class RefundRequest(BaseModel):
    reason: str = ""


# === Reviews ===

class ReviewCreateRequest(BaseModel):
    contract_id: str
    rating: int = Field(ge=1, le=5)
    comment: str = ""
    category_ratings: dict[str, int] = Field(default_factory=dict)


class ReviewResponseRequest(BaseModel):
    response: str = Field(min_length=1)


# === Disputes ===

class DisputeCreateRequest(BaseModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    type: DisputeType = DisputeType.OTHER
    priority: DisputePriority = DisputePriority.MEDIUM
    against: Optional[str] = None
    project_id: Optional[str] = None
    contract_id: Optional[str] = None
    payment_id: Optional[str] = None
    evidence: list[dict] = Field(default_factory=list)


class MessageRequest(BaseModel):
    message: str = Field(min_length=1)
    attachments: list[dict] = Field(default_factory=list)


class DisputeStatusRequest(BaseModel):
    status: DisputeStatus
    resolution: str = ""


class AssignRequest(BaseModel):
    admin_id: Optional[str] = None


# === Messaging ===

class ConversationRequest(BaseModel):
    participant_id: str
    project_id: Optional[str] = None


class SendMessageRequest(BaseModel):
    content: str = ""
    attachments: list[dict] = Field(default_factory=list)


# === Hire now ===

class HireNowCreateRequest(BaseModel):
    freelancer_id: str
    project_title: str = Field(min_length=1)
    project_description: str = Field(min_length=1)
    budget: float = Field(gt=0)
    timeline: TimelineInput
    milestones: list[MilestoneInput] = Field(default_factory=list)
    message: str = ""


class HireNowResponseRequest(BaseModel):
    message: str = ""


# === Support ===

class TicketCreateRequest(BaseModel):
    subject: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1)
    category: TicketCategory = TicketCategory.OTHER
    priority: TicketPriority = TicketPriority.MEDIUM
    attachments: list[dict] = Field(default_factory=list)


class TicketStatusRequest(BaseModel):
    status: TicketStatus


class TicketAssignRequest(BaseModel):
    admin_id: str


class TicketTagsRequest(BaseModel):
    tags: list[str]


# === Admin ===

class SettingsUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    commission_rate: Optional[float] = None
    min_commission: Optional[int] = None
    max_commission: Optional[int] = None
    payment_processing_fee: Optional[float] = None
    tax_rate: Optional[float] = None
    currency: Optional[str] = None
    withdrawal_min_amount: Optional[int] = None
    withdrawal_fee: Optional[int] = None
    escrow_hold_days: Optional[int] = None
    maintenance_mode: Optional[bool] = None
    registration_enabled: Optional[bool] = None


class AccountStatusRequest(BaseModel):
    status: AccountStatus


class ProjectFlagsRequest(BaseModel):
    is_featured: Optional[bool] = None
    is_urgent: Optional[bool] = None
