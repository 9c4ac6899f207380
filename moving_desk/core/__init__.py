"""
Core 모듈 - 이사 업무 핵심 기능

- 모델: Merchant, PricingRule, Lead, Booking, Payment, Activity
- 견적 엔진: compute_quote, explain_quote
- 예약 상태 머신: TRANSITIONS, ensure_transition
- DatabaseManager: SQL 저장소용 엔진/세션 관리
"""
from .models import (
    Merchant,
    PricingRule,
    Lead,
    Booking,
    Payment,
    Activity,
    LeadChannel,
    VolumeCategory,
    BookingStatus,
    PaymentStatus,
)
from .exceptions import (
    MovingDeskError,
    NotFoundError,
    ValidationError,
    ConflictError,
    InvalidTransitionError,
)
from .pricing import Quote, QuoteBreakdown, compute_quote, explain_quote, billable_floors
from .state import TRANSITIONS, can_transition, ensure_transition, is_terminal
from .database import DatabaseManager
from .schemas import (
    LeadCreate,
    LeadUpdate,
    BookingCreate,
    BookingUpdate,
    PaymentCreate,
    PaymentCallback,
    PricingRuleUpdate,
    parse_payload,
)

__all__ = [
    # Models
    "Merchant",
    "PricingRule",
    "Lead",
    "Booking",
    "Payment",
    "Activity",
    "LeadChannel",
    "VolumeCategory",
    "BookingStatus",
    "PaymentStatus",
    # Exceptions
    "MovingDeskError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "InvalidTransitionError",
    # Pricing
    "Quote",
    "QuoteBreakdown",
    "compute_quote",
    "explain_quote",
    "billable_floors",
    # State
    "TRANSITIONS",
    "can_transition",
    "ensure_transition",
    "is_terminal",
    # Database
    "DatabaseManager",
    # Schemas
    "LeadCreate",
    "LeadUpdate",
    "BookingCreate",
    "BookingUpdate",
    "PaymentCreate",
    "PaymentCallback",
    "PricingRuleUpdate",
    "parse_payload",
]
