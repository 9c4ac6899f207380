"""
서비스 계층

저장소 위에서 동작하는 업무 로직 (견적/예약, 리드, 결제, 지표, 활동)
"""

from .activity import ActivityLog, ActivityType, merchant_for_booking
from .leads import LeadService
from .manager import MerchantManager
from .metrics import DashboardMetrics, MetricsAggregator, percent_change, conversion_rate
from .payments import PaymentService
from .workflow import BookingWorkflow, QuoteService, WorkflowEvent

__all__ = [
    "ActivityLog",
    "ActivityType",
    "merchant_for_booking",
    "LeadService",
    "MerchantManager",
    "DashboardMetrics",
    "MetricsAggregator",
    "percent_change",
    "conversion_rate",
    "PaymentService",
    "BookingWorkflow",
    "QuoteService",
    "WorkflowEvent",
]
