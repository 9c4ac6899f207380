"""
Moving Desk (moving_desk)
=========================

이사업체 백오피스: 리드 접수, 견적, 예약 상태 관리, 결제, 대시보드 지표

사용법:
    from moving_desk import setup_moving_desk, MovingDesk
    from moving_desk.core import compute_quote, BookingStatus
    from moving_desk.services import BookingWorkflow, WorkflowEvent
    from moving_desk.config import MovingDeskConfig

Example:
    from fastapi import FastAPI
    from moving_desk import setup_moving_desk

    app = FastAPI()
    desk = setup_moving_desk(app)

    @app.on_event("startup")
    async def startup():
        await desk.init()
"""

from .core.models import Merchant, PricingRule, Lead, Booking, Payment, Activity, BookingStatus
from .core.exceptions import (
    MovingDeskError,
    NotFoundError,
    ValidationError,
    ConflictError,
    InvalidTransitionError,
)
from .core.pricing import Quote, compute_quote
from .repository import Repository, InMemoryRepository, SQLRepository
from .services import BookingWorkflow, WorkflowEvent, MetricsAggregator, ActivityLog
from .setup import setup_moving_desk, MovingDesk, get_moving_desk
from .config import MovingDeskConfig, get_config, set_config

__version__ = "0.1.0"
__all__ = [
    # Setup
    "setup_moving_desk",
    "MovingDesk",
    "get_moving_desk",
    # Config
    "MovingDeskConfig",
    "get_config",
    "set_config",
    # Models
    "Merchant",
    "PricingRule",
    "Lead",
    "Booking",
    "Payment",
    "Activity",
    "BookingStatus",
    # Errors
    "MovingDeskError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "InvalidTransitionError",
    # Pricing
    "Quote",
    "compute_quote",
    # Repository
    "Repository",
    "InMemoryRepository",
    "SQLRepository",
    # Services
    "BookingWorkflow",
    "WorkflowEvent",
    "MetricsAggregator",
    "ActivityLog",
]
