"""
활동 로그

도메인 이벤트를 추가 전용으로 기록합니다. 수정/삭제는 없습니다.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Optional, List, Union

from ..core.exceptions import ValidationError
from ..core.models import Activity, Booking
from ..repository.base import Repository

logger = logging.getLogger(__name__)


class ActivityType(str, Enum):
    """활동 유형"""
    LEAD_CREATED = "lead_created"
    BOOKING_CREATED = "booking_created"
    BOOKING_UPDATED = "booking_updated"
    QUOTE_GENERATED = "quote_generated"
    BOOKING_CONFIRMED = "booking_confirmed"
    BOOKING_CANCELLED = "booking_cancelled"
    PAYMENT_CREATED = "payment_created"
    PAYMENT_CONFIRMED = "payment_confirmed"
    PAYMENT_FAILED = "payment_failed"
    CALENDAR_BLOCKED = "calendar_blocked"


class ActivityLog:
    """
    활동 로그

    Example:
        log = ActivityLog(repository)

        await log.record(
            merchant_id,
            ActivityType.LEAD_CREATED,
            "New lead from kakao channel",
            entity_id=lead.id,
            entity_type="lead",
        )

        recent = await log.recent(merchant_id)
    """

    def __init__(self, repository: Repository, default_limit: int = 10):
        self.repo = repository
        self.default_limit = default_limit

    async def record(
        self,
        merchant_id: str,
        type: Union[ActivityType, str],
        description: str,
        entity_id: Optional[str] = None,
        entity_type: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> Activity:
        """
        활동 추가

        저장 실패는 그대로 전파됩니다. 호출 측 트랜잭션과 함께 롤백됩니다.
        """
        activity = Activity(
            merchant_id=merchant_id,
            type=type.value if isinstance(type, ActivityType) else type,
            description=description,
            entity_id=entity_id,
            entity_type=entity_type,
        )
        if created_at is not None:
            activity.created_at = created_at

        activity = await self.repo.create_activity(activity)
        logger.debug(f"Activity recorded: {activity.type} ({merchant_id})")
        return activity

    async def recent(self, merchant_id: str, limit: Optional[int] = None) -> List[Activity]:
        """최근 활동 (최신순)"""
        if limit is None:
            limit = self.default_limit
        if limit < 0:
            raise ValidationError("limit", "must be >= 0")
        return await self.repo.get_activities(merchant_id, limit)


async def merchant_for_booking(
    repository: Repository,
    booking: Booking,
    fallback: Optional[str] = None,
) -> str:
    """
    예약이 속한 업체 ID

    리드에 연결된 예약은 리드의 업체, 분리된 예약은 fallback을 사용합니다.
    """
    if booking.lead_id:
        lead = await repository.get_lead(booking.lead_id)
        if lead:
            return lead.merchant_id
    if fallback:
        return fallback
    raise ValidationError("merchant_id", f"cannot resolve merchant for booking {booking.id}")
