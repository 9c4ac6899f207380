"""
예약 워크플로우

견적 생성, 예약 확정/취소 등 예약 상태 전이를 관리합니다.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from enum import Enum
from typing import Optional, Dict, Any, Callable, List, Tuple

from ..core.exceptions import NotFoundError
from ..core.models import Lead, Booking, BookingStatus, utcnow
from ..core.pricing import Quote, QuoteBreakdown, explain_quote
from ..core.schemas import BookingCreate, BookingUpdate, parse_payload
from ..core.state import TERMINAL_STATES, ensure_transition
from ..geo import DistanceProvider, FixedDistanceProvider
from ..repository.base import Repository
from .activity import ActivityLog, ActivityType, merchant_for_booking

logger = logging.getLogger(__name__)

# 견적 경로에서 새 예약에 잡는 임시 슬롯 길이
DEFAULT_SLOT_HOURS = 2


class WorkflowEvent(str, Enum):
    """워크플로우 이벤트"""
    AFTER_QUOTE = "after_quote"
    AFTER_CONFIRM = "after_confirm"
    AFTER_CANCEL = "after_cancel"


# 상태 변경 시 남기는 활동 (quoted는 견적 경로에서만 quote_generated)
_STATUS_ACTIVITY = {
    BookingStatus.CONFIRMED: (ActivityType.BOOKING_CONFIRMED, "Booking confirmed"),
    BookingStatus.CANCELLED: (ActivityType.BOOKING_CANCELLED, "Booking cancelled"),
}


class QuoteService:
    """
    리드 견적 조회

    리드, 업체 요금 규칙, 거리를 모아 견적 엔진을 호출합니다.
    저장소에는 쓰지 않습니다.
    """

    def __init__(
        self,
        repository: Repository,
        distance_provider: Optional[DistanceProvider] = None,
    ):
        self.repo = repository
        self.distance = distance_provider or FixedDistanceProvider()

    async def explain_for_lead(self, lead_id: str) -> Tuple[Lead, QuoteBreakdown]:
        """견적 계산 내역"""
        lead = await self.repo.get_lead(lead_id)
        if not lead:
            raise NotFoundError("Lead", lead_id)

        rule = await self.repo.get_pricing_rule(lead.merchant_id)
        if not rule:
            raise NotFoundError("PricingRule", lead.merchant_id)

        km = await self.distance.distance_km(lead.origin, lead.dest)
        return lead, explain_quote(lead, rule, km)

    async def quote_for_lead(self, lead_id: str) -> Quote:
        """견적 범위 계산"""
        _, breakdown = await self.explain_for_lead(lead_id)
        return breakdown.quote


class BookingWorkflow:
    """
    예약 워크플로우

    상태 변경과 활동 기록은 하나의 저장소 트랜잭션에서 처리됩니다.

    Example:
        workflow = BookingWorkflow(repository, activity_log)

        # 이벤트 훅 등록
        workflow.on(WorkflowEvent.AFTER_CONFIRM, notify_crew)

        quote = await workflow.generate_quote(lead.id)
        booking = await repository.get_booking_by_lead_id(lead.id)
        await workflow.confirm_booking(booking.id)
    """

    def __init__(
        self,
        repository: Repository,
        activity_log: Optional[ActivityLog] = None,
        quotes: Optional[QuoteService] = None,
        strict_requote: bool = True,
    ):
        self.repo = repository
        self.activities = activity_log or ActivityLog(repository)
        self.quotes = quotes or QuoteService(repository)
        self.strict_requote = strict_requote

        # (merchant_id, lead_id) 별 견적 upsert 잠금과 대기 중인 작업 수
        self._quote_locks: Dict[Tuple[str, str], asyncio.Lock] = {}
        self._quote_lock_users: Dict[Tuple[str, str], int] = {}

        self._hooks: Dict[WorkflowEvent, List[Callable]] = {
            event: [] for event in WorkflowEvent
        }

    # =========================================================================
    # 이벤트 훅
    # =========================================================================

    def on(self, event: WorkflowEvent, handler: Callable) -> None:
        """이벤트 훅 등록"""
        self._hooks[event].append(handler)

    def off(self, event: WorkflowEvent, handler: Callable) -> None:
        """이벤트 훅 제거"""
        if handler in self._hooks[event]:
            self._hooks[event].remove(handler)

    async def _emit(self, event: WorkflowEvent, **kwargs) -> None:
        """이벤트 발생"""
        for handler in self._hooks[event]:
            try:
                result = handler(**kwargs)
                if hasattr(result, "__await__"):
                    await result
            except Exception as e:
                logger.error(f"Hook error for {event}: {e}")

    @asynccontextmanager
    async def _quote_lock(self, merchant_id: str, lead_id: str):
        """리드별 견적 잠금 (마지막 사용자가 나가면 제거)"""
        key = (merchant_id, lead_id)
        lock = self._quote_locks.get(key)
        if lock is None:
            lock = self._quote_locks[key] = asyncio.Lock()
        self._quote_lock_users[key] = self._quote_lock_users.get(key, 0) + 1

        try:
            async with lock:
                yield
        finally:
            self._quote_lock_users[key] -= 1
            if self._quote_lock_users[key] == 0:
                del self._quote_lock_users[key]
                del self._quote_locks[key]

    async def _get_booking(self, booking_id: str) -> Booking:
        booking = await self.repo.get_booking(booking_id)
        if not booking:
            raise NotFoundError("Booking", booking_id)
        return booking

    # =========================================================================
    # 견적 (Quote)
    # =========================================================================

    async def generate_quote(self, lead_id: str) -> Quote:
        """
        견적 생성

        리드의 예약이 없으면 quoted 상태로 새로 만들고, 있으면 가격을
        갱신합니다. 확정/취소된 예약은 strict_requote가 켜져 있으면
        InvalidTransitionError, 꺼져 있으면 경고 후 덮어씁니다.

        Args:
            lead_id: 리드 ID

        Returns:
            Quote: min/max 가격
        """
        lead, breakdown = await self.quotes.explain_for_lead(lead_id)
        quote = breakdown.quote

        async with self._quote_lock(lead.merchant_id, lead.id):
            async with self.repo.transaction():
                booking = await self.repo.get_booking_by_lead_id(lead.id)

                if booking is None:
                    now = utcnow()
                    booking = await self.repo.create_booking(Booking(
                        lead_id=lead.id,
                        price_min=quote.min,
                        price_max=quote.max,
                        slot_start=now,
                        slot_end=now + timedelta(hours=DEFAULT_SLOT_HOURS),
                        status=BookingStatus.QUOTED.value,
                    ))
                    await self.activities.record(
                        lead.merchant_id,
                        ActivityType.BOOKING_CREATED,
                        "New booking created",
                        entity_id=booking.id,
                        entity_type="booking",
                    )
                else:
                    if BookingStatus(booking.status) in TERMINAL_STATES:
                        if self.strict_requote:
                            ensure_transition(booking.id, booking.status, BookingStatus.QUOTED)
                        logger.warning(
                            f"Re-quoting {booking.status} booking {booking.id} "
                            f"(lead {lead.id})"
                        )
                    booking = await self.repo.update_booking(booking.id, {
                        "price_min": quote.min,
                        "price_max": quote.max,
                        "status": BookingStatus.QUOTED.value,
                    })

                await self.activities.record(
                    lead.merchant_id,
                    ActivityType.QUOTE_GENERATED,
                    f"Quote generated for lead {lead.name}",
                    entity_id=lead.id,
                    entity_type="lead",
                )

        logger.info(f"Quote generated: lead {lead.id} -> {quote.min}~{quote.max}")
        await self._emit(WorkflowEvent.AFTER_QUOTE, lead=lead, booking=booking, quote=quote)
        return quote

    # =========================================================================
    # 상태 전이 (Confirm / Cancel)
    # =========================================================================

    async def _transition(
        self,
        booking_id: str,
        target: BookingStatus,
        merchant_id: Optional[str] = None,
    ) -> Booking:
        async with self.repo.transaction():
            booking = await self._get_booking(booking_id)
            ensure_transition(booking.id, booking.status, target)

            owner = await merchant_for_booking(self.repo, booking, merchant_id)
            booking = await self.repo.update_booking(booking.id, {"status": target.value})

            activity_type, description = _STATUS_ACTIVITY[target]
            await self.activities.record(
                owner,
                activity_type,
                description,
                entity_id=booking.id,
                entity_type="booking",
            )

        logger.info(f"Booking {booking.id} -> {target.value}")
        return booking

    async def confirm_booking(self, booking_id: str, merchant_id: Optional[str] = None) -> Booking:
        """
        예약 확정

        quoted 상태에서만 가능합니다. 가격 설정 여부는 확인하지 않습니다.
        """
        booking = await self._transition(booking_id, BookingStatus.CONFIRMED, merchant_id)
        await self._emit(WorkflowEvent.AFTER_CONFIRM, booking=booking)
        return booking

    async def cancel_booking(self, booking_id: str, merchant_id: Optional[str] = None) -> Booking:
        """예약 취소"""
        booking = await self._transition(booking_id, BookingStatus.CANCELLED, merchant_id)
        await self._emit(WorkflowEvent.AFTER_CANCEL, booking=booking)
        return booking

    # =========================================================================
    # 직접 생성 / 수정
    # =========================================================================

    async def create_booking(
        self,
        merchant_id: str,
        data: Optional[Dict[str, Any]],
    ) -> Booking:
        """예약 직접 생성 (기본 상태 tentative)"""
        payload = parse_payload(BookingCreate, data)

        async with self.repo.transaction():
            if payload.lead_id and not await self.repo.get_lead(payload.lead_id):
                raise NotFoundError("Lead", payload.lead_id)

            booking = await self.repo.create_booking(Booking(**payload.model_dump()))
            await self.activities.record(
                merchant_id,
                ActivityType.BOOKING_CREATED,
                "New booking created",
                entity_id=booking.id,
                entity_type="booking",
            )

        logger.info(f"Booking created: {booking.id} ({booking.status})")
        return booking

    async def update_booking(
        self,
        booking_id: str,
        patch: Optional[Dict[str, Any]],
        merchant_id: Optional[str] = None,
    ) -> Booking:
        """
        예약 부분 수정

        status가 바뀌면 전이 규칙을 검사하고 해당 상태의 활동을 남깁니다.
        그 외에는 booking_updated를 남깁니다.
        """
        data = parse_payload(BookingUpdate, patch).model_dump(exclude_unset=True)
        if data.get("status") is None:
            data.pop("status", None)

        async with self.repo.transaction():
            booking = await self._get_booking(booking_id)

            target = None
            if "status" in data and data["status"] != booking.status:
                target = ensure_transition(booking.id, booking.status, data["status"])

            owner = await merchant_for_booking(self.repo, booking, merchant_id)
            booking = await self.repo.update_booking(booking.id, data)

            activity_type, description = _STATUS_ACTIVITY.get(
                target, (ActivityType.BOOKING_UPDATED, "Booking updated")
            )
            await self.activities.record(
                owner,
                activity_type,
                description,
                entity_id=booking.id,
                entity_type="booking",
            )

        logger.info(f"Booking updated: {booking.id} {sorted(data)}")
        if target == BookingStatus.CONFIRMED:
            await self._emit(WorkflowEvent.AFTER_CONFIRM, booking=booking)
        elif target == BookingStatus.CANCELLED:
            await self._emit(WorkflowEvent.AFTER_CANCEL, booking=booking)
        return booking
